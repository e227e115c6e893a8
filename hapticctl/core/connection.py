"""Connection lifecycle, request/response plumbing, and frame routing."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Mapping
from typing import Any

from hapticctl.core.codec import Frame, decode_frames, encode_message
from hapticctl.core.correlator import RequestCorrelator
from hapticctl.core.errors import (
    ConnectionLostError,
    ConnectionTimeoutError,
    DecodeError,
    NotConnectedError,
    RequestTimeoutError,
    ServerError,
)
from hapticctl.core.model import Device
from hapticctl.core.registry import DeviceRegistry, parse_device
from hapticctl.transports.base import Connector, Socket

LOGGER = logging.getLogger(__name__)

MESSAGE_VERSION = 3
DEFAULT_SERVER_URL = "ws://127.0.0.1:12345"
DEFAULT_CLIENT_NAME = "hapticctl"

_REPLY_TYPES = frozenset({"Ok", "ServerInfo", "BatteryLevelReading"})


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def _default_connector() -> Connector:
    from hapticctl.transports.websocket import open_websocket

    return open_websocket


class ConnectionManager:
    """Owns the single socket to the hardware-control server.

    Concurrent `connect()` callers share one attempt. Closing the socket, for
    any reason, empties the device registry and rejects every pending request.
    """

    def __init__(
        self,
        url: str = DEFAULT_SERVER_URL,
        *,
        client_name: str = DEFAULT_CLIENT_NAME,
        connector: Connector | None = None,
        connect_timeout_s: float = 10.0,
        reply_timeout_s: float | None = 10.0,
        ready_poll_interval_s: float = 0.5,
        ready_poll_attempts: int = 10,
    ) -> None:
        self.url = url
        self.client_name = client_name
        self.connect_timeout_s = connect_timeout_s
        self.reply_timeout_s = reply_timeout_s
        self.ready_poll_interval_s = ready_poll_interval_s
        self.ready_poll_attempts = ready_poll_attempts
        self.registry = DeviceRegistry()
        self.correlator = RequestCorrelator()
        self._connector = connector or _default_connector()
        self._socket: Socket | None = None
        self._reader: asyncio.Task[None] | None = None
        self._connecting: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        if self._connecting is not None:
            return ConnectionState.CONNECTING
        if self._socket is not None and self._socket.is_open:
            return ConnectionState.CONNECTED
        return ConnectionState.DISCONNECTED

    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def get_devices(self) -> list[Device]:
        return list(self.registry)

    async def connect(self) -> None:
        if self._connecting is None:
            if self.is_connected():
                return
            self._connecting = asyncio.ensure_future(self._open())
        # Shielded so one caller giving up does not abort the shared attempt.
        await asyncio.shield(self._connecting)

    async def disconnect(self) -> None:
        connecting = self._connecting
        if connecting is not None and connecting is not asyncio.current_task():
            connecting.cancel()
            await asyncio.wait([connecting])
            if self._connecting is connecting:
                self._connecting = None
        socket = self._socket
        if socket is not None:
            self._release(socket, "disconnect requested")
            await socket.close()
        self.registry.clear()

    async def ensure_connected(self) -> None:
        """Connect if needed, then wait briefly for at least one device.

        Returns once a device is registered or the poll budget runs out; it does
        not guarantee that any device exists.
        """
        if not self.is_connected():
            await self.connect()
        for _ in range(self.ready_poll_attempts):
            if len(self.registry) > 0:
                return
            await asyncio.sleep(self.ready_poll_interval_s)

    async def send(self, name: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        socket = self._socket
        if socket is None or not socket.is_open:
            raise NotConnectedError(f"Cannot send {name}: not connected to {self.url}")

        message_id, reply = self.correlator.register()
        try:
            await socket.send(encode_message(name, message_id, payload))
            if self.reply_timeout_s is None:
                return await reply
            return await asyncio.wait_for(reply, timeout=self.reply_timeout_s)
        except asyncio.TimeoutError as exc:
            raise RequestTimeoutError(
                f"No reply to {name} (id {message_id}) within {self.reply_timeout_s:g}s"
            ) from exc
        finally:
            self.correlator.discard(message_id)

    async def _open(self) -> None:
        LOGGER.info("Connecting to %s", self.url)
        try:
            await asyncio.wait_for(self._handshake(), timeout=self.connect_timeout_s)
        except asyncio.TimeoutError as exc:
            await self.disconnect()
            raise ConnectionTimeoutError(
                f"Connection to {self.url} timed out after {self.connect_timeout_s:g}s"
            ) from exc
        except asyncio.CancelledError as exc:
            await self.disconnect()
            raise ConnectionLostError(
                f"Connection attempt to {self.url} cancelled by disconnect"
            ) from exc
        except BaseException:
            await self.disconnect()
            raise
        finally:
            self._connecting = None

    async def _handshake(self) -> None:
        socket = await self._connector(self.url)
        self._socket = socket
        self._reader = asyncio.ensure_future(self._read_loop(socket))
        LOGGER.info("WebSocket connected")

        await self.send(
            "RequestServerInfo",
            {"ClientName": self.client_name, "MessageVersion": MESSAGE_VERSION},
        )
        LOGGER.info("Handshake complete")
        await self.send("RequestDeviceList")
        await self.send("StartScanning")
        LOGGER.info("Started device scanning")

    async def _read_loop(self, socket: Socket) -> None:
        try:
            async for text in socket.messages():
                self.handle_message(text)
        except Exception as exc:
            LOGGER.warning("Socket read failed: %s", exc)
            self._release(socket, "read failed")
            await socket.close()
        finally:
            self._release(socket, "socket closed")

    def _release(self, socket: Socket, reason: str) -> None:
        # A reader from an earlier socket must not clear state owned by a newer one.
        if self._socket is not socket:
            return
        self._socket = None
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
        self.registry.clear()
        rejected = self.correlator.reject_all(
            ConnectionLostError(f"Connection to {self.url} closed ({reason})")
        )
        LOGGER.info("Disconnected from server (%s, %d pending request(s) rejected)", reason, rejected)

    def handle_message(self, text: str | bytes) -> None:
        try:
            frames = decode_frames(text)
        except DecodeError as exc:
            LOGGER.warning("Dropping malformed message: %s", exc)
            return
        for frame in frames:
            try:
                self._route(frame)
            except DecodeError as exc:
                LOGGER.warning("Dropping malformed %s frame: %s", frame.type, exc)
            except Exception:
                LOGGER.exception("Failed to handle %s frame", frame.type)

    def _route(self, frame: Frame) -> None:
        content = frame.content
        if frame.type == "DeviceAdded":
            device = parse_device(content)
            self.registry.upsert(device)
            LOGGER.info("Device added: %s (%d)", device.name, device.index)
        elif frame.type == "DeviceRemoved":
            index = content.get("DeviceIndex")
            if not isinstance(index, int) or isinstance(index, bool):
                raise DecodeError("DeviceRemoved.DeviceIndex must be an integer")
            removed = self.registry.remove(index)
            if removed is not None:
                LOGGER.info("Device removed: %s (%d)", removed.name, removed.index)
        elif frame.type == "DeviceList":
            raw_devices = content.get("Devices") or []
            if not isinstance(raw_devices, list):
                LOGGER.warning("DeviceList.Devices is not a list, ignoring it")
                raw_devices = []
            for raw in raw_devices:
                try:
                    device = parse_device(raw)
                except DecodeError as exc:
                    LOGGER.warning("Skipping malformed device descriptor: %s", exc)
                    continue
                self.registry.upsert(device)
                LOGGER.info("Device found: %s (%d)", device.name, device.index)
            self.correlator.resolve(frame.id, content)
        elif frame.type == "ScanningFinished":
            LOGGER.info("Device scanning finished")
        elif frame.type == "Error":
            message = str(content.get("ErrorMessage", "Unknown server error"))
            code = content.get("ErrorCode")
            error = ServerError(message, code if isinstance(code, int) else None)
            if not self.correlator.reject(frame.id, error):
                LOGGER.debug("Server error without pending request: %s", message)
        elif frame.type in _REPLY_TYPES:
            self.correlator.resolve(frame.id, content)
        else:
            LOGGER.debug("Ignoring %s frame", frame.type)
