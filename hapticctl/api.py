"""Stable public API for building tooling on top of hapticctl.

This module is the supported integration surface for third-party callers, such
as a session tracker feeding work signals or a status UI. Avoid importing from
private/internal modules unless intentionally depending on non-stable internals.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from hapticctl.core.actuation import Actuator
from hapticctl.core.config import ClientConfig, load_config
from hapticctl.core.connection import ConnectionManager, ConnectionState
from hapticctl.core.errors import (
    CapabilityUnsupportedError,
    ConfigLoadError,
    ConfigValidationError,
    ConnectionLostError,
    ConnectionTimeoutError,
    DecodeError,
    DeviceError,
    DeviceNotFoundError,
    HapticctlError,
    NotConnectedError,
    RequestTimeoutError,
    ServerError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from hapticctl.core.model import DEFAULT_STRENGTH, Capabilities, Device, MotorSpec
from hapticctl.core.presence import PresenceController
from hapticctl.transports.base import Connector

__all__ = [
    "HapticctlError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DecodeError",
    "ServerError",
    "DeviceError",
    "DeviceNotFoundError",
    "CapabilityUnsupportedError",
    "TransportError",
    "NotConnectedError",
    "TransportConnectError",
    "TransportSendError",
    "ConnectionLostError",
    "TransportTimeoutError",
    "ConnectionTimeoutError",
    "RequestTimeoutError",
    "DEFAULT_STRENGTH",
    "Capabilities",
    "Device",
    "MotorSpec",
    "ClientConfig",
    "ConnectionState",
    "Client",
]


class Client:
    """Public client for driving haptic devices through a hardware-control server.

    A `Client` owns one connection, the actuation layer on top of it, and the
    presence controller. Construct one per consumer; nothing is shared between
    instances.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        connector: Connector | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or load_config()
        self._connection = ConnectionManager(
            self.config.server_url,
            client_name=self.config.client_name,
            connector=connector,
            connect_timeout_s=self.config.connect_timeout_s,
            reply_timeout_s=self.config.reply_timeout_s,
            ready_poll_interval_s=self.config.ready_poll_interval_s,
            ready_poll_attempts=self.config.ready_poll_attempts,
        )
        self._actuator = Actuator(self._connection)
        self._presence = PresenceController(
            self._actuator,
            default_strength=self.config.default_strength,
            clock=clock,
        )

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def active(self) -> bool:
        return self._presence.active

    @property
    def device(self) -> int:
        return self._presence.device

    @property
    def strength(self) -> float:
        return self._presence.strength

    @property
    def since(self) -> datetime | None:
        return self._presence.since

    async def connect(self) -> None:
        await self._connection.ensure_connected()

    async def disconnect(self) -> None:
        await self._connection.disconnect()

    def is_connected(self) -> bool:
        return self._connection.is_connected()

    def get_devices(self) -> list[Device]:
        return self._connection.get_devices()

    async def vibrate(self, device_index: int, strength: float, motor: int | None = None) -> None:
        await self._actuator.vibrate(device_index, strength, motor)

    async def vibrate_for_duration(self, device_index: int, strength: float, duration_ms: int) -> None:
        await self._actuator.vibrate_for_duration(device_index, strength, duration_ms)

    async def rotate(
        self,
        device_index: int,
        speed: float,
        clockwise: bool = True,
        motor: int | None = None,
    ) -> None:
        await self._actuator.rotate(device_index, speed, clockwise, motor)

    async def linear(
        self,
        device_index: int,
        position: float,
        duration_ms: int,
        motor: int | None = None,
    ) -> None:
        await self._actuator.linear(device_index, position, duration_ms, motor)

    async def stop(self, device_index: int) -> None:
        await self._actuator.stop(device_index)

    async def stop_all(self) -> None:
        await self._actuator.stop_all()

    async def get_battery(self, device_index: int) -> float | None:
        return await self._actuator.get_battery(device_index)

    async def on_work_signal(self, working: int) -> None:
        await self._presence.on_work_signal(working)

    async def start(self, device: int = 0, strength: float | None = None) -> None:
        await self._presence.start(device, strength)

    async def toggle(self, device: int = 0, strength: float | None = None) -> None:
        await self._presence.toggle(device, strength)

    async def restore(
        self,
        active: bool | None = None,
        device: int | None = None,
        strength: float | None = None,
    ) -> None:
        await self._presence.restore(active, device, strength)

    async def send_haptic(self, strength: float, duration_ms: int = 2000) -> None:
        await self._presence.send_haptic(strength, duration_ms)

    def status(self) -> dict[str, Any]:
        return self._presence.status()
