"""WebSocket transport implementation using the websockets library."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.protocol import State

from hapticctl.core.errors import TransportConnectError, TransportSendError

LOGGER = logging.getLogger(__name__)


class WebSocketSocket:
    def __init__(self, connection: ClientConnection) -> None:
        self._connection = connection

    @property
    def is_open(self) -> bool:
        return self._connection.state is State.OPEN

    async def send(self, text: str) -> None:
        try:
            await self._connection.send(text)
        except ConnectionClosed as exc:
            raise TransportSendError(f"WebSocket send failed: {exc}") from exc

    async def messages(self) -> AsyncIterator[str]:
        try:
            async for message in self._connection:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                yield message
        except ConnectionClosed as exc:
            LOGGER.info("WebSocket closed: %s", exc)

    async def close(self) -> None:
        await self._connection.close()


async def open_websocket(url: str) -> WebSocketSocket:
    # The caller bounds the whole connect sequence, so no open_timeout here.
    try:
        connection = await connect(url, open_timeout=None)
    except InvalidURI as exc:
        raise TransportConnectError(f"Invalid server URL {url!r}: {exc}") from exc
    except (OSError, InvalidHandshake) as exc:
        raise TransportConnectError(f"WebSocket connect to {url} failed: {exc}") from exc
    return WebSocketSocket(connection)
