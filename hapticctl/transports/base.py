"""Transport interfaces."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Protocol


class Socket(Protocol):
    @property
    def is_open(self) -> bool:
        """Whether frames can currently be sent."""

    async def send(self, text: str) -> None:
        """Write one text frame."""

    def messages(self) -> AsyncIterator[str]:
        """Yield incoming text frames until the socket closes."""

    async def close(self) -> None:
        """Close the socket; safe to call more than once."""


Connector = Callable[[str], Awaitable[Socket]]
