"""Correlation of outgoing requests with their replies."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class RequestCorrelator:
    """Mints message ids and tracks the future waiting on each one.

    Ids start at 1 and are never reused, even across reconnects.
    """

    def __init__(self) -> None:
        self._last_id = 0
        self._pending: dict[int, asyncio.Future[Any]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._pending

    def next_id(self) -> int:
        self._last_id += 1
        return self._last_id

    def register(self) -> tuple[int, asyncio.Future[Any]]:
        message_id = self.next_id()
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[message_id] = future
        return message_id, future

    def resolve(self, message_id: int | None, payload: Any) -> bool:
        future = self._pop(message_id)
        if future is None:
            return False
        if not future.done():
            future.set_result(payload)
        return True

    def reject(self, message_id: int | None, error: BaseException) -> bool:
        future = self._pop(message_id)
        if future is None:
            return False
        if not future.done():
            future.set_exception(error)
        return True

    def discard(self, message_id: int) -> None:
        self._pending.pop(message_id, None)

    def reject_all(self, error: BaseException) -> int:
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(error)
        return len(pending)

    def _pop(self, message_id: int | None) -> asyncio.Future[Any] | None:
        if message_id is None:
            return None
        future = self._pending.pop(message_id, None)
        if future is None:
            LOGGER.debug("Reply for unknown message id %s ignored", message_id)
        return future
