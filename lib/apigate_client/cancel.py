from __future__ import annotations

import asyncio
import logging

from .errors import RequestCancelled

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Request cancelled by the user"


class CancelHandle:
    """Cancellation signal shared by every request issued with it.

    Once triggered it stays triggered: in-flight requests linked to the handle
    are aborted and later requests linked to it fail before reaching the
    transport.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = DEFAULT_CANCEL_REASON) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> str | None:
        await self._event.wait()
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled(self._reason or DEFAULT_CANCEL_REASON)


class CancelSlot:
    """Holds the single "current" cancel handle of a client."""

    def __init__(self) -> None:
        self._current: CancelHandle | None = None

    @property
    def current(self) -> CancelHandle | None:
        return self._current

    def new_handle(self) -> CancelHandle:
        self._current = CancelHandle()
        return self._current

    def cancel_current(self, reason: str = DEFAULT_CANCEL_REASON) -> bool:
        if self._current is None:
            return False
        logger.debug("cancelling current request handle: %s", reason)
        self._current.cancel(reason)
        # requests still holding the old handle stay cancelled
        self._current = CancelHandle()
        return True
