"""Payload-free broadcast that forces the player out of the playing state."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ...domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

PauseHandler = Callable[[], Awaitable[None]]


class PauseSubscription:
    """Handle returned by :meth:`PauseSignalBus.subscribe`."""

    def __init__(self, bus: PauseSignalBus, handler: PauseHandler) -> None:
        self._bus = bus
        self._handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._bus._remove(self._handler)
            self._active = False


class PauseSignalBus:
    """Any number of actors may signal; every subscriber runs before ``signal()`` returns.

    Subscribers are awaited one after another. A failing subscriber is
    logged and does not stop the others.
    """

    def __init__(self) -> None:
        self._handlers: list[PauseHandler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: PauseHandler) -> PauseSubscription:
        self._handlers.append(handler)
        return PauseSubscription(self, handler)

    def _remove(self, handler: PauseHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def signal(self) -> None:
        handlers = list(self._handlers)
        logger.info(LogTemplates.PAUSE_SIGNAL_RAISED, len(handlers))
        for handler in handlers:
            try:
                await handler()
            except Exception:
                logger.exception(LogTemplates.PAUSE_SIGNAL_HANDLER_FAILED)
