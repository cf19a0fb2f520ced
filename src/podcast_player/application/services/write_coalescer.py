"""Throttle repeated writes per key, always delivering the latest value."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from ...domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

WriteFn = Callable[[K, V], Awaitable[None]]


@dataclass
class _Slot(Generic[V]):
    last_write_at: float | None = None
    pending: V | None = None
    has_pending: bool = False
    timer: asyncio.TimerHandle | None = None
    tasks: set[asyncio.Task[None]] = field(default_factory=set)
    retired: bool = False


class WriteCoalescer(Generic[K, V]):
    """Leading-edge throttle with a trailing write of the newest value.

    The first submission for a key writes immediately. Submissions arriving
    within ``interval`` of the previous write replace each other and are
    written once when the interval elapses, so at most one non-forced write
    per key lands in any interval and the stored value is never older than
    the last submission by more than ``interval``.
    """

    def __init__(
        self,
        *,
        interval: float,
        write: WriteFn[K, V],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interval = interval
        self._write = write
        self._clock = clock
        self._slots: dict[K, _Slot[V]] = {}

    @property
    def interval(self) -> float:
        return self._interval

    def has_pending(self, key: K) -> bool:
        slot = self._slots.get(key)
        return slot is not None and slot.has_pending

    def submit(self, key: K, value: V) -> None:
        """Offer a value. Writes now, or defers until the interval elapses."""
        slot = self._slots.setdefault(key, _Slot())
        slot.retired = False
        now = self._clock()

        if slot.last_write_at is None or now - slot.last_write_at >= self._interval:
            self._cancel_timer(slot)
            slot.pending = None
            slot.has_pending = False
            slot.last_write_at = now
            self._spawn(key, slot, value)
            return

        slot.pending = value
        slot.has_pending = True
        if slot.timer is None:
            delay = slot.last_write_at + self._interval - now
            logger.debug(LogTemplates.CHECKPOINT_DEFERRED, key, delay)
            slot.timer = asyncio.get_running_loop().call_later(delay, self._fire, key)

    async def flush(self, key: K, value: V) -> None:
        """Write ``value`` now, superseding anything pending for ``key``."""
        slot = self._slots.setdefault(key, _Slot())
        slot.retired = False
        self._cancel_timer(slot)
        slot.pending = None
        slot.has_pending = False
        slot.last_write_at = self._clock()
        await self._write(key, value)

    def cancel(self, key: K) -> None:
        """Drop any pending write for ``key`` without writing it."""
        slot = self._slots.get(key)
        if slot is None:
            return
        self._cancel_timer(slot)
        slot.pending = None
        slot.has_pending = False

    def discard(self, key: K) -> None:
        """Cancel pending work for ``key`` and release its slot.

        The slot is removed once writes already in flight have finished, so
        :meth:`drain` still waits for them.
        """
        slot = self._slots.get(key)
        if slot is None:
            return
        self.cancel(key)
        slot.retired = True
        self._release_if_idle(key, slot)

    def cancel_all(self) -> None:
        for key in list(self._slots):
            self.cancel(key)

    async def drain(self) -> None:
        """Wait for every write already started to finish."""
        tasks = [t for slot in self._slots.values() for t in slot.tasks]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _fire(self, key: K) -> None:
        slot = self._slots.get(key)
        if slot is None:
            return
        slot.timer = None
        if not slot.has_pending:
            return
        value = slot.pending
        slot.pending = None
        slot.has_pending = False
        slot.last_write_at = self._clock()
        self._spawn(key, slot, value)  # type: ignore[arg-type]

    def _spawn(self, key: K, slot: _Slot[Any], value: V) -> None:
        task = asyncio.get_running_loop().create_task(self._write(key, value))
        slot.tasks.add(task)

        def done(t: asyncio.Task[None]) -> None:
            slot.tasks.discard(t)
            self._release_if_idle(key, slot)

        task.add_done_callback(done)

    def _release_if_idle(self, key: K, slot: _Slot[Any]) -> None:
        if slot.retired and not slot.tasks and self._slots.get(key) is slot:
            del self._slots[key]

    @staticmethod
    def _cancel_timer(slot: _Slot[Any]) -> None:
        if slot.timer is not None:
            slot.timer.cancel()
            slot.timer = None
