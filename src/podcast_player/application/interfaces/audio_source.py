"""Port interface for the media element that actually renders audio."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from podcast_player.domain.shared.exceptions import InvalidOperationError
from podcast_player.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class SourceCallbacks:
    """Listeners an owner registers on an audio source.

    Callbacks are plain synchronous callables invoked from the event loop;
    owners that need to await must schedule their own task.
    """

    on_ready: Callable[[float | None], None]
    on_tick: Callable[[float], None]
    on_ended: Callable[[], None]
    on_error: Callable[[Exception], None]


class AudioSource(ABC):
    """Interface for a single audio output.

    Listener registration is paired: an owner attaches exactly one set of
    callbacks and must detach it before anyone else may attach. A source
    never invokes callbacks while detached.
    """

    def __init__(self) -> None:
        self._callbacks: SourceCallbacks | None = None

    # ── Listener registration ───────────────────────────────────────

    def attach(self, callbacks: SourceCallbacks) -> None:
        if self._callbacks is not None:
            raise InvalidOperationError(
                operation="attach",
                current_state="attached",
                message=ErrorMessages.SOURCE_ALREADY_ATTACHED,
            )
        self._callbacks = callbacks

    def detach(self) -> None:
        self._callbacks = None

    @property
    def is_attached(self) -> bool:
        return self._callbacks is not None

    # ── Emit helpers for implementations ────────────────────────────

    def _emit_ready(self, duration: float | None) -> None:
        if self._callbacks is not None:
            self._callbacks.on_ready(duration)

    def _emit_tick(self, position: float) -> None:
        if self._callbacks is not None:
            self._callbacks.on_tick(position)

    def _emit_ended(self) -> None:
        if self._callbacks is not None:
            self._callbacks.on_ended()

    def _emit_error(self, exc: Exception) -> None:
        if self._callbacks is not None:
            self._callbacks.on_error(exc)

    # ── Transport ───────────────────────────────────────────────────

    @abstractmethod
    async def load(self, uri: str) -> None:
        """Begin loading a stream. Readiness is reported through ``on_ready``."""
        ...

    @abstractmethod
    async def play(self) -> None:
        ...

    @abstractmethod
    async def pause(self) -> None:
        ...

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        """Move the playhead. Allowed while paused or before ``play()``."""
        ...

    @abstractmethod
    async def unload(self) -> None:
        """Stop output and release the current stream."""
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    def set_speed(self, speed: float) -> None:
        ...

    # ── Introspection ───────────────────────────────────────────────

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """True once the loaded stream's metadata is available."""
        ...

    @property
    @abstractmethod
    def position_seconds(self) -> float:
        ...

    @property
    @abstractmethod
    def duration_seconds(self) -> float | None:
        ...
