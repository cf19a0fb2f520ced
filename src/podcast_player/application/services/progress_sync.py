"""Progress Synchronizer - turns position ticks into durable checkpoints."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from ...domain.podcasts.entities import Episode, EpisodeState
from ...domain.podcasts.value_objects import CheckpointReason, EpisodeId, PlaybackMode
from ...domain.shared.constants import PlaybackConstants
from ...domain.shared.datetime_utils import utcnow
from ...domain.shared.events import CheckpointFailed, CheckpointWritten
from ...domain.shared.messages import LogTemplates
from .write_coalescer import WriteCoalescer

if TYPE_CHECKING:
    from ...domain.podcasts.repository import LibraryRepository
    from ...domain.shared.events import EventBus

logger = logging.getLogger(__name__)

EpisodeListener = Callable[[Episode], None]

_Checkpoint = tuple[EpisodeState, CheckpointReason]


class ProgressSynchronizer:
    """Keeps in-memory episode state current and writes it back lazily.

    Every tick updates the in-memory episode and notifies listeners at once.
    Durable writes go through a :class:`WriteCoalescer` so one episode is
    written at most once per interval; transport boundaries bypass it with
    an awaited flush. Nothing is written while the session plays from a
    bookmark.
    """

    def __init__(
        self,
        *,
        repository: LibraryRepository,
        event_bus: EventBus,
        interval_seconds: float = PlaybackConstants.CHECKPOINT_INTERVAL_MS / 1000,
        played_requires_completion: bool = False,
        precision: int = PlaybackConstants.PROGRESS_PRECISION,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repository = repository
        self._event_bus = event_bus
        self._played_requires_completion = played_requires_completion
        self._precision = precision
        self._coalescer: WriteCoalescer[EpisodeId, _Checkpoint] = WriteCoalescer(
            interval=interval_seconds,
            write=self._persist,
            clock=clock,
        )
        self._listeners: list[EpisodeListener] = []

        # Latest in-memory state per episode, so callers holding an older
        # Episode snapshot still resume from the newest position.
        self._known: dict[EpisodeId, EpisodeState] = {}

    @property
    def interval_seconds(self) -> float:
        return self._coalescer.interval

    # ── Listeners ───────────────────────────────────────────────────

    def add_listener(self, listener: EpisodeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: EpisodeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, episode: Episode) -> None:
        for listener in list(self._listeners):
            try:
                listener(episode)
            except Exception:
                logger.exception("Episode listener failed for %s", episode.id)

    # ── State computation ───────────────────────────────────────────

    def compute_state(self, episode: Episode, position: float, duration: float) -> EpisodeState:
        """Build the checkpoint payload for a position inside an episode."""
        progress = round(min(1.0, max(0.0, position / duration)), self._precision)
        if self._played_requires_completion:
            played = episode.played or progress >= 1.0
        else:
            played = True
        return EpisodeState(progress=progress, played=played, last_played=utcnow())

    def refresh(self, episode: Episode) -> Episode:
        """Return ``episode`` carrying the newest in-memory state known for it."""
        state = self._known.get(episode.id)
        if state is None or state == episode.state:
            return episode
        return episode.with_state(state)

    def forget(self, episode_ids: set[EpisodeId]) -> None:
        """Drop cached state and pending writes for removed episodes."""
        for episode_id in episode_ids:
            self._known.pop(episode_id, None)
            self._coalescer.discard(episode_id)

    def _apply(self, episode: Episode, state: EpisodeState) -> Episode:
        updated = episode.with_state(state)
        self._known[episode.id] = state
        self._notify(updated)
        return updated

    # ── Tick / flush ────────────────────────────────────────────────

    def tick(
        self,
        episode: Episode,
        position: float,
        duration: float | None,
        mode: PlaybackMode,
    ) -> Episode:
        """Record a position update. Returns the episode with its new in-memory state."""
        if mode == PlaybackMode.BOOKMARK or not duration or duration <= 0:
            return episode

        state = self.compute_state(episode, position, duration)
        updated = self._apply(episode, state)
        self._coalescer.submit(episode.id, (state, CheckpointReason.TICK))
        return updated

    async def flush(
        self,
        episode: Episode,
        position: float,
        duration: float | None,
        mode: PlaybackMode,
        reason: CheckpointReason,
    ) -> Episode:
        """Write the current position now, bypassing the throttle window."""
        if mode == PlaybackMode.BOOKMARK:
            self._coalescer.cancel(episode.id)
            logger.debug(LogTemplates.CHECKPOINT_SUPPRESSED, episode.id)
            return episode
        if not duration or duration <= 0:
            return episode

        state = self.compute_state(episode, position, duration)
        updated = self._apply(episode, state)
        await self._coalescer.flush(episode.id, (state, reason))
        return updated

    async def complete(self, episode: Episode) -> Episode:
        """Record natural completion: progress 1, played, written immediately."""
        state = EpisodeState(progress=1.0, played=True, last_played=utcnow())
        updated = self._apply(episode, state)
        await self._coalescer.flush(episode.id, (state, CheckpointReason.ENDED))
        self._coalescer.discard(episode.id)
        return updated

    async def drain(self) -> None:
        await self._coalescer.drain()

    async def close(self) -> None:
        """Cancel trailing timers and wait for writes already in flight."""
        self._coalescer.cancel_all()
        await self._coalescer.drain()

    # ── Durable write ───────────────────────────────────────────────

    async def _persist(self, episode_id: EpisodeId, checkpoint: _Checkpoint) -> None:
        state, reason = checkpoint
        try:
            await self._repository.save_episode_state(episode_id, state)
        except Exception as exc:
            logger.exception(LogTemplates.CHECKPOINT_FAILED, episode_id)
            await self._event_bus.publish(
                CheckpointFailed(episode_id=str(episode_id), reason=reason.value, error=str(exc))
            )
            return

        logger.debug(
            LogTemplates.CHECKPOINT_WRITTEN,
            reason.value,
            episode_id,
            state.progress,
            state.played,
        )
        await self._event_bus.publish(
            CheckpointWritten(
                episode_id=str(episode_id),
                progress=state.progress,
                played=state.played,
                reason=reason.value,
            )
        )
