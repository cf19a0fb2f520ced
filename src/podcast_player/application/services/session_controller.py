"""Session Controller - the single serialization point for playback state."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from functools import partial
from typing import TYPE_CHECKING, Any

from ...domain.podcasts.entities import Episode, PlaybackSession
from ...domain.podcasts.value_objects import CheckpointReason, PlaybackMode, TransportState
from ...domain.shared.constants import PlaybackConstants
from ...domain.shared.events import (
    EpisodeCompleted,
    EpisodeLoading,
    EpisodeStartedPlaying,
    PlaybackFailed,
    PlaybackPaused,
)
from ...domain.shared.exceptions import ValidationError
from ...domain.shared.messages import ErrorMessages, LogTemplates
from ..interfaces.audio_source import SourceCallbacks

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.audio_source import AudioSource
    from ..interfaces.preference_store import PreferenceStore
    from .pause_signal import PauseSignalBus
    from .progress_sync import ProgressSynchronizer

logger = logging.getLogger(__name__)


class SessionController:
    """Owns the current episode and its transport state.

    Every transport entry point runs under one lock, so no two transitions
    interleave. Audio source callbacks are synchronous: position ticks are
    applied inline, while ready/ended/error schedule handler tasks that take
    the lock. Each attachment is tagged with the session generation and any
    callback from an older generation is dropped.
    """

    def __init__(
        self,
        *,
        audio_source: AudioSource,
        synchronizer: ProgressSynchronizer,
        pause_bus: PauseSignalBus,
        preferences: PreferenceStore,
        event_bus: EventBus,
        skip_forward_seconds: float = PlaybackConstants.SKIP_FORWARD_SECONDS,
        skip_backward_seconds: float = PlaybackConstants.SKIP_BACKWARD_SECONDS,
        default_volume: float = PlaybackConstants.DEFAULT_VOLUME,
    ) -> None:
        self._audio = audio_source
        self._synchronizer = synchronizer
        self._preferences = preferences
        self._event_bus = event_bus
        self._skip_forward = skip_forward_seconds
        self._skip_backward = skip_backward_seconds

        self._session = PlaybackSession(
            volume=default_volume,
            speed=preferences.get_playback_speed(),
        )
        self._lock = asyncio.Lock()

        # Single-shot start position consumed by the next ready handler,
        # or applied directly when the source is already ready.
        self._pending_seek: float | None = None

        # True once the start position has been applied for the current
        # generation; before that the source position is meaningless.
        self._start_applied = False

        self._handler_tasks: set[asyncio.Task[None]] = set()
        self._pause_subscription = pause_bus.subscribe(self._on_force_pause)

    # ── Read-only view ──────────────────────────────────────────────

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def state(self) -> TransportState:
        return self._session.state

    @property
    def mode(self) -> PlaybackMode:
        return self._session.mode

    @property
    def current_episode(self) -> Episode | None:
        return self._session.episode

    @property
    def is_playing(self) -> bool:
        return self._session.is_playing

    @property
    def position_seconds(self) -> float:
        return self._session.position_seconds

    @property
    def duration_seconds(self) -> float | None:
        return self._session.duration_seconds

    @property
    def volume(self) -> float:
        return self._session.volume

    @property
    def speed(self) -> float:
        return self._session.speed

    @property
    def last_error(self) -> str | None:
        return self._session.last_error

    def sample_position(self) -> float:
        """Read the live playhead without awaiting anything."""
        if self._start_applied and self._audio.is_ready:
            self._session.position_seconds = self._session.clamp_position(
                self._audio.position_seconds
            )
        return self._session.position_seconds

    # ── Transport ───────────────────────────────────────────────────

    async def play(self, episode: Episode) -> bool:
        """Play ``episode``: resume it if paused, otherwise switch to it.

        Returns False when the source fails to load.
        """
        async with self._lock:
            session = self._session

            if session.is_current(episode.id):
                if session.is_playing:
                    self._clear_bookmark_mode()
                    logger.debug(LogTemplates.SESSION_ALREADY_PLAYING, episode.id)
                    return True

                if session.state == TransportState.LOADING:
                    self._clear_bookmark_mode()
                    self._pending_seek = None
                    return True

                if session.is_paused and not self._start_applied:
                    # Paused before the source became ready: let the ready
                    # handler start playback.
                    self._clear_bookmark_mode()
                    self._pending_seek = None
                    session.transition_to(TransportState.LOADING)
                    return True

                if session.is_paused and self._audio.is_ready:
                    self._clear_bookmark_mode()
                    return await self._start_locked(resumed=True)

            self._clear_bookmark_mode()
            return await self._switch_to(episode)

    async def play_from_timestamp(self, episode: Episode, timestamp: float) -> bool:
        """Play ``episode`` from ``timestamp`` without touching its resume position."""
        async with self._lock:
            session = self._session
            timestamp = max(0.0, timestamp)
            logger.info(LogTemplates.SESSION_BOOKMARK_MODE, episode.id, timestamp)

            if session.is_current(episode.id) and session.state.is_active:
                session.mode = PlaybackMode.BOOKMARK
                self._pending_seek = timestamp

                if self._start_applied and self._audio.is_ready:
                    await self._apply_start_position()
                    if not session.is_playing:
                        return await self._start_locked(resumed=False)
                    return True

                # Not ready yet: the ready handler consumes the pending seek.
                session.transition_to(TransportState.LOADING)
                return True

            return await self._switch_to(
                episode, mode=PlaybackMode.BOOKMARK, start_at=timestamp
            )

    async def pause(self) -> bool:
        async with self._lock:
            session = self._session
            if session.episode is None:
                logger.debug(LogTemplates.SESSION_NO_EPISODE, "pause")
                return False

            self._clear_bookmark_mode()
            if session.state not in (TransportState.LOADING, TransportState.PLAYING):
                return False

            return await self._pause_locked(CheckpointReason.PAUSE)

    async def stop(self, *, flush: bool = True) -> bool:
        """Tear down the source and return to IDLE."""
        async with self._lock:
            if self._session.episode is None:
                return False
            if flush:
                await self._checkpoint(CheckpointReason.PAUSE)
            await self._teardown()
            logger.info(LogTemplates.SESSION_STOPPED)
            return True

    async def seek(self, seconds: float) -> bool:
        async with self._lock:
            if self._session.episode is None:
                logger.debug(LogTemplates.SESSION_NO_EPISODE, "seek")
                return False
            await self._seek_locked(seconds)
            return True

    async def seek_to_progress(self, fraction: float) -> bool:
        async with self._lock:
            session = self._session
            if session.episode is None or not session.duration_seconds:
                logger.debug(LogTemplates.SESSION_NO_EPISODE, "seek_to_progress")
                return False
            fraction = min(1.0, max(0.0, fraction))
            await self._seek_locked(fraction * session.duration_seconds)
            return True

    async def skip_forward(self, seconds: float | None = None) -> bool:
        async with self._lock:
            if self._session.episode is None:
                logger.debug(LogTemplates.SESSION_NO_EPISODE, "skip_forward")
                return False
            delta = self._skip_forward if seconds is None else seconds
            await self._seek_locked(self.sample_position() + delta)
            return True

    async def skip_backward(self, seconds: float | None = None) -> bool:
        async with self._lock:
            if self._session.episode is None:
                logger.debug(LogTemplates.SESSION_NO_EPISODE, "skip_backward")
                return False
            delta = self._skip_backward if seconds is None else seconds
            await self._seek_locked(self.sample_position() - delta)
            return True

    def set_volume(self, volume: float) -> None:
        if not 0.0 <= volume <= 1.0:
            raise ValidationError(ErrorMessages.INVALID_VOLUME, field="volume")
        self._session.volume = float(volume)
        self._audio.set_volume(self._session.volume)

    def set_playback_speed(self, speed: float) -> None:
        if not PlaybackConstants.MIN_SPEED <= speed <= PlaybackConstants.MAX_SPEED:
            raise ValidationError(
                ErrorMessages.INVALID_SPEED.format(
                    low=PlaybackConstants.MIN_SPEED, high=PlaybackConstants.MAX_SPEED
                ),
                field="speed",
            )
        self._session.speed = float(speed)
        self._audio.set_speed(self._session.speed)
        self._preferences.set_playback_speed(self._session.speed)

    async def drain(self) -> None:
        """Wait for pending callback handlers and checkpoint writes."""
        while self._handler_tasks:
            await asyncio.gather(*list(self._handler_tasks), return_exceptions=True)
        await self._synchronizer.drain()

    async def close(self) -> None:
        self._pause_subscription.cancel()
        await self.stop()
        await self.drain()
        await self._synchronizer.close()

    # ── Locked helpers ──────────────────────────────────────────────

    async def _switch_to(
        self,
        episode: Episode,
        *,
        mode: PlaybackMode = PlaybackMode.NORMAL,
        start_at: float | None = None,
    ) -> bool:
        session = self._session

        if session.episode is not None:
            await self._checkpoint(CheckpointReason.SWITCH)

        # Listeners on the outgoing stream go before anything is attached.
        self._audio.detach()
        self._pending_seek = None
        if session.episode is not None:
            await self._audio.unload()

        episode = self._synchronizer.refresh(episode)
        generation = session.begin(episode)
        session.mode = mode
        self._pending_seek = start_at
        self._start_applied = False

        self._audio.attach(self._make_callbacks(generation))
        self._audio.set_volume(session.volume)
        self._audio.set_speed(session.speed)

        logger.info(LogTemplates.SESSION_LOADING, episode.id, episode.title)
        await self._event_bus.publish(
            EpisodeLoading(
                episode_id=str(episode.id),
                episode_title=episode.title,
                audio_url=episode.audio_url,
            )
        )

        try:
            await self._audio.load(episode.audio_url)
        except Exception as exc:
            await self._fail(exc)
            return False
        return True

    async def _start_locked(self, *, resumed: bool) -> bool:
        session = self._session
        episode = session.episode
        assert episode is not None

        try:
            await self._audio.play()
        except Exception as exc:
            await self._fail(exc)
            return False

        session.transition_to(TransportState.PLAYING)
        if resumed:
            logger.info(LogTemplates.SESSION_RESUMED, episode.id, session.position_seconds)
        else:
            logger.info(LogTemplates.SESSION_PLAYING, episode.id, session.position_seconds)
        await self._event_bus.publish(
            EpisodeStartedPlaying(
                episode_id=str(episode.id),
                episode_title=episode.title,
                position_seconds=session.position_seconds,
                from_bookmark=session.in_bookmark_mode,
            )
        )
        return True

    async def _pause_locked(self, reason: CheckpointReason) -> bool:
        session = self._session
        episode = session.episode
        assert episode is not None

        if self._audio.is_ready:
            await self._audio.pause()
        self.sample_position()
        session.transition_to(TransportState.PAUSED)
        await self._checkpoint(reason)

        logger.info(LogTemplates.SESSION_PAUSED, episode.id, session.position_seconds, reason.value)
        await self._event_bus.publish(
            PlaybackPaused(
                episode_id=str(episode.id),
                position_seconds=session.position_seconds,
                reason=reason.value,
            )
        )
        return True

    async def _seek_locked(self, seconds: float) -> None:
        session = self._session
        target = session.clamp_position(seconds)
        if self._start_applied and self._audio.is_ready:
            await self._audio.seek(target)
        else:
            self._pending_seek = target
        session.position_seconds = target
        logger.debug(LogTemplates.SESSION_SEEK, session.episode.id if session.episode else None, target)

    async def _apply_start_position(self) -> None:
        session = self._session
        assert session.episode is not None

        if self._pending_seek is not None:
            target = self._pending_seek
            self._pending_seek = None
        else:
            target = session.episode.resume_position(session.duration_seconds)

        target = session.clamp_position(target)
        if target > 0:
            await self._audio.seek(target)
        session.position_seconds = target
        self._start_applied = True

    async def _checkpoint(self, reason: CheckpointReason) -> None:
        session = self._session
        if session.episode is None or not self._start_applied:
            return
        self.sample_position()
        updated = await self._synchronizer.flush(
            session.episode,
            session.position_seconds,
            session.duration_seconds,
            session.mode,
            reason,
        )
        session.replace_episode(updated)

    async def _teardown(self) -> None:
        self._audio.detach()
        self._pending_seek = None
        self._start_applied = False
        await self._audio.unload()
        self._session.reset()

    async def _fail(self, exc: Exception) -> None:
        session = self._session
        episode = session.episode
        message = str(exc) or type(exc).__name__
        logger.error(LogTemplates.SESSION_PLAYBACK_FAILED, episode.id if episode else None, message)

        if self._start_applied and self._audio.is_ready and session.state.is_active:
            if session.state != TransportState.PAUSED:
                self.sample_position()
                session.transition_to(TransportState.PAUSED)
                await self._checkpoint(CheckpointReason.PAUSE)
        else:
            await self._teardown()

        session.last_error = message
        await self._event_bus.publish(
            PlaybackFailed(episode_id=str(episode.id) if episode else "", error=message)
        )

    def _clear_bookmark_mode(self) -> None:
        session = self._session
        if session.in_bookmark_mode:
            session.mode = PlaybackMode.NORMAL
            logger.info(
                LogTemplates.SESSION_BOOKMARK_MODE_CLEARED,
                session.episode.id if session.episode else None,
            )

    # ── Source callbacks ────────────────────────────────────────────

    def _make_callbacks(self, generation: int) -> SourceCallbacks:
        return SourceCallbacks(
            on_ready=partial(self._on_ready, generation),
            on_tick=partial(self._on_tick, generation),
            on_ended=partial(self._on_ended, generation),
            on_error=partial(self._on_error, generation),
        )

    def _is_stale(self, kind: str, generation: int) -> bool:
        current = self._session.generation
        if generation != current:
            logger.debug(LogTemplates.SESSION_STALE_CALLBACK, kind, generation, current)
            return True
        return False

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._handler_tasks.add(task)
        task.add_done_callback(self._handler_tasks.discard)

    def _on_tick(self, generation: int, position: float) -> None:
        if self._is_stale("tick", generation):
            return
        session = self._session
        if not session.is_playing or session.episode is None:
            return

        session.position_seconds = session.clamp_position(position)
        updated = self._synchronizer.tick(
            session.episode,
            session.position_seconds,
            session.duration_seconds,
            session.mode,
        )
        session.replace_episode(updated)

    def _on_ready(self, generation: int, duration: float | None) -> None:
        if self._is_stale("ready", generation):
            return
        self._spawn(self._handle_ready(generation, duration))

    def _on_ended(self, generation: int) -> None:
        if self._is_stale("ended", generation):
            return
        self._spawn(self._handle_ended(generation))

    def _on_error(self, generation: int, exc: Exception) -> None:
        if self._is_stale("error", generation):
            return
        self._spawn(self._handle_error(generation, exc))

    async def _handle_ready(self, generation: int, duration: float | None) -> None:
        async with self._lock:
            if self._is_stale("ready", generation):
                return
            session = self._session
            if session.episode is None or self._start_applied:
                return

            if duration is not None and duration > 0:
                session.duration_seconds = duration
            logger.info(LogTemplates.SESSION_READY, session.episode.id, session.duration_seconds)

            try:
                await self._apply_start_position()
            except Exception as exc:
                await self._fail(exc)
                return

            # Paused while loading: ready without auto-play.
            if session.state == TransportState.LOADING:
                await self._start_locked(resumed=False)

    async def _handle_ended(self, generation: int) -> None:
        async with self._lock:
            if self._is_stale("ended", generation):
                return
            session = self._session
            episode = session.episode
            if episode is None or not session.is_playing:
                return

            session.transition_to(TransportState.ENDED)
            self._clear_bookmark_mode()
            if session.duration_seconds:
                session.position_seconds = session.duration_seconds

            await self._synchronizer.complete(episode)
            logger.info(LogTemplates.SESSION_ENDED, episode.id)
            await self._event_bus.publish(
                EpisodeCompleted(episode_id=str(episode.id), episode_title=episode.title)
            )
            await self._teardown()

    async def _handle_error(self, generation: int, exc: Exception) -> None:
        async with self._lock:
            if self._is_stale("error", generation):
                return
            if self._session.episode is None:
                return
            await self._fail(exc)

    async def _on_force_pause(self) -> None:
        async with self._lock:
            session = self._session
            logger.info(LogTemplates.SESSION_FORCE_PAUSE, session.state.value)
            # A pending load must not auto-play once the source is ready.
            if session.state not in (TransportState.LOADING, TransportState.PLAYING):
                return
            await self._pause_locked(CheckpointReason.FORCE_PAUSE)
