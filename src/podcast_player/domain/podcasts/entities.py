"""Core domain entities for the podcasts bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from podcast_player.domain.podcasts.value_objects import (
    BookmarkIdField,
    EpisodeId,
    EpisodeIdField,
    PlaybackMode,
    PodcastIdField,
    TransportState,
)
from podcast_player.domain.shared.constants import PlaybackConstants
from podcast_player.domain.shared.datetime_utils import format_clock, utcnow
from podcast_player.domain.shared.exceptions import InvalidOperationError
from podcast_player.domain.shared.types import (
    DurationSeconds,
    EpisodeTitleStr,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeFloat,
    NonNegativeInt,
    PlaybackSpeedFloat,
    TimestampSeconds,
    UnitInterval,
    UtcDatetimeField,
    VolumeFloat,
)


class EpisodeState(BaseModel):
    """Durable listening state of one episode."""

    model_config = ConfigDict(frozen=True, strict=True)

    progress: UnitInterval = 0.0
    played: bool = False
    last_played: UtcDatetimeField | None = None


class Episode(BaseModel):
    """A single audio item belonging to a podcast, with its listening state."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: EpisodeIdField
    podcast_id: PodcastIdField
    title: EpisodeTitleStr
    audio_url: NonEmptyStr
    podcast_title: str = ""
    description: str = ""
    image_url: str | None = None
    pub_date: UtcDatetimeField | None = None
    duration_hint_seconds: DurationSeconds | None = None

    # Listening state
    progress: UnitInterval = 0.0
    played: bool = False
    last_played: UtcDatetimeField | None = None

    @property
    def state(self) -> EpisodeState:
        return EpisodeState(progress=self.progress, played=self.played, last_played=self.last_played)

    @property
    def is_in_history(self) -> bool:
        """An episode is listed in history once it has been started or marked played."""
        return self.progress > 0 or self.played

    @property
    def is_complete(self) -> bool:
        return self.progress >= 1.0

    def with_state(self, state: EpisodeState) -> Episode:
        """Return a copy of this episode carrying the given listening state."""
        return self.model_copy(
            update={
                "progress": state.progress,
                "played": state.played,
                "last_played": state.last_played,
            }
        )

    def resume_position(self, duration_seconds: float | None) -> float:
        """Seconds to start playback from, given the media's actual duration.

        A completed episode restarts from the beginning.
        """
        if not duration_seconds or duration_seconds <= 0 or self.is_complete:
            return 0.0
        return self.progress * duration_seconds


class Podcast(BaseModel):
    """A subscribed feed and its ordered episodes."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: PodcastIdField
    title: EpisodeTitleStr
    feed_url: HttpUrlStr
    description: str = ""
    author: str = ""
    image_url: str | None = None
    episodes: list[Episode] = Field(default_factory=list)
    created_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def episode_count(self) -> int:
        return len(self.episodes)

    def find_episode(self, episode_id: EpisodeId) -> Episode | None:
        return next((e for e in self.episodes if e.id == episode_id), None)

    def with_episode(self, episode: Episode) -> Podcast:
        """Return a copy of this podcast with one episode replaced by id."""
        episodes = [episode if e.id == episode.id else e for e in self.episodes]
        return self.model_copy(update={"episodes": episodes})


class Bookmark(BaseModel):
    """A user-created marker at a timestamp within an episode."""

    model_config = ConfigDict(frozen=True, strict=True)

    id: BookmarkIdField
    episode_id: EpisodeIdField
    timestamp: TimestampSeconds
    note: str | None = None
    created_at: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def timestamp_formatted(self) -> str:
        return format_clock(self.timestamp)

    def with_note(self, note: str | None) -> Bookmark:
        return self.model_copy(update={"note": note})


class PlaybackSession(BaseModel):
    """The single active playback session and its transport state."""

    model_config = ConfigDict(strict=True)

    episode: Episode | None = None
    state: TransportState = TransportState.IDLE
    mode: PlaybackMode = PlaybackMode.NORMAL
    position_seconds: NonNegativeFloat = 0.0
    duration_seconds: NonNegativeFloat | None = None
    volume: VolumeFloat = PlaybackConstants.DEFAULT_VOLUME
    speed: PlaybackSpeedFloat = PlaybackConstants.DEFAULT_SPEED
    last_error: str | None = None

    # Bumped whenever a new episode is attached; source callbacks from an
    # older generation are discarded.
    generation: NonNegativeInt = 0

    @property
    def is_playing(self) -> bool:
        return self.state == TransportState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == TransportState.PAUSED

    @property
    def is_idle(self) -> bool:
        return self.state == TransportState.IDLE

    @property
    def in_bookmark_mode(self) -> bool:
        return self.mode == PlaybackMode.BOOKMARK

    @property
    def progress(self) -> float:
        """Fraction of the episode played, or 0 when the duration is unknown."""
        if not self.duration_seconds:
            return 0.0
        return min(1.0, max(0.0, self.position_seconds / self.duration_seconds))

    def is_current(self, episode_id: EpisodeId) -> bool:
        return self.episode is not None and self.episode.id == episode_id

    def transition_to(self, target: TransportState) -> None:
        """Move to a new transport state, rejecting transitions the state machine forbids."""
        if target == self.state and target != TransportState.LOADING:
            return
        if not self.state.can_transition_to(target):
            raise InvalidOperationError(
                operation=f"transition to {target.value}",
                current_state=self.state.value,
            )
        self.state = target

    def begin(self, episode: Episode) -> int:
        """Select a new episode and enter LOADING. Returns the new generation."""
        self.transition_to(TransportState.LOADING)
        self.episode = episode
        self.position_seconds = 0.0
        self.duration_seconds = episode.duration_hint_seconds
        self.last_error = None
        self.generation += 1
        return self.generation

    def clamp_position(self, seconds: float) -> float:
        """Clamp a position into [0, duration]; the upper bound applies only when known."""
        seconds = max(0.0, seconds)
        if self.duration_seconds:
            seconds = min(seconds, self.duration_seconds)
        return seconds

    def replace_episode(self, episode: Episode) -> None:
        """Refresh the snapshot of the current episode after its state changed."""
        if self.is_current(episode.id):
            self.episode = episode

    def reset(self) -> None:
        """Drop the current episode and return to IDLE."""
        if self.state != TransportState.IDLE:
            self.transition_to(TransportState.IDLE)
        self.episode = None
        self.mode = PlaybackMode.NORMAL
        self.position_seconds = 0.0
        self.duration_seconds = None
        self.generation += 1
