"""Immutable value objects for the podcasts bounded context."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import PlainSerializer, PlainValidator

from podcast_player.domain.shared.messages import ErrorMessages


@dataclass(frozen=True)
class EpisodeId:
    """Stable identifier of an episode, unique across the owner's library."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_EPISODE_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> EpisodeId:
        return cls(str(uuid4()))


@dataclass(frozen=True)
class PodcastId:
    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_PODCAST_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> PodcastId:
        return cls(str(uuid4()))


@dataclass(frozen=True)
class BookmarkId:
    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError(ErrorMessages.EMPTY_BOOKMARK_ID)

    def __str__(self) -> str:
        return self.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> BookmarkId:
        return cls(str(uuid4()))


# Pydantic-compatible type aliases for identifier fields.
# Serialize as plain strings in JSON, store as value objects in the model.
EpisodeIdField = Annotated[
    EpisodeId,
    PlainValidator(lambda v: EpisodeId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]

PodcastIdField = Annotated[
    PodcastId,
    PlainValidator(lambda v: PodcastId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]

BookmarkIdField = Annotated[
    BookmarkId,
    PlainValidator(lambda v: BookmarkId(v) if isinstance(v, str) else v),
    PlainSerializer(lambda v: v.value, return_type=str),
]


class TransportState(Enum):
    """Transport state of the single playback session.

    State transitions:
    - IDLE -> LOADING (an episode is selected)
    - LOADING -> PLAYING (source ready, playback started)
    - LOADING -> PAUSED (paused before the source became ready)
    - LOADING -> LOADING (another episode selected while loading)
    - PLAYING -> PAUSED (user or forced pause)
    - PLAYING -> ENDED (natural end of media)
    - PAUSED -> PLAYING (resume)
    - PLAYING/PAUSED -> LOADING (switch to another episode)
    - ENDED -> IDLE (completion recorded)
    - Any active state -> IDLE (stop, close or unrecoverable error)
    """

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"

    def can_transition_to(self, target: TransportState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            TransportState.IDLE: {TransportState.LOADING},
            TransportState.LOADING: {
                TransportState.PLAYING,
                TransportState.PAUSED,
                TransportState.LOADING,
                TransportState.IDLE,
            },
            TransportState.PLAYING: {
                TransportState.PAUSED,
                TransportState.ENDED,
                TransportState.LOADING,
                TransportState.IDLE,
            },
            TransportState.PAUSED: {
                TransportState.PLAYING,
                TransportState.LOADING,
                TransportState.IDLE,
            },
            TransportState.ENDED: {TransportState.IDLE},
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_active(self) -> bool:
        return self in {TransportState.LOADING, TransportState.PLAYING, TransportState.PAUSED}

    @property
    def is_playing(self) -> bool:
        return self == TransportState.PLAYING


class PlaybackMode(Enum):
    """Whether checkpoint writes are allowed for the current session."""

    NORMAL = "normal"
    BOOKMARK = "bookmark"  # Playing from a bookmark: progress writes suppressed


class CheckpointReason(Enum):
    """Why a progress checkpoint was requested."""

    TICK = "tick"
    PAUSE = "pause"
    SWITCH = "switch"
    ENDED = "ended"
    FORCE_PAUSE = "force_pause"

    @property
    def is_forced(self) -> bool:
        return self != CheckpointReason.TICK


_CLOCK_PATTERN = re.compile(r"^\d+(?::\d{1,2}){0,2}$")


def parse_duration(value: str | None) -> float | None:
    """Parse a feed duration hint (``HH:MM:SS``, ``MM:SS`` or plain seconds).

    Returns None for missing or unparseable input.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None

    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        return max(0.0, seconds) if math.isfinite(seconds) else None

    if not _CLOCK_PATTERN.match(text):
        return None

    total = 0
    for part in text.split(":"):
        total = total * 60 + int(part)
    return float(total)
