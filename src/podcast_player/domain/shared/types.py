"""Reusable Pydantic Annotated types for domain-wide validation.

Every constrained type used across the package is defined here once,
so models can simply annotate their fields::

    from podcast_player.domain.shared.types import NonEmptyStr, UnitInterval

    class MyModel(BaseModel):
        title: NonEmptyStr
        progress: UnitInterval
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

# ── Numeric constraints ─────────────────────────────────────────────

NonNegativeInt = Annotated[int, Field(ge=0)]
"""Integer >= 0."""

NonNegativeFloat = Annotated[float, Field(ge=0.0)]
"""Float >= 0.0."""

UnitInterval = Annotated[float, Field(ge=0.0, le=1.0)]
"""Float in [0.0, 1.0], used for episode progress."""

VolumeFloat = Annotated[float, Field(ge=0.0, le=1.0)]
"""Audio volume multiplier in [0.0, 1.0]."""

PlaybackSpeedFloat = Annotated[float, Field(ge=0.5, le=3.0)]
"""Playback rate multiplier in [0.5, 3.0]."""


# ── String constraints ──────────────────────────────────────────────

NonEmptyStr = Annotated[str, Field(min_length=1)]
"""String with at least one character."""

EpisodeTitleStr = Annotated[str, Field(min_length=1, max_length=1000)]
"""Episode or podcast title: 1-1000 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""String that starts with http:// or https://."""

UserIdStr = Annotated[str, Field(min_length=1, max_length=200)]
"""Opaque owner identifier supplied by the authentication layer."""


# ── Domain-specific numeric constraints ─────────────────────────────

TimestampSeconds = Annotated[float, Field(ge=0.0)]
"""Position inside an episode in seconds. No upper bound: duration may be unknown."""

DurationSeconds = Annotated[float, Field(ge=0.0, le=7 * 86_400)]
"""Episode duration in seconds: 0 … one week."""


# ── Datetime constraints ────────────────────────────────────────────

def _ensure_utc(v: datetime) -> datetime:
    """Validate that a datetime is timezone-aware and normalise to UTC."""
    if v.tzinfo is None:
        raise ValueError("datetime must be timezone-aware (UTC)")
    return v.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_ensure_utc)]
"""Timezone-aware datetime, normalised to UTC on input."""
