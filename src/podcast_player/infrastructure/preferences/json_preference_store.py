"""Preference store backed by a small JSON file."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from podcast_player.application.interfaces.preference_store import PreferenceStore
from podcast_player.domain.shared.constants import PlaybackConstants
from podcast_player.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class _Preferences(BaseModel):
    model_config = ConfigDict(extra="ignore")

    playback_speed: float = Field(
        default=PlaybackConstants.DEFAULT_SPEED,
        ge=PlaybackConstants.MIN_SPEED,
        le=PlaybackConstants.MAX_SPEED,
    )


class JsonPreferenceStore(PreferenceStore):
    """Device-local preferences.

    Missing or unreadable files fall back to defaults; writes replace the
    whole file.
    """

    def __init__(
        self, path: Path | str, *, default_speed: float = PlaybackConstants.DEFAULT_SPEED
    ) -> None:
        self._path = Path(path)
        self._default_speed = default_speed
        self._cache: _Preferences | None = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> _Preferences:
        if self._cache is not None:
            return self._cache

        prefs = _Preferences(playback_speed=self._default_speed)
        if self._path.exists():
            try:
                prefs = _Preferences.model_validate_json(self._path.read_text(encoding="utf-8"))
            except (OSError, ValidationError):
                logger.warning(LogTemplates.PREFERENCES_READ_FAILED, self._path, exc_info=True)
        self._cache = prefs
        return prefs

    def get_playback_speed(self) -> float:
        return self._load().playback_speed

    def set_playback_speed(self, speed: float) -> None:
        prefs = self._load().model_copy(update={"playback_speed": speed})
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(prefs.model_dump_json(indent=2), encoding="utf-8")
        self._cache = prefs
