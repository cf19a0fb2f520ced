"""Port interface for device-local user preferences."""

from __future__ import annotations

from abc import ABC, abstractmethod


class PreferenceStore(ABC):
    """Small key/value store for settings that outlive a session."""

    @abstractmethod
    def get_playback_speed(self) -> float:
        """Return the persisted speed, or the default when none was saved."""
        ...

    @abstractmethod
    def set_playback_speed(self, speed: float) -> None:
        ...
