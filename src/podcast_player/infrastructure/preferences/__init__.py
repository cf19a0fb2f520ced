"""Preference infrastructure - JSON file store."""

from podcast_player.infrastructure.preferences.json_preference_store import JsonPreferenceStore

__all__ = ["JsonPreferenceStore"]
