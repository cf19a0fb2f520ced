"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (SQLite repositories)
- Audio (ffprobe/ffplay subprocesses)
- Feeds (RSS over httpx)
- Preferences (JSON file)
"""

from podcast_player.infrastructure.audio.ffplay_source import FFplayAudioSource
from podcast_player.infrastructure.feeds.rss_feed_source import HttpRssFeedSource
from podcast_player.infrastructure.persistence.database import Database
from podcast_player.infrastructure.preferences.json_preference_store import JsonPreferenceStore

__all__ = [
    "Database",
    "FFplayAudioSource",
    "HttpRssFeedSource",
    "JsonPreferenceStore",
]
