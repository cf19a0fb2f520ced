"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from podcast_player.application.interfaces.audio_source import AudioSource, SourceCallbacks
from podcast_player.application.interfaces.feed_source import FeedSource, ParsedEpisode, ParsedFeed
from podcast_player.application.interfaces.preference_store import PreferenceStore

__all__ = [
    "AudioSource",
    "SourceCallbacks",
    "FeedSource",
    "ParsedFeed",
    "ParsedEpisode",
    "PreferenceStore",
]
