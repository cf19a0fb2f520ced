"""
Podcasts Bounded Context

Domain logic for podcasts, episodes, bookmarks and the playback session.
"""

from podcast_player.domain.podcasts.entities import (
    Bookmark,
    Episode,
    EpisodeState,
    PlaybackSession,
    Podcast,
)
from podcast_player.domain.podcasts.repository import BookmarkRepository, LibraryRepository
from podcast_player.domain.podcasts.value_objects import (
    BookmarkId,
    CheckpointReason,
    EpisodeId,
    PlaybackMode,
    PodcastId,
    TransportState,
)

__all__ = [
    # Entities
    "Podcast",
    "Episode",
    "EpisodeState",
    "Bookmark",
    "PlaybackSession",
    # Value Objects
    "PodcastId",
    "EpisodeId",
    "BookmarkId",
    "TransportState",
    "PlaybackMode",
    "CheckpointReason",
    # Repositories
    "LibraryRepository",
    "BookmarkRepository",
]
