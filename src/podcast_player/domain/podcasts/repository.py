"""
Podcasts Domain Repository Interfaces

Abstract base classes defining the contracts for the durable store.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from podcast_player.domain.podcasts.entities import Bookmark, EpisodeState, Podcast
from podcast_player.domain.podcasts.value_objects import BookmarkId, EpisodeId, PodcastId


class LibraryRepository(ABC):
    """Abstract repository for an owner's podcasts, episodes and listening state.

    Every operation is scoped to one owner. Implementations may use SQLite,
    a remote table service, or memory.
    """

    @abstractmethod
    async def load_library(self, user_id: str) -> list[Podcast]:
        """Load all podcasts (with their episodes and state) for an owner.

        Args:
            user_id: The owner identifier.

        Returns:
            Podcasts in insertion order, each with episodes in feed order.
        """
        ...

    @abstractmethod
    async def save_episode_state(self, episode_id: EpisodeId, state: EpisodeState) -> None:
        """Persist the listening state of one episode.

        Args:
            episode_id: The episode to update.
            state: progress, played flag and last-played time.

        Raises:
            PersistenceError: If the write fails.
        """
        ...

    @abstractmethod
    async def add_podcast(self, user_id: str, podcast: Podcast) -> None:
        """Insert a podcast together with its episodes.

        Raises:
            AlreadyExistsError: If the owner already has a podcast with this feed URL.
        """
        ...

    @abstractmethod
    async def podcast_exists(self, user_id: str, feed_url: str) -> bool:
        ...

    @abstractmethod
    async def remove_podcast(self, user_id: str, podcast_id: PodcastId) -> bool:
        """Delete a podcast, its episodes and any bookmarks on those episodes.

        Returns:
            True if a podcast was deleted.
        """
        ...

    @abstractmethod
    async def clear_user(self, user_id: str) -> int:
        """Delete every podcast owned by a user.

        Returns:
            Number of podcasts deleted.
        """
        ...


class BookmarkRepository(ABC):
    """Abstract repository for an owner's bookmarks."""

    @abstractmethod
    async def load_bookmarks(self, user_id: str) -> list[Bookmark]:
        ...

    @abstractmethod
    async def insert(self, user_id: str, bookmark: Bookmark) -> None:
        """Persist a new bookmark.

        Raises:
            PersistenceError: If the write fails.
        """
        ...

    @abstractmethod
    async def update_note(self, user_id: str, bookmark_id: BookmarkId, note: str | None) -> bool:
        """Replace the note of a bookmark.

        Returns:
            True if the bookmark existed.
        """
        ...

    @abstractmethod
    async def delete(self, user_id: str, bookmark_id: BookmarkId) -> bool:
        ...
