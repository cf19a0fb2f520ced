"""Library Service - the user's podcasts, episodes and their listening state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.podcasts.entities import Episode, Podcast
from ...domain.podcasts.value_objects import EpisodeId, PodcastId
from ...domain.shared.constants import FeedConstants
from ...domain.shared.events import PodcastAdded, PodcastRemoved
from ...domain.shared.exceptions import AlreadyExistsError, FeedError
from ...domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from ...domain.podcasts.repository import LibraryRepository
    from ...domain.shared.events import EventBus
    from ..interfaces.feed_source import FeedSource, ParsedFeed
    from .bookmark_service import BookmarkManager
    from .history_view import HistoryView
    from .progress_sync import ProgressSynchronizer
    from .session_controller import SessionController

logger = logging.getLogger(__name__)


class LibraryService:
    """Loads, extends and prunes one user's library.

    The in-memory copy is kept current from the progress synchronizer, so
    lookups always return the newest listening state.
    """

    def __init__(
        self,
        *,
        user_id: str,
        repository: LibraryRepository,
        feed_source: FeedSource,
        controller: SessionController,
        synchronizer: ProgressSynchronizer,
        history: HistoryView,
        bookmarks: BookmarkManager,
        event_bus: EventBus,
    ) -> None:
        self._user_id = user_id
        self._repository = repository
        self._feed_source = feed_source
        self._controller = controller
        self._synchronizer = synchronizer
        self._history = history
        self._bookmarks = bookmarks
        self._event_bus = event_bus

        self._podcasts: dict[PodcastId, Podcast] = {}
        self._episode_index: dict[EpisodeId, PodcastId] = {}

        synchronizer.add_listener(self._on_episode_changed)

    # ── Lookups ─────────────────────────────────────────────────────

    @property
    def podcasts(self) -> list[Podcast]:
        return list(self._podcasts.values())

    @property
    def episodes(self) -> list[Episode]:
        return [e for p in self._podcasts.values() for e in p.episodes]

    @property
    def history(self) -> HistoryView:
        return self._history

    def find_podcast(self, podcast_id: PodcastId) -> Podcast | None:
        return self._podcasts.get(podcast_id)

    def find_episode(self, episode_id: EpisodeId) -> Episode | None:
        podcast_id = self._episode_index.get(episode_id)
        if podcast_id is None:
            return None
        return self._podcasts[podcast_id].find_episode(episode_id)

    # ── Loading ─────────────────────────────────────────────────────

    async def load(self) -> list[Podcast]:
        try:
            podcasts = await self._repository.load_library(self._user_id)
        except Exception:
            logger.exception(LogTemplates.LIBRARY_LOAD_FAILED, self._user_id)
            raise

        self._podcasts = {}
        self._episode_index = {}
        for podcast in podcasts:
            self._index(podcast)
        self._history.rebuild(self.podcasts)

        logger.info(
            LogTemplates.LIBRARY_LOADED,
            len(self._podcasts),
            len(self._episode_index),
            self._user_id,
        )
        return self.podcasts

    # ── Mutations ───────────────────────────────────────────────────

    async def add_podcast(self, feed_url: str) -> Podcast:
        """Subscribe to a feed.

        Raises:
            AlreadyExistsError: The feed is already in this user's library.
            FeedError: The feed could not be fetched or parsed.
        """
        feed_url = feed_url.strip()
        if await self._repository.podcast_exists(self._user_id, feed_url):
            raise AlreadyExistsError(
                "Podcast", feed_url, message=ErrorMessages.PODCAST_ALREADY_EXISTS
            )

        parsed = await self._feed_source.fetch(feed_url)
        if not parsed.title:
            raise FeedError(feed_url, ErrorMessages.INVALID_FEED)

        podcast = self._build_podcast(feed_url, parsed)
        await self._repository.add_podcast(self._user_id, podcast)
        self._index(podcast)

        logger.info(LogTemplates.PODCAST_ADDED, podcast.title, podcast.episode_count)
        await self._event_bus.publish(
            PodcastAdded(
                podcast_id=str(podcast.id),
                title=podcast.title,
                feed_url=podcast.feed_url,
                episode_count=podcast.episode_count,
            )
        )
        return podcast

    async def remove_podcast(self, podcast_id: PodcastId) -> bool:
        podcast = self._podcasts.get(podcast_id)
        if podcast is None:
            return False

        current = self._controller.current_episode
        if current is not None and current.podcast_id == podcast_id:
            await self._controller.stop(flush=False)

        try:
            await self._repository.remove_podcast(self._user_id, podcast_id)
        except Exception:
            logger.exception(LogTemplates.PODCAST_REMOVE_FAILED, podcast_id)
            raise

        self._forget(podcast)
        logger.info(LogTemplates.PODCAST_REMOVED, podcast_id)
        await self._event_bus.publish(PodcastRemoved(podcast_id=str(podcast_id), title=podcast.title))
        return True

    async def clear_all_data(self) -> int:
        """Stop playback and delete every podcast, episode and bookmark of this user."""
        await self._controller.stop(flush=False)
        removed = await self._repository.clear_user(self._user_id)
        for podcast in list(self._podcasts.values()):
            self._forget(podcast)
        self._history.clear()
        logger.info(LogTemplates.LIBRARY_CLEARED, removed, self._user_id)
        return removed

    # ── Internals ───────────────────────────────────────────────────

    def _build_podcast(self, feed_url: str, parsed: ParsedFeed) -> Podcast:
        podcast_id = PodcastId.generate()
        title = parsed.title or FeedConstants.UNKNOWN_PODCAST
        episodes = [
            Episode(
                id=EpisodeId.generate(),
                podcast_id=podcast_id,
                podcast_title=title,
                title=item.title or FeedConstants.UNTITLED_EPISODE,
                audio_url=item.audio_url,
                description=item.description,
                image_url=item.image_url or parsed.image_url,
                pub_date=item.pub_date,
                duration_hint_seconds=item.duration_seconds,
            )
            for item in parsed.episodes
        ]
        return Podcast(
            id=podcast_id,
            title=title,
            feed_url=feed_url,
            description=parsed.description,
            author=parsed.author,
            image_url=parsed.image_url,
            episodes=episodes,
        )

    def _index(self, podcast: Podcast) -> None:
        self._podcasts[podcast.id] = podcast
        for episode in podcast.episodes:
            self._episode_index[episode.id] = podcast.id

    def _forget(self, podcast: Podcast) -> None:
        self._podcasts.pop(podcast.id, None)
        episode_ids = {e.id for e in podcast.episodes}
        for episode_id in episode_ids:
            self._episode_index.pop(episode_id, None)
        self._history.remove_podcast(podcast.id)
        self._bookmarks.prune_episodes(episode_ids)
        self._synchronizer.forget(episode_ids)

    def _on_episode_changed(self, episode: Episode) -> None:
        podcast_id = self._episode_index.get(episode.id)
        if podcast_id is not None:
            self._podcasts[podcast_id] = self._podcasts[podcast_id].with_episode(episode)
        self._history.apply(episode)
