"""Bookmark Manager - timestamp snapshots and play-from-bookmark."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...domain.podcasts.entities import Bookmark, Episode
from ...domain.podcasts.value_objects import BookmarkId, EpisodeId, TransportState
from ...domain.shared.events import BookmarkAdded, BookmarkRemoved
from ...domain.shared.exceptions import EntityNotFoundError
from ...domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...domain.podcasts.repository import BookmarkRepository
    from ...domain.shared.events import EventBus
    from .session_controller import SessionController

logger = logging.getLogger(__name__)

EpisodeLookup = Callable[[EpisodeId], Episode | None]


@dataclass(frozen=True)
class BookmarkDraft:
    """Position captured when the user started composing a bookmark note."""

    episode: Episode
    timestamp: float
    was_playing: bool

    @property
    def episode_id(self) -> EpisodeId:
        return self.episode.id


class BookmarkManager:
    """Creates, edits and replays bookmarks for one user.

    The position is always sampled at the moment the user asks for a
    bookmark, never after the note has been typed.
    """

    def __init__(
        self,
        *,
        user_id: str,
        controller: SessionController,
        bookmark_repository: BookmarkRepository,
        episode_lookup: EpisodeLookup,
        event_bus: EventBus,
    ) -> None:
        self._user_id = user_id
        self._controller = controller
        self._repository = bookmark_repository
        self._lookup = episode_lookup
        self._event_bus = event_bus
        self._bookmarks: dict[BookmarkId, Bookmark] = {}

    @property
    def bookmarks(self) -> list[Bookmark]:
        """All bookmarks, newest first."""
        return sorted(self._bookmarks.values(), key=lambda b: b.created_at, reverse=True)

    def bookmarks_for(self, episode_id: EpisodeId) -> list[Bookmark]:
        return sorted(
            (b for b in self._bookmarks.values() if b.episode_id == episode_id),
            key=lambda b: b.timestamp,
        )

    def get(self, bookmark_id: BookmarkId) -> Bookmark | None:
        return self._bookmarks.get(bookmark_id)

    async def load(self) -> list[Bookmark]:
        bookmarks = await self._repository.load_bookmarks(self._user_id)
        self._bookmarks = {b.id: b for b in bookmarks}
        logger.info(LogTemplates.BOOKMARKS_LOADED, len(bookmarks), self._user_id)
        return self.bookmarks

    # ── Creation ────────────────────────────────────────────────────

    async def add_bookmark(
        self, note: str | None = None, timestamp: float | None = None
    ) -> Bookmark | None:
        """Bookmark the current episode at the current (or given) position.

        Returns None when nothing is loaded.
        """
        episode = self._controller.current_episode
        if episode is None:
            logger.debug(LogTemplates.SESSION_NO_EPISODE, "add_bookmark")
            return None

        at = self._controller.sample_position() if timestamp is None else timestamp
        return await self._store(episode, at, note)

    async def bookmark_episode(
        self, episode_id: EpisodeId, timestamp: float, note: str | None = None
    ) -> Bookmark:
        """Bookmark an episode that is not necessarily loaded."""
        episode = self._lookup(episode_id)
        if episode is None:
            raise EntityNotFoundError("Episode", str(episode_id))
        return await self._store(episode, timestamp, note)

    async def begin_bookmark(self) -> BookmarkDraft | None:
        """Capture the position now and pause while the user composes a note.

        The note is supplied later through :meth:`commit_bookmark`.
        """
        episode = self._controller.current_episode
        if episode is None:
            logger.debug(LogTemplates.SESSION_NO_EPISODE, "begin_bookmark")
            return None

        draft = BookmarkDraft(
            episode=episode,
            timestamp=self._controller.sample_position(),
            was_playing=self._controller.state == TransportState.PLAYING,
        )
        if draft.was_playing:
            await self._controller.pause()
        return draft

    async def commit_bookmark(self, draft: BookmarkDraft, note: str | None = None) -> Bookmark:
        bookmark = await self._store(draft.episode, draft.timestamp, note)
        await self._resume_after(draft)
        return bookmark

    async def cancel_bookmark(self, draft: BookmarkDraft) -> None:
        await self._resume_after(draft)

    async def _resume_after(self, draft: BookmarkDraft) -> None:
        if draft.was_playing and self._controller.current_episode is not None:
            await self._controller.play(self._controller.current_episode)

    async def _store(self, episode: Episode, timestamp: float, note: str | None) -> Bookmark:
        bookmark = Bookmark(
            id=BookmarkId.generate(),
            episode_id=episode.id,
            timestamp=max(0.0, float(timestamp)),
            note=note or None,
        )
        self._bookmarks[bookmark.id] = bookmark

        try:
            await self._repository.insert(self._user_id, bookmark)
        except Exception:
            logger.exception(LogTemplates.BOOKMARK_WRITE_FAILED, "insert", bookmark.id)

        logger.info(LogTemplates.BOOKMARK_ADDED, bookmark.id, episode.id, bookmark.timestamp)
        await self._event_bus.publish(
            BookmarkAdded(
                bookmark_id=str(bookmark.id),
                episode_id=str(episode.id),
                timestamp=bookmark.timestamp,
            )
        )
        return bookmark

    # ── Editing ─────────────────────────────────────────────────────

    async def edit_bookmark(self, bookmark_id: BookmarkId, note: str | None) -> Bookmark | None:
        bookmark = self._bookmarks.get(bookmark_id)
        if bookmark is None:
            return None

        updated = bookmark.with_note(note or None)
        self._bookmarks[bookmark_id] = updated
        try:
            await self._repository.update_note(self._user_id, bookmark_id, updated.note)
        except Exception:
            logger.exception(LogTemplates.BOOKMARK_WRITE_FAILED, "update", bookmark_id)

        logger.info(LogTemplates.BOOKMARK_UPDATED, bookmark_id)
        return updated

    async def delete_bookmark(self, bookmark_id: BookmarkId) -> bool:
        bookmark = self._bookmarks.pop(bookmark_id, None)
        if bookmark is None:
            return False

        try:
            await self._repository.delete(self._user_id, bookmark_id)
        except Exception:
            logger.exception(LogTemplates.BOOKMARK_WRITE_FAILED, "delete", bookmark_id)

        logger.info(LogTemplates.BOOKMARK_DELETED, bookmark_id)
        await self._event_bus.publish(
            BookmarkRemoved(bookmark_id=str(bookmark_id), episode_id=str(bookmark.episode_id))
        )
        return True

    def prune_episodes(self, episode_ids: Iterable[EpisodeId]) -> int:
        """Forget bookmarks whose episodes were removed. The store cascades on its own."""
        doomed = set(episode_ids)
        stale = [bid for bid, b in self._bookmarks.items() if b.episode_id in doomed]
        for bookmark_id in stale:
            del self._bookmarks[bookmark_id]
        return len(stale)

    # ── Playback ────────────────────────────────────────────────────

    async def play_from_timestamp(self, episode: Episode, timestamp: float) -> bool:
        return await self._controller.play_from_timestamp(episode, timestamp)

    async def play_bookmark(self, bookmark_id: BookmarkId) -> bool:
        bookmark = self._bookmarks.get(bookmark_id)
        if bookmark is None:
            return False
        episode = self._lookup(bookmark.episode_id)
        if episode is None:
            return False
        return await self.play_from_timestamp(episode, bookmark.timestamp)
