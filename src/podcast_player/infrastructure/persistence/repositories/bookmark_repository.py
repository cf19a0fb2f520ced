"""SQLite implementation of the bookmark repository."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from podcast_player.domain.podcasts.entities import Bookmark
from podcast_player.domain.podcasts.repository import BookmarkRepository
from podcast_player.domain.podcasts.value_objects import BookmarkId, EpisodeId
from podcast_player.domain.shared.datetime_utils import UtcDateTime
from podcast_player.domain.shared.exceptions import PersistenceError

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteBookmarkRepository(BookmarkRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def load_bookmarks(self, user_id: str) -> list[Bookmark]:
        rows = await self._db.fetch_all(
            """
            SELECT * FROM bookmarks
            WHERE user_id = ?
            ORDER BY created_at DESC
            """,
            (user_id,),
        )
        return [self._row_to_bookmark(row) for row in rows]

    async def insert(self, user_id: str, bookmark: Bookmark) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO bookmarks (id, user_id, episode_id, timestamp, note, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    bookmark.id.value,
                    user_id,
                    bookmark.episode_id.value,
                    bookmark.timestamp,
                    bookmark.note,
                    UtcDateTime(bookmark.created_at).iso,
                ),
            )
        except sqlite3.Error as e:
            raise PersistenceError("insert_bookmark", str(e)) from e

    async def update_note(self, user_id: str, bookmark_id: BookmarkId, note: str | None) -> bool:
        try:
            updated = await self._db.execute(
                "UPDATE bookmarks SET note = ? WHERE id = ? AND user_id = ?",
                (note, bookmark_id.value, user_id),
            )
        except sqlite3.Error as e:
            raise PersistenceError("update_bookmark", str(e)) from e
        return updated > 0

    async def delete(self, user_id: str, bookmark_id: BookmarkId) -> bool:
        try:
            deleted = await self._db.execute(
                "DELETE FROM bookmarks WHERE id = ? AND user_id = ?",
                (bookmark_id.value, user_id),
            )
        except sqlite3.Error as e:
            raise PersistenceError("delete_bookmark", str(e)) from e
        return deleted > 0

    @staticmethod
    def _row_to_bookmark(row: dict[str, Any]) -> Bookmark:
        return Bookmark(
            id=BookmarkId(row["id"]),
            episode_id=EpisodeId(row["episode_id"]),
            timestamp=float(row["timestamp"]),
            note=row["note"],
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
        )
