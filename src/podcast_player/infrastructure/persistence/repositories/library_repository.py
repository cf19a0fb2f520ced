"""SQLite implementation of the library repository."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from podcast_player.domain.podcasts.entities import Episode, EpisodeState, Podcast
from podcast_player.domain.podcasts.repository import LibraryRepository
from podcast_player.domain.podcasts.value_objects import EpisodeId, PodcastId
from podcast_player.domain.shared.datetime_utils import UtcDateTime
from podcast_player.domain.shared.exceptions import AlreadyExistsError, PersistenceError
from podcast_player.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from ..database import Database

logger = logging.getLogger(__name__)


class SQLiteLibraryRepository(LibraryRepository):
    def __init__(self, database: Database) -> None:
        self._db = database

    async def load_library(self, user_id: str) -> list[Podcast]:
        podcast_rows = await self._db.fetch_all(
            """
            SELECT * FROM podcasts
            WHERE user_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (user_id,),
        )
        if not podcast_rows:
            return []

        episode_rows = await self._db.fetch_all(
            """
            SELECT e.* FROM episodes e
            JOIN podcasts p ON p.id = e.podcast_id
            WHERE p.user_id = ?
            ORDER BY e.podcast_id, e.position ASC
            """,
            (user_id,),
        )

        by_podcast: dict[str, list[dict[str, Any]]] = {}
        for row in episode_rows:
            by_podcast.setdefault(row["podcast_id"], []).append(row)

        return [
            self._row_to_podcast(row, by_podcast.get(row["id"], []))
            for row in podcast_rows
        ]

    async def save_episode_state(self, episode_id: EpisodeId, state: EpisodeState) -> None:
        try:
            updated = await self._db.execute(
                """
                UPDATE episodes
                SET progress = ?, played = ?, last_played = ?
                WHERE id = ?
                """,
                (
                    state.progress,
                    int(state.played),
                    UtcDateTime(state.last_played).iso if state.last_played else None,
                    episode_id.value,
                ),
            )
        except sqlite3.Error as e:
            raise PersistenceError("save_episode_state", str(e)) from e

        if updated == 0:
            raise PersistenceError(
                "save_episode_state", f"Episode {episode_id} does not exist"
            )

    async def add_podcast(self, user_id: str, podcast: Podcast) -> None:
        try:
            async with self._db.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO podcasts (
                        id, user_id, title, description, author, image_url, feed_url, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        podcast.id.value,
                        user_id,
                        podcast.title,
                        podcast.description,
                        podcast.author,
                        podcast.image_url,
                        podcast.feed_url,
                        UtcDateTime(podcast.created_at).iso,
                    ),
                )
                await conn.executemany(
                    """
                    INSERT INTO episodes (
                        id, podcast_id, position, title, description, audio_url, image_url,
                        pub_date, duration_hint_seconds, progress, played, last_played
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [
                        self._episode_to_params(episode, position)
                        for position, episode in enumerate(podcast.episodes)
                    ],
                )
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e) and "feed_url" in str(e):
                raise AlreadyExistsError(
                    "Podcast", podcast.feed_url, message=ErrorMessages.PODCAST_ALREADY_EXISTS
                ) from e
            raise PersistenceError("add_podcast", str(e)) from e
        except sqlite3.Error as e:
            raise PersistenceError("add_podcast", str(e)) from e

    async def podcast_exists(self, user_id: str, feed_url: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM podcasts WHERE user_id = ? AND feed_url = ?",
            (user_id, feed_url),
        )
        return row is not None

    async def remove_podcast(self, user_id: str, podcast_id: PodcastId) -> bool:
        try:
            deleted = await self._db.execute(
                "DELETE FROM podcasts WHERE id = ? AND user_id = ?",
                (podcast_id.value, user_id),
            )
        except sqlite3.Error as e:
            raise PersistenceError("remove_podcast", str(e)) from e
        return deleted > 0

    async def clear_user(self, user_id: str) -> int:
        try:
            async with self._db.transaction() as conn:
                await conn.execute("DELETE FROM bookmarks WHERE user_id = ?", (user_id,))
                cursor = await conn.execute("DELETE FROM podcasts WHERE user_id = ?", (user_id,))
                return cursor.rowcount
        except sqlite3.Error as e:
            raise PersistenceError("clear_user", str(e)) from e

    @staticmethod
    def _episode_to_params(episode: Episode, position: int) -> tuple[Any, ...]:
        return (
            episode.id.value,
            episode.podcast_id.value,
            position,
            episode.title,
            episode.description,
            episode.audio_url,
            episode.image_url,
            UtcDateTime(episode.pub_date).iso if episode.pub_date else None,
            episode.duration_hint_seconds,
            episode.progress,
            int(episode.played),
            UtcDateTime(episode.last_played).iso if episode.last_played else None,
        )

    @staticmethod
    def _row_to_episode(row: dict[str, Any], podcast_title: str) -> Episode:
        return Episode(
            id=EpisodeId(row["id"]),
            podcast_id=PodcastId(row["podcast_id"]),
            podcast_title=podcast_title,
            title=row["title"],
            description=row["description"] or "",
            audio_url=row["audio_url"],
            image_url=row["image_url"],
            pub_date=UtcDateTime.from_iso(row["pub_date"]).dt if row["pub_date"] else None,
            duration_hint_seconds=(
                float(row["duration_hint_seconds"])
                if row["duration_hint_seconds"] is not None
                else None
            ),
            progress=float(row["progress"]),
            played=bool(row["played"]),
            last_played=(
                UtcDateTime.from_iso(row["last_played"]).dt if row["last_played"] else None
            ),
        )

    def _row_to_podcast(self, row: dict[str, Any], episode_rows: list[dict[str, Any]]) -> Podcast:
        return Podcast(
            id=PodcastId(row["id"]),
            title=row["title"],
            feed_url=row["feed_url"],
            description=row["description"] or "",
            author=row["author"] or "",
            image_url=row["image_url"],
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
            episodes=[self._row_to_episode(e, row["title"]) for e in episode_rows],
        )
