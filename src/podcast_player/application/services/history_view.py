"""Recency-sorted projection of episodes the user has listened to."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from ...domain.podcasts.entities import Episode, Podcast
from ...domain.podcasts.value_objects import EpisodeIdField, PodcastId, PodcastIdField
from ...domain.shared.types import UnitInterval, UtcDatetimeField

_OLDEST = datetime.min.replace(tzinfo=UTC)


class HistoryEntry(BaseModel):
    """Read-only row of the listening history."""

    model_config = ConfigDict(frozen=True, strict=True)

    episode_id: EpisodeIdField
    podcast_id: PodcastIdField
    title: str
    podcast_title: str = ""
    progress: UnitInterval = 0.0
    played: bool = False
    last_played: UtcDatetimeField | None = None

    @classmethod
    def from_episode(cls, episode: Episode) -> HistoryEntry:
        return cls(
            episode_id=episode.id,
            podcast_id=episode.podcast_id,
            title=episode.title,
            podcast_title=episode.podcast_title,
            progress=episode.progress,
            played=episode.played,
            last_played=episode.last_played,
        )


def _recency(entry: HistoryEntry) -> datetime:
    return entry.last_played or _OLDEST


class HistoryView:
    """One entry per started or played episode, newest ``last_played`` first.

    Entries with equal timestamps keep their previous relative order.
    """

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def rebuild(self, podcasts: Iterable[Podcast]) -> None:
        self._entries = [
            HistoryEntry.from_episode(episode)
            for podcast in podcasts
            for episode in podcast.episodes
            if episode.is_in_history
        ]
        self._sort()

    def apply(self, episode: Episode) -> None:
        """Patch the view after one episode's state changed."""
        index = next(
            (i for i, entry in enumerate(self._entries) if entry.episode_id == episode.id),
            None,
        )
        if not episode.is_in_history:
            if index is not None:
                del self._entries[index]
            return

        entry = HistoryEntry.from_episode(episode)
        if index is None:
            self._entries.append(entry)
        else:
            self._entries[index] = entry
        self._sort()

    def remove_podcast(self, podcast_id: PodcastId) -> None:
        self._entries = [e for e in self._entries if e.podcast_id != podcast_id]

    def clear(self) -> None:
        self._entries = []

    def _sort(self) -> None:
        # list.sort is stable with reverse=True too.
        self._entries.sort(key=_recency, reverse=True)
