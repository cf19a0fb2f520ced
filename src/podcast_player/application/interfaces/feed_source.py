"""Port interface for podcast feed ingestion."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ParsedEpisode(BaseModel):
    """One ``<item>`` with a playable enclosure."""

    model_config = ConfigDict(frozen=True)

    title: str
    audio_url: str
    description: str = ""
    image_url: str | None = None
    pub_date: datetime | None = None
    duration_seconds: float | None = None


class ParsedFeed(BaseModel):
    """A parsed RSS channel."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    author: str = ""
    image_url: str | None = None
    episodes: list[ParsedEpisode] = Field(default_factory=list)


class FeedSource(ABC):
    """Interface for fetching and parsing a podcast feed."""

    @abstractmethod
    async def fetch(self, feed_url: str) -> ParsedFeed:
        """Fetch and parse a feed.

        Raises:
            FeedError: If the feed cannot be retrieved or is not valid RSS.
        """
        ...

    async def close(self) -> None:
        """Release any network resources."""
        return None
