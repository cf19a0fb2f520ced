"""HTTP RSS Feed Source

Fetches podcast RSS feeds with httpx and parses them with ElementTree,
including the iTunes podcast namespace.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import datetime

import httpx

from podcast_player.application.interfaces.feed_source import (
    FeedSource,
    ParsedEpisode,
    ParsedFeed,
)
from podcast_player.config.settings import FeedSettings
from podcast_player.domain.podcasts.value_objects import parse_duration
from podcast_player.domain.shared.constants import FeedConstants
from podcast_player.domain.shared.datetime_utils import UtcDateTime
from podcast_player.domain.shared.exceptions import FeedError
from podcast_player.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

_NS = {"itunes": FeedConstants.ITUNES_NS}


def _text(elem: ET.Element, *paths: str) -> str | None:
    """First non-empty text among ``paths``."""
    for path in paths:
        found = elem.find(path, _NS)
        if found is not None and found.text and found.text.strip():
            return found.text.strip()
    return None


def _attr(elem: ET.Element, path: str, name: str) -> str | None:
    found = elem.find(path, _NS)
    if found is None:
        return None
    value = found.get(name)
    return value.strip() if value and value.strip() else None


def _pub_date(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = UtcDateTime.from_rfc822(value)
    return parsed.dt if parsed is not None else None


def parse_feed(feed_url: str, content: bytes | str) -> ParsedFeed:
    """Parse an RSS 2.0 document into a :class:`ParsedFeed`.

    Items without an enclosure or link are skipped.

    Raises:
        FeedError: The document is empty, not XML, or has no ``<channel>``.
    """
    if not content or not content.strip():
        raise FeedError(feed_url, ErrorMessages.FEED_EMPTY)

    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise FeedError(feed_url, ErrorMessages.FEED_BAD_XML) from e

    channel = root.find("channel")
    if channel is None:
        raise FeedError(feed_url, ErrorMessages.FEED_NO_CHANNEL)

    image_url = _text(channel, "image/url") or _attr(channel, "itunes:image", "href")

    episodes: list[ParsedEpisode] = []
    for item in channel.findall("item"):
        audio_url = _attr(item, "enclosure", "url") or _text(item, "link")
        if not audio_url:
            continue
        episodes.append(
            ParsedEpisode(
                title=_text(item, "title") or FeedConstants.UNTITLED_EPISODE,
                audio_url=audio_url,
                description=_text(item, "description", "itunes:summary") or "",
                image_url=_attr(item, "itunes:image", "href"),
                pub_date=_pub_date(_text(item, "pubDate")),
                duration_seconds=parse_duration(_text(item, "itunes:duration")),
            )
        )

    if not episodes:
        logger.warning(LogTemplates.FEED_NO_EPISODES, feed_url)

    return ParsedFeed(
        title=_text(channel, "title") or FeedConstants.UNKNOWN_PODCAST,
        description=_text(channel, "description", "itunes:summary") or "",
        author=_text(channel, "itunes:author", "author", "managingEditor")
        or FeedConstants.UNKNOWN_AUTHOR,
        image_url=image_url,
        episodes=episodes,
    )


class HttpRssFeedSource(FeedSource):
    """FeedSource over HTTP(S).

    The client is created lazily and reused; pass ``transport`` to route
    requests elsewhere (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        settings: FeedSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or FeedSettings()
        self._client = client
        self._transport = transport
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                headers={
                    "Accept": FeedConstants.ACCEPT_HEADER,
                    "User-Agent": self._settings.user_agent,
                },
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, feed_url: str) -> ParsedFeed:
        logger.info(LogTemplates.FEED_FETCHING, feed_url)
        try:
            response = await self._get_client().get(feed_url)
        except httpx.HTTPError as e:
            raise FeedError(feed_url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise FeedError(
                feed_url, ErrorMessages.FEED_HTTP_STATUS.format(status=response.status_code)
            )

        feed = parse_feed(feed_url, response.content)
        logger.info(LogTemplates.FEED_PARSED, feed.title, len(feed.episodes))
        return feed

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
