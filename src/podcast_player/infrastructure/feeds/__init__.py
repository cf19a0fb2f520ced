"""Feed infrastructure - RSS over HTTP."""

from podcast_player.infrastructure.feeds.rss_feed_source import HttpRssFeedSource, parse_feed

__all__ = ["HttpRssFeedSource", "parse_feed"]
