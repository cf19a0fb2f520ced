"""Centralized constants for playback defaults, database schema, and other shared values."""

from __future__ import annotations


class PlaybackConstants:
    """Defaults for transport controls and checkpointing."""

    CHECKPOINT_INTERVAL_MS = 2000
    SKIP_FORWARD_SECONDS = 30.0
    SKIP_BACKWARD_SECONDS = 15.0
    PROGRESS_PRECISION = 2
    DEFAULT_VOLUME = 1.0
    DEFAULT_SPEED = 1.0
    MIN_SPEED = 0.5
    MAX_SPEED = 3.0


class DatabaseTables:
    """Database table names."""

    PODCASTS = "podcasts"
    EPISODES = "episodes"
    BOOKMARKS = "bookmarks"


class SQLPragmas:
    """SQLite PRAGMA statements for database configuration.

    These pragmas are applied to each connection to ensure consistent behavior.
    """

    JOURNAL_MODE_WAL = "PRAGMA journal_mode=WAL"
    FOREIGN_KEYS_ON = "PRAGMA foreign_keys=ON"
    BUSY_TIMEOUT = "PRAGMA busy_timeout={timeout}"
    TABLE_INFO = "PRAGMA table_info({table})"


class FeedConstants:
    """RSS parsing constants."""

    ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
    ACCEPT_HEADER = "application/rss+xml, application/xml, text/xml, */*"
    DEFAULT_USER_AGENT = "Podcast-Player/1.0"
    UNKNOWN_PODCAST = "Unknown Podcast"
    UNKNOWN_AUTHOR = "Unknown Author"
    UNTITLED_EPISODE = "Untitled Episode"
