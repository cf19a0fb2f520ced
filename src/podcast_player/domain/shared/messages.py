"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Identifier Validation Errors
    EMPTY_EPISODE_ID = "Episode ID cannot be empty"
    EMPTY_PODCAST_ID = "Podcast ID cannot be empty"
    EMPTY_BOOKMARK_ID = "Bookmark ID cannot be empty"

    # Episode / Bookmark Validation Errors
    INVALID_SPEED = "Playback speed must be between {low} and {high}"
    INVALID_VOLUME = "Volume must be between 0 and 1"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Database Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Library Errors
    PODCAST_ALREADY_EXISTS = "Podcast already exists in your library"
    INVALID_FEED = "Invalid podcast data received"
    FEED_NO_CHANNEL = "Invalid RSS feed format - no channel found"
    FEED_EMPTY = "Empty feed response"
    FEED_BAD_XML = "Invalid XML format"
    FEED_HTTP_STATUS = "Failed to fetch feed: {status}"

    # Audio Source Errors
    SOURCE_ALREADY_ATTACHED = "Audio source already has callbacks attached"
    SOURCE_NOT_LOADED = "Audio source has nothing loaded"
    SOURCE_PROBE_FAILED = "Could not probe {uri}"
    SOURCE_EXITED = "Player exited with status {code}"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"
    TABLE_MIGRATED = "Migrated table %s: added column %s"

    # Session Controller
    SESSION_LOADING = "Loading episode %s (%s)"
    SESSION_READY = "Episode %s ready (duration=%s)"
    SESSION_PLAYING = "Playing episode %s from %.1fs"
    SESSION_PAUSED = "Paused episode %s at %.1fs (reason=%s)"
    SESSION_RESUMED = "Resumed episode %s at %.1fs"
    SESSION_ALREADY_PLAYING = "Episode %s already playing, ignoring play()"
    SESSION_ENDED = "Episode %s finished"
    SESSION_STOPPED = "Session stopped"
    SESSION_SEEK = "Seek episode %s to %.1fs"
    SESSION_NO_EPISODE = "Ignoring %s: no active episode"
    SESSION_STALE_CALLBACK = "Ignoring stale %s callback (generation %s, current %s)"
    SESSION_PLAYBACK_FAILED = "Playback failed for episode %s: %s"
    SESSION_FORCE_PAUSE = "Force-pause signal received in state %s"
    SESSION_BOOKMARK_MODE = "Bookmark playback of %s at %.1fs"
    SESSION_BOOKMARK_MODE_CLEARED = "Bookmark playback mode cleared for %s"

    # Progress Synchronizer
    CHECKPOINT_WRITTEN = "Checkpoint %s: episode=%s progress=%.2f played=%s"
    CHECKPOINT_FAILED = "Checkpoint write failed for episode %s"
    CHECKPOINT_SUPPRESSED = "Checkpoint suppressed for episode %s (bookmark mode)"
    CHECKPOINT_DEFERRED = "Checkpoint for %s deferred %.3fs"

    # Pause Signal Bus
    PAUSE_SIGNAL_RAISED = "Force-pause signal raised (%d subscribers)"
    PAUSE_SIGNAL_HANDLER_FAILED = "Force-pause subscriber failed"

    # Bookmarks
    BOOKMARK_ADDED = "Added bookmark %s on episode %s at %.1fs"
    BOOKMARK_UPDATED = "Updated bookmark %s"
    BOOKMARK_DELETED = "Deleted bookmark %s"
    BOOKMARK_WRITE_FAILED = "Bookmark %s failed for %s"
    BOOKMARKS_LOADED = "Loaded %d bookmarks for user %s"

    # Library
    LIBRARY_LOADED = "Loaded %d podcasts (%d episodes) for user %s"
    LIBRARY_LOAD_FAILED = "Failed to load library for user %s"
    PODCAST_ADDED = "Added podcast '%s' with %d episodes"
    PODCAST_REMOVED = "Removed podcast %s"
    PODCAST_REMOVE_FAILED = "Failed to remove podcast %s"
    LIBRARY_CLEARED = "Cleared %d podcasts for user %s"

    # Feeds
    FEED_FETCHING = "Fetching podcast feed from: %s"
    FEED_PARSED = "Parsed feed '%s' with %d episodes"
    FEED_NO_EPISODES = "No episodes with audio URLs found in feed %s"

    # Audio Source
    SOURCE_PROBED = "Probed %s: duration=%s"
    SOURCE_SPAWNED = "Spawned player for %s at %.1fs (pid=%s)"
    SOURCE_PROCESS_CLEANUP_ERROR = "Error cleaning up player process: %s"

    # Preferences
    PREFERENCES_READ_FAILED = "Could not read preferences from %s, using defaults"

    # Application Lifecycle
    APP_STARTING = "Starting podcast player in {environment} mode"
    APP_STOPPED = "Podcast player stopped"
    APP_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    APP_FATAL_ERROR = "Fatal error: %s"
    CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
