"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for repositories, adapters and services.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.interfaces.audio_source import AudioSource
    from ..application.interfaces.feed_source import FeedSource
    from ..application.interfaces.preference_store import PreferenceStore
    from ..application.services.bookmark_service import BookmarkManager
    from ..application.services.history_view import HistoryView
    from ..application.services.library_service import LibraryService
    from ..application.services.pause_signal import PauseSignalBus
    from ..application.services.progress_sync import ProgressSynchronizer
    from ..application.services.session_controller import SessionController
    from ..domain.podcasts.repository import BookmarkRepository, LibraryRepository
    from ..domain.shared.events import EventBus
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed. Tests replace
    adapters by assigning the private slots before first access.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _library_repository: LibraryRepository | None = None
    _bookmark_repository: BookmarkRepository | None = None

    # Infrastructure adapters
    _audio_source: AudioSource | None = None
    _feed_source: FeedSource | None = None
    _preference_store: PreferenceStore | None = None

    # Cross-cutting
    _event_bus: EventBus | None = None
    _pause_bus: PauseSignalBus | None = None

    # Application services
    _synchronizer: ProgressSynchronizer | None = None
    _session_controller: SessionController | None = None
    _history_view: HistoryView | None = None
    _bookmark_manager: BookmarkManager | None = None
    _library_service: LibraryService | None = None

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Repositories ===

    @property
    def library_repository(self) -> LibraryRepository:
        if self._library_repository is None:
            from ..infrastructure.persistence.repositories.library_repository import (
                SQLiteLibraryRepository,
            )

            self._library_repository = SQLiteLibraryRepository(self.database)
        return self._library_repository

    @property
    def bookmark_repository(self) -> BookmarkRepository:
        if self._bookmark_repository is None:
            from ..infrastructure.persistence.repositories.bookmark_repository import (
                SQLiteBookmarkRepository,
            )

            self._bookmark_repository = SQLiteBookmarkRepository(self.database)
        return self._bookmark_repository

    # === Infrastructure Adapters ===

    @property
    def audio_source(self) -> AudioSource:
        """Get the audio output adapter."""
        if self._audio_source is None:
            from ..infrastructure.audio.ffplay_source import FFplayAudioSource

            self._audio_source = FFplayAudioSource(self.settings.audio)
        return self._audio_source

    @property
    def feed_source(self) -> FeedSource:
        """Get the RSS feed fetcher."""
        if self._feed_source is None:
            from ..infrastructure.feeds.rss_feed_source import HttpRssFeedSource

            self._feed_source = HttpRssFeedSource(self.settings.feeds)
        return self._feed_source

    @property
    def preference_store(self) -> PreferenceStore:
        if self._preference_store is None:
            from ..infrastructure.preferences.json_preference_store import (
                JsonPreferenceStore,
            )

            self._preference_store = JsonPreferenceStore(
                self.settings.preferences.path,
                default_speed=self.settings.playback.default_speed,
            )
        return self._preference_store

    # === Cross-cutting ===

    @property
    def event_bus(self) -> EventBus:
        """Get the process-wide event bus."""
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    @property
    def pause_bus(self) -> PauseSignalBus:
        """Get the force-pause signal bus."""
        if self._pause_bus is None:
            from ..application.services.pause_signal import PauseSignalBus

            self._pause_bus = PauseSignalBus()
        return self._pause_bus

    # === Application Services ===

    @property
    def synchronizer(self) -> ProgressSynchronizer:
        """Get the progress synchronizer."""
        if self._synchronizer is None:
            from ..application.services.progress_sync import ProgressSynchronizer

            playback = self.settings.playback
            self._synchronizer = ProgressSynchronizer(
                repository=self.library_repository,
                event_bus=self.event_bus,
                interval_seconds=playback.checkpoint_interval_seconds,
                played_requires_completion=playback.played_requires_completion,
                precision=playback.progress_precision,
            )
        return self._synchronizer

    @property
    def session_controller(self) -> SessionController:
        """Get the playback session controller."""
        if self._session_controller is None:
            from ..application.services.session_controller import SessionController

            playback = self.settings.playback
            self._session_controller = SessionController(
                audio_source=self.audio_source,
                synchronizer=self.synchronizer,
                pause_bus=self.pause_bus,
                preferences=self.preference_store,
                event_bus=self.event_bus,
                skip_forward_seconds=playback.skip_forward_seconds,
                skip_backward_seconds=playback.skip_backward_seconds,
                default_volume=playback.default_volume,
            )
        return self._session_controller

    @property
    def history_view(self) -> HistoryView:
        if self._history_view is None:
            from ..application.services.history_view import HistoryView

            self._history_view = HistoryView()
        return self._history_view

    @property
    def bookmark_manager(self) -> BookmarkManager:
        """Get the bookmark manager."""
        if self._bookmark_manager is None:
            from ..application.services.bookmark_service import BookmarkManager

            self._bookmark_manager = BookmarkManager(
                user_id=self.settings.user_id,
                controller=self.session_controller,
                bookmark_repository=self.bookmark_repository,
                episode_lookup=lambda episode_id: self.library_service.find_episode(episode_id),
                event_bus=self.event_bus,
            )
        return self._bookmark_manager

    @property
    def library_service(self) -> LibraryService:
        """Get the library service."""
        if self._library_service is None:
            from ..application.services.library_service import LibraryService

            self._library_service = LibraryService(
                user_id=self.settings.user_id,
                repository=self.library_repository,
                feed_source=self.feed_source,
                controller=self.session_controller,
                synchronizer=self.synchronizer,
                history=self.history_view,
                bookmarks=self.bookmark_manager,
                event_bus=self.event_bus,
            )
        return self._library_service

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Open the database and load the user's library and bookmarks."""
        await self.database.initialize()
        await self.library_service.load()
        await self.bookmark_manager.load()

    async def shutdown(self) -> None:
        """Flush playback state and release every resource."""
        try:
            if self._session_controller is not None:
                await self._session_controller.close()
        except Exception as exc:
            logger.warning(LogTemplates.CONTAINER_SHUTDOWN_ERROR, exc)

        try:
            if self._feed_source is not None:
                await self._feed_source.close()
        except Exception as exc:
            logger.warning(LogTemplates.CONTAINER_SHUTDOWN_ERROR, exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
