"""
Unit Tests for Dependency Injection Container

Tests for:
- Lazy initialization and caching of components
- Settings flowing into the components they configure
- Lifecycle methods (initialize, shutdown)
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from podcast_player.config.container import Container, create_container
from podcast_player.config.settings import Settings
from podcast_player.domain.shared.events import reset_event_bus


@pytest.fixture
def settings(tmp_path):
    return Settings(
        user_id="tester",
        database={"url": f"sqlite:///{tmp_path / 'podcasts.db'}"},
        playback={"checkpoint_interval_ms": 500, "skip_forward_seconds": 10},
        preferences={"path": tmp_path / "prefs.json"},
    )


@pytest.fixture
def container(settings):
    reset_event_bus()
    yield create_container(settings)
    reset_event_bus()


class TestLazyInitialization:
    def test_create_container(self, settings):
        """Should hold the settings it was created with."""
        assert create_container(settings).settings is settings

    @pytest.mark.parametrize(
        "name",
        [
            "database",
            "library_repository",
            "bookmark_repository",
            "audio_source",
            "feed_source",
            "preference_store",
            "event_bus",
            "pause_bus",
            "synchronizer",
            "session_controller",
            "history_view",
            "bookmark_manager",
            "library_service",
        ],
    )
    def test_properties_are_cached(self, container, name):
        """Should build each component once."""
        assert getattr(container, name) is getattr(container, name)

    def test_nothing_built_up_front(self, container):
        """Should not build components before first access."""
        assert container._database is None
        assert container._session_controller is None

    def test_settings_flow_into_components(self, container, tmp_path):
        """Should configure components from settings."""
        assert container.synchronizer.interval_seconds == 0.5
        assert container.preference_store.path == tmp_path / "prefs.json"
        assert container.database.db_path == str(tmp_path / "podcasts.db")
        assert container.session_controller._skip_forward == 10

    def test_injected_adapter_is_used(self, container):
        """Should use an adapter assigned before first access."""
        fake_source = MagicMock()
        container._feed_source = fake_source

        assert container.library_service._feed_source is fake_source


class TestLifecycle:
    async def test_initialize_loads_library(self, container):
        """Should open the store and load library and bookmarks."""
        await container.initialize()
        try:
            assert container.library_service.podcasts == []
            assert container.bookmark_manager.bookmarks == []
        finally:
            await container.shutdown()

    async def test_shutdown_survives_component_errors(self, container):
        """Should log failures and still close the database."""
        controller = MagicMock()
        controller.close = AsyncMock(side_effect=RuntimeError("boom"))
        container._session_controller = controller
        container._database = MagicMock()
        container._database.close = AsyncMock()

        await container.shutdown()

        container._database.close.assert_awaited_once()

    async def test_shutdown_without_components(self, settings):
        """Should be a no-op when nothing was built."""
        await Container(settings).shutdown()
