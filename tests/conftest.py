from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from podcast_player.application.interfaces.audio_source import AudioSource
from podcast_player.application.interfaces.preference_store import PreferenceStore

# ============================================================================
# Fakes
# ============================================================================


class FakeAudioSource(AudioSource):
    """Scriptable audio source: tests drive readiness, ticks, end and errors."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple] = []
        self.uri: str | None = None
        self.position = 0.0
        self.ready = False
        self.duration: float | None = None
        self.volume: float | None = None
        self.speed: float | None = None
        self.load_error: Exception | None = None
        self.play_error: Exception | None = None

    # Transport

    async def load(self, uri: str) -> None:
        self.calls.append(("load", uri))
        if self.load_error is not None:
            raise self.load_error
        self.uri = uri
        self.ready = False
        self.position = 0.0

    async def play(self) -> None:
        self.calls.append(("play",))
        if self.play_error is not None:
            raise self.play_error

    async def pause(self) -> None:
        self.calls.append(("pause",))

    async def seek(self, seconds: float) -> None:
        self.calls.append(("seek", seconds))
        self.position = seconds

    async def unload(self) -> None:
        self.calls.append(("unload",))
        self.uri = None
        self.ready = False
        self.position = 0.0
        self.duration = None

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def set_speed(self, speed: float) -> None:
        self.speed = speed

    @property
    def is_ready(self) -> bool:
        return self.ready

    @property
    def position_seconds(self) -> float:
        return self.position

    @property
    def duration_seconds(self) -> float | None:
        return self.duration

    # Script helpers

    def emit_ready(self, duration: float | None) -> None:
        self.ready = True
        self.duration = duration
        self._emit_ready(duration)

    def emit_tick(self, position: float) -> None:
        self.position = position
        self._emit_tick(position)

    def emit_ended(self) -> None:
        self._emit_ended()

    def emit_error(self, exc: Exception) -> None:
        self._emit_error(exc)

    def seeks(self) -> list[float]:
        return [c[1] for c in self.calls if c[0] == "seek"]


class MemoryPreferenceStore(PreferenceStore):
    def __init__(self, speed: float = 1.0) -> None:
        self.speed = speed

    def get_playback_speed(self) -> float:
        return self.speed

    def set_playback_speed(self, speed: float) -> None:
        self.speed = speed


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from podcast_player.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def library_repository(in_memory_database):
    from podcast_player.infrastructure.persistence.repositories.library_repository import (
        SQLiteLibraryRepository,
    )

    return SQLiteLibraryRepository(in_memory_database)


@pytest_asyncio.fixture
async def bookmark_repository(in_memory_database):
    from podcast_player.infrastructure.persistence.repositories.bookmark_repository import (
        SQLiteBookmarkRepository,
    )

    return SQLiteBookmarkRepository(in_memory_database)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================


def make_episode(
    episode_id: str = "ep-1",
    podcast_id: str = "pod-1",
    *,
    title: str = "Episode One",
    progress: float = 0.0,
    played: bool = False,
    last_played: datetime | None = None,
    duration_hint: float | None = None,
):
    from podcast_player.domain.podcasts.entities import Episode
    from podcast_player.domain.podcasts.value_objects import EpisodeId, PodcastId

    return Episode(
        id=EpisodeId(episode_id),
        podcast_id=PodcastId(podcast_id),
        title=title,
        podcast_title="Test Podcast",
        audio_url=f"https://cdn.example.com/{episode_id}.mp3",
        progress=progress,
        played=played,
        last_played=last_played,
        duration_hint_seconds=duration_hint,
    )


def make_podcast(podcast_id: str = "pod-1", episodes=None, *, feed_url: str | None = None):
    from podcast_player.domain.podcasts.entities import Podcast
    from podcast_player.domain.podcasts.value_objects import PodcastId

    return Podcast(
        id=PodcastId(podcast_id),
        title="Test Podcast",
        feed_url=feed_url or f"https://feeds.example.com/{podcast_id}.xml",
        author="Test Author",
        episodes=episodes if episodes is not None else [],
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def sample_episode():
    return make_episode()


@pytest.fixture
def other_episode():
    return make_episode("ep-2", title="Episode Two")


@pytest.fixture
def sample_podcast(sample_episode, other_episode):
    return make_podcast(episodes=[sample_episode, other_episode])


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def fake_audio():
    return FakeAudioSource()


@pytest.fixture
def preferences():
    return MemoryPreferenceStore()


@pytest.fixture
def event_bus():
    from podcast_player.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def pause_bus():
    from podcast_player.application.services.pause_signal import PauseSignalBus

    return PauseSignalBus()


@pytest.fixture
def mock_library_repository():
    repo = MagicMock()
    repo.load_library = AsyncMock(return_value=[])
    repo.save_episode_state = AsyncMock()
    repo.add_podcast = AsyncMock()
    repo.podcast_exists = AsyncMock(return_value=False)
    repo.remove_podcast = AsyncMock(return_value=True)
    repo.clear_user = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def mock_bookmark_repository():
    repo = MagicMock()
    repo.load_bookmarks = AsyncMock(return_value=[])
    repo.insert = AsyncMock()
    repo.update_note = AsyncMock(return_value=True)
    repo.delete = AsyncMock(return_value=True)
    return repo


@pytest.fixture
def synchronizer(mock_library_repository, event_bus):
    from podcast_player.application.services.progress_sync import ProgressSynchronizer

    return ProgressSynchronizer(repository=mock_library_repository, event_bus=event_bus)


@pytest_asyncio.fixture
async def controller(fake_audio, synchronizer, pause_bus, preferences, event_bus):
    from podcast_player.application.services.session_controller import SessionController

    ctrl = SessionController(
        audio_source=fake_audio,
        synchronizer=synchronizer,
        pause_bus=pause_bus,
        preferences=preferences,
        event_bus=event_bus,
    )
    yield ctrl
    await ctrl.drain()
    await synchronizer.close()


def saved_states(mock_library_repository):
    """(episode_id, EpisodeState) pairs in write order."""
    return [
        (call.args[0].value, call.args[1])
        for call in mock_library_repository.save_episode_state.await_args_list
    ]


@pytest.fixture
def episode_factory():
    return make_episode


@pytest.fixture
def podcast_factory():
    return make_podcast


@pytest.fixture(name="saved_states")
def saved_states_fixture(mock_library_repository):
    return lambda: saved_states(mock_library_repository)
