"""
Unit Tests for Domain Podcasts Layer

Tests for:
- Value Objects: EpisodeId, PodcastId, BookmarkId, TransportState, parse_duration
- Entities: Episode, Podcast, Bookmark, PlaybackSession
- Date/time helpers
"""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from podcast_player.domain.podcasts.entities import (
    Bookmark,
    Episode,
    EpisodeState,
    PlaybackSession,
    Podcast,
)
from podcast_player.domain.podcasts.value_objects import (
    BookmarkId,
    CheckpointReason,
    EpisodeId,
    PodcastId,
    TransportState,
    parse_duration,
)
from podcast_player.domain.shared.datetime_utils import UtcDateTime, format_clock
from podcast_player.domain.shared.exceptions import InvalidOperationError

# =============================================================================
# Identifier Value Object Tests
# =============================================================================


class TestIdentifiers:
    @pytest.mark.parametrize("cls", [EpisodeId, PodcastId, BookmarkId])
    def test_empty_raises_error(self, cls):
        """Should raise ValueError for empty or whitespace identifiers."""
        with pytest.raises(ValueError, match="cannot be empty"):
            cls("   ")

    def test_identifiers_hashable(self):
        """Should be usable in sets and as dict keys."""
        ids = {EpisodeId("a"), EpisodeId("a"), EpisodeId("b")}

        assert len(ids) == 2
        assert str(EpisodeId("a")) == "a"

    def test_generate_is_unique(self):
        """Should generate distinct identifiers."""
        assert PodcastId.generate() != PodcastId.generate()


# =============================================================================
# TransportState Tests
# =============================================================================


class TestTransportState:
    @pytest.mark.parametrize(
        "source, target",
        [
            (TransportState.IDLE, TransportState.LOADING),
            (TransportState.LOADING, TransportState.PAUSED),
            (TransportState.LOADING, TransportState.LOADING),
            (TransportState.PLAYING, TransportState.ENDED),
            (TransportState.PAUSED, TransportState.PLAYING),
            (TransportState.ENDED, TransportState.IDLE),
        ],
    )
    def test_valid_transitions(self, source, target):
        """Should allow the transitions of the transport state machine."""
        assert source.can_transition_to(target)

    @pytest.mark.parametrize(
        "source, target",
        [
            (TransportState.IDLE, TransportState.PLAYING),
            (TransportState.PAUSED, TransportState.ENDED),
            (TransportState.ENDED, TransportState.PLAYING),
        ],
    )
    def test_invalid_transitions(self, source, target):
        """Should reject transitions the state machine forbids."""
        assert not source.can_transition_to(target)

    def test_checkpoint_reasons(self):
        """Should treat everything but ticks as a forced checkpoint."""
        assert not CheckpointReason.TICK.is_forced
        assert CheckpointReason.FORCE_PAUSE.is_forced


# =============================================================================
# parse_duration Tests
# =============================================================================


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("1:02:03", 3723.0),
            ("12:34", 754.0),
            ("95", 95.0),
            ("95.5", 95.5),
            (" 00:00:30 ", 30.0),
            (None, None),
            ("", None),
            ("abc", None),
            ("1:2:3:4", None),
            ("inf", None),
        ],
    )
    def test_parse(self, value, expected):
        """Should parse clock and seconds formats and reject garbage."""
        assert parse_duration(value) == expected


# =============================================================================
# Episode / Podcast Tests
# =============================================================================


class TestEpisode:
    def test_progress_is_bounded(self, episode_factory):
        """Should reject progress outside [0, 1]."""
        with pytest.raises(ValidationError):
            episode_factory(progress=1.5)

    def test_naive_datetime_rejected(self, episode_factory):
        """Should require timezone-aware timestamps."""
        with pytest.raises(ValidationError):
            episode_factory(last_played=datetime(2024, 1, 1))

    def test_datetimes_normalized_to_utc(self, episode_factory):
        """Should convert offsets to UTC."""
        plus_two = timezone(timedelta(hours=2))
        episode = episode_factory(last_played=datetime(2024, 1, 1, 12, tzinfo=plus_two))

        assert episode.last_played == datetime(2024, 1, 1, 10, tzinfo=UTC)
        assert episode.last_played.tzinfo == UTC

    def test_in_history_once_started_or_played(self, episode_factory):
        """Should list started or played episodes in history."""
        assert not episode_factory().is_in_history
        assert episode_factory(progress=0.1).is_in_history
        assert episode_factory(played=True).is_in_history

    def test_resume_position(self, episode_factory):
        """Should resume from progress times the actual duration."""
        assert episode_factory(progress=0.4).resume_position(300.0) == 120.0

    def test_resume_unknown_duration(self, episode_factory):
        """Should start from zero when the duration is unknown."""
        assert episode_factory(progress=0.4).resume_position(None) == 0.0

    def test_completed_episode_restarts(self, episode_factory):
        """Should restart a completed episode from the beginning."""
        assert episode_factory(progress=1.0, played=True).resume_position(300.0) == 0.0

    def test_with_state(self, episode_factory):
        """Should copy the episode with a new listening state."""
        when = datetime(2024, 5, 1, tzinfo=UTC)
        episode = episode_factory()

        updated = episode.with_state(EpisodeState(progress=0.25, played=True, last_played=when))

        assert updated.progress == 0.25
        assert updated.played is True
        assert updated.last_played == when
        assert episode.progress == 0.0
        assert updated.state == EpisodeState(progress=0.25, played=True, last_played=when)

    def test_episode_is_frozen(self, episode_factory):
        """Should not allow in-place mutation."""
        with pytest.raises(ValidationError):
            episode_factory().progress = 0.5


class TestPodcast:
    def test_find_and_replace_episode(self, episode_factory, podcast_factory):
        """Should look episodes up by id and replace them immutably."""
        first, second = episode_factory("a"), episode_factory("b")
        podcast = podcast_factory(episodes=[first, second])

        updated = podcast.with_episode(second.model_copy(update={"progress": 0.5}))

        assert podcast.episode_count == 2
        assert podcast.find_episode(EpisodeId("b")).progress == 0.0
        assert updated.find_episode(EpisodeId("b")).progress == 0.5
        assert updated.find_episode(EpisodeId("missing")) is None

    def test_feed_url_must_be_http(self):
        """Should reject non-HTTP feed URLs."""
        with pytest.raises(ValidationError):
            Podcast(id=PodcastId("p"), title="T", feed_url="ftp://example.com/feed")


class TestBookmark:
    def test_negative_timestamp_rejected(self):
        """Should reject negative timestamps."""
        with pytest.raises(ValidationError):
            Bookmark(id=BookmarkId("b"), episode_id=EpisodeId("e"), timestamp=-1.0)

    def test_formatting_and_note(self):
        """Should format the timestamp and replace notes immutably."""
        bookmark = Bookmark(id=BookmarkId("b"), episode_id=EpisodeId("e"), timestamp=3725.0)

        assert bookmark.timestamp_formatted == "1:02:05"
        assert bookmark.with_note("later").note == "later"
        assert bookmark.note is None


# =============================================================================
# PlaybackSession Tests
# =============================================================================


class TestPlaybackSession:
    def test_begin_enters_loading(self, episode_factory):
        """Should select the episode, enter LOADING and bump the generation."""
        session = PlaybackSession()
        episode = episode_factory(duration_hint=600.0)

        generation = session.begin(episode)

        assert session.state == TransportState.LOADING
        assert session.is_current(episode.id)
        assert session.duration_seconds == 600.0
        assert generation == session.generation == 1

    def test_invalid_transition_raises(self):
        """Should reject a direct IDLE to PLAYING transition."""
        with pytest.raises(InvalidOperationError):
            PlaybackSession().transition_to(TransportState.PLAYING)

    def test_clamp_position(self):
        """Should clamp positions into [0, duration]."""
        session = PlaybackSession(duration_seconds=100.0)

        assert session.clamp_position(-5.0) == 0.0
        assert session.clamp_position(150.0) == 100.0
        assert PlaybackSession().clamp_position(150.0) == 150.0

    def test_progress(self):
        """Should compute progress from position and duration."""
        assert PlaybackSession(position_seconds=30.0, duration_seconds=120.0).progress == 0.25
        assert PlaybackSession(position_seconds=30.0).progress == 0.0

    def test_reset(self, episode_factory):
        """Should return to IDLE and drop the episode."""
        session = PlaybackSession()
        session.begin(episode_factory())

        session.reset()

        assert session.is_idle
        assert session.episode is None
        assert session.generation == 2

    def test_volume_bounds(self):
        """Should reject a volume above 1."""
        with pytest.raises(ValidationError):
            PlaybackSession(volume=1.5)


# =============================================================================
# Date/Time Helper Tests
# =============================================================================


class TestDateTimeHelpers:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "00:00"), (75, "01:15"), (3600, "1:00:00"), (-1, "00:00"), (float("nan"), "00:00")],
    )
    def test_format_clock(self, seconds, expected):
        """Should format positions as MM:SS or H:MM:SS."""
        assert format_clock(seconds) == expected

    def test_iso_round_trip_with_z(self):
        """Should accept a trailing Z."""
        parsed = UtcDateTime.from_iso("2024-01-02T03:04:05Z")

        assert parsed.dt == datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        assert parsed.iso_z == "2024-01-02T03:04:05Z"

    def test_rfc822(self):
        """Should parse RSS dates and reject garbage."""
        parsed = UtcDateTime.from_rfc822("Tue, 02 Jan 2024 10:00:00 +0200")

        assert parsed.dt == datetime(2024, 1, 2, 8, tzinfo=UTC)
        assert UtcDateTime.from_rfc822("not a date") is None

    def test_naive_datetime_rejected(self):
        """Should refuse naive datetimes."""
        with pytest.raises(ValueError):
            UtcDateTime(datetime(2024, 1, 1))
