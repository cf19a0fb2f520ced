"""
Tests for main.py - Main Entry Point

Tests for the main entry point including:
- Logging configuration
- Command-line parsing
- Command dispatch against a real container
- Error handling
"""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, mock_open, patch

import pytest

from podcast_player.config.settings import Settings
from podcast_player.config.container import create_container
from podcast_player.domain.podcasts.value_objects import TransportState
from podcast_player.domain.shared.events import reset_event_bus
from podcast_player.main import _cmd_play, build_parser, main, run, setup_logging


class TestLoggingSetup:
    """Tests for logging configuration."""

    def _make_valid_config(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "handlers": {},
            "loggers": {
                "aiosqlite": {"level": "WARNING"},
                "httpx": {"level": "WARNING"},
            },
            "root": {"level": "INFO", "handlers": []},
        }

    def test_dictconfig_called_when_json_exists(self):
        """Should call dictConfig when logging_config.json exists."""
        config = self._make_valid_config()
        m = mock_open(read_data=json.dumps(config))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig") as mock_dc,
        ):
            setup_logging()

            mock_dc.assert_called_once_with(config)

    def test_fallback_to_basicconfig_when_json_missing(self):
        """Should fallback to basicConfig when logging_config.json is missing."""
        with (
            patch("builtins.open", side_effect=FileNotFoundError),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()
            assert mock_bc.call_args[1]["level"] == logging.INFO

    def test_fallback_to_basicconfig_when_json_malformed(self):
        """Should fallback to basicConfig when JSON is malformed."""
        m = mock_open(read_data="{invalid json")
        with (
            patch("builtins.open", m),
            patch("logging.basicConfig") as mock_bc,
        ):
            setup_logging()

            mock_bc.assert_called_once()

    def test_root_logger_level_overridden_by_settings(self):
        """Should override root logger level with the provided log_level."""
        m = mock_open(read_data=json.dumps(self._make_valid_config()))
        with (
            patch("builtins.open", m),
            patch("logging.config.dictConfig"),
            patch("logging.getLogger") as mock_get_logger,
        ):
            mock_root = MagicMock()
            mock_get_logger.return_value = mock_root

            setup_logging("DEBUG")

            mock_root.setLevel.assert_called_once_with(logging.DEBUG)

    def test_shipped_config_is_valid_json(self):
        """Should ship a logging config that quiets noisy libraries."""
        from podcast_player.main import _LOGGING_CONFIG_PATH

        loaded = json.loads(_LOGGING_CONFIG_PATH.read_text())

        for name in ("aiosqlite", "httpx"):
            assert loaded["loggers"][name]["level"] == "WARNING"


class TestParser:
    def test_play_with_timestamp(self):
        """Should parse --from into a float start position."""
        args = build_parser().parse_args(["play", "ep-1", "--from", "75"])

        assert args.command == "play"
        assert args.episode_id == "ep-1"
        assert args.start == 75.0

    def test_play_without_timestamp(self):
        """Should leave start unset for a normal resume."""
        assert build_parser().parse_args(["play", "ep-1"]).start is None

    def test_bookmark_with_note(self):
        """Should parse the bookmark position and note."""
        args = build_parser().parse_args(["bookmark", "ep-1", "12.5", "--note", "hi"])

        assert args.seconds == 12.5
        assert args.note == "hi"

    def test_command_is_required(self):
        """Should exit when no command is given."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database={"url": f"sqlite:///{tmp_path / 'podcasts.db'}"},
        preferences={"path": tmp_path / "prefs.json"},
    )


class TestRun:
    async def test_list_on_empty_library(self, settings, capsys):
        """Should initialize the store and print nothing for an empty library."""
        code = await run(settings, build_parser().parse_args(["list"]))

        assert code == 0
        assert capsys.readouterr().out == ""

    async def test_domain_error_is_reported(self, settings, capsys):
        """Should print domain errors and return 1."""
        args = build_parser().parse_args(["bookmark", "missing", "10"])

        code = await run(settings, args)

        assert code == 1
        assert "Episode" in capsys.readouterr().err

    async def test_remove_unknown_podcast(self, settings, capsys):
        """Should report an unknown podcast id."""
        code = await run(settings, build_parser().parse_args(["remove", "nope"]))

        assert code == 1
        assert "No podcast with id nope" in capsys.readouterr().err

    async def test_play_unknown_episode(self, settings, capsys):
        """Should refuse to play an episode that is not in the library."""
        code = await run(settings, build_parser().parse_args(["play", "nope"]))

        assert code == 1
        assert "No episode with id nope" in capsys.readouterr().err


class TestPlayCommand:
    """Tests for the play command's signal handling."""

    @pytest.fixture
    async def container(self, settings, fake_audio, podcast_factory, sample_episode):
        reset_event_bus()
        container = create_container(settings)
        container._audio_source = fake_audio
        await container.initialize()
        await container.library_repository.add_podcast(
            settings.user_id, podcast_factory(episodes=[sample_episode])
        )
        await container.library_service.load()
        yield container
        await container.shutdown()
        reset_event_bus()

    async def test_signal_pauses_and_exits(self, container, fake_audio, capsys):
        """Should force-pause on SIGINT, wait for the signal task and return 0."""
        loop = asyncio.get_running_loop()
        args = build_parser().parse_args(["play", "ep-1"])

        with (
            patch.object(loop, "add_signal_handler") as add_handler,
            patch.object(loop, "remove_signal_handler"),
        ):
            task = asyncio.create_task(_cmd_play(container, args))
            for _ in range(100):
                if fake_audio.uri is not None:
                    break
                await asyncio.sleep(0)
            fake_audio.emit_ready(300.0)
            await container.session_controller.drain()
            assert container.session_controller.state == TransportState.PLAYING

            on_signal = add_handler.call_args_list[0].args[1]
            on_signal()
            code = await asyncio.wait_for(task, timeout=1.0)

        assert code == 0
        assert container.session_controller.state == TransportState.PAUSED
        assert "Stopped at" in capsys.readouterr().out


class TestMainFunction:
    """Tests for main entry point function."""

    def test_main_successful_run(self):
        """Should return the command's exit code."""
        with (
            patch("podcast_player.main.setup_logging"),
            patch("podcast_player.main.run", new=AsyncMock(return_value=0)) as mock_run,
        ):
            exit_code = main(["list"])

        assert exit_code == 0
        assert mock_run.await_args[0][1].command == "list"

    def test_main_handles_keyboard_interrupt(self):
        """Should return 0 on KeyboardInterrupt."""
        with (
            patch("podcast_player.main.setup_logging"),
            patch("podcast_player.main.run", new=AsyncMock(side_effect=KeyboardInterrupt())),
        ):
            exit_code = main(["list"])

        assert exit_code == 0

    def test_main_handles_exception(self):
        """Should return error code on unhandled exception."""
        with (
            patch("podcast_player.main.setup_logging"),
            patch("podcast_player.main.run", new=AsyncMock(side_effect=RuntimeError("boom"))),
        ):
            exit_code = main(["list"])

        assert exit_code == 1
