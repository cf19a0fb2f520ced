#!/usr/bin/env python3
"""Main entry point for the podcast player."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import logging.config
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from podcast_player.domain.shared.datetime_utils import format_clock
from podcast_player.domain.shared.exceptions import DomainError
from podcast_player.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from podcast_player.config.container import Container
    from podcast_player.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(_LOGGING_CONFIG_PATH) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.warning("Could not load %s, falling back to basic config", _LOGGING_CONFIG_PATH)
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    logging.getLogger().setLevel(resolved_level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="podcast-player", description="Subscribe to and listen to podcasts."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="subscribe to a podcast feed")
    add.add_argument("feed_url")

    remove = sub.add_parser("remove", help="unsubscribe from a podcast")
    remove.add_argument("podcast_id")

    sub.add_parser("list", help="list podcasts and episodes")
    sub.add_parser("history", help="list recently played episodes")
    sub.add_parser("bookmarks", help="list bookmarks")

    bookmark = sub.add_parser("bookmark", help="bookmark an episode at a timestamp")
    bookmark.add_argument("episode_id")
    bookmark.add_argument("seconds", type=float)
    bookmark.add_argument("--note", default=None)

    play = sub.add_parser("play", help="play an episode until it ends or is interrupted")
    play.add_argument("episode_id")
    play.add_argument(
        "--from",
        dest="start",
        type=float,
        default=None,
        metavar="SECONDS",
        help="start from a timestamp without updating saved progress",
    )
    return parser


# ── Commands ────────────────────────────────────────────────────────


async def _cmd_add(container: Container, args: argparse.Namespace) -> int:
    podcast = await container.library_service.add_podcast(args.feed_url)
    print(f"{podcast.id}  {podcast.title} ({podcast.episode_count} episodes)")
    return 0


async def _cmd_remove(container: Container, args: argparse.Namespace) -> int:
    from podcast_player.domain.podcasts.value_objects import PodcastId

    removed = await container.library_service.remove_podcast(PodcastId(args.podcast_id))
    if not removed:
        print(f"No podcast with id {args.podcast_id}", file=sys.stderr)
        return 1
    return 0


async def _cmd_list(container: Container, args: argparse.Namespace) -> int:
    for podcast in container.library_service.podcasts:
        print(f"{podcast.id}  {podcast.title} - {podcast.author}")
        for episode in podcast.episodes:
            marker = "x" if episode.played else " "
            print(f"  [{marker}] {episode.id}  {episode.progress:>4.0%}  {episode.title}")
    return 0


async def _cmd_history(container: Container, args: argparse.Namespace) -> int:
    for entry in container.library_service.history.entries:
        when = entry.last_played.strftime("%Y-%m-%d %H:%M") if entry.last_played else "-"
        print(f"{when}  {entry.progress:>4.0%}  {entry.podcast_title}: {entry.title}")
    return 0


async def _cmd_bookmarks(container: Container, args: argparse.Namespace) -> int:
    library = container.library_service
    for bm in container.bookmark_manager.bookmarks:
        episode = library.find_episode(bm.episode_id)
        title = episode.title if episode else str(bm.episode_id)
        note = f"  {bm.note}" if bm.note else ""
        print(f"{bm.id}  {bm.timestamp_formatted}  {title}{note}")
    return 0


async def _cmd_bookmark(container: Container, args: argparse.Namespace) -> int:
    from podcast_player.domain.podcasts.value_objects import EpisodeId

    bm = await container.bookmark_manager.bookmark_episode(
        EpisodeId(args.episode_id), args.seconds, args.note
    )
    print(f"{bm.id}  {bm.timestamp_formatted}")
    return 0


async def _cmd_play(container: Container, args: argparse.Namespace) -> int:
    from podcast_player.domain.podcasts.value_objects import EpisodeId
    from podcast_player.domain.shared.events import EpisodeCompleted, PlaybackFailed

    episode = container.library_service.find_episode(EpisodeId(args.episode_id))
    if episode is None:
        print(f"No episode with id {args.episode_id}", file=sys.stderr)
        return 1

    controller = container.session_controller
    done = asyncio.Event()

    async def on_finished(_event: EpisodeCompleted | PlaybackFailed) -> None:
        done.set()

    async def on_force_pause() -> None:
        done.set()

    container.event_bus.subscribe(EpisodeCompleted, on_finished)
    container.event_bus.subscribe(PlaybackFailed, on_finished)
    # Registered after the controller, so it runs once the pause is checkpointed.
    subscription = container.pause_bus.subscribe(on_force_pause)

    loop = asyncio.get_running_loop()
    signal_tasks: set[asyncio.Task[None]] = set()

    def on_signal() -> None:
        task = loop.create_task(container.pause_bus.signal())
        signal_tasks.add(task)
        task.add_done_callback(signal_tasks.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, on_signal)

    try:
        if args.start is None:
            started = await controller.play(episode)
        else:
            started = await controller.play_from_timestamp(episode, args.start)
        if not started:
            print(controller.last_error or "Playback failed", file=sys.stderr)
            return 1

        print(f"Playing {episode.title}  (Ctrl-C to pause and exit)")
        await done.wait()
        print(f"Stopped at {format_clock(controller.position_seconds)}")
        return 1 if controller.last_error else 0
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        subscription.cancel()
        container.event_bus.unsubscribe(EpisodeCompleted, on_finished)
        container.event_bus.unsubscribe(PlaybackFailed, on_finished)
        if signal_tasks:
            await asyncio.gather(*signal_tasks)


_COMMANDS = {
    "add": _cmd_add,
    "remove": _cmd_remove,
    "list": _cmd_list,
    "history": _cmd_history,
    "bookmarks": _cmd_bookmarks,
    "bookmark": _cmd_bookmark,
    "play": _cmd_play,
}


async def run(settings: Settings, args: argparse.Namespace) -> int:
    from podcast_player.config.container import create_container

    container = create_container(settings)
    try:
        await container.initialize()
        return await _COMMANDS[args.command](container, args)
    except DomainError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        await container.shutdown()


def main(argv: list[str] | None = None) -> int:
    from podcast_player.config.settings import get_settings

    args = build_parser().parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info(LogTemplates.APP_STARTING.format(environment=settings.environment))

    try:
        code = asyncio.run(run(settings, args))
        logger.info(LogTemplates.APP_STOPPED)
        return code
    except KeyboardInterrupt:
        logger.info(LogTemplates.APP_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.APP_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
