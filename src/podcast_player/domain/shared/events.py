"""Domain event bus for publishing and subscribing to events."""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from podcast_player.domain.shared.datetime_utils import utcnow
from podcast_player.domain.shared.types import (
    NonEmptyStr,
    NonNegativeFloat,
    UnitInterval,
    UtcDatetimeField,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="DomainEvent")
EventHandler = Callable[[T], Awaitable[None]]


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: NonEmptyStr = Field(default_factory=lambda: str(uuid4()))
    occurred_at: UtcDatetimeField = Field(default_factory=utcnow)


# === Playback Events ===


class EpisodeLoading(DomainEvent):
    episode_id: str = ""
    episode_title: str = ""
    audio_url: str = ""


class EpisodeStartedPlaying(DomainEvent):
    episode_id: str = ""
    episode_title: str = ""
    position_seconds: NonNegativeFloat = 0.0
    from_bookmark: bool = False


class PlaybackPaused(DomainEvent):
    episode_id: str = ""
    position_seconds: NonNegativeFloat = 0.0
    reason: str = ""


class EpisodeCompleted(DomainEvent):
    episode_id: str = ""
    episode_title: str = ""


class PlaybackFailed(DomainEvent):
    episode_id: str = ""
    error: str = ""


# === Checkpoint Events ===


class CheckpointWritten(DomainEvent):
    episode_id: str = ""
    progress: UnitInterval = 0.0
    played: bool = False
    reason: str = ""


class CheckpointFailed(DomainEvent):
    episode_id: str = ""
    reason: str = ""
    error: str = ""


# === Bookmark Events ===


class BookmarkAdded(DomainEvent):
    bookmark_id: str = ""
    episode_id: str = ""
    timestamp: NonNegativeFloat = 0.0


class BookmarkRemoved(DomainEvent):
    bookmark_id: str = ""
    episode_id: str = ""


# === Library Events ===


class PodcastAdded(DomainEvent):
    podcast_id: str = ""
    title: str = ""
    feed_url: str = ""
    episode_count: int = 0


class PodcastRemoved(DomainEvent):
    podcast_id: str = ""
    title: str = ""


# === Event Bus ===


class EventBus:
    """In-memory pub/sub event bus for domain events.

    Handlers are called concurrently. Exceptions in handlers are logged
    but do not prevent other handlers from running.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler[Any]]] = defaultdict(list)

    def subscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("Subscribed handler to: %s", event_type.__name__)

    def unsubscribe(self, event_type: type[T], handler: EventHandler[T]) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("Unsubscribed handler from %s", event_type.__name__)

    def handler_count(self, event_type: type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            logger.debug("No handlers for %s", event_type.__name__)
            return

        logger.debug("Publishing %s to %d handlers", event_type.__name__, len(handlers))

        async def safe_call(handler: EventHandler[Any]) -> None:
            try:
                await handler(event)
            except Exception as e:
                logger.exception("Error in handler for %s: %s", event_type.__name__, e)

        async with asyncio.TaskGroup() as tg:
            for handler in handlers:
                tg.create_task(safe_call(handler))

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus singleton."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus (for testing)."""
    global _event_bus
    if _event_bus is not None:
        _event_bus.clear()
    _event_bus = None
