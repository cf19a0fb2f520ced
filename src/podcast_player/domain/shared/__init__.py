"""
Shared Domain Kernel

Contains constrained types, exceptions and the event bus shared across the package.
"""

from podcast_player.domain.shared.exceptions import (
    AlreadyExistsError,
    DomainError,
    EntityNotFoundError,
    FeedError,
    InvalidOperationError,
    PersistenceError,
    PlaybackSourceError,
    ValidationError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "EntityNotFoundError",
    "AlreadyExistsError",
    "InvalidOperationError",
    "PersistenceError",
    "FeedError",
    "PlaybackSourceError",
]
