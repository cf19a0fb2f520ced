"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when domain validation fails."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class EntityNotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, identifier: str | int, message: str | None = None) -> None:
        msg = message or f"{entity_type} with id '{identifier}' not found"
        super().__init__(msg, code="ENTITY_NOT_FOUND")
        self.entity_type = entity_type
        self.identifier = identifier


class AlreadyExistsError(DomainError):
    """Raised when creating an entity that the owner already has."""

    def __init__(self, entity_type: str, identifier: str, message: str | None = None) -> None:
        msg = message or f"{entity_type} '{identifier}' already exists"
        super().__init__(msg, code="ALREADY_EXISTS")
        self.entity_type = entity_type
        self.identifier = identifier


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class PersistenceError(DomainError):
    """Raised when a durable store operation fails."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Durable store operation '{operation}' failed"
        super().__init__(msg, code="PERSISTENCE_ERROR")
        self.operation = operation


class FeedError(DomainError):
    """Raised when a podcast feed cannot be fetched or parsed."""

    def __init__(self, feed_url: str, message: str | None = None) -> None:
        msg = message or f"Could not read feed {feed_url}"
        super().__init__(msg, code="FEED_ERROR")
        self.feed_url = feed_url


class PlaybackSourceError(DomainError):
    """Raised when the audio source fails to load or play a stream."""

    def __init__(self, uri: str | None, message: str | None = None) -> None:
        msg = message or f"Audio source failed for {uri or 'unknown source'}"
        super().__init__(msg, code="PLAYBACK_SOURCE_ERROR")
        self.uri = uri
