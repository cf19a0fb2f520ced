"""SQLite repository implementations."""

from podcast_player.infrastructure.persistence.repositories.bookmark_repository import (
    SQLiteBookmarkRepository,
)
from podcast_player.infrastructure.persistence.repositories.library_repository import (
    SQLiteLibraryRepository,
)

__all__ = [
    "SQLiteLibraryRepository",
    "SQLiteBookmarkRepository",
]
