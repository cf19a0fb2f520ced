"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Constrained types, exceptions, events and constants
- podcasts/: Podcasts, episodes, bookmarks and the playback session
"""

from podcast_player.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
