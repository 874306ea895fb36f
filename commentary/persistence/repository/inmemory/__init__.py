"""In-memory repository implementations for testing."""

from .comment import InMemoryCommentRepository
from .like import InMemoryLikeRepository
from .storage import InMemoryStorage, InMemoryTransactionManager

__all__ = [
    "InMemoryCommentRepository",
    "InMemoryLikeRepository",
    "InMemoryStorage",
    "InMemoryTransactionManager",
]
