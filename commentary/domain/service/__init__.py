"""Domain services."""

from .base import Service
from .comment_service import CommentService
from .counter_service import CounterService
from .like_service import LikeService
from .query_service import CommentQueryService

__all__ = [
    "CommentQueryService",
    "CommentService",
    "CounterService",
    "LikeService",
    "Service",
]
