"""Repository interfaces for the comment domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the infrastructure layer.
"""

from commentary.domain.repository.comment import CommentRepository
from commentary.domain.repository.like import LikeRepository
from commentary.domain.repository.transaction import TransactionManager

__all__ = [
    "CommentRepository",
    "LikeRepository",
    "TransactionManager",
]
