"""PostgreSQL repository implementations."""

from commentary.persistence.repository.comment import PostgresCommentRepository
from commentary.persistence.repository.like import PostgresLikeRepository
from commentary.persistence.repository.transaction import SqlAlchemyTransactionManager

__all__ = [
    "PostgresCommentRepository",
    "PostgresLikeRepository",
    "SqlAlchemyTransactionManager",
]
