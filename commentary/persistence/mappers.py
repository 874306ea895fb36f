"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's classical imperative mapping.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from commentary.domain.model import Comment, Like
from commentary.domain.value import CommentId, LikeId, UserId


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def _optional_uuid(value: Any) -> Optional[UUID]:
    return None if value is None else _uuid(value)


def row_to_comment(row: Dict[str, Any]) -> Comment:
    """Convert database row to Comment domain model.

    Args:
        row: Database row as dict

    Returns:
        Comment domain model
    """
    parent_id = _optional_uuid(row.get("parent_id"))
    return Comment(
        id=CommentId(_uuid(row["id"])),
        author_id=UserId(_uuid(row["author_id"])),
        subject_type=row["subject_type"],
        subject_id=row["subject_id"],
        content=row["content"],
        parent_id=CommentId(parent_id) if parent_id else None,
        likes_count=row["likes_count"],
        replies_count=row["replies_count"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def comment_to_dict(comment: Comment) -> Dict[str, Any]:
    """Convert Comment domain model to database dict.

    Args:
        comment: Comment domain model

    Returns:
        Dict suitable for database insertion/update
    """
    return comment.model_dump()


def row_to_like(row: Dict[str, Any]) -> Like:
    """Convert database row to Like domain model.

    Args:
        row: Database row as dict

    Returns:
        Like domain model
    """
    return Like(
        id=LikeId(_uuid(row["id"])),
        user_id=UserId(_uuid(row["user_id"])),
        comment_id=CommentId(_uuid(row["comment_id"])),
        created_at=row["created_at"],
    )


def like_to_dict(like: Like) -> Dict[str, Any]:
    """Convert Like domain model to database dict.

    Args:
        like: Like domain model

    Returns:
        Dict suitable for database insertion
    """
    return like.model_dump()
