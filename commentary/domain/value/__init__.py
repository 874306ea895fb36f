"""Domain value objects for comments."""

from commentary.domain.value.identifiers import (
    CommentId,
    LikeId,
    UserId,
    new_uuid,
    ordered_uuid,
)
from commentary.domain.value.types import (
    CommentScope,
    CounterField,
    Page,
    SortDirection,
    SubjectRef,
)

__all__ = [
    # Identifiers
    "CommentId",
    "LikeId",
    "UserId",
    "new_uuid",
    "ordered_uuid",
    # Types
    "CommentScope",
    "CounterField",
    "Page",
    "SortDirection",
    "SubjectRef",
]
