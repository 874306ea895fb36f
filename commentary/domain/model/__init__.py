"""Domain model entities for comments."""

from commentary.domain.model.comment import Comment
from commentary.domain.model.like import Like
from commentary.domain.model.projection import (
    CommentInteraction,
    CommentNode,
    CounterDrift,
    SubjectEngagement,
)

__all__ = [
    "Comment",
    "Like",
    "CommentNode",
    "CommentInteraction",
    "SubjectEngagement",
    "CounterDrift",
]
