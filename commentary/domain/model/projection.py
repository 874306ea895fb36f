"""Read-side projections built from comments."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from commentary.domain.model.comment import Comment
from commentary.domain.model.common import DomainModel
from commentary.domain.value import CommentId, SubjectRef


@dataclass
class CommentNode:
    """Node in a materialized comment tree."""

    comment: Comment
    replies: list["CommentNode"] = field(default_factory=list)

    def walk(self):
        """Yield this node and all descendants, depth-first."""
        yield self
        for reply in self.replies:
            yield from reply.walk()

    @property
    def size(self) -> int:
        """Number of comments in this subtree, including the root."""
        return sum(1 for _ in self.walk())


class CommentInteraction(DomainModel):
    """A comment annotated with whether a user commented on its subject."""

    comment: Comment
    has_commented: bool
    commented_at: Optional[datetime] = None


class SubjectEngagement(DomainModel):
    """A subject annotated with its total number of comments."""

    subject: SubjectRef
    comments_count: int


class CounterDrift(DomainModel):
    """A counter correction applied by reconciliation."""

    comment_id: CommentId
    likes_count: tuple[int, int]  # (stored, actual)
    replies_count: tuple[int, int]  # (stored, actual)
