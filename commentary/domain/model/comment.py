"""Comment entity.

Comments attach to any commentable subject and can be nested through
replies. Nesting depth is not stored; it is derived from the parent chain.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from commentary.domain.model.common import DomainModel
from commentary.domain.value import CommentId, SubjectRef, UserId


class Comment(DomainModel):
    """Comment entity.

    Represents a top-level comment on a subject or a reply to another comment.

    Threading is managed through:
    - parent_id: Direct parent comment (None for top-level)
    - replies_count: Denormalized number of direct replies
    - likes_count: Denormalized number of likes
    """

    id: CommentId
    author_id: UserId
    subject_type: str = Field(min_length=1, max_length=255)
    subject_id: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    parent_id: Optional[CommentId] = None
    likes_count: int = Field(default=0, ge=0)
    replies_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def subject(self) -> SubjectRef:
        """The commented-upon entity."""
        return SubjectRef(type=self.subject_type, id=self.subject_id)

    @property
    def is_top_level(self) -> bool:
        return self.parent_id is None

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None
