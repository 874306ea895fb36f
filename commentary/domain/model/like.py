"""Like entity.

A like is a user's endorsement of a single comment.
"""

from datetime import datetime

from pydantic import Field

from commentary.domain.model.common import DomainModel
from commentary.domain.value import CommentId, LikeId, UserId


class Like(DomainModel):
    """Like entity.

    Business rules:
    - One like per user per comment (enforced by a storage unique constraint)
    - Creating a like bumps the comment's likes_count, deleting it lowers it
    """

    id: LikeId
    user_id: UserId
    comment_id: CommentId
    created_at: datetime = Field(default_factory=datetime.now)
