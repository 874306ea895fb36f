"""Commenting user facade."""

from typing import Optional, Sequence

from commentary.domain.model import Comment, Like
from commentary.domain.service import (
    CommentQueryService,
    CommentService,
    LikeService,
)
from commentary.domain.value import CommentId, CommentScope, Page, SubjectRef, UserId


class Commenter:
    """Comment and like operations bound to one acting user."""

    def __init__(
        self,
        user_id: UserId,
        comment_service: CommentService,
        like_service: LikeService,
        query_service: CommentQueryService,
    ) -> None:
        """Initialize commenter facade.

        Args:
            user_id: The acting user
            comment_service: Comment domain service
            like_service: Like domain service
            query_service: Comment query service
        """
        self.user_id = user_id
        self.comment_service = comment_service
        self.like_service = like_service
        self.query_service = query_service

    async def comment(self, subject: SubjectRef, content: str) -> Comment:
        """Comment on a subject."""
        return await self.comment_service.create_top_level(
            subject, self.user_id, content
        )

    async def reply(self, parent_id: CommentId, content: str) -> Comment:
        """Reply to a comment."""
        return await self.comment_service.create_reply(
            parent_id, self.user_id, content
        )

    async def comments(self, limit: int = 30, offset: int = 0) -> Page[Comment]:
        """Comments written by this user, newest first."""
        return await self.query_service.find(
            CommentScope().commented_by(self.user_id), limit=limit, offset=offset
        )

    async def like(self, comment_id: CommentId) -> Like:
        return await self.like_service.like(self.user_id, comment_id)

    async def unlike(self, comment_id: CommentId) -> bool:
        return await self.like_service.unlike(self.user_id, comment_id)

    async def toggle_like(self, comment_id: CommentId) -> Optional[Like]:
        """Like or unlike; returns None when the like was removed."""
        return await self.like_service.toggle(self.user_id, comment_id)

    async def has_liked(self, comment_id: CommentId) -> bool:
        return await self.like_service.is_liked_by(self.user_id, comment_id)

    async def liked_map(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, bool]:
        return await self.like_service.liked_map(self.user_id, comment_ids)

    async def likes(self) -> list[Like]:
        """Likes given by this user, newest first."""
        return await self.like_service.likes_by(self.user_id)
