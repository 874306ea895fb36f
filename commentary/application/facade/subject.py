"""Commentable subject facade."""

from typing import Any, Optional

from commentary.domain.model import Comment, CommentNode, SubjectEngagement
from commentary.domain.service import CommentQueryService, CommentService
from commentary.domain.value import CommentScope, Page, SubjectRef, UserId


class CommentableSubject:
    """Comment operations bound to one commented-upon entity.

    Host models compose this instead of inheriting comment behavior:

        post_comments = facades.subject(SubjectRef(type="post", id=post.id))
        await post_comments.comment(user_id, "Nice post")
    """

    def __init__(
        self,
        subject: SubjectRef,
        comment_service: CommentService,
        query_service: CommentQueryService,
    ) -> None:
        """Initialize subject facade.

        Args:
            subject: The entity the comments are attached to
            comment_service: Comment domain service
            query_service: Comment query service
        """
        self.subject = subject
        self.comment_service = comment_service
        self.query_service = query_service

    async def comment(self, author_id: UserId, content: str) -> Comment:
        """Add a top-level comment to the subject."""
        return await self.comment_service.create_top_level(
            self.subject, author_id, content
        )

    async def comments(self, limit: int = 30, offset: int = 0) -> Page[Comment]:
        """Top-level comments, newest first."""
        return await self.query_service.find(
            CommentScope().of(self.subject).parents(), limit=limit, offset=offset
        )

    async def all_comments(self, limit: int = 30, offset: int = 0) -> Page[Comment]:
        """All comments including replies, newest first."""
        return await self.query_service.find(
            CommentScope().of(self.subject), limit=limit, offset=offset
        )

    async def comments_count(self) -> int:
        return await self.query_service.count_top_level(self.subject)

    async def all_comments_count(self) -> int:
        return await self.query_service.count_all(self.subject)

    async def has_comments(self) -> bool:
        return await self.query_service.has_any(self.subject)

    async def comments_with_replies(
        self, max_depth: Optional[int] = None
    ) -> list[CommentNode]:
        """Top-level comments with their reply trees loaded."""
        return await self.comment_service.comments_with_replies(
            self.subject, max_depth=max_depth
        )

    async def engagement(self) -> SubjectEngagement:
        """The subject annotated with its total comment count."""
        ranked = await self.query_service.order_by_subject_engagement([self.subject])
        return ranked[0]

    async def attach_comment_status(
        self, comments: Any, user_id: UserId, resolver: Any = None
    ) -> Any:
        """Annotate comments with whether user_id commented on their subject."""
        return await self.query_service.attach_interaction_status(
            comments, user_id, resolver=resolver
        )
