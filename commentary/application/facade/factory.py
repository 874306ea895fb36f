"""Facade factory."""

from commentary.domain.service import (
    CommentQueryService,
    CommentService,
    LikeService,
)
from commentary.domain.value import SubjectRef, UserId

from .commenter import Commenter
from .subject import CommentableSubject


class CommentFacades:
    """Builds subject and user facades over one set of request services."""

    def __init__(
        self,
        comment_service: CommentService,
        like_service: LikeService,
        query_service: CommentQueryService,
    ) -> None:
        self.comment_service = comment_service
        self.like_service = like_service
        self.query_service = query_service

    def subject(self, subject: SubjectRef) -> CommentableSubject:
        """Facade for a commented-upon entity."""
        return CommentableSubject(
            subject=subject,
            comment_service=self.comment_service,
            query_service=self.query_service,
        )

    def commenter(self, user_id: UserId) -> Commenter:
        """Facade for an acting user."""
        return Commenter(
            user_id=user_id,
            comment_service=self.comment_service,
            like_service=self.like_service,
            query_service=self.query_service,
        )
