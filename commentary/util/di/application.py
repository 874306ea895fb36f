"""Application layer DI providers."""

from dishka import Scope, provide

from commentary.application.facade import CommentFacades
from commentary.domain.service import (
    CommentQueryService,
    CommentService,
    LikeService,
)
from commentary.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application provider - concrete, no mocks needed."""

    @provide(scope=Scope.REQUEST)
    def get_comment_facades(
        self,
        comment_service: CommentService,
        like_service: LikeService,
        query_service: CommentQueryService,
    ) -> CommentFacades:
        """Provide the subject/commenter facade factory."""
        return CommentFacades(
            comment_service=comment_service,
            like_service=like_service,
            query_service=query_service,
        )
