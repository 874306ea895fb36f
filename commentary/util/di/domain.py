"""Domain layer DI providers."""

from dishka import Scope, provide

from commentary.config import CommentSettings
from commentary.domain.event import EventBus
from commentary.domain.repository import (
    CommentRepository,
    LikeRepository,
    TransactionManager,
)
from commentary.domain.service import (
    CommentQueryService,
    CommentService,
    CounterService,
    LikeService,
)
from commentary.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    """

    scope = Scope.REQUEST

    @provide
    def get_counter_service(
        self,
        comment_repository: CommentRepository,
        like_repository: LikeRepository,
        transaction_manager: TransactionManager,
    ) -> CounterService:
        """Provide counter maintenance service."""
        return CounterService(
            comment_repository=comment_repository,
            like_repository=like_repository,
            transaction_manager=transaction_manager,
        )

    @provide
    def get_comment_service(
        self,
        comment_repository: CommentRepository,
        like_repository: LikeRepository,
        counter_service: CounterService,
        transaction_manager: TransactionManager,
        settings: CommentSettings,
        event_bus: EventBus,
    ) -> CommentService:
        """Provide comment domain service."""
        return CommentService(
            comment_repository=comment_repository,
            like_repository=like_repository,
            counter_service=counter_service,
            transaction_manager=transaction_manager,
            settings=settings,
            event_bus=event_bus,
        )

    @provide
    def get_like_service(
        self,
        like_repository: LikeRepository,
        comment_repository: CommentRepository,
        counter_service: CounterService,
        transaction_manager: TransactionManager,
        settings: CommentSettings,
        event_bus: EventBus,
    ) -> LikeService:
        """Provide like domain service."""
        return LikeService(
            like_repository=like_repository,
            comment_repository=comment_repository,
            counter_service=counter_service,
            transaction_manager=transaction_manager,
            settings=settings,
            event_bus=event_bus,
        )

    @provide
    def get_query_service(
        self, comment_repository: CommentRepository
    ) -> CommentQueryService:
        """Provide comment query service."""
        return CommentQueryService(comment_repository=comment_repository)
