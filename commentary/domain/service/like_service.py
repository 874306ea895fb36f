"""Like domain service (like ledger)."""

from datetime import datetime
from typing import Optional, Sequence

import logfire

from commentary.config import CommentSettings
from commentary.domain.error import ConflictError, NotFoundError
from commentary.domain.event import CommentLiked, CommentUnliked, EventBus
from commentary.domain.model import Like
from commentary.domain.repository import (
    CommentRepository,
    LikeRepository,
    TransactionManager,
)
from commentary.domain.value import CommentId, CounterField, LikeId, UserId, new_uuid

from .base import Service
from .counter_service import CounterService


class LikeService(Service):
    """Domain service for liking comments.

    All operations are idempotent: liking twice returns the first like, and
    unliking something that is not liked is a no-op.
    """

    def __init__(
        self,
        like_repository: LikeRepository,
        comment_repository: CommentRepository,
        counter_service: CounterService,
        transaction_manager: TransactionManager,
        settings: CommentSettings,
        event_bus: EventBus,
    ) -> None:
        """Initialize like service.

        Args:
            like_repository: Like repository
            comment_repository: Comment repository
            counter_service: Counter maintenance
            transaction_manager: Transaction boundary for multi-step writes
            settings: Comment settings (id generation)
            event_bus: Dispatcher for post-commit events
        """
        self.like_repository = like_repository
        self.comment_repository = comment_repository
        self.counter_service = counter_service
        self.transaction_manager = transaction_manager
        self.settings = settings
        self.event_bus = event_bus

    async def _find_like(
        self, user_id: UserId, comment_id: CommentId
    ) -> Optional[Like]:
        """Existence check shared by every ledger operation."""
        return await self.like_repository.find(user_id, comment_id)

    async def like(self, user_id: UserId, comment_id: CommentId) -> Like:
        """Like a comment.

        Creates the like and atomically increments the comment's likes_count.
        If the user already likes the comment, the existing like is returned
        and nothing is written.

        Args:
            user_id: User ID
            comment_id: Comment ID

        Returns:
            The stored like

        Raises:
            NotFoundError: If the comment does not exist
        """
        with logfire.span(
            "like_service.like", comment_id=str(comment_id), user_id=str(user_id)
        ):
            existing = await self._find_like(user_id, comment_id)
            if existing is not None:
                logfire.info(
                    "Comment already liked",
                    comment_id=str(comment_id),
                    user_id=str(user_id),
                )
                return existing

            like = Like(
                id=LikeId(new_uuid(ordered=self.settings.ordered_ids)),
                user_id=user_id,
                comment_id=comment_id,
                created_at=datetime.now(),
            )

            async def write() -> Like:
                comment = await self.comment_repository.find_by_id(comment_id)
                if comment is None:
                    logfire.warn(
                        "Like on non-existent comment", comment_id=str(comment_id)
                    )
                    raise NotFoundError("Comment", str(comment_id))

                # Raises ConflictError if a concurrent like won the race
                saved = await self.like_repository.insert(like)
                await self.counter_service.increment(comment_id, CounterField.LIKES)
                return saved

            try:
                saved = await self.transaction_manager.run(write)
            except ConflictError:
                logfire.warn(
                    "Concurrent duplicate like",
                    comment_id=str(comment_id),
                    user_id=str(user_id),
                )
                existing = await self._find_like(user_id, comment_id)
                if existing is not None:
                    return existing
                if await self.comment_repository.find_by_id(comment_id) is None:
                    raise NotFoundError("Comment", str(comment_id)) from None
                raise

            logfire.info(
                "Comment liked", comment_id=str(comment_id), user_id=str(user_id)
            )
            await self.event_bus.publish(CommentLiked(like=saved))
            return saved

    async def unlike(self, user_id: UserId, comment_id: CommentId) -> bool:
        """Remove a user's like from a comment.

        Deletes the like and atomically decrements the comment's likes_count.

        Args:
            user_id: User ID
            comment_id: Comment ID

        Returns:
            True if a like was removed, False if none existed
        """
        with logfire.span(
            "like_service.unlike", comment_id=str(comment_id), user_id=str(user_id)
        ):

            async def write() -> Optional[Like]:
                like = await self._find_like(user_id, comment_id)
                if like is None:
                    return None
                if not await self.like_repository.delete(user_id, comment_id):
                    return None
                await self.counter_service.decrement(comment_id, CounterField.LIKES)
                return like

            removed = await self.transaction_manager.run(write)

            if removed is None:
                logfire.info(
                    "No like to remove",
                    comment_id=str(comment_id),
                    user_id=str(user_id),
                )
                return False

            logfire.info(
                "Comment unliked", comment_id=str(comment_id), user_id=str(user_id)
            )
            await self.event_bus.publish(CommentUnliked(like=removed))
            return True

    async def toggle(self, user_id: UserId, comment_id: CommentId) -> Optional[Like]:
        """Like a comment if not yet liked, otherwise remove the like.

        Args:
            user_id: User ID
            comment_id: Comment ID

        Returns:
            The like if the comment is now liked, None if the like was removed
        """
        if await self._find_like(user_id, comment_id) is not None:
            await self.unlike(user_id, comment_id)
            return None
        return await self.like(user_id, comment_id)

    async def is_liked_by(self, user_id: UserId, comment_id: CommentId) -> bool:
        """Check whether a user likes a comment."""
        return await self._find_like(user_id, comment_id) is not None

    async def liked_map(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, bool]:
        """Check which comments a user has liked.

        Args:
            user_id: User ID
            comment_ids: Comment IDs to check

        Returns:
            Dictionary mapping comment ID to whether the user likes it
        """
        if not comment_ids:
            return {}

        # Batch query to fetch all likes at once (avoid N+1)
        likes = await self.like_repository.find_for_comments(user_id, comment_ids)
        liked_ids = {like.comment_id for like in likes}
        return {cid: cid in liked_ids for cid in comment_ids}

    async def likes_of(self, comment_id: CommentId) -> list[Like]:
        """All likes on a comment, oldest first."""
        return await self.like_repository.find_by_comment(comment_id)

    async def likes_by(self, user_id: UserId) -> list[Like]:
        """All likes given by a user, newest first."""
        return await self.like_repository.find_by_user(user_id)
