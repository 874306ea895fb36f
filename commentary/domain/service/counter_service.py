"""Counter reconciliation domain service."""

from typing import Sequence

import logfire

from commentary.domain.model import CounterDrift
from commentary.domain.repository import (
    CommentRepository,
    LikeRepository,
    TransactionManager,
)
from commentary.domain.value import CommentId, CommentScope, CounterField, SubjectRef

from .base import Service


class CounterService(Service):
    """Maintains the denormalized likes_count and replies_count columns.

    Counters are adjusted incrementally with storage-side atomic updates.
    ``reconcile`` recomputes them from row counts to repair any drift.
    """

    def __init__(
        self,
        comment_repository: CommentRepository,
        like_repository: LikeRepository,
        transaction_manager: TransactionManager,
    ) -> None:
        """Initialize counter service.

        Args:
            comment_repository: Comment repository
            like_repository: Like repository
            transaction_manager: Transaction boundary for reconciliation
        """
        self.comment_repository = comment_repository
        self.like_repository = like_repository
        self.transaction_manager = transaction_manager

    async def increment(
        self, comment_id: CommentId, field: CounterField, by: int = 1
    ) -> None:
        """Atomically increment a comment counter.

        Args:
            comment_id: Comment ID
            field: Counter to increment
            by: Amount to add
        """
        await self.comment_repository.increment_counter(comment_id, field, by)
        logfire.debug(
            "Counter incremented",
            comment_id=str(comment_id),
            field=field.value,
            by=by,
        )

    async def decrement(
        self, comment_id: CommentId, field: CounterField, by: int = 1
    ) -> None:
        """Atomically decrement a comment counter (minimum 0).

        Args:
            comment_id: Comment ID
            field: Counter to decrement
            by: Amount to subtract
        """
        await self.comment_repository.increment_counter(comment_id, field, -by)
        logfire.debug(
            "Counter decremented",
            comment_id=str(comment_id),
            field=field.value,
            by=by,
        )

    async def reconcile(self, comment_ids: Sequence[CommentId]) -> list[CounterDrift]:
        """Recompute counters from actual row counts and fix any drift.

        Uses one batched count query per counter, then overwrites only the
        comments whose stored counters differ.

        Args:
            comment_ids: Comments to reconcile

        Returns:
            The corrections that were applied
        """
        ids = list(dict.fromkeys(comment_ids))
        if not ids:
            return []

        with logfire.span("counter_service.reconcile", comment_count=len(ids)):

            async def recompute() -> list[CounterDrift]:
                comments = await self.comment_repository.find_by_ids(ids)
                replies = await self.comment_repository.count_replies_for_many(ids)
                likes = await self.like_repository.count_likes_for_many(ids)

                drifts: list[CounterDrift] = []
                for comment in comments:
                    actual_likes = likes.get(comment.id, 0)
                    actual_replies = replies.get(comment.id, 0)
                    if (
                        comment.likes_count == actual_likes
                        and comment.replies_count == actual_replies
                    ):
                        continue

                    await self.comment_repository.set_counters(
                        comment.id,
                        likes_count=actual_likes,
                        replies_count=actual_replies,
                    )
                    drifts.append(
                        CounterDrift(
                            comment_id=comment.id,
                            likes_count=(comment.likes_count, actual_likes),
                            replies_count=(comment.replies_count, actual_replies),
                        )
                    )
                return drifts

            drifts = await self.transaction_manager.run(recompute)

            if drifts:
                logfire.warn(
                    "Counter drift corrected",
                    checked=len(ids),
                    corrected=len(drifts),
                )
            else:
                logfire.info("Counters consistent", checked=len(ids))
            return drifts

    async def reconcile_subject(self, subject: SubjectRef) -> list[CounterDrift]:
        """Reconcile every comment attached to a subject.

        Args:
            subject: The commented-upon entity

        Returns:
            The corrections that were applied
        """
        comments = await self.comment_repository.find_by_scope(
            CommentScope().of(subject)
        )
        return await self.reconcile([comment.id for comment in comments])
