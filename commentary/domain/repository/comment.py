"""Comment repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

from commentary.domain.model.comment import Comment
from commentary.domain.value import (
    CommentId,
    CommentScope,
    CounterField,
    SubjectRef,
    UserId,
)


class CommentRepository(ABC):
    """Repository for Comment entity.

    Defines the contract for comment persistence operations.
    Implementations live in the infrastructure layer.
    """

    @abstractmethod
    async def insert(self, comment: Comment) -> Comment:
        """Insert a new comment.

        Args:
            comment: The comment to insert

        Returns:
            The stored comment
        """
        pass

    @abstractmethod
    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID.

        Args:
            comment_id: The comment's unique identifier

        Returns:
            The comment if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_ids(self, comment_ids: Sequence[CommentId]) -> List[Comment]:
        """Find several comments by ID (batch query).

        Args:
            comment_ids: Comment IDs

        Returns:
            The comments that exist, in no particular order
        """
        pass

    @abstractmethod
    async def delete_many(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete comments by ID.

        Missing IDs are ignored so a cascade can be safely re-run.

        Args:
            comment_ids: IDs of the comments to delete

        Returns:
            Number of comments actually deleted
        """
        pass

    @abstractmethod
    async def find_replies(self, parent_id: CommentId) -> List[Comment]:
        """Find direct replies to a comment, oldest first.

        Args:
            parent_id: The parent comment ID

        Returns:
            List of replies
        """
        pass

    @abstractmethod
    async def find_replies_for_many(
        self, parent_ids: Sequence[CommentId]
    ) -> List[Comment]:
        """Find direct replies to several comments in one query (batch).

        Args:
            parent_ids: Parent comment IDs

        Returns:
            Replies to any of the parents, oldest first
        """
        pass

    @abstractmethod
    async def find_top_level(self, subject: SubjectRef) -> List[Comment]:
        """Find top-level comments on a subject, newest first.

        Args:
            subject: The commented-upon entity

        Returns:
            List of top-level comments
        """
        pass

    @abstractmethod
    async def find_by_scope(
        self,
        scope: CommentScope,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Comment]:
        """Find comments matching a scope, newest first.

        Args:
            scope: Filter to apply
            limit: Maximum number of comments to return (None = all)
            offset: Number of comments to skip

        Returns:
            List of matching comments
        """
        pass

    @abstractmethod
    async def count_by_scope(self, scope: CommentScope) -> int:
        """Count comments matching a scope.

        Args:
            scope: Filter to apply

        Returns:
            Number of matching comments
        """
        pass

    @abstractmethod
    async def count_by_subjects(
        self, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, int]:
        """Count all comments (including replies) per subject (batch query).

        Args:
            subjects: Subjects to count

        Returns:
            Mapping of subject to comment count; subjects without comments
            may be omitted
        """
        pass

    @abstractmethod
    async def latest_comment_times(
        self, author_id: UserId, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, datetime]:
        """Find when a user last commented on each subject (batch query).

        Args:
            author_id: The commenting user
            subjects: Subjects to check

        Returns:
            Mapping of subject to the user's latest comment time; subjects the
            user never commented on are omitted
        """
        pass

    @abstractmethod
    async def increment_counter(
        self, comment_id: CommentId, field: CounterField, delta: int
    ) -> None:
        """Atomically add delta to a counter, flooring the result at 0.

        Must be a single storage-side update, never read-modify-write.

        Args:
            comment_id: The comment ID
            field: Counter to adjust
            delta: Amount to add (negative to decrement)
        """
        pass

    @abstractmethod
    async def count_replies_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count live direct replies per comment (batch query).

        Args:
            comment_ids: Comment IDs

        Returns:
            Mapping of comment ID to reply row count (0 for none)
        """
        pass

    @abstractmethod
    async def set_counters(
        self, comment_id: CommentId, likes_count: int, replies_count: int
    ) -> None:
        """Overwrite both counters of a comment.

        Used only by reconciliation.

        Args:
            comment_id: The comment ID
            likes_count: New likes count
            replies_count: New replies count
        """
        pass
