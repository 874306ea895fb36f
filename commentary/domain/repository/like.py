"""Like repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from commentary.domain.model.like import Like
from commentary.domain.value import CommentId, UserId


class LikeRepository(ABC):
    """Repository for Like entity.

    Defines the contract for like persistence operations.
    Implementations live in the infrastructure layer.
    """

    @abstractmethod
    async def insert(self, like: Like) -> Like:
        """Insert a like.

        Uniqueness of (user_id, comment_id) must be enforced by storage.

        Args:
            like: The like to insert

        Returns:
            The stored like

        Raises:
            ConflictError: If the user already likes this comment
            NotFoundError: If the comment does not exist
        """
        pass

    @abstractmethod
    async def find(self, user_id: UserId, comment_id: CommentId) -> Optional[Like]:
        """Find a user's like on a comment.

        Args:
            user_id: The user's ID
            comment_id: The comment's ID

        Returns:
            The like if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, user_id: UserId, comment_id: CommentId) -> bool:
        """Delete a user's like on a comment.

        Args:
            user_id: The user's ID
            comment_id: The comment's ID

        Returns:
            True if a like was deleted, False if none existed
        """
        pass

    @abstractmethod
    async def delete_for_comments(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete every like on the given comments.

        Args:
            comment_ids: Comment IDs

        Returns:
            Number of likes deleted
        """
        pass

    @abstractmethod
    async def find_for_comments(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> List[Like]:
        """Find a user's likes on multiple comments (batch query).

        Args:
            user_id: The user's ID
            comment_ids: Comment IDs to check

        Returns:
            The user's likes on the specified comments
        """
        pass

    @abstractmethod
    async def find_by_comment(self, comment_id: CommentId) -> List[Like]:
        """Find all likes on a comment, oldest first."""
        pass

    @abstractmethod
    async def find_by_user(self, user_id: UserId) -> List[Like]:
        """Find all likes by a user, newest first."""
        pass

    @abstractmethod
    async def count_likes_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count likes per comment (batch query).

        Args:
            comment_ids: Comment IDs

        Returns:
            Mapping of comment ID to like row count (0 for none)
        """
        pass
