"""In-memory like repository for testing."""

from typing import Optional, Sequence

from commentary.domain.error import ConflictError, NotFoundError
from commentary.domain.model.like import Like
from commentary.domain.repository.like import LikeRepository
from commentary.domain.value import CommentId, LikeId, UserId

from .storage import InMemoryStorage


class InMemoryLikeRepository(LikeRepository):
    """In-memory implementation of LikeRepository for testing."""

    def __init__(self, storage: Optional[InMemoryStorage] = None) -> None:
        self.storage = storage or InMemoryStorage()

    @property
    def _likes(self) -> dict[LikeId, Like]:
        return self.storage.likes

    async def insert(self, like: Like) -> Like:
        """Insert a like.

        Raises:
            ConflictError: If the user already likes this comment
        """
        if await self.find(like.user_id, like.comment_id) is not None:
            raise ConflictError(
                f"User {like.user_id} already likes comment {like.comment_id}"
            )
        if like.comment_id not in self.storage.comments:
            raise NotFoundError("Comment", str(like.comment_id))
        self._likes[like.id] = like
        return like

    async def find(self, user_id: UserId, comment_id: CommentId) -> Optional[Like]:
        """Find a user's like on a comment."""
        for like in self._likes.values():
            if like.user_id == user_id and like.comment_id == comment_id:
                return like
        return None

    async def delete(self, user_id: UserId, comment_id: CommentId) -> bool:
        """Delete a user's like on a comment."""
        like = await self.find(user_id, comment_id)
        if like is None:
            return False
        del self._likes[like.id]
        return True

    async def delete_for_comments(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete every like on the given comments."""
        wanted = set(comment_ids)
        doomed = [lid for lid, like in self._likes.items() if like.comment_id in wanted]
        for like_id in doomed:
            del self._likes[like_id]
        return len(doomed)

    async def find_for_comments(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> list[Like]:
        """Find a user's likes on multiple comments (batch query)."""
        if not comment_ids:
            return []

        wanted = set(comment_ids)
        return [
            like
            for like in self._likes.values()
            if like.user_id == user_id and like.comment_id in wanted
        ]

    async def find_by_comment(self, comment_id: CommentId) -> list[Like]:
        """Find all likes on a comment, oldest first."""
        likes = [like for like in self._likes.values() if like.comment_id == comment_id]
        likes.sort(key=lambda like: like.created_at)
        return likes

    async def find_by_user(self, user_id: UserId) -> list[Like]:
        """Find all likes by a user, newest first."""
        likes = [like for like in self._likes.values() if like.user_id == user_id]
        likes.sort(key=lambda like: like.created_at, reverse=True)
        return likes

    async def count_likes_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count likes per comment."""
        counts = {cid: 0 for cid in comment_ids}
        for like in self._likes.values():
            if like.comment_id in counts:
                counts[like.comment_id] += 1
        return counts
