"""In-memory comment repository for testing."""

from datetime import datetime
from typing import Optional, Sequence

from commentary.domain.error import ConflictError, NotFoundError
from commentary.domain.model.comment import Comment
from commentary.domain.repository.comment import CommentRepository
from commentary.domain.value import (
    CommentId,
    CommentScope,
    CounterField,
    SubjectRef,
    UserId,
)

from .storage import InMemoryStorage


def _matches(comment: Comment, scope: CommentScope) -> bool:
    if scope.subject is not None and comment.subject != scope.subject:
        return False
    if scope.author_id is not None and comment.author_id != scope.author_id:
        return False
    if scope.top_level is True and comment.parent_id is not None:
        return False
    if scope.top_level is False and comment.parent_id is None:
        return False
    return True


class InMemoryCommentRepository(CommentRepository):
    """In-memory implementation of CommentRepository for testing."""

    def __init__(self, storage: Optional[InMemoryStorage] = None) -> None:
        self.storage = storage or InMemoryStorage()

    @property
    def _comments(self) -> dict[CommentId, Comment]:
        return self.storage.comments

    async def insert(self, comment: Comment) -> Comment:
        """Insert a comment, enforcing primary and parent keys."""
        if comment.id in self._comments:
            raise ConflictError(f"Comment already exists: {comment.id}")
        if comment.parent_id is not None and comment.parent_id not in self._comments:
            raise NotFoundError("Comment", str(comment.parent_id))
        self._comments[comment.id] = comment
        return comment

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID."""
        return self._comments.get(comment_id)

    async def find_by_ids(self, comment_ids: Sequence[CommentId]) -> list[Comment]:
        """Find several comments by ID."""
        return [self._comments[cid] for cid in comment_ids if cid in self._comments]

    async def delete_many(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete comments, ignoring missing IDs."""
        deleted = 0
        for comment_id in comment_ids:
            if self._comments.pop(comment_id, None) is not None:
                deleted += 1
        return deleted

    async def find_replies(self, parent_id: CommentId) -> list[Comment]:
        """Find direct replies, oldest first."""
        return await self.find_replies_for_many([parent_id])

    async def find_replies_for_many(
        self, parent_ids: Sequence[CommentId]
    ) -> list[Comment]:
        """Find direct replies to any of the parents, oldest first."""
        wanted = set(parent_ids)
        replies = [c for c in self._comments.values() if c.parent_id in wanted]
        replies.sort(key=lambda c: c.created_at)
        return replies

    async def find_top_level(self, subject: SubjectRef) -> list[Comment]:
        """Find top-level comments on a subject, newest first."""
        return await self.find_by_scope(CommentScope().of(subject).parents())

    async def find_by_scope(
        self,
        scope: CommentScope,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Comment]:
        """Find comments matching a scope, newest first."""
        comments = [c for c in self._comments.values() if _matches(c, scope)]

        # Sort by created_at descending
        comments.sort(key=lambda c: c.created_at, reverse=True)

        # Paginate
        if limit is None:
            return comments[offset:]
        return comments[offset : offset + limit]

    async def count_by_scope(self, scope: CommentScope) -> int:
        """Count comments matching a scope."""
        return sum(1 for c in self._comments.values() if _matches(c, scope))

    async def count_by_subjects(
        self, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, int]:
        """Count all comments per subject."""
        wanted = set(subjects)
        counts: dict[SubjectRef, int] = {}
        for comment in self._comments.values():
            subject = comment.subject
            if subject in wanted:
                counts[subject] = counts.get(subject, 0) + 1
        return counts

    async def latest_comment_times(
        self, author_id: UserId, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, datetime]:
        """Find when a user last commented on each subject."""
        wanted = set(subjects)
        latest: dict[SubjectRef, datetime] = {}
        for comment in self._comments.values():
            subject = comment.subject
            if comment.author_id != author_id or subject not in wanted:
                continue
            if subject not in latest or comment.created_at > latest[subject]:
                latest[subject] = comment.created_at
        return latest

    async def increment_counter(
        self, comment_id: CommentId, field: CounterField, delta: int
    ) -> None:
        """Add delta to a counter, flooring at 0."""
        comment = self._comments.get(comment_id)
        if comment is None:
            return
        current = getattr(comment, field.value)
        # Create updated comment (since comments are immutable)
        self._comments[comment_id] = comment.model_copy(
            update={field.value: max(0, current + delta), "updated_at": datetime.now()}
        )

    async def count_replies_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count live direct replies per comment."""
        counts = {cid: 0 for cid in comment_ids}
        for comment in self._comments.values():
            if comment.parent_id in counts:
                counts[comment.parent_id] += 1
        return counts

    async def set_counters(
        self, comment_id: CommentId, likes_count: int, replies_count: int
    ) -> None:
        """Overwrite both counters of a comment."""
        comment = self._comments.get(comment_id)
        if comment is None:
            return
        self._comments[comment_id] = comment.model_copy(
            update={
                "likes_count": likes_count,
                "replies_count": replies_count,
                "updated_at": datetime.now(),
            }
        )
