"""PostgreSQL implementation of Comment repository."""

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import Select, case, delete, desc, func, insert, select, tuple_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commentary.domain.error import ConflictError, NotFoundError
from commentary.domain.model import Comment
from commentary.domain.repository import CommentRepository
from commentary.domain.value import (
    CommentId,
    CommentScope,
    CounterField,
    SubjectRef,
    UserId,
)
from commentary.persistence.mappers import comment_to_dict, row_to_comment
from commentary.persistence.tables import comments_table


def _apply_scope(stmt: Select, scope: CommentScope) -> Select:
    """Add the WHERE clauses of a scope to a statement."""
    if scope.subject is not None:
        stmt = stmt.where(
            comments_table.c.subject_type == scope.subject.type,
            comments_table.c.subject_id == scope.subject.id,
        )
    if scope.author_id is not None:
        stmt = stmt.where(comments_table.c.author_id == scope.author_id)
    if scope.top_level is True:
        stmt = stmt.where(comments_table.c.parent_id.is_(None))
    elif scope.top_level is False:
        stmt = stmt.where(comments_table.c.parent_id.is_not(None))
    return stmt


def _subject_filter(subjects: Sequence[SubjectRef]):
    return tuple_(comments_table.c.subject_type, comments_table.c.subject_id).in_(
        [(subject.type, subject.id) for subject in subjects]
    )


class PostgresCommentRepository(CommentRepository):
    """PostgreSQL implementation of CommentRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def insert(self, comment: Comment) -> Comment:
        """Insert a new comment."""
        stmt = insert(comments_table).values(**comment_to_dict(comment))
        try:
            await self.session.execute(stmt)
            await self.session.flush()
        except IntegrityError as e:
            # Parent removed by a concurrent delete (foreign key violation)
            if comment.parent_id is not None:
                raise NotFoundError("Comment", str(comment.parent_id)) from e
            raise ConflictError(f"Comment already exists: {comment.id}") from e
        return comment

    async def find_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID."""
        stmt = select(comments_table).where(comments_table.c.id == comment_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_comment(row._asdict()) if row else None

    async def find_by_ids(self, comment_ids: Sequence[CommentId]) -> List[Comment]:
        """Find several comments by ID (batch query)."""
        if not comment_ids:
            return []

        stmt = select(comments_table).where(comments_table.c.id.in_(comment_ids))
        result = await self.session.execute(stmt)
        return [row_to_comment(row._asdict()) for row in result.fetchall()]

    async def delete_many(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete comments by ID, ignoring missing IDs."""
        if not comment_ids:
            return 0

        stmt = delete(comments_table).where(comments_table.c.id.in_(comment_ids))
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    async def find_replies(self, parent_id: CommentId) -> List[Comment]:
        """Find direct replies to a comment, oldest first."""
        return await self.find_replies_for_many([parent_id])

    async def find_replies_for_many(
        self, parent_ids: Sequence[CommentId]
    ) -> List[Comment]:
        """Find direct replies to several comments in one query."""
        if not parent_ids:
            return []

        stmt = (
            select(comments_table)
            .where(comments_table.c.parent_id.in_(parent_ids))
            .order_by(comments_table.c.created_at)
        )
        result = await self.session.execute(stmt)
        return [row_to_comment(row._asdict()) for row in result.fetchall()]

    async def find_top_level(self, subject: SubjectRef) -> List[Comment]:
        """Find top-level comments on a subject, newest first."""
        return await self.find_by_scope(CommentScope().of(subject).parents())

    async def find_by_scope(
        self,
        scope: CommentScope,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Comment]:
        """Find comments matching a scope, newest first."""
        stmt = _apply_scope(select(comments_table), scope)
        stmt = stmt.order_by(desc(comments_table.c.created_at)).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return [row_to_comment(row._asdict()) for row in result.fetchall()]

    async def count_by_scope(self, scope: CommentScope) -> int:
        """Count comments matching a scope."""
        stmt = _apply_scope(select(func.count()).select_from(comments_table), scope)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def count_by_subjects(
        self, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, int]:
        """Count all comments per subject in one grouped query."""
        if not subjects:
            return {}

        stmt = (
            select(
                comments_table.c.subject_type,
                comments_table.c.subject_id,
                func.count().label("comments_count"),
            )
            .where(_subject_filter(subjects))
            .group_by(comments_table.c.subject_type, comments_table.c.subject_id)
        )
        result = await self.session.execute(stmt)
        return {
            SubjectRef(type=row.subject_type, id=row.subject_id): row.comments_count
            for row in result.fetchall()
        }

    async def latest_comment_times(
        self, author_id: UserId, subjects: Sequence[SubjectRef]
    ) -> dict[SubjectRef, datetime]:
        """Find when a user last commented on each subject in one grouped query."""
        if not subjects:
            return {}

        stmt = (
            select(
                comments_table.c.subject_type,
                comments_table.c.subject_id,
                func.max(comments_table.c.created_at).label("commented_at"),
            )
            .where(comments_table.c.author_id == author_id)
            .where(_subject_filter(subjects))
            .group_by(comments_table.c.subject_type, comments_table.c.subject_id)
        )
        result = await self.session.execute(stmt)
        return {
            SubjectRef(type=row.subject_type, id=row.subject_id): row.commented_at
            for row in result.fetchall()
        }

    async def increment_counter(
        self, comment_id: CommentId, field: CounterField, delta: int
    ) -> None:
        """Atomically add delta to a counter (minimum 0)."""
        column = comments_table.c[field.value]
        stmt = (
            update(comments_table)
            .where(comments_table.c.id == comment_id)
            .values(
                {
                    field.value: case((column + delta < 0, 0), else_=column + delta),
                    "updated_at": datetime.now(),
                }
            )
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def count_replies_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count live direct replies per comment in one grouped query."""
        counts = {cid: 0 for cid in comment_ids}
        if not comment_ids:
            return counts

        stmt = (
            select(comments_table.c.parent_id, func.count().label("replies_count"))
            .where(comments_table.c.parent_id.in_(comment_ids))
            .group_by(comments_table.c.parent_id)
        )
        result = await self.session.execute(stmt)
        for row in result.fetchall():
            counts[CommentId(row.parent_id)] = row.replies_count
        return counts

    async def set_counters(
        self, comment_id: CommentId, likes_count: int, replies_count: int
    ) -> None:
        """Overwrite both counters of a comment."""
        stmt = (
            update(comments_table)
            .where(comments_table.c.id == comment_id)
            .values(
                likes_count=likes_count,
                replies_count=replies_count,
                updated_at=datetime.now(),
            )
        )
        await self.session.execute(stmt)
        await self.session.flush()
