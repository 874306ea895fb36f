"""PostgreSQL implementation of Like repository."""

from typing import List, Optional, Sequence

from sqlalchemy import and_, delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commentary.domain.error import ConflictError, NotFoundError
from commentary.domain.model import Like
from commentary.domain.repository import LikeRepository
from commentary.domain.value import CommentId, UserId
from commentary.persistence.mappers import like_to_dict, row_to_like
from commentary.persistence.tables import comment_likes_table

UNIQUE_LIKE_CONSTRAINT = "unique_user_comment_like"


class PostgresLikeRepository(LikeRepository):
    """PostgreSQL implementation of LikeRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def insert(self, like: Like) -> Like:
        """Insert a like.

        Raises:
            ConflictError: If the user already likes this comment
            NotFoundError: If the comment no longer exists
        """
        stmt = insert(comment_likes_table).values(**like_to_dict(like))
        try:
            await self.session.execute(stmt)
            await self.session.flush()
        except IntegrityError as e:
            # Comment removed by a concurrent delete (foreign key violation)
            if UNIQUE_LIKE_CONSTRAINT not in str(e.orig):
                raise NotFoundError("Comment", str(like.comment_id)) from e
            raise ConflictError(
                f"User {like.user_id} already likes comment {like.comment_id}"
            ) from e
        return like

    async def find(self, user_id: UserId, comment_id: CommentId) -> Optional[Like]:
        """Find a user's like on a comment."""
        stmt = select(comment_likes_table).where(
            and_(
                comment_likes_table.c.user_id == user_id,
                comment_likes_table.c.comment_id == comment_id,
            )
        )
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_like(row._asdict()) if row else None

    async def delete(self, user_id: UserId, comment_id: CommentId) -> bool:
        """Delete a user's like on a comment."""
        stmt = delete(comment_likes_table).where(
            and_(
                comment_likes_table.c.user_id == user_id,
                comment_likes_table.c.comment_id == comment_id,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def delete_for_comments(self, comment_ids: Sequence[CommentId]) -> int:
        """Delete every like on the given comments."""
        if not comment_ids:
            return 0

        stmt = delete(comment_likes_table).where(
            comment_likes_table.c.comment_id.in_(comment_ids)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    async def find_for_comments(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> List[Like]:
        """Find a user's likes on multiple comments (batch query)."""
        if not comment_ids:
            return []

        stmt = select(comment_likes_table).where(
            and_(
                comment_likes_table.c.user_id == user_id,
                comment_likes_table.c.comment_id.in_(comment_ids),
            )
        )
        result = await self.session.execute(stmt)
        return [row_to_like(row._asdict()) for row in result.fetchall()]

    async def find_by_comment(self, comment_id: CommentId) -> List[Like]:
        """Find all likes on a comment, oldest first."""
        stmt = (
            select(comment_likes_table)
            .where(comment_likes_table.c.comment_id == comment_id)
            .order_by(comment_likes_table.c.created_at)
        )
        result = await self.session.execute(stmt)
        return [row_to_like(row._asdict()) for row in result.fetchall()]

    async def find_by_user(self, user_id: UserId) -> List[Like]:
        """Find all likes by a user, newest first."""
        stmt = (
            select(comment_likes_table)
            .where(comment_likes_table.c.user_id == user_id)
            .order_by(comment_likes_table.c.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [row_to_like(row._asdict()) for row in result.fetchall()]

    async def count_likes_for_many(
        self, comment_ids: Sequence[CommentId]
    ) -> dict[CommentId, int]:
        """Count likes per comment in one grouped query."""
        counts = {cid: 0 for cid in comment_ids}
        if not comment_ids:
            return counts

        stmt = (
            select(comment_likes_table.c.comment_id, func.count().label("likes_count"))
            .where(comment_likes_table.c.comment_id.in_(comment_ids))
            .group_by(comment_likes_table.c.comment_id)
        )
        result = await self.session.execute(stmt)
        for row in result.fetchall():
            counts[CommentId(row.comment_id)] = row.likes_count
        return counts
