"""Comment domain service (threading engine)."""

from datetime import datetime
from typing import Optional, Sequence

import logfire

from commentary.config import CommentSettings
from commentary.domain.error import (
    NestingLimitExceededError,
    NotFoundError,
    ValidationError,
)
from commentary.domain.event import CommentCreated, CommentDeleted, EventBus
from commentary.domain.model import Comment, CommentNode
from commentary.domain.repository import (
    CommentRepository,
    LikeRepository,
    TransactionManager,
)
from commentary.domain.value import (
    CommentId,
    CounterField,
    SubjectRef,
    UserId,
    new_uuid,
)

from .base import Service
from .counter_service import CounterService


class CommentService(Service):
    """Domain service for creating, deleting and traversing comment threads."""

    def __init__(
        self,
        comment_repository: CommentRepository,
        like_repository: LikeRepository,
        counter_service: CounterService,
        transaction_manager: TransactionManager,
        settings: CommentSettings,
        event_bus: EventBus,
    ) -> None:
        """Initialize comment service.

        Args:
            comment_repository: Comment repository
            like_repository: Like repository (cascade deletes)
            counter_service: Counter maintenance
            transaction_manager: Transaction boundary for multi-step writes
            settings: Comment threading settings
            event_bus: Dispatcher for post-commit events
        """
        self.comment_repository = comment_repository
        self.like_repository = like_repository
        self.counter_service = counter_service
        self.transaction_manager = transaction_manager
        self.settings = settings
        self.event_bus = event_bus

    @property
    def max_nesting_depth(self) -> Optional[int]:
        return self.settings.max_nesting_depth

    @staticmethod
    def _validate_content(content: str) -> None:
        if not content or not content.strip():
            raise ValidationError("Comment content must not be empty")

    def _build_comment(
        self,
        subject_type: str,
        subject_id: str,
        author_id: UserId,
        content: str,
        parent_id: CommentId | None,
    ) -> Comment:
        now = datetime.now()
        return Comment(
            id=CommentId(new_uuid(ordered=self.settings.ordered_ids)),
            author_id=author_id,
            subject_type=subject_type,
            subject_id=subject_id,
            content=content,
            parent_id=parent_id,
            likes_count=0,
            replies_count=0,
            created_at=now,
            updated_at=now,
        )

    async def create_top_level(
        self, subject: SubjectRef, author_id: UserId, content: str
    ) -> Comment:
        """Create a top-level comment on a subject.

        Args:
            subject: The commented-upon entity
            author_id: Author user ID
            content: Comment text

        Returns:
            Created comment

        Raises:
            ValidationError: If content is empty
        """
        with logfire.span(
            "comment_service.create_top_level",
            subject=str(subject),
            author_id=str(author_id),
        ):
            self._validate_content(content)
            comment = self._build_comment(
                subject.type, subject.id, author_id, content, parent_id=None
            )

            saved = await self.transaction_manager.run(
                lambda: self.comment_repository.insert(comment)
            )
            logfire.info(
                "Comment created",
                comment_id=str(saved.id),
                subject=str(subject),
                author_id=str(author_id),
            )

            await self.event_bus.publish(CommentCreated(comment=saved))
            return saved

    async def create_reply(
        self, parent_id: CommentId, author_id: UserId, content: str
    ) -> Comment:
        """Reply to an existing comment.

        The parent lookup, depth check, insert and parent counter bump run
        in one transaction, so a rejected reply leaves no trace.

        Args:
            parent_id: Comment being replied to
            author_id: Author user ID
            content: Reply text

        Returns:
            Created reply (on the same subject as its parent)

        Raises:
            ValidationError: If content is empty
            NotFoundError: If the parent does not exist
            NestingLimitExceededError: If the parent is already at max depth
        """
        with logfire.span(
            "comment_service.create_reply",
            parent_id=str(parent_id),
            author_id=str(author_id),
        ):
            self._validate_content(content)

            async def write() -> Comment:
                parent = await self.comment_repository.find_by_id(parent_id)
                if parent is None:
                    logfire.warn("Parent comment not found", parent_id=str(parent_id))
                    raise NotFoundError("Comment", str(parent_id))

                max_depth = self.max_nesting_depth
                if max_depth is not None:
                    parent_depth = await self.depth(parent, limit=max_depth)
                    if parent_depth >= max_depth:
                        logfire.warn(
                            "Nesting limit reached",
                            parent_id=str(parent_id),
                            max_depth=max_depth,
                        )
                        raise NestingLimitExceededError(max_depth)

                reply = self._build_comment(
                    parent.subject_type,
                    parent.subject_id,
                    author_id,
                    content,
                    parent_id=parent.id,
                )
                saved = await self.comment_repository.insert(reply)
                await self.counter_service.increment(parent.id, CounterField.REPLIES)
                return saved

            saved = await self.transaction_manager.run(write)
            logfire.info(
                "Reply created",
                comment_id=str(saved.id),
                parent_id=str(parent_id),
                subject=str(saved.subject),
            )

            await self.event_bus.publish(CommentCreated(comment=saved))
            return saved

    async def get(self, comment_id: CommentId) -> Comment | None:
        """Get a comment by ID.

        Args:
            comment_id: Comment ID

        Returns:
            Comment if found, None otherwise
        """
        with logfire.span("comment_service.get", comment_id=str(comment_id)):
            comment = await self.comment_repository.find_by_id(comment_id)
            if comment is None:
                logfire.warn("Comment not found", comment_id=str(comment_id))
            return comment

    async def get_or_raise(self, comment_id: CommentId) -> Comment:
        """Get a comment by ID.

        Raises:
            NotFoundError: If the comment does not exist
        """
        comment = await self.get(comment_id)
        if comment is None:
            raise NotFoundError("Comment", str(comment_id))
        return comment

    async def depth(self, comment: Comment, limit: Optional[int] = None) -> int:
        """Count ancestor hops from a comment to its top-level ancestor.

        Costs one lookup per level. Parents are always created before their
        replies, so the chain is acyclic. A missing ancestor ends the chain.

        Args:
            comment: Comment to measure
            limit: Stop walking once this depth is reached

        Returns:
            0 for a top-level comment, parent depth + 1 for a reply
        """
        depth = 0
        parent_id = comment.parent_id
        while parent_id is not None:
            if limit is not None and depth >= limit:
                break
            parent = await self.comment_repository.find_by_id(parent_id)
            if parent is None:
                break
            depth += 1
            parent_id = parent.parent_id
        return depth

    async def delete(self, comment_id: CommentId) -> bool:
        """Delete a comment, all of its replies and all their likes.

        Runs as one transaction. Deleting a comment that no longer exists is
        a no-op, so an interrupted cascade can simply be retried.

        Args:
            comment_id: Comment ID

        Returns:
            True if the comment was deleted, False if it did not exist
        """
        with logfire.span("comment_service.delete", comment_id=str(comment_id)):

            async def cascade() -> tuple[Comment, list[CommentId], int] | None:
                comment = await self.comment_repository.find_by_id(comment_id)
                if comment is None:
                    return None

                descendant_ids = await self._collect_descendant_ids(comment.id)
                removed_ids = [comment.id, *descendant_ids]
                likes_removed = await self.like_repository.delete_for_comments(
                    removed_ids
                )

                # A concurrent delete that removed the row first owns the
                # parent decrement and the event
                if not await self.comment_repository.delete_many([comment.id]):
                    return None

                if comment.parent_id is not None:
                    await self.counter_service.decrement(
                        comment.parent_id, CounterField.REPLIES
                    )
                await self.comment_repository.delete_many(descendant_ids)
                return comment, descendant_ids, likes_removed

            result = await self.transaction_manager.run(cascade)
            if result is None:
                logfire.info("Comment already deleted", comment_id=str(comment_id))
                return False

            comment, descendant_ids, likes_removed = result
            logfire.info(
                "Comment deleted",
                comment_id=str(comment_id),
                replies_removed=len(descendant_ids),
                likes_removed=likes_removed,
            )

            await self.event_bus.publish(
                CommentDeleted(comment=comment, removed_reply_ids=descendant_ids)
            )
            return True

    async def _collect_descendant_ids(self, root_id: CommentId) -> list[CommentId]:
        """Collect all descendant IDs breadth-first, one query per level."""
        descendant_ids: list[CommentId] = []
        seen = {root_id}
        frontier = [root_id]
        while frontier:
            replies = await self.comment_repository.find_replies_for_many(frontier)
            frontier = []
            for reply in replies:
                if reply.id in seen:
                    continue
                seen.add(reply.id)
                descendant_ids.append(reply.id)
                frontier.append(reply.id)
        return descendant_ids

    async def materialize_with_replies(
        self, comment: Comment, max_depth: Optional[int] = None
    ) -> CommentNode:
        """Load a comment with its replies nested up to max_depth levels.

        Args:
            comment: Root of the tree
            max_depth: Levels of replies to load (defaults to the configured
                max nesting depth; unlimited when both are None)

        Returns:
            Root node with replies populated, oldest reply first
        """
        with logfire.span(
            "comment_service.materialize_with_replies",
            comment_id=str(comment.id),
            max_depth=max_depth,
        ):
            nodes = await self._materialize([comment], max_depth)
            return nodes[0]

    async def comments_with_replies(
        self, subject: SubjectRef, max_depth: Optional[int] = None
    ) -> list[CommentNode]:
        """Load all top-level comments of a subject with nested replies.

        All roots share one batched query per level.

        Args:
            subject: The commented-upon entity
            max_depth: Levels of replies to load (see materialize_with_replies)

        Returns:
            Root nodes, newest comment first
        """
        with logfire.span(
            "comment_service.comments_with_replies",
            subject=str(subject),
            max_depth=max_depth,
        ):
            roots = await self.comment_repository.find_top_level(subject)
            nodes = await self._materialize(roots, max_depth)
            logfire.info(
                "Comment trees loaded",
                subject=str(subject),
                roots=len(nodes),
                total=sum(node.size for node in nodes),
            )
            return nodes

    async def _materialize(
        self, roots: Sequence[Comment], max_depth: Optional[int]
    ) -> list[CommentNode]:
        depth_limit = max_depth if max_depth is not None else self.max_nesting_depth

        nodes = [CommentNode(comment=root) for root in roots]
        frontier = {node.comment.id: node for node in nodes}
        seen = set(frontier)
        level = 0
        while frontier and (depth_limit is None or level < depth_limit):
            replies = await self.comment_repository.find_replies_for_many(
                list(frontier)
            )
            next_frontier: dict[CommentId, CommentNode] = {}
            for reply in replies:
                if reply.id in seen or reply.parent_id not in frontier:
                    continue
                seen.add(reply.id)
                node = CommentNode(comment=reply)
                frontier[reply.parent_id].replies.append(node)
                next_frontier[reply.id] = node
            frontier = next_frontier
            level += 1
        return nodes
