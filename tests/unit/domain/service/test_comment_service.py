"""Unit tests for CommentService."""

import asyncio
from uuid import uuid4

import pytest

from commentary.config import CommentSettings
from commentary.domain.error import (
    NestingLimitExceededError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from commentary.domain.event import CommentCreated, CommentDeleted, EventBus
from commentary.domain.repository import (
    CommentRepository,
    LikeRepository,
    TransactionManager,
)
from commentary.domain.service import CommentService, LikeService
from commentary.domain.value import CommentId, CommentScope, SubjectRef, UserId
from commentary.persistence.repository.inmemory import (
    InMemoryCommentRepository,
    InMemoryStorage,
)
from tests.harness import build_services, create_env_fixture

# Unit test fixture - everything mocked
unit_env = create_env_fixture()


class CountingCommentRepository(InMemoryCommentRepository):
    """Records how many batched reply lookups were issued."""

    def __init__(self, storage: InMemoryStorage) -> None:
        super().__init__(storage)
        self.reply_queries = 0

    async def find_replies_for_many(self, parent_ids):
        self.reply_queries += 1
        return await super().find_replies_for_many(parent_ids)


class YieldingCommentRepository(InMemoryCommentRepository):
    """Hands control to other tasks after every lookup, so concurrent
    transactions can act on the same stale read.
    """

    async def find_by_id(self, comment_id):
        comment = await super().find_by_id(comment_id)
        await asyncio.sleep(0)
        return comment


class UnlockedTransactionManager(TransactionManager):
    """Runs work without serializing concurrent transactions."""

    async def run(self, fn):
        return await fn()


class FailingCommentRepository(InMemoryCommentRepository):
    """Raises StorageError from the selected write operations."""

    def __init__(self, storage: InMemoryStorage) -> None:
        super().__init__(storage)
        self.fail_counters = False
        self.fail_deletes = False

    async def increment_counter(self, comment_id, field, delta):
        if self.fail_counters:
            raise StorageError("counter update failed")
        await super().increment_counter(comment_id, field, delta)

    async def delete_many(self, comment_ids):
        deleted = await super().delete_many(comment_ids)
        if self.fail_deletes:
            raise StorageError("delete failed")
        return deleted


class TestCreateTopLevel:
    """Tests for create_top_level method."""

    @pytest.mark.asyncio
    async def test_create_top_level_stores_comment(self, unit_env, subject, user_id):
        """Top-level comment is stored on the subject with zeroed counters."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)

        # Act
        result = await comment_service.create_top_level(subject, user_id, "Hello")

        # Assert
        assert result.parent_id is None
        assert result.is_top_level
        assert result.subject == subject
        assert result.author_id == user_id
        assert result.likes_count == 0
        assert result.replies_count == 0

        saved = await comment_repo.find_by_id(result.id)
        assert saved == result

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_create_top_level_rejects_blank_content(
        self, unit_env, subject, user_id, content
    ):
        """Blank content is rejected before anything is written."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)

        # Act & Assert
        with pytest.raises(ValidationError):
            await comment_service.create_top_level(subject, user_id, content)

        assert await comment_repo.find_top_level(subject) == []

    @pytest.mark.asyncio
    async def test_create_top_level_publishes_event(self, unit_env, subject, user_id):
        """CommentCreated is published with the stored comment."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        event_bus = await unit_env.get(EventBus)
        received = []
        event_bus.subscribe(CommentCreated, received.append)

        # Act
        comment = await comment_service.create_top_level(subject, user_id, "Hi")

        # Assert
        assert len(received) == 1
        assert received[0].comment == comment


class TestCreateReply:
    """Tests for create_reply method."""

    @pytest.mark.asyncio
    async def test_reply_copies_subject_and_increments_parent(
        self, unit_env, subject, user_id, other_user_id
    ):
        """Reply inherits the parent's subject and bumps its replies_count."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        parent = await comment_service.create_top_level(subject, user_id, "Parent")

        # Act
        reply = await comment_service.create_reply(parent.id, other_user_id, "Reply")

        # Assert
        assert reply.parent_id == parent.id
        assert reply.is_reply
        assert reply.subject == subject
        assert reply.author_id == other_user_id

        refreshed = await comment_service.get_or_raise(parent.id)
        assert refreshed.replies_count == 1

    @pytest.mark.asyncio
    async def test_reply_to_missing_parent_raises_not_found(self, unit_env, user_id):
        """Replying to a non-existent comment raises NotFoundError."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        missing_id = CommentId(uuid4())

        # Act & Assert
        with pytest.raises(NotFoundError) as exc_info:
            await comment_service.create_reply(missing_id, user_id, "Reply")

        assert exc_info.value.resource == "Comment"
        assert exc_info.value.identifier == str(missing_id)

    @pytest.mark.asyncio
    async def test_reply_with_blank_content_leaves_parent_untouched(
        self, unit_env, subject, user_id
    ):
        """A rejected reply does not change the parent counter."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        parent = await comment_service.create_top_level(subject, user_id, "Parent")

        # Act & Assert
        with pytest.raises(ValidationError):
            await comment_service.create_reply(parent.id, user_id, " ")

        refreshed = await comment_service.get_or_raise(parent.id)
        assert refreshed.replies_count == 0

    @pytest.mark.asyncio
    async def test_blank_reply_is_rejected_before_parent_lookup(
        self, unit_env, user_id
    ):
        """Content is validated before the parent is read."""
        # Arrange
        comment_service = await unit_env.get(CommentService)

        # Act & Assert
        with pytest.raises(ValidationError):
            await comment_service.create_reply(CommentId(uuid4()), user_id, "")

    @pytest.mark.asyncio
    async def test_reply_publishes_event(self, unit_env, subject, user_id):
        """CommentCreated is published for replies too."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        event_bus = await unit_env.get(EventBus)
        parent = await comment_service.create_top_level(subject, user_id, "Parent")
        received = []
        event_bus.subscribe(CommentCreated, received.append)

        # Act
        reply = await comment_service.create_reply(parent.id, user_id, "Reply")

        # Assert
        assert [event.comment.id for event in received] == [reply.id]


class TestNestingLimit:
    """Tests for depth computation and the nesting limit."""

    @pytest.mark.asyncio
    async def test_depth_follows_parent_chain(self, unit_env, subject):
        """Top-level is depth 0, each reply adds one."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        a = await comment_service.create_top_level(subject, UserId(uuid4()), "A")
        b = await comment_service.create_reply(a.id, UserId(uuid4()), "B")
        c = await comment_service.create_reply(b.id, UserId(uuid4()), "C")

        # Act & Assert
        assert await comment_service.depth(a) == 0
        assert await comment_service.depth(b) == 1
        assert await comment_service.depth(c) == 2

    @pytest.mark.asyncio
    async def test_reply_at_depth_two_succeeds_at_depth_three_fails(
        self, unit_env, subject, user_id
    ):
        """With the default limit of 3, a comment at depth 3 takes no replies."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        level0 = await comment_service.create_top_level(subject, user_id, "0")
        level1 = await comment_service.create_reply(level0.id, user_id, "1")
        level2 = await comment_service.create_reply(level1.id, user_id, "2")

        # Act
        level3 = await comment_service.create_reply(level2.id, user_id, "3")

        # Assert
        assert await comment_service.depth(level3) == 3

        with pytest.raises(NestingLimitExceededError) as exc_info:
            await comment_service.create_reply(level3.id, user_id, "4")

        assert exc_info.value.max_depth == 3
        assert "Maximum nesting depth of 3 reached" in str(exc_info.value)

        # Rejected reply left no trace
        refreshed = await comment_repo.find_by_id(level3.id)
        assert refreshed.replies_count == 0
        assert await comment_repo.find_replies(level3.id) == []

    @pytest.mark.asyncio
    async def test_custom_limit_is_respected(self, subject, user_id):
        """A limit of 1 allows replies to top-level comments only."""
        # Arrange
        services = build_services(CommentSettings(max_nesting_depth=1))
        comment_service = services.comment_service
        top = await comment_service.create_top_level(subject, user_id, "Top")
        reply = await comment_service.create_reply(top.id, user_id, "Reply")

        # Act & Assert
        with pytest.raises(NestingLimitExceededError):
            await comment_service.create_reply(reply.id, user_id, "Too deep")

    @pytest.mark.asyncio
    async def test_zero_limit_rejects_all_replies(self, subject, user_id):
        """A limit of 0 disables replies entirely."""
        # Arrange
        services = build_services(CommentSettings(max_nesting_depth=0))
        top = await services.comment_service.create_top_level(subject, user_id, "Top")

        # Act & Assert
        with pytest.raises(NestingLimitExceededError):
            await services.comment_service.create_reply(top.id, user_id, "Reply")

    @pytest.mark.asyncio
    async def test_unlimited_nesting(self, subject, user_id):
        """max_nesting_depth=None allows arbitrarily deep threads."""
        # Arrange
        services = build_services(CommentSettings(max_nesting_depth=None))
        comment_service = services.comment_service
        comment = await comment_service.create_top_level(subject, user_id, "0")

        # Act
        for level in range(1, 8):
            comment = await comment_service.create_reply(
                comment.id, user_id, str(level)
            )

        # Assert
        assert await comment_service.depth(comment) == 7

    @pytest.mark.asyncio
    async def test_depth_limit_stops_walk(self, subject, user_id):
        """depth(limit=n) never reports more than n."""
        # Arrange
        services = build_services(CommentSettings(max_nesting_depth=None))
        comment_service = services.comment_service
        comment = await comment_service.create_top_level(subject, user_id, "0")
        for level in range(1, 6):
            comment = await comment_service.create_reply(
                comment.id, user_id, str(level)
            )

        # Act & Assert
        assert await comment_service.depth(comment, limit=2) == 2


class TestDelete:
    """Tests for cascading delete."""

    @pytest.mark.asyncio
    async def test_delete_thread_scenario(self, unit_env, subject):
        """A <- B <- C: counters match and deleting A removes B and C."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        a = await comment_service.create_top_level(subject, UserId(uuid4()), "A")
        b = await comment_service.create_reply(a.id, UserId(uuid4()), "B")
        c = await comment_service.create_reply(b.id, UserId(uuid4()), "C")

        assert (await comment_repo.find_by_id(a.id)).replies_count == 1
        assert (await comment_repo.find_by_id(b.id)).replies_count == 1

        # Act
        deleted = await comment_service.delete(a.id)

        # Assert
        assert deleted is True
        assert await comment_repo.find_by_id(a.id) is None
        assert await comment_repo.find_by_id(b.id) is None
        assert await comment_repo.find_by_id(c.id) is None

    @pytest.mark.asyncio
    async def test_delete_removes_replies_and_all_likes(
        self, unit_env, subject, user_id, other_user_id
    ):
        """Deleting a reply with 2 replies and likes cleans up everything."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        like_service = await unit_env.get(LikeService)
        comment_repo = await unit_env.get(CommentRepository)
        like_repo = await unit_env.get(LikeRepository)

        root = await comment_service.create_top_level(subject, user_id, "Root")
        target = await comment_service.create_reply(root.id, user_id, "Target")
        reply1 = await comment_service.create_reply(target.id, other_user_id, "R1")
        reply2 = await comment_service.create_reply(target.id, other_user_id, "R2")
        await like_service.like(other_user_id, target.id)
        await like_service.like(user_id, reply1.id)

        # Act
        await comment_service.delete(target.id)

        # Assert
        for comment_id in (target.id, reply1.id, reply2.id):
            assert await comment_repo.find_by_id(comment_id) is None
            assert await like_repo.find_by_comment(comment_id) == []

        refreshed_root = await comment_repo.find_by_id(root.id)
        assert refreshed_root.replies_count == 0

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, unit_env, subject, user_id):
        """Deleting an already deleted comment is a no-op."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        parent = await comment_service.create_top_level(subject, user_id, "Parent")
        reply = await comment_service.create_reply(parent.id, user_id, "Reply")
        await comment_service.delete(reply.id)

        # Act
        second = await comment_service.delete(reply.id)

        # Assert
        assert second is False
        refreshed = await comment_service.get_or_raise(parent.id)
        assert refreshed.replies_count == 0

    @pytest.mark.asyncio
    async def test_delete_publishes_removed_reply_ids(
        self, unit_env, subject, user_id
    ):
        """CommentDeleted lists every cascaded reply."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        event_bus = await unit_env.get(EventBus)
        root = await comment_service.create_top_level(subject, user_id, "Root")
        child = await comment_service.create_reply(root.id, user_id, "Child")
        grandchild = await comment_service.create_reply(child.id, user_id, "Grand")
        received = []
        event_bus.subscribe(CommentDeleted, received.append)

        # Act
        await comment_service.delete(root.id)
        await comment_service.delete(root.id)

        # Assert
        assert len(received) == 1
        assert received[0].comment.id == root.id
        assert set(received[0].removed_reply_ids) == {child.id, grandchild.id}

    @pytest.mark.asyncio
    async def test_counters_match_rows_after_mixed_operations(
        self, unit_env, subject, user_id
    ):
        """replies_count equals live reply rows after creates and deletes."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        comment_repo = await unit_env.get(CommentRepository)
        root = await comment_service.create_top_level(subject, user_id, "Root")
        replies = [
            await comment_service.create_reply(root.id, user_id, f"R{i}")
            for i in range(4)
        ]
        nested = await comment_service.create_reply(replies[0].id, user_id, "N")

        # Act
        await comment_service.delete(replies[1].id)
        await comment_service.delete(replies[0].id)
        await comment_service.delete(nested.id)

        # Assert
        comments = await comment_repo.find_by_scope(CommentScope().of(subject))
        ids = [c.id for c in comments]
        actual = await comment_repo.count_replies_for_many(ids)
        for comment in comments:
            assert comment.replies_count == actual[comment.id]


    @pytest.mark.asyncio
    async def test_concurrent_deletes_decrement_parent_once(self, subject, user_id):
        """Two interleaved deletes of one reply leave the parent counter exact."""
        # Arrange
        storage = InMemoryStorage()
        comment_repo = YieldingCommentRepository(storage)
        services = build_services(
            storage=storage,
            comment_repository=comment_repo,
            transaction_manager=UnlockedTransactionManager(),
        )
        comment_service = services.comment_service
        a = await comment_service.create_top_level(subject, user_id, "A")
        b = await comment_service.create_reply(a.id, user_id, "B")
        await comment_service.create_reply(a.id, user_id, "D")
        received = []
        services.event_bus.subscribe(CommentDeleted, received.append)

        # Act
        results = await asyncio.gather(
            comment_service.delete(b.id), comment_service.delete(b.id)
        )

        # Assert
        assert sorted(results) == [False, True]
        refreshed = await comment_repo.find_by_id(a.id)
        assert refreshed.replies_count == len(await comment_repo.find_replies(a.id))
        assert refreshed.replies_count == 1
        assert len(received) == 1


class TestGet:
    """Tests for get and get_or_raise."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        assert await comment_service.get(CommentId(uuid4())) is None

    @pytest.mark.asyncio
    async def test_get_or_raise_missing_raises(self, unit_env):
        comment_service = await unit_env.get(CommentService)

        with pytest.raises(NotFoundError):
            await comment_service.get_or_raise(CommentId(uuid4()))


class TestMaterializeWithReplies:
    """Tests for tree loading."""

    async def _build_tree(self, comment_service: CommentService, subject, user_id):
        root = await comment_service.create_top_level(subject, user_id, "Root")
        children = [
            await comment_service.create_reply(root.id, user_id, f"C{i}")
            for i in range(3)
        ]
        grandchildren = [
            await comment_service.create_reply(child.id, user_id, f"G{i}")
            for i, child in enumerate(children)
            for _ in range(2)
        ]
        leaves = [
            await comment_service.create_reply(grandchild.id, user_id, "L")
            for grandchild in grandchildren
        ]
        return root, children, grandchildren, leaves

    @pytest.mark.asyncio
    async def test_loads_full_tree_with_one_query_per_level(self, subject, user_id):
        """Query count depends on depth, not on the number of nodes."""
        # Arrange
        storage = InMemoryStorage()
        counting_repo = CountingCommentRepository(storage)
        services = build_services(storage=storage, comment_repository=counting_repo)
        root, children, grandchildren, leaves = await self._build_tree(
            services.comment_service, subject, user_id
        )
        counting_repo.reply_queries = 0

        # Act
        tree = await services.comment_service.materialize_with_replies(
            await services.comment_service.get_or_raise(root.id)
        )

        # Assert
        assert tree.size == 1 + len(children) + len(grandchildren) + len(leaves)
        assert [node.comment.id for node in tree.replies] == [c.id for c in children]
        assert all(len(child.replies) == 2 for child in tree.replies)
        assert counting_repo.reply_queries <= 3

    @pytest.mark.asyncio
    async def test_max_depth_one_returns_direct_children_only(
        self, unit_env, subject, user_id
    ):
        # Arrange
        comment_service = await unit_env.get(CommentService)
        root, children, _, _ = await self._build_tree(
            comment_service, subject, user_id
        )

        # Act
        tree = await comment_service.materialize_with_replies(root, max_depth=1)

        # Assert
        assert len(tree.replies) == len(children)
        assert all(node.replies == [] for node in tree.replies)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_depth", [0, -1])
    async def test_non_positive_max_depth_returns_no_children(
        self, unit_env, subject, user_id, max_depth
    ):
        # Arrange
        comment_service = await unit_env.get(CommentService)
        root, _, _, _ = await self._build_tree(comment_service, subject, user_id)

        # Act
        tree = await comment_service.materialize_with_replies(root, max_depth=max_depth)

        # Assert
        assert tree.comment.id == root.id
        assert tree.replies == []

    @pytest.mark.asyncio
    async def test_comments_with_replies_loads_every_root(self, unit_env, user_id):
        """All top-level comments of a subject come back with their replies."""
        # Arrange
        comment_service = await unit_env.get(CommentService)
        subject = SubjectRef(type="video", id=42)
        other_subject = SubjectRef(type="video", id=43)
        first = await comment_service.create_top_level(subject, user_id, "First")
        second = await comment_service.create_top_level(subject, user_id, "Second")
        await comment_service.create_reply(first.id, user_id, "Reply")
        await comment_service.create_top_level(other_subject, user_id, "Elsewhere")

        # Act
        nodes = await comment_service.comments_with_replies(subject)

        # Assert
        assert {node.comment.id for node in nodes} == {first.id, second.id}
        sizes = {node.comment.id: node.size for node in nodes}
        assert sizes == {first.id: 2, second.id: 1}


class TestWriteFailures:
    """A storage failure inside a write leaves no partial state behind."""

    @pytest.mark.asyncio
    async def test_failed_counter_update_discards_reply(self, subject, user_id):
        """Reply insert and parent counter bump succeed or fail together."""
        # Arrange
        storage = InMemoryStorage()
        comment_repo = FailingCommentRepository(storage)
        services = build_services(storage=storage, comment_repository=comment_repo)
        parent = await services.comment_service.create_top_level(
            subject, user_id, "Parent"
        )
        received = []
        services.event_bus.subscribe(CommentCreated, received.append)
        comment_repo.fail_counters = True

        # Act
        with pytest.raises(StorageError):
            await services.comment_service.create_reply(parent.id, user_id, "Reply")

        # Assert
        assert await comment_repo.find_replies(parent.id) == []
        assert (await comment_repo.find_by_id(parent.id)).replies_count == 0
        assert received == []

    @pytest.mark.asyncio
    async def test_failed_cascade_removes_nothing_and_can_be_retried(
        self, subject, user_id, other_user_id
    ):
        """An interrupted delete keeps every row, and a retry completes it."""
        # Arrange
        storage = InMemoryStorage()
        comment_repo = FailingCommentRepository(storage)
        services = build_services(storage=storage, comment_repository=comment_repo)
        comment_service = services.comment_service
        root = await comment_service.create_top_level(subject, user_id, "Root")
        child = await comment_service.create_reply(root.id, user_id, "Child")
        grandchild = await comment_service.create_reply(child.id, user_id, "Grand")
        await services.like_service.like(other_user_id, child.id)
        await services.like_service.like(other_user_id, grandchild.id)
        comment_repo.fail_deletes = True

        # Act
        with pytest.raises(StorageError):
            await comment_service.delete(child.id)

        # Assert
        assert await comment_repo.find_by_id(child.id) is not None
        assert await comment_repo.find_by_id(grandchild.id) is not None
        assert (await comment_repo.find_by_id(root.id)).replies_count == 1
        assert len(await services.like_repository.find_by_user(other_user_id)) == 2

        # Act (retry)
        comment_repo.fail_deletes = False
        deleted = await comment_service.delete(child.id)

        # Assert
        assert deleted is True
        assert await comment_repo.find_by_id(grandchild.id) is None
        assert (await comment_repo.find_by_id(root.id)).replies_count == 0
        assert await services.like_repository.find_by_user(other_user_id) == []
