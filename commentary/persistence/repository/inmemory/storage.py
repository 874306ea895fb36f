"""Shared in-memory storage with transaction emulation."""

import asyncio
from contextvars import ContextVar
from typing import Awaitable, Callable, TypeVar

from commentary.domain.model import Comment, Like
from commentary.domain.repository import TransactionManager
from commentary.domain.value import CommentId, LikeId

T = TypeVar("T")

# ids of the storages the current task is inside a transaction on
_active_storages: ContextVar[frozenset[int]] = ContextVar(
    "inmemory_active_storages", default=frozenset()
)


class InMemoryStorage:
    """Rows shared by the in-memory repositories of one store."""

    def __init__(self) -> None:
        self.comments: dict[CommentId, Comment] = {}
        self.likes: dict[LikeId, Like] = {}
        self.lock = asyncio.Lock()

    def snapshot(self) -> tuple[dict[CommentId, Comment], dict[LikeId, Like]]:
        """Capture current rows (models are immutable, so a shallow copy suffices)."""
        return dict(self.comments), dict(self.likes)

    def restore(
        self, snapshot: tuple[dict[CommentId, Comment], dict[LikeId, Like]]
    ) -> None:
        """Put back rows captured by snapshot()."""
        comments, likes = snapshot
        self.comments = dict(comments)
        self.likes = dict(likes)


class InMemoryTransactionManager(TransactionManager):
    """Serializable transactions over an InMemoryStorage.

    Top-level transactions take the storage lock, so concurrent tasks never
    interleave their writes. Any exception restores the pre-transaction rows.
    Nested calls act as savepoints.
    """

    def __init__(self, storage: InMemoryStorage) -> None:
        self.storage = storage

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn inside a transaction."""
        key = id(self.storage)
        active = _active_storages.get()
        if key in active:
            return await self._run_with_rollback(fn)

        async with self.storage.lock:
            token = _active_storages.set(active | {key})
            try:
                return await self._run_with_rollback(fn)
            finally:
                _active_storages.reset(token)

    async def _run_with_rollback(self, fn: Callable[[], Awaitable[T]]) -> T:
        snapshot = self.storage.snapshot()
        try:
            return await fn()
        except BaseException:
            self.storage.restore(snapshot)
            raise
