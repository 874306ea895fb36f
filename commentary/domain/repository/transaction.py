"""Transaction boundary interface."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


class TransactionManager(ABC):
    """Scoped all-or-nothing execution of multi-step writes.

    Everything awaited inside ``fn`` commits together or not at all. Nested
    calls join the enclosing transaction as a savepoint.
    """

    @abstractmethod
    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn inside a transaction.

        Args:
            fn: Zero-argument coroutine function performing the writes

        Returns:
            Whatever fn returns, after commit

        Raises:
            StorageError: If the transaction could not be committed
        """
        pass
