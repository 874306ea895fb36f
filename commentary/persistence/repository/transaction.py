"""SQLAlchemy implementation of the transaction boundary."""

from typing import Awaitable, Callable, TypeVar

import logfire
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commentary.domain.error import StorageError
from commentary.domain.repository import TransactionManager

T = TypeVar("T")


class SqlAlchemyTransactionManager(TransactionManager):
    """Transactions on a request-scoped AsyncSession.

    The outermost run() commits before returning, so events published
    afterwards describe durable state. If the session already auto-began a
    transaction for earlier reads, the work runs in a savepoint and the
    session is committed afterwards. Inner run() calls use savepoints.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction manager.

        Args:
            session: SQLAlchemy async session shared with the repositories
        """
        self.session = session
        self._depth = 0

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn inside a transaction."""
        if self._depth:
            async with self.session.begin_nested():
                return await fn()

        self._depth += 1
        try:
            if self.session.in_transaction():
                async with self.session.begin_nested():
                    result = await fn()
                await self.session.commit()
            else:
                async with self.session.begin():
                    result = await fn()
            return result
        except SQLAlchemyError as e:
            logfire.error(
                "Transaction failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            if self.session.in_transaction():
                await self.session.rollback()
            raise StorageError("Transaction failed and was rolled back") from e
        finally:
            self._depth -= 1
