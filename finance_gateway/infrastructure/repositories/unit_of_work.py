"""SQLAlchemy unit of work over the payment repositories."""

from types import TracebackType
from typing import Optional, Type

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from finance_gateway.domain.interfaces import UnitOfWork
from .application_repository import PostgresApplicationRepository
from .transaction_repository import PostgresPaymentTransactionRepository


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Opens a new session per `async with` block.

    Each block sees data committed before it started, so the
    verification poll can re-enter the same unit of work to observe
    webhook writes.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.transactions = PostgresPaymentTransactionRepository(self._session)
        self.applications = PostgresApplicationRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            await self._session.close()
            self._session = None

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()
