"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from types import TracebackType
from typing import Optional, Type

from finance_gateway.domain.entities import (
    Application,
    PaymentTransaction,
    TransactionStatus,
)


class PaymentTransactionRepository(ABC):
    """
    Abstract repository for PaymentTransaction persistence.

    Rows are keyed uniquely by transaction_id; writes from concurrent
    webhook deliveries and verification polls rely on that key.
    """

    @abstractmethod
    async def get_by_transaction_id(
        self,
        transaction_id: str,
    ) -> Optional[PaymentTransaction]:
        """
        Retrieve a transaction by its correlation key.

        Args:
            transaction_id: The client-supplied transaction identifier

        Returns:
            The transaction if found, None otherwise
        """
        ...

    @abstractmethod
    async def create_pending(self, transaction: PaymentTransaction) -> bool:
        """
        Insert a new transaction unless one already exists for its key.

        Returns:
            True if a row was inserted, False if the key was taken
        """
        ...

    @abstractmethod
    async def upsert(self, transaction: PaymentTransaction) -> PaymentTransaction:
        """
        Insert or update the transaction keyed by transaction_id.

        An existing completed row is left untouched unless the new
        status is completed too.

        Args:
            transaction: The transaction state to persist

        Returns:
            The transaction as stored after the write
        """
        ...

    @abstractmethod
    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        completed_at: Optional[datetime] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        """
        Update the status of an existing transaction.

        Returns:
            True if a row was updated
        """
        ...

    @abstractmethod
    async def mark_schedule_applied(
        self,
        transaction_id: str,
        applied_at: datetime,
    ) -> bool:
        """
        Claim the installment plan update for this payment.

        Returns:
            True if this call set the marker, False if it was already set
        """
        ...


class ApplicationRepository(ABC):
    """Abstract repository for financing applications and their plans."""

    @abstractmethod
    async def get_by_id(self, application_id: str) -> Optional[Application]:
        """
        Retrieve an application by ID.

        Args:
            application_id: The application's unique identifier

        Returns:
            The application if found, None otherwise
        """
        ...

    @abstractmethod
    async def save(self, application: Application) -> Application:
        """Persist a new application."""
        ...

    @abstractmethod
    async def update(self, application: Application) -> Application:
        """
        Persist amounts and the installment plan of an existing application.

        Returns:
            The updated application
        """
        ...


class UnitOfWork(ABC):
    """
    A transactional scope over the payment repositories.

    Used as an async context manager: changes are committed when the
    block exits normally and rolled back when it raises.
    """

    transactions: PaymentTransactionRepository
    applications: ApplicationRepository

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
