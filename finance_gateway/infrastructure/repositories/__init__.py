"""Repository implementations."""

from .application_repository import PostgresApplicationRepository
from .transaction_repository import PostgresPaymentTransactionRepository
from .unit_of_work import SqlAlchemyUnitOfWork

__all__ = [
    "PostgresApplicationRepository",
    "PostgresPaymentTransactionRepository",
    "SqlAlchemyUnitOfWork",
]
