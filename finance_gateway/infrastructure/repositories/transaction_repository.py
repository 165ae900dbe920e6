"""SQLAlchemy repository implementation for payment transactions."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from finance_gateway.domain.entities import (
    PaymentMethod,
    PaymentTransaction,
    TransactionStatus,
)
from finance_gateway.domain.interfaces import PaymentTransactionRepository
from finance_gateway.infrastructure.database.models import PaymentTransactionModel

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Columns an upsert never overwrites on an existing row; the schedule marker
# is only ever set through mark_schedule_applied.
_INSERT_ONLY_COLUMNS = {"id", "transaction_id", "created_at", "schedule_applied_at"}


class PostgresPaymentTransactionRepository(PaymentTransactionRepository):
    """
    Payment transaction repository.

    Writes use INSERT .. ON CONFLICT (transaction_id) so concurrent
    webhook deliveries and verification polls never create duplicates.
    PostgreSQL in production, SQLite in tests.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _insert(self):
        dialect = self._session.bind.dialect.name
        try:
            insert = _INSERT_BY_DIALECT[dialect]
        except KeyError:
            raise RuntimeError(f"Upserts are not supported on dialect: {dialect}")
        return insert(PaymentTransactionModel)

    async def get_by_transaction_id(
        self,
        transaction_id: str,
    ) -> Optional[PaymentTransaction]:
        stmt = (
            select(PaymentTransactionModel)
            .where(PaymentTransactionModel.transaction_id == transaction_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def create_pending(self, transaction: PaymentTransaction) -> bool:
        stmt = (
            self._insert()
            .values(**self._to_row(transaction))
            .on_conflict_do_nothing(index_elements=["transaction_id"])
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def upsert(self, transaction: PaymentTransaction) -> PaymentTransaction:
        row = self._to_row(transaction)
        stmt = self._insert().values(**row)
        guard = None
        if transaction.status != TransactionStatus.COMPLETED:
            guard = PaymentTransactionModel.status != TransactionStatus.COMPLETED.value
        stmt = stmt.on_conflict_do_update(
            index_elements=["transaction_id"],
            set_={
                column: stmt.excluded[column]
                for column in row
                if column not in _INSERT_ONLY_COLUMNS
            },
            where=guard,
        )
        await self._session.execute(stmt)

        return await self.get_by_transaction_id(transaction.transaction_id)

    async def update_status(
        self,
        transaction_id: str,
        status: TransactionStatus,
        completed_at: Optional[datetime] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        values: Dict[str, Any] = {
            "status": status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        if completed_at is not None:
            values["completed_at"] = completed_at
        if failure_reason is not None:
            values["failure_reason"] = failure_reason

        stmt = update(PaymentTransactionModel).where(
            PaymentTransactionModel.transaction_id == transaction_id
        )
        # A completed row only ever accepts completed again.
        if status != TransactionStatus.COMPLETED:
            stmt = stmt.where(
                PaymentTransactionModel.status != TransactionStatus.COMPLETED.value
            )

        result = await self._session.execute(stmt.values(**values))
        return (result.rowcount or 0) > 0

    async def mark_schedule_applied(
        self,
        transaction_id: str,
        applied_at: datetime,
    ) -> bool:
        stmt = (
            update(PaymentTransactionModel)
            .where(PaymentTransactionModel.transaction_id == transaction_id)
            .where(PaymentTransactionModel.schedule_applied_at.is_(None))
            .values(schedule_applied_at=applied_at, updated_at=applied_at)
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) > 0

    def _to_row(self, transaction: PaymentTransaction) -> Dict[str, Any]:
        return {
            "id": str(transaction.id),
            "transaction_id": transaction.transaction_id,
            "payment_id": transaction.payment_id,
            "application_id": transaction.application_id,
            "payment_schedule_id": transaction.payment_schedule_id,
            "is_settlement": transaction.is_settlement,
            "amount": transaction.amount,
            "method": transaction.method.value,
            "status": transaction.status.value,
            "failure_reason": transaction.failure_reason,
            "completed_at": transaction.completed_at,
            "schedule_applied_at": transaction.schedule_applied_at,
            "created_at": transaction.created_at,
            "updated_at": datetime.now(timezone.utc),
        }

    def _to_entity(self, model: PaymentTransactionModel) -> PaymentTransaction:
        return PaymentTransaction(
            id=UUID(str(model.id)),
            transaction_id=model.transaction_id,
            payment_id=model.payment_id,
            application_id=model.application_id,
            payment_schedule_id=model.payment_schedule_id,
            is_settlement=bool(model.is_settlement),
            amount=Decimal(str(model.amount)),
            method=PaymentMethod(model.method),
            status=TransactionStatus(model.status),
            failure_reason=model.failure_reason,
            completed_at=model.completed_at,
            schedule_applied_at=model.schedule_applied_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
