"""Payment transaction entity tracking one gateway payment."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from .application import utcnow


class TransactionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CARD = "card"


RESOLVED_STATUSES = frozenset(
    {
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
    }
)


@dataclass
class PaymentTransaction:
    """
    A payment correlated by the client-supplied transaction id.

    Created pending when a payment is initiated and driven to a
    terminal status by gateway notifications or verification.

    Attributes:
        transaction_id: Client correlation key, unique per payment
        amount: Payment amount
        status: Canonical payment status
        payment_id: Identifier assigned by the gateway
        application_id: Financing application the payment belongs to
        payment_schedule_id: Schedule entry the payment targets, if any
        is_settlement: True when the payment settles the whole plan
        schedule_applied_at: When the plan was updated for this payment
    """

    transaction_id: str
    amount: Decimal
    status: TransactionStatus = TransactionStatus.PENDING
    method: PaymentMethod = PaymentMethod.CARD
    payment_id: Optional[str] = None
    application_id: Optional[str] = None
    payment_schedule_id: Optional[str] = None
    is_settlement: bool = False
    failure_reason: Optional[str] = None
    completed_at: Optional[datetime] = None
    schedule_applied_at: Optional[datetime] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_completed(self) -> bool:
        return self.status == TransactionStatus.COMPLETED

    @property
    def is_resolved(self) -> bool:
        return self.status in RESOLVED_STATUSES

    def can_transition_to(self, status: TransactionStatus) -> bool:
        """Completed is terminal; every other status may be overwritten."""
        if self.is_completed:
            return status == TransactionStatus.COMPLETED
        return True
