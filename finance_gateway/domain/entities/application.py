"""Financing application entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from .schedule import InstallmentPlan


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Application:
    """
    A vehicle financing application.

    Only the fields the payment and schedule flows touch are modelled;
    the installment plan is stored as JSON on the application row.
    """

    vehicle_price: Decimal
    down_payment: Decimal = Decimal("0")
    installment_plan: Optional[InstallmentPlan] = None
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def loan_amount(self) -> Decimal:
        return max(self.vehicle_price - self.down_payment, Decimal("0"))
