"""Data transfer objects for installment plan operations."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from finance_gateway.domain.entities import (
    Application,
    InstallmentPlan,
    PaymentScheduleEntry,
)


@dataclass(frozen=True)
class ScheduleRequest:
    """Input for previewing a schedule without persisting it."""

    monthly_payment: Decimal
    tenure: str
    interval: Optional[str] = None
    start_date: Optional[date] = None
    vehicle_price: Decimal = Decimal("0")
    down_payment: Decimal = Decimal("0")

    def validate(self) -> List[str]:
        errors = []

        if self.monthly_payment <= 0:
            errors.append("Monthly amount must be greater than 0")

        if self.down_payment < 0:
            errors.append("Down payment cannot be negative")

        return errors


@dataclass(frozen=True)
class PlanUpdateRequest:
    """Administrative edit of an application's installment terms."""

    down_payment: Decimal
    monthly_amount: Decimal
    total_amount: Decimal
    tenure: str
    interval: Optional[str] = None
    first_payment_date: Optional[date] = None
    regenerate_schedule: bool = False

    def validate(self, vehicle_price: Decimal) -> List[str]:
        errors = []

        if self.down_payment < 0:
            errors.append("Down payment cannot be negative")
        elif self.down_payment > vehicle_price:
            errors.append("Down payment cannot exceed vehicle price")

        if self.monthly_amount <= 0:
            errors.append("Monthly amount must be greater than 0")

        if self.total_amount <= 0:
            errors.append("Total amount must be greater than 0")

        return errors


@dataclass(frozen=True)
class ScheduleEntryDTO:
    id: Optional[str]
    due_date: str
    amount: Decimal
    status: str
    display_status: str
    paid_date: Optional[str]

    @classmethod
    def from_entity(cls, entry: PaymentScheduleEntry, today: date) -> "ScheduleEntryDTO":
        return cls(
            id=entry.id,
            due_date=entry.due_date.isoformat(),
            amount=entry.amount,
            status=entry.status_label,
            display_status=entry.display_status(today),
            paid_date=entry.paid_date.isoformat() if entry.paid_date else None,
        )


@dataclass(frozen=True)
class SchedulePreviewResponse:
    tenure: str
    tenure_months: int
    interval: str
    loan_amount: Decimal
    schedule: List[ScheduleEntryDTO]


@dataclass(frozen=True)
class PlanResponse:
    """Response data for an application's installment plan."""

    application_id: str
    vehicle_price: Decimal
    down_payment: Decimal
    loan_amount: Decimal
    tenure: str
    tenure_months: int
    interval: str
    monthly_amount: Decimal
    total_amount: Decimal
    paid_count: int
    remaining_amount: Decimal
    schedule: List[ScheduleEntryDTO]

    @classmethod
    def from_entity(
        cls,
        application: Application,
        plan: InstallmentPlan,
        tenure_months: int,
        today: date,
        schedule: Optional[List[PaymentScheduleEntry]] = None,
    ) -> "PlanResponse":
        entries = plan.schedule if schedule is None else schedule
        return cls(
            application_id=application.id,
            vehicle_price=application.vehicle_price,
            down_payment=application.down_payment,
            loan_amount=application.loan_amount,
            tenure=plan.tenure,
            tenure_months=tenure_months,
            interval=plan.interval.value,
            monthly_amount=plan.monthly_amount,
            total_amount=plan.total_amount,
            paid_count=plan.paid_count,
            remaining_amount=plan.remaining_amount,
            schedule=[ScheduleEntryDTO.from_entity(e, today) for e in entries],
        )
