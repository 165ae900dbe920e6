"""Installment plan and payment schedule domain entities."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class PaymentStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAID = "paid"
    # Outstanding, but outside the upcoming/active lifecycle (due, partially_paid, ...)
    UNPAID = "unpaid"

    @classmethod
    def parse(cls, value: Any) -> "tuple[PaymentStatus, Optional[str]]":
        """Read a stored status; unknown values become UNPAID with the raw value kept."""
        if value is None or value == "":
            return cls.UPCOMING, None
        try:
            return cls(value), None
        except ValueError:
            return cls.UNPAID, str(value)


class ScheduleInterval(str, Enum):
    MONTHLY = "Monthly"
    DAILY = "Daily"

    @classmethod
    def parse(cls, value: "str | ScheduleInterval | None") -> "ScheduleInterval":
        """Read a free-form interval label; anything but "daily" is monthly."""
        if isinstance(value, ScheduleInterval):
            return value
        if value and value.strip().lower() == "daily":
            return cls.DAILY
        return cls.MONTHLY


class ScheduleUpdateMode(str, Enum):
    """How a completed payment was applied to a plan."""

    SETTLEMENT = "settlement"
    TARGETED = "targeted"
    NEXT_DUE = "next_due"
    NONE = "none"


OVERDUE = "overdue"

_ENTRY_KEYS = {"id", "dueDate", "amount", "status", "paidDate"}
_PLAN_KEYS = {
    "tenure",
    "interval",
    "monthlyAmount",
    "totalAmount",
    "downPayment",
    "schedule",
}


def parse_date(value: Any) -> Optional[date]:
    """Parse a stored ISO date, tolerating full timestamps."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def json_number(value: Decimal) -> int | float:
    """Render a decimal as a JSON number, integral values without a fraction."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


@dataclass
class PaymentScheduleEntry:
    """
    One due payment within an installment plan.

    Attributes:
        due_date: Calendar date the payment is due
        amount: Payment amount
        status: upcoming, active, paid or unpaid
        paid_date: Date the payment was settled, when paid
        id: Stable identifier used to target the entry from a payment
        raw_status: Stored status this service does not recognise, kept verbatim
        extra: Unknown keys carried through from storage
    """

    due_date: date
    amount: Decimal
    status: PaymentStatus = PaymentStatus.UPCOMING
    paid_date: Optional[date] = None
    id: Optional[str] = None
    raw_status: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_label(self) -> str:
        return self.raw_status or self.status.value

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID

    def mark_paid(self, paid_on: date) -> None:
        self.status = PaymentStatus.PAID
        self.raw_status = None
        self.paid_date = paid_on

    def display_status(self, today: date) -> str:
        """Status for presentation; unpaid entries past their due date are overdue."""
        if not self.is_paid and self.due_date < today:
            return OVERDUE
        return self.status_label

    def to_dict(self) -> dict:
        data = dict(self.extra)
        if self.id is not None:
            data["id"] = self.id
        data["dueDate"] = self.due_date.isoformat()
        data["amount"] = json_number(self.amount)
        data["status"] = self.status_label
        if self.paid_date is not None:
            data["paidDate"] = self.paid_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentScheduleEntry":
        """
        Build an entry from its stored JSON form.

        Raises:
            ValueError: If a date cannot be read
        """
        status, raw_status = PaymentStatus.parse(data.get("status"))
        return cls(
            id=data.get("id"),
            due_date=parse_date(data["dueDate"]),
            amount=to_decimal(data.get("amount")),
            status=status,
            raw_status=raw_status,
            paid_date=parse_date(data.get("paidDate")),
            extra={k: v for k, v in data.items() if k not in _ENTRY_KEYS},
        )


@dataclass
class InstallmentPlan:
    """Financing terms and the ordered schedule of due payments."""

    tenure: str
    interval: ScheduleInterval
    monthly_amount: Decimal
    total_amount: Decimal
    down_payment: Decimal = Decimal("0")
    schedule: List[PaymentScheduleEntry] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def first_due_date(self) -> Optional[date]:
        return self.schedule[0].due_date if self.schedule else None

    @property
    def paid_count(self) -> int:
        return sum(1 for entry in self.schedule if entry.is_paid)

    @property
    def remaining_amount(self) -> Decimal:
        return sum(
            (entry.amount for entry in self.schedule if not entry.is_paid),
            Decimal("0"),
        )

    def mark_all_paid(self, paid_on: date) -> int:
        """Settle every outstanding entry; returns how many changed."""
        changed = 0
        for entry in self.schedule:
            if not entry.is_paid:
                entry.mark_paid(paid_on)
                changed += 1
        return changed

    def mark_entry_paid(self, entry_id: str, paid_on: date) -> bool:
        """Settle the entry with the given id; False if no such unpaid entry."""
        for entry in self.schedule:
            if entry.id == entry_id:
                if entry.is_paid:
                    return False
                entry.mark_paid(paid_on)
                return True
        return False

    def mark_next_due_paid(self, paid_on: date) -> bool:
        """Settle the first upcoming or active entry."""
        for entry in self.schedule:
            if entry.status in (PaymentStatus.UPCOMING, PaymentStatus.ACTIVE):
                entry.mark_paid(paid_on)
                return True
        return False

    def apply_payment(
        self,
        paid_on: date,
        settlement: bool = False,
        schedule_entry_id: Optional[str] = None,
    ) -> ScheduleUpdateMode:
        """
        Apply one completed payment to the schedule.

        Settlement pays every outstanding entry, an explicit entry id
        pays only that entry, otherwise the next due entry is paid.

        Returns:
            The mode that changed the schedule, NONE if nothing changed
        """
        if settlement:
            if self.mark_all_paid(paid_on):
                return ScheduleUpdateMode.SETTLEMENT
            return ScheduleUpdateMode.NONE

        if schedule_entry_id:
            if self.mark_entry_paid(schedule_entry_id, paid_on):
                return ScheduleUpdateMode.TARGETED
            return ScheduleUpdateMode.NONE

        if self.mark_next_due_paid(paid_on):
            return ScheduleUpdateMode.NEXT_DUE
        return ScheduleUpdateMode.NONE

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update(
            {
                "tenure": self.tenure,
                "interval": self.interval.value,
                "monthlyAmount": json_number(self.monthly_amount),
                "totalAmount": json_number(self.total_amount),
                "downPayment": json_number(self.down_payment),
                "schedule": [entry.to_dict() for entry in self.schedule],
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "InstallmentPlan":
        return cls(
            tenure=data.get("tenure") or "",
            interval=ScheduleInterval.parse(data.get("interval")),
            monthly_amount=to_decimal(data.get("monthlyAmount")),
            total_amount=to_decimal(data.get("totalAmount")),
            down_payment=to_decimal(data.get("downPayment")),
            schedule=[
                PaymentScheduleEntry.from_dict(item)
                for item in data.get("schedule") or []
            ],
            extra={k: v for k, v in data.items() if k not in _PLAN_KEYS},
        )
