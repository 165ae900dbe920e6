"""Read-only projections of a stored schedule."""

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Sequence

from finance_gateway.domain.entities import PaymentScheduleEntry, PaymentStatus


def _month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def is_schedule_likely_daily(schedule: Sequence[PaymentScheduleEntry]) -> bool:
    """True when any calendar month holds more than one entry."""
    seen = set()
    for entry in schedule:
        key = _month_key(entry.due_date)
        if key in seen:
            return True
        seen.add(key)
    return False


def aggregate_daily_schedule_to_monthly(
    schedule: Sequence[PaymentScheduleEntry],
) -> List[PaymentScheduleEntry]:
    """
    Collapse a daily schedule into one entry per calendar month.

    Each month is due on its last daily due date and sums the daily
    amounts. A month is paid only when every day in it is paid, active
    when any day is active, upcoming otherwise. Months that sum to zero
    are dropped.
    """
    months: Dict[str, List[PaymentScheduleEntry]] = OrderedDict()
    for entry in sorted(schedule, key=lambda e: e.due_date):
        months.setdefault(_month_key(entry.due_date), []).append(entry)

    aggregated: List[PaymentScheduleEntry] = []

    for key, entries in months.items():
        amount = sum((e.amount for e in entries), Decimal("0"))
        if amount == 0:
            continue

        if all(e.is_paid for e in entries):
            status = PaymentStatus.PAID
            paid_dates = [e.paid_date for e in entries if e.paid_date is not None]
            paid_date = max(paid_dates) if paid_dates else None
        elif any(e.status == PaymentStatus.ACTIVE for e in entries):
            status = PaymentStatus.ACTIVE
            paid_date = None
        else:
            status = PaymentStatus.UPCOMING
            paid_date = None

        aggregated.append(
            PaymentScheduleEntry(
                id=key,
                due_date=max(e.due_date for e in entries),
                amount=amount,
                status=status,
                paid_date=paid_date,
            )
        )

    return aggregated
