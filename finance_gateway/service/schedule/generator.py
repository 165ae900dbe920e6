"""
Installment schedule generation and date shifting.

Pure functions: no I/O, no clock access except through the optional
`today` argument, which defaults to the current date.
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import uuid4

from dateutil.relativedelta import relativedelta

from finance_gateway.domain.entities import (
    PaymentScheduleEntry,
    PaymentStatus,
    ScheduleInterval,
)
from finance_gateway.domain.entities.schedule import to_decimal


def normalize_interval(value: "str | ScheduleInterval | None") -> ScheduleInterval:
    """Trimmed, case-insensitive: "daily" selects the daily cadence, anything else monthly."""
    return ScheduleInterval.parse(value)


def default_start_date(interval: ScheduleInterval, today: date) -> date:
    """Tomorrow for daily schedules, the first day of next month otherwise."""
    if interval == ScheduleInterval.DAILY:
        return today + timedelta(days=1)
    return today.replace(day=1) + relativedelta(months=1)


def add_periods(start: date, periods: int, interval: ScheduleInterval) -> date:
    """
    Offset a date by whole periods.

    Month offsets are always taken from `start` and clamp to the end
    of shorter months (Jan 31 + 1 month = Feb 28).
    """
    if interval == ScheduleInterval.DAILY:
        return start + timedelta(days=periods)
    return start + relativedelta(months=periods)


def _period_key(day: date, interval: ScheduleInterval) -> tuple:
    if interval == ScheduleInterval.DAILY:
        return (day.year, day.month, day.day)
    return (day.year, day.month)


def generate_schedule(
    monthly_payment: Decimal | int | float | str,
    tenure_months: int,
    interval: "str | ScheduleInterval | None" = ScheduleInterval.MONTHLY,
    start_date: Optional[date] = None,
    existing_schedule: Optional[Sequence[PaymentScheduleEntry]] = None,
    today: Optional[date] = None,
) -> List[PaymentScheduleEntry]:
    """
    Build a payment schedule of `tenure_months` entries.

    Status of entry i, evaluated once against `today`:
    - paid at the same index in `existing_schedule`: stays paid and
      keeps its paid date (falling back to the due date)
    - due before the current period: paid on its due date
    - due within the current period (same day / same month): active
    - otherwise: upcoming

    Args:
        monthly_payment: Amount of every entry
        tenure_months: Number of entries
        interval: "Monthly" or "Daily" (free-form, see normalize_interval)
        start_date: First due date; defaults per default_start_date
        existing_schedule: Previous schedule whose paid entries carry forward
        today: Reference date for status evaluation

    Returns:
        Entries ordered by due date
    """
    cadence = normalize_interval(interval)
    today = today or date.today()
    start = start_date or default_start_date(cadence, today)
    amount = to_decimal(monthly_payment)
    existing = list(existing_schedule or [])
    current_period = _period_key(today, cadence)

    schedule: List[PaymentScheduleEntry] = []

    for index in range(max(tenure_months, 0)):
        due = add_periods(start, index, cadence)
        previous = existing[index] if index < len(existing) else None
        entry_id = previous.id if previous is not None and previous.id else str(uuid4())

        if previous is not None and previous.is_paid:
            status = PaymentStatus.PAID
            paid_date = previous.paid_date or due
        elif _period_key(due, cadence) < current_period:
            status = PaymentStatus.PAID
            paid_date = due
        elif _period_key(due, cadence) == current_period:
            status = PaymentStatus.ACTIVE
            paid_date = None
        else:
            status = PaymentStatus.UPCOMING
            paid_date = None

        schedule.append(
            PaymentScheduleEntry(
                id=entry_id,
                due_date=due,
                amount=amount,
                status=status,
                paid_date=paid_date,
            )
        )

    return schedule


def period_difference(
    old_date: date,
    new_date: date,
    interval: ScheduleInterval,
) -> int:
    """Signed number of whole days (daily) or whole months (monthly) between two dates."""
    if interval == ScheduleInterval.DAILY:
        return (new_date - old_date).days

    delta = relativedelta(new_date, old_date)
    return delta.years * 12 + delta.months


def shift_schedule(
    schedule: Sequence[PaymentScheduleEntry],
    new_first_date: date,
    interval: "str | ScheduleInterval | None" = ScheduleInterval.MONTHLY,
) -> List[PaymentScheduleEntry]:
    """
    Move every due date by the distance between the current first
    due date and `new_first_date`.

    Status and paid dates are left untouched. An empty schedule or a
    zero distance returns an unchanged copy.
    """
    entries = list(schedule)
    if not entries:
        return []

    cadence = normalize_interval(interval)
    difference = period_difference(entries[0].due_date, new_first_date, cadence)

    if difference == 0:
        return [replace(entry) for entry in entries]

    return [
        replace(entry, due_date=add_periods(entry.due_date, difference, cadence))
        for entry in entries
    ]
