"""
Installment Schedule Engine

Generates and maintains the ordered sequence of due payments of an
installment plan.
"""

from .generator import (
    add_periods,
    default_start_date,
    generate_schedule,
    normalize_interval,
    period_difference,
    shift_schedule,
)
from .tenure import (
    DEFAULT_TENURE_MONTHS,
    format_months_to_tenure,
    parse_tenure_to_months,
)
from .views import aggregate_daily_schedule_to_monthly, is_schedule_likely_daily

__all__ = [
    # Generation
    "add_periods",
    "default_start_date",
    "generate_schedule",
    "normalize_interval",
    "period_difference",
    "shift_schedule",
    # Tenure
    "DEFAULT_TENURE_MONTHS",
    "format_months_to_tenure",
    "parse_tenure_to_months",
    # Views
    "aggregate_daily_schedule_to_monthly",
    "is_schedule_likely_daily",
]
