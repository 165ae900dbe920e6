"""
Tenure label parsing and formatting.

Tenure is entered as free text ("36 Months", "3 Years",
"2 Years 6 Months") and stored on the plan as a label; the schedule
engine works in whole months.
"""

import re

DEFAULT_TENURE_MONTHS = 12

_YEARS_PATTERN = re.compile(r"(\d+)\s*year", re.IGNORECASE)
_MONTHS_PATTERN = re.compile(r"(\d+)\s*month", re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"\d+")


def parse_tenure_to_months(label: str | None) -> int:
    """
    Convert a tenure label to a number of months.

    Year and month components are summed. A bare number is read as
    years, and a label without any number counts as one year.

    Args:
        label: Free-text tenure, e.g. "2 Years 6 Months"

    Returns:
        Tenure in months (always positive)
    """
    if not label or not label.strip():
        return DEFAULT_TENURE_MONTHS

    years_match = _YEARS_PATTERN.search(label)
    months_match = _MONTHS_PATTERN.search(label)

    if years_match or months_match:
        years = int(years_match.group(1)) if years_match else 0
        months = int(months_match.group(1)) if months_match else 0
        total = years * 12 + months
        if total > 0:
            return total
        return DEFAULT_TENURE_MONTHS

    number_match = _NUMBER_PATTERN.search(label)
    years = int(number_match.group(0)) if number_match else 0
    return (years if years > 0 else 1) * 12


def format_months_to_tenure(months: int) -> str:
    """Render a month count as a tenure label ("1 Year", "3 Years", "18 Months")."""
    if months <= 0:
        return f"{DEFAULT_TENURE_MONTHS} Months"

    if months % 12 == 0:
        years = months // 12
        return f"{years} Year" if years == 1 else f"{years} Years"

    return f"{months} Months"
