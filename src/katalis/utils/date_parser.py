"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

PERIODS = (
    "this-month",
    "this-quarter",
    "this-year",
    "this-week",
    "last-month",
    "last-quarter",
    "last-year",
    "last-week",
)


def _start_of(unit: str, today: date) -> date:
    if unit == "week":
        return today - timedelta(days=today.weekday())
    if unit == "month":
        return today.replace(day=1)
    if unit == "quarter":
        return today.replace(month=3 * ((today.month - 1) // 3) + 1, day=1)
    if unit == "year":
        return today.replace(month=1, day=1)
    raise ValueError(f"Unknown period unit: '{unit}'")


_STEP = {
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


def parse_date(value: Union[str, date, datetime], today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports absolute dates ("2024-01-15", "15 Jan 2024") and relative ones:
    "today", "yesterday", "tomorrow", and "this/last/next" followed by
    week, month, quarter or year (resolving to the first day of that period).

    Args:
        value: Date string, or a date/datetime which is returned as a date
        today: Reference date for relative expressions (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None:
        raise ValueError("Empty date string")
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    text = value.strip().lower()
    if not text:
        raise ValueError("Empty date string")
    today = today or date.today()

    fixed = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in fixed:
        return fixed[text]

    prefix, _, unit = text.partition(" ")
    if prefix in ("this", "last", "next") and unit in _STEP:
        start = _start_of(unit, today)
        if prefix == "last":
            return start - _STEP[unit]
        if prefix == "next":
            return start + _STEP[unit]
        return start

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError, TypeError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")


def get_date_range(period: str, today: Optional[date] = None) -> tuple[date, date]:
    """Get start and end dates for a named period.

    Current periods end today; previous periods end on their last day.

    Args:
        period: One of PERIODS, e.g. "this-month" or "last-quarter"
        today: Reference date (defaults to today)

    Returns:
        Tuple of (start_date, end_date)

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = today or date.today()
    prefix, _, unit = period.partition("-")

    if period not in PERIODS:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: {', '.join(PERIODS)}"
        )

    start = _start_of(unit, today)
    if prefix == "this":
        return (start, today)
    return (start - _STEP[unit], start - timedelta(days=1))
