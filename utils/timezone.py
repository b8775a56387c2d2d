"""UTC-everywhere time handling and calendar arithmetic."""

import calendar
from datetime import datetime, timezone


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def add_months(dt: datetime, months: int) -> datetime:
    """
    Return a new datetime `months` calendar months after `dt`.

    The input is never mutated. Days past the end of the target month are
    clamped (Jan 31 + 1 month = Feb 28/29).
    """
    if months < 0:
        raise ValueError("months must be non-negative")

    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def add_years(dt: datetime, years: int) -> datetime:
    """Return a new datetime `years` calendar years after `dt` (Feb 29 clamps to Feb 28)."""
    return add_months(dt, years * 12)
