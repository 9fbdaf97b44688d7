"""Datetime utilities for timezone-aware UTC timestamps and day arithmetic.

Usage:
    from batch_planner.utils.datetime_utils import utc_now, to_iso_date

    # For SQLAlchemy Column defaults
    created_at = Column(DateTime, default=utc_now)
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalize datetime to naive UTC for comparison.

    SQLite stores datetimes as naive (no timezone info). Mixing naive and
    aware values in min()/sort raises TypeError, so every due date passes
    through here before it is compared.

    Args:
        dt: Datetime to normalize (may be None, naive, or aware)

    Returns:
        Naive datetime in UTC, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def combine_due(event_date: Union[date, datetime], due_time: Optional[Union[time, datetime]] = None) -> datetime:
    """Combine an order's event date with its pickup/delivery time.

    Args:
        event_date: The order's event date (date or datetime)
        due_time: Optional time of day (a time, or a datetime whose time is used)

    Returns:
        Naive datetime for the due moment; midnight when no time is known
    """
    if isinstance(event_date, datetime):
        event_date = to_naive_utc(event_date).date()
    if isinstance(due_time, datetime):
        due_time = to_naive_utc(due_time).time()
    return datetime.combine(event_date, due_time or time.min)


def subtract_days(value: Union[date, datetime], days: int) -> date:
    """Subtract calendar days from a date (no business-day awareness).

    Examples:
        >>> subtract_days(date(2025, 6, 14), 3)
        datetime.date(2025, 6, 11)
    """
    if isinstance(value, datetime):
        value = value.date()
    return value - timedelta(days=days)


def to_iso_date(value: Optional[Union[date, datetime]]) -> Optional[str]:
    """Format a date (or the date part of a datetime) as YYYY-MM-DD."""
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def to_iso_datetime(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO-8601 string, passing None through."""
    if value is None:
        return None
    return value.isoformat()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Parse a YYYY-MM-DD (or full ISO timestamp) string into a date.

    Raises:
        ValueError: If the string is not an ISO date
    """
    if value is None or value == "":
        return None
    if "T" in value:
        return datetime.fromisoformat(value).date()
    return date.fromisoformat(value)
