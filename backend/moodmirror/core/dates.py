"""
Date helpers for daily records and the weekly report window.

All dates are ISO 8601 strings (YYYY-MM-DD) taken from the host's local
clock. ISO strings sort lexically in chronological order, which the
aggregator relies on for range filtering.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from .errors import ValidationError

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD")


def today(now: Optional[datetime] = None) -> str:
    """Today's date in the server's local clock."""
    current = now or datetime.now()
    return current.date().isoformat()


def week_start(reference: Optional[DateLike] = None) -> str:
    """
    Monday on or before the reference date.

    Args:
        reference: Date or YYYY-MM-DD string; defaults to today

    Returns:
        str: Monday as YYYY-MM-DD
    """
    ref = parse_date(reference) if reference is not None else date.today()
    # date.weekday(): Monday=0 ... Sunday=6, so Sunday steps back 6 days
    return (ref - timedelta(days=ref.weekday())).isoformat()


def last_n_days(n: int, end: Optional[DateLike] = None) -> List[str]:
    """The n dates ending at `end` (inclusive), oldest first."""
    end_date = parse_date(end) if end is not None else date.today()
    return [(end_date - timedelta(days=offset)).isoformat() for offset in range(n - 1, -1, -1)]


def range_length(start: DateLike, end: DateLike) -> int:
    """Number of days in the inclusive range."""
    return (parse_date(end) - parse_date(start)).days + 1
