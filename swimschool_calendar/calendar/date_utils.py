"""Date arithmetic helpers for recurrence expansion.

Weekdays follow the portal's numbering (Sunday=0 ... Saturday=6), which differs
from Python's ``date.weekday()`` (Monday=0).
"""

import logging
from datetime import UTC, date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def sunday_based_weekday(d: date) -> int:
    """Return the weekday of ``d`` with Sunday=0 and Saturday=6."""
    return (d.weekday() + 1) % 7


def add_months(d: date, months: int) -> date:
    """Add calendar months to a date, clamping to the last day of the target month.

    Examples:
        >>> add_months(date(2024, 1, 31), 1)
        datetime.date(2024, 2, 29)
        >>> add_months(date(2023, 1, 31), 1)
        datetime.date(2023, 2, 28)
    """
    return d + relativedelta(months=months)


def add_years(d: date, years: int) -> date:
    """Add calendar years to a date; Feb 29 clamps to Feb 28 in common years."""
    return d + relativedelta(years=years)


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string (as produced by the portal's time inputs).

    Raises:
        ValueError: If the value is not a valid 24-hour time
    """
    text = value.strip()
    try:
        hours_text, minutes_text = text.split(":", 1)
        return time(int(hours_text), int(minutes_text[:2]))
    except ValueError as e:
        raise ValueError(f"Invalid time of day {value!r}, expected HH:MM") from e


def resolve_timezone(name: Optional[str]) -> Optional[ZoneInfo]:
    """Look up an IANA timezone name.

    Raises:
        ValueError: If the name is not a known timezone
    """
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone {name!r}") from e


def combine_date_and_time(
    d: date, time_of_day: time, time_zone: Optional[str] = None
) -> datetime:
    """Build the wall-clock start of an occurrence.

    The same wall-clock time is used for every occurrence, so a 09:30 class
    stays at 09:30 across DST changes when a timezone is given.
    """
    tz = resolve_timezone(time_zone)
    return datetime.combine(d, time_of_day, tzinfo=tz)


def serialize_datetime_utc(dt: datetime) -> str:
    """Serialize a datetime to ISO 8601 UTC with a Z suffix.

    Naive datetimes are assumed to already be UTC.

    Examples:
        >>> serialize_datetime_utc(datetime(2024, 1, 1, 9, 30, tzinfo=UTC))
        '2024-01-01T09:30:00Z'
    """
    dt_utc = dt.astimezone(UTC) if dt.tzinfo is not None else dt.replace(tzinfo=UTC)
    return dt_utc.isoformat().replace("+00:00", "Z")
