"""
Date, duration and id helpers shared by the stores, queries and rules.

Stored timestamps are ISO-8601 strings. Anything compared against the user's
calendar goes through to_local() first, so "today" always means the local date.
"""

import math
import uuid
from datetime import UTC, date, datetime, timedelta

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

DAY = timedelta(days=1)


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    uid = uuid.uuid4().hex[:16]
    if prefix:
        return f"{prefix}_{uid}"
    return uid


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def to_local(dt: datetime) -> datetime:
    """Aware datetime in the local zone. Naive input is taken as local time."""
    return dt.astimezone()


def parse_timestamp(value) -> datetime | None:
    """
    Parse an ISO-8601 date or date-time into an aware local datetime.

    Returns None for empty or unparseable input instead of raising.
    Date-only strings resolve to local midnight.
    """
    if isinstance(value, datetime):
        return to_local(value)
    if isinstance(value, date):
        return to_local(datetime(value.year, value.month, value.day))
    if not value or not isinstance(value, str):
        return None
    try:
        return to_local(datetime.fromisoformat(value.strip()))
    except ValueError:
        return None


def to_date(value) -> date | None:
    """Local calendar date of a date/date-time value, or None."""
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def format_date(value) -> str | None:
    """``YYYY-MM-DD`` of the local calendar date, or None if unparseable."""
    d = to_date(value)
    return d.isoformat() if d else None


def weekday_name(value: datetime | date) -> str:
    """English weekday name, independent of the process locale."""
    return WEEKDAY_NAMES[value.weekday()]


def minutes_between(start, end) -> float | None:
    """Signed span in minutes between two timestamps, or None if either fails to parse."""
    start_dt = parse_timestamp(start)
    end_dt = parse_timestamp(end)
    if start_dt is None or end_dt is None:
        return None
    return (end_dt - start_dt).total_seconds() / 60


def round_half_up(value: float) -> int:
    # round() is banker's rounding; percentages round .5 up.
    return math.floor(value + 0.5)


def minutes_to_hours(minutes: float) -> float:
    """Minutes to hours, rounded to one decimal."""
    return round_half_up(minutes / 60 * 10) / 10


def hours_to_minutes(hours: float) -> float:
    return hours * 60


def format_duration(minutes: int) -> str:
    """
    Human duration: ``45m``, ``2h``, ``1h 30m``.
    """
    hours, mins = divmod(int(minutes), 60)
    if hours == 0:
        return f"{mins}m"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}m"


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def is_same_day(a: datetime, b: datetime) -> bool:
    return to_local(a).date() == to_local(b).date()


def week_start(value: date | None = None) -> date:
    """Monday of the week containing *value* (default: today)."""
    d = value or date.today()
    if isinstance(d, datetime):
        d = d.date()
    return d - timedelta(days=d.weekday())


def week_end(value: date | None = None) -> date:
    """Sunday of the week containing *value*."""
    return week_start(value) + timedelta(days=6)


def month_start(value: date | None = None) -> date:
    d = value or date.today()
    return date(d.year, d.month, 1)


def month_end(value: date | None = None) -> date:
    d = value or date.today()
    if d.month == 12:
        return date(d.year, 12, 31)
    return date(d.year, d.month + 1, 1) - timedelta(days=1)
