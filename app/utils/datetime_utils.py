"""
Datetime helpers.
- Audit timestamps are stored timezone-aware in UTC.
- Leave ranges and work schedules are wall-clock values: an aware timestamp keeps
  its local clock reading and drops the offset before it is compared with a schedule.
"""
from datetime import date, datetime, time, timezone
from typing import Union

UTC = timezone.utc

Timestamp = Union[datetime, date, str]


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for decided_at, created_at, etc."""
    return datetime.now(UTC)


def to_wall_clock(value: Timestamp) -> datetime:
    """
    Coerce a datetime, date or ISO-8601 string into a naive wall-clock datetime.

    Dates become midnight of that day.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).replace(tzinfo=None)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


def parse_clock(value: str) -> time:
    """
    Parse an "HH:MM" (or "HH:MM:SS") clock reading.

    Raises:
        ValueError: If the string is not a valid clock time
    """
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid clock time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def month_key(value: Union[date, datetime]) -> str:
    """Calendar month bucket in "YYYY-MM" format."""
    return f"{value.year}-{value.month:02d}"


def full_years_between(earlier: date, later: date) -> int:
    """Completed years from earlier to later (anniversary based); 0 if later precedes earlier."""
    if later < earlier:
        return 0
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years
