"""
Hours calculator - converts a leave date/time range into consumed work hours

Two methods:
- compute_hours_by_schedule: exact figure against the employee's per-date
  work schedules, excluding unscheduled time and the meal break.
- compute_hours_simple: approximation for when no schedule data exists
  (weekdays only, standard 09:00-18:00 window, capped per day). Callers must
  present its result as an estimate.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Optional, Sequence, Tuple

from app.constants import (
    LUNCH_BREAK_START,
    LUNCH_BREAK_END,
    DEFAULT_DAILY_WORK_HOURS,
    DEFAULT_WORKDAY_START,
    DEFAULT_WORKDAY_END,
)
from app.core.errors import InvalidRange, EndBeforeStart, InvalidSchedule
from app.utils.datetime_utils import Timestamp, to_wall_clock, parse_clock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleEntry:
    """Expected working window for one date. clock_out earlier than clock_in means an overnight shift."""
    work_date: Optional[date]
    clock_in: str
    clock_out: str


def parse_timestamp(value: Timestamp, field: str = "timestamp") -> datetime:
    """
    Parse a leave boundary into a wall-clock datetime.

    Raises:
        InvalidRange: If the value is missing or unparseable
    """
    if value is None:
        raise InvalidRange(f"{field} is required")
    try:
        return to_wall_clock(value)
    except (TypeError, ValueError):
        raise InvalidRange(f"{field} is not a valid date/time: {value!r}")


def _parse_schedule_clock(entry: ScheduleEntry) -> Tuple[time, time]:
    try:
        return parse_clock(entry.clock_in), parse_clock(entry.clock_out)
    except (AttributeError, TypeError, ValueError):
        raise InvalidSchedule(
            f"Work schedule for {entry.work_date} has invalid clock times "
            f"'{entry.clock_in}'-'{entry.clock_out}' (expected HH:MM)"
        )


def _index_schedules(schedules: Iterable[ScheduleEntry]) -> Dict[date, ScheduleEntry]:
    """
    Map each schedule to its date.

    An entry without a date cannot be correlated to a day of the request and
    is rejected rather than applied to every day.
    """
    by_date: Dict[date, ScheduleEntry] = {}
    for entry in schedules:
        if entry.work_date is None:
            raise InvalidSchedule("Every work schedule entry must carry the date it applies to")
        _parse_schedule_clock(entry)
        # first entry wins for duplicated dates
        by_date.setdefault(entry.work_date, entry)
    return by_date


def validate_range(
    start: Timestamp,
    end: Timestamp,
    schedules: Optional[Sequence[ScheduleEntry]] = None
) -> Tuple[datetime, datetime]:
    """
    Validate a leave interval.

    Schedule entries, when given, are checked for structure only (date present,
    parseable clock times). A day without a matching schedule is not an error.

    Returns:
        (start, end) as wall-clock datetimes

    Raises:
        InvalidRange: If either timestamp is unparseable
        EndBeforeStart: If end <= start
        InvalidSchedule: If a schedule entry is malformed
    """
    start_dt = parse_timestamp(start, "start")
    end_dt = parse_timestamp(end, "end")
    if end_dt <= start_dt:
        raise EndBeforeStart(f"End time {end_dt.isoformat()} must be later than start time {start_dt.isoformat()}")
    if schedules:
        _index_schedules(schedules)
    return start_dt, end_dt


def _overlap_minutes(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> float:
    overlap_start = max(a_start, b_start)
    overlap_end = min(a_end, b_end)
    if overlap_start >= overlap_end:
        return 0.0
    return (overlap_end - overlap_start).total_seconds() / 60


def _day_hours(
    day: date,
    day_start: datetime,
    day_end: datetime,
    entry: ScheduleEntry,
    lunch_start: time,
    lunch_end: time,
) -> float:
    clock_in, clock_out = _parse_schedule_clock(entry)
    work_start = datetime.combine(day, clock_in)
    work_end = datetime.combine(day, clock_out)
    if work_end < work_start:
        work_end += timedelta(days=1)

    leave_start = max(day_start, work_start)
    leave_end = min(day_end, work_end)
    if leave_start >= leave_end:
        return 0.0

    minutes = (leave_end - leave_start).total_seconds() / 60
    lunch_minutes = _overlap_minutes(
        leave_start,
        leave_end,
        datetime.combine(leave_start.date(), lunch_start),
        datetime.combine(leave_start.date(), lunch_end),
    )
    return max(0.0, (minutes - lunch_minutes) / 60)


def compute_hours_by_schedule(
    start: Timestamp,
    end: Timestamp,
    schedules: Sequence[ScheduleEntry],
    lunch_start: time = LUNCH_BREAK_START,
    lunch_end: time = LUNCH_BREAK_END,
) -> float:
    """
    Calculate consumed work hours for a leave range against per-date schedules.

    Each calendar day from start.date to end.date is computed independently:
    the request's bounds for that day (clipped to the actual start/end on the
    boundary days) are intersected with the day's work window, and the overlap
    with the meal break is deducted. Days without a schedule contribute 0.

    Args:
        start: Leave start
        end: Leave end (must be after start)
        schedules: Work schedule entries, each tagged with its date
        lunch_start: Meal break start
        lunch_end: Meal break end

    Returns:
        Non-negative hours, rounded to 2 decimals

    Raises:
        InvalidRange, EndBeforeStart, InvalidSchedule
    """
    start_dt, end_dt = validate_range(start, end)
    by_date = _index_schedules(schedules)

    total_hours = 0.0
    current_date = start_dt.date()
    while current_date <= end_dt.date():
        entry = by_date.get(current_date)
        if entry is not None:
            day_start = start_dt if current_date == start_dt.date() else datetime.combine(current_date, time.min)
            day_end = end_dt if current_date == end_dt.date() else datetime.combine(current_date + timedelta(days=1), time.min)
            total_hours += _day_hours(current_date, day_start, day_end, entry, lunch_start, lunch_end)
        current_date += timedelta(days=1)

    result = round(max(0.0, total_hours), 2)
    logger.debug("schedule hours: start=%s end=%s schedules=%d hours=%s", start_dt, end_dt, len(by_date), result)
    return result


def compute_hours_simple(
    start: Timestamp,
    end: Timestamp,
    daily_hours: float = DEFAULT_DAILY_WORK_HOURS,
) -> float:
    """
    Approximate consumed hours when no schedule data is available.

    Saturdays and Sundays are skipped. The first and last day use the actual
    request times, other days a 09:00-18:00 window; each day is capped at
    daily_hours. The result is an estimate, not an exact figure.

    Raises:
        InvalidRange, EndBeforeStart
    """
    start_dt, end_dt = validate_range(start, end)

    total_hours = 0.0
    current_date = start_dt.date()
    while current_date <= end_dt.date():
        if current_date.weekday() >= 5:  # Saturday=5, Sunday=6
            current_date += timedelta(days=1)
            continue

        day_start = start_dt if current_date == start_dt.date() else datetime.combine(current_date, DEFAULT_WORKDAY_START)
        day_end = end_dt if current_date == end_dt.date() else datetime.combine(current_date, DEFAULT_WORKDAY_END)

        if day_start < day_end:
            total_hours += min(daily_hours, (day_end - day_start).total_seconds() / 3600)
        current_date += timedelta(days=1)

    return round(max(0.0, total_hours), 2)
