"""
Per-call leave policy parameters

Services receive a LeavePolicyContext argument instead of reading settings
or module-level state, so every calculation is a function of its inputs.
"""
from dataclasses import dataclass
from datetime import time

from app import constants
from app.utils.datetime_utils import parse_clock


@dataclass(frozen=True)
class LeavePolicyContext:
    approval_max_depth: int = constants.DEFAULT_APPROVAL_MAX_DEPTH
    lunch_break_start: time = constants.LUNCH_BREAK_START
    lunch_break_end: time = constants.LUNCH_BREAK_END
    daily_work_hours: float = constants.DEFAULT_DAILY_WORK_HOURS
    hours_per_leave_day: float = constants.HOURS_PER_LEAVE_DAY

    @classmethod
    def from_settings(cls, settings) -> "LeavePolicyContext":
        return cls(
            approval_max_depth=settings.LEAVE_APPROVAL_MAX_DEPTH,
            lunch_break_start=parse_clock(settings.LUNCH_BREAK_START),
            lunch_break_end=parse_clock(settings.LUNCH_BREAK_END),
            daily_work_hours=settings.DEFAULT_DAILY_WORK_HOURS,
            hours_per_leave_day=settings.HOURS_PER_LEAVE_DAY,
        )
