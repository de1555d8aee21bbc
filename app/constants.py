"""
Constants for the leave engine
"""
from datetime import time

SERVICE_NAME = "leave-engine-backend"

# Meal break deducted from scheduled hours.
# TODO: promote to a per-schedule field once work_schedules carries break times.
LUNCH_BREAK_START = time(12, 0)
LUNCH_BREAK_END = time(13, 0)

# Approximate calculation (no schedule data)
DEFAULT_DAILY_WORK_HOURS = 8.0
DEFAULT_WORKDAY_START = time(9, 0)
DEFAULT_WORKDAY_END = time(18, 0)
# Schedule rows this close to a range mark the employee as rostered
SCHEDULE_LOOKAROUND_DAYS = 31

# Quota conversion
HOURS_PER_LEAVE_DAY = 8.0

# Supervisor hierarchy traversal
DEFAULT_APPROVAL_MAX_DEPTH = 3

# Auto-approval audit record
SYSTEM_APPROVER_NAME = "System"
AUTO_APPROVAL_COMMENT = "Approved automatically by the system (no supervisor configured)"

APPROXIMATE_HOURS_WARNING = (
    "No work schedule found for the requested dates; hours were estimated "
    "from a standard 09:00-18:00 weekday"
)
