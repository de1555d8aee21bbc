"""
Leave validation engine

Pure function of its inputs: a candidate request, the requester's profile, a
read-only usage snapshot and the requester's existing requests. Business rule
violations are returned as data (errors block submission, warnings never do);
only structurally invalid input raises.

Per-type rules are looked up in RULES by leave-type code. Adding a leave type
means registering it in app.services.leave_types and, if it has rules, adding
one function here.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from app.constants import HOURS_PER_LEAVE_DAY
from app.services.hours_calculator import parse_timestamp
from app.services.leave_types import LeaveTypeCode, LeaveTypeConfig, get_leave_type, bereavement_ceiling
from app.utils.datetime_utils import Timestamp, month_key, full_years_between

PERSONAL_CAP_DAYS = 14
PERSONAL_WARNING_DAYS = 10
SICK_COMBINED_CAP_DAYS = 30
SICK_NEAR_CAP_DAYS = 25
SICK_CAUTION_DAYS = 20
MENSTRUAL_MONTHLY_CAP_DAYS = 1
MARRIAGE_MAX_DAYS = 8
MATERNITY_REQUIRED_DAYS = 56
PATERNITY_MAX_DAYS = 7
PARENTAL_MAX_CHILD_AGE_YEARS = 3
PARENTAL_MAX_DAYS_PER_CHILD = 730
ANNUAL_LOW_BALANCE_DAYS = 5

# Statuses that hold a slot on the calendar
BLOCKING_STATUSES = ("pending", "approved")


@dataclass(frozen=True)
class LeaveExtras:
    relationship: Optional[str] = None
    child_birth_date: Optional[date] = None
    attachment_ref: Optional[str] = None


@dataclass(frozen=True)
class LeaveCandidate:
    leave_type: Optional[str]
    start: Timestamp
    end: Timestamp
    hours: float
    reason: Optional[str] = ""
    extras: LeaveExtras = field(default_factory=LeaveExtras)


@dataclass(frozen=True)
class RequesterProfile:
    hire_date: Optional[date] = None
    gender: Optional[str] = None


@dataclass(frozen=True)
class LeaveUsage:
    """
    Prior consumption snapshot, in days.

    used_days: per leave-type code, current year
    monthly_menstrual: menstrual days per "YYYY-MM"
    marriage_used: marriage leave has been taken before
    bereavement_used: bereavement days per relationship
    """
    used_days: Mapping[str, float] = field(default_factory=dict)
    monthly_menstrual: Mapping[str, float] = field(default_factory=dict)
    marriage_used: bool = False
    bereavement_used: Mapping[str, float] = field(default_factory=dict)

    def used(self, code: LeaveTypeCode) -> float:
        return float(self.used_days.get(code.value, 0) or 0)


@dataclass(frozen=True)
class ExistingRequest:
    id: Optional[int]
    leave_type: str
    start: datetime
    end: datetime
    status: str
    child_birth_date: Optional[date] = None


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"errors": list(self.errors), "warnings": list(self.warnings), "is_valid": self.is_valid}


@dataclass(frozen=True)
class RuleContext:
    candidate: LeaveCandidate
    leave_type: LeaveTypeConfig
    start: datetime
    end: datetime
    requested_days: float
    calendar_days: int
    profile: RequesterProfile
    usage: LeaveUsage
    existing_requests: Sequence[ExistingRequest]


def _days(value: float) -> str:
    return f"{value:g}"


def annual_entitlement_days(hire_date: date, as_of: date) -> float:
    """
    Annual leave entitlement by completed years of service at as_of.

    <1y: 3, <2y: 7, <3y: 10, <5y: 14, <10y: 15, then 15 plus one day per year
    beyond ten, capped at 30. A hire date in the future yields 0.
    """
    if hire_date > as_of:
        return 0
    years = full_years_between(hire_date, as_of)
    if years < 1:
        return 3
    if years < 2:
        return 7
    if years < 3:
        return 10
    if years < 5:
        return 14
    if years < 10:
        return 15
    return min(30, 15 + (years - 10))


def _annual_rule(ctx: RuleContext, result: ValidationResult) -> None:
    if ctx.profile.hire_date is None:
        result.errors.append("Hire date is required to compute the annual leave entitlement")
        return
    entitlement = annual_entitlement_days(ctx.profile.hire_date, ctx.start.date())
    used = ctx.usage.used(LeaveTypeCode.ANNUAL)
    remaining = entitlement - used
    if ctx.requested_days > remaining:
        result.errors.append(
            f"Annual leave exceeds the remaining entitlement: requested {_days(ctx.requested_days)} days, "
            f"{_days(max(remaining, 0))} of {_days(entitlement)} days left"
        )
        return
    remaining_after = remaining - ctx.requested_days
    if remaining_after <= ANNUAL_LOW_BALANCE_DAYS:
        result.warnings.append(
            f"Annual leave balance is low: {_days(remaining_after)} days will remain after this request"
        )


def _personal_rule(ctx: RuleContext, result: ValidationResult) -> None:
    total = ctx.usage.used(LeaveTypeCode.PERSONAL) + ctx.requested_days
    if total > PERSONAL_CAP_DAYS:
        result.errors.append(
            f"Personal leave is limited to {PERSONAL_CAP_DAYS} days per year "
            f"(this request would bring the total to {_days(total)} days)"
        )
    elif total > PERSONAL_WARNING_DAYS:
        result.warnings.append(
            f"Personal leave usage will reach {_days(total)} of {PERSONAL_CAP_DAYS} days this year"
        )


def _sick_ceiling(ctx: RuleContext, result: ValidationResult) -> None:
    combined = ctx.usage.used(LeaveTypeCode.SICK) + ctx.usage.used(LeaveTypeCode.MENSTRUAL)
    if combined >= SICK_COMBINED_CAP_DAYS:
        result.errors.append(
            f"Sick leave quota of {SICK_COMBINED_CAP_DAYS} days for this year has been used up"
        )
        return
    projected = combined + ctx.requested_days
    if projected > SICK_COMBINED_CAP_DAYS:
        result.errors.append(
            f"Sick leave would exceed {SICK_COMBINED_CAP_DAYS} days this year "
            f"({_days(combined)} used, {_days(ctx.requested_days)} requested)"
        )
    elif projected > SICK_NEAR_CAP_DAYS:
        result.warnings.append(
            f"Sick leave is close to the yearly limit: {_days(projected)} of {SICK_COMBINED_CAP_DAYS} days"
        )
    elif projected > SICK_CAUTION_DAYS:
        result.warnings.append(
            f"Sick leave usage will reach {_days(projected)} of {SICK_COMBINED_CAP_DAYS} days this year"
        )


def _menstrual_rule(ctx: RuleContext, result: ValidationResult) -> None:
    start_month = month_key(ctx.start)
    if start_month != month_key(ctx.end):
        result.errors.append("Menstrual leave cannot span more than one calendar month")
    monthly = float(ctx.usage.monthly_menstrual.get(start_month, 0) or 0) + ctx.requested_days
    if monthly > MENSTRUAL_MONTHLY_CAP_DAYS:
        result.errors.append(
            f"Menstrual leave is limited to {MENSTRUAL_MONTHLY_CAP_DAYS} day per month "
            f"({start_month} would reach {_days(monthly)} days)"
        )
    _sick_ceiling(ctx, result)
    result.warnings.append("Menstrual leave is counted against the sick leave quota")


def _marriage_rule(ctx: RuleContext, result: ValidationResult) -> None:
    if ctx.usage.marriage_used:
        result.errors.append("Marriage leave can only be taken once")
    if ctx.requested_days > MARRIAGE_MAX_DAYS:
        result.errors.append(
            f"Marriage leave is limited to {MARRIAGE_MAX_DAYS} days (requested {_days(ctx.requested_days)})"
        )


def _bereavement_rule(ctx: RuleContext, result: ValidationResult) -> None:
    relationship = (ctx.candidate.extras.relationship or "").strip().lower()
    if not relationship:
        result.errors.append("Relationship is required for bereavement leave")
        return
    ceiling = bereavement_ceiling(relationship)
    used = float(ctx.usage.bereavement_used.get(relationship, 0) or 0)
    if used + ctx.requested_days > ceiling:
        result.errors.append(
            f"Bereavement leave for relationship '{relationship}' is limited to {_days(ceiling)} days "
            f"({_days(used)} used, {_days(ctx.requested_days)} requested)"
        )


def _maternity_rule(ctx: RuleContext, result: ValidationResult) -> None:
    if ctx.calendar_days != MATERNITY_REQUIRED_DAYS:
        result.errors.append(
            f"Maternity leave must be exactly {MATERNITY_REQUIRED_DAYS} days "
            f"(requested range covers {ctx.calendar_days} days)"
        )


def _paternity_rule(ctx: RuleContext, result: ValidationResult) -> None:
    used = ctx.usage.used(LeaveTypeCode.PATERNITY)
    if ctx.requested_days > PATERNITY_MAX_DAYS:
        result.errors.append(
            f"Paternity leave is limited to {PATERNITY_MAX_DAYS} days (requested {_days(ctx.requested_days)})"
        )
    if used + ctx.requested_days > PATERNITY_MAX_DAYS:
        result.errors.append(
            f"Paternity leave would exceed {PATERNITY_MAX_DAYS} days in total "
            f"({_days(used)} used, {_days(ctx.requested_days)} requested)"
        )


def _parental_rule(ctx: RuleContext, result: ValidationResult) -> None:
    birth_date = ctx.candidate.extras.child_birth_date
    if birth_date is None:
        result.errors.append("Child birth date is required for parental leave")
        return
    if full_years_between(birth_date, ctx.start.date()) >= PARENTAL_MAX_CHILD_AGE_YEARS:
        result.errors.append(
            f"Parental leave must start before the child turns {PARENTAL_MAX_CHILD_AGE_YEARS}"
        )
    prior_days = sum(
        _calendar_days(existing.start, existing.end)
        for existing in ctx.existing_requests
        if existing.leave_type == LeaveTypeCode.PARENTAL.value
        and existing.status == "approved"
        and existing.child_birth_date == birth_date
    )
    if prior_days >= PARENTAL_MAX_DAYS_PER_CHILD:
        result.errors.append(
            f"Parental leave for this child has already reached {PARENTAL_MAX_DAYS_PER_CHILD} days"
        )


def _occupational_rule(ctx: RuleContext, result: ValidationResult) -> None:
    result.warnings.append("Occupational injury leave is not counted towards sick leave")


RULES: Dict[str, Callable[[RuleContext, ValidationResult], None]] = {
    LeaveTypeCode.ANNUAL.value: _annual_rule,
    LeaveTypeCode.PERSONAL.value: _personal_rule,
    LeaveTypeCode.SICK.value: _sick_ceiling,
    LeaveTypeCode.MENSTRUAL.value: _menstrual_rule,
    LeaveTypeCode.MARRIAGE.value: _marriage_rule,
    LeaveTypeCode.BEREAVEMENT.value: _bereavement_rule,
    LeaveTypeCode.MATERNITY.value: _maternity_rule,
    LeaveTypeCode.PATERNITY.value: _paternity_rule,
    LeaveTypeCode.PARENTAL.value: _parental_rule,
    LeaveTypeCode.OCCUPATIONAL.value: _occupational_rule,
}


def _calendar_days(start: datetime, end: datetime) -> int:
    """Inclusive count of calendar dates touched by the range."""
    return max(0, (end.date() - start.date()).days + 1)


def _universal_checks(ctx: RuleContext, result: ValidationResult) -> None:
    if ctx.start > ctx.end:
        result.errors.append("Start date must not be after end date")
    if ctx.candidate.hours is None or float(ctx.candidate.hours) <= 0:
        result.errors.append("The requested range does not contain any working hours")
    if not (ctx.candidate.reason or "").strip():
        result.errors.append("Reason is required")
    if ctx.leave_type.requires_attachment and not (ctx.candidate.extras.attachment_ref or "").strip():
        result.errors.append(f"{ctx.leave_type.name} requires an attachment")

    restriction = ctx.leave_type.gender_restriction
    gender = (ctx.profile.gender or "").strip().lower()
    if restriction and gender and gender != restriction:
        result.errors.append(f"{ctx.leave_type.name} is only available to {restriction} employees")

    for existing in ctx.existing_requests:
        if existing.status not in BLOCKING_STATUSES:
            continue
        if existing.start < ctx.end and ctx.start < existing.end:
            result.errors.append(
                f"Overlaps with existing {existing.status} leave request"
                + (f" #{existing.id}" if existing.id is not None else "")
                + f" ({existing.start.isoformat()} to {existing.end.isoformat()})"
            )


def validate_leave_request(
    candidate: LeaveCandidate,
    profile: RequesterProfile,
    usage: LeaveUsage,
    existing_requests: Sequence[ExistingRequest] = (),
    hours_per_day: float = HOURS_PER_LEAVE_DAY,
) -> ValidationResult:
    """
    Validate a candidate leave request.

    Requested days are the candidate's consumed hours divided by hours_per_day.
    Every applicable check runs, so all errors are reported together.

    Raises:
        UnknownLeaveType: If the leave-type code is missing or not registered
        InvalidRange: If start or end cannot be parsed
    """
    leave_type = get_leave_type(candidate.leave_type)
    start = parse_timestamp(candidate.start, "start")
    end = parse_timestamp(candidate.end, "end")
    hours = float(candidate.hours or 0)

    ctx = RuleContext(
        candidate=candidate,
        leave_type=leave_type,
        start=start,
        end=end,
        requested_days=round(hours / hours_per_day, 2),
        calendar_days=_calendar_days(start, end),
        profile=profile,
        usage=usage,
        existing_requests=tuple(existing_requests),
    )

    result = ValidationResult()
    _universal_checks(ctx, result)
    rule = RULES.get(leave_type.code.value)
    if rule is not None:
        rule(ctx, result)
    return result
