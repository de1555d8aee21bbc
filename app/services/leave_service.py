"""
Leave service - persistence and orchestration of the leave request lifecycle

Submission runs hours calculation, validation and the initial workflow
transition; approver and requester actions re-enter the workflow only. Every
transition is written with a conditional UPDATE keyed on the expected status
and level, so of two concurrent actions at the same level only the first one
advances the request.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.constants import APPROXIMATE_HOURS_WARNING, SCHEDULE_LOOKAROUND_DAYS
from app.core.errors import (
    EmployeeNotFound,
    InvalidStateTransition,
    LeaveEngineError,
    LeaveRequestNotFound,
    ValidationFailed,
)
from app.models.employee import Employee
from app.models.leave import LeaveRequest, ApprovalRecord, LeaveApprovalChainStep, LeaveStatus, ApprovalDecision
from app.models.work_schedule import WorkSchedule
from app.services.approval_workflow import (
    ApprovalStep,
    LeaveState,
    WorkflowTransition,
    apply_decision,
    cancel_transition,
    describe_state,
    initial_transition,
    walk_supervisor_chain,
)
from app.services.audit_service import log_audit
from app.services.hours_calculator import (
    ScheduleEntry,
    compute_hours_by_schedule,
    compute_hours_simple,
    validate_range,
)
from app.services.leave_types import LeaveTypeCode, get_leave_type
from app.services.leave_validation import (
    ExistingRequest,
    LeaveCandidate,
    LeaveExtras,
    LeaveUsage,
    RequesterProfile,
    validate_leave_request,
)
from app.services.policy_context import LeavePolicyContext
from app.utils.datetime_utils import Timestamp, month_key, now_utc

logger = logging.getLogger(__name__)

ENTITY_TYPE = "leave_requests"


@dataclass
class SubmissionResult:
    leave_request: LeaveRequest
    warnings: List[str] = field(default_factory=list)
    auto_approved: bool = False
    approximate_hours: bool = False


@dataclass
class ActionResult:
    leave_request: LeaveRequest
    record: Optional[ApprovalRecord] = None


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise EmployeeNotFound(f"Employee with id {employee_id} not found")
    return employee


def get_supervisor_chain(db: Session, employee_id: int, max_depth: int) -> List[int]:
    """
    Get the upward chain of approver IDs for an employee (nearest supervisor first).

    Inactive supervisors end the chain, as does a loop in the reporting data.

    Args:
        db: Database session
        employee_id: Requester ID
        max_depth: Maximum number of approval levels

    Returns:
        List of supervisor IDs, at most max_depth long
    """
    def supervisor_of(current_id: int) -> Optional[int]:
        row = db.query(Employee.supervisor_id).filter(Employee.id == current_id).first()
        if not row or row.supervisor_id is None:
            return None
        supervisor = db.query(Employee.id).filter(
            Employee.id == row.supervisor_id,
            Employee.active == True
        ).first()
        return supervisor.id if supervisor else None

    return walk_supervisor_chain(employee_id, supervisor_of, max_depth)


def load_approval_chain(db: Session, leave_request_id: int) -> List[int]:
    """Approver IDs stored for a request at submission, ordered by level."""
    rows = db.query(LeaveApprovalChainStep.approver_id).filter(
        LeaveApprovalChainStep.leave_request_id == leave_request_id
    ).order_by(LeaveApprovalChainStep.level).all()
    return [row.approver_id for row in rows]


def has_schedule_near(db: Session, employee_id: int, start_date: date, end_date: date) -> bool:
    window_start = start_date - timedelta(days=SCHEDULE_LOOKAROUND_DAYS)
    window_end = end_date + timedelta(days=SCHEDULE_LOOKAROUND_DAYS)
    row = db.query(WorkSchedule.id).filter(
        WorkSchedule.employee_id == employee_id,
        WorkSchedule.work_date >= window_start,
        WorkSchedule.work_date <= window_end
    ).first()
    return row is not None


def load_schedule_entries(db: Session, employee_id: int, start_date: date, end_date: date) -> List[ScheduleEntry]:
    rows = db.query(WorkSchedule).filter(
        WorkSchedule.employee_id == employee_id,
        WorkSchedule.work_date >= start_date,
        WorkSchedule.work_date <= end_date
    ).order_by(WorkSchedule.work_date).all()
    return [ScheduleEntry(work_date=row.work_date, clock_in=row.clock_in, clock_out=row.clock_out) for row in rows]


def calculate_request_hours(
    db: Session,
    employee_id: int,
    start: Timestamp,
    end: Timestamp,
    ctx: LeavePolicyContext
) -> Tuple[float, bool]:
    """
    Consumed hours for an employee's leave range.

    An employee with schedule rows around the range is rostered: hours come
    from the stored schedules and unscheduled days count as days off. Only an
    employee without nearby schedule data gets the simple weekday approximation.

    Returns:
        (hours, approximate)
    """
    start_dt, end_dt = validate_range(start, end)
    entries = load_schedule_entries(db, employee_id, start_dt.date(), end_dt.date())
    if entries or has_schedule_near(db, employee_id, start_dt.date(), end_dt.date()):
        hours = compute_hours_by_schedule(start_dt, end_dt, entries, ctx.lunch_break_start, ctx.lunch_break_end)
        return hours, False

    logger.info(
        "No work schedule for employee_id=%s between %s and %s, using approximate hours",
        employee_id, start_dt.date(), end_dt.date(),
    )
    return compute_hours_simple(start_dt, end_dt, ctx.daily_work_hours), True


def load_existing_requests(
    db: Session,
    employee_id: int,
    exclude_leave_request_id: Optional[int] = None
) -> List[ExistingRequest]:
    query = db.query(LeaveRequest).filter(LeaveRequest.employee_id == employee_id)
    if exclude_leave_request_id is not None:
        query = query.filter(LeaveRequest.id != exclude_leave_request_id)
    return [
        ExistingRequest(
            id=row.id,
            leave_type=row.leave_type,
            start=row.start_at,
            end=row.end_at,
            status=LeaveStatus(row.status).value,
            child_birth_date=row.child_birth_date,
        )
        for row in query.order_by(LeaveRequest.start_at).all()
    ]


def build_usage_snapshot(
    db: Session,
    employee_id: int,
    as_of: date,
    ctx: LeavePolicyContext
) -> LeaveUsage:
    """
    Aggregate an employee's approved leave into a usage snapshot (in days).

    Yearly counters cover the calendar year of as_of; menstrual usage is kept
    per month and the marriage flag looks at the whole history.
    """
    approved = db.query(LeaveRequest).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status == LeaveStatus.APPROVED
    ).all()

    used_days: Dict[str, float] = {}
    monthly_menstrual: Dict[str, float] = {}
    bereavement_used: Dict[str, float] = {}
    marriage_used = False

    for row in approved:
        days = float(row.hours) / ctx.hours_per_leave_day
        if row.leave_type == LeaveTypeCode.MARRIAGE.value:
            marriage_used = True
        if row.leave_type == LeaveTypeCode.MENSTRUAL.value:
            key = month_key(row.start_at)
            monthly_menstrual[key] = monthly_menstrual.get(key, 0) + days
        if row.start_at.year != as_of.year:
            continue
        used_days[row.leave_type] = used_days.get(row.leave_type, 0) + days
        if row.leave_type == LeaveTypeCode.BEREAVEMENT.value and row.relationship_code:
            relationship = row.relationship_code.strip().lower()
            bereavement_used[relationship] = bereavement_used.get(relationship, 0) + days

    return LeaveUsage(
        used_days={k: round(v, 2) for k, v in used_days.items()},
        monthly_menstrual={k: round(v, 2) for k, v in monthly_menstrual.items()},
        marriage_used=marriage_used,
        bereavement_used={k: round(v, 2) for k, v in bereavement_used.items()},
    )


def _add_approval_record(db: Session, leave_request_id: int, step: ApprovalStep) -> ApprovalRecord:
    record = ApprovalRecord(
        leave_request_id=leave_request_id,
        approver_id=step.approver_id,
        approver_name=step.approver_name,
        level=step.level,
        decision=step.decision,
        comment=step.comment,
        decided_at=now_utc(),
    )
    db.add(record)
    db.flush()
    return record


def submit_leave(
    db: Session,
    employee_id: int,
    leave_type: str,
    start: Timestamp,
    end: Timestamp,
    reason: str,
    extras: Optional[LeaveExtras],
    ctx: LeavePolicyContext
) -> SubmissionResult:
    """
    Submit a leave request

    Args:
        db: Database session
        employee_id: Requester ID
        leave_type: Leave type code
        start: Leave start
        end: Leave end
        reason: Free-text reason
        extras: Relationship, child birth date, attachment reference
        ctx: Policy parameters

    Returns:
        SubmissionResult with the persisted request and non-blocking warnings

    Raises:
        EmployeeNotFound, UnknownLeaveType, InvalidRange, EndBeforeStart
        ValidationFailed: With every blocking error found
    """
    employee = get_employee(db, employee_id)
    leave_type_config = get_leave_type(leave_type)
    start_dt, end_dt = validate_range(start, end)
    extras = extras or LeaveExtras()

    hours, approximate = calculate_request_hours(db, employee.id, start_dt, end_dt, ctx)

    candidate = LeaveCandidate(
        leave_type=leave_type_config.code.value,
        start=start_dt,
        end=end_dt,
        hours=hours,
        reason=reason,
        extras=extras,
    )
    profile = RequesterProfile(hire_date=employee.hire_date, gender=employee.gender)
    usage = build_usage_snapshot(db, employee.id, start_dt.date(), ctx)
    existing = load_existing_requests(db, employee.id)
    result = validate_leave_request(candidate, profile, usage, existing, ctx.hours_per_leave_day)

    warnings = list(result.warnings)
    if approximate:
        warnings.insert(0, APPROXIMATE_HOURS_WARNING)

    if not result.is_valid:
        logger.warning(
            "Leave submission rejected: employee_id=%s leave_type=%s errors=%s",
            employee.id, leave_type_config.code.value, result.errors,
        )
        raise ValidationFailed(result.errors, warnings)

    chain = get_supervisor_chain(db, employee.id, ctx.approval_max_depth)
    transition = initial_transition(chain)

    leave_request = LeaveRequest(
        employee_id=employee.id,
        leave_type=leave_type_config.code.value,
        start_at=start_dt,
        end_at=end_dt,
        hours=hours,
        reason=reason.strip(),
        relationship_code=extras.relationship,
        child_birth_date=extras.child_birth_date,
        attachment_ref=extras.attachment_ref,
        status=transition.status,
        approval_level=transition.approval_level,
        current_approver_id=transition.current_approver_id,
    )
    db.add(leave_request)
    db.flush()

    for level, approver_id in enumerate(chain, start=1):
        db.add(LeaveApprovalChainStep(leave_request_id=leave_request.id, level=level, approver_id=approver_id))
    if transition.record is not None:
        _add_approval_record(db, leave_request.id, transition.record)

    log_audit(
        db=db,
        actor_id=employee.id,
        action="LEAVE_SUBMIT",
        entity_type=ENTITY_TYPE,
        entity_id=leave_request.id,
        meta={
            "leave_request_id": leave_request.id,
            "employee_id": employee.id,
            "leave_type": leave_type_config.code.value,
            "hours": hours,
            "approximate_hours": approximate,
            "supervisor_chain": chain,
            "state": transition.state,
        }
    )
    db.commit()
    db.refresh(leave_request)

    logger.info(
        "leave status transition: leave_request_id=%s before=new after=%s action=submit",
        leave_request.id, transition.state,
    )
    return SubmissionResult(
        leave_request=leave_request,
        warnings=warnings,
        auto_approved=leave_request.is_auto_approved,
        approximate_hours=approximate,
    )


def _commit_transition(
    db: Session,
    leave_request: LeaveRequest,
    expected_level: int,
    transition: WorkflowTransition,
    actor_id: int,
    action: str,
    meta: Optional[dict] = None
) -> Optional[ApprovalRecord]:
    """
    Persist a workflow transition atomically.

    The status update only applies while the row is still pending at
    expected_level; the approval record and audit entry commit with it.
    """
    before = describe_state(leave_request.status, leave_request.approval_level)
    updated = db.query(LeaveRequest).filter(
        LeaveRequest.id == leave_request.id,
        LeaveRequest.status == LeaveStatus.PENDING,
        LeaveRequest.approval_level == expected_level
    ).update(
        {
            LeaveRequest.status: transition.status,
            LeaveRequest.approval_level: transition.approval_level,
            LeaveRequest.current_approver_id: transition.current_approver_id,
            LeaveRequest.rejection_reason: transition.rejection_reason,
            LeaveRequest.updated_at: now_utc(),
        },
        synchronize_session=False
    )
    if updated != 1:
        db.rollback()
        logger.warning(
            "Concurrent update lost: leave_request_id=%s expected=pending@%s action=%s",
            leave_request.id, expected_level, action,
        )
        raise InvalidStateTransition(
            f"Leave request {leave_request.id} is no longer pending@{expected_level}"
        )

    try:
        record = None
        if transition.record is not None:
            record = _add_approval_record(db, leave_request.id, transition.record)
        log_audit(
            db=db,
            actor_id=actor_id,
            action=action,
            entity_type=ENTITY_TYPE,
            entity_id=leave_request.id,
            meta={
                "leave_request_id": leave_request.id,
                "before": before,
                "after": transition.state,
                **(meta or {}),
            }
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Approval record conflict: leave_request_id=%s level=%s action=%s",
            leave_request.id, expected_level, action,
        )
        raise InvalidStateTransition(
            f"Level {expected_level} of leave request {leave_request.id} has already been acted upon"
        )

    db.refresh(leave_request)
    if record is not None:
        db.refresh(record)
    logger.info(
        "leave status transition: leave_request_id=%s before=%s after=%s action=%s",
        leave_request.id, before, transition.state, action,
    )
    return record


def _current_state(leave_request: LeaveRequest) -> LeaveState:
    return LeaveState(
        status=LeaveStatus(leave_request.status),
        approval_level=leave_request.approval_level,
        current_approver_id=leave_request.current_approver_id,
    )


def act_on_leave(
    db: Session,
    leave_request_id: int,
    acting_approver_id: int,
    decision: ApprovalDecision,
    expected_level: int,
    comment: Optional[str]
) -> ActionResult:
    """
    Approve or reject a pending leave request at the expected level

    The chain stored at submission decides whether an approval is final and
    who the next approver is; later hierarchy edits do not affect it.

    Raises:
        LeaveRequestNotFound, EmployeeNotFound
        MissingRequiredField: Rejection without a comment
        InvalidStateTransition: Request not pending at expected_level
        NotCurrentApprover: Actor is not the current approver
    """
    decision = ApprovalDecision(decision)
    leave_request = get_leave(db, leave_request_id)
    approver = get_employee(db, acting_approver_id)

    chain = []
    if decision == ApprovalDecision.APPROVED:
        chain = load_approval_chain(db, leave_request.id)

    try:
        transition = apply_decision(
            _current_state(leave_request),
            decision,
            approver.id,
            approver.name,
            expected_level,
            chain,
            comment,
        )
    except LeaveEngineError as exc:
        logger.warning(
            "Leave %s refused: leave_request_id=%s approver_id=%s reason=%s",
            decision.value, leave_request_id, approver.id, exc.detail,
        )
        raise

    action = "LEAVE_APPROVE" if decision == ApprovalDecision.APPROVED else "LEAVE_REJECT"
    record = _commit_transition(
        db,
        leave_request,
        expected_level,
        transition,
        approver.id,
        action,
        meta={
            "employee_id": leave_request.employee_id,
            "leave_type": leave_request.leave_type,
            "level": expected_level,
            "comment": comment,
        },
    )
    return ActionResult(leave_request=leave_request, record=record)


def approve_leave(
    db: Session,
    leave_request_id: int,
    acting_approver_id: int,
    expected_level: int,
    comment: Optional[str]
) -> ActionResult:
    return act_on_leave(
        db, leave_request_id, acting_approver_id, ApprovalDecision.APPROVED, expected_level, comment
    )


def reject_leave(
    db: Session,
    leave_request_id: int,
    acting_approver_id: int,
    expected_level: int,
    comment: Optional[str]
) -> ActionResult:
    return act_on_leave(
        db, leave_request_id, acting_approver_id, ApprovalDecision.REJECTED, expected_level, comment
    )


def cancel_leave(db: Session, leave_request_id: int, employee_id: int) -> LeaveRequest:
    """
    Cancel a pending leave request (requester only)

    Raises:
        LeaveRequestNotFound
        InvalidStateTransition: Request is no longer pending
        NotCurrentApprover: Caller is not the requester
    """
    leave_request = get_leave(db, leave_request_id)
    state = _current_state(leave_request)
    try:
        transition = cancel_transition(state, leave_request.employee_id, employee_id)
    except LeaveEngineError as exc:
        logger.warning(
            "Leave cancel refused: leave_request_id=%s employee_id=%s reason=%s",
            leave_request_id, employee_id, exc.detail,
        )
        raise

    _commit_transition(
        db,
        leave_request,
        state.approval_level,
        transition,
        employee_id,
        "LEAVE_CANCEL",
        meta={"employee_id": leave_request.employee_id, "leave_type": leave_request.leave_type},
    )
    return leave_request


def get_leave(db: Session, leave_request_id: int) -> LeaveRequest:
    leave_request = db.query(LeaveRequest).options(
        selectinload(LeaveRequest.approvals)
    ).filter(LeaveRequest.id == leave_request_id).first()
    if not leave_request:
        raise LeaveRequestNotFound(f"Leave request with id {leave_request_id} not found")
    return leave_request


def list_pending_for_approver(db: Session, approver_id: int) -> List[LeaveRequest]:
    """Pending requests waiting on the given approver, oldest first."""
    return db.query(LeaveRequest).options(
        selectinload(LeaveRequest.approvals)
    ).filter(
        LeaveRequest.status == LeaveStatus.PENDING,
        LeaveRequest.current_approver_id == approver_id
    ).order_by(LeaveRequest.created_at, LeaveRequest.id).all()


def list_leaves_for_employee(
    db: Session,
    employee_id: int,
    status: Optional[LeaveStatus] = None
) -> List[LeaveRequest]:
    query = db.query(LeaveRequest).options(
        selectinload(LeaveRequest.approvals)
    ).filter(LeaveRequest.employee_id == employee_id)
    if status is not None:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.start_at.desc(), LeaveRequest.id.desc()).all()
