"""
Leave endpoints

Authentication is handled upstream; actor identities arrive in the request
body or query string.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_policy_context
from app.models.leave import LeaveStatus
from app.schemas.leave import (
    HoursCalculationRequest,
    HoursCalculationOut,
    LeaveValidateRequest,
    ValidationResultOut,
    LeaveApplyRequest,
    ApprovalActionRequest,
    CancelRequest,
    LeaveOut,
    LeaveTypeOut,
    LeaveListResponse,
    SubmissionOut,
    ActionOut,
    ApprovalRecordOut,
)
from app.services.hours_calculator import ScheduleEntry, compute_hours_by_schedule, compute_hours_simple
from app.services.leave_types import list_leave_types
from app.services.leave_validation import (
    ExistingRequest,
    LeaveCandidate,
    LeaveExtras,
    LeaveUsage,
    RequesterProfile,
    validate_leave_request,
)
from app.services.leave_service import (
    submit_leave,
    approve_leave,
    reject_leave,
    cancel_leave,
    get_leave,
    list_pending_for_approver,
    list_leaves_for_employee,
)
from app.services.policy_context import LeavePolicyContext

router = APIRouter()


def _record_out(record) -> Optional[ApprovalRecordOut]:
    return ApprovalRecordOut.model_validate(record) if record is not None else None


@router.get("/types", response_model=List[LeaveTypeOut])
async def leave_types_endpoint():
    """List the configured leave types"""
    return [LeaveTypeOut(**config.to_dict()) for config in list_leave_types()]


@router.post("/hours", response_model=HoursCalculationOut)
async def calculate_hours_endpoint(
    body: HoursCalculationRequest,
    ctx: LeavePolicyContext = Depends(get_policy_context)
):
    """
    Compute consumed work hours for a range

    With schedules: exact per-date calculation excluding the meal break.
    Without schedules: weekday approximation (flagged approximate).
    """
    if body.schedules:
        entries = [
            ScheduleEntry(work_date=s.work_date, clock_in=s.clock_in, clock_out=s.clock_out)
            for s in body.schedules
        ]
        hours = compute_hours_by_schedule(
            body.start, body.end, entries, ctx.lunch_break_start, ctx.lunch_break_end
        )
        return HoursCalculationOut(hours=hours, method="schedule", approximate=False)

    hours = compute_hours_simple(body.start, body.end, body.daily_hours or ctx.daily_work_hours)
    return HoursCalculationOut(hours=hours, method="simple", approximate=True)


@router.post("/validate", response_model=ValidationResultOut)
async def validate_leave_endpoint(
    body: LeaveValidateRequest,
    ctx: LeavePolicyContext = Depends(get_policy_context)
):
    """
    Validate a candidate request against the leave rules without saving it

    Rule violations come back in errors/warnings with status 200.
    """
    candidate = LeaveCandidate(
        leave_type=body.leave_type,
        start=body.start,
        end=body.end,
        hours=body.hours,
        reason=body.reason,
        extras=LeaveExtras(**body.extras.model_dump()),
    )
    usage = LeaveUsage(**body.usage.model_dump())
    existing = [
        ExistingRequest(
            id=r.id,
            leave_type=r.leave_type,
            start=r.start.replace(tzinfo=None),
            end=r.end.replace(tzinfo=None),
            status=r.status.value,
            child_birth_date=r.child_birth_date,
        )
        for r in body.existing_requests
    ]
    result = validate_leave_request(
        candidate,
        RequesterProfile(**body.requester_profile.model_dump()),
        usage,
        existing,
        ctx.hours_per_leave_day,
    )
    return ValidationResultOut(**result.to_dict())


@router.post("/apply", response_model=SubmissionOut, status_code=201)
async def apply_leave_endpoint(
    leave_data: LeaveApplyRequest,
    db: Session = Depends(get_db),
    ctx: LeavePolicyContext = Depends(get_policy_context)
):
    """
    Apply for leave

    Validations:
    - Range (end after start) and leave type code
    - Leave type rules and quotas (all errors returned together, 422)
    - Overlap with PENDING/APPROVED requests

    Employees without a supervisor are approved automatically; otherwise the
    request is pending at level 1.
    """
    result = submit_leave(
        db=db,
        employee_id=leave_data.employee_id,
        leave_type=leave_data.leave_type,
        start=leave_data.start,
        end=leave_data.end,
        reason=leave_data.reason,
        extras=LeaveExtras(
            relationship=leave_data.relationship,
            child_birth_date=leave_data.child_birth_date,
            attachment_ref=leave_data.attachment_ref,
        ),
        ctx=ctx,
    )
    return SubmissionOut(
        leave=LeaveOut.model_validate(result.leave_request),
        warnings=result.warnings,
        auto_approved=result.auto_approved,
        approximate_hours=result.approximate_hours,
    )


@router.get("/my", response_model=LeaveListResponse)
async def list_my_leaves(
    employee_id: int = Query(..., description="Requester ID"),
    status: Optional[LeaveStatus] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db)
):
    """List an employee's own leave requests, newest first"""
    leaves = list_leaves_for_employee(db, employee_id, status)
    return LeaveListResponse(items=[LeaveOut.model_validate(leave) for leave in leaves], total=len(leaves))


@router.get("/pending", response_model=LeaveListResponse)
async def list_pending_leaves(
    approver_id: int = Query(..., description="Approver ID"),
    db: Session = Depends(get_db)
):
    """List requests currently waiting on the given approver, oldest first"""
    leaves = list_pending_for_approver(db, approver_id)
    return LeaveListResponse(items=[LeaveOut.model_validate(leave) for leave in leaves], total=len(leaves))


@router.get("/{leave_request_id}", response_model=LeaveOut)
async def get_leave_endpoint(leave_request_id: int, db: Session = Depends(get_db)):
    """Get a leave request with its approval records"""
    return LeaveOut.model_validate(get_leave(db, leave_request_id))


@router.post("/{leave_request_id}/approve", response_model=ActionOut)
async def approve_leave_endpoint(
    leave_request_id: int,
    action: ApprovalActionRequest,
    db: Session = Depends(get_db)
):
    """
    Approve at the expected level

    Escalates to the next supervisor, or finalizes when the chain is exhausted.
    409 if the request is not pending at expected_level.
    """
    result = approve_leave(
        db=db,
        leave_request_id=leave_request_id,
        acting_approver_id=action.acting_approver_id,
        expected_level=action.expected_level,
        comment=action.comment,
    )
    return ActionOut(leave=LeaveOut.model_validate(result.leave_request), record=_record_out(result.record))


@router.post("/{leave_request_id}/reject", response_model=ActionOut)
async def reject_leave_endpoint(
    leave_request_id: int,
    action: ApprovalActionRequest,
    db: Session = Depends(get_db)
):
    """
    Reject at the expected level (comment required)

    Rejection is final at any level.
    """
    result = reject_leave(
        db=db,
        leave_request_id=leave_request_id,
        acting_approver_id=action.acting_approver_id,
        expected_level=action.expected_level,
        comment=action.comment,
    )
    return ActionOut(leave=LeaveOut.model_validate(result.leave_request), record=_record_out(result.record))


@router.post("/{leave_request_id}/cancel", response_model=LeaveOut)
async def cancel_leave_endpoint(
    leave_request_id: int,
    body: CancelRequest,
    db: Session = Depends(get_db)
):
    """Cancel a pending request (requester only)"""
    return LeaveOut.model_validate(cancel_leave(db, leave_request_id, body.employee_id))
