"""
Approval workflow - escalation state machine for leave requests

States: auto-approved, pending@L (L = 1..chain length), approved, rejected,
cancelled. This module only decides transitions; persisting them (and
serializing concurrent writers) is done by app.services.leave_service.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from app.constants import SYSTEM_APPROVER_NAME, AUTO_APPROVAL_COMMENT, DEFAULT_APPROVAL_MAX_DEPTH
from app.core.errors import InvalidStateTransition, MissingRequiredField, NotCurrentApprover
from app.models.leave import LeaveStatus, ApprovalDecision

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaveState:
    status: LeaveStatus
    approval_level: int
    current_approver_id: Optional[int]


@dataclass(frozen=True)
class ApprovalStep:
    """Audit record to append for a transition."""
    level: int
    decision: ApprovalDecision
    approver_id: Optional[int]
    approver_name: str
    comment: Optional[str] = None


@dataclass(frozen=True)
class WorkflowTransition:
    status: LeaveStatus
    approval_level: int
    current_approver_id: Optional[int]
    record: Optional[ApprovalStep] = None
    rejection_reason: Optional[str] = None

    @property
    def state(self) -> str:
        return describe_state(self.status, self.approval_level)


def describe_state(status: LeaveStatus, approval_level: int) -> str:
    status = LeaveStatus(status)
    if status == LeaveStatus.APPROVED and approval_level == 0:
        return "auto-approved"
    if status == LeaveStatus.PENDING:
        return f"pending@{approval_level}"
    return status.value


def walk_supervisor_chain(
    requester_id: int,
    supervisor_of: Callable[[int], Optional[int]],
    max_depth: int = DEFAULT_APPROVAL_MAX_DEPTH,
) -> List[int]:
    """
    Ordered ancestor approvers of a requester, nearest first.

    supervisor_of returns the active supervisor of an employee, or None.
    Traversal stops at the first employee without one, after max_depth hops,
    or when the hierarchy loops back onto an employee already visited.
    """
    chain: List[int] = []
    seen = {requester_id}
    current = requester_id
    while len(chain) < max_depth:
        supervisor_id = supervisor_of(current)
        if supervisor_id is None:
            break
        if supervisor_id in seen:
            logger.warning(
                "Supervisor cycle detected for employee %s: %s already in chain %s",
                requester_id, supervisor_id, chain,
            )
            break
        chain.append(supervisor_id)
        seen.add(supervisor_id)
        current = supervisor_id
    return chain


def initial_transition(chain: Sequence[int]) -> WorkflowTransition:
    """
    Initial state of a validated submission.

    An empty chain auto-approves at level 0 with a system audit record;
    otherwise the request waits on the first supervisor.
    """
    if not chain:
        return WorkflowTransition(
            status=LeaveStatus.APPROVED,
            approval_level=0,
            current_approver_id=None,
            record=ApprovalStep(
                level=0,
                decision=ApprovalDecision.APPROVED,
                approver_id=None,
                approver_name=SYSTEM_APPROVER_NAME,
                comment=AUTO_APPROVAL_COMMENT,
            ),
        )
    return WorkflowTransition(
        status=LeaveStatus.PENDING,
        approval_level=1,
        current_approver_id=chain[0],
    )


def _require_pending_at(state: LeaveState, expected_level: int) -> None:
    if state.status != LeaveStatus.PENDING or state.approval_level != expected_level:
        raise InvalidStateTransition(
            f"Leave request is {describe_state(state.status, state.approval_level)}, "
            f"expected pending@{expected_level}"
        )


def _require_current_approver(state: LeaveState, actor_id: int) -> None:
    if state.current_approver_id != actor_id:
        raise NotCurrentApprover(
            f"Employee {actor_id} is not the current approver of this leave request"
        )


def approve_transition(
    state: LeaveState,
    actor_id: int,
    actor_name: str,
    expected_level: int,
    chain: Sequence[int],
    comment: Optional[str] = None,
) -> WorkflowTransition:
    """
    Approve at the current level.

    The request is final once the acting level reaches the chain length;
    otherwise it escalates to the next supervisor.
    """
    _require_pending_at(state, expected_level)
    _require_current_approver(state, actor_id)

    level = state.approval_level
    record = ApprovalStep(
        level=level,
        decision=ApprovalDecision.APPROVED,
        approver_id=actor_id,
        approver_name=actor_name,
        comment=comment,
    )
    if level >= len(chain):
        return WorkflowTransition(
            status=LeaveStatus.APPROVED,
            approval_level=level,
            current_approver_id=None,
            record=record,
        )
    return WorkflowTransition(
        status=LeaveStatus.PENDING,
        approval_level=level + 1,
        current_approver_id=chain[level],
        record=record,
    )


def reject_transition(
    state: LeaveState,
    actor_id: int,
    actor_name: str,
    expected_level: int,
    comment: Optional[str],
) -> WorkflowTransition:
    """Reject at the current level. Rejection is terminal at any level and needs a comment."""
    if not (comment or "").strip():
        raise MissingRequiredField("comment", "A comment is required when rejecting a leave request")
    _require_pending_at(state, expected_level)
    _require_current_approver(state, actor_id)

    comment = comment.strip()
    return WorkflowTransition(
        status=LeaveStatus.REJECTED,
        approval_level=state.approval_level,
        current_approver_id=None,
        record=ApprovalStep(
            level=state.approval_level,
            decision=ApprovalDecision.REJECTED,
            approver_id=actor_id,
            approver_name=actor_name,
            comment=comment,
        ),
        rejection_reason=comment,
    )


def apply_decision(
    state: LeaveState,
    decision: ApprovalDecision,
    actor_id: int,
    actor_name: str,
    expected_level: int,
    chain: Sequence[int],
    comment: Optional[str] = None,
) -> WorkflowTransition:
    decision = ApprovalDecision(decision)
    if decision == ApprovalDecision.REJECTED:
        return reject_transition(state, actor_id, actor_name, expected_level, comment)
    return approve_transition(state, actor_id, actor_name, expected_level, chain, comment)


def cancel_transition(state: LeaveState, requester_id: int, actor_id: int) -> WorkflowTransition:
    """Requester withdraws a request that is still pending."""
    if state.status != LeaveStatus.PENDING:
        raise InvalidStateTransition(
            f"Only pending leave requests can be cancelled "
            f"(request is {describe_state(state.status, state.approval_level)})"
        )
    if actor_id != requester_id:
        raise NotCurrentApprover("Only the requester can cancel a leave request")
    return WorkflowTransition(
        status=LeaveStatus.CANCELLED,
        approval_level=state.approval_level,
        current_approver_id=None,
    )
