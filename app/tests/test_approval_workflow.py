"""
Tests for the approval workflow state machine (no database)
"""
import logging

import pytest

from app.constants import SYSTEM_APPROVER_NAME
from app.core.errors import InvalidStateTransition, MissingRequiredField, NotCurrentApprover
from app.models.leave import LeaveStatus, ApprovalDecision
from app.services.approval_workflow import (
    LeaveState,
    apply_decision,
    approve_transition,
    cancel_transition,
    initial_transition,
    reject_transition,
    walk_supervisor_chain,
)


def as_state(transition):
    return LeaveState(transition.status, transition.approval_level, transition.current_approver_id)


def test_empty_chain_auto_approves_with_system_record():
    transition = initial_transition([])
    assert transition.state == "auto-approved"
    assert transition.current_approver_id is None
    assert transition.record.level == 0
    assert transition.record.approver_id is None
    assert transition.record.approver_name == SYSTEM_APPROVER_NAME
    assert transition.record.decision == ApprovalDecision.APPROVED
    assert transition.record.comment


def test_non_empty_chain_starts_pending_at_first_supervisor():
    transition = initial_transition([20, 30])
    assert transition.state == "pending@1"
    assert transition.current_approver_id == 20
    assert transition.record is None


def test_two_level_chain_approved_after_second_approval():
    chain = [20, 30]
    first = approve_transition(as_state(initial_transition(chain)), 20, "Lead", 1, chain)
    assert first.state == "pending@2"
    assert first.current_approver_id == 30
    assert first.record.level == 1

    second = approve_transition(as_state(first), 30, "Director", 2, chain, "ok")
    assert second.status == LeaveStatus.APPROVED
    assert second.state == "approved"
    assert second.current_approver_id is None
    assert second.record.level == 2
    assert second.record.comment == "ok"


def test_rejection_is_terminal_at_any_level():
    chain = [20, 30, 40]
    pending_two = approve_transition(as_state(initial_transition(chain)), 20, "Lead", 1, chain)
    rejected = reject_transition(as_state(pending_two), 30, "Director", 2, "  Team is short-staffed ")
    assert rejected.state == "rejected"
    assert rejected.current_approver_id is None
    assert rejected.rejection_reason == "Team is short-staffed"
    assert rejected.record.decision == ApprovalDecision.REJECTED

    with pytest.raises(InvalidStateTransition):
        approve_transition(as_state(rejected), 30, "Director", 2, chain)
    with pytest.raises(InvalidStateTransition):
        approve_transition(as_state(rejected), 40, "VP", 3, chain)


def test_rejection_without_comment_fails_before_state_check():
    rejected = LeaveState(LeaveStatus.REJECTED, 1, None)
    with pytest.raises(MissingRequiredField):
        reject_transition(rejected, 20, "Lead", 1, "")
    with pytest.raises(MissingRequiredField):
        apply_decision(rejected, ApprovalDecision.REJECTED, 20, "Lead", 1, [20], None)


def test_stale_expected_level_is_invalid_state():
    state = LeaveState(LeaveStatus.PENDING, 2, 30)
    with pytest.raises(InvalidStateTransition):
        approve_transition(state, 30, "Director", 1, [20, 30])


def test_wrong_actor_is_rejected():
    state = LeaveState(LeaveStatus.PENDING, 1, 20)
    with pytest.raises(NotCurrentApprover):
        approve_transition(state, 99, "Someone", 1, [20])


def test_level_at_chain_length_finalizes_approval():
    """A level at or beyond the stored chain length is final"""
    state = LeaveState(LeaveStatus.PENDING, 2, 30)
    transition = approve_transition(state, 30, "Director", 2, [20])
    assert transition.state == "approved"


def test_cancel_only_pending_and_only_requester():
    pending = LeaveState(LeaveStatus.PENDING, 1, 20)
    cancelled = cancel_transition(pending, requester_id=10, actor_id=10)
    assert cancelled.state == "cancelled"
    assert cancelled.current_approver_id is None
    assert cancelled.approval_level == 1

    with pytest.raises(NotCurrentApprover):
        cancel_transition(pending, requester_id=10, actor_id=20)
    with pytest.raises(InvalidStateTransition):
        cancel_transition(LeaveState(LeaveStatus.APPROVED, 0, None), requester_id=10, actor_id=10)


def test_walk_supervisor_chain_stops_at_max_depth():
    hierarchy = {1: 2, 2: 3, 3: 4, 4: 5}
    assert walk_supervisor_chain(1, hierarchy.get, 3) == [2, 3, 4]
    assert walk_supervisor_chain(1, hierarchy.get, 10) == [2, 3, 4, 5]


def test_walk_supervisor_chain_stops_on_cycle():
    hierarchy = {1: 2, 2: 3, 3: 1}
    assert walk_supervisor_chain(1, hierarchy.get, 5) == [2, 3]


def test_walk_supervisor_chain_logs_cycle_with_arguments(caplog):
    hierarchy = {1: 2, 2: 3, 3: 1}
    with caplog.at_level(logging.WARNING, logger="app.services.approval_workflow"):
        walk_supervisor_chain(1, hierarchy.get, 5)

    record = caplog.records[-1]
    assert record.args == (1, 1, [2, 3])
    assert record.getMessage() == "Supervisor cycle detected for employee 1: 1 already in chain [2, 3]"


def test_walk_supervisor_chain_without_supervisor():
    assert walk_supervisor_chain(1, {}.get, 3) == []
