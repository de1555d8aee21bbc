"""
Tests for leave approval/reject endpoints
"""
import pytest
from datetime import datetime
from fastapi import status
from app.core.errors import InvalidStateTransition
from app.models.audit_log import AuditLog
from app.models.leave import LeaveRequest, ApprovalRecord, LeaveApprovalChainStep, LeaveStatus
from app.services.approval_workflow import LeaveState, approve_transition
from app.services.leave_service import _commit_transition, get_supervisor_chain, load_approval_chain


@pytest.fixture
def hierarchy(make_employee):
    """Alice reports to Lead, Lead reports to Director"""
    director = make_employee("Director")
    lead = make_employee("Lead", supervisor=director)
    alice = make_employee("Alice", supervisor=lead)
    return alice, lead, director


def submit(client, employee, start="2024-01-15T09:00:00", end="2024-01-15T18:00:00"):
    response = client.post(
        "/api/v1/leaves/apply",
        json={
            "employee_id": employee.id,
            "leave_type": "personal",
            "start": start,
            "end": end,
            "reason": "Moving house",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["leave"]


def act(client, leave_id, action, approver, level, comment=None):
    return client.post(
        f"/api/v1/leaves/{leave_id}/{action}",
        json={"acting_approver_id": approver.id, "expected_level": level, "comment": comment},
    )


def test_two_level_chain_approved_after_second_approval(client, db, hierarchy):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    first = act(client, leave["id"], "approve", lead, 1)
    assert first.status_code == status.HTTP_200_OK
    data = first.json()
    assert data["leave"]["state"] == "pending@2"
    assert data["leave"]["current_approver_id"] == director.id
    assert data["record"]["level"] == 1
    assert data["record"]["approver_name"] == "Lead"

    second = act(client, leave["id"], "approve", director, 2, "Enjoy")
    assert second.status_code == status.HTTP_200_OK
    final = second.json()["leave"]
    assert final["status"] == "approved"
    assert final["state"] == "approved"
    assert final["current_approver_id"] is None
    assert [a["level"] for a in final["approvals"]] == [1, 2]
    assert all(a["decision"] == "approved" for a in final["approvals"])

    assert db.query(ApprovalRecord).count() == 2
    assert db.query(AuditLog).filter(AuditLog.action == "LEAVE_APPROVE").count() == 2


def test_pending_queue_follows_current_approver(client, hierarchy):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    assert client.get("/api/v1/leaves/pending", params={"approver_id": lead.id}).json()["total"] == 1
    assert client.get("/api/v1/leaves/pending", params={"approver_id": director.id}).json()["total"] == 0

    act(client, leave["id"], "approve", lead, 1)

    assert client.get("/api/v1/leaves/pending", params={"approver_id": lead.id}).json()["total"] == 0
    items = client.get("/api/v1/leaves/pending", params={"approver_id": director.id}).json()["items"]
    assert [item["id"] for item in items] == [leave["id"]]


def test_rejection_is_final(client, db, hierarchy):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    response = act(client, leave["id"], "reject", lead, 1, "Release week")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["leave"]["status"] == "rejected"
    assert data["leave"]["rejection_reason"] == "Release week"
    assert data["leave"]["current_approver_id"] is None
    assert data["record"]["decision"] == "rejected"

    for approver, level in ((lead, 1), (director, 2)):
        retry = act(client, leave["id"], "approve", approver, level)
        assert retry.status_code == status.HTTP_409_CONFLICT

    assert db.query(ApprovalRecord).count() == 1


def test_reject_requires_comment(client, db, hierarchy):
    alice, lead, _ = hierarchy
    leave = submit(client, alice)

    response = act(client, leave["id"], "reject", lead, 1, "   ")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["field"] == "comment"
    db.expire_all()
    stored = db.query(LeaveRequest).filter(LeaveRequest.id == leave["id"]).first()
    assert stored.status == LeaveStatus.PENDING
    assert db.query(ApprovalRecord).count() == 0


def test_stale_expected_level_conflicts(client, db, hierarchy):
    """A second approval at an already-processed level fails instead of double-processing"""
    alice, lead, director = hierarchy
    leave = submit(client, alice)
    assert act(client, leave["id"], "approve", lead, 1).status_code == status.HTTP_200_OK

    retry = act(client, leave["id"], "approve", lead, 1)
    assert retry.status_code == status.HTTP_409_CONFLICT
    early = act(client, leave["id"], "approve", director, 1)
    assert early.status_code == status.HTTP_409_CONFLICT
    assert db.query(ApprovalRecord).count() == 1


def test_only_current_approver_may_act(client, hierarchy):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    response = act(client, leave["id"], "approve", director, 1)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_action_on_missing_request(client, hierarchy):
    _, lead, _ = hierarchy
    response = act(client, 12345, "approve", lead, 1)
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_chain_is_bounded_by_max_depth(client, db, make_employee, policy):
    top = make_employee("VP")
    s3 = make_employee("Director", supervisor=top)
    s2 = make_employee("Manager", supervisor=s3)
    s1 = make_employee("Lead", supervisor=s2)
    alice = make_employee("Alice", supervisor=s1)

    assert get_supervisor_chain(db, alice.id, policy.approval_max_depth) == [s1.id, s2.id, s3.id]

    leave = submit(client, alice)
    for level, approver in enumerate((s1, s2, s3), start=1):
        response = act(client, leave["id"], "approve", approver, level)
        assert response.status_code == status.HTTP_200_OK

    assert response.json()["leave"]["state"] == "approved"


def test_conditional_update_loses_race(db, hierarchy, policy):
    """A transition computed from a stale read does not overwrite a newer state"""
    alice, lead, director = hierarchy
    leave = LeaveRequest(
        employee_id=alice.id,
        leave_type="personal",
        start_at=datetime(2024, 1, 15, 9, 0),
        end_at=datetime(2024, 1, 15, 18, 0),
        hours=8,
        reason="Moving house",
        status=LeaveStatus.PENDING,
        approval_level=1,
        current_approver_id=lead.id,
    )
    db.add(leave)
    db.commit()

    chain = get_supervisor_chain(db, alice.id, policy.approval_max_depth)
    stale = approve_transition(LeaveState(LeaveStatus.PENDING, 1, lead.id), lead.id, lead.name, 1, chain)

    # another writer wins level 1 first
    db.query(LeaveRequest).filter(LeaveRequest.id == leave.id).update(
        {LeaveRequest.approval_level: 2, LeaveRequest.current_approver_id: director.id},
        synchronize_session=False,
    )
    db.commit()

    with pytest.raises(InvalidStateTransition):
        _commit_transition(db, leave, 1, stale, lead.id, "LEAVE_APPROVE")

    db.expire_all()
    stored = db.query(LeaveRequest).filter(LeaveRequest.id == leave.id).first()
    assert stored.approval_level == 2
    assert stored.current_approver_id == director.id
    assert db.query(ApprovalRecord).count() == 0


def test_submission_stores_approval_chain(client, db, hierarchy):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    steps = db.query(LeaveApprovalChainStep).filter(
        LeaveApprovalChainStep.leave_request_id == leave["id"]
    ).order_by(LeaveApprovalChainStep.level).all()
    assert [(s.level, s.approver_id) for s in steps] == [(1, lead.id), (2, director.id)]
    assert load_approval_chain(db, leave["id"]) == [lead.id, director.id]


def test_deactivated_supervisor_after_submission_still_required(client, db, hierarchy):
    """Hierarchy edits after submission do not skip stored approval levels"""
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    director.active = False
    db.commit()

    first = act(client, leave["id"], "approve", lead, 1)
    assert first.status_code == status.HTTP_200_OK
    assert first.json()["leave"]["state"] == "pending@2"
    assert first.json()["leave"]["current_approver_id"] == director.id

    second = act(client, leave["id"], "approve", director, 2)
    assert second.status_code == status.HTTP_200_OK
    assert second.json()["leave"]["state"] == "approved"
    assert db.query(ApprovalRecord).count() == 2


def test_reparented_requester_keeps_submitted_chain(client, db, hierarchy, make_employee):
    alice, lead, director = hierarchy
    leave = submit(client, alice)

    new_lead = make_employee("New Lead")
    alice.supervisor_id = new_lead.id
    db.commit()

    # the new lead was not on the chain when the request was submitted
    assert act(client, leave["id"], "approve", new_lead, 1).status_code == status.HTTP_403_FORBIDDEN

    first = act(client, leave["id"], "approve", lead, 1)
    assert first.json()["leave"]["state"] == "pending@2"
    assert first.json()["leave"]["current_approver_id"] == director.id
