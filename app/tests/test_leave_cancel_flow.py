"""
Tests for leave cancellation by the requester
"""
from fastapi import status
from app.models.audit_log import AuditLog
from app.models.leave import ApprovalRecord


def submit(client, employee, start="2024-01-15T09:00:00", end="2024-01-15T18:00:00"):
    response = client.post(
        "/api/v1/leaves/apply",
        json={
            "employee_id": employee.id,
            "leave_type": "personal",
            "start": start,
            "end": end,
            "reason": "Appointment",
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["leave"]


def cancel(client, leave_id, employee):
    return client.post(f"/api/v1/leaves/{leave_id}/cancel", json={"employee_id": employee.id})


def test_requester_cancels_pending_request(client, db, make_employee):
    lead = make_employee("Lead")
    alice = make_employee("Alice", supervisor=lead)
    leave = submit(client, alice)

    response = cancel(client, leave["id"], alice)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "cancelled"
    assert data["state"] == "cancelled"
    assert data["current_approver_id"] is None
    assert data["approval_level"] == 1
    assert db.query(ApprovalRecord).count() == 0
    assert db.query(AuditLog).filter(AuditLog.action == "LEAVE_CANCEL").count() == 1

    # no longer in the approver's queue and cannot be approved
    assert client.get("/api/v1/leaves/pending", params={"approver_id": lead.id}).json()["total"] == 0
    approve = client.post(
        f"/api/v1/leaves/{leave['id']}/approve",
        json={"acting_approver_id": lead.id, "expected_level": 1},
    )
    assert approve.status_code == status.HTTP_409_CONFLICT


def test_cancel_mid_chain(client, make_employee):
    director = make_employee("Director")
    lead = make_employee("Lead", supervisor=director)
    alice = make_employee("Alice", supervisor=lead)
    leave = submit(client, alice)
    client.post(
        f"/api/v1/leaves/{leave['id']}/approve",
        json={"acting_approver_id": lead.id, "expected_level": 1},
    )

    response = cancel(client, leave["id"], alice)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["approval_level"] == 2
    assert [a["level"] for a in response.json()["approvals"]] == [1]


def test_only_requester_can_cancel(client, make_employee):
    lead = make_employee("Lead")
    alice = make_employee("Alice", supervisor=lead)
    leave = submit(client, alice)

    response = cancel(client, leave["id"], lead)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_cannot_cancel_finalized_request(client, make_employee):
    alice = make_employee("Alice")
    leave = submit(client, alice)
    assert leave["state"] == "auto-approved"

    response = cancel(client, leave["id"], alice)

    assert response.status_code == status.HTTP_409_CONFLICT


def test_cancelled_request_frees_the_dates(client, make_employee):
    lead = make_employee("Lead")
    alice = make_employee("Alice", supervisor=lead)
    leave = submit(client, alice)
    cancel(client, leave["id"], alice)

    again = submit(client, alice)

    assert again["state"] == "pending@1"


def test_get_leave_not_found(client):
    response = client.get("/api/v1/leaves/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] is True
