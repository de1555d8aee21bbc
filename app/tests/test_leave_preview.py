"""
Tests for the stateless hours / validation / leave type endpoints
"""
from fastapi import status


def test_leave_types_listed(client):
    response = client.get("/api/v1/leaves/types")

    assert response.status_code == status.HTTP_200_OK
    codes = {item["code"] for item in response.json()}
    assert codes == {
        "annual", "personal", "sick", "menstrual", "marriage", "bereavement",
        "maternity", "paternity", "parental", "occupational", "other",
    }


def test_hours_by_schedule(client):
    response = client.post(
        "/api/v1/leaves/hours",
        json={
            "start": "2024-01-15T10:00:00",
            "end": "2024-01-15T16:00:00",
            "schedules": [{"date": "2024-01-15", "clock_in": "09:00", "clock_out": "18:00"}],
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"hours": 5.0, "method": "schedule", "approximate": False}


def test_hours_simple_weekend(client):
    response = client.post(
        "/api/v1/leaves/hours",
        json={"start": "2024-01-13T09:00:00", "end": "2024-01-14T18:00:00"},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"hours": 0.0, "method": "simple", "approximate": True}


def test_hours_schedule_without_date_is_rejected(client):
    response = client.post(
        "/api/v1/leaves/hours",
        json={
            "start": "2024-01-15T10:00:00",
            "end": "2024-01-15T16:00:00",
            "schedules": [{"clock_in": "09:00", "clock_out": "18:00"}],
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "date" in response.json()["detail"]


def test_hours_end_before_start(client):
    response = client.post(
        "/api/v1/leaves/hours",
        json={"start": "2024-01-15T16:00:00", "end": "2024-01-15T10:00:00"},
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_validate_returns_rule_violations_as_data(client):
    response = client.post(
        "/api/v1/leaves/validate",
        json={
            "leave_type": "annual",
            "start": "2024-03-04T09:00:00",
            "end": "2024-03-06T18:00:00",
            "hours": 24,
            "reason": "Trip",
            "requester_profile": {"hire_date": "2023-01-01"},
            "usage": {"used_days": {"annual": 5}},
        },
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["is_valid"] is False
    assert len(data["errors"]) == 1


def test_validate_overlap_with_supplied_requests(client):
    response = client.post(
        "/api/v1/leaves/validate",
        json={
            "leave_type": "other",
            "start": "2024-03-04T09:00:00",
            "end": "2024-03-04T18:00:00",
            "hours": 8,
            "reason": "Errand",
            "existing_requests": [
                {"id": 3, "leave_type": "other", "start": "2024-03-04T14:00:00",
                 "end": "2024-03-04T16:00:00", "status": "approved"},
            ],
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert any("#3" in e for e in response.json()["errors"])


def test_validate_unknown_leave_type(client):
    response = client.post(
        "/api/v1/leaves/validate",
        json={
            "leave_type": "sabbatical",
            "start": "2024-03-04T09:00:00",
            "end": "2024-03-04T18:00:00",
            "hours": 8,
            "reason": "x",
        },
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
