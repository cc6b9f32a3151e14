# server/tests/unit/test_api_events.py
from datetime import datetime, timedelta, timezone

import pytest

from reminder_engine.infrastructure.persistence.database.models import Notification

pytestmark = pytest.mark.unit


def _in(**delta) -> str:
    return (datetime.now(timezone.utc) + timedelta(**delta)).isoformat()


def test_create_event_materializes_notifications(client, auth_headers, user_id, Session):
    r = client.post(
        "/api/v1/events",
        json={
            "event_date": _in(days=2),
            "event_summary": "  Dentist  ",
            "category": "Appointment",
            "priority": "HIGH",
            "notification_schedule": ["one_day_before", "one_hour_before", "bogus"],
        },
        headers=auth_headers,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["event"]["user_id"] == str(user_id)
    assert body["event"]["event_summary"] == "Dentist"
    assert body["event"]["event_type"] == "appointment"
    assert body["event"]["priority"] == "high"
    assert body["event"]["notified"] is True
    assert sorted(n["notification_type"] for n in body["notifications"]) == ["one_day_before", "one_hour_before"]
    assert all(n["sent"] is False for n in body["notifications"])

    with Session() as s:
        assert s.query(Notification).filter_by(user_id=user_id).count() == 2


def test_create_event_default_policy_for_category(client, auth_headers):
    r = client.post(
        "/api/v1/events",
        json={"event_date": _in(days=10), "event_summary": "Tax return", "category": "deadline"},
        headers=auth_headers,
    )
    assert r.status_code == 201, r.text
    assert {n["notification_type"] for n in r.json()["notifications"]} == {
        "one_week_before", "three_days_before", "one_day_before",
    }


def test_create_event_requires_user_header(client):
    r = client.post("/api/v1/events", json={"event_date": _in(days=1), "event_summary": "x"})
    assert r.status_code == 401
    assert r.json()["detail"] == "missing_user"


def test_create_event_rejects_invalid_user_header(client):
    r = client.post(
        "/api/v1/events",
        json={"event_date": _in(days=1), "event_summary": "x"},
        headers={"X-User-Id": "not-a-uuid"},
    )
    assert r.status_code == 401


def test_create_event_in_the_past_is_422(client, auth_headers):
    r = client.post(
        "/api/v1/events",
        json={"event_date": _in(minutes=-5), "event_summary": "Too late"},
        headers=auth_headers,
    )
    assert r.status_code == 422


@pytest.mark.parametrize(
    "payload",
    [
        {"event_summary": "x", "category": "party"},
        {"event_summary": "   "},
        {"event_summary": "x", "priority": "urgent"},
    ],
)
def test_create_event_schema_errors(client, auth_headers, payload):
    payload = {"event_date": _in(days=1), **payload}
    assert client.post("/api/v1/events", json=payload, headers=auth_headers).status_code == 422


def test_list_upcoming_events_is_scoped(client, auth_headers):
    for days in (3, 1):
        client.post(
            "/api/v1/events",
            json={"event_date": _in(days=days), "event_summary": f"in {days}d"},
            headers=auth_headers,
        )
    client.post(
        "/api/v1/events",
        json={"event_date": _in(days=2), "event_summary": "someone else"},
        headers={"X-User-Id": "00000000-0000-4000-8000-000000000001"},
    )

    r = client.get("/api/v1/events", headers=auth_headers)
    assert r.status_code == 200
    assert [e["event_summary"] for e in r.json()] == ["in 1d", "in 3d"]
