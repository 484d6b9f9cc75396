from __future__ import annotations

import pytest

from shift_roster.main import create_app

from support import EVE, GM, MANAGER, build_world


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=build_world().container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, actor):
    with client.session_transaction() as sess:
        sess["user_id"] = actor.user_id
        sess["role"] = actor.role.value


def _create_week(client):
    login(client, MANAGER)
    resp = client.post("/schedule", json={"week_start": "2025-10-06", "request_deadline": "2025-10-03T23:59:59"})
    assert resp.status_code == 201
    return resp.get_json()


def test_requires_session(client):
    resp = client.get("/schedule")

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "AuthenticationError"


def test_manager_creates_week(client):
    week = _create_week(client)

    assert week["week_start"] == "2025-10-06"
    assert week["week_end"] == "2025-10-12"
    assert week["is_published"] is False

    detail = client.get(f"/schedule/{week['schedule_id']}").get_json()
    assert detail["schedule"]["schedule_id"] == week["schedule_id"]
    assert len(detail["shifts"]) == 0  # managers plan, only reviewers see unpublished rosters


def test_employee_cannot_create_week(client):
    login(client, EVE)
    resp = client.post("/schedule", json={"week_start": "2025-10-06"})

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "AuthorizationError"


def test_missing_week_start_is_a_validation_error(client):
    login(client, MANAGER)
    resp = client.post("/schedule", json={})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "week_start is required", "code": "ValidationError"}


def test_request_submit_review_convert(client):
    week = _create_week(client)

    login(client, EVE)
    payload = {
        "week_schedule_id": week["schedule_id"],
        "type": "specific_time",
        "date": "2025-10-07",
        "preferred_start_time": "09:00",
        "preferred_end_time": "17:00",
    }
    resp = client.post("/shift-requests", json=payload)
    assert resp.status_code == 201
    created = resp.get_json()
    assert created["status"] == "PENDING"
    assert created["preferred"]["start"] == "2025-10-07T09:00:00"
    assert created["requested_hours"] == 8.0

    dup = client.post("/shift-requests", json=payload)
    assert dup.status_code == 409
    assert dup.get_json()["code"] == "ConflictError"

    login(client, GM)
    reviewed = client.patch(f"/shift-requests/{created['request_id']}/review", json={"action": "approve"})
    assert reviewed.get_json()["status"] == "APPROVED"

    converted = client.post(
        f"/shift-requests/{created['request_id']}/convert",
        json={"position_id": 1, "start_time": "10:00", "end_time": "16:00"},
    )
    assert converted.status_code == 201
    shift = converted.get_json()
    assert shift["hours_worked"] == 6.0
    assert shift["is_placeholder"] is False
    assert shift["shift_request_id"] == created["request_id"]

    listed = client.get(f"/shift-requests?scheduleId={week['schedule_id']}&status=converted_to_shift").get_json()
    assert [r["request_id"] for r in listed] == [created["request_id"]]


def test_bad_enum_and_unknown_request(client):
    week = _create_week(client)
    login(client, EVE)

    bad = client.post(
        "/shift-requests", json={"week_schedule_id": week["schedule_id"], "type": "NAP", "date": "2025-10-07"}
    )
    assert bad.status_code == 400
    assert bad.get_json()["code"] == "ValidationError"

    missing = client.get("/shift-requests/999")
    assert missing.status_code == 404
    assert missing.get_json()["code"] == "NotFoundError"


def test_vacation_balance_and_positions(client):
    login(client, EVE)

    balance = client.get("/time-off/balance").get_json()
    assert balance["available_days"] == 20
    assert balance["vacation_year"] == 2025

    names = [p["name"] for p in client.get("/positions").get_json()]
    assert names == ["Barista", "Cashier", "Cook"]

    forbidden = client.get("/time-off/team")
    assert forbidden.status_code == 403


def test_unknown_route_uses_json_errors(client):
    resp = client.get("/nowhere")

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "NotFound"


def test_publish_requires_a_boolean_flag(client):
    week = _create_week(client)
    login(client, GM)
    url = f"/schedule/{week['schedule_id']}/publish"

    for body in ({}, {"is_published": "false"}, {"is_published": 1}):
        resp = client.patch(url, json=body)
        assert resp.status_code == 400
        assert resp.get_json()["code"] == "ValidationError"

    assert client.get(f"/schedule/{week['schedule_id']}").get_json()["schedule"]["is_published"] is False

    published = client.patch(url, json={"is_published": True}).get_json()
    assert published["is_published"] is True
    assert client.patch(url, json={"is_published": False}).get_json()["is_published"] is False


def test_edit_request_day_count(client):
    week = _create_week(client)
    login(client, EVE)
    created = client.post(
        "/shift-requests",
        json={"week_schedule_id": week["schedule_id"], "type": "time_off", "date": "2025-10-08", "vacation_days": 2},
    ).get_json()

    edited = client.put(f"/shift-requests/{created['request_id']}", json={"vacation_days": 4})

    assert edited.status_code == 200
    assert edited.get_json()["vacation_days"] == 4
