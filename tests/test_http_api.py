from __future__ import annotations

import pytest

from src.timeclock.timeclock.main import create_app

STORE = {"location": "madrid", "department": "store"}


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id, role="employee"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role
        sess["scopes"] = [STORE]


def test_health(client):
    assert client.get("/api/health").get_json() == {"ok": True}


def test_requires_login(client):
    response = client.post("/api/time/entries", json={})

    assert response.status_code == 401


def test_clock_in_then_conflict(client):
    login(client, 7)

    created = client.post(
        "/api/time/entries",
        json={"start": "2026-03-02T09:00:00", "geo": {"latitude": 40.0, "longitude": -3.7, "accuracy": 5}},
    )
    assert created.status_code == 201
    body = created.get_json()
    assert body["worker_id"] == 7
    assert body["status"] == "open"
    assert body["breaks"] == []

    again = client.post("/api/time/entries", json={})
    assert again.status_code == 409

    events = client.get("/api/geo/events").get_json()
    assert [e["kind"] for e in events] == ["clock_in"]


def test_break_flow_and_clock_out_conflict(client):
    login(client, 7)
    entry_id = client.post("/api/time/entries", json={"start": "2026-03-02T09:00:00"}).get_json()["entry_id"]

    brk = client.post(f"/api/time/entries/{entry_id}/breaks", json={"start": "2026-03-02T12:00:00"})
    assert brk.status_code == 201
    assert client.post(f"/api/time/entries/{entry_id}/breaks", json={}).status_code == 409
    assert client.patch(f"/api/time/entries/{entry_id}", json={}).status_code == 409
    assert client.get("/api/time/state").get_json()["state"] == "on_break"

    break_id = brk.get_json()["break_id"]
    ended = client.patch(
        f"/api/time/entries/{entry_id}/breaks/{break_id}", json={"end": "2026-03-02T12:30:00"}
    )
    assert ended.status_code == 200

    closed = client.patch(f"/api/time/entries/{entry_id}", json={"end": "2026-03-02T17:00:00"})
    assert closed.status_code == 200
    assert closed.get_json()["worked_minutes"] == 450


def test_compliance_gate_blocks_clock_in(client, settings):
    settings.update({"hosting": {"hosting_provider": ""}})
    login(client, 7)

    response = client.post("/api/time/entries", json={})

    assert response.status_code == 400
    assert response.get_json()["missing"] == ["Hosting provider"]
    assert client.get("/api/compliance").get_json()["ready"] is False


def test_other_workers_entry_is_forbidden(client):
    login(client, 7)
    entry_id = client.post("/api/time/entries", json={}).get_json()["entry_id"]

    login(client, 8)
    assert client.patch(f"/api/time/entries/{entry_id}", json={}).status_code == 403
    assert client.patch("/api/time/entries/999", json={}).status_code == 404


def test_rota_visibility_over_http(client, notifier):
    login(client, 1, role="admin")
    for day in ("2026-03-02", "2026-03-03", "2026-03-04"):
        response = client.post(
            "/api/rota/shifts",
            json={"date": day, "start_time": "09:00", "end_time": "17:00", "assigned_user_id": 7},
        )
        assert response.status_code == 201

    login(client, 7)
    assert client.get("/api/rota/shifts?start=2026-03-02").get_json() == []
    assert client.post("/api/rota/weeks/2026-03-02/publish", json={}).status_code == 403

    login(client, 1, role="admin")
    assert len(client.get("/api/rota/shifts?start=2026-03-02").get_json()) == 3
    published = client.post("/api/rota/weeks/2026-03-02/publish", json={})
    assert published.status_code == 200
    assert published.get_json()["published"] is True
    assert [to for to, _, _ in notifier.sent] == ["ana@acme.test"]

    login(client, 7)
    shifts = client.get("/api/rota/shifts?start=2026-03-02").get_json()
    assert [s["work_date"] for s in shifts] == ["2026-03-02", "2026-03-03", "2026-03-04"]


def test_publish_with_failing_mail_reports_bad_gateway(client, notifier):
    notifier.fail = True
    login(client, 2, role="manager")
    client.post(
        "/api/rota/shifts",
        json={"date": "2026-03-02", "start_time": "09:00", "end_time": "17:00", "assigned_worker_id": 7},
    )

    response = client.post("/api/rota/weeks/2026-03-02/publish", json={})

    assert response.status_code == 502
    week = client.get("/api/rota/weeks?start=2026-03-02").get_json()
    assert week["published"] is True


def test_invalid_shift_times(client):
    login(client, 1, role="admin")

    response = client.post(
        "/api/rota/shifts", json={"date": "2026-03-02", "start_time": "17:00", "end_time": "09:00"}
    )

    assert response.status_code == 400
