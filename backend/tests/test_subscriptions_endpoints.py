import pytest

pytest.importorskip("httpx")

from datetime import datetime, timedelta

from backend.app.models import Transaction, User

BASE = datetime(2024, 1, 10, 9, 30)


def _seed_netflix(db, email="owner@example.com"):
    user = User(email=email, name="Owner")
    db.add(user)
    db.flush()
    for i, amount in enumerate([1540, 1549, 1558, 1549]):
        db.add(
            Transaction(
                user_id=user.id,
                date=BASE + timedelta(days=30 * i),
                name="NETFLIX.COM",
                amount_cents=amount,
                direction="OUTFLOW",
            )
        )
    db.commit()
    return user


def test_detect_requires_identity(api_client):
    resp = api_client.post("/api/subscriptions/detect")
    assert resp.status_code == 401


def test_unknown_user_id_is_rejected(api_client):
    resp = api_client.get("/api/subscriptions/list", headers={"X-User-Id": "missing"})
    assert resp.status_code == 401


def test_detect_then_list(api_client, sqlite_session):
    user = _seed_netflix(sqlite_session)
    headers = {"X-User-Email": user.email}

    resp = api_client.post("/api/subscriptions/detect", headers=headers)
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["ok"] is True
    assert payload["insightsCreated"] == 1
    assert payload["alertsCreated"] == 1
    [candidate] = payload["detected"]
    assert candidate["merchant"] == "netflixcom"
    assert candidate["cadence"] == "monthly"
    assert candidate["avgAmountCents"] == 1549
    assert candidate["count"] == 4
    assert candidate["lastDate"].startswith((BASE + timedelta(days=90)).date().isoformat())
    assert len(candidate["sampleDates"]) == 4

    resp = api_client.get("/api/subscriptions/list", headers=headers)
    assert resp.status_code == 200
    [item] = resp.json()["subscriptions"]
    assert item["title"] == "Recurring charge detected: netflixcom"
    assert item["meta"]["cadence"] == "monthly"


def test_new_email_is_provisioned_with_empty_results(api_client):
    headers = {"X-User-Email": "New.Person@Example.com"}

    resp = api_client.post("/api/subscriptions/detect", headers=headers)

    assert resp.status_code == 200
    assert resp.json()["detected"] == []
    assert api_client.get("/api/subscriptions/list", headers=headers).json() == {"subscriptions": []}


def test_demo_seed_then_detect(api_client):
    headers = {"X-User-Email": "demo@example.com"}

    resp = api_client.post("/api/demo/seed", json={"count": 10}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["transactionsCreated"] == 25

    merchants = {c["merchant"] for c in api_client.post("/api/subscriptions/detect", headers=headers).json()["detected"]}
    assert {"netflixcom", "spotify", "planet fitness"} <= merchants


def test_demo_seed_validates_body(api_client):
    resp = api_client.post(
        "/api/demo/seed", json={"days": 3}, headers={"X-User-Email": "demo@example.com"}
    )
    assert resp.status_code == 422


def test_demo_seed_can_be_disabled(api_client, monkeypatch):
    monkeypatch.setenv("DEMO_SEED_DISABLED", "1")
    resp = api_client.post("/api/demo/seed", json={}, headers={"X-User-Email": "demo@example.com"})
    assert resp.status_code == 404


def test_config_endpoint_reports_thresholds(api_client, monkeypatch):
    monkeypatch.setenv("RECURRING_SCAN_LIMIT", "not-a-number")

    payload = api_client.get("/api/config").json()

    assert payload["recurring_scan_limit"] == 800
    assert payload["demo_seed_enabled"] is True
    assert payload["recurring"]["max_candidates"] == 10
    assert payload["recurring"]["amount_tolerance"] == 0.08


def test_audit_list_shows_detect_runs_for_caller_only(api_client, sqlite_session):
    user = _seed_netflix(sqlite_session)
    headers = {"X-User-Email": user.email, "User-Agent": "pytest-agent"}
    api_client.post("/api/subscriptions/detect", headers=headers)
    api_client.post("/api/demo/seed", json={"count": 10}, headers={"X-User-Email": "someone@example.com"})

    resp = api_client.get("/api/audit/list", headers=headers)
    assert resp.status_code == 200
    [item] = resp.json()["items"]
    assert item["action"] == "subscriptions.detect"
    assert item["meta"] == {"detectedCount": 1, "insightsCreated": 1, "alertsCreated": 1}
    assert item["user_agent"] == "pytest-agent"

    filtered = api_client.get("/api/audit/list", params={"action": "demo.seed"}, headers=headers)
    assert filtered.json() == {"items": []}


def test_audit_list_requires_identity(api_client):
    assert api_client.get("/api/audit/list").status_code == 401
