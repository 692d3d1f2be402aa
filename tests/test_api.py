import pytest
from fastapi.testclient import TestClient

from homescore.api import deps
from homescore.db.session import get_db
from homescore.main import create_app

USER = {"X-User-Id": "1"}


@pytest.fixture
def client(session_factory, job_queue, clock, catalog):
    app = create_app()

    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_job_queue] = lambda: job_queue
    app.dependency_overrides[deps.get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client


def test_health_check(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_home_score_report(client, make_property):
    prop = make_property()

    response = client.get(f"/api/v1/properties/{prop.id}/home-score", headers=USER, params={"weeks": 12})

    assert response.status_code == 200
    body = response.json()
    assert body["property_id"] == prop.id
    assert [c["key"] for c in body["components"]] == ["HEALTH", "RISK", "FINANCIAL"]
    assert 0 <= body["home_score"] <= 100


def test_home_score_requires_user_header(client, make_property):
    prop = make_property()
    assert client.get(f"/api/v1/properties/{prop.id}/home-score").status_code == 422


def test_home_score_for_foreign_property_is_404(client, make_property):
    prop = make_property(owner_user_id=2)

    response = client.get(f"/api/v1/properties/{prop.id}/home-score", headers=USER)

    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "NOT_FOUND"


def test_refresh_and_factors(client, make_property):
    prop = make_property()

    refreshed = client.post(f"/api/v1/properties/{prop.id}/home-score/refresh", headers=USER)
    factors = client.get(f"/api/v1/properties/{prop.id}/home-score/factors", headers=USER)

    assert refreshed.status_code == 200
    risk = next(c for c in refreshed.json()["components"] if c["key"] == "RISK")
    assert risk["source"] == "LIVE"
    weights = [f["weight"] for f in factors.json()]
    assert weights == sorted(weights, reverse=True)


def test_history_endpoint(client, make_property):
    prop = make_property()
    client.post(f"/internal/properties/{prop.id}/health-score", json={"score": 72, "factor_count": 8})

    response = client.get(f"/api/v1/properties/{prop.id}/home-score/history", headers=USER)

    assert response.status_code == 200
    assert [p["health_score"] for p in response.json()] == [72.0]


def test_risk_report_is_queued_then_calculated(client, make_property, job_queue):
    prop = make_property()

    queued = client.get(f"/api/v1/properties/{prop.id}/risk-report", headers=USER)
    assert queued.json()["status"] == "QUEUED"
    assert len(job_queue.enqueued) == 1

    calculated = client.post(f"/api/v1/properties/{prop.id}/risk-report/recalculate", headers=USER)
    assert calculated.status_code == 200
    assert calculated.json()["status"] == "CALCULATED"

    ready = client.get(f"/api/v1/properties/{prop.id}/risk-report", headers=USER)
    assert ready.json()["status"] == "READY"


def test_recalculate_reuses_report_inside_staleness_window(client, make_property, clock):
    prop = make_property()
    url = f"/api/v1/properties/{prop.id}/risk-report/recalculate"

    first = client.post(url, headers=USER).json()
    clock.advance(minutes=5)
    second = client.post(url, headers=USER).json()
    clock.advance(minutes=30)
    third = client.post(url, headers=USER).json()

    assert second["last_calculated_at"] == first["last_calculated_at"] == "2026-03-18T12:00:00"
    assert third["last_calculated_at"] == "2026-03-18T12:35:00"


def test_risk_report_for_foreign_property_is_404(client, make_property):
    prop = make_property(owner_user_id=2)
    assert client.get(f"/api/v1/properties/{prop.id}/risk-report", headers=USER).status_code == 404


def test_financial_report(client, make_property):
    prop = make_property()
    response = client.get(f"/api/v1/properties/{prop.id}/financial-report", headers=USER)
    assert response.status_code == 200
    assert response.json()["status"] == "QUEUED"


def test_risk_summary(client, make_property):
    assert client.get("/api/v1/risk-summary", headers={"X-User-Id": "42"}).json()["status"] == "NO_PROPERTY"


def test_corrections_flow(client, make_property):
    prop = make_property()
    url = f"/api/v1/properties/{prop.id}/home-score/corrections"

    created = client.post(url, headers=USER, json={"field_key": "roof_type", "detail": "Roof is metal since 2023"})
    invalid = client.post(url, headers=USER, json={"field_key": "moat", "detail": "There is no moat here"})
    listed = client.get(url, headers=USER)

    assert created.status_code == 201
    assert created.json()["status"] == "SUBMITTED"
    assert invalid.status_code == 422
    assert invalid.json()["detail"]["kind"] == "VALIDATION"
    assert [c["id"] for c in listed.json()] == [created.json()["id"]]

    transition = f"/internal/corrections/{created.json()['id']}/transition"
    assert client.post(transition, json={"status": "APPLIED"}).status_code == 200
    conflict = client.post(transition, json={"status": "REJECTED"})
    assert conflict.status_code == 409
    assert conflict.json()["detail"]["kind"] == "CONFLICT"


def test_publish_health_score_for_unknown_property(client):
    response = client.post("/internal/properties/999/health-score", json={"score": 50})
    assert response.status_code == 404
