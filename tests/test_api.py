import pytest
from fastapi.testclient import TestClient

from conftest import NOW, SERVICE_ID
from studio_dashboard.api import get_dashboard_service
from studio_dashboard.main import app
from studio_dashboard.services.dashboard import DashboardService


@pytest.fixture
def dashboard(fake_client):
    return DashboardService(client=fake_client, clock=lambda: NOW)


@pytest.fixture
def api(dashboard):
    app.dependency_overrides[get_dashboard_service] = lambda: dashboard
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_overview(api):
    response = api.get("/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["today_count"] == 2
    assert body["stats"]["total_customers"] == 2
    assert len(body["weekly_histogram"]) == 7


def test_agenda(api):
    response = api.get("/dashboard/agenda")

    assert response.status_code == 200
    body = response.json()
    assert [c["requested_at"] for c in body["today"]] == ["2025-06-10T09:00", "2025-06-10T15:30"]
    assert [g["day"] for g in body["upcoming"]] == ["2025-06-11"]


def test_fetch_failure_answers_503_until_refresh(api, fake_client):
    fake_client.fail_on.add("list_appointments")

    assert api.get("/dashboard").status_code == 503
    assert api.get("/health").status_code == 503

    fake_client.fail_on.clear()
    assert api.get("/dashboard/agenda").status_code == 503

    refreshed = api.post("/dashboard/refresh")
    assert refreshed.status_code == 200
    assert refreshed.json()["appointments"] == 3
    assert api.get("/dashboard").status_code == 200


def test_status_reports_flags(api):
    api.post("/dashboard/refresh")

    body = api.get("/dashboard/status").json()

    assert body["loading"] is False
    assert body["submitting"] is False
    assert body["error"] is None
    assert body["fetched_at"] == NOW.isoformat()


def test_service_options(api):
    response = api.get("/services")

    assert response.status_code == 200
    assert response.json()[0]["label"] == "Hot Stone (59€)"


def test_create_appointment(api, fake_client):
    response = api.post("/appointments", json={
        "first_name": "Erika",
        "last_name": "Muster",
        "date": "2025-06-12",
        "time": "10:15",
        "duration": "dauer_60",
        "service_id": SERVICE_ID,
    })

    assert response.status_code == 201
    assert response.json()["success"] is True
    assert fake_client.created[0]["wunschtermin"] == "2025-06-12T10:15"


def test_create_appointment_rejected_by_record_store(api, fake_client):
    fake_client.fail_on.add("create_appointment")

    response = api.post("/appointments", json={"first_name": "Erika"})

    assert response.status_code == 502
    assert response.json()["error"] == "submission_failed"


def test_create_appointment_while_submitting(api, dashboard):
    dashboard.submitting = True

    response = api.post("/appointments", json={"first_name": "Erika"})

    assert response.status_code == 409


def test_create_appointment_with_invalid_date(api):
    response = api.post("/appointments", json={"date": "12.06.2025", "time": "10:15"})

    assert response.status_code == 422
