import pytest
from fastapi.testclient import TestClient

from change_planner.core.config import Settings, settings
from change_planner.services.change_planner_service import ChangePlannerService
from main import create_app

from conftest import make_current, make_input


@pytest.fixture
def client() -> TestClient:
    service = ChangePlannerService(config=Settings(llm_provider="none"))
    return TestClient(create_app(service=service))


def _payload(**overrides) -> dict:
    data = {
        "trip_id": "trip-1",
        "previous": make_input().model_dump(mode="json"),
        "proposed": make_input(budget={"total": 4500}).model_dump(mode="json"),
        "current_results": make_current().model_dump(mode="json"),
        "source": "quick_chip",
    }
    data.update(overrides)
    return data


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["environment"] == settings.environment


def test_change_plan(client):
    resp = client.post("/api/change-plan", json=_payload())

    assert resp.status_code == 200
    body = resp.json()
    assert body["change_id"].startswith("chg_")
    assert body["detected_changes"][0]["field"] == "budget"
    assert body["detected_changes"][0]["severity"] == "low"
    assert body["recompute_plan"]["modules_to_recompute"] == [
        "action_items",
        "certainty",
        "hotels",
        "itinerary",
    ]
    assert body["ui_instructions"]["banner"]["tone"] == "green"


def test_change_plan_rejects_missing_fields(client):
    payload = _payload()
    del payload["previous"]

    resp = client.post("/api/change-plan", json=payload)

    assert resp.status_code == 422


def test_change_plan_rejects_empty_trip_id(client):
    resp = client.post("/api/change-plan", json=_payload(trip_id=""))

    assert resp.status_code == 422


def test_status(client):
    resp = client.get("/api/change-plan/status")

    assert resp.status_code == 200
    assert resp.json() == {"agent_initialized": False, "use_agent_default": True, "mode": "deterministic"}


def test_fix_options(client):
    resp = client.post(
        "/api/fix-options",
        json={
            "trip_id": "trip-1",
            "current_input": make_input().model_dump(mode="json"),
            "feasibility_report": {"visa_details": {"required": False, "type": "visa_free"}},
        },
    )

    assert resp.status_code == 200
    assert resp.json()["options"] == []
