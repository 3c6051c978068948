from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from shopfloor.api.deps import get_cutting_repo
from shopfloor.main import app


@pytest.fixture
def client(repo):
  app.dependency_overrides[get_cutting_repo] = lambda: repo
  try:
    with TestClient(app) as test_client:
      yield test_client
  finally:
    app.dependency_overrides.clear()


def _create_job(client: TestClient, name: str) -> dict:
  response = client.post("/api/jobs", json={"customerName": "Acme", "jobName": name, "materials": [{"name": "Maple", "totalSheets": 2}]})
  assert response.status_code == 201
  return response.json()


def test_hello_and_ping(client):
  with client.websocket_connect("/ws") as websocket:
    hello = websocket.receive_json()
    assert hello["type"] == "hello"
    assert hello["pollIntervalSeconds"] > 0

    websocket.send_text("ping")
    assert websocket.receive_json() == {"type": "pong"}


def test_subscriber_receives_sheet_updates_for_its_job_only(client):
  watched = _create_job(client, "Kitchen")
  other = _create_job(client, "Office")
  watched_material = watched["cutlists"][0]["materials"][0]["id"]
  other_material = other["cutlists"][0]["materials"][0]["id"]

  with client.websocket_connect(f"/ws?jobId={watched['id']}") as websocket:
    websocket.receive_json()
    websocket.send_text("ping")
    websocket.receive_json()

    client.put(f"/api/materials/{other_material}/sheet-status", json={"sheetIndex": 0, "status": "cut"})
    client.put(f"/api/materials/{watched_material}/sheet-status", json={"sheetIndex": 1, "status": "skip"})

    event = websocket.receive_json()
    assert event["type"] == "sheet_status_updated"
    assert event["jobId"] == watched["id"]
    assert event["materialId"] == watched_material
    assert event["sheetIndex"] == 1
    assert event["status"] == "skip"
    assert event["material"]["sheetStatuses"] == ["pending", "skip"]


def test_unfiltered_subscriber_sees_job_lifecycle_events(client):
  with client.websocket_connect("/ws") as websocket:
    websocket.receive_json()
    websocket.send_text("ping")
    websocket.receive_json()

    job = _create_job(client, "Vanity")
    assert websocket.receive_json()["type"] == "job_created"

    client.post(f"/api/jobs/{job['id']}/start")
    event = websocket.receive_json()
    assert event["type"] == "job_updated"
    assert event["previousStatus"] == "waiting"
    assert event["status"] == "in_progress"
