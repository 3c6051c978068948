"""End-to-end REST tests over the in-memory repository."""

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


def _create_job(client: TestClient, **overrides) -> dict:
  payload = {"customerName": "Acme Cabinets", "jobName": "Kitchen remodel", "materials": [{"name": "White Oak 3/4", "totalSheets": 3}]}
  payload.update(overrides)
  response = client.post("/api/jobs", json=payload)
  assert response.status_code == 201, response.text
  return response.json()


def _material(job: dict) -> dict:
  return job["cutlists"][0]["materials"][0]


def test_health_echoes_request_id(client):
  response = client.get("/health", headers={"x-request-id": "req-123"})
  assert response.status_code == 200
  assert response.json() == {"status": "ok"}
  assert response.headers["x-request-id"] == "req-123"


def test_create_and_fetch_job(client):
  job = _create_job(client)

  assert job["status"] == "waiting"
  assert job["jobNumber"].startswith("JOB-")
  assert job["allowedActions"] == ["start"]
  assert _material(job)["sheetStatuses"] == ["pending", "pending", "pending"]
  assert job["progress"] == {"completed": 0, "skipped": 0, "total": 3, "effectiveTotal": 3, "percentage": 0}

  fetched = client.get(f"/api/jobs/{job['id']}").json()
  assert fetched["id"] == job["id"]
  assert fetched["cutlists"][0]["name"] == "Cutlist 1"


def test_create_job_validation(client):
  assert client.post("/api/jobs", json={"jobName": "Kitchen"}).status_code == 422
  assert client.post("/api/jobs", json={"customerName": "   ", "jobName": "Kitchen"}).status_code == 400
  response = client.post("/api/jobs", json={"customerName": "Acme", "jobName": "Kitchen", "materials": [{"name": "Oak", "totalSheets": 0}]})
  assert response.status_code == 400
  assert "Total sheets" in response.json()["detail"]


def test_list_jobs_filters(client):
  kitchen = _create_job(client)
  office = _create_job(client, customerName="Birch", jobName="Office fit-out", materials=[])
  client.post(f"/api/jobs/{office['id']}/start")

  assert {job["id"] for job in client.get("/api/jobs").json()} == {kitchen["id"], office["id"]}
  assert [job["id"] for job in client.get("/api/jobs", params={"search": "office"}).json()] == [office["id"]]
  assert [job["id"] for job in client.get("/api/jobs", params={"status": "in_progress"}).json()] == [office["id"]]
  assert client.get("/api/jobs", params={"status": "archived"}).status_code == 400


def test_sheet_status_updates_progress(client):
  job = _create_job(client)
  material_id = _material(job)["id"]

  response = client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 0, "status": "cut"})
  assert response.status_code == 200
  assert response.json()["sheetStatuses"] == ["cut", "pending", "pending"]

  client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 1, "status": "skip"})
  refreshed = client.get(f"/api/jobs/{job['id']}").json()
  assert refreshed["progress"]["percentage"] == 50
  assert refreshed["progress"]["effectiveTotal"] == 2


@pytest.mark.parametrize(
  ("body", "status_code"),
  [
    ({"sheetIndex": 3, "status": "cut"}, 400),
    ({"sheetIndex": -1, "status": "cut"}, 400),
    ({"sheetIndex": 0, "status": "done"}, 400),
    ({"sheetIndex": "0", "status": "cut"}, 422),
    ({"status": "cut"}, 422),
  ],
)
def test_sheet_status_rejections_leave_material_unchanged(client, body, status_code):
  job = _create_job(client)
  material_id = _material(job)["id"]

  assert client.put(f"/api/materials/{material_id}/sheet-status", json=body).status_code == status_code

  assert _material(client.get(f"/api/jobs/{job['id']}").json())["sheetStatuses"] == ["pending", "pending", "pending"]


def test_unknown_ids_are_not_found(client):
  assert client.get("/api/jobs/999").status_code == 404
  assert client.put("/api/materials/999/sheet-status", json={"sheetIndex": 0, "status": "cut"}).status_code == 404
  assert client.put("/api/recuts/999/sheet-status", json={"sheetIndex": 0, "status": "cut"}).status_code == 404
  assert client.delete("/api/cutlists/999").status_code == 404
  assert client.post("/api/jobs/999/start").status_code == 404


def test_add_and_delete_sheets(client):
  material_id = _material(_create_job(client))["id"]

  added = client.post(f"/api/materials/{material_id}/add-sheets", json={"additionalSheets": 2}).json()
  assert added["totalSheets"] == 5

  client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 0, "status": "cut"})
  assert client.delete(f"/api/materials/{material_id}/sheet/0").status_code == 400

  client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 4, "status": "skip"})
  response = client.delete(f"/api/materials/{material_id}/sheet/4")
  assert response.status_code == 200
  assert response.json()["totalSheets"] == 4


def test_recut_batches(client):
  job = _create_job(client)
  material_id = _material(job)["id"]

  created = client.post(f"/api/materials/{material_id}/recuts", json={"quantity": 2, "reason": "Chipped edge"})
  assert created.status_code == 201
  recut = created.json()
  assert recut["sheetStatuses"] == ["pending", "pending"]

  updated = client.put(f"/api/recuts/{recut['id']}/sheet-status", json={"sheetIndex": 1, "status": "cut"}).json()
  assert updated["progress"]["completed"] == 1

  material = _material(client.get(f"/api/jobs/{job['id']}").json())
  assert material["sheetStatuses"] == ["pending", "pending", "pending"]
  assert material["progress"]["total"] == 3
  assert material["combinedProgress"]["total"] == 5
  assert material["combinedProgress"]["completed"] == 1

  assert client.post(f"/api/materials/{material_id}/recuts", json={"quantity": 0}).status_code == 400
  assert [item["id"] for item in client.get(f"/api/materials/{material_id}/recuts").json()] == [recut["id"]]
  assert client.delete(f"/api/recuts/{recut['id']}").status_code == 204
  assert client.get(f"/api/materials/{material_id}/recuts").json() == []


def test_deleting_a_recut_keeps_material_sheets(client):
  job = _create_job(client)
  material_id = _material(job)["id"]
  client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 2, "status": "skip"})
  doomed = client.post(f"/api/materials/{material_id}/recuts", json={"quantity": 1}).json()
  sibling = client.post(f"/api/materials/{material_id}/recuts", json={"quantity": 2}).json()
  client.put(f"/api/recuts/{sibling['id']}/sheet-status", json={"sheetIndex": 0, "status": "cut"})

  assert client.delete(f"/api/recuts/{doomed['id']}").status_code == 204

  material = _material(client.get(f"/api/jobs/{job['id']}").json())
  assert material["totalSheets"] == 3
  assert material["sheetStatuses"] == ["pending", "pending", "skip"]
  assert [recut["sheetStatuses"] for recut in material["recutEntries"]] == [["cut", "pending"]]


def test_job_lifecycle_over_http(client):
  job_id = _create_job(client)["id"]

  assert client.post(f"/api/jobs/{job_id}/pause").status_code == 409
  started = client.post(f"/api/jobs/{job_id}/start").json()
  assert started["status"] == "in_progress"
  assert sorted(started["allowedActions"]) == ["complete", "pause"]
  assert client.post(f"/api/jobs/{job_id}/start").status_code == 409

  assert client.post(f"/api/jobs/{job_id}/pause").json()["status"] == "paused"
  assert client.post(f"/api/jobs/{job_id}/resume").json()["status"] == "in_progress"
  done = client.post(f"/api/jobs/{job_id}/complete").json()
  assert done["status"] == "done"
  assert done["endTime"] is not None
  assert all(log["endTime"] is not None for log in done["timeLogs"])
  assert client.post(f"/api/jobs/{job_id}/resume").status_code == 409


def test_session_timer_endpoints(client):
  job_id = _create_job(client)["id"]

  started = client.post(f"/api/jobs/{job_id}/start-timer").json()
  assert [log["source"] for log in started["timeLogs"]] == ["session"]
  stopped = client.post(f"/api/jobs/{job_id}/stop-timer").json()
  assert stopped["timeLogs"][0]["endTime"] is not None
  assert stopped["status"] == "waiting"


def test_cutlists_and_materials(client):
  job_id = _create_job(client)["id"]

  cutlists = client.post(f"/api/jobs/{job_id}/cutlists", json={"count": 2}).json()
  assert [cutlist["name"] for cutlist in cutlists] == ["Cutlist 2", "Cutlist 3"]

  material = client.post(f"/api/cutlists/{cutlists[0]['id']}/materials", json={"name": "Walnut", "totalSheets": 4}).json()
  assert material["sheetStatuses"] == ["pending"] * 4

  assert client.delete(f"/api/materials/{material['id']}").status_code == 204
  assert client.delete(f"/api/cutlists/{cutlists[1]['id']}").status_code == 204
  assert client.delete(f"/api/cutlists/{cutlists[1]['id']}").status_code == 404
  assert client.get(f"/api/jobs/{job_id}").json()["cutlistCount"] == 2


def test_delete_job(client):
  job_id = _create_job(client)["id"]
  assert client.delete(f"/api/jobs/{job_id}").status_code == 204
  assert client.get(f"/api/jobs/{job_id}").status_code == 404


def test_dashboard_stats(client):
  material_id = _material(_create_job(client))["id"]
  client.put(f"/api/materials/{material_id}/sheet-status", json={"sheetIndex": 0, "status": "cut"})

  stats = client.get("/api/dashboard/stats").json()

  assert stats["activeJobs"] == 1
  assert stats["materialCount"] == 1
  assert stats["sheetsCutToday"] == 1
  assert stats["jobsByStatus"]["waiting"] == 1


def test_part_checklists(client):
  job_id = _create_job(client)["id"]

  created = client.post(f"/api/jobs/{job_id}/checklists", json={"category": "sheets"})
  assert created.status_code == 201
  checklist = created.json()
  assert checklist["name"] == "Job Preparation Checklist"
  assert checklist["category"] == "sheets"

  item = client.post(f"/api/checklists/{checklist['id']}/items", json={"text": "Verify material specifications", "priority": "high"})
  assert item.status_code == 201
  item_id = item.json()["id"]
  client.post(f"/api/checklists/{checklist['id']}/items", json={"text": "Confirm safety equipment", "priority": "critical", "orderIndex": 0})

  ticked = client.patch(f"/api/checklists/items/{item_id}", json={"completed": True}).json()
  assert ticked["completed"] is True
  assert ticked["completedAt"] is not None

  loaded = client.get(f"/api/checklists/{checklist['id']}").json()
  assert [entry["text"] for entry in loaded["items"]] == ["Confirm safety equipment", "Verify material specifications"]
  assert (loaded["completedCount"], loaded["itemCount"]) == (1, 2)
  assert [entry["id"] for entry in client.get(f"/api/jobs/{job_id}/checklists").json()] == [checklist["id"]]

  assert client.delete(f"/api/checklists/items/{item_id}").status_code == 204
  assert client.delete(f"/api/checklists/items/{item_id}").status_code == 404
  assert client.delete(f"/api/checklists/{checklist['id']}").status_code == 204
  assert client.get(f"/api/checklists/{checklist['id']}").status_code == 404


@pytest.mark.parametrize(
  ("path", "body", "status_code"),
  [
    ("/api/jobs/{job_id}/checklists", {"category": "paint"}, 400),
    ("/api/jobs/999/checklists", {}, 404),
    ("/api/checklists/999/items", {"text": "Sweep"}, 404),
    ("/api/checklists/{checklist_id}/items", {"text": "Sweep", "priority": "urgent"}, 400),
    ("/api/checklists/{checklist_id}/items", {"text": 5}, 422),
  ],
)
def test_checklist_errors(client, path, body, status_code):
  job_id = _create_job(client)["id"]
  checklist_id = client.post(f"/api/jobs/{job_id}/checklists", json={}).json()["id"]

  assert client.post(path.format(job_id=job_id, checklist_id=checklist_id), json=body).status_code == status_code
