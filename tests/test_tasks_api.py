import os
from datetime import datetime

from fastapi.testclient import TestClient

from focus_api.db import SQLiteRepository
from focus_api.main import app
from focus_api.repositories import get_repository

TASKS = "/api/v1/tasks/"


def create_task_payload(title="Test Task", is_priority=False):
    return {"title": title, "is_priority": is_priority}


def assert_task_shape(task: dict):
    for key in ["id", "title", "status", "is_priority", "owner_id", "created_at", "updated_at"]:
        assert key in task
    assert "seq" not in task
    assert isinstance(task["id"], str)
    assert task["status"] in ("TODO", "DOING", "DONE")
    assert isinstance(task["is_priority"], bool)
    datetime.fromisoformat(task["created_at"])
    datetime.fromisoformat(task["updated_at"])


class TestHealth:
    def test_health_check(self, client):
        res = client.get("/")
        assert res.status_code == 200
        data = res.json()
        assert data["message"] == "Healthy"
        assert data["backend"] in ("memory", "sqlite")


class TestTasksCRUD:
    def test_create_task_minimal(self, client, alice):
        res = client.post(TASKS, json=create_task_payload(title="  Buy milk "), headers=alice)
        assert res.status_code == 201
        task = res.json()
        assert_task_shape(task)
        assert task["title"] == "Buy milk"
        assert task["status"] == "TODO"
        assert task["is_priority"] is False
        assert task["owner_id"] == "alice"

    def test_get_task_and_not_found(self, client, alice, bob):
        tid = client.post(TASKS, json=create_task_payload(title="Read book"), headers=alice).json()["id"]

        res_get = client.get(f"{TASKS}{tid}", headers=alice)
        assert res_get.status_code == 200
        assert res_get.json()["title"] == "Read book"

        res_other = client.get(f"{TASKS}{tid}", headers=bob)
        assert res_other.status_code == 404
        assert res_other.json() == {"error": "NotFound", "message": "Task not found"}

    def test_list_orders_priority_first(self, client, alice):
        a = client.post(TASKS, json=create_task_payload("A", True), headers=alice).json()
        b = client.post(TASKS, json=create_task_payload("B"), headers=alice).json()
        c = client.post(TASKS, json=create_task_payload("C", True), headers=alice).json()

        res = client.get(TASKS, headers=alice)
        assert res.status_code == 200
        assert [t["id"] for t in res.json()] == [c["id"], a["id"], b["id"]]

    def test_patch_status_any_transition(self, client, alice):
        tid = client.post(TASKS, json=create_task_payload("Jump"), headers=alice).json()["id"]
        res = client.patch(f"{TASKS}{tid}", json={"status": "DONE"}, headers=alice)
        assert res.status_code == 200
        assert res.json()["status"] == "DONE"
        res = client.patch(f"{TASKS}{tid}", json={"status": "DOING"}, headers=alice)
        assert res.json()["status"] == "DOING"

    def test_patch_rejects_title_change(self, client, alice):
        tid = client.post(TASKS, json=create_task_payload("Fixed"), headers=alice).json()["id"]
        res = client.patch(f"{TASKS}{tid}", json={"title": "Renamed"}, headers=alice)
        assert res.status_code == 422

    def test_cycle_status_endpoint(self, client, alice):
        tid = client.post(TASKS, json=create_task_payload("Cycle"), headers=alice).json()["id"]
        statuses = [
            client.post(f"{TASKS}{tid}/cycle-status", headers=alice).json()["status"] for _ in range(3)
        ]
        assert statuses == ["DOING", "DONE", "TODO"]

    def test_delete_task(self, client, alice):
        tid = client.post(TASKS, json=create_task_payload("ToDelete"), headers=alice).json()["id"]

        res_del = client.delete(f"{TASKS}{tid}", headers=alice)
        assert res_del.status_code == 204
        assert res_del.text == ""

        assert client.get(f"{TASKS}{tid}", headers=alice).status_code == 404
        res_again = client.delete(f"{TASKS}{tid}", headers=alice)
        assert res_again.status_code == 404
        assert res_again.json()["error"] == "NotFound"


class TestPriorityLimit:
    def test_fourth_priority_create_conflicts(self, client, alice):
        for i in range(3):
            assert client.post(TASKS, json=create_task_payload(f"Top {i}", True), headers=alice).status_code == 201
        res = client.post(TASKS, json=create_task_payload("Write report", True), headers=alice)
        assert res.status_code == 409
        assert res.json()["error"] == "PriorityLimitExceeded"
        assert len(client.get(TASKS, headers=alice).json()) == 3

    def test_toggle_priority_endpoint(self, client, alice):
        for i in range(3):
            client.post(TASKS, json=create_task_payload(f"Top {i}", True), headers=alice)
        tid = client.post(TASKS, json=create_task_payload("Plain"), headers=alice).json()["id"]

        res = client.post(f"{TASKS}{tid}/toggle-priority", headers=alice)
        assert res.status_code == 409

        top = client.get(TASKS, headers=alice).json()[0]
        res = client.post(f"{TASKS}{top['id']}/toggle-priority", headers=alice)
        assert res.status_code == 200
        assert res.json()["is_priority"] is False

        res = client.patch(f"{TASKS}{tid}", json={"is_priority": True}, headers=alice)
        assert res.status_code == 200
        assert res.json()["is_priority"] is True


class TestValidationAndAuth:
    def test_create_validation_error_title_blank(self, client, alice):
        res = client.post(TASKS, json={"title": "   "}, headers=alice)
        assert res.status_code == 422
        body = res.json()
        assert body.get("error") == "ValidationError"
        assert body.get("message") == "Request validation failed"
        assert isinstance(body.get("detail"), list)
        assert body["detail"][0]["loc"] == ["body", "title"]

    def test_create_validation_error_title_too_long(self, client, alice):
        res = client.post(TASKS, json={"title": "x" * 101}, headers=alice)
        assert res.status_code == 422
        body = res.json()
        assert body["error"] == "ValidationError"
        assert any(err["loc"][-1] == "title" for err in body["detail"])

    def test_patch_validation_error_bad_status(self, client, alice):
        tid = client.post(TASKS, json=create_task_payload("Status"), headers=alice).json()["id"]
        res = client.patch(f"{TASKS}{tid}", json={"status": "ARCHIVED"}, headers=alice)
        assert res.status_code == 422
        assert res.json().get("error") == "ValidationError"

    def test_missing_identity_is_unauthorized(self, client):
        res = client.get(TASKS)
        assert res.status_code == 401
        assert res.json() == {"error": "Unauthorized", "message": "Not authenticated"}

    def test_blank_identity_is_unauthorized(self, client):
        res = client.post(TASKS, json=create_task_payload(), headers={"X-Owner-Id": "  "})
        assert res.status_code == 401


class TestStoreFailure:
    def test_broken_store_maps_to_503(self, tmp_path, alice):
        path = tmp_path / "focus.db"
        store = SQLiteRepository(str(path))
        os.remove(path)
        os.mkdir(path)

        app.dependency_overrides[get_repository] = lambda: store
        try:
            with TestClient(app) as c:
                res = c.get(TASKS, headers=alice)
                assert res.status_code == 503
                assert res.json()["error"] == "StoreUnavailable"

                res = c.get("/api/v1/sessions/today", headers=alice)
                assert res.status_code == 503
        finally:
            app.dependency_overrides.clear()
