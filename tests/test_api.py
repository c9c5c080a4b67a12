from __future__ import annotations

from fastapi.testclient import TestClient


def test_task_lifecycle(client: TestClient) -> None:
    create_response = client.post(
        "/tribot/addTask",
        json={"task": "walk", "x": 3200, "y": 3400, "bot_id": "alpha"},
    )
    assert create_response.status_code == 201
    created = create_response.json()
    assert created["command"] == "WALK 3200,3400"
    assert created["queue_position"] == 1
    assert created["message"] == "Task added successfully"
    assert "timestamp" in created

    status = client.get("/tribot/getQueueStatus", params={"bot_id": "alpha"}).json()
    assert status["total_tasks"] == 1
    assert status["pending_tasks"] == 1
    assert status["by_priority"] == {"high": 0, "normal": 1, "low": 0}
    assert status["oldest_task"] is not None

    updates = client.get("/tribot/getUpdates", params={"bot_id": "alpha"})
    assert updates.status_code == 200
    payload = updates.json()
    assert payload["bot_id"] == "alpha"
    assert payload["queue_size"] == 0
    assert [task["task_id"] for task in payload["tasks"]] == [created["task_id"]]
    assert set(payload["tasks"][0]) == {"task_id", "command", "created_at", "assigned_at"}

    complete = client.post(
        "/tribot/completeTask",
        json={"task_id": created["task_id"], "bot_id": "alpha", "message": "arrived"},
    )
    assert complete.status_code == 200
    assert complete.json()["task_id"] == created["task_id"]
    assert complete.json()["result"] == "success"

    bot = client.get("/tribot/getBotStatus/alpha").json()
    assert bot["bot_id"] == "alpha"
    assert bot["status"] == "active"
    assert bot["last_task_completed"] == created["task_id"]
    assert bot["last_result"] == "success"
    assert bot["pending_tasks"] == 0


def test_high_priority_jumps_queue(client: TestClient) -> None:
    client.post("/tribot/addTask", json={"task": "type", "text": "first"})
    urgent = client.post(
        "/tribot/addTask",
        json={"task": "npc", "target": "banker", "action": "bank", "priority": "high"},
    ).json()
    assert urgent["queue_position"] == 1

    tasks = client.get("/tribot/getUpdates", params={"limit": "1"}).json()["tasks"]
    assert [task["command"] for task in tasks] == ["NPC banker bank"]


def test_invalid_task_format_lists_expected_shapes(client: TestClient) -> None:
    response = client.post("/tribot/addTask", json={"task": "fly"})
    assert response.status_code == 400
    payload = response.json()
    assert payload["error"] == "InvalidTaskFormat"
    assert payload["message"] == "Invalid task format"
    assert len(payload["expected_formats"]) >= 6
    assert "timestamp" in payload


def test_missing_task_is_rejected(client: TestClient) -> None:
    response = client.post("/tribot/addTask", json={"bot_id": "alpha"})
    assert response.status_code == 400
    assert response.json()["error"] == "MissingTask"
    assert client.get("/tribot/getQueueStatus").json()["total_tasks"] == 0


def test_unknown_priority_fails_validation(client: TestClient) -> None:
    response = client.post("/tribot/addTask", json={"task": "WALK 1,2", "priority": "urgent"})
    assert response.status_code == 422
    payload = response.json()
    assert payload["error"] == "RequestValidationError"
    assert isinstance(payload["detail"], list)
    assert "timestamp" in payload


def test_add_task_without_body_is_missing_task(client: TestClient) -> None:
    response = client.post("/tribot/addTask")
    assert response.status_code == 400
    assert response.json()["error"] == "MissingTask"
    assert "timestamp" in response.json()


def test_malformed_limit_is_coerced(client: TestClient) -> None:
    for text in ("a", "b"):
        client.post("/tribot/addTask", json={"task": "type", "text": text})

    response = client.get("/tribot/getUpdates", params={"limit": "many"})
    assert response.status_code == 200
    assert len(response.json()["tasks"]) == 1


def test_complete_task_requires_id(client: TestClient) -> None:
    response = client.post("/tribot/completeTask", json={"bot_id": "alpha"})
    assert response.status_code == 400
    assert response.json()["error"] == "MissingTaskId"


def test_complete_unknown_task_is_recorded(client: TestClient) -> None:
    response = client.post(
        "/tribot/completeTask",
        json={"task_id": 4242, "bot_id": "beta", "result": "failed"},
    )
    assert response.status_code == 200

    bot = client.get("/tribot/getBotStatus/beta").json()
    assert bot["last_task_completed"] == 4242
    assert bot["last_result"] == "failed"
    assert bot["status"] is None


def test_clear_queue_with_and_without_body(client: TestClient) -> None:
    client.post("/tribot/addTask", json={"task": "WALK 1,1", "bot_id": "alpha"})
    client.post("/tribot/addTask", json={"task": "WALK 2,2", "bot_id": "beta"})
    client.post("/tribot/addTask", json={"task": "WALK 3,3"})

    scoped = client.request("DELETE", "/tribot/clearQueue", json={"bot_id": "alpha"})
    assert scoped.status_code == 200
    assert scoped.json()["cleared_tasks"] == 1
    assert scoped.json()["remaining_tasks"] == 2

    everything = client.delete("/tribot/clearQueue")
    assert everything.status_code == 200
    assert everything.json()["cleared_tasks"] == 2
    assert everything.json()["remaining_tasks"] == 0


def test_clear_queue_with_blank_bot_id_clears_everything(client: TestClient) -> None:
    client.post("/tribot/addTask", json={"task": "WALK 1,1", "bot_id": "alpha"})
    client.post("/tribot/addTask", json={"task": "WALK 2,2"})

    response = client.request("DELETE", "/tribot/clearQueue", json={"bot_id": ""})
    assert response.status_code == 200
    assert response.json()["cleared_tasks"] == 2
    assert response.json()["remaining_tasks"] == 0


def test_unknown_bot_returns_404(client: TestClient) -> None:
    response = client.get("/tribot/getBotStatus/ghost")
    assert response.status_code == 404
    payload = response.json()
    assert payload["error"] == "BotNotFound"
    assert payload["bot_id"] == "ghost"


def test_list_bots(client: TestClient) -> None:
    client.post("/tribot/addTask", json={"task": "WALK 1,1"})
    client.get("/tribot/getUpdates", params={"bot_id": "alpha", "limit": "0"})
    client.post("/tribot/addTask", json={"task": "WALK 2,2"})
    client.post("/tribot/completeTask", json={"task_id": 1, "bot_id": "beta"})

    payload = client.get("/tribot/getBots").json()
    assert payload["total_bots"] == 2
    assert payload["total_queue_size"] == 1
    assert {bot["bot_id"] for bot in payload["bots"]} == {"alpha", "beta"}
    assert all(bot["pending_tasks"] == 1 for bot in payload["bots"])


def test_unknown_route_carries_timestamp(client: TestClient) -> None:
    response = client.get("/tribot/doesNotExist")
    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"
    assert "timestamp" in response.json()
