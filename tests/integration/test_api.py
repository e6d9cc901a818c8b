"""HTTP surface: chat, streaming chat, channel bridge and health."""

import json

import pytest
from fastapi.testclient import TestClient

from wavepulse.api.app import build_chat_service, create_app
from wavepulse.models.domain import PendingRequest

CHANNEL_ID = "chan-1"


@pytest.fixture
def llm(make_llm):
    return make_llm()


@pytest.fixture
def client(settings, llm, make_executor, snapshots, pending_requests):
    app = create_app()
    app.state.settings = settings
    app.state.snapshots = snapshots
    app.state.requests = pending_requests
    app.state.chat_service = build_chat_service(
        settings, llm, make_executor(), snapshots, pending_requests
    )
    return TestClient(app)


def test_health(client, settings):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "model": settings.gemini_model,
        "router_mode": "three_way",
    }


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    assert "X-Duration-MS" in response.headers


def test_non_string_message_is_rejected(client):
    response = client.post("/chat", json={"message": 42})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


def test_chat_returns_answer_and_steps(client, llm):
    llm.queue = ["file-ops", json.dumps({"action": "final", "answer": "Nothing to change."})]

    response = client.post("/chat", json={"message": "rename the page", "channelId": CHANNEL_ID})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Nothing to change."
    assert body["route"] == "file-ops"
    assert body["researchSteps"] == [
        {"id": "agent-iteration-1", "description": "file-ops: answered", "status": "completed"}
    ]
    assert body["errors"] == []


def test_chat_stream_emits_sse_events(client, llm):
    llm.queue = ["ui-state", json.dumps({"action": "final", "answer": "No errors logged."})]

    response = client.post("/chat/stream", json={"message": "any console errors?"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = [
        json.loads(line[len("data: "):])
        for line in response.text.split("\n\n")
        if line.startswith("data: ")
    ]
    assert [e["type"] for e in events][-1] == "complete"
    assert [e["type"] for e in events].count("complete") == 1
    assert events[-1]["data"]["message"] == "No errors logged."


def test_snapshot_push_updates_store(client, snapshots):
    response = client.post(
        f"/channels/{CHANNEL_ID}/snapshot",
        json={"consoleLogs": [{"type": "error", "message": "boom"}]},
    )

    assert response.status_code == 200
    assert response.json()["channelId"] == CHANNEL_ID
    stored = snapshots.get(CHANNEL_ID)
    assert stored.console_logs == [{"type": "error", "message": "boom"}]
    assert stored.network_requests == []


def test_pending_requests_round_trip(client, pending_requests):
    pending_requests.submit(PendingRequest("r1", CHANNEL_ID, "widget-properties", {"widget": "button1"}))
    pending_requests.submit(PendingRequest("r2", "other", "eval-expression", {"expr": "1"}))

    listed = client.get(f"/channels/{CHANNEL_ID}/requests")
    assert listed.json() == [
        {"requestId": "r1", "kind": "widget-properties", "payload": {"widget": "button1"}}
    ]

    done = client.post(f"/channels/{CHANNEL_ID}/requests/r1/result", json={"result": {"caption": "Save"}})
    assert done.json() == {"requestId": "r1", "completed": True}
    assert pending_requests.get("r1").result == {"caption": "Save"}
    assert client.get(f"/channels/{CHANNEL_ID}/requests").json() == []


def test_result_for_foreign_request_is_404(client, pending_requests):
    pending_requests.submit(PendingRequest("r2", "other", "eval-expression", {"expr": "1"}))

    assert client.post(f"/channels/{CHANNEL_ID}/requests/r2/result", json={}).status_code == 404
    assert client.post(f"/channels/{CHANNEL_ID}/requests/missing/result", json={}).status_code == 404
    assert not pending_requests.get("r2").completed


def test_channel_id_parsed_from_path():
    from wavepulse.api.middleware import channel_from_path

    assert channel_from_path("/channels/abc/requests") == "abc"
    assert channel_from_path("/chat") is None
