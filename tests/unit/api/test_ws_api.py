"""Live note websocket, driven through TestClient against the dict-backed store."""

import pytest
from fastapi.testclient import TestClient

from notevault.config import get_settings
from notevault.core.store import NOTES, SERVER_TIMESTAMP, StoreError
from notevault.database import get_document_store
from notevault.main import app


def note_doc(content, category=None):
    return {
        "content": content,
        "creator_email": "alice@example.com",
        "timestamp": SERVER_TIMESTAMP,
        "category": category,
        "history": [],
    }


@pytest.fixture
def ws_client(memory_store):
    app.dependency_overrides[get_document_store] = lambda: memory_store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def contents(message):
    return sorted(note["content"] for note in message["notes"])


def test_initial_snapshot_and_filter_switch(ws_client, memory_store):
    memory_store.seed(NOTES, note_doc("w", "Work"))
    memory_store.seed(NOTES, note_doc("h", "Home"))

    with ws_client.websocket_connect("/api/ws/notes?category=Work") as ws:
        message = ws.receive_json()
        assert message["type"] == "snapshot"
        assert message["category"] == "Work"
        assert contents(message) == ["w"]
        assert "error" not in message

        ws.send_json({"category": ""})
        message = ws.receive_json()
        assert message["category"] is None
        assert contents(message) == ["h", "w"]

    assert memory_store.notifier.listener_count(NOTES) == 0


def test_pushes_snapshot_after_mutation(ws_client, auth_headers):
    with ws_client.websocket_connect("/api/ws/notes") as ws:
        assert ws.receive_json()["notes"] == []

        resp = ws_client.post("/api/notes/", json={"content": "live"}, headers=auth_headers)
        assert resp.status_code == 201

        message = ws.receive_json()
        assert contents(message) == ["live"]
        assert message["notes"][0]["id"] == resp.json()["id"]


def test_store_failure_reported_then_recovers(ws_client, memory_store, monkeypatch):
    monkeypatch.setattr(get_settings(), "live_view_retry_seconds", 0.01)
    memory_store.fail_with = StoreError("down")

    with ws_client.websocket_connect("/api/ws/notes") as ws:
        message = ws.receive_json()
        assert message["notes"] == []
        assert message["error"]["error"] == "StoreUnavailable"

        # failed retries keep reporting until the store comes back
        memory_store.fail_with = None
        for _ in range(500):
            message = ws.receive_json()
            if "error" not in message:
                break
        assert "error" not in message


def test_non_string_category_is_ignored(ws_client, memory_store):
    memory_store.seed(NOTES, note_doc("w", "Work"))
    memory_store.seed(NOTES, note_doc("h", "Home"))

    with ws_client.websocket_connect("/api/ws/notes") as ws:
        assert contents(ws.receive_json()) == ["h", "w"]

        ws.send_json({"category": 5})
        ws.send_json({"category": "Work"})

        message = ws.receive_json()
        assert message["category"] == "Work"
        assert contents(message) == ["w"]
