"""
Integration tests for the HTTP API.
"""
from datetime import datetime
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from session_ledger.errors import StoreUnavailable
from session_ledger.server import create_app
from session_ledger.service import LedgerService


@pytest.fixture
def client(ledger):
    return TestClient(create_app(ledger))


def _ts(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _create(client, **overrides):
    body = {"sessionId": "s1", "language": "en"}
    body.update(overrides)
    return client.post("/sessions", json=body)


def test_health(client):
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json()["status"] == "ok"


def test_create_session(client):
    response = _create(client, metadata={"caller": "+100"})

    assert response.status_code == 200
    data = response.json()
    assert data["sessionId"] == "s1"
    assert data["status"] == "initiated"
    assert data["language"] == "en"
    assert data["endedAt"] is None
    assert data["metadata"] == {"caller": "+100"}
    assert data["startedAt"].startswith("2024-01-01T00:00:00")


def test_create_session_is_idempotent(client):
    first = _create(client).json()
    second = _create(client, language="fr", status="active")

    assert second.status_code == 200
    assert second.json() == first


def test_create_session_validation(client):
    assert client.post("/sessions", json={"sessionId": "s1"}).status_code == 422
    assert _create(client, status="paused").status_code == 422
    assert _create(client, metadata="not-an-object").status_code == 422
    assert _create(client, sessionId="").status_code == 422


def test_add_event(client):
    _create(client)

    response = client.post(
        "/sessions/s1/events",
        json={"eventId": "e1", "type": "user_speech", "payload": {"text": "hi"}},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["eventId"] == "e1"
    assert data["sessionId"] == "s1"
    assert data["type"] == "user_speech"
    assert data["payload"] == {"text": "hi"}

    repeat = client.post(
        "/sessions/s1/events",
        json={"eventId": "e1", "type": "system", "payload": {}},
    )
    assert repeat.status_code == 201
    assert repeat.json() == data


def test_add_event_to_missing_session(client):
    response = client.post(
        "/sessions/ghost/events",
        json={"eventId": "e1", "type": "system", "payload": {}},
    )

    assert response.status_code == 404
    assert response.json() == {"detail": "Session with ID ghost not found"}


def test_add_event_validation(client):
    _create(client)

    bad_type = client.post("/sessions/s1/events", json={"eventId": "e1", "type": "shout", "payload": {}})
    no_payload = client.post("/sessions/s1/events", json={"eventId": "e1", "type": "system"})

    assert bad_type.status_code == 422
    assert no_payload.status_code == 422


def test_get_session_with_events(client):
    _create(client)
    for i in range(1, 26):
        client.post(
            "/sessions/s1/events",
            json={"eventId": f"e{i}", "type": "bot_speech", "payload": {"n": i}},
        )

    response = client.get("/sessions/s1", params={"offset": 10, "limit": 10})

    assert response.status_code == 200
    data = response.json()
    assert data["session"]["sessionId"] == "s1"
    assert [e["eventId"] for e in data["events"]] == [f"e{i}" for i in range(11, 21)]
    assert data["pagination"] == {"offset": 10, "limit": 10, "total": 25, "hasMore": True}

    tail = client.get("/sessions/s1", params={"offset": 20, "limit": 10}).json()
    assert [e["eventId"] for e in tail["events"]] == [f"e{i}" for i in range(21, 26)]
    assert tail["pagination"]["hasMore"] is False


def test_get_session_default_pagination(client):
    _create(client)

    data = client.get("/sessions/s1").json()

    assert data["events"] == []
    assert data["pagination"] == {"offset": 0, "limit": 50, "total": 0, "hasMore": False}


def test_get_session_pagination_validation(client):
    _create(client)

    assert client.get("/sessions/s1", params={"offset": -1}).status_code == 422
    assert client.get("/sessions/s1", params={"limit": 0}).status_code == 422


def test_get_session_limit_is_clamped(client, monkeypatch):
    monkeypatch.setattr("session_ledger.config.max_page_limit", lambda: 5)
    _create(client)

    data = client.get("/sessions/s1", params={"limit": 1000}).json()

    assert data["pagination"]["limit"] == 5


def test_get_missing_session(client):
    assert client.get("/sessions/ghost").status_code == 404


def test_complete_session(client):
    created = _create(client).json()

    response = client.post("/sessions/s1/complete")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["endedAt"] is not None
    assert _ts(data["endedAt"]) >= _ts(created["startedAt"])


def test_complete_missing_session(client):
    assert client.post("/sessions/ghost/complete").status_code == 404


def test_store_failure_maps_to_503():
    ledger = Mock(spec=LedgerService)
    ledger.complete_session.side_effect = StoreUnavailable("disk I/O error")
    client = TestClient(create_app(ledger))

    response = client.post("/sessions/s1/complete")

    assert response.status_code == 503
    assert response.json() == {"detail": "Store unavailable"}


def test_lifespan_opens_ledger_from_config(tmp_path, monkeypatch):
    db_file = tmp_path / "from_config.db"
    monkeypatch.setenv("LEDGER_DB_PATH", str(db_file))

    with TestClient(create_app()) as client:
        assert _create(client).status_code == 200
        assert client.get("/health").json()["status"] == "ok"

    assert db_file.exists()
