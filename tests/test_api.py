import json

import pytest
from fastapi.testclient import TestClient

from main import app
from voiceround.api.dependencies import get_orchestrator, get_registry


@pytest.fixture
def client(orchestrator, registry):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _receive_until(ws, type_: str) -> list:
    """Collect frames up to and including the first JSON message of type_."""
    received = []
    while True:
        message = ws.receive()
        if message.get("bytes") is not None:
            received.append(message["bytes"])
            continue
        payload = json.loads(message["text"])
        received.append(payload)
        if payload.get("type") == type_:
            return received


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["status"] == "healthy"


def test_metadata_endpoints(client):
    rounds = client.get("/api/metadata/rounds").json()
    assert {"id": "system-design", "name": "System Design Round"}.items() <= rounds[3].items()

    languages = client.get("/api/metadata/languages").json()
    assert {"code": "hi", "name": "Hindi"} in languages

    assert "alloy" in client.get("/api/metadata/voices").json()

    defaults = client.get("/api/metadata/defaults").json()
    assert defaults["role"] == "Software Engineer"
    assert defaults["max_turns"] == 6
    assert defaults["max_turns_limit"] == 20


def test_unknown_session_snapshot_is_404(client):
    assert client.get("/api/interview/does-not-exist").status_code == 404


@pytest.mark.parametrize("path", ["/ws", "/"])
def test_websocket_interview_round_trip(client, path):
    with client.websocket_connect(path) as ws:
        ws.send_json({"type": "start", "maxTurns": 2, "roleName": "Data Engineer"})
        opening = _receive_until(ws, "transcript_update")
        session_id = opening[0]["sessionId"]
        assert opening[0]["type"] == "session"
        assert opening[1]["type"] == "persona"
        assert b"".join(item for item in opening if isinstance(item, bytes)) == b"0123456789"

        # First answer: the introduction, followed by one interviewer question
        ws.send_json({"type": "answer_audio_start", "format": "webm"})
        ws.send_bytes(b"intro-audio")
        ws.send_json({"type": "answer_audio_end"})
        _receive_until(ws, "transcript_update")
        follow_up = _receive_until(ws, "transcript_update")
        assert follow_up[-1]["transcript"][-1] == {"from": "interviewer", "text": "Question 1?"}
        _receive_until(ws, "tts_done")

        # Second answer exhausts the budget
        ws.send_json({"type": "answer_audio_start"})
        ws.send_bytes(b"answer-audio")
        ws.send_json({"type": "answer_audio_end"})
        closing = _receive_until(ws, "done")
        done = closing[-1]
        assert done["overallScore"] == 35
        assert done["rubric"]["answer_quality"] == "good"
        _receive_until(ws, "tts_done")

        snapshot = client.get(f"/api/interview/{session_id}").json()
        assert snapshot["done"] is True
        assert snapshot["phase"] == "done"
        assert snapshot["turns_completed"] == 1
        assert snapshot["overall_score"] == 35


def test_websocket_reports_protocol_errors(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "error": "invalid_json"}
        ws.send_json({"type": "answer_audio_end"})
        assert ws.receive_json() == {"type": "error", "error": "session_not_found"}
