"""Tests for the HTTP endpoints (health, datasets, chat, chat stream)."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_agent_runner, get_settings_dependency
from src.app import app
from src.config.constants import Phase, StopReason
from src.config.settings import Settings
from src.orchestrator.state import RunResult, StepRecord


ROWS = [
    {"city": "Lima", "temp": 19.5},
    {"city": "Quito", "temp": 14.0},
    {"city": "Lima", "temp": None},
]


class FakeRunner:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []
        self.cancel_event = None

    def _steps(self):
        return [
            StepRecord(index=0, phase=Phase.PLANNING, text="looking", next_phase=Phase.PLANNING),
            StepRecord(index=1, phase=Phase.PLANNING, text="done", next_phase=Phase.PLANNING),
        ]

    async def run(self, messages, dataset_id=None, **kwargs):
        self.calls.append((messages, dataset_id))
        if self.fail:
            raise RuntimeError("provider down")
        steps = self._steps()
        return RunResult(
            steps=steps,
            final_text="done",
            phase=Phase.PLANNING,
            stop_reason=StopReason.NO_TOOL_CALLS,
        )

    async def run_stream(self, messages, dataset_id=None, cancel_event=None, **kwargs):
        self.calls.append((messages, dataset_id))
        self.cancel_event = cancel_event
        for step in self._steps():
            if cancel_event is not None and cancel_event.is_set():
                return
            yield step
            if self.fail:
                raise RuntimeError("provider down")


@pytest.fixture
def client():
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def fake_runner():
    runner = FakeRunner()
    app.dependency_overrides[get_agent_runner] = lambda: runner
    return runner


def _events(body: str) -> list[dict]:
    return [json.loads(line[len("data: "):]) for line in body.splitlines() if line.startswith("data: ")]


# ==========================================
#  HEALTH
# ==========================================


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["datasets"] == 0


# ==========================================
#  DATASETS
# ==========================================


def test_upload_dataset(client):
    response = client.post("/api/datasets", json={"name": "weather.csv", "rows": ROWS})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["dataset"]["name"] == "weather.csv"
    assert body["dataset"]["rowCount"] == 3
    assert body["dataset"]["columns"] == [
        {"name": "city", "type": "string"},
        {"name": "temp", "type": "number"},
    ]


def test_upload_empty_dataset(client):
    response = client.post("/api/datasets", json={"name": "empty.csv", "rows": []})
    assert response.status_code == 200
    assert response.json()["dataset"]["columns"] == []


def test_upload_requires_name(client):
    response = client.post("/api/datasets", json={"rows": ROWS})
    assert response.status_code == 422


def test_list_and_get_datasets(client):
    dataset_id = client.post("/api/datasets", json={"name": "w", "rows": ROWS}).json()["dataset"]["id"]

    listed = client.get("/api/datasets").json()["datasets"]
    assert [d["id"] for d in listed] == [dataset_id]

    response = client.get(f"/api/datasets/{dataset_id}")
    assert response.status_code == 200
    assert response.json()["rowCount"] == 3
    assert client.get("/api/health").json()["datasets"] == 1


def test_upload_integer_too_large_for_float(client):
    response = client.post(
        "/api/datasets",
        content='{"name": "big.csv", "rows": [{"v": 1' + "0" * 400 + '}, {"v": 1}]}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert response.json()["dataset"]["columns"] == [{"name": "v", "type": "number"}]


def test_get_unknown_dataset(client):
    response = client.get("/api/datasets/unknown")
    assert response.status_code == 404


# ==========================================
#  CHAT
# ==========================================


def test_chat_returns_run_result(client, fake_runner):
    response = client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "hi"}], "datasetId": "abc"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["finalText"] == "done"
    assert body["stopReason"] == "no_tool_calls"
    assert len(body["steps"]) == 2
    assert fake_runner.calls == [([{"role": "user", "content": "hi"}], "abc")]


def test_chat_requires_messages(client, fake_runner):
    response = client.post("/api/chat", json={"messages": []})
    assert response.status_code == 422


def test_chat_rejects_unknown_role(client, fake_runner):
    response = client.post("/api/chat", json={"messages": [{"role": "system", "content": "x"}]})
    assert response.status_code == 422


def test_chat_runner_failure(client):
    app.dependency_overrides[get_agent_runner] = lambda: FakeRunner(fail=True)
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 500
    assert response.json()["detail"] == "Internal server error"


def test_chat_without_api_key(client):
    app.dependency_overrides[get_settings_dependency] = lambda: Settings(anthropic_api_key=None)
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 503


# ==========================================
#  CHAT STREAM
# ==========================================


def test_chat_stream_emits_steps_then_done(client, fake_runner):
    response = client.post("/api/chat/stream", json={"messages": [{"role": "user", "content": "hi"}]})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _events(response.text)
    assert [e["step"]["index"] for e in events[:-1]] == [0, 1]
    assert events[-1] == {"done": True}


def test_chat_stream_reports_errors(client):
    app.dependency_overrides[get_agent_runner] = lambda: FakeRunner(fail=True)
    response = client.post("/api/chat/stream", json={"messages": [{"role": "user", "content": "hi"}]})
    events = _events(response.text)
    assert "step" in events[0]
    assert events[-1] == {"error": "An error occurred"}


@patch("starlette.requests.Request.is_disconnected", new_callable=AsyncMock, return_value=True)
def test_chat_stream_cancels_run_on_disconnect(mock_disconnected, client, fake_runner):
    response = client.post("/api/chat/stream", json={"messages": [{"role": "user", "content": "hi"}]})
    events = _events(response.text)
    assert [e["step"]["index"] for e in events] == [0]
    assert fake_runner.cancel_event.is_set()
