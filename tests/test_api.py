"""
Integration tests for POST /api/agent and /health.

The Bedrock client is patched with a scripted fake so tests need no AWS access.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from nova_agent.core import config
from nova_agent.main import app
from tests.fakes import ScriptedLLM


@pytest.fixture
def client(monkeypatch) -> TestClient:
    monkeypatch.setattr(config, "NOVA_MODEL_ID", "amazon.nova-lite-v1:0")
    monkeypatch.setattr(config, "DEMO_API_KEY", "")
    return TestClient(app)


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_agent_success_returns_final_and_steps(client: TestClient) -> None:
    llm = ScriptedLLM([
        '{"action":"tool","tool":"retrieve","input":"demo video"}',
        '{"action":"final","output":"Here is your script."}',
    ])
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "  Write a demo script  ", "context": "3 minutes"})
    assert response.status_code == 200
    data = response.json()
    assert data["final"] == "Here is your script."
    assert [s["type"] for s in data["steps"]] == ["model", "tool", "model"]
    tool_step = data["steps"][1]
    assert tool_step["call"] == {"tool": "retrieve", "input": "demo video"}
    assert tool_step["output"]["hits"][0]["id"] == "hackathon-submission"
    assert llm.calls[0]["messages"][-1]["content"].startswith("Write a demo script\n\nContext:\n3 minutes")


def test_agent_history_trimmed_to_twelve(client: TestClient) -> None:
    llm = ScriptedLLM(['{"action":"final","output":"ok"}'])
    messages = [{"role": "assistant", "content": f"turn {i}"} for i in range(20)]
    messages.append({"role": "robot", "content": "dropped"})
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "Follow up", "messages": messages})
    assert response.status_code == 200
    sent = llm.calls[0]["messages"]
    assert len(sent) == 13
    assert sent[0]["content"] == "turn 8"


@pytest.mark.parametrize("body", [{}, {"goal": ""}, {"goal": "   "}, {"goal": None}])
def test_missing_goal_returns_400(client: TestClient, body) -> None:
    llm = ScriptedLLM([])
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json=body)
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Missing required field: goal"
    assert data["details"]["kind"] == "validation"
    assert data["steps"] == []
    assert llm.calls == []


def test_missing_model_id_returns_500(client: TestClient, monkeypatch) -> None:
    monkeypatch.setattr(config, "NOVA_MODEL_ID", "")
    response = client.post("/api/agent", json={"goal": "Anything"})
    assert response.status_code == 500
    data = response.json()
    assert data["error"].startswith("Missing NOVA_MODEL_ID")
    assert data["details"]["kind"] == "configuration"


def test_unparsable_model_output_returns_partial_steps(client: TestClient) -> None:
    llm = ScriptedLLM(["Sure, let me think about that."])
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "Goal"})
    assert response.status_code == 500
    data = response.json()
    assert data["details"]["kind"] == "decision_parse"
    assert [s["type"] for s in data["steps"]] == ["model", "error"]
    assert data["hint"]


def test_turn_budget_exceeded_returns_500(client: TestClient) -> None:
    llm = ScriptedLLM(['{"action":"makePlan","input":"again"}'] * 8)
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "Goal"})
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "Agent exceeded max turns without producing a final answer."
    assert data["details"]["kind"] == "turn_budget_exceeded"
    assert len(data["steps"]) == 16


def test_unexpected_model_error_keeps_partial_steps(client: TestClient) -> None:
    llm = ScriptedLLM([
        '{"action":"tool","tool":"makePlan","input":"x"}',
        RuntimeError("connection reset"),
    ])
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "Goal"})
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "connection reset"
    assert data["details"]["kind"] == "internal"
    assert data["details"]["name"] == "RuntimeError"
    assert [s["type"] for s in data["steps"]] == ["model", "tool", "error"]
    assert data["steps"][2]["message"] == "connection reset"


def test_error_outside_the_loop_returns_500(client: TestClient) -> None:
    with patch("nova_agent.api.handlers.run_agent", side_effect=RuntimeError("boom")):
        response = client.post("/api/agent", json={"goal": "Goal"})
    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "boom"
    assert data["details"] == {"kind": "internal", "name": "RuntimeError"}
    assert data["steps"] == []


@pytest.mark.parametrize("body", [{"goal": 42}, {"goal": "Goal", "messages": "not a list"}])
def test_wrongly_typed_fields_are_rejected(client: TestClient, body) -> None:
    response = client.post("/api/agent", json=body)
    assert response.status_code == 422


def test_malformed_history_entries_are_dropped(client: TestClient) -> None:
    llm = ScriptedLLM(['{"action":"final","output":"ok"}'])
    messages = ["oops", {"role": "user"}, {"role": "assistant", "content": "kept"}]
    with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
        response = client.post("/api/agent", json={"goal": "Goal", "messages": messages})
    assert response.status_code == 200
    assert llm.calls[0]["messages"][0] == {"role": "assistant", "content": "kept"}
    assert len(llm.calls[0]["messages"]) == 2


class TestDemoApiKey:
    def test_missing_key_is_unauthorized(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(config, "DEMO_API_KEY", "secret")
        response = client.post("/api/agent", json={"goal": "Goal"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_wrong_key_is_unauthorized(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(config, "DEMO_API_KEY", "secret")
        response = client.post("/api/agent", json={"goal": "Goal"}, headers={"x-demo-api-key": "nope"})
        assert response.status_code == 401

    def test_matching_key_runs_agent(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(config, "DEMO_API_KEY", "secret")
        llm = ScriptedLLM(['{"action":"final","output":"ok"}'])
        with patch("nova_agent.api.handlers.get_llm_client", return_value=llm):
            response = client.post("/api/agent", json={"goal": "Goal"}, headers={"x-demo-api-key": "secret"})
        assert response.status_code == 200
        assert response.json()["final"] == "ok"
