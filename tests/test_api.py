"""
Tests for the HTTP layer.
"""

import pytest
from fastapi.testclient import TestClient

from bitcoin_agent.agents.planner_agent import PlanOutput
from bitcoin_agent.api import routes
from bitcoin_agent.main import app

from conftest import OBJECTIVE, FakeChatModel, route
from test_orchestrator import PLAN, build_driver


class FakeKnowledgeStore:
    def __init__(self, ready: bool = False, error: Exception = None):
        self.is_ready = ready
        self.error = error
        self.document_count = 0
        self.added = []

    def add_texts(self, texts, source="knowledge_base"):
        if self.error is not None:
            raise self.error
        self.added.append((texts, source))
        self.document_count += len(texts)
        return len(texts)


@pytest.fixture
def driver(test_settings):
    return build_driver(
        test_settings,
        FakeChatModel(default=route("researcher")),
        planner_llm=FakeChatModel(default=PlanOutput(steps=PLAN)),
    )


@pytest.fixture
def client(driver):
    app.dependency_overrides[routes.get_driver] = lambda: driver
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def knowledge_store(monkeypatch):
    store = FakeKnowledgeStore()
    monkeypatch.setattr(routes, "get_knowledge_store", lambda: store)
    return store


class TestWorkflowEndpoint:
    """POST /api/ai/workflow"""

    def test_runs_workflow(self, client):
        response = client.post("/api/ai/workflow", json={"input": OBJECTIVE})

        assert response.status_code == 200
        data = response.json()
        assert data["input"] == OBJECTIVE
        assert len(data["pastSteps"]) == 3
        assert data["needsReplan"] is False
        assert data["response"]
        assert "error" not in data

    @pytest.mark.parametrize("body", [{}, {"input": ""}, {"input": "   "}])
    def test_missing_input_is_rejected(self, client, body):
        response = client.post("/api/ai/workflow", json=body)

        assert response.status_code == 400
        assert response.json() == {"detail": "Input is required"}

    def test_failed_run_is_still_200(self, test_settings):
        failing = build_driver(
            test_settings,
            FakeChatModel(),
            planner_llm=FakeChatModel(default=RuntimeError("LLM unavailable")),
        )
        app.dependency_overrides[routes.get_driver] = lambda: failing
        try:
            response = TestClient(app).post("/api/ai/workflow", json={"input": OBJECTIVE})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        data = response.json()
        assert data["error"] == "LLM unavailable"
        assert data["pastSteps"][0][0] == "Error"

    def test_legacy_alias(self, client):
        response = client.post("/api/ai/agent", json={"input": OBJECTIVE})

        assert response.status_code == 200
        assert len(response.json()["pastSteps"]) == 3

    def test_legacy_alias_validates_input(self, client):
        assert client.post("/api/ai/agent", json={"input": " "}).status_code == 400


class TestTraceEndpoint:
    """POST /api/ai/trace"""

    def test_trace_of_workflow_result(self, client):
        result = client.post("/api/ai/workflow", json={"input": OBJECTIVE}).json()

        response = client.post("/api/ai/trace", json={"state": result})

        assert response.status_code == 200
        trace = response.json()["trace"]
        assert trace.startswith(f"Input: {OBJECTIVE}\n\n")
        assert "Execution Steps:\nStep 1: " in trace

    def test_missing_state(self, client):
        response = client.post("/api/ai/trace", json={})

        assert response.status_code == 400


class TestHealthEndpoint:
    """GET /api/health"""

    def test_health(self, client, knowledge_store):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["vector_store_ready"] is False
        assert data["llm_provider"]

    def test_health_when_store_fails(self, client, monkeypatch):
        def broken():
            raise RuntimeError("embeddings unavailable")

        monkeypatch.setattr(routes, "get_knowledge_store", broken)

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["vector_store_ready"] is False


class TestKnowledgeEndpoint:
    """POST /api/knowledge/text"""

    def test_ingest(self, client, knowledge_store):
        response = client.post(
            "/api/knowledge/text",
            json={"texts": ["Halvings happen every 210,000 blocks."], "source": "notes"},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "chunks_created": 1, "document_count": 1}
        assert knowledge_store.added == [(["Halvings happen every 210,000 blocks."], "notes")]

    def test_empty_texts_rejected(self, client, knowledge_store):
        response = client.post("/api/knowledge/text", json={"texts": []})

        assert response.status_code == 422

    def test_ingest_failure(self, client, monkeypatch):
        store = FakeKnowledgeStore(error=RuntimeError("disk full"))
        monkeypatch.setattr(routes, "get_knowledge_store", lambda: store)

        response = client.post("/api/knowledge/text", json={"texts": ["x"]})

        assert response.status_code == 500
        assert "disk full" in response.json()["detail"]
