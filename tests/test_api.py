"""HTTP surface over the registry and orchestrator."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from agentflow.api.routes import router
from agentflow.orchestration.orchestrator import Orchestrator
from agentflow.orchestration.registry import AgentRegistry
from agentflow.runtime import get_orchestrator
from agentflow.services.memory import MemoryStore


@pytest.fixture
def client():
    registry = AgentRegistry(memory=MemoryStore(), drain_interval=0.01)
    orchestrator = Orchestrator(registry)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await registry.initialize()
        yield
        await registry.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.include_router(router)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    with TestClient(app) as test_client:
        yield test_client


def test_list_and_filter_agents(client) -> None:
    agents = client.get("/agents").json()
    analysts = client.get("/agents", params={"role": "code_analyst"}).json()

    assert len(agents) == 10
    assert [a["agent_id"] for a in analysts] == ["code_analyst-001"]
    assert analysts[0]["status"] == "idle"
    assert analysts[0]["success_rate"] == 1.0


def test_unknown_agent_is_404(client) -> None:
    assert client.get("/agents/ghost").status_code == 404
    assert client.post("/agents/ghost/tasks", json={"task_id": "t"}).status_code == 404


def test_assign_task(client) -> None:
    response = client.post(
        "/agents/task_manager-001/tasks",
        json={"task_id": "t-1", "priority": "high", "metadata": {"type": "code_review"}},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["collaboration_needed"] == ["code_analyst"]
    assert client.get("/agents/task_manager-001").json()["tasks_completed"] == 1


def test_send_message_is_accepted_and_delivered(client) -> None:
    response = client.post(
        "/agents/code_analyst-001/messages",
        json={"from_agent": "operator", "payload": {"type": "code_analysis", "code": "print(1)"}},
    )

    assert response.status_code == 202
    assert response.json()["message_id"]

    for _ in range(100):
        if client.get("/agents/code_analyst-001").json()["collaboration_count"] == 1:
            break
        time.sleep(0.01)
    assert client.get("/agents/code_analyst-001").json()["collaboration_count"] == 1


def test_orchestrate_and_fetch_result(client) -> None:
    response = client.post(
        "/orchestrations",
        json={"type": "code_review", "description": "Review auth", "context": {"code": "eval(x)"}},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["workflow"]["coordination"] == "sequential"
    assert list(body["results"]) == ["code_analyst", "security_auditor", "performance_optimizer"]
    assert body["results"]["security_auditor"]["result"]["threat_level"] == "high"
    assert len(body["learning_records"]) == 3

    fetched = client.get(f"/orchestrations/{body['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["id"] == body["id"]


def test_orchestrate_rejects_unknown_type(client) -> None:
    response = client.post("/orchestrations", json={"type": "deploy", "description": "ship it"})

    assert response.status_code == 422


def test_unknown_orchestration_is_404(client) -> None:
    assert client.get("/orchestrations/nope").status_code == 404


def test_smart_route(client) -> None:
    response = client.post(
        "/orchestrations/route",
        json={"description": "Build a feature for exporting reports"},
    )

    body = response.json()
    assert body["success"] is True
    assert body["workflow"]["entry_point"] == "feature_architect"
    assert list(body["results"]) == ["feature_architect", "task_manager"]


def test_metrics(client) -> None:
    client.post("/orchestrations", json={"type": "code_review", "description": "Review auth"})

    metrics = client.get("/metrics").json()

    assert metrics["total_agents"] == 10
    assert metrics["completed_workflows"] == 1
    assert metrics["total_tasks_completed"] == 3


def test_health_endpoint() -> None:
    from agentflow.main import app

    assert TestClient(app).get("/health").json() == {"status": "ok"}


def test_app_lifespan_runs_memory_decay() -> None:
    from agentflow.main import app
    from agentflow.runtime import get_memory

    with TestClient(app) as test_client:
        assert test_client.get("/health").status_code == 200
        assert get_memory()._runner is not None
    assert get_memory()._runner is None
