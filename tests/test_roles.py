"""Behaviour of the concrete agent roles."""
from __future__ import annotations

import pytest

from agentflow.agents.task_manager import TaskManagerAgent
from agentflow.core.models import AgentMessage, MessageType, TaskAssignment


def make_task(agent_id: str, **metadata) -> TaskAssignment:
    return TaskAssignment(task_id="task-42", assigned_agent=agent_id, metadata=metadata)


def make_message(to_agent: str, message_type: MessageType, payload=None) -> AgentMessage:
    return AgentMessage(from_agent="tester", to_agent=to_agent, message_type=message_type, payload=payload)


@pytest.mark.anyio
async def test_task_manager_decomposes_long_tasks(registry) -> None:
    agent = await registry.create_agent("task_manager", "tm")

    response = await agent.execute_task(make_task("tm", type="feature_design", estimated_hours=5))

    assert response.success
    assert response.result["type"] == "task_decomposition"
    assert response.result["subtasks"] == ["task-42_analysis", "task-42_implementation", "task-42_testing"]
    assert response.result["assignments"]["task-42_testing"] == "performance_optimizer"
    assert response.next_actions


@pytest.mark.anyio
async def test_task_manager_delegates_short_tasks(registry) -> None:
    agent = await registry.create_agent("task_manager", "tm")

    review = await agent.execute_task(make_task("tm", type="code_review", context={"estimated_hours": 1}))
    other = await agent.execute_task(make_task("tm", type="general_inquiry"))

    assert review.result["type"] == "task_delegation"
    assert review.collaboration_needed == ["code_analyst"]
    assert other.collaboration_needed == ["data_processor"]


@pytest.mark.anyio
async def test_task_manager_messages(registry) -> None:
    agent = await registry.create_agent("task_manager", "tm")

    assert (await agent.receive(make_message("tm", MessageType.REQUEST))).success
    assert (await agent.receive(make_message("tm", MessageType.RESPONSE))).success
    rejected = await agent.receive(make_message("tm", MessageType.NOTIFICATION))
    assert not rejected.success
    assert rejected.error == "Unknown message type"


@pytest.mark.anyio
async def test_code_review_scores_detected_issues(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")
    code = "result = eval(user_input)\nprint(result)\n"

    response = await agent.execute_task(make_task("ca", type="code_review", code=code))

    result = response.result
    assert response.success
    assert {issue["type"] for issue in result["issues"]} == {"security", "style"}
    assert result["score"] == 88
    assert result["recommendations"] == [
        "Remove dynamic execution and load secrets from configuration",
        "Route diagnostics through the logger",
        "Extract repeated logic into helper functions",
    ]
    assert response.suggestions == [
        "Apply suggested improvements",
        "Run automated tests",
        "Schedule follow-up review",
    ]


@pytest.mark.anyio
async def test_code_review_without_source_reports_baseline(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")

    response = await agent.execute_task(make_task("ca", type="code_review"))

    assert response.result["score"] == 92
    assert len(response.result["issues"]) == 2


@pytest.mark.anyio
async def test_security_audit_risk_level(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")

    risky = await agent.execute_task(
        make_task("ca", type="security_audit", context={"code": "password = 'hunter2'"})
    )
    clean = await agent.execute_task(make_task("ca", type="security_audit", code="total = a + b"))

    assert risky.result["risk_level"] == "high"
    assert risky.result["vulnerabilities"][0]["description"] == "Hard-coded credential"
    assert clean.result["risk_level"] == "low"
    assert clean.result["vulnerabilities"] == []


@pytest.mark.anyio
async def test_code_analyst_rejects_unknown_task(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")

    response = await agent.execute_task(make_task("ca", type="deploy"))

    assert not response.success
    assert response.error == "Unknown task type for Code Analyst"


@pytest.mark.anyio
async def test_code_analyst_answers_analysis_requests(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")

    reply = await agent.receive(
        make_message("ca", MessageType.REQUEST, {"type": "code_analysis", "code": "exec(cmd)"})
    )
    refused = await agent.receive(make_message("ca", MessageType.NOTIFICATION, {}))

    assert reply.success
    assert reply.result["issues"][0]["type"] == "security"
    assert not refused.success


@pytest.mark.anyio
async def test_agent_cannot_use_tools_outside_its_grant(registry) -> None:
    agent = await registry.create_agent("code_analyst", "ca")

    with pytest.raises(PermissionError):
        await agent.use_tool("performance_monitor", {})
    result = await agent.use_tool("linter", {"code": ""})
    assert result["status"] == "ok"


@pytest.mark.anyio
async def test_memory_curator_organizes_and_optimizes(registry, memory) -> None:
    agent = await registry.create_agent("memory_curator", "mc")

    organized = await agent.execute_task(
        make_task("mc", type="knowledge_organization", data=["a", "b", "c"])
    )
    optimized = await agent.execute_task(make_task("mc", type="memory_optimization"))
    unknown = await agent.execute_task(make_task("mc", type="code_review"))

    assert organized.result["items_processed"] == 3
    assert organized.result["categories"] == ["technical", "user_preference", "workflow"]
    assert len(memory.query("KNOWLEDGE_ORGANIZATION")) == 1
    assert optimized.result["action"] == "decay_processed"
    assert optimized.result["archived"] == 0
    assert not unknown.success


@pytest.mark.anyio
async def test_security_auditor_merges_upstream_findings(registry) -> None:
    agent = await registry.create_agent("security_auditor", "sa")
    upstream = {
        "issues": [
            {"type": "security", "severity": "high", "description": "Dynamic code execution"},
            {"type": "style", "severity": "low", "description": "Debug print left in code"},
        ]
    }

    response = await agent.execute_task(
        make_task(
            "sa",
            context={"logs": ["GET /admin 401 unauthorized", "GET / 200"]},
            previous_result=upstream,
        )
    )

    threats = response.result["threats"]
    assert [t["type"] for t in threats] == ["intrusion", "security"]
    assert response.result["threat_level"] == "high"
    assert response.suggestions


@pytest.mark.anyio
async def test_security_auditor_only_accepts_notifications(registry) -> None:
    agent = await registry.create_agent("security_auditor", "sa")

    assert (await agent.receive(make_message("sa", MessageType.NOTIFICATION))).success
    assert not (await agent.receive(make_message("sa", MessageType.REQUEST))).success


@pytest.mark.anyio
async def test_performance_optimizer_flags_bottlenecks(registry) -> None:
    agent = await registry.create_agent("performance_optimizer", "po")

    degraded = await agent.execute_task(
        make_task("po", context={"metrics": {"cpu": 0.95, "latency_ms": 250, "error_rate": 0.2}})
    )
    blind = await agent.execute_task(make_task("po"))

    assert [b["metric"] for b in degraded.result["bottlenecks"]] == ["cpu", "error_rate"]
    assert degraded.result["health"] == "degraded"
    assert len(degraded.result["optimization_plan"]) == 2
    assert blind.success
    assert blind.suggestions == ["Collect runtime metrics before the next analysis"]


@pytest.mark.anyio
async def test_feature_architect_requests_task_manager(registry) -> None:
    agent = await registry.create_agent("feature_architect", "fa")

    response = await agent.execute_task(
        make_task("fa", description="Add export to CSV", required_skills=["api"])
    )
    empty = await agent.execute_task(make_task("fa", description="   "))

    assert response.success
    assert response.collaboration_needed == ["task_manager"]
    assert response.result["spec"]["skills"] == ["api"]
    assert len(response.result["implementation_plan"]) == 3
    assert not empty.success


@pytest.mark.anyio
async def test_roles_without_behaviour_fall_back_to_task_manager(registry) -> None:
    agent = await registry.create_agent("user_interface", "ui")
    unknown = await registry.create_agent("translator", "tr")

    response = await agent.execute_task(make_task("ui", type="general_inquiry"))

    assert isinstance(agent, TaskManagerAgent)
    assert isinstance(unknown, TaskManagerAgent)
    assert unknown.get_config().name == "Translator"
    assert response.collaboration_needed == ["data_processor"]
