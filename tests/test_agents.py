"""Tests for the agent execution contract."""
from __future__ import annotations

import asyncio

import pytest

from agentflow.agents.base import CAPACITY_ERROR
from agentflow.core.models import AgentMessage, AgentStatus, MessageType, TaskAssignment, TaskStatus
from agentflow.orchestration.registry import AgentRegistry


def make_task(agent_id: str, **metadata) -> TaskAssignment:
    return TaskAssignment(task_id="task-1", assigned_agent=agent_id, metadata=metadata)


@pytest.mark.anyio
async def test_status_tracks_in_flight_tasks(memory, scripted) -> None:
    gated = scripted(gate=asyncio.Event())
    registry = AgentRegistry(memory=memory, catalog={"worker": gated})
    agent = await registry.create_agent("worker", "worker-1")

    assert agent.get_status() is AgentStatus.IDLE
    running = asyncio.create_task(agent.execute_task(make_task("worker-1")))
    await asyncio.sleep(0)
    assert agent.get_status() is AgentStatus.BUSY
    assert agent.in_flight == 1

    gated.gate.set()
    response = await running
    assert response.success
    assert agent.get_status() is AgentStatus.IDLE
    assert agent.in_flight == 0


@pytest.mark.anyio
async def test_capacity_error_leaves_running_tasks_untouched(memory, scripted) -> None:
    gated = scripted(gate=asyncio.Event())
    registry = AgentRegistry(memory=memory, catalog={"worker": gated})
    agent = await registry.create_agent("worker", "worker-1")
    agent.reconfigure(max_concurrent_tasks=2)

    first = asyncio.create_task(agent.execute_task(make_task("worker-1")))
    second = asyncio.create_task(agent.execute_task(make_task("worker-1")))
    await asyncio.sleep(0)

    rejected = await agent.execute_task(make_task("worker-1"))
    assert not rejected.success
    assert rejected.error == CAPACITY_ERROR
    assert rejected.suggestions == ["Try again later", "Delegate to another agent"]
    assert agent.in_flight == 2
    assert agent.get_status() is AgentStatus.BUSY

    gated.gate.set()
    assert (await first).success
    assert (await second).success
    assert agent.get_status() is AgentStatus.IDLE
    assert agent.get_metrics().tasks_completed == 2


@pytest.mark.anyio
async def test_role_exception_becomes_failed_response(memory, scripted) -> None:
    failing = scripted(outcomes=[RuntimeError("boom")])
    registry = AgentRegistry(memory=memory, catalog={"worker": failing})
    agent = await registry.create_agent("worker", "worker-1")
    task = make_task("worker-1")

    response = await agent.execute_task(task)

    assert not response.success
    assert response.error == "boom"
    assert response.suggestions == ["Retry with different parameters", "Escalate to human operator"]
    assert task.status is TaskStatus.FAILED
    assert agent.get_status() is AgentStatus.IDLE
    assert agent.get_metrics().success_rate == 0.0


@pytest.mark.anyio
async def test_success_rate_is_running_mean(memory, scripted) -> None:
    outcomes = [True, False, True, True, False, True, True, True]
    worker = scripted(outcomes=list(outcomes))
    registry = AgentRegistry(memory=memory, catalog={"worker": worker})
    agent = await registry.create_agent("worker", "worker-1")

    for _ in outcomes:
        await agent.execute_task(make_task("worker-1"))

    metrics = agent.get_metrics()
    assert metrics.tasks_completed == len(outcomes)
    assert metrics.success_rate == pytest.approx(sum(outcomes) / len(outcomes))
    assert metrics.average_response_time >= 0.0


@pytest.mark.anyio
async def test_timeout_fails_the_task(memory, scripted) -> None:
    slow = scripted(delay=1.0)
    registry = AgentRegistry(memory=memory, catalog={"worker": slow})
    agent = await registry.create_agent("worker", "worker-1")

    response = await agent.execute_task(make_task("worker-1"), timeout=0.01)

    assert not response.success
    assert "timed out" in response.error
    assert agent.in_flight == 0
    assert agent.get_metrics().success_rate == 0.0


@pytest.mark.anyio
async def test_offline_agent_refuses_work(memory, scripted) -> None:
    worker = scripted()
    registry = AgentRegistry(memory=memory, catalog={"worker": worker})
    agent = await registry.create_agent("worker", "worker-1")
    agent.set_status(AgentStatus.OFFLINE)

    response = await agent.execute_task(make_task("worker-1"))

    assert not response.success
    assert "offline" in response.error
    assert worker.calls == []
    assert agent.get_status() is AgentStatus.OFFLINE


@pytest.mark.anyio
async def test_task_events_are_recorded(memory, scripted) -> None:
    registry = AgentRegistry(memory=memory, catalog={"worker": scripted()})
    agent = await registry.create_agent("worker", "worker-1")

    await agent.execute_task(make_task("worker-1"))

    assert len(memory.query("AGENT_TASK_START")) == 1
    completed = memory.query("AGENT_TASK_COMPLETE")
    assert len(completed) == 1
    assert completed[0].raw_data["success"] is True


class BrokenMemory:
    async def record_event(self, *args, **kwargs) -> None:
        raise ConnectionError("store unavailable")

    async def process_decay(self) -> int:
        raise ConnectionError("store unavailable")


@pytest.mark.anyio
async def test_memory_failures_do_not_abort_tasks(scripted) -> None:
    registry = AgentRegistry(memory=BrokenMemory(), catalog={"worker": scripted()})
    agent = await registry.create_agent("worker", "worker-1")

    response = await agent.execute_task(make_task("worker-1"))

    assert response.success
    assert agent.get_metrics().success_rate == 1.0


@pytest.mark.anyio
async def test_snapshots_are_copies(registry) -> None:
    agent = await registry.create_agent("code_analyst", "code-analyst-a")

    config = agent.get_config()
    config.capabilities.clear()
    config.max_concurrent_tasks = 99
    metrics = agent.get_metrics()
    metrics.tasks_completed = 42

    assert len(agent.get_config().capabilities) == 2
    assert agent.get_config().max_concurrent_tasks == 3
    assert agent.get_metrics().tasks_completed == 0


@pytest.mark.anyio
async def test_reconfigure_rejects_identity_changes(registry) -> None:
    agent = await registry.create_agent("code_analyst", "code-analyst-a")

    with pytest.raises(ValueError):
        agent.reconfigure(role="task_manager")
    assert agent.reconfigure(max_concurrent_tasks=1).max_concurrent_tasks == 1


@pytest.mark.anyio
async def test_send_message_is_delivered_through_registry(memory, scripted) -> None:
    listener = scripted()
    registry = AgentRegistry(memory=memory, catalog={"listener": listener})
    sender = await registry.create_agent("task_manager", "sender")
    receiver = await registry.create_agent("listener", "receiver")

    await sender.send_message("receiver", MessageType.NOTIFICATION, "ping")
    await registry.router.join()

    assert listener.calls == ["message:ping"]
    assert sender.get_metrics().collaboration_count == 1
    assert receiver.get_metrics().collaboration_count == 1


async def _explode(self, message) -> None:
    raise RuntimeError("handler blew up")


@pytest.mark.anyio
async def test_message_handler_exception_becomes_failed_response(memory, scripted) -> None:
    registry = AgentRegistry(memory=memory, catalog={"listener": scripted(handle_message=_explode)})
    receiver = await registry.create_agent("listener", "receiver")
    message = AgentMessage(
        from_agent="tester",
        to_agent="receiver",
        message_type=MessageType.REQUEST,
        payload="ping",
    )

    response = await receiver.receive(message)

    assert not response.success
    assert response.error == "handler blew up"
    assert response.suggestions == ["Retry with different parameters", "Escalate to human operator"]
    assert receiver.get_metrics().collaboration_count == 1


@pytest.mark.anyio
async def test_role_timeout_error_without_deadline_is_ordinary_failure(memory, scripted) -> None:
    worker = scripted(outcomes=[TimeoutError("upstream slow")])
    registry = AgentRegistry(memory=memory, catalog={"worker": worker})
    agent = await registry.create_agent("worker", "worker-1")

    response = await agent.execute_task(make_task("worker-1"))

    assert not response.success
    assert response.error == "upstream slow"
    assert agent.in_flight == 0
