"""FIFO delivery through the message router."""
from __future__ import annotations

import asyncio
from typing import List

import pytest

from agentflow.core.message_bus import MessageRouter
from agentflow.core.models import AgentMessage, MessageType
from agentflow.orchestration.registry import AgentRegistry


def message(to_agent: str, payload: object) -> AgentMessage:
    return AgentMessage(
        from_agent="sender",
        to_agent=to_agent,
        message_type=MessageType.NOTIFICATION,
        payload=payload,
    )


@pytest.mark.anyio
async def test_messages_are_delivered_in_fifo_order() -> None:
    delivered: List[object] = []

    async def deliver(msg: AgentMessage) -> None:
        await asyncio.sleep(0)
        delivered.append(msg.payload)

    router = MessageRouter(deliver)
    for i in range(5):
        router.route(message("a", i))
    await router.join()

    assert delivered == [0, 1, 2, 3, 4]
    assert router.pending == 0


@pytest.mark.anyio
async def test_only_one_drain_runs_at_a_time() -> None:
    active = 0
    peak = 0

    async def deliver(msg: AgentMessage) -> None:
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.001)
        active -= 1

    router = MessageRouter(deliver)
    for i in range(3):
        router.route(message("a", i))
    assert router.is_draining is False

    await asyncio.sleep(0)
    assert router.is_draining
    assert await router.drain() == 0

    await router.join()
    assert peak == 1


@pytest.mark.anyio
async def test_delivery_failure_does_not_stop_the_queue() -> None:
    delivered: List[object] = []

    async def deliver(msg: AgentMessage) -> None:
        if msg.payload == "bad":
            raise RuntimeError("recipient exploded")
        delivered.append(msg.payload)

    router = MessageRouter(deliver)
    router.route(message("a", "first"))
    router.route(message("a", "bad"))
    router.route(message("a", "last"))
    await router.join()

    assert delivered == ["first", "last"]


@pytest.mark.anyio
async def test_periodic_drain_picks_up_leftovers() -> None:
    delivered: List[object] = []

    async def deliver(msg: AgentMessage) -> None:
        delivered.append(msg.payload)

    router = MessageRouter(deliver, interval=0.01)
    # Enqueue without triggering an immediate drain.
    router._queue.append(message("a", "stray"))

    await router.start()
    try:
        for _ in range(50):
            if delivered:
                break
            await asyncio.sleep(0.01)
    finally:
        await router.stop()

    assert delivered == ["stray"]


@pytest.mark.anyio
async def test_registry_drops_messages_for_unknown_agents(memory, scripted) -> None:
    listener = scripted()
    registry = AgentRegistry(memory=memory, catalog={"listener": listener})
    await registry.create_agent("listener", "known")

    registry.route_message(message("nobody", "lost"))
    registry.route_message(message("known", "kept"))
    await registry.router.join()

    assert listener.calls == ["message:kept"]
    assert registry.get_system_metrics()["queued_messages"] == 0


def test_routing_outside_the_event_loop_queues_nothing() -> None:
    async def deliver(msg: AgentMessage) -> None:
        pass

    router = MessageRouter(deliver)

    with pytest.raises(RuntimeError):
        router.route(message("a", "orphan"))
    assert router.pending == 0
