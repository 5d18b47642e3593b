"""Shared fixtures for agentflow tests."""
from __future__ import annotations

import asyncio
from typing import Dict, List

import pytest

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, TaskAssignment
from agentflow.orchestration.registry import AgentRegistry
from agentflow.services.memory import MemoryStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def memory() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry(memory: MemoryStore) -> AgentRegistry:
    return AgentRegistry(memory=memory, drain_interval=0.01)


class ScriptedAgent(Agent):
    """Agent whose outcomes are driven by the test.

    ``outcomes`` is consumed one entry per task: True/False produce a
    response with that success flag, an exception instance is raised.
    ``gate`` (when set) blocks processing until the test releases it.
    """

    outcomes: List[object] = []
    calls: List[str] = []
    seen: Dict[str, TaskAssignment] = {}
    gate: "asyncio.Event | None" = None
    delay: float = 0.0
    collaboration: List[str] = []

    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        type(self).calls.append(self.role)
        type(self).seen[self.role] = task
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = type(self).outcomes.pop(0) if type(self).outcomes else True
        if isinstance(outcome, BaseException):
            raise outcome
        return AgentResponse(
            success=bool(outcome),
            result={"role": self.role},
            error=None if outcome else f"{self.role} failed",
            collaboration_needed=list(self.collaboration),
        )

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        type(self).calls.append(f"message:{message.payload}")
        return AgentResponse(success=True)


@pytest.fixture
def scripted():
    """Return a fresh ScriptedAgent subclass with isolated class state."""

    def factory(**attrs) -> type:
        namespace = {"outcomes": [], "calls": [], "seen": {}, "gate": None, "delay": 0.0, "collaboration": []}
        namespace.update(attrs)
        return type("Scripted", (ScriptedAgent,), namespace)

    return factory
