"""Registry owning agent instances, message routing and agent selection."""
from __future__ import annotations

import asyncio
import copy
from typing import Any, Dict, Iterable, List, Optional, Type, Union

from agentflow.agents.base import Agent
from agentflow.agents.code_analyst import CodeAnalystAgent
from agentflow.agents.feature_architect import FeatureArchitectAgent
from agentflow.agents.memory_curator import MemoryCuratorAgent
from agentflow.agents.performance_optimizer import PerformanceOptimizerAgent
from agentflow.agents.security_auditor import SecurityAuditorAgent
from agentflow.agents.task_manager import TaskManagerAgent
from agentflow.core.message_bus import MessageRouter
from agentflow.core.models import (
    AgentConfig,
    AgentMessage,
    AgentResponse,
    AgentRole,
    AgentStatus,
    DecisionContext,
    TaskAssignment,
)
from agentflow.core.specializations import AGENT_SPECIALIZATIONS, role_name, template_for
from agentflow.logging import get_logger
from agentflow.services.memory import MemoryRecorder
from agentflow.services.tools import ToolRegistry, simulated_registry

logger = get_logger(__name__)

DEFAULT_CATALOG: Dict[str, Type[Agent]] = {
    AgentRole.TASK_MANAGER.value: TaskManagerAgent,
    AgentRole.CODE_ANALYST.value: CodeAnalystAgent,
    AgentRole.MEMORY_CURATOR.value: MemoryCuratorAgent,
    AgentRole.SECURITY_AUDITOR.value: SecurityAuditorAgent,
    AgentRole.PERFORMANCE_OPTIMIZER.value: PerformanceOptimizerAgent,
    AgentRole.FEATURE_ARCHITECT.value: FeatureArchitectAgent,
}
FALLBACK_AGENT: Type[Agent] = TaskManagerAgent

MIN_SUCCESS_RATE = 0.7
RESPONSE_TIME_CEILING_MS = 10_000

# Scoring weights for agent selection.
PERFORMANCE_WEIGHT = 0.4
AVAILABILITY_WEIGHT = 0.3
RESPONSIVENESS_WEIGHT = 0.2
SPECIALIZATION_WEIGHT = 0.1


def default_agent_id(role: Union[AgentRole, str]) -> str:
    return f"{role_name(role)}-001"


def _default_tools() -> ToolRegistry:
    tools: List[str] = []
    for template in AGENT_SPECIALIZATIONS.values():
        tools.extend(t for t in template.tool_access if t not in tools)
    return simulated_registry(tools)


class AgentRegistry:
    """Create, look up and coordinate agents for one orchestration context."""

    def __init__(
        self,
        *,
        memory: MemoryRecorder,
        tools: Optional[ToolRegistry] = None,
        catalog: Optional[Dict[str, Type[Agent]]] = None,
        drain_interval: float = 1.0,
    ) -> None:
        self._memory = memory
        self._tools = tools if tools is not None else _default_tools()
        self._catalog = dict(DEFAULT_CATALOG if catalog is None else catalog)
        self._agents: Dict[str, Agent] = {}
        self._lock = asyncio.Lock()
        self._router = MessageRouter(self._deliver, interval=drain_interval)

    @property
    def memory(self) -> MemoryRecorder:
        return self._memory

    @property
    def router(self) -> MessageRouter:
        return self._router

    async def initialize(self, roles: Optional[Iterable[Union[AgentRole, str]]] = None) -> None:
        """Create the default roster (one agent per role) and start message processing."""
        for role in roles if roles is not None else AGENT_SPECIALIZATIONS:
            agent_id = default_agent_id(role)
            if agent_id not in self._agents:
                await self.create_agent(role, agent_id)
        await self._router.start()
        logger.info("agent_registry_initialized", agents=len(self._agents))

    async def shutdown(self) -> None:
        await self._router.stop()
        await self._router.join()

    async def create_agent(self, role: Union[AgentRole, str], agent_id: str) -> Agent:
        """Instantiate the role's agent class from its template and register it."""
        role_key = role_name(role)
        template = template_for(role_key)
        config = AgentConfig(
            id=agent_id,
            role=role_key,
            name=template.name,
            description=template.description,
            capabilities=copy.deepcopy(template.capabilities),
            tool_access=template.tool_access,
            max_concurrent_tasks=template.max_concurrent_tasks,
            learning_enabled=True,
            autonomy_level=template.autonomy_level,
        )
        agent_cls = self._catalog.get(role_key, FALLBACK_AGENT)
        agent = agent_cls(config, self._router, self._memory, self._tools)

        async with self._lock:
            self._agents[agent_id] = agent

        try:
            await self._memory.record_event(
                "AGENT_CREATED",
                {"agent_id": agent_id, "role": role_key},
                f"Created {role_key} agent with ID {agent_id}",
            )
        except Exception:  # noqa: BLE001
            logger.warning("memory_record_failed", event_type="AGENT_CREATED", exc_info=True)
        logger.info("agent_created", agent_id=agent_id, role=role_key, agent_class=agent_cls.__name__)
        return agent

    def get_agent(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_agents_by_role(self, role: Union[AgentRole, str]) -> List[Agent]:
        role_key = role_name(role)
        return [agent for agent in self._agents.values() if agent.role == role_key]

    def get_all_agents(self) -> List[Agent]:
        return list(self._agents.values())

    async def assign_task(self, task: TaskAssignment, timeout: Optional[float] = None) -> AgentResponse:
        agent = self._agents.get(task.assigned_agent)
        if agent is None:
            return AgentResponse.failure(f"Agent {task.assigned_agent} not found")
        return await agent.execute_task(task, timeout=timeout)

    def route_message(self, message: AgentMessage) -> None:
        self._router.route(message)

    async def _deliver(self, message: AgentMessage) -> None:
        agent = self._agents.get(message.to_agent)
        if agent is None:
            logger.warning("message_dropped", message_id=message.id, to_agent=message.to_agent)
            return
        response = await agent.receive(message)
        if not response.success:
            logger.info(
                "message_rejected",
                message_id=message.id,
                to_agent=message.to_agent,
                error=response.error,
            )

    def get_system_metrics(self) -> Dict[str, Any]:
        agents = self.get_all_agents()
        statuses = [agent.get_status() for agent in agents]
        metrics = [agent.get_metrics() for agent in agents]
        return {
            "total_agents": len(agents),
            "idle_agents": statuses.count(AgentStatus.IDLE),
            "active_agents": statuses.count(AgentStatus.ACTIVE),
            "busy_agents": statuses.count(AgentStatus.BUSY),
            "error_agents": statuses.count(AgentStatus.ERROR),
            "offline_agents": statuses.count(AgentStatus.OFFLINE),
            "total_tasks_completed": sum(m.tasks_completed for m in metrics),
            "average_success_rate": (
                sum(m.success_rate for m in metrics) / len(metrics) if metrics else 0.0
            ),
            "queued_messages": self._router.pending,
        }

    def find_best_agent_for_task(
        self,
        task_type: str,
        requirements: Iterable[str],
        context: Optional[DecisionContext] = None,
    ) -> Optional[str]:
        """Pick the highest scoring eligible agent id, or None."""
        wanted = [req.lower() for req in requirements]
        pool = self.get_all_agents()
        if context is not None and context.available_agents:
            allowed = {cfg.id for cfg in context.available_agents}
            pool = [agent for agent in pool if agent.agent_id in allowed]

        best_id: Optional[str] = None
        best_score = float("-inf")
        for agent in pool:
            config = agent.get_config()
            metrics = agent.get_metrics()
            status = agent.get_status()

            name_match = any(
                req in cap.name.lower() for cap in config.capabilities for req in wanted
            )
            type_match = any(task_type in cap.input_types for cap in config.capabilities)
            if not (name_match or type_match):
                continue
            if status in (AgentStatus.ERROR, AgentStatus.OFFLINE):
                continue
            if metrics.success_rate <= MIN_SUCCESS_RATE:
                continue

            score = (
                metrics.success_rate * PERFORMANCE_WEIGHT
                + (1.0 if status is AgentStatus.IDLE else 0.5) * AVAILABILITY_WEIGHT
                + max(0.0, 1 - metrics.average_response_time / RESPONSE_TIME_CEILING_MS)
                * RESPONSIVENESS_WEIGHT
                + (1.0 if name_match else 0.5) * SPECIALIZATION_WEIGHT
            )
            if score > best_score:
                best_id, best_score = agent.agent_id, score
        return best_id
