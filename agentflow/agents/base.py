"""Base agent definition used by the registry and orchestrator."""
from __future__ import annotations

import abc
import asyncio
import copy
import time
from typing import Any, Dict, Optional

from agentflow.core.message_bus import MessageRouter
from agentflow.core.models import (
    AgentConfig,
    AgentMessage,
    AgentMetrics,
    AgentResponse,
    AgentStatus,
    MessageType,
    TaskAssignment,
    TaskStatus,
    utcnow,
)
from agentflow.logging import get_logger
from agentflow.services.memory import MemoryRecorder
from agentflow.services.tools import ToolRegistry

logger = get_logger(__name__)

CAPACITY_ERROR = "Agent at maximum capacity"
RECOVERY_SUGGESTIONS = ["Retry with different parameters", "Escalate to human operator"]


class Agent(abc.ABC):
    """Abstract agent with bounded concurrency and running metrics.

    Subclasses implement ``process_task`` and ``handle_message``; everything
    else (capacity checks, status bookkeeping, metrics, event recording and
    error conversion) lives here.
    """

    def __init__(
        self,
        config: AgentConfig,
        router: MessageRouter,
        memory: MemoryRecorder,
        tools: Optional[ToolRegistry] = None,
    ) -> None:
        self._config = config
        self._router = router
        self._memory = memory
        self._tools = tools or ToolRegistry()
        self._status = AgentStatus.IDLE
        self._current_tasks: Dict[str, TaskAssignment] = {}
        self._metrics = AgentMetrics(agent_id=config.id)
        self._created = time.monotonic()
        self._log = logger.bind(agent_id=config.id, role=config.role)

    @property
    def agent_id(self) -> str:
        return self._config.id

    @property
    def role(self) -> str:
        return self._config.role

    @property
    def in_flight(self) -> int:
        return len(self._current_tasks)

    @abc.abstractmethod
    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        """Run the role-specific logic for a task."""

    @abc.abstractmethod
    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        """Process a message delivered by the registry."""

    async def execute_task(
        self,
        task: TaskAssignment,
        timeout: Optional[float] = None,
    ) -> AgentResponse:
        """Run ``task`` within the agent's capacity, never raising."""
        if self._status is AgentStatus.OFFLINE:
            return AgentResponse.failure(
                f"Agent {self.agent_id} is offline",
                ["Delegate to another agent"],
            )
        if len(self._current_tasks) >= self._config.max_concurrent_tasks:
            return AgentResponse.failure(
                CAPACITY_ERROR,
                ["Try again later", "Delegate to another agent"],
            )

        self._status = AgentStatus.BUSY
        self._current_tasks[task.id] = task
        task.status = TaskStatus.RUNNING
        started = time.perf_counter()

        try:
            await self._record(
                "AGENT_TASK_START",
                {"agent_id": self.agent_id, "task_id": task.id, "role": self.role},
                f"Agent {self._config.name} started task {task.task_id}",
                task_id=task.task_id,
            )

            if timeout is None:
                response = await self.process_task(task)
            else:
                response = await asyncio.wait_for(self.process_task(task), timeout=timeout)

            duration = (time.perf_counter() - started) * 1000
            self._update_metrics(duration, response.success)
            task.status = TaskStatus.COMPLETED if response.success else TaskStatus.FAILED

            await self._record(
                "AGENT_TASK_COMPLETE",
                {
                    "agent_id": self.agent_id,
                    "task_id": task.id,
                    "success": response.success,
                    "duration": duration,
                },
                f"Agent {self._config.name} completed task with "
                f"{'success' if response.success else 'failure'}",
                task_id=task.task_id,
            )
            return response
        except Exception as exc:  # noqa: BLE001
            self._update_metrics((time.perf_counter() - started) * 1000, False)
            task.status = TaskStatus.FAILED
            # A TimeoutError raised by the role itself is an ordinary failure.
            if timeout is not None and isinstance(exc, asyncio.TimeoutError):
                self._log.warning("task_timed_out", task_id=task.id, timeout=timeout)
                error = f"Task timed out after {timeout}s"
            else:
                self._log.exception("task_execution_error", task_id=task.id)
                error = str(exc) or type(exc).__name__
            return AgentResponse.failure(error, RECOVERY_SUGGESTIONS)
        finally:
            self._current_tasks.pop(task.id, None)
            if self._status is not AgentStatus.OFFLINE:
                self._status = AgentStatus.BUSY if self._current_tasks else AgentStatus.IDLE

    async def receive(self, message: AgentMessage) -> AgentResponse:
        """Delivery entry point used by the registry's message router."""
        self._metrics.collaboration_count += 1
        self._metrics.last_activity = utcnow()
        try:
            return await self.handle_message(message)
        except Exception as exc:  # noqa: BLE001
            self._log.exception("message_handling_error", message_id=message.id)
            return AgentResponse.failure(str(exc) or type(exc).__name__, RECOVERY_SUGGESTIONS)

    async def send_message(
        self,
        to_agent: str,
        message_type: MessageType,
        payload: Any,
        priority: str = "medium",
    ) -> AgentMessage:
        """Queue a message for another agent; delivery happens asynchronously."""
        message = AgentMessage(
            from_agent=self.agent_id,
            to_agent=to_agent,
            message_type=message_type,
            payload=payload,
            priority=priority,
        )
        self._metrics.collaboration_count += 1
        self._router.route(message)
        return message

    async def use_tool(self, tool: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Invoke a tool this agent has been granted access to."""
        if tool not in self._config.tool_access:
            raise PermissionError(f"Agent {self.agent_id} has no access to tool '{tool}'")
        return await self._tools.execute(tool, payload)

    def get_status(self) -> AgentStatus:
        return self._status

    def set_status(self, status: AgentStatus) -> None:
        """Override the status, e.g. to take an agent offline or flag an error."""
        if status in (AgentStatus.IDLE, AgentStatus.BUSY):
            status = AgentStatus.BUSY if self._current_tasks else AgentStatus.IDLE
        self._status = status

    def get_metrics(self) -> AgentMetrics:
        snapshot = copy.copy(self._metrics)
        snapshot.uptime = time.monotonic() - self._created
        return snapshot

    def get_config(self) -> AgentConfig:
        return copy.deepcopy(self._config)

    def reconfigure(self, **changes: Any) -> AgentConfig:
        """Apply explicit configuration changes; ``id`` and ``role`` are fixed."""
        for key in ("id", "role"):
            if key in changes:
                raise ValueError(f"Agent {key} cannot be reconfigured")
        for key, value in changes.items():
            if not hasattr(self._config, key):
                raise AttributeError(f"Unknown config field '{key}'")
            setattr(self._config, key, value)
        return self.get_config()

    def _update_metrics(self, duration: float, success: bool) -> None:
        metrics = self._metrics
        metrics.tasks_completed += 1
        count = metrics.tasks_completed
        metrics.average_response_time = (
            metrics.average_response_time * (count - 1) + duration
        ) / count
        # The seed rate of 1.0 carries zero weight once the first task lands.
        metrics.success_rate = (
            metrics.success_rate * (count - 1) + (1.0 if success else 0.0)
        ) / count
        metrics.last_activity = utcnow()

    async def _record(
        self,
        event_type: str,
        data: Dict[str, Any],
        description: str,
        task_id: Optional[str] = None,
    ) -> None:
        try:
            await self._memory.record_event(event_type, data, description, task_id=task_id)
        except Exception:  # noqa: BLE001
            self._log.warning("memory_record_failed", event_type=event_type, exc_info=True)
