"""Agent that decomposes tasks and delegates them to specialists."""
from __future__ import annotations

from typing import Any, Dict

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, AgentRole, MessageType, TaskAssignment

DECOMPOSITION_THRESHOLD = 0.6

SPECIALIST_BY_TYPE: Dict[str, str] = {
    "code_review": AgentRole.CODE_ANALYST.value,
    "performance": AgentRole.PERFORMANCE_OPTIMIZER.value,
    "feature_design": AgentRole.FEATURE_ARCHITECT.value,
}
DEFAULT_SPECIALIST = AgentRole.DATA_PROCESSOR.value

PHASE_ROLES: Dict[str, str] = {
    "analysis": AgentRole.CODE_ANALYST.value,
    "implementation": AgentRole.FEATURE_ARCHITECT.value,
    "testing": AgentRole.PERFORMANCE_OPTIMIZER.value,
}


class TaskManagerAgent(Agent):
    """Splits large tasks into phases and hands small ones to one specialist.

    Also serves as the fallback behaviour for roles without a dedicated
    implementation.
    """

    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        complexity = self.estimate_complexity(task.metadata)

        if complexity > DECOMPOSITION_THRESHOLD:
            subtasks = [f"{task.task_id}_{phase}" for phase in PHASE_ROLES]
            assignments = dict(zip(subtasks, PHASE_ROLES.values()))
            return AgentResponse(
                success=True,
                result={
                    "type": "task_decomposition",
                    "complexity": complexity,
                    "subtasks": subtasks,
                    "assignments": assignments,
                },
                next_actions=["Monitor subtask progress", "Coordinate with assigned agents"],
            )

        specialist = SPECIALIST_BY_TYPE.get(task.metadata.get("type", ""), DEFAULT_SPECIALIST)
        return AgentResponse(
            success=True,
            result={"type": "task_delegation", "complexity": complexity, "assigned_role": specialist},
            collaboration_needed=[specialist],
        )

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        if message.message_type is MessageType.REQUEST:
            return AgentResponse(success=True, result="Task request acknowledged")
        if message.message_type is MessageType.RESPONSE:
            return AgentResponse(success=True, result="Agent response processed")
        return AgentResponse.failure("Unknown message type")

    @staticmethod
    def estimate_complexity(metadata: Dict[str, Any]) -> float:
        """Anything estimated above two hours is treated as complex."""
        hours = metadata.get("estimated_hours")
        if hours is None:
            hours = (metadata.get("context") or {}).get("estimated_hours", 0)
        try:
            return 0.8 if float(hours) > 2 else 0.3
        except (TypeError, ValueError):
            return 0.3