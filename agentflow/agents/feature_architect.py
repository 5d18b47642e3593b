"""Agent drafting feature specifications and implementation plans."""
from __future__ import annotations

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, AgentRole, MessageType, TaskAssignment

PLAN_PHASES = ["design", "implementation", "validation"]


class FeatureArchitectAgent(Agent):
    """Turns a feature request into a spec, then asks the task manager to split it up."""

    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        metadata = task.metadata
        description = metadata.get("description") or ""
        if not description.strip():
            return AgentResponse.failure("Feature request has no description")

        await self.use_tool("design_analyzer", {"description": description})
        spec = {
            "summary": description,
            "skills": list(metadata.get("required_skills") or []),
            "constraints": list(metadata.get("constraints") or []),
        }
        plan = [f"{phase}: {description}" for phase in PLAN_PHASES]
        return AgentResponse(
            success=True,
            result={"type": "feature_spec", "spec": spec, "implementation_plan": plan},
            next_actions=["Decompose implementation plan"],
            collaboration_needed=[AgentRole.TASK_MANAGER.value],
        )

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        if message.message_type is MessageType.REQUEST:
            return AgentResponse(success=True, result="Design request queued")
        return AgentResponse(success=True, result="Message processed by Feature Architect")
