"""Agent maintaining the knowledge held by the memory store."""
from __future__ import annotations

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, TaskAssignment, utcnow

KNOWLEDGE_CATEGORIES = ["technical", "user_preference", "workflow"]


class MemoryCuratorAgent(Agent):
    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        task_type = task.metadata.get("type")

        if task_type == "knowledge_organization":
            return await self.organize_knowledge(task.metadata.get("data"))
        if task_type in ("memory_optimization", "system_optimization"):
            return await self.optimize_memory()
        return AgentResponse.failure("Unknown task type for Memory Curator")

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        return AgentResponse(success=True, result="Message processed by Memory Curator")

    async def organize_knowledge(self, data: object) -> AgentResponse:
        await self._memory.record_event(
            "KNOWLEDGE_ORGANIZATION",
            data,
            "Knowledge organized by Memory Curator",
        )
        return AgentResponse(
            success=True,
            result={
                "type": "knowledge_organized",
                "items_processed": len(data) if isinstance(data, list) else 1,
                "categories": list(KNOWLEDGE_CATEGORIES),
            },
        )

    async def optimize_memory(self) -> AgentResponse:
        archived = await self._memory.process_decay()
        return AgentResponse(
            success=True,
            result={
                "type": "memory_optimized",
                "action": "decay_processed",
                "archived": archived,
                "timestamp": utcnow().isoformat(),
            },
        )
