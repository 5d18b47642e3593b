"""Agent spotting performance bottlenecks in reported runtime metrics."""
from __future__ import annotations

from typing import Any, Dict, List

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, TaskAssignment

# metric -> (threshold, remedy)
THRESHOLDS: Dict[str, tuple] = {
    "cpu": (0.8, "Profile hot paths and move heavy work off the request path"),
    "memory": (0.85, "Reduce cache sizes or add eviction"),
    "latency_ms": (1000, "Add caching or batch downstream calls"),
    "error_rate": (0.05, "Add retries with backoff around failing dependencies"),
    "queue_depth": (100, "Scale out consumers"),
}


class PerformanceOptimizerAgent(Agent):
    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        context = task.metadata.get("context") or {}
        metrics = context.get("metrics") or {}
        await self.use_tool("performance_monitor", {"metrics": metrics})

        if not metrics:
            return AgentResponse(
                success=True,
                result={"type": "performance_report", "bottlenecks": [], "optimization_plan": []},
                suggestions=["Collect runtime metrics before the next analysis"],
            )

        bottlenecks = find_bottlenecks(metrics)
        return AgentResponse(
            success=True,
            result={
                "type": "performance_report",
                "bottlenecks": bottlenecks,
                "optimization_plan": [b["remedy"] for b in bottlenecks],
                "health": "degraded" if bottlenecks else "healthy",
            },
        )

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        payload = message.payload if isinstance(message.payload, dict) else {}
        bottlenecks = find_bottlenecks(payload.get("metrics") or {})
        return AgentResponse(success=True, result={"bottlenecks": bottlenecks})


def find_bottlenecks(metrics: Dict[str, Any]) -> List[Dict[str, Any]]:
    found = []
    for name, (threshold, remedy) in THRESHOLDS.items():
        value = metrics.get(name)
        if isinstance(value, (int, float)) and value > threshold:
            found.append({"metric": name, "value": value, "threshold": threshold, "remedy": remedy})
    return found
