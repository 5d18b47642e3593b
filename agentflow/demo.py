"""CLI demonstration of smart routing across the agent roster."""
from __future__ import annotations

import asyncio
from typing import List

from agentflow.logging import configure_logging
from agentflow.orchestration.orchestrator import Orchestrator
from agentflow.orchestration.registry import AgentRegistry
from agentflow.services.memory import MemoryStore

DEMO_REQUESTS: List[tuple] = [
    ("Please review the auth module", {"code": "password = 'hunter2'\nprint(token)\n"}),
    ("This is urgent, please optimize the database performance", {"metrics": {"cpu": 0.93, "latency_ms": 1800}}),
    ("Build a feature for exporting reports", {}),
    ("Handle the weekly cleanup task", {"estimated_hours": 4}),
]


async def main() -> None:
    configure_logging(level="WARNING")
    registry = AgentRegistry(memory=MemoryStore())
    await registry.initialize()
    orchestrator = Orchestrator(registry)

    for description, context in DEMO_REQUESTS:
        result = await orchestrator.smart_route(description, context)
        workflow = result.workflow
        mode = workflow.coordination.value if workflow else "n/a"
        print(f"\n> {description}")
        print(f"  success={result.success} coordination={mode} duration={result.duration:.1f}ms")
        for role, response in result.results.items():
            outcome = "ok" if response.success else f"failed ({response.error})"
            print(f"  - {role}: {outcome}")
        for recommendation in result.recommendations[:3]:
            print(f"  * {recommendation}")

    print(f"\nMetrics: {orchestrator.get_system_metrics()}")
    await registry.shutdown()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
