"""Strategy selection and workflow templates for orchestration requests."""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List

from agentflow.core.models import (
    AgentRole,
    Coordination,
    MultiAgentWorkflow,
    OrchestrationRequest,
    RequestType,
)

STRATEGIES: Dict[str, str] = {
    RequestType.CODE_REVIEW.value: "sequential_analysis",
    RequestType.FEATURE_DEVELOPMENT.value: "collaborative_design",
    RequestType.SYSTEM_OPTIMIZATION.value: "parallel_analysis",
    RequestType.TASK_COMPLETION.value: "adaptive_delegation",
}
DEFAULT_STRATEGY = "adaptive_delegation"


@dataclass(frozen=True)
class WorkflowTemplate:
    agents: List[str]
    coordination: Coordination
    entry_point: str


WORKFLOW_TEMPLATES: Dict[str, WorkflowTemplate] = {
    "sequential_analysis": WorkflowTemplate(
        agents=[
            AgentRole.CODE_ANALYST.value,
            AgentRole.SECURITY_AUDITOR.value,
            AgentRole.PERFORMANCE_OPTIMIZER.value,
        ],
        coordination=Coordination.SEQUENTIAL,
        entry_point=AgentRole.CODE_ANALYST.value,
    ),
    "collaborative_design": WorkflowTemplate(
        agents=[
            AgentRole.FEATURE_ARCHITECT.value,
            AgentRole.CODE_ANALYST.value,
            AgentRole.TASK_MANAGER.value,
        ],
        coordination=Coordination.HYBRID,
        entry_point=AgentRole.FEATURE_ARCHITECT.value,
    ),
    "parallel_analysis": WorkflowTemplate(
        agents=[
            AgentRole.PERFORMANCE_OPTIMIZER.value,
            AgentRole.MEMORY_CURATOR.value,
            AgentRole.DATA_PROCESSOR.value,
        ],
        coordination=Coordination.PARALLEL,
        entry_point=AgentRole.PERFORMANCE_OPTIMIZER.value,
    ),
    "adaptive_delegation": WorkflowTemplate(
        agents=[AgentRole.TASK_MANAGER.value, AgentRole.USER_INTERFACE.value],
        coordination=Coordination.HYBRID,
        entry_point=AgentRole.TASK_MANAGER.value,
    ),
}

COMPLETION_CRITERIA = ["All agents completed successfully", "Results validated"]


def select_strategy(request: OrchestrationRequest) -> str:
    return STRATEGIES.get(request.type, DEFAULT_STRATEGY)


def build_workflow(request: OrchestrationRequest, strategy: str) -> MultiAgentWorkflow:
    template = WORKFLOW_TEMPLATES.get(strategy, WORKFLOW_TEMPLATES[DEFAULT_STRATEGY])
    return MultiAgentWorkflow(
        name=f"{request.type}_workflow_{int(time.time() * 1000)}",
        description=f"Workflow for: {request.description}",
        agents=list(template.agents),
        coordination=template.coordination,
        entry_point=template.entry_point,
        completion_criteria=list(COMPLETION_CRITERIA),
        error_handling="escalate",
    )
