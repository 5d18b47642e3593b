"""HTTP API exposing registry and orchestrator capabilities."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from agentflow.agents.base import Agent
from agentflow.core.models import (
    AgentLearningRecord,
    AgentMessage,
    AgentResponse,
    MessageType,
    MultiAgentWorkflow,
    OrchestrationRequest,
    OrchestrationResult,
    RequestType,
    TaskAssignment,
    priority_to_number,
)
from agentflow.orchestration.orchestrator import Orchestrator
from agentflow.runtime import get_orchestrator

router = APIRouter(tags=["orchestration"])


class AgentSummary(BaseModel):
    agent_id: str
    name: str
    role: str
    status: str
    in_flight: int
    max_concurrent_tasks: int
    tasks_completed: int
    success_rate: float
    average_response_time: float
    collaboration_count: int

    @classmethod
    def from_agent(cls, agent: Agent) -> "AgentSummary":
        config = agent.get_config()
        metrics = agent.get_metrics()
        return cls(
            agent_id=config.id,
            name=config.name,
            role=config.role,
            status=agent.get_status().value,
            in_flight=agent.in_flight,
            max_concurrent_tasks=config.max_concurrent_tasks,
            tasks_completed=metrics.tasks_completed,
            success_rate=metrics.success_rate,
            average_response_time=metrics.average_response_time,
            collaboration_count=metrics.collaboration_count,
        )


class AgentResponseModel(BaseModel):
    success: bool
    result: Any = None
    error: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)
    next_actions: List[str] = Field(default_factory=list)
    collaboration_needed: List[str] = Field(default_factory=list)

    @classmethod
    def from_response(cls, response: AgentResponse) -> "AgentResponseModel":
        return cls(
            success=response.success,
            result=response.result,
            error=response.error,
            suggestions=response.suggestions,
            next_actions=response.next_actions,
            collaboration_needed=list(response.collaboration_needed),
        )


class TaskRequest(BaseModel):
    task_id: str = Field(..., description="Logical task identifier")
    priority: str = Field("medium", description="low, medium, high or critical")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MessageRequest(BaseModel):
    from_agent: str = Field(..., description="Identifier of the sender")
    message_type: MessageType = MessageType.REQUEST
    payload: Any = None
    priority: str = "medium"


class OrchestrateRequest(BaseModel):
    type: RequestType
    description: str
    priority: str = "medium"
    context: Dict[str, Any] = Field(default_factory=dict)
    deadline: Optional[datetime] = None
    required_skills: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)


class SmartRouteRequest(BaseModel):
    description: str
    context: Dict[str, Any] = Field(default_factory=dict)


class WorkflowModel(BaseModel):
    id: str
    name: str
    description: str
    agents: List[str]
    coordination: str
    entry_point: str
    completion_criteria: List[str]
    error_handling: str

    @classmethod
    def from_workflow(cls, workflow: MultiAgentWorkflow) -> "WorkflowModel":
        return cls(
            id=workflow.id,
            name=workflow.name,
            description=workflow.description,
            agents=list(workflow.agents),
            coordination=workflow.coordination.value,
            entry_point=workflow.entry_point,
            completion_criteria=list(workflow.completion_criteria),
            error_handling=workflow.error_handling,
        )


class LearningRecordModel(BaseModel):
    agent_id: str
    scenario: str
    decision: str
    outcome: str
    feedback: str
    improvement_suggestions: List[str]
    timestamp: datetime

    @classmethod
    def from_record(cls, record: AgentLearningRecord) -> "LearningRecordModel":
        return cls(
            agent_id=record.agent_id,
            scenario=record.scenario,
            decision=record.decision,
            outcome=record.outcome,
            feedback=record.feedback,
            improvement_suggestions=record.improvement_suggestions,
            timestamp=record.timestamp,
        )


class OrchestrationResultModel(BaseModel):
    id: str
    success: bool
    assigned_agents: List[str]
    workflow: Optional[WorkflowModel]
    results: Dict[str, AgentResponseModel]
    duration: float
    learning_records: List[LearningRecordModel]
    recommendations: List[str]
    completed_at: datetime

    @classmethod
    def from_result(cls, result: OrchestrationResult) -> "OrchestrationResultModel":
        return cls(
            id=result.id,
            success=result.success,
            assigned_agents=result.assigned_agents,
            workflow=WorkflowModel.from_workflow(result.workflow) if result.workflow else None,
            results={
                role: AgentResponseModel.from_response(response)
                for role, response in result.results.items()
            },
            duration=result.duration,
            learning_records=[LearningRecordModel.from_record(r) for r in result.learning_records],
            recommendations=result.recommendations,
            completed_at=result.completed_at,
        )


def _require_agent(orchestrator: Orchestrator, agent_id: str) -> Agent:
    agent = orchestrator.registry.get_agent(agent_id)
    if agent is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown agent")
    return agent


@router.get("/agents", response_model=List[AgentSummary])
async def list_agents(
    role: Optional[str] = None,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> List[AgentSummary]:
    registry = orchestrator.registry
    agents = registry.get_agents_by_role(role) if role else registry.get_all_agents()
    return [AgentSummary.from_agent(agent) for agent in agents]


@router.get("/agents/{agent_id}", response_model=AgentSummary)
async def get_agent(agent_id: str, orchestrator: Orchestrator = Depends(get_orchestrator)) -> AgentSummary:
    return AgentSummary.from_agent(_require_agent(orchestrator, agent_id))


@router.post("/agents/{agent_id}/tasks", response_model=AgentResponseModel)
async def assign_task(
    agent_id: str,
    request: TaskRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> AgentResponseModel:
    _require_agent(orchestrator, agent_id)
    task = TaskAssignment(
        task_id=request.task_id,
        assigned_agent=agent_id,
        priority=priority_to_number(request.priority),
        metadata=request.metadata,
    )
    response = await orchestrator.registry.assign_task(task)
    return AgentResponseModel.from_response(response)


@router.post("/agents/{agent_id}/messages", status_code=status.HTTP_202_ACCEPTED)
async def send_message(
    agent_id: str,
    request: MessageRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> dict:
    _require_agent(orchestrator, agent_id)
    message = AgentMessage(
        from_agent=request.from_agent,
        to_agent=agent_id,
        message_type=request.message_type,
        payload=request.payload,
        priority=request.priority,
    )
    orchestrator.registry.route_message(message)
    return {"message_id": message.id}


@router.post("/orchestrations", response_model=OrchestrationResultModel)
async def orchestrate(
    request: OrchestrateRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> OrchestrationResultModel:
    result = await orchestrator.orchestrate(
        OrchestrationRequest(
            type=request.type.value,
            description=request.description,
            priority=request.priority,
            context=request.context,
            deadline=request.deadline,
            required_skills=request.required_skills,
            constraints=request.constraints,
        )
    )
    return OrchestrationResultModel.from_result(result)


@router.post("/orchestrations/route", response_model=OrchestrationResultModel)
async def smart_route(
    request: SmartRouteRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> OrchestrationResultModel:
    result = await orchestrator.smart_route(request.description, request.context)
    return OrchestrationResultModel.from_result(result)


@router.get("/orchestrations/{orchestration_id}", response_model=OrchestrationResultModel)
async def get_orchestration(
    orchestration_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> OrchestrationResultModel:
    result = orchestrator.get_workflow_result(orchestration_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown orchestration")
    return OrchestrationResultModel.from_result(result)


@router.get("/metrics")
async def metrics(orchestrator: Orchestrator = Depends(get_orchestrator)) -> dict:
    return orchestrator.get_system_metrics()
