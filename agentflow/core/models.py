"""Core data models shared across orchestration components."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class AgentRole(str, Enum):
    """Specializations an agent can be instantiated with."""

    TASK_MANAGER = "task_manager"
    CODE_ANALYST = "code_analyst"
    WORKFLOW_COORDINATOR = "workflow_coordinator"
    MEMORY_CURATOR = "memory_curator"
    FEATURE_ARCHITECT = "feature_architect"
    PERFORMANCE_OPTIMIZER = "performance_optimizer"
    SECURITY_AUDITOR = "security_auditor"
    USER_INTERFACE = "user_interface"
    DATA_PROCESSOR = "data_processor"
    INTEGRATION_SPECIALIST = "integration_specialist"


class AgentStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    BUSY = "busy"
    ERROR = "error"
    OFFLINE = "offline"


class MessageType(str, Enum):
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    NOTIFICATION = "NOTIFICATION"
    DELEGATION = "DELEGATION"


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Coordination(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HYBRID = "hybrid"


class RequestType(str, Enum):
    TASK_COMPLETION = "task_completion"
    CODE_REVIEW = "code_review"
    FEATURE_DEVELOPMENT = "feature_development"
    SYSTEM_OPTIMIZATION = "system_optimization"


# Priority labels mapped onto the numeric scale used by task assignments.
PRIORITY_WEIGHTS: Dict[str, int] = {"low": 3, "medium": 5, "high": 7, "critical": 10}


def priority_to_number(priority: str) -> int:
    return PRIORITY_WEIGHTS.get(priority, PRIORITY_WEIGHTS["medium"])


@dataclass(slots=True)
class AgentCapability:
    """A named skill an agent advertises, matched against task requirements."""

    name: str
    description: str = ""
    input_types: List[str] = field(default_factory=list)
    output_types: List[str] = field(default_factory=list)
    required_tools: List[str] = field(default_factory=list)
    confidence: float = 1.0


@dataclass(slots=True)
class AgentConfig:
    """Identity, capabilities and limits of a single agent."""

    id: str
    role: str
    name: str
    description: str = ""
    capabilities: List[AgentCapability] = field(default_factory=list)
    tool_access: List[str] = field(default_factory=list)
    max_concurrent_tasks: int = 3
    learning_enabled: bool = True
    autonomy_level: str = "semi_autonomous"


@dataclass(slots=True)
class AgentMetrics:
    """Running performance aggregate for one agent."""

    agent_id: str
    tasks_completed: int = 0
    average_response_time: float = 0.0
    success_rate: float = 1.0
    collaboration_count: int = 0
    uptime: float = 0.0
    last_activity: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class TaskAssignment:
    """A unit of work handed to one agent."""

    task_id: str
    assigned_agent: str
    priority: int = PRIORITY_WEIGHTS["medium"]
    status: TaskStatus = TaskStatus.PENDING
    metadata: Dict[str, Any] = field(default_factory=dict)
    deadline: Optional[datetime] = None
    id: str = field(default_factory=new_id)


@dataclass(slots=True)
class AgentMessage:
    """Inter-agent message routed through the registry queue."""

    from_agent: str
    to_agent: str
    message_type: MessageType
    payload: Any = None
    priority: str = "medium"
    correlation_id: Optional[str] = None
    id: str = field(default_factory=new_id)
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class AgentResponse:
    """Structured outcome of a task or message."""

    success: bool
    result: Any = None
    error: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)
    next_actions: List[str] = field(default_factory=list)
    collaboration_needed: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, suggestions: Optional[List[str]] = None) -> AgentResponse:
        return cls(success=False, error=error, suggestions=list(suggestions or []))


@dataclass(slots=True)
class DecisionContext:
    """Optional inputs narrowing agent selection."""

    current_task: str = ""
    available_agents: List[AgentConfig] = field(default_factory=list)
    system_load: float = 0.0
    constraints: List[str] = field(default_factory=list)


@dataclass(slots=True)
class MultiAgentWorkflow:
    """Plan describing which roles participate and how they are coordinated."""

    name: str
    description: str
    agents: List[str]
    coordination: Coordination
    entry_point: str
    completion_criteria: List[str] = field(default_factory=list)
    error_handling: str = "escalate"
    id: str = field(default_factory=new_id)


@dataclass(slots=True)
class OrchestrationRequest:
    type: str
    description: str
    priority: str = "medium"
    context: Dict[str, Any] = field(default_factory=dict)
    deadline: Optional[datetime] = None
    required_skills: List[str] = field(default_factory=list)
    constraints: List[str] = field(default_factory=list)


@dataclass(slots=True)
class AgentLearningRecord:
    """Post-hoc summary of one role's contribution to one orchestration."""

    agent_id: str
    scenario: str
    decision: str
    outcome: str
    feedback: str
    improvement_suggestions: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)


@dataclass(slots=True)
class OrchestrationResult:
    id: str
    success: bool
    assigned_agents: List[str]
    workflow: Optional[MultiAgentWorkflow]
    results: Dict[str, AgentResponse]
    duration: float
    learning_records: List[AgentLearningRecord] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    completed_at: datetime = field(default_factory=utcnow)
