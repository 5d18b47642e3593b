"""Static per-role templates agents are instantiated from."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Union

from .models import AgentCapability, AgentRole


def role_name(role: Union[AgentRole, str]) -> str:
    """Normalize a role enum or raw string into its plain string value."""
    return role.value if isinstance(role, AgentRole) else str(role)


@dataclass(frozen=True)
class RoleTemplate:
    name: str
    description: str
    capabilities: List[AgentCapability] = field(default_factory=list)
    max_concurrent_tasks: int = 3
    autonomy_level: str = "semi_autonomous"

    @property
    def tool_access(self) -> List[str]:
        tools: List[str] = []
        for capability in self.capabilities:
            for tool in capability.required_tools:
                if tool not in tools:
                    tools.append(tool)
        return tools


AGENT_SPECIALIZATIONS: Dict[str, RoleTemplate] = {
    AgentRole.TASK_MANAGER.value: RoleTemplate(
        name="Task Manager",
        description="Coordinates task planning, assignment, and tracking",
        capabilities=[
            AgentCapability(
                name="Task Decomposition",
                description="Break complex tasks into manageable subtasks",
                input_types=["task_description", "requirements"],
                output_types=["task_list", "dependencies"],
                required_tools=["task_analyzer"],
                confidence=0.9,
            ),
            AgentCapability(
                name="Resource Allocation",
                description="Assign tasks to appropriate agents based on capabilities",
                input_types=["task_list", "agent_availability"],
                output_types=["task_assignments"],
                required_tools=["agent_registry"],
                confidence=0.85,
            ),
        ],
        max_concurrent_tasks=5,
    ),
    AgentRole.CODE_ANALYST.value: RoleTemplate(
        name="Code Analyst",
        description="Analyzes code quality, security, and suggests improvements",
        capabilities=[
            AgentCapability(
                name="Code Review",
                description="Analyze code for quality, bugs, and best practices",
                input_types=["source_code"],
                output_types=["review_report", "suggestions"],
                required_tools=["static_analyzer", "linter"],
                confidence=0.92,
            ),
            AgentCapability(
                name="Security Audit",
                description="Identify security vulnerabilities and risks",
                input_types=["source_code", "dependencies"],
                output_types=["security_report"],
                required_tools=["security_scanner"],
                confidence=0.88,
            ),
        ],
        max_concurrent_tasks=3,
        autonomy_level="fully_autonomous",
    ),
    AgentRole.WORKFLOW_COORDINATOR.value: RoleTemplate(
        name="Workflow Coordinator",
        description="Orchestrates complex multi-step workflows",
        capabilities=[
            AgentCapability(
                name="Workflow Design",
                description="Create optimized workflow sequences",
                input_types=["requirements", "constraints"],
                output_types=["workflow_definition"],
                required_tools=["workflow_designer"],
                confidence=0.87,
            ),
        ],
        max_concurrent_tasks=4,
    ),
    AgentRole.MEMORY_CURATOR.value: RoleTemplate(
        name="Memory Curator",
        description="Manages knowledge storage and retrieval optimization",
        capabilities=[
            AgentCapability(
                name="Knowledge Organization",
                description="Organize and structure knowledge for optimal retrieval",
                input_types=["raw_data", "context"],
                output_types=["structured_knowledge"],
                required_tools=["memory_service"],
                confidence=0.89,
            ),
        ],
        max_concurrent_tasks=2,
        autonomy_level="fully_autonomous",
    ),
    AgentRole.FEATURE_ARCHITECT.value: RoleTemplate(
        name="Feature Architect",
        description="Designs and proposes new system features",
        capabilities=[
            AgentCapability(
                name="Feature Design",
                description="Design comprehensive feature specifications",
                input_types=["requirements", "user_feedback"],
                output_types=["feature_spec", "implementation_plan"],
                required_tools=["design_analyzer"],
                confidence=0.86,
            ),
        ],
        max_concurrent_tasks=2,
        autonomy_level="supervised",
    ),
    AgentRole.PERFORMANCE_OPTIMIZER.value: RoleTemplate(
        name="Performance Optimizer",
        description="Monitors and optimizes system performance",
        capabilities=[
            AgentCapability(
                name="Performance Analysis",
                description="Analyze system performance and identify bottlenecks",
                input_types=["metrics", "logs"],
                output_types=["performance_report", "optimization_plan"],
                required_tools=["performance_monitor"],
                confidence=0.91,
            ),
        ],
        max_concurrent_tasks=3,
        autonomy_level="fully_autonomous",
    ),
    AgentRole.SECURITY_AUDITOR.value: RoleTemplate(
        name="Security Auditor",
        description="Continuous security monitoring and threat assessment",
        capabilities=[
            AgentCapability(
                name="Threat Detection",
                description="Identify and assess security threats",
                input_types=["system_logs", "network_traffic"],
                output_types=["threat_report"],
                required_tools=["security_monitor"],
                confidence=0.93,
            ),
        ],
        max_concurrent_tasks=2,
        autonomy_level="fully_autonomous",
    ),
    AgentRole.USER_INTERFACE.value: RoleTemplate(
        name="User Interface Agent",
        description="Handles user interactions and communication",
        capabilities=[
            AgentCapability(
                name="User Communication",
                description="Interpret user requests and provide responses",
                input_types=["user_input"],
                output_types=["response", "action_plan"],
                required_tools=["nlp_processor"],
                confidence=0.84,
            ),
        ],
        max_concurrent_tasks=4,
        autonomy_level="supervised",
    ),
    AgentRole.DATA_PROCESSOR.value: RoleTemplate(
        name="Data Processor",
        description="Handles data transformation and analysis",
        capabilities=[
            AgentCapability(
                name="Data Analysis",
                description="Process and analyze various data formats",
                input_types=["raw_data"],
                output_types=["processed_data", "insights"],
                required_tools=["data_analyzer"],
                confidence=0.88,
            ),
        ],
        max_concurrent_tasks=3,
        autonomy_level="fully_autonomous",
    ),
    AgentRole.INTEGRATION_SPECIALIST.value: RoleTemplate(
        name="Integration Specialist",
        description="Manages external API and service integrations",
        capabilities=[
            AgentCapability(
                name="API Integration",
                description="Set up and manage external service connections",
                input_types=["api_spec", "credentials"],
                output_types=["integration_config"],
                required_tools=["api_client"],
                confidence=0.85,
            ),
        ],
        max_concurrent_tasks=3,
    ),
}


def template_for(role: Union[AgentRole, str]) -> RoleTemplate:
    """Return the template for ``role``, or a bare template for unknown roles."""
    key = role_name(role)
    template = AGENT_SPECIALIZATIONS.get(key)
    if template is None:
        return RoleTemplate(
            name=key.replace("_", " ").title(),
            description=f"Generic agent for role {key}",
        )
    return template
