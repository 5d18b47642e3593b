"""Plan and drive multi-agent workflows on top of the agent registry."""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from agentflow.core.models import (
    AgentLearningRecord,
    AgentResponse,
    AgentStatus,
    Coordination,
    MultiAgentWorkflow,
    OrchestrationRequest,
    OrchestrationResult,
    TaskAssignment,
    new_id,
    priority_to_number,
    utcnow,
)
from agentflow.logging import get_logger
from agentflow.orchestration.planning import build_workflow, select_strategy
from agentflow.orchestration.registry import AgentRegistry, default_agent_id
from agentflow.orchestration.routing import KeywordRequestClassifier, RequestClassifier
from agentflow.services.memory import MemoryRecorder

logger = get_logger(__name__)

FAILED_ORCHESTRATION_RECOMMENDATIONS = [
    "Review error logs",
    "Consider simpler workflow",
    "Check agent availability",
]
PARALLEL_FAILURE = "Parallel execution failed"


class Orchestrator:
    """Turn orchestration requests into executed multi-agent workflows.

    Each ``orchestrate`` call is independent: pick a strategy, expand it into
    a workflow, run the workflow's roles under its coordination mode, then
    derive learning records and recommendations. Finished results are kept
    for ``result_retention`` seconds and evicted by a periodic sweep.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        *,
        memory: Optional[MemoryRecorder] = None,
        classifier: Optional[RequestClassifier] = None,
        result_retention: float = 60 * 60,
        sweep_interval: float = 5 * 60,
        task_timeout: Optional[float] = None,
    ) -> None:
        self._registry = registry
        self._memory = memory if memory is not None else registry.memory
        self._classifier = classifier or KeywordRequestClassifier()
        self._retention = timedelta(seconds=result_retention)
        self._sweep_interval = sweep_interval
        self._task_timeout = task_timeout
        self._active_workflows: Dict[str, MultiAgentWorkflow] = {}
        self._results: Dict[str, OrchestrationResult] = {}
        self._runner: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def registry(self) -> AgentRegistry:
        return self._registry

    async def orchestrate(self, request: OrchestrationRequest) -> OrchestrationResult:
        """Run a request end to end. Never raises; failures come back as results."""
        orchestration_id = new_id()
        started = time.perf_counter()
        log = logger.bind(orchestration_id=orchestration_id, request_type=request.type)
        log.info("orchestration_started", description=request.description)

        try:
            strategy = select_strategy(request)
            workflow = build_workflow(request, strategy)
            self._active_workflows[orchestration_id] = workflow
            agent_ids = {role: self._resolve_agent_id(role) for role in workflow.agents}

            results = await self._execute_workflow(workflow, request, agent_ids)
            learning_records = self._collect_learning_records(workflow, results, agent_ids)
            recommendations = self._generate_recommendations(results)

            result = OrchestrationResult(
                id=orchestration_id,
                success=all(response.success for response in results.values()),
                assigned_agents=[agent_ids[role] for role in workflow.agents],
                workflow=workflow,
                results=results,
                duration=(time.perf_counter() - started) * 1000,
                learning_records=learning_records,
                recommendations=recommendations,
            )
            self._results[orchestration_id] = result
            log.info(
                "orchestration_completed",
                strategy=strategy,
                success=result.success,
                roles=list(results),
                duration_ms=round(result.duration, 2),
            )
            await self._record_outcome(request, result)
            return result
        except Exception:  # noqa: BLE001
            log.exception("orchestration_failed")
            return OrchestrationResult(
                id=orchestration_id,
                success=False,
                assigned_agents=[],
                workflow=None,
                results={},
                duration=(time.perf_counter() - started) * 1000,
                recommendations=list(FAILED_ORCHESTRATION_RECOMMENDATIONS),
            )
        finally:
            self._active_workflows.pop(orchestration_id, None)

    async def smart_route(
        self,
        description: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> OrchestrationResult:
        """Classify free text into a request and orchestrate it."""
        context = dict(context or {})
        try:
            classification = await self._classifier.classify(description, context)
        except Exception:  # noqa: BLE001
            logger.warning("classifier_failed_using_keywords", exc_info=True)
            classification = await KeywordRequestClassifier().classify(description, context)

        request = OrchestrationRequest(
            type=classification.request_type,
            description=description,
            priority=classification.priority,
            context=context,
            required_skills=classification.required_skills,
        )
        return await self.orchestrate(request)

    async def _execute_workflow(
        self,
        workflow: MultiAgentWorkflow,
        request: OrchestrationRequest,
        agent_ids: Dict[str, str],
    ) -> Dict[str, AgentResponse]:
        if workflow.coordination is Coordination.SEQUENTIAL:
            return await self._run_sequential(workflow, request, agent_ids)
        if workflow.coordination is Coordination.PARALLEL:
            return await self._run_parallel(workflow, request, agent_ids)
        return await self._run_hybrid(workflow, request, agent_ids)

    async def _run_sequential(
        self,
        workflow: MultiAgentWorkflow,
        request: OrchestrationRequest,
        agent_ids: Dict[str, str],
    ) -> Dict[str, AgentResponse]:
        results: Dict[str, AgentResponse] = {}
        previous: Optional[AgentResponse] = None
        for role in workflow.agents:
            task = self._create_task(request, agent_ids[role], previous)
            response = await self._registry.assign_task(task, timeout=self._task_timeout)
            results[role] = response
            previous = response
            if not response.success and workflow.error_handling == "escalate":
                logger.info("workflow_escalated", workflow=workflow.name, failed_role=role)
                break
        return results

    async def _run_parallel(
        self,
        workflow: MultiAgentWorkflow,
        request: OrchestrationRequest,
        agent_ids: Dict[str, str],
    ) -> Dict[str, AgentResponse]:
        tasks = [self._create_task(request, agent_ids[role]) for role in workflow.agents]
        outcomes = await asyncio.gather(
            *(self._registry.assign_task(task, timeout=self._task_timeout) for task in tasks),
            return_exceptions=True,
        )

        results: Dict[str, AgentResponse] = {}
        for role, outcome in zip(workflow.agents, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning("parallel_dispatch_failed", role=role, error=repr(outcome))
                results[role] = AgentResponse.failure(PARALLEL_FAILURE)
            else:
                results[role] = outcome
        return results

    async def _run_hybrid(
        self,
        workflow: MultiAgentWorkflow,
        request: OrchestrationRequest,
        agent_ids: Dict[str, str],
    ) -> Dict[str, AgentResponse]:
        entry = workflow.entry_point
        entry_task = self._create_task(request, agent_ids[entry])
        entry_response = await self._registry.assign_task(entry_task, timeout=self._task_timeout)
        results: Dict[str, AgentResponse] = {entry: entry_response}

        if entry_response.success:
            for role in entry_response.collaboration_needed:
                if role not in workflow.agents:
                    continue
                task = self._create_task(request, agent_ids[role], entry_response)
                results[role] = await self._registry.assign_task(task, timeout=self._task_timeout)
        return results

    def _resolve_agent_id(self, role: str) -> str:
        """Prefer an idle agent of the role; unknown roles keep the conventional id."""
        agents = self._registry.get_agents_by_role(role)
        for agent in agents:
            if agent.get_status() is AgentStatus.IDLE:
                return agent.agent_id
        return agents[0].agent_id if agents else default_agent_id(role)

    @staticmethod
    def _create_task(
        request: OrchestrationRequest,
        agent_id: str,
        previous: Optional[AgentResponse] = None,
    ) -> TaskAssignment:
        return TaskAssignment(
            task_id=f"{request.type}_{int(time.time() * 1000)}",
            assigned_agent=agent_id,
            priority=priority_to_number(request.priority),
            deadline=request.deadline,
            metadata={
                "type": request.type,
                "description": request.description,
                "context": request.context,
                "previous_result": previous.result if previous is not None else None,
                "required_skills": list(request.required_skills),
                "constraints": list(request.constraints),
            },
        )

    @staticmethod
    def _collect_learning_records(
        workflow: MultiAgentWorkflow,
        results: Dict[str, AgentResponse],
        agent_ids: Dict[str, str],
    ) -> List[AgentLearningRecord]:
        return [
            AgentLearningRecord(
                agent_id=agent_ids.get(role, default_agent_id(role)),
                scenario=f"{workflow.name}_execution",
                decision=f"Executed {role} role in {workflow.coordination.value} workflow",
                outcome="success" if response.success else "failure",
                feedback=response.error or "Task completed successfully",
                improvement_suggestions=list(response.suggestions),
            )
            for role, response in results.items()
        ]

    @staticmethod
    def _generate_recommendations(results: Dict[str, AgentResponse]) -> List[str]:
        recommendations: List[str] = []
        if results:
            success_rate = sum(1 for r in results.values() if r.success) / len(results)
            if success_rate < 0.5:
                recommendations += [
                    "Consider simplifying the workflow",
                    "Check agent load balancing",
                    "Review task decomposition strategy",
                ]
            elif success_rate > 0.8:
                recommendations += [
                    "Current workflow is effective",
                    "Consider applying this pattern to similar requests",
                ]

        for role, response in results.items():
            if not response.success:
                recommendations.append(f"Review {role} agent configuration")
            recommendations.extend(response.suggestions)

        return list(dict.fromkeys(recommendations))

    async def _record_outcome(self, request: OrchestrationRequest, result: OrchestrationResult) -> None:
        try:
            await self._memory.record_event(
                "ORCHESTRATION_COMPLETED",
                {
                    "orchestration_id": result.id,
                    "request_type": request.type,
                    "success": result.success,
                    "agents_used": len(result.assigned_agents),
                    "duration": result.duration,
                },
                f"Orchestration completed: {request.description}",
            )
            for record in result.learning_records:
                await self._memory.record_event(
                    "AGENT_LEARNING",
                    {
                        "agent_id": record.agent_id,
                        "scenario": record.scenario,
                        "outcome": record.outcome,
                        "feedback": record.feedback,
                        "improvement_suggestions": record.improvement_suggestions,
                    },
                    record.decision,
                )
        except Exception:  # noqa: BLE001
            logger.warning("memory_record_failed", orchestration_id=result.id, exc_info=True)

    def get_active_workflows(self) -> List[MultiAgentWorkflow]:
        return list(self._active_workflows.values())

    def get_workflow_result(self, orchestration_id: str) -> Optional[OrchestrationResult]:
        return self._results.get(orchestration_id)

    def sweep_results(self, now: Optional[datetime] = None) -> int:
        """Drop retained results older than the retention window."""
        cutoff = (now or utcnow()) - self._retention
        expired = [key for key, result in self._results.items() if result.completed_at < cutoff]
        for key in expired:
            del self._results[key]
        if expired:
            logger.debug("orchestration_results_evicted", count=len(expired))
        return len(expired)

    def get_system_metrics(self) -> Dict[str, Any]:
        return {
            **self._registry.get_system_metrics(),
            "active_workflows": len(self._active_workflows),
            "completed_workflows": len(self._results),
            "orchestrator": "ready",
        }

    async def start(self) -> None:
        """Start the periodic retention sweep."""
        if self._runner is not None:
            return
        self._stop_event.clear()
        self._runner = asyncio.create_task(self._run_sweeps())

    async def stop(self) -> None:
        if self._runner is None:
            return
        self._stop_event.set()
        await self._runner
        self._runner = None

    async def _run_sweeps(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._sweep_interval)
            except asyncio.TimeoutError:
                self.sweep_results()
