"""Agent assessing security threats in code, logs and upstream findings."""
from __future__ import annotations

from typing import Any, Dict, List

from agentflow.agents.base import Agent
from agentflow.agents.code_analyst import find_issues, risk_level
from agentflow.core.models import AgentMessage, AgentResponse, MessageType, TaskAssignment

SUSPICIOUS_LOG_MARKERS = ("failed login", "unauthorized", "permission denied", "sql syntax")


class SecurityAuditorAgent(Agent):
    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        context = task.metadata.get("context") or {}
        threats = self.collect_threats(context, task.metadata.get("previous_result"))
        await self.use_tool("security_monitor", {"threats": len(threats)})

        level = risk_level(threats)
        response = AgentResponse(
            success=True,
            result={
                "type": "threat_report",
                "threats": threats,
                "threat_level": level,
            },
        )
        if level == "high":
            response.suggestions = ["Block release until high severity threats are resolved"]
        return response

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        if message.message_type is MessageType.NOTIFICATION:
            return AgentResponse(success=True, result="Security notification logged")
        return AgentResponse.failure("Unsupported message type")

    @staticmethod
    def collect_threats(context: Dict[str, Any], upstream: Any) -> List[Dict[str, str]]:
        threats = [i for i in find_issues(context.get("code") or "") if i["type"] == "security"]

        for line in context.get("logs") or []:
            lowered = str(line).lower()
            if any(marker in lowered for marker in SUSPICIOUS_LOG_MARKERS):
                threats.append({"type": "intrusion", "severity": "medium", "description": str(line)})

        if isinstance(upstream, dict):
            for finding in upstream.get("vulnerabilities") or []:
                if finding not in threats:
                    threats.append(finding)
            for issue in upstream.get("issues") or []:
                if issue.get("type") == "security" and issue not in threats:
                    threats.append(issue)
        return threats
