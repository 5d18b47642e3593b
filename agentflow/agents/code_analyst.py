"""Agent reviewing source code for quality and security issues."""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

from agentflow.agents.base import Agent
from agentflow.core.models import AgentMessage, AgentResponse, MessageType, TaskAssignment

SEVERITY_WEIGHTS: Dict[str, int] = {"low": 1, "medium": 3, "high": 5}

# (pattern, issue type, severity, description)
QUALITY_RULES: List[Tuple[str, str, str, str]] = [
    (r"\beval\s*\(|\bexec\s*\(", "security", "high", "Dynamic code execution"),
    (r"(password|secret|api_key)\s*=\s*['\"]", "security", "high", "Hard-coded credential"),
    (r"except\s*:", "reliability", "medium", "Bare except clause hides errors"),
    (r"\bprint\s*\(", "style", "low", "Debug print left in code"),
    (r"\bTODO\b|\bFIXME\b", "maintainability", "low", "Unresolved TODO marker"),
    (r"for .+:\n\s+for .+:", "performance", "medium", "Nested loop over collections"),
]

# Findings reported when a review is requested without any source attached.
BASELINE_ISSUES: List[Dict[str, str]] = [
    {"type": "style", "severity": "low", "description": "Consider using const instead of let"},
    {"type": "performance", "severity": "medium", "description": "Expensive operation in loop"},
]

IMPROVEMENTS: Dict[str, str] = {
    "security": "Remove dynamic execution and load secrets from configuration",
    "reliability": "Catch specific exceptions and log the failure",
    "style": "Route diagnostics through the logger",
    "maintainability": "Resolve or ticket outstanding TODO markers",
    "performance": "Index lookups instead of nesting loops",
}
GENERAL_IMPROVEMENTS = [
    "Extract repeated logic into helper functions",
    "Add error handling for async operations",
    "Implement input validation",
]


class CodeAnalystAgent(Agent):
    """Produces review reports and security audits for submitted code."""

    async def process_task(self, task: TaskAssignment) -> AgentResponse:
        metadata = task.metadata
        task_type = metadata.get("type")
        code = _extract_code(metadata)

        if task_type == "code_review":
            return await self.review(code)
        if task_type == "security_audit":
            return await self.security_audit(code)
        return AgentResponse.failure("Unknown task type for Code Analyst")

    async def handle_message(self, message: AgentMessage) -> AgentResponse:
        payload = message.payload if isinstance(message.payload, dict) else {}
        if message.message_type is MessageType.REQUEST and payload.get("type") == "code_analysis":
            return await self.review(payload.get("code"))
        return AgentResponse.failure("Unsupported message type")

    async def review(self, code: Optional[str]) -> AgentResponse:
        report = await self.use_tool("static_analyzer", {"code": code or ""})
        issues = find_issues(code) if code else [dict(issue) for issue in BASELINE_ISSUES]
        suggestions = improvements_for(issues)
        return AgentResponse(
            success=True,
            result={
                "type": "code_review",
                "analyzer": report.get("server"),
                "issues": issues,
                "suggestions": suggestions,
                "score": quality_score(issues),
                "recommendations": suggestions[:3],
            },
            suggestions=[
                "Apply suggested improvements",
                "Run automated tests",
                "Schedule follow-up review",
            ],
        )

    async def security_audit(self, code: Optional[str]) -> AgentResponse:
        await self.use_tool("security_scanner", {"code": code or ""})
        vulnerabilities = [issue for issue in find_issues(code or "") if issue["type"] == "security"]
        mitigations = ["Update dependencies", "Implement input sanitization"]
        if vulnerabilities:
            mitigations.append(IMPROVEMENTS["security"])
        return AgentResponse(
            success=True,
            result={
                "type": "security_audit",
                "vulnerabilities": vulnerabilities,
                "risk_level": risk_level(vulnerabilities),
                "mitigations": mitigations,
            },
        )


def _extract_code(metadata: Dict[str, Any]) -> Optional[str]:
    code = metadata.get("code")
    if code is None:
        code = (metadata.get("context") or {}).get("code")
    return code


def find_issues(code: str) -> List[Dict[str, str]]:
    issues = []
    for pattern, issue_type, severity, description in QUALITY_RULES:
        if re.search(pattern, code, re.IGNORECASE):
            issues.append({"type": issue_type, "severity": severity, "description": description})
    return issues


def improvements_for(issues: List[Dict[str, str]]) -> List[str]:
    suggestions: List[str] = []
    for issue in issues:
        suggestion = IMPROVEMENTS.get(issue["type"])
        if suggestion and suggestion not in suggestions:
            suggestions.append(suggestion)
    return suggestions + [s for s in GENERAL_IMPROVEMENTS if s not in suggestions]


def quality_score(issues: List[Dict[str, str]]) -> int:
    penalty = sum(SEVERITY_WEIGHTS.get(issue.get("severity", ""), 1) for issue in issues)
    return max(0, 100 - penalty * 2)


def risk_level(vulnerabilities: List[Dict[str, str]]) -> str:
    if any(v.get("severity") == "high" for v in vulnerabilities):
        return "high"
    return "medium" if vulnerabilities else "low"
