"""Classify free-text requests into orchestration type, priority and skills."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from agentflow.core.models import PRIORITY_WEIGHTS, RequestType
from agentflow.logging import get_logger
from agentflow.services.llm_pool import LLMPool

logger = get_logger(__name__)

# Checked in insertion order; the first type with a matching keyword wins.
REQUEST_TYPE_KEYWORDS: Dict[str, List[str]] = {
    RequestType.CODE_REVIEW.value: ["review", "analyze", "audit", "check code", "security"],
    RequestType.FEATURE_DEVELOPMENT.value: ["feature", "develop", "implement", "build", "create"],
    RequestType.SYSTEM_OPTIMIZATION.value: ["optimize", "performance", "speed up", "efficiency", "memory"],
    RequestType.TASK_COMPLETION.value: ["complete", "finish", "task", "work on", "handle"],
}
DEFAULT_REQUEST_TYPE = RequestType.TASK_COMPLETION.value

PRIORITY_KEYWORDS: List[tuple] = [
    ("critical", ["urgent", "critical", "asap"]),
    ("high", ["important", "priority"]),
    ("low", ["when convenient", "eventually"]),
]
DEFAULT_PRIORITY = "medium"

SKILL_KEYWORDS: Dict[str, List[str]] = {
    "javascript": ["javascript", "js", "react", "node"],
    "python": ["python", "py", "django", "flask"],
    "database": ["database", "sql", "postgres", "mysql"],
    "security": ["security", "auth", "encryption", "vulnerability"],
    "performance": ["performance", "optimization", "speed", "memory"],
    "ui_design": ["ui", "design", "interface", "user experience"],
}


@dataclass(slots=True)
class Classification:
    request_type: str
    priority: str
    required_skills: List[str] = field(default_factory=list)


class RequestClassifier(Protocol):
    async def classify(self, description: str, context: Dict[str, Any]) -> Classification: ...


def analyze_request_type(description: str) -> str:
    lowered = description.lower()
    for request_type, keywords in REQUEST_TYPE_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return request_type
    return DEFAULT_REQUEST_TYPE


def determine_priority(description: str) -> str:
    lowered = description.lower()
    for priority, keywords in PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return priority
    return DEFAULT_PRIORITY


def extract_required_skills(description: str) -> List[str]:
    lowered = description.lower()
    return [
        skill
        for skill, keywords in SKILL_KEYWORDS.items()
        if any(keyword in lowered for keyword in keywords)
    ]


class KeywordRequestClassifier:
    """Substring keyword heuristics."""

    async def classify(self, description: str, context: Dict[str, Any]) -> Classification:
        return Classification(
            request_type=analyze_request_type(description),
            priority=determine_priority(description),
            required_skills=extract_required_skills(description),
        )


class LLMRequestClassifier:
    """Ask a chat model for the classification, falling back to keywords."""

    SYSTEM_PROMPT = """You route work requests inside a multi-agent system.
Classify the user's request and respond with JSON only:
{
  "type": "code_review" | "feature_development" | "system_optimization" | "task_completion",
  "priority": "low" | "medium" | "high" | "critical",
  "skills": ["javascript" | "python" | "database" | "security" | "performance" | "ui_design", ...]
}"""

    def __init__(
        self,
        llm_pool: LLMPool,
        model_name: str = "gpt-4",
        fallback: Optional[RequestClassifier] = None,
    ) -> None:
        self._llm_pool = llm_pool
        self.model_name = model_name
        self._fallback = fallback or KeywordRequestClassifier()

    async def classify(self, description: str, context: Dict[str, Any]) -> Classification:
        async with self._llm_pool.acquire(self.model_name) as client:
            response = await client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": description},
                ],
                temperature=0.0,
            )
        content = response.choices[0].message.content or ""

        try:
            # Extract JSON from markdown code blocks if present
            if "```json" in content:
                content = content.split("```json")[1].split("```")[0].strip()
            elif "```" in content:
                content = content.split("```")[1].split("```")[0].strip()
            data = json.loads(content)
            return self._validate(data)
        except (json.JSONDecodeError, IndexError, KeyError, TypeError, ValueError):
            logger.info("llm_classification_unusable", model=self.model_name)
            return await self._fallback.classify(description, context)

    @staticmethod
    def _validate(data: Dict[str, Any]) -> Classification:
        request_type = data["type"]
        if request_type not in REQUEST_TYPE_KEYWORDS:
            raise ValueError(f"Unknown request type '{request_type}'")
        priority = data.get("priority", DEFAULT_PRIORITY)
        if priority not in PRIORITY_WEIGHTS:
            raise ValueError(f"Unknown priority '{priority}'")
        skills = [s for s in data.get("skills", []) if s in SKILL_KEYWORDS]
        return Classification(request_type=request_type, priority=priority, required_skills=skills)
