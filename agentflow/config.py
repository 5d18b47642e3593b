"""Configuration management for the orchestration engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AzureOpenAIConfig:
    """Azure OpenAI service configuration."""

    api_key: str
    endpoint: str
    api_version: str = "2024-02-15-preview"
    deployment_name: str = "gpt-4"
    max_concurrent: int = 50


@dataclass(frozen=True)
class OrchestrationConfig:
    """Timing and sizing knobs for the registry, orchestrator and memory store."""

    message_drain_interval: float = 1.0
    result_retention: float = 60 * 60
    retention_sweep_interval: float = 5 * 60
    # None keeps role calls unbounded.
    task_timeout: Optional[float] = None
    classifier: str = "keyword"
    classifier_model: str = "gpt-4"
    memory_decay_interval: float = 30 * 60
    memory_max_short_term: int = 1_000
    memory_max_long_term: int = 10_000


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables."""

    azure_openai: Optional[AzureOpenAIConfig] = None
    orchestration: OrchestrationConfig = OrchestrationConfig()
    environment: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""
        azure_key = os.getenv("AZURE_OPENAI_KEY")
        azure_endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")

        azure_config = None
        if azure_key and azure_endpoint:
            azure_config = AzureOpenAIConfig(
                api_key=azure_key,
                endpoint=azure_endpoint,
                api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-15-preview"),
                deployment_name=os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4"),
                max_concurrent=int(os.getenv("AZURE_OPENAI_MAX_CONCURRENT", "50")),
            )

        orchestration = OrchestrationConfig(
            message_drain_interval=_env_float("AGENTFLOW_MESSAGE_DRAIN_INTERVAL", 1.0),
            result_retention=_env_float("AGENTFLOW_RESULT_RETENTION", 60 * 60),
            retention_sweep_interval=_env_float("AGENTFLOW_RETENTION_SWEEP_INTERVAL", 5 * 60),
            task_timeout=_env_float("AGENTFLOW_TASK_TIMEOUT", None),
            classifier=os.getenv("AGENTFLOW_CLASSIFIER", "keyword"),
            classifier_model=os.getenv("AGENTFLOW_CLASSIFIER_MODEL", "gpt-4"),
            memory_decay_interval=_env_float("AGENTFLOW_MEMORY_DECAY_INTERVAL", 30 * 60),
            memory_max_short_term=int(os.getenv("AGENTFLOW_MEMORY_MAX_SHORT_TERM", "1000")),
            memory_max_long_term=int(os.getenv("AGENTFLOW_MEMORY_MAX_LONG_TERM", "10000")),
        )

        environment = os.getenv("ENVIRONMENT", "development")
        return cls(
            azure_openai=azure_config,
            orchestration=orchestration,
            environment=environment,
            log_level=os.getenv("AGENTFLOW_LOG_LEVEL", "INFO"),
            json_logs=_env_bool("AGENTFLOW_JSON_LOGS", environment == "production"),
            host=os.getenv("AGENTFLOW_HOST", "127.0.0.1"),
            port=int(os.getenv("AGENTFLOW_PORT", "8000")),
        )


# Global config instance
config = Config.from_env()
