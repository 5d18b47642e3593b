"""Application runtime composition helpers."""
from __future__ import annotations

from functools import lru_cache

from agentflow.config import config
from agentflow.logging import configure_logging, get_logger
from agentflow.orchestration.orchestrator import Orchestrator
from agentflow.orchestration.registry import AgentRegistry
from agentflow.orchestration.routing import (
    KeywordRequestClassifier,
    LLMRequestClassifier,
    RequestClassifier,
)
from agentflow.services.llm_pool import LLMPool
from agentflow.services.memory import DecayConfig, MemoryStore

logger = get_logger(__name__)


@lru_cache
def get_memory() -> MemoryStore:
    settings = config.orchestration
    return MemoryStore(
        DecayConfig(
            interval=settings.memory_decay_interval,
            max_short_term=settings.memory_max_short_term,
            max_long_term=settings.memory_max_long_term,
        )
    )


@lru_cache
def get_llm_pool() -> LLMPool:
    pool = LLMPool()

    # Register Azure OpenAI if configured
    if config.azure_openai:
        pool.register_azure_openai(config.azure_openai.deployment_name, config.azure_openai)
        pool.register_azure_openai(config.orchestration.classifier_model, config.azure_openai)

    return pool


@lru_cache
def get_classifier() -> RequestClassifier:
    settings = config.orchestration
    pool = get_llm_pool()
    if settings.classifier == "llm" and pool.has_model(settings.classifier_model):
        return LLMRequestClassifier(pool, model_name=settings.classifier_model)
    if settings.classifier == "llm":
        logger.warning("llm_classifier_unavailable", model=settings.classifier_model)
    return KeywordRequestClassifier()


@lru_cache
def get_registry() -> AgentRegistry:
    return AgentRegistry(
        memory=get_memory(),
        drain_interval=config.orchestration.message_drain_interval,
    )


@lru_cache
def get_orchestrator() -> Orchestrator:
    settings = config.orchestration
    return Orchestrator(
        get_registry(),
        classifier=get_classifier(),
        result_retention=settings.result_retention,
        sweep_interval=settings.retention_sweep_interval,
        task_timeout=settings.task_timeout,
    )


async def start_runtime() -> Orchestrator:
    """Configure logging, create the agent roster and start background loops."""
    configure_logging(json_format=config.json_logs, level=config.log_level)
    orchestrator = get_orchestrator()
    await get_memory().start()
    await orchestrator.registry.initialize()
    await orchestrator.start()
    logger.info("runtime_started", environment=config.environment)
    return orchestrator


async def stop_runtime() -> None:
    orchestrator = get_orchestrator()
    await orchestrator.stop()
    await orchestrator.registry.shutdown()
    await get_memory().stop()
