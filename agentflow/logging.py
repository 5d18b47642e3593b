"""Structured logging configuration.

Uses structlog with a console renderer during development and JSON lines
in production.
"""
from __future__ import annotations

import logging
import sys
from typing import Any, List, Optional

import structlog


def configure_logging(json_format: bool = False, level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_format: If True, emit JSON lines; otherwise use the console renderer.
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually bound to ``__name__``."""
    return structlog.get_logger(name)