"""
Structured logging setup with structlog
"""
import logging
import sys
from typing import Any

import structlog

from billing.core.enums import LogFormat


def setup_logging(log_level: str = "INFO", log_format: str = LogFormat.JSON.value) -> None:
    """
    Configure structured logging

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for production, "console" for readable local output
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == LogFormat.CONSOLE.value:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a logger for a module

    Args:
        name: Module name

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name)
