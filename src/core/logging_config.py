"""Structured logging configuration.

This module configures structlog once for JSON event output.
Store handles bind their table identity onto returned loggers.
"""

from __future__ import annotations

from typing import Any

import structlog

_CONFIGURED = False


def get_logger(name: str, **context: object) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.
        context: Fields bound onto every event from this logger.

    Returns:
        A structlog logger with structured output.
    """
    _configure()
    logger = structlog.get_logger(name)
    if context:
        return logger.bind(**context)
    return logger


def _configure() -> None:
    global _CONFIGURED
    if _CONFIGURED:
        return
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True
