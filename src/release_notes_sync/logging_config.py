"""Structured logging configuration.

Sets up structlog so every sync event carries its context as keyword
fields instead of being baked into a message string:

  {"event": "release_fetch_failed", "repo": "cloudfoundry/bosh", "error": "..."}

Logs are written to stderr; stdout is reserved for the JSON sync report.

Usage:
    from release_notes_sync.logging_config import setup_logging, get_logger

    setup_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("fetching_releases", repo="cloudfoundry/bosh")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog


def _resolve_level(log_level: str | None) -> int:
    name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structured logging for the process.

    In development: colorized console output.
    In production: one JSON object per line, for log collectors.

    Args:
        environment: "development" or "production". Reads from
                     ENVIRONMENT env var if not provided.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Reads from LOG_LEVEL env var if not provided.

    Raises:
        ValueError: If the log level name is unknown
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level = _resolve_level(log_level)

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if env == "production"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx reports each request through the standard library logger
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        A structlog bound logger
    """
    return structlog.get_logger(name)
