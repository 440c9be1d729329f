"""Structured logging configuration with structlog.

Production output is one JSON object per line; development output is
a coloured console rendering. The level comes from LOG_LEVEL.

Usage:
    from ballot.observability import configure_structlog

    configure_structlog(environment="production")

    import structlog
    log = structlog.get_logger(__name__)
    log.info("vote_cast", voter="0xabc", proposal_id=0)
"""

import logging
import os
import sys
from typing import TextIO

import structlog
from structlog.typing import Processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_structlog(
    environment: str = "production", stream: TextIO | None = None,
) -> None:
    """Configure structlog for the process.

    Args:
        environment: 'production' for JSON output, anything else for console.
        stream: Output stream (default: stderr, keeping stdout for command output).
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )
