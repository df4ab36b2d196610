"""structlog setup for the catalog service and the cache client."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from memecached.core.config import settings

# Third-party loggers that only matter when something goes wrong
QUIET_LOGGERS = ("sqlalchemy.engine", "botocore", "boto3", "s3transfer", "httpx", "httpcore")

# Cache reconciliation and mutation logs follow the configured level
CATALOG_LOGGERS = ("memecached", "memecached.client")


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger.

    Debug mode renders to the console, otherwise one JSON object per line.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", *CATALOG_LOGGERS):
        logging.getLogger(name).setLevel(log_level)

    # SQL echo is controlled by the engine
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, named after the calling module by default."""
    return structlog.get_logger(name)
