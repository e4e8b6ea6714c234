"""
Structured logging for aakit.

Only the ``aakit`` logger hierarchy is configured, so an embedding
application keeps control of its own root handlers. Output is JSON lines
unless the level is DEBUG, where the colored console renderer is used.
"""

import logging
import re
import sys
from typing import IO, Any, Optional

import structlog

from .config import settings

LOGGER_NAME = "aakit"

_SECRET_QUERY = re.compile(r"((?:api_?key|apikey)=)[^&\s]+", re.IGNORECASE)


def redact_secrets(_logger: Any, _method: str, event_dict: dict) -> dict:
    """Mask API keys carried in bundler/paymaster URLs."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "=" in value:
            event_dict[key] = _SECRET_QUERY.sub(r"\1***", value)
    return event_dict


def setup_logging(log_level: Optional[str] = None, stream: Optional[IO[str]] = None) -> logging.Logger:
    """Configure structlog and attach a handler to the ``aakit`` logger.

    Args:
        log_level: Override log level (default: from settings.log_level)
        stream: Destination for log lines (default: stdout)

    Returns:
        The configured package logger.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    if level == logging.DEBUG:
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # aakit modules log through logging.getLogger(__name__); format those records too
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    for name in ("httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
