"""
Structured logging for the tracer service.

Provides:
- setup_logging(): configure stdlib logging + structlog from LoggingSettings
- get_logger(): get a bound structlog logger
- should_sample(): probabilistic sampling for high-frequency events

Production uses JSON output, development a pretty console renderer.
Tracer code never passes raw IPs or user agents to a logger.
"""

from __future__ import annotations

import logging
import random
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import LoggingSettings

# Sampling rates for high-frequency events; overwritten by setup_logging()
SAMPLING_RATES: dict[str, float] = {
    "tracer_redirect": 0.05,
    "tracer_analytics": 0.20,
}

# Sensitive fields to redact from logs
REDACTED_FIELDS = {
    "password",
    "api_key",
    "authorization",
    "cookie",
    "secret",
    "mongodb_uri",
    "redis_uri",
}

# Public path segments, safe to log even though the key contains "token"
_NEVER_REDACTED = {"level", "event", "timestamp", "logger", "tracer_token"}


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO format timestamp to event dict."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_sensitive_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Redact sensitive fields from logs."""
    for key in list(event_dict.keys()):
        if key in _NEVER_REDACTED:
            continue
        lowered = key.lower()
        if lowered in REDACTED_FIELDS or any(
            sensitive in lowered for sensitive in ("password", "secret", "token")
        ):
            event_dict[key] = "***REDACTED***"
    return event_dict


def configure_structlog(log_format: str = "console") -> None:
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            pad_event=15,
            sort_keys=False,
        )

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_stdlib_logging(log_level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Silence pymongo debug logs (connection pool, server monitoring, etc.)
    for noisy in ("pymongo", "pymongo.connection", "pymongo.topology", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_logging(settings: Optional["LoggingSettings"] = None) -> None:
    """Initialise logging. Called once from create_app()."""
    log_level = settings.log_level if settings else "INFO"
    log_format = settings.log_format if settings else "console"

    if settings is not None:
        SAMPLING_RATES["tracer_redirect"] = settings.sample_rate_redirect
        SAMPLING_RATES["tracer_analytics"] = settings.sample_rate_analytics

    configure_stdlib_logging(log_level)
    configure_structlog(log_format)

    get_logger(__name__).info(
        "logging_initialized", log_level=log_level, log_format=log_format
    )


def get_logger(name: str) -> BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("tracer_link_created", job_id="job-1")
    """
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """Return True if an event of *event_type* should be logged.

    Events without a configured rate are always logged.
    """
    sample_rate = SAMPLING_RATES.get(event_type, 1.0)

    if sample_rate >= 1.0:
        return True
    if sample_rate <= 0.0:
        return False

    return random.random() < sample_rate


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """Bind context to a logger for all subsequent log calls."""
    return logger.bind(**context)
