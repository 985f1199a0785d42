"""Structured logging with correlation IDs.

This module configures structlog for console output during development and
JSON output elsewhere, with correlation ID tracking for request tracing.
"""

import logging
import sys
import uuid
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor

from practicebase.core.config import Settings, get_settings


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add a correlation ID to the log entry when none is bound.

    Args:
        logger: Logger instance (unused).
        method_name: Method name (unused).
        event_dict: Event dictionary to modify.

    Returns:
        EventDict: Modified event dictionary with correlation_id.
    """
    if "correlation_id" not in event_dict:
        event_dict["correlation_id"] = f"cid_{uuid.uuid4().hex[:12]}"
    return event_dict


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log entry."""
    event_dict["logger"] = logger.name if hasattr(logger, "name") else "practicebase"
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename 'event' field to 'message'."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structured logging for the application.

    Args:
        settings: Optional settings instance. If not provided, will load from environment.
    """
    if settings is None:
        settings = get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_correlation_id,
    ]

    if settings.log_format == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(
            colors=settings.is_development,
            exception_formatter=structlog.dev.plain_traceback,
        )
    else:
        shared_processors.append(rename_message_field)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=_log_stream(settings)),
        cache_logger_on_first_use=False,
    )

    # Standard logging for third-party libraries and stdlib loggers
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logging.getLogger(logger_name).setLevel(getattr(logging, settings.log_level))


def _log_stream(settings: Settings) -> TextIO:
    if settings.log_file:
        return open(settings.log_file, "a", encoding="utf-8")
    return sys.stdout


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Optional logger name. If not provided, uses 'practicebase'.

    Returns:
        BoundLogger: Configured structured logger instance.
    """
    return structlog.get_logger(name or "practicebase")


def bind_correlation_id(correlation_id: str) -> None:
    """Bind a correlation ID to the current logging context.

    Called by the request middleware with the ID from the request headers
    or a freshly generated one.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_context() -> None:
    """Clear all context variables from the current logging context."""
    structlog.contextvars.clear_contextvars()
