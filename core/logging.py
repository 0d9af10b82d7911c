"""
Structured logging configuration using structlog.

Quote calculations log key-value events (item ids, country codes, totals
as strings) so that a single calculation can be followed across the
conversion, classification, tax and aggregation steps.
"""

from __future__ import annotations

import logging
import sys
from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor, WrappedLogger


def stringify_decimals(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Render Decimal values as plain strings so amounts keep their exact cents."""
    return {
        key: str(value) if isinstance(value, Decimal) else value
        for key, value in event_dict.items()
    }


def configure_logging(
    *,
    json_format: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_format: Use JSON format (for production) instead of console format.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        stringify_decimals,
    ]

    if json_format:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    level = logging.getLevelName(log_level.upper())
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Optional logger name (typically __name__).

    Returns:
        A bound structlog logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: object) -> None:
    """Bind context variables included in every subsequent log line."""
    structlog.contextvars.bind_contextvars(**kwargs)


def bind_quote_context(request_id: str, origin: str, destination: str) -> None:
    """
    Bind the identifiers of one quote calculation.

    Args:
        request_id: Caller-supplied or generated request identifier.
        origin: Origin country code.
        destination: Destination country code.
    """
    bind_context(quote_request_id=request_id, origin=origin, destination=destination)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
