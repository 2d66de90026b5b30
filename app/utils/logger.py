"""Structured logging utilities for AuthentiCheck.

Async-safe structured logging using structlog. Every log line emitted while a
scan is in progress carries that scan's ``scan_id`` (bound through a
ContextVar), so a scan can be followed from upload to provider response.

Never log API keys or the submitted content itself — log sizes and types only.
"""

import logging
import sys
import time
from contextvars import ContextVar
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

# Context variable for scan tracking
scan_id_var: ContextVar[Optional[str]] = ContextVar("scan_id", default=None)


def add_scan_id(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add scan_id to log context if a scan is in progress."""
    scan_id = scan_id_var.get()
    if scan_id and "scan_id" not in event_dict:
        event_dict["scan_id"] = scan_id
    return event_dict


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = time.time()
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format. If False, use console format.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_scan_id,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "authenticheck") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


class PerformanceLogger:
    """Context manager that times an outbound call or a sampling pass.

    Logs at DEBUG on success, WARNING when the operation took longer than
    ``slow_ms``, and ERROR (with the exception text) on failure. The exception
    is never swallowed.

    Usage::

        with PerformanceLogger("edenai.text", logger, slow_ms=10_000) as perf:
            response = await client.post(...)
        perf.duration_ms
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        slow_ms: float = 5_000.0,
    ):
        self.operation = operation
        self.logger = logger or get_logger()
        self.slow_ms = slow_ms
        self.start_time: float = 0
        self.end_time: float = 0

    def __enter__(self) -> "PerformanceLogger":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.end_time = time.perf_counter()
        duration_ms = (self.end_time - self.start_time) * 1000

        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed",
                operation=self.operation,
                duration_ms=round(duration_ms, 1),
                error_type=exc_type.__name__,
                error=str(exc_val),
            )
        else:
            log_method = self.logger.warning if duration_ms > self.slow_ms else self.logger.debug
            log_method(
                f"{self.operation} completed",
                operation=self.operation,
                duration_ms=round(duration_ms, 1),
            )

    @property
    def duration_ms(self) -> float:
        if self.end_time == 0:
            return (time.perf_counter() - self.start_time) * 1000
        return (self.end_time - self.start_time) * 1000


def set_scan_id(scan_id: str) -> None:
    """Set scan ID in context for all subsequent logs."""
    scan_id_var.set(scan_id)


def clear_scan_id() -> None:
    scan_id_var.set(None)


# Initialize logging with sensible defaults
# This will be reconfigured by main.py based on environment
configure_logging()
