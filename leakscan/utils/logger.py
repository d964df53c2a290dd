"""Structured logging utilities for leakscan.

This module provides thread-safe structured logging using structlog.
Logs are written to stderr so they never interleave with findings printed on stdout.
Every log line emitted while a worker scans a file carries that file's path.
"""

import logging
import sys
import time
from contextvars import ContextVar
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

# Context variable for per-file tracking inside worker threads
file_path_var: ContextVar[Optional[str]] = ContextVar("file_path", default=None)


def add_file_path(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add file_path to log context if a worker is scanning a file."""
    file_path = file_path_var.get()
    if file_path and "file_path" not in event_dict:
        event_dict["file_path"] = file_path
    return event_dict


def add_timestamp(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add epoch timestamp to log entries."""
    event_dict["timestamp"] = time.time()
    return event_dict


def stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    """Build a PrintLogger on whatever ``sys.stderr`` is right now.

    Loggers are not cached, so a stream replaced after ``configure_logging()``
    is never written to again.
    """
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    log_level: str = "WARNING",
    json_output: bool = False
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, output JSON format. If False, use console format.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_file_path,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.extend([
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ])

    level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = "leakscan") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (typically module name)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


class PerformanceLogger:
    """Context manager for tracking operation performance."""

    def __init__(self, operation: str, logger: Optional[structlog.stdlib.BoundLogger] = None,
                 slow_ms: float = 5000.0):
        """Initialize performance logger.

        Args:
            operation: Name of the operation being timed
            logger: Logger instance to use (creates new if None)
            slow_ms: Durations above this are logged at WARNING instead of DEBUG
        """
        self.operation = operation
        self.logger = logger or get_logger()
        self.slow_ms = slow_ms
        self.start_time: float = 0
        self.end_time: float = 0

    def __enter__(self) -> "PerformanceLogger":
        """Start timing."""
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Stop timing and log performance."""
        self.end_time = time.perf_counter()
        duration_ms = (self.end_time - self.start_time) * 1000

        if exc_type is not None:
            self.logger.error(
                f"{self.operation} failed",
                operation=self.operation,
                duration_ms=duration_ms,
                error=str(exc_val),
            )
        else:
            log_method = self.logger.warning if duration_ms > self.slow_ms else self.logger.debug
            log_method(
                f"{self.operation} completed",
                operation=self.operation,
                duration_ms=duration_ms,
            )

    @property
    def duration_ms(self) -> float:
        """Get duration in milliseconds."""
        if self.end_time == 0:
            return (time.perf_counter() - self.start_time) * 1000
        return (self.end_time - self.start_time) * 1000


def set_file_path(file_path: str) -> None:
    """Set the file being scanned in context for all subsequent logs.

    Args:
        file_path: Path of the file the current worker is scanning
    """
    file_path_var.set(file_path)


def clear_file_path() -> None:
    """Clear file path from context."""
    file_path_var.set(None)


# Initialize logging with sensible defaults
# This will be reconfigured by run.py from the CLI flags
configure_logging()
