"""
Structured Logging Module

This module provides structured JSON logging with per-invocation context.
Every tool call runs inside invocation_context(), so each log line emitted
while a script is rendered, executed and parsed carries the invocation id
and tool name without threading them through every call.

Pattern: Structured logging for observability
Pattern: Singleton configuration (configure once at startup)
"""

import contextvars
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional, TextIO

import structlog
from structlog.types import EventDict, Processor


_configured: bool = False


# =============================================================================
# Invocation Context
# =============================================================================

_invocation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "invocation_id", default=None
)
_tool_name_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "tool_name", default=None
)


def get_invocation_id() -> Optional[str]:
    """
    Get the id of the tool invocation running in the current context.

    Returns:
        Invocation ID if set, None otherwise
    """
    return _invocation_id_var.get()


def get_tool_name() -> Optional[str]:
    """Get the name of the tool being invoked in the current context."""
    return _tool_name_var.get()


@contextmanager
def invocation_context(
    invocation_id: str, tool_name: Optional[str] = None
) -> Generator[None, None, None]:
    """
    Context manager binding an invocation id (and tool name) to log lines.

    Args:
        invocation_id: Unique identifier for the tool call
        tool_name: Name of the tool being invoked

    Example:
        >>> with invocation_context("inv-12345", "create_ticket"):
        ...     logger.info("spawning process")
    """
    id_token = _invocation_id_var.set(invocation_id)
    name_token = _tool_name_var.set(tool_name)
    try:
        yield
    finally:
        _tool_name_var.reset(name_token)
        _invocation_id_var.reset(id_token)


# =============================================================================
# Custom Processors
# =============================================================================


def add_invocation_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add invocation id and tool name to the log event if set."""
    invocation_id = get_invocation_id()
    if invocation_id is not None:
        event_dict.setdefault("invocation_id", invocation_id)
    tool_name = get_tool_name()
    if tool_name is not None:
        event_dict.setdefault("tool", tool_name)
    return event_dict


def add_timestamp(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def rename_level(
    logger: logging.Logger, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename log_level to level for cleaner output."""
    if "log_level" in event_dict:
        event_dict["level"] = event_dict.pop("log_level")
    return event_dict


# =============================================================================
# Singleton Configuration
# =============================================================================


def configure_logging(
    level: str = "INFO",
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog for the application.

    This should be called once at application startup. Subsequent calls
    are no-ops unless force=True.

    Log output goes to stderr by default so it never mixes with anything
    a host process writes to stdout.

    Args:
        level: Default log level (DEBUG, INFO, WARNING, ERROR)
        stream: Output stream (default: sys.stderr)
        force: Force reconfiguration (for testing only)
    """
    global _configured

    if _configured and not force:
        return

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        add_timestamp,
        add_invocation_context,
        rename_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """
    Reset logging configuration state.

    WARNING: This should only be used in tests.
    """
    global _configured
    _configured = False


def get_logger(
    name: str,
    stream: Optional[TextIO] = None,
    level: str = "INFO",
) -> structlog.BoundLogger:
    """
    Get a configured structured logger.

    Args:
        name: Logger name (typically module name)
        stream: Output stream - used for initial config only
        level: Log level - used for initial config only

    Returns:
        Configured structlog BoundLogger

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("tool finished", exit_code=0)
    """
    configure_logging(level=level, stream=stream)
    return structlog.get_logger().bind(logger=name)


def _level_to_int(level: str) -> int:
    """Convert level string to logging int."""
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level.upper(), logging.INFO)
