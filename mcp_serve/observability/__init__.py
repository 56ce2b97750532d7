"""
Observability Package

Structured JSON logging with per-invocation context.
"""

from mcp_serve.observability.logging import (
    configure_logging,
    get_invocation_id,
    get_logger,
    get_tool_name,
    invocation_context,
    reset_logging,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_invocation_id",
    "get_tool_name",
    "invocation_context",
    "reset_logging",
]
