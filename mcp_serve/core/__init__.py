"""
Core module for mcp-serve.

This module contains configuration, exceptions, and shared utilities.
"""

from mcp_serve.core.config import Settings, get_settings
from mcp_serve.core.exceptions import (
    DefinitionError,
    ErrorCode,
    McpServeException,
    OutputParseError,
    RenderError,
    TemplateError,
    TemplateErrorReason,
    ToolNotFoundError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "McpServeException",
    "TemplateError",
    "TemplateErrorReason",
    "DefinitionError",
    "RenderError",
    "OutputParseError",
    "ToolNotFoundError",
]
