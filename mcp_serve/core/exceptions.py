"""
Custom exceptions for mcp-serve.

This module provides the exception hierarchy for the script bridge. All
exceptions inherit from McpServeException and carry an error code so the
API layer and logs can identify failures consistently.

Definition-time errors (TemplateError, DefinitionError) reject a tool before
it is ever registered. Render-time and parse-time errors (RenderError,
OutputParseError) are converted into failure outcomes by the bridge and never
escape an invocation. Execution-time failures are not exceptions at all; they
are encoded in the ExecutionResult.

Pattern: Specific exceptions, always captured with 'as e'
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for mcp-serve exceptions.

    These codes provide a consistent way to identify error types
    across the API and in logging.
    """

    SERVE_ERROR = "SERVE_ERROR"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    DEFINITION_ERROR = "DEFINITION_ERROR"
    RENDER_ERROR = "RENDER_ERROR"
    OUTPUT_PARSE_ERROR = "OUTPUT_PARSE_ERROR"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"


class TemplateErrorReason(str, Enum):
    """Why an input template or output pattern failed to compile."""

    UNKNOWN_PROPERTY = "unknown_property"
    MALFORMED_PLACEHOLDER = "malformed_placeholder"
    UNBALANCED_BRACKETS = "unbalanced_brackets"
    MALFORMED_REPEAT = "malformed_repeat"
    NOT_AN_ARRAY = "not_an_array"
    ARRAY_OUTSIDE_REPEAT = "array_outside_repeat"
    UNKNOWN_CAPTURE = "unknown_capture"
    MISSING_CAPTURE = "missing_capture"
    DUPLICATE_CAPTURE = "duplicate_capture"
    INVALID_PATTERN = "invalid_pattern"


# =============================================================================
# Base Exception
# =============================================================================


class McpServeException(Exception):
    """
    Base exception for all mcp-serve errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.SERVE_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Definition-time Errors
# =============================================================================


class TemplateError(McpServeException):
    """
    Raised when an input template or output pattern cannot be compiled.

    The offending tool definition is rejected and never registered.

    Attributes:
        reason: TemplateErrorReason describing the failure.
        property_name: The property or capture name involved (if any).
    """

    def __init__(
        self,
        message: str,
        reason: TemplateErrorReason,
        property_name: str | None = None,
        error_code: str = ErrorCode.TEMPLATE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.reason = reason
        self.property_name = property_name


class DefinitionError(McpServeException):
    """
    Raised when tool metadata is missing or cannot be loaded.

    Attributes:
        source: Path of the executable or metadata file involved.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        error_code: str = ErrorCode.DEFINITION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.source = source


# =============================================================================
# Invocation-time Errors
# =============================================================================


class RenderError(McpServeException):
    """
    Raised when an input object cannot be rendered into an argument vector.

    Attributes:
        property_name: The required property that was absent.
    """

    def __init__(
        self,
        message: str,
        property_name: str | None = None,
        error_code: str = ErrorCode.RENDER_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.property_name = property_name


class OutputParseError(McpServeException):
    """
    Raised when process output does not match the compiled output pattern.

    Attributes:
        raw_stdout: The unmatched output, kept for diagnosis.
    """

    def __init__(
        self,
        message: str,
        raw_stdout: str = "",
        error_code: str = ErrorCode.OUTPUT_PARSE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.raw_stdout = raw_stdout


class ToolNotFoundError(McpServeException):
    """Raised when a requested tool is not found in the registry."""

    def __init__(
        self,
        tool_name: str,
        error_code: str = ErrorCode.TOOL_NOT_FOUND,
        **kwargs: Any,
    ) -> None:
        super().__init__(f"Tool not found: {tool_name}", error_code, **kwargs)
        self.tool_name = tool_name
