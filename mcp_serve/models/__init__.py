"""Models Package - schema, domain and API models."""

from mcp_serve.models.domain import (
    ExecutionConfig,
    ExecutionResult,
    ExitKind,
    ExitStatus,
    FailureKind,
    InvocationFailure,
    InvocationSuccess,
    ToolDefinition,
    ToolInvocationOutcome,
)
from mcp_serve.models.schema import JsonSchema, SchemaType
from mcp_serve.models.tools import (
    ReloadResponse,
    ToolCatalogEntry,
    ToolInvokeRequest,
    ToolInvokeResponse,
)

__all__ = [
    # Schema
    "JsonSchema",
    "SchemaType",
    # Domain
    "ExecutionConfig",
    "ExecutionResult",
    "ExitKind",
    "ExitStatus",
    "FailureKind",
    "InvocationFailure",
    "InvocationSuccess",
    "ToolDefinition",
    "ToolInvocationOutcome",
    # API
    "ReloadResponse",
    "ToolCatalogEntry",
    "ToolInvokeRequest",
    "ToolInvokeResponse",
]
