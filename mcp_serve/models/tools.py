"""
Tool API Models

Pydantic models for the tool catalog and invocation endpoints.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from mcp_serve.models.domain import ToolDefinition


class ToolCatalogEntry(BaseModel):
    """
    A tool as advertised to agents.

    Attributes:
        name: Unique tool identifier
        title: Human-friendly title
        description: What the tool does
        input_schema: JSON Schema for tool arguments
        output_schema: JSON Schema for the tool result
        annotations: Free-form hints from the tool metadata
    """

    name: str = Field(..., description="Unique tool identifier")
    title: Optional[str] = Field(default=None, description="Human-friendly title")
    description: str = Field(..., description="Tool description")
    input_schema: dict[str, Any] = Field(..., alias="inputSchema")
    output_schema: Optional[dict[str, Any]] = Field(default=None, alias="outputSchema")
    annotations: Optional[dict[str, Any]] = Field(default=None)

    model_config = {"populate_by_name": True}

    @classmethod
    def from_definition(cls, definition: ToolDefinition) -> "ToolCatalogEntry":
        """Build a catalog entry, leaving out the executable path."""
        return cls(
            name=definition.name,
            title=definition.title,
            description=definition.description,
            input_schema=definition.input_schema.to_json_schema(),
            output_schema=(
                definition.output_schema.to_json_schema()
                if definition.output_schema is not None
                else None
            ),
            annotations=definition.annotations,
        )


class ToolInvokeRequest(BaseModel):
    """
    Tool invocation request model.

    Attributes:
        arguments: Tool arguments (checked against the tool's input schema)
        timeout_seconds: Optional per-call timeout
    """

    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Tool arguments"
    )
    timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Per-call timeout in seconds"
    )


class ToolInvokeResponse(BaseModel):
    """
    Tool invocation response model.

    Attributes:
        name: Tool name that was invoked
        success: Whether the call succeeded
        result: Parsed tool output on success
        error: Failure details on failure
    """

    name: str = Field(..., description="Tool name")
    success: bool = Field(..., description="Whether invocation succeeded")
    result: Optional[dict[str, Any]] = Field(default=None, description="Parsed result")
    error: Optional[dict[str, Any]] = Field(default=None, description="Failure details")


class ReloadResponse(BaseModel):
    """Result of rescanning the tool directories."""

    registered: list[str]
    rejected: dict[str, str]
