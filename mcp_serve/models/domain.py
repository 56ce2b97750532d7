"""
Domain Models - tool definitions, execution records, invocation outcomes.

This module contains the internal domain models shared by the registry, the
process bridge and the API layer.

- ToolDefinition is built once per tool (by discovery) and is immutable.
- ExecutionConfig, ExecutionResult and ToolInvocationOutcome live for a
  single tool call and are never shared between calls.

Pattern: Domain models as value objects (frozen Pydantic models)
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from mcp_serve.models.schema import JsonSchema


# =============================================================================
# ToolDefinition
# =============================================================================


class ToolDefinition(BaseModel):
    """
    Declarative description of a script's callable interface.

    Attributes:
        name: Unique tool identifier.
        title: Optional human-friendly title.
        description: What the tool does.
        input_schema: Object schema of the tool-call arguments.
        input_template: Template turning arguments into an argument vector.
        output_schema: Object schema of the result (optional).
        output_template: Pattern with named captures applied to stdout
            (optional; without it the raw stdout is returned).
        annotations: Free-form hints passed through to the catalog.
        executable_path: The script to run.

    Example:
        >>> tool = ToolDefinition(
        ...     name="create_ticket",
        ...     description="Create a ticket",
        ...     input_schema={"type": "object", "properties": {"title": {"type": "string"}}},
        ...     input_template="--title {{title}}",
        ...     executable_path="/opt/tools/create-ticket",
        ... )
    """

    name: str = Field(..., min_length=1, description="Unique tool identifier")
    title: Optional[str] = Field(default=None, description="Human-friendly title")
    description: str = Field(default="", description="Human-readable description")
    input_schema: JsonSchema = Field(
        default_factory=lambda: JsonSchema(type="object", properties={}),
        description="Schema of the tool-call arguments",
    )
    input_template: str = Field(default="", description="Argument template")
    output_schema: Optional[JsonSchema] = Field(
        default=None, description="Schema of the parsed result"
    )
    output_template: Optional[str] = Field(
        default=None, description="Pattern with named captures"
    )
    annotations: Optional[dict[str, Any]] = Field(default=None)
    executable_path: Path = Field(..., description="Path to the executable")

    model_config = {"frozen": True}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Tool names may not contain whitespace."""
        if any(ch.isspace() for ch in v):
            raise ValueError("Tool name must not contain whitespace")
        return v


# =============================================================================
# Execution
# =============================================================================


class ExecutionConfig(BaseModel):
    """
    Per-invocation process policy.

    Attributes:
        inherit_env: Pass the full host environment through.
        env_allowlist: Host variables copied when inherit_env is False.
        extra_env: Variables set on top of the base environment.
        cwd: Working directory for the child (None: inherit).
        timeout: Seconds before the child is killed (None: no limit).
    """

    inherit_env: bool = False
    env_allowlist: tuple[str, ...] = ()
    extra_env: dict[str, str] = Field(default_factory=dict)
    cwd: Optional[Path] = None
    timeout: Optional[float] = Field(default=None, gt=0)

    model_config = {"frozen": True}


class ExitKind(str, Enum):
    """How a child process ended."""

    EXITED = "exited"
    SIGNALED = "signaled"
    TIMED_OUT = "timed_out"
    SPAWN_FAILED = "spawn_failed"


class ExitStatus(BaseModel):
    """Exit discriminant: normal exit code, signal, timeout or spawn failure."""

    kind: ExitKind
    code: Optional[int] = None
    signal: Optional[int] = None

    model_config = {"frozen": True}

    @property
    def success(self) -> bool:
        return self.kind == ExitKind.EXITED and self.code == 0

    def describe(self) -> str:
        if self.kind == ExitKind.EXITED:
            return f"exit code {self.code}"
        if self.kind == ExitKind.SIGNALED:
            return f"killed by signal {self.signal}"
        if self.kind == ExitKind.TIMED_OUT:
            return "timed out"
        return "failed to start"


class ExecutionResult(BaseModel):
    """
    Raw record of one process run.

    Attributes:
        exit_status: How the process ended.
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_ms: Wall-clock duration in milliseconds.
    """

    exit_status: ExitStatus
    stdout: bytes = b""
    stderr: bytes = b""
    duration_ms: float = 0.0

    model_config = {"frozen": True}

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


# =============================================================================
# Invocation Outcome
# =============================================================================


class FailureKind(str, Enum):
    """Categories of failed tool calls reported to the caller."""

    INVALID_INPUT = "invalid_input"
    EXECUTION_FAILED = "execution_failed"
    TIMEOUT = "timeout"
    OUTPUT_PARSE_FAILED = "output_parse_failed"


class InvocationSuccess(BaseModel):
    """The tool ran and its output was parsed into a JSON object."""

    status: Literal["success"] = "success"
    result: dict[str, Any]

    model_config = {"frozen": True}

    @property
    def is_success(self) -> bool:
        return True


class InvocationFailure(BaseModel):
    """
    The tool call failed.

    Attributes:
        kind: Failure category.
        detail: Human-readable explanation.
        exit_code: Process exit code, when the process exited.
        signal: Terminating signal, when the process was signalled.
        stderr: Captured stderr text (execution failures).
        raw_stdout: Unmatched stdout text (output parse failures).
    """

    status: Literal["failure"] = "failure"
    kind: FailureKind
    detail: str
    exit_code: Optional[int] = None
    signal: Optional[int] = None
    stderr: Optional[str] = None
    raw_stdout: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_success(self) -> bool:
        return False


ToolInvocationOutcome = Annotated[
    Union[InvocationSuccess, InvocationFailure], Field(discriminator="status")
]
