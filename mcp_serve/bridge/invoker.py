"""
Tool Bridge

Turns a tool call (tool name + JSON arguments) into a process run and the
process's output back into a JSON result:

    registry lookup -> argument check -> render argv -> execute -> parse

Every outcome of an accepted call is returned as a ToolInvocationOutcome;
only calling an unknown tool raises, and it does so before anything is
rendered or spawned. The output pattern is applied to stdout exactly as
captured, final newline included. Nothing is retried: tool scripts are not assumed to be
idempotent, so re-invoking after a failure is the caller's decision.

Pattern: Command Executor (tool calls executed as commands)
Pattern: Dependency Injection (registry, settings and executor are injected)
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from mcp_serve.bridge.output_pattern import parse_output
from mcp_serve.bridge.process import ProcessExecutor
from mcp_serve.bridge.renderer import render
from mcp_serve.core.config import Settings, get_settings
from mcp_serve.core.exceptions import OutputParseError, RenderError
from mcp_serve.models.domain import (
    ExecutionConfig,
    ExecutionResult,
    ExitKind,
    FailureKind,
    InvocationFailure,
    InvocationSuccess,
    ToolDefinition,
    ToolInvocationOutcome,
)
from mcp_serve.observability.logging import get_logger, invocation_context
from mcp_serve.tools.registry import CompiledTool, ToolRegistry, get_tool_registry

logger = logging.getLogger(__name__)

# Result key used when a tool has no output template.
RAW_OUTPUT_KEY = "output"


class ToolBridge:
    """
    Invokes registered tools as processes.

    The bridge keeps no per-call state; concurrent invocations, including
    of the same tool, are independent.

    Attributes:
        registry: Source of compiled tool definitions.
        settings: Execution policy defaults.
        executor: Process runner.

    Example:
        >>> bridge = ToolBridge(registry=get_tool_registry())
        >>> outcome = await bridge.invoke("create_ticket", {"title": "My Ticket"})
        >>> outcome.status
        'success'
    """

    def __init__(
        self,
        registry: ToolRegistry,
        settings: Optional[Settings] = None,
        executor: Optional[ProcessExecutor] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or get_settings()
        self.executor = executor or ProcessExecutor()

    def list_tools(self) -> list[ToolDefinition]:
        """Current set of registered tool definitions."""
        return self.registry.list()

    def execution_config(self, timeout: Optional[float] = None) -> ExecutionConfig:
        """
        Build the execution policy for one call.

        A per-call timeout replaces the default but is capped at
        max_timeout_seconds.
        """
        settings = self.settings
        effective_timeout = settings.default_timeout_seconds
        if timeout is not None:
            effective_timeout = min(timeout, settings.max_timeout_seconds)
        return ExecutionConfig(
            inherit_env=settings.inherit_env,
            env_allowlist=tuple(settings.env_allowlist),
            extra_env=dict(settings.extra_env),
            cwd=Path(settings.working_dir) if settings.working_dir else None,
            timeout=effective_timeout,
        )

    async def invoke(
        self,
        tool_id: str,
        arguments: dict[str, Any],
        timeout: Optional[float] = None,
    ) -> ToolInvocationOutcome:
        """
        Invoke a tool and return its outcome.

        Args:
            tool_id: Registered tool name.
            arguments: Tool-call argument object.
            timeout: Optional per-call timeout in seconds.

        Returns:
            InvocationSuccess with the parsed result, or InvocationFailure.

        Raises:
            ToolNotFoundError: No tool with this name is registered.
        """
        tool = self.registry.get(tool_id)
        invocation_id = uuid.uuid4().hex

        with invocation_context(invocation_id, tool_id):
            start_time = time.monotonic()
            outcome = await self._invoke(tool, arguments, timeout)
            duration_ms = (time.monotonic() - start_time) * 1000

            log = get_logger(__name__)
            if isinstance(outcome, InvocationFailure):
                log.warning(
                    "tool invocation failed",
                    kind=outcome.kind.value,
                    detail=outcome.detail,
                    duration_ms=round(duration_ms, 2),
                )
            else:
                log.info("tool invocation succeeded", duration_ms=round(duration_ms, 2))
            return outcome

    async def _invoke(
        self,
        tool: CompiledTool,
        arguments: dict[str, Any],
        timeout: Optional[float],
    ) -> ToolInvocationOutcome:
        definition = tool.definition

        errors = definition.input_schema.validate_arguments(arguments)
        if errors:
            return InvocationFailure(kind=FailureKind.INVALID_INPUT, detail="; ".join(errors))

        try:
            argv = render(tool.input_template, arguments)
        except RenderError as e:
            return InvocationFailure(kind=FailureKind.INVALID_INPUT, detail=e.message)

        config = self.execution_config(timeout)
        logger.debug(
            f"Spawning {definition.executable_path} with {len(argv)} args "
            f"(timeout {config.timeout}s)"
        )
        result = await self.executor.execute(definition.executable_path, argv, config)
        return self._interpret(tool, result)

    def _interpret(self, tool: CompiledTool, result: ExecutionResult) -> ToolInvocationOutcome:
        """Map a process result onto an invocation outcome."""
        status = result.exit_status

        if status.kind == ExitKind.TIMED_OUT:
            return InvocationFailure(
                kind=FailureKind.TIMEOUT,
                detail=f"Tool timed out after {result.duration_ms / 1000:.1f}s",
            )

        if not status.success:
            return InvocationFailure(
                kind=FailureKind.EXECUTION_FAILED,
                detail=f"Tool failed: {status.describe()}",
                exit_code=status.code,
                signal=status.signal,
                stderr=result.stderr_text,
            )

        stdout_text = result.stdout_text
        if tool.output_pattern is None:
            return InvocationSuccess(result={RAW_OUTPUT_KEY: stdout_text})

        try:
            parsed = parse_output(tool.output_pattern, stdout_text)
        except OutputParseError as e:
            return InvocationFailure(
                kind=FailureKind.OUTPUT_PARSE_FAILED,
                detail=e.message,
                raw_stdout=stdout_text,
            )
        return InvocationSuccess(result=parsed)


# =============================================================================
# Singleton Access
# =============================================================================

_bridge: Optional[ToolBridge] = None


def get_tool_bridge() -> ToolBridge:
    """
    Get the global tool bridge instance.

    Uses the global tool registry and settings.
    """
    global _bridge
    if _bridge is None:
        _bridge = ToolBridge(registry=get_tool_registry())
    return _bridge


def reset_tool_bridge() -> None:
    """
    Reset the global tool bridge.

    Primarily used for testing to ensure a clean state.
    """
    global _bridge
    _bridge = None
