"""
Tool Registry

This module stores the compiled tool definitions served by the bridge.

A definition is compiled (input template and output pattern) when it is
registered; a definition whose templates do not compile is rejected and
never becomes visible. The registry publishes an immutable snapshot of its
tools. Writers build a new snapshot and swap it in with a single
assignment, so readers never lock and an in-flight invocation always sees
a self-consistent set of definitions, even across a reload.

Pattern: Service Registry
Pattern: Copy-on-write snapshot for lock-free reads
"""

import logging
import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from mcp_serve.bridge.input_template import (
    CompiledInputTemplate,
    compile_input_template,
)
from mcp_serve.bridge.output_pattern import (
    CompiledOutputPattern,
    compile_output_pattern,
)
from mcp_serve.core.exceptions import TemplateError, ToolNotFoundError
from mcp_serve.models.domain import ToolDefinition

logger = logging.getLogger(__name__)


# =============================================================================
# CompiledTool
# =============================================================================


@dataclass(frozen=True)
class CompiledTool:
    """
    A tool definition together with its compiled templates.

    Attributes:
        definition: The immutable tool definition.
        input_template: Compiled input template.
        output_pattern: Compiled output pattern, or None when the tool
            returns its raw stdout.
    """

    definition: ToolDefinition
    input_template: CompiledInputTemplate
    output_pattern: Optional[CompiledOutputPattern]

    @property
    def name(self) -> str:
        return self.definition.name


def compile_tool(definition: ToolDefinition) -> CompiledTool:
    """
    Compile a tool definition's templates.

    Raises:
        TemplateError: If either template is invalid for its schema.
    """
    input_template = compile_input_template(
        definition.input_template, definition.input_schema
    )
    output_pattern = None
    if definition.output_template is not None:
        output_pattern = compile_output_pattern(
            definition.output_template, definition.output_schema
        )
    return CompiledTool(
        definition=definition,
        input_template=input_template,
        output_pattern=output_pattern,
    )


# =============================================================================
# ToolRegistry Class
# =============================================================================


class ToolRegistry:
    """
    Registry of compiled tools.

    Attributes:
        _tools: Current published snapshot (read-only mapping).

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(definition)
        >>> tool = registry.get("create_ticket")
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._tools: Mapping[str, CompiledTool] = MappingProxyType({})
        self._write_lock = threading.Lock()

    def snapshot(self) -> Mapping[str, CompiledTool]:
        """Return the current published set of tools."""
        return self._tools

    def register(self, definition: ToolDefinition) -> CompiledTool:
        """
        Compile and register a tool definition.

        If a tool with the same name exists, it is replaced.

        Args:
            definition: The definition to register.

        Returns:
            The compiled tool.

        Raises:
            TemplateError: The definition's templates do not compile; the
                registry is left unchanged.
        """
        compiled = compile_tool(definition)
        with self._write_lock:
            tools = dict(self._tools)
            tools[definition.name] = compiled
            self._tools = MappingProxyType(tools)
        logger.debug(f"Registered tool: {definition.name}")
        return compiled

    def replace_all(
        self, definitions: Iterable[ToolDefinition]
    ) -> dict[str, TemplateError]:
        """
        Replace the whole published set of tools.

        Definitions whose templates fail to compile are left out and
        reported. Later definitions win over earlier ones with the same name.

        Args:
            definitions: The complete new set of definitions.

        Returns:
            Mapping of rejected tool name to its compile error.
        """
        tools: dict[str, CompiledTool] = {}
        rejected: dict[str, TemplateError] = {}
        for definition in definitions:
            try:
                tools[definition.name] = compile_tool(definition)
            except TemplateError as e:
                logger.warning(f"Rejected tool {definition.name}: {e.message}")
                rejected[definition.name] = e

        with self._write_lock:
            self._tools = MappingProxyType(tools)
        logger.info(f"Published {len(tools)} tools ({len(rejected)} rejected)")
        return rejected

    def get(self, name: str) -> CompiledTool:
        """
        Get a registered tool by name.

        Raises:
            ToolNotFoundError: If the tool is not registered.
        """
        tools = self._tools
        if name not in tools:
            raise ToolNotFoundError(name)
        return tools[name]

    def list(self) -> list[ToolDefinition]:
        """List all registered tool definitions, sorted by name."""
        tools = self._tools
        return [tools[name].definition for name in sorted(tools)]

    def has(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def unregister(self, name: str) -> None:
        """
        Remove a tool from the registry.

        Note:
            Does not raise an error if the tool doesn't exist.
        """
        with self._write_lock:
            if name not in self._tools:
                return
            tools = dict(self._tools)
            del tools[name]
            self._tools = MappingProxyType(tools)
        logger.debug(f"Unregistered tool: {name}")

    def __len__(self) -> int:
        return len(self._tools)


# =============================================================================
# Singleton Access
# =============================================================================

_registry: Optional[ToolRegistry] = None


def get_tool_registry() -> ToolRegistry:
    """
    Get the global tool registry instance.

    Returns the same ToolRegistry instance on every call (singleton pattern).
    """
    global _registry
    if _registry is None:
        _registry = ToolRegistry()
    return _registry


def reset_tool_registry() -> None:
    """
    Reset the global tool registry.

    Primarily used for testing to ensure a clean state.
    """
    global _registry
    _registry = None
