"""
Tools Package - Tool Discovery and Registry

This package finds executable tools on disk, loads their definitions and
keeps the compiled set the bridge serves.
"""

from mcp_serve.tools.discovery import (
    DirectoryScanner,
    DiscoveredTool,
    MetadataKind,
    MetadataSource,
    ScanError,
    discover_tools,
    load_tool_definition,
    reload_registry,
)
from mcp_serve.tools.registry import (
    CompiledTool,
    ToolRegistry,
    compile_tool,
    get_tool_registry,
)

__all__ = [
    "CompiledTool",
    "DirectoryScanner",
    "DiscoveredTool",
    "MetadataKind",
    "MetadataSource",
    "ScanError",
    "ToolRegistry",
    "compile_tool",
    "discover_tools",
    "get_tool_registry",
    "load_tool_definition",
    "reload_registry",
]
