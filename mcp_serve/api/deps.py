"""
API Dependencies

FastAPI dependency injection functions for the API layer. All dependencies
are factory functions that tests can replace through FastAPI's
dependency_overrides mechanism.
"""

from mcp_serve.bridge.invoker import ToolBridge, get_tool_bridge as _get_tool_bridge
from mcp_serve.core.config import Settings, get_settings as _get_settings
from mcp_serve.tools.registry import ToolRegistry, get_tool_registry as _get_tool_registry


def get_settings() -> Settings:
    """Get application settings."""
    return _get_settings()


def get_tool_registry() -> ToolRegistry:
    """Get the global tool registry."""
    return _get_tool_registry()


def get_tool_bridge() -> ToolBridge:
    """Get the global tool bridge."""
    return _get_tool_bridge()
