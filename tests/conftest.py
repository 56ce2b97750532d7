"""
Pytest configuration for the mcp-serve test suite.

This configuration sets up:
- Test markers for categorization
- A factory for small executable shell scripts in tmp_path
- Fresh registry, settings and bridge instances per test
- Reset of module-level singletons between tests
"""

import os
import stat
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest

# Add project root to Python path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mcp_serve.bridge.invoker import ToolBridge, reset_tool_bridge  # noqa: E402
from mcp_serve.core.config import Settings, get_settings  # noqa: E402
from mcp_serve.models.domain import ToolDefinition  # noqa: E402
from mcp_serve.observability.logging import reset_logging  # noqa: E402
from mcp_serve.tools.registry import ToolRegistry, reset_tool_registry  # noqa: E402


# =============================================================================
# Test Markers
# =============================================================================


def pytest_configure(config):
    """
    Register custom markers for test categorization.

    - unit: Tests for individual components
    - integration: Tests that spawn real processes through the full bridge
    - slow: Tests that take a long time to run
    """
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Tests spawning real tool processes")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# =============================================================================
# Singleton Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_singletons():
    """Give every test a clean registry, bridge, settings cache and logging state."""
    reset_tool_registry()
    reset_tool_bridge()
    get_settings.cache_clear()
    reset_logging()
    yield
    reset_tool_registry()
    reset_tool_bridge()
    get_settings.cache_clear()
    reset_logging()


# =============================================================================
# Script Factory
# =============================================================================


ScriptFactory = Callable[..., Path]


@pytest.fixture
def make_script(tmp_path: Path) -> ScriptFactory:
    """
    Factory writing an executable /bin/sh script into tmp_path.

    Usage:
        script = make_script("greet", 'echo "hello $1"')
    """

    def _make(
        name: str,
        body: str,
        directory: Optional[Path] = None,
        executable: bool = True,
    ) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = stat.S_IRUSR | stat.S_IWUSR
        if executable:
            mode |= stat.S_IXUSR | stat.S_IRGRP | stat.S_IXGRP
        os.chmod(path, mode)
        return path

    return _make


@pytest.fixture
def echo_args_script(make_script: ScriptFactory) -> Path:
    """Script printing each of its arguments on its own line."""
    return make_script("echo-args", 'for arg in "$@"; do printf "%s\\n" "$arg"; done')


# =============================================================================
# Registry / Settings / Bridge
# =============================================================================


@pytest.fixture
def registry() -> ToolRegistry:
    """Create a fresh ToolRegistry for each test."""
    return ToolRegistry()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing discovery at tmp_path, with short timeouts."""
    return Settings(
        tool_dirs=[str(tmp_path)],
        default_timeout_seconds=5.0,
        max_timeout_seconds=10.0,
    )


@pytest.fixture
def bridge(registry: ToolRegistry, settings: Settings) -> ToolBridge:
    """ToolBridge over the per-test registry and settings."""
    return ToolBridge(registry=registry, settings=settings)


@pytest.fixture
def ticket_input_schema() -> dict:
    """Input schema of the create_ticket tool."""
    return {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "parent_id": {"type": "string"},
            "body": {"type": "string"},
            "label": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["title", "body"],
    }


@pytest.fixture
def ticket_output_schema() -> dict:
    """Output schema of the create_ticket tool."""
    return {
        "type": "object",
        "properties": {
            "url": {"type": "string"},
            "id": {"type": "string"},
        },
    }


@pytest.fixture
def make_definition(tmp_path: Path) -> Callable[..., ToolDefinition]:
    """Factory for ToolDefinition with sensible defaults."""

    def _make(**overrides) -> ToolDefinition:
        fields = {
            "name": "test_tool",
            "description": "A test tool",
            "input_schema": {"type": "object", "properties": {}},
            "input_template": "",
            "executable_path": tmp_path / "test_tool",
        }
        fields.update(overrides)
        return ToolDefinition.model_validate(fields)

    return _make
