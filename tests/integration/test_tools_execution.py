"""
Integration tests: real scripts through discovery, registry and ToolBridge.

Each test writes small /bin/sh tools into tmp_path, loads them the way the
service does at startup and invokes them through the bridge.
"""

import asyncio
import json
import os
import sys
from pathlib import Path

import pytest

from mcp_serve.bridge.invoker import ToolBridge
from mcp_serve.core.config import Settings
from mcp_serve.models.domain import FailureKind, InvocationFailure, InvocationSuccess
from mcp_serve.tools.discovery import reload_registry
from mcp_serve.tools.registry import ToolRegistry

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(sys.platform == "win32", reason="Tool scripts are POSIX shell scripts"),
]

# Records its argv one per line, then prints a ticket confirmation.
CREATE_TICKET = """\
out="$(dirname "$0")/argv.log"
: > "$out"
for arg in "$@"; do printf '%s\\n' "$arg" >> "$out"; done
echo "Ticket created: https://tickets.example/T-42"
echo "ID: 42"
"""

CREATE_TICKET_YAML = """\
name: create_ticket
description: Create a ticket
input:
  template: '--title {{title}} [--parent {{parent_id}}] [--label {{label}}...] {{body}}'
  schema:
    type: object
    properties:
      title: {type: string}
      parent_id: {type: string}
      label: {type: array, items: {type: string}}
      body: {type: string}
    required: [title, body]
output:
  template: "Ticket created: (?<url>https://.*)\\nID: (?<id>\\\\d+)"
  schema:
    type: object
    properties:
      url: {type: string}
      id: {type: string}
"""

SLEEPER = """\
# ---
# name: sleeper
# description: Sleeps far longer than any timeout
# ---
echo $$ > "$(dirname "$0")/sleeper.pid"
exec sleep 30
"""

READ_FILE = """\
# ---
# name: read_file
# input:
#   template: '{{path}}'
#   schema:
#     type: object
#     properties:
#       path: {type: string}
#     required: [path]
# ---
if [ ! -f "$1" ]; then
  echo "File not found: $1" >&2
  exit 1
fi
cat "$1"
"""

ECHO_JSON = """\
# ---
# name: echo_value
# input:
#   template: '--value={{value}}'
#   schema:
#     type: object
#     properties:
#       value: {type: string}
#     required: [value]
# output:
#   template: 'value=(?<value>[^\\n]*)'
#   schema:
#     type: object
#     properties:
#       value: {type: string}
# ---
sleep 0.2
echo "value=${1#--value=}"
"""

# Prints a confirmation but still reports failure.
HALF_DONE = """\
# ---
# name: half_done
# output:
#   template: 'ID: (?<id>\\d+)'
#   schema:
#     type: object
#     properties:
#       id: {type: string}
# ---
echo "ID: 7"
echo "File not found: x" >&2
exit 1
"""


@pytest.fixture
def tools_dir(tmp_path: Path, make_script) -> Path:
    directory = tmp_path / "tools"
    make_script("create-ticket", CREATE_TICKET, directory=directory)
    (directory / "create-ticket.yaml").write_text(CREATE_TICKET_YAML)
    make_script("sleeper", SLEEPER, directory=directory)
    make_script("read-file", READ_FILE, directory=directory)
    make_script("echo-value", ECHO_JSON, directory=directory)
    make_script("half-done", HALF_DONE, directory=directory)
    return directory


@pytest.fixture
def loaded_registry(registry: ToolRegistry, tools_dir: Path) -> ToolRegistry:
    registered, rejected = reload_registry(registry, [tools_dir])
    assert rejected == {}
    assert registered == ["create_ticket", "echo_value", "half_done", "read_file", "sleeper"]
    return registry


@pytest.fixture
def live_bridge(loaded_registry: ToolRegistry, settings: Settings) -> ToolBridge:
    return ToolBridge(registry=loaded_registry, settings=settings)


def _recorded_argv(tools_dir: Path) -> list[str]:
    return (tools_dir / "argv.log").read_text().splitlines()


class TestCreateTicket:
    """Input rendering and output parsing against a real process."""

    @pytest.mark.asyncio
    async def test_round_trip(self, live_bridge: ToolBridge, tools_dir: Path):
        outcome = await live_bridge.invoke(
            "create_ticket", {"title": "My Ticket", "body": "Details here"}
        )

        assert isinstance(outcome, InvocationSuccess)
        assert outcome.result == {"url": "https://tickets.example/T-42", "id": "42"}
        assert _recorded_argv(tools_dir) == ["--title", "My Ticket", "Details here"]

    @pytest.mark.asyncio
    async def test_repeat_group(self, live_bridge: ToolBridge, tools_dir: Path):
        await live_bridge.invoke(
            "create_ticket",
            {"title": "T", "label": ["ux", "api"], "parent_id": "P-1", "body": "B"},
        )

        assert _recorded_argv(tools_dir) == [
            "--title", "T", "--parent", "P-1", "--label", "ux", "--label", "api", "B",
        ]

    @pytest.mark.asyncio
    async def test_repeat_group_empty(self, live_bridge: ToolBridge, tools_dir: Path):
        await live_bridge.invoke("create_ticket", {"title": "T", "label": [], "body": "B"})

        assert _recorded_argv(tools_dir) == ["--title", "T", "B"]

    @pytest.mark.asyncio
    async def test_shell_metacharacters_are_inert(self, live_bridge: ToolBridge, tools_dir: Path):
        body = "$(touch pwned); `id` | cat > x && echo *"

        await live_bridge.invoke("create_ticket", {"title": "T", "body": body})

        assert _recorded_argv(tools_dir)[-1] == body


class TestFailures:
    """Failure outcomes from real processes."""

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, live_bridge: ToolBridge, tmp_path: Path):
        outcome = await live_bridge.invoke("read_file", {"path": "x"})

        assert isinstance(outcome, InvocationFailure)
        assert outcome.kind == FailureKind.EXECUTION_FAILED
        assert outcome.exit_code == 1
        assert outcome.stderr.strip() == "File not found: x"

    @pytest.mark.asyncio
    async def test_non_zero_exit_with_matching_stdout(self, live_bridge: ToolBridge):
        outcome = await live_bridge.invoke("half_done", {})

        assert isinstance(outcome, InvocationFailure)
        assert outcome.kind == FailureKind.EXECUTION_FAILED
        assert outcome.exit_code == 1
        assert outcome.stderr.strip() == "File not found: x"

    @pytest.mark.asyncio
    async def test_raw_output_without_template(self, live_bridge: ToolBridge, tmp_path: Path):
        target = tmp_path / "note.txt"
        target.write_text("line one\nline two\n")

        outcome = await live_bridge.invoke("read_file", {"path": str(target)})

        assert outcome.result == {"output": "line one\nline two\n"}

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, live_bridge: ToolBridge, tools_dir: Path):
        outcome = await live_bridge.invoke("sleeper", {}, timeout=0.5)

        assert isinstance(outcome, InvocationFailure)
        assert outcome.kind == FailureKind.TIMEOUT

        # The child is reaped before invoke() returns.
        pid = int((tools_dir / "sleeper.pid").read_text())
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)


class TestConcurrency:
    """Invocations are independent."""

    @pytest.mark.asyncio
    async def test_concurrent_invocations_of_one_tool(self, live_bridge: ToolBridge):
        values = [f"value {i} {json.dumps({'i': i})}" for i in range(10)]

        outcomes = await asyncio.gather(
            *(live_bridge.invoke("echo_value", {"value": v}) for v in values)
        )

        assert [o.result["value"] for o in outcomes] == values

    @pytest.mark.asyncio
    async def test_concurrent_invocations_are_not_serialised(self, live_bridge: ToolBridge):
        loop = asyncio.get_running_loop()
        start = loop.time()

        await asyncio.gather(
            *(live_bridge.invoke("echo_value", {"value": str(i)}) for i in range(8))
        )

        # Each call sleeps 0.2s; serial execution would take at least 1.6s.
        assert loop.time() - start < 1.5

    @pytest.mark.asyncio
    async def test_reload_during_invocation(
        self, live_bridge: ToolBridge, loaded_registry: ToolRegistry, tmp_path: Path
    ):
        empty = tmp_path / "empty"
        empty.mkdir()

        task = asyncio.create_task(live_bridge.invoke("echo_value", {"value": "kept"}))
        await asyncio.sleep(0.05)
        reload_registry(loaded_registry, [empty])
        outcome = await task

        assert outcome.result == {"value": "kept"}
        assert len(loaded_registry) == 0
