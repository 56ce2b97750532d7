"""Run the service with ``python -m mcp_serve``."""

from mcp_serve.main import run

run()
