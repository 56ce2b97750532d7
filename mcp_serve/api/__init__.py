"""API Package - FastAPI routes and dependencies.

Components:
- routes: API endpoint routers (health, tools)
- deps: FastAPI dependency injection functions

Note: Import routers directly from mcp_serve.api.routes to avoid circular imports.
"""

__all__ = ["routes", "deps"]
