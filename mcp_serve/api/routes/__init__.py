"""API Routes Package.

Routers:
- health: /health, /health/ready
- tools: /v1/tools catalog, invoke and reload
"""

__all__ = ["health", "tools"]
