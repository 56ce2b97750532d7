"""mcp-serve - expose executable scripts as structured tools.

Note: Import `app` directly from `mcp_serve.main` to avoid circular imports.
"""

__version__ = "0.1.0"

__all__ = ["main", "api", "bridge", "core", "models", "observability", "tools"]
