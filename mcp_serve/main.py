"""
mcp-serve - Main Application Entry Point

This module provides the FastAPI application that serves the tool catalog
and invokes tools. Tools are discovered from the configured directories at
startup; POST /v1/tools/reload rescans them.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

from fastapi import FastAPI

from mcp_serve import __version__
from mcp_serve.api.routes.health import router as health_router
from mcp_serve.api.routes.tools import router as tools_router
from mcp_serve.core.config import get_settings
from mcp_serve.observability.logging import configure_logging, get_logger
from mcp_serve.tools.discovery import reload_registry
from mcp_serve.tools.registry import get_tool_registry

APP_NAME = "mcp-serve"
APP_DESCRIPTION = "Expose executable scripts as structured tools"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan: configure logging and publish discovered tools.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, force=True)
    log = get_logger(__name__)

    registered, rejected = reload_registry(
        get_tool_registry(),
        [Path(d) for d in settings.tool_dirs],
        recursive=settings.scan_recursive,
    )
    log.info(
        "startup",
        service=settings.service_name,
        version=__version__,
        environment=settings.environment,
        tools=registered,
        rejected=rejected,
    )

    app.state.initialized = True
    yield

    log.info("shutdown", service=settings.service_name)
    app.state.initialized = False


app = FastAPI(
    title=APP_NAME,
    description=APP_DESCRIPTION,
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(tools_router)


@app.get("/", tags=["Info"])
async def root() -> dict[str, Any]:
    """Root endpoint returning basic service information."""
    return {
        "service": APP_NAME,
        "version": __version__,
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mcp_serve.main:app",
        host="127.0.0.1",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
