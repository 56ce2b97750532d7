"""
Health Router

Liveness and readiness endpoints. The service is ready once at least one
tool is registered; an empty registry usually means the tool directories
are misconfigured.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from mcp_serve import __version__
from mcp_serve.api.deps import get_tool_registry
from mcp_serve.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    tools: int


router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(status="healthy", version=__version__)


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    registry: ToolRegistry = Depends(get_tool_registry),
) -> ReadinessResponse:
    """Readiness check: 503 while no tools are registered."""
    count = len(registry)
    if count == 0:
        logger.warning("Readiness check failed: no tools registered")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not_ready", tools=0)
    return ReadinessResponse(status="ready", tools=count)
