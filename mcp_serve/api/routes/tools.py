"""
Tools Router

Serves the tool catalog and invokes tools on behalf of agents.

- GET  /v1/tools                 catalog of registered tools
- GET  /v1/tools/{name}          one catalog entry
- POST /v1/tools/{name}/invoke   run a tool
- POST /v1/tools/reload          rescan the tool directories

A failed tool call is still a successful HTTP exchange: the response
carries success=false and the failure details. Only an unknown tool name
is an HTTP error (404).
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, status

from mcp_serve.api.deps import get_settings, get_tool_bridge, get_tool_registry
from mcp_serve.bridge.invoker import ToolBridge
from mcp_serve.core.config import Settings
from mcp_serve.core.exceptions import ToolNotFoundError
from mcp_serve.models.domain import InvocationFailure
from mcp_serve.models.tools import (
    ReloadResponse,
    ToolCatalogEntry,
    ToolInvokeRequest,
    ToolInvokeResponse,
)
from mcp_serve.tools.discovery import reload_registry
from mcp_serve.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tools", tags=["Tools"])


@router.get("", response_model=list[ToolCatalogEntry])
async def list_tools(
    bridge: ToolBridge = Depends(get_tool_bridge),
) -> list[ToolCatalogEntry]:
    """List all registered tools."""
    return [ToolCatalogEntry.from_definition(d) for d in bridge.list_tools()]


@router.post("/reload", response_model=ReloadResponse)
def reload_tools(
    registry: ToolRegistry = Depends(get_tool_registry),
    settings: Settings = Depends(get_settings),
) -> ReloadResponse:
    """
    Rescan the configured tool directories and republish the registry.

    Runs in the threadpool: the scan does blocking file I/O.
    """
    registered, rejected = reload_registry(
        registry,
        [Path(d) for d in settings.tool_dirs],
        recursive=settings.scan_recursive,
    )
    return ReloadResponse(registered=registered, rejected=rejected)


@router.get("/{name}", response_model=ToolCatalogEntry)
async def get_tool(
    name: str,
    registry: ToolRegistry = Depends(get_tool_registry),
) -> ToolCatalogEntry:
    """
    Get one tool's catalog entry.

    Raises:
        HTTPException 404: Tool not found in registry
    """
    try:
        tool = registry.get(name)
    except ToolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e
    return ToolCatalogEntry.from_definition(tool.definition)


@router.post("/{name}/invoke", response_model=ToolInvokeResponse)
async def invoke_tool(
    name: str,
    request: ToolInvokeRequest,
    bridge: ToolBridge = Depends(get_tool_bridge),
) -> ToolInvokeResponse:
    """
    Invoke a tool with the given arguments.

    Args:
        name: Tool name
        request: Arguments and optional timeout
        bridge: Injected tool bridge

    Returns:
        ToolInvokeResponse with the parsed result or failure details

    Raises:
        HTTPException 404: Tool not found in registry
    """
    logger.debug(f"Tool invocation request: {name}")

    try:
        outcome = await bridge.invoke(name, request.arguments, timeout=request.timeout_seconds)
    except ToolNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e

    if isinstance(outcome, InvocationFailure):
        return ToolInvokeResponse(
            name=name,
            success=False,
            error=outcome.model_dump(exclude={"status"}, exclude_none=True, mode="json"),
        )
    return ToolInvokeResponse(name=name, success=True, result=outcome.result)
