"""
HTTP API for MCP tools, resources and prompts.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, Response

from persona_mcp.errors import PersonaMCPError, PromptNotFound, ResourceNotFound, ToolNotFound
from persona_mcp.prompts import list_prompts, render_prompt
from persona_mcp.server.runtime import Runtime
from persona_mcp.server.schema import PromptRequest, ToolError, ToolRequest, ToolResponse
from persona_mcp.utils.logger import tool_name_var
from persona_mcp.utils.security import redact_sensitive


router = APIRouter()
logger = logging.getLogger(__name__)


def _runtime(request: Request) -> Runtime:
    return request.app.state.runtime


@router.get("/")
async def root(request: Request) -> dict[str, str]:
    settings = _runtime(request).settings
    return {"status": "ok", "service": settings.server.name, "version": settings.server.version}


@router.get("/favicon.ico")
async def favicon() -> Response:
    return Response(status_code=204)


@router.get("/health")
async def health(request: Request, deep: bool = False) -> dict[str, Any]:
    runtime = _runtime(request)
    payload: dict[str, Any] = {"status": "ok", "tools": len(runtime.registry)}
    if runtime.cache is not None:
        payload["cache"] = runtime.cache.snapshot()
    if deep:
        healthy = await runtime.client.health_check()
        payload["persona_api"] = "ok" if healthy else "unreachable"
        if not healthy:
            payload["status"] = "degraded"
    return payload


# region tools
@router.get("/mcp/tools")
async def list_tools(request: Request) -> dict[str, Any]:
    return {"tools": _runtime(request).registry.list_tools()}


@router.post("/mcp/tools/{tool_name}", response_model=ToolResponse)
async def call_tool(tool_name: str, body: ToolRequest, request: Request) -> ToolResponse:
    runtime = _runtime(request)
    try:
        tool = runtime.registry.require(tool_name)
    except ToolNotFound:
        raise HTTPException(status_code=404, detail="Tool not found")

    token = tool_name_var.set(tool_name)
    try:
        logger.info("Tool call", extra={"arguments": redact_sensitive(body.params)})
        data = await tool.run(body.params)
        return ToolResponse(success=True, data=data)
    except PersonaMCPError as exc:
        logger.warning("Tool call failed", extra={"error_code": exc.code, "error": exc.message})
        return ToolResponse(
            success=False,
            error=ToolError(code=exc.code, message=exc.message, detail=exc.to_dict()),
        )
    except Exception as exc:
        logger.error("Unexpected tool error", exc_info=True)
        return ToolResponse(
            success=False,
            error=ToolError(code="INTERNAL_ERROR", message=str(exc), detail=None),
        )
    finally:
        tool_name_var.reset(token)
# endregion


# region resources
@router.get("/mcp/resources")
async def list_resources(request: Request) -> dict[str, Any]:
    resources = _runtime(request).resources
    return {
        "resources": [info.__dict__ for info in resources.list_resources()],
        "templates": [info.__dict__ for info in resources.list_templates()],
    }


@router.get("/mcp/resources/read")
async def read_resource(request: Request, uri: str = Query(..., min_length=1)) -> dict[str, Any]:
    try:
        content = await _runtime(request).resources.read(uri)
    except ResourceNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict())
    except PersonaMCPError as exc:
        logger.warning("Resource read failed", extra={"uri": uri, "error_code": exc.code})
        raise HTTPException(status_code=502, detail=exc.to_dict())
    return {"uri": content.uri, "mimeType": content.mime_type, "text": content.text}
# endregion


# region prompts
@router.get("/mcp/prompts")
async def get_prompts() -> dict[str, Any]:
    return {
        "prompts": [
            {
                "name": prompt.name,
                "description": prompt.description,
                "arguments": [arg.__dict__ for arg in prompt.arguments],
            }
            for prompt in list_prompts()
        ]
    }


@router.post("/mcp/prompts/{prompt_name}")
async def get_prompt(prompt_name: str, body: PromptRequest, request: Request) -> dict[str, Any]:
    try:
        return render_prompt(
            prompt_name,
            body.arguments,
            max_length=_runtime(request).settings.security.max_string_length,
        ).to_dict()
    except PromptNotFound as exc:
        raise HTTPException(status_code=404, detail=exc.to_dict())
    except PersonaMCPError as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict())
# endregion
