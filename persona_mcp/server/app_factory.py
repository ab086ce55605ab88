"""Application factory for the HTTP tool gateway."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI

from persona_mcp.config import Settings
from persona_mcp.server.http import router
from persona_mcp.server.runtime import Runtime, build_runtime


def create_app(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
    runtime: Runtime | None = None,
) -> FastAPI:
    """Create the FastAPI gateway; logging must already be configured."""
    logger = logging.getLogger(__name__)
    runtime = runtime or build_runtime(settings, transport=transport)

    app = FastAPI(
        title="Persona MCP Server",
        description=settings.server.description,
        version=settings.server.version,
    )
    app.state.runtime = runtime
    app.include_router(router)

    logger.info(
        "HTTP gateway config loaded",
        extra={"tools_enabled_count": len(runtime.registry), "read_only": settings.tools.read_only},
    )
    return app
