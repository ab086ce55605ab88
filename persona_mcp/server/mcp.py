"""
描述: MCP stdio 服务
主要功能:
    - 构建 mcp 低层 Server 并注册处理器
    - stdio 传输运行, 收到关闭事件后退出
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server

from persona_mcp.config import Settings
from persona_mcp.server.handlers import PersonaMCPHandlers


logger = logging.getLogger(__name__)


def build_mcp_server(settings: Settings, handlers: PersonaMCPHandlers) -> Server:
    server: Server = Server(settings.server.name, version=settings.server.version)

    @server.list_tools()
    async def list_tools():
        return await handlers.handle_list_tools()

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any]):
        return await handlers.handle_call_tool(name, arguments)

    @server.list_resources()
    async def list_resources():
        return await handlers.handle_list_resources()

    @server.list_resource_templates()
    async def list_resource_templates():
        return await handlers.handle_list_resource_templates()

    @server.read_resource()
    async def read_resource(uri):
        return await handlers.handle_read_resource(uri)

    @server.list_prompts()
    async def list_prompts():
        return await handlers.handle_list_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None):
        return await handlers.handle_get_prompt(name, arguments)

    return server


async def run_stdio(server: Server, shutdown_event: asyncio.Event) -> None:
    """运行 stdio 服务, 直到客户端断开或 shutdown_event 被设置"""
    async with stdio_server() as (read_stream, write_stream):
        serve_task = asyncio.create_task(
            server.run(read_stream, write_stream, server.create_initialization_options())
        )
        stop_task = asyncio.create_task(shutdown_event.wait())
        logger.info("MCP stdio server started")
        done, _ = await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

        if stop_task in done:
            logger.info("Shutdown requested, stopping MCP stdio server")
            serve_task.cancel()
        else:
            stop_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await serve_task
        with contextlib.suppress(asyncio.CancelledError):
            await stop_task
    logger.info("MCP stdio server stopped")
