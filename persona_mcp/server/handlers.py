"""
描述: MCP 协议处理器
主要功能:
    - 将工具注册中心 / 资源管理器 / Prompt 模板转换为 mcp.types 对象
    - 工具错误以 JSON (to_dict) 形式回传, 保留 pointer/parameter 诊断信息
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable
from typing import Any

from mcp import types
from mcp.server.lowlevel.helper_types import ReadResourceContents

from persona_mcp.errors import PersonaMCPError
from persona_mcp.prompts import list_prompts, render_prompt
from persona_mcp.resources.manager import ResourceManager
from persona_mcp.tools.registry import ToolRegistry
from persona_mcp.utils.logger import request_id_var, tool_name_var
from persona_mcp.utils.security import redact_sensitive


logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """工具执行失败, 消息体为 JSON 错误结构"""

    def __init__(self, payload: dict[str, Any]) -> None:
        super().__init__(json.dumps(payload, ensure_ascii=False, default=str))
        self.payload = payload


class PersonaMCPHandlers:
    def __init__(self, registry: ToolRegistry, resources: ResourceManager) -> None:
        self.registry = registry
        self.resources = resources

    # region tools
    async def handle_list_tools(self) -> list[types.Tool]:
        tools: list[types.Tool] = []
        for name in self.registry.names():
            tool = self.registry.require(name)
            tools.append(types.Tool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_schema,
                annotations=types.ToolAnnotations(
                    readOnlyHint=tool.read_only,
                    destructiveHint=tool.destructive,
                    idempotentHint=tool.idempotent,
                ),
            ))
        return tools

    async def handle_call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        request_token = request_id_var.set(uuid.uuid4().hex[:12])
        tool_token = tool_name_var.set(name)
        params = dict(arguments or {})
        try:
            logger.info("Tool call", extra={"arguments": redact_sensitive(params)})
            tool = self.registry.require(name)
            result = await tool.run(params)
        except PersonaMCPError as exc:
            logger.warning("Tool call failed", extra={"error_code": exc.code, "error": exc.message})
            raise ToolCallFailed(exc.to_dict()) from exc
        except Exception as exc:
            logger.error("Unexpected tool error", exc_info=True)
            raise ToolCallFailed({"error": "INTERNAL_ERROR", "message": str(exc), "details": {}}) from exc
        finally:
            tool_name_var.reset(tool_token)
            request_id_var.reset(request_token)
        return [types.TextContent(type="text", text=json.dumps(result, ensure_ascii=False, indent=2, default=str))]
    # endregion

    # region resources
    async def handle_list_resources(self) -> list[types.Resource]:
        return [
            types.Resource(uri=info.uri, name=info.name, description=info.description, mimeType=info.mime_type)
            for info in self.resources.list_resources()
        ]

    async def handle_list_resource_templates(self) -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=info.uri,
                name=info.name,
                description=info.description,
                mimeType=info.mime_type,
            )
            for info in self.resources.list_templates()
        ]

    async def handle_read_resource(self, uri: Any) -> Iterable[ReadResourceContents]:
        try:
            content = await self.resources.read(str(uri))
        except PersonaMCPError as exc:
            logger.warning("Resource read failed", extra={"uri": str(uri), "error_code": exc.code})
            raise
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]
    # endregion

    # region prompts
    async def handle_list_prompts(self) -> list[types.Prompt]:
        return [
            types.Prompt(
                name=prompt.name,
                description=prompt.description,
                arguments=[
                    types.PromptArgument(name=arg.name, description=arg.description, required=arg.required)
                    for arg in prompt.arguments
                ],
            )
            for prompt in list_prompts()
        ]

    async def handle_get_prompt(self, name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
        try:
            rendered = render_prompt(
                name,
                arguments or {},
                max_length=self.resources.context.settings.security.max_string_length,
            )
        except PersonaMCPError as exc:
            logger.warning("Prompt rendering failed", extra={"prompt": name, "error_code": exc.code})
            raise
        return types.GetPromptResult(
            description=rendered.description,
            messages=[
                types.PromptMessage(role=message["role"], content=types.TextContent(type="text", text=message["text"]))
                for message in rendered.messages
            ],
        )
    # endregion
