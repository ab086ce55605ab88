"""
描述: 服务自描述工具
主要功能:
    - list_capabilities: 返回 API 地址、可用工具、资源 URI 与 Prompt 列表
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from persona_mcp.prompts import list_prompts
from persona_mcp.tools.base import BaseTool, ToolContext

if TYPE_CHECKING:
    from persona_mcp.tools.registry import ToolRegistry


class ListCapabilitiesTool(BaseTool):
    name = "list_capabilities"
    description = "List the Persona API tools, resource URIs and prompts this server exposes."

    def __init__(self, context: ToolContext, registry: ToolRegistry) -> None:
        super().__init__(context)
        self._registry = registry

    async def run(self, params: dict[str, Any]) -> dict[str, Any]:
        from persona_mcp.resources.manager import resource_uri_templates

        settings = self.context.settings
        return {
            "server": {
                "name": settings.server.name,
                "version": settings.server.version,
                "description": settings.server.description,
            },
            "apiUrl": settings.persona.api_url,
            "apiVersion": settings.persona.api_version,
            "readOnly": settings.tools.read_only,
            "tools": [name for name in self._registry.names() if name != self.name],
            "resources": resource_uri_templates(self.context.catalog),
            "prompts": [prompt.name for prompt in list_prompts()],
        }
