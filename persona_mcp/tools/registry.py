"""
描述: MCP 工具注册中心
主要功能:
    - 统一管理所有 MCP 工具的注册
    - 提供工具查找与元数据列表功能
    - 按配置过滤 (tools.enabled / tools.read_only)
"""

from __future__ import annotations

import logging
from typing import Any

from persona_mcp.errors import ToolNotFound
from persona_mcp.tools.base import BaseTool, ToolContext


# region 工具注册中心
class ToolRegistry:
    """工具注册中心"""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._logger = logging.getLogger(__name__)

    def register(self, tool: BaseTool) -> BaseTool:
        if not tool.name:
            self._logger.warning(
                "Tool %s has no 'name' attribute, skipping registration",
                type(tool).__name__,
            )
            return tool
        if tool.name in self._tools:
            self._logger.warning("Tool %s already registered, overwriting", tool.name)
        self._tools[tool.name] = tool
        return tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def require(self, name: str) -> BaseTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(name)
        return tool

    def names(self) -> list[str]:
        return sorted(self._tools)

    def list_tools(self) -> list[dict[str, Any]]:
        """获取所有已注册工具的元数据"""
        return [self._tools[name].metadata() for name in self.names()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
# endregion


def build_registry(context: ToolContext) -> ToolRegistry:
    """根据目录与配置构建注册中心"""
    from persona_mcp.tools.api import ApiTool
    from persona_mcp.tools.meta import ListCapabilitiesTool

    tools_settings = context.settings.tools
    enabled = set(tools_settings.enabled)
    registry = ToolRegistry()
    skipped = 0
    for spec in context.catalog.specs():
        if enabled and spec.name not in enabled:
            skipped += 1
            continue
        if tools_settings.read_only and not spec.read_only:
            skipped += 1
            continue
        registry.register(ApiTool(context, spec))
    registry.register(ListCapabilitiesTool(context, registry))

    registry._logger.info(
        "Tool registry built",
        extra={"tools": len(registry), "skipped": skipped, "read_only": tools_settings.read_only},
    )
    return registry
