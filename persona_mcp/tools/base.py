"""
描述: MCP 工具基类定义
主要功能:
    - 定义 BaseTool 抽象基类
    - 定义 ToolContext 上下文对象
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from persona_mcp.catalog import ToolCatalog
from persona_mcp.config import Settings
from persona_mcp.persona.client import PersonaClient
from persona_mcp.resources.cache import TTLCache


# region 工具上下文与基类
@dataclass
class ToolContext:
    """工具执行上下文 (依赖注入)"""
    settings: Settings
    client: PersonaClient
    catalog: ToolCatalog
    cache: TTLCache | None = None


class BaseTool(ABC):
    """MCP 工具抽象基类"""
    name: str = "base_tool"
    description: str = "Base tool description"
    read_only: bool = True
    destructive: bool = False
    idempotent: bool = True

    def __init__(self, context: ToolContext) -> None:
        self.context = context

    @property
    def input_schema(self) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "additionalProperties": False}

    def metadata(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "annotations": {
                "readOnlyHint": self.read_only,
                "destructiveHint": self.destructive,
                "idempotentHint": self.idempotent,
            },
        }

    @abstractmethod
    async def run(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        执行工具逻辑

        参数:
            params: 工具参数字典

        返回:
            执行结果字典
        """
        raise NotImplementedError
# endregion
