"""
描述: Persona API 工具
主要功能:
    - 每个 ToolSpec 对应一个 ApiTool 实例
    - encode -> 标识符校验 -> HTTP 请求 -> decode
    - 写操作成功后失效对应集合的资源缓存
"""

from __future__ import annotations

import logging
from typing import Any

from persona_mcp.catalog.spec import ToolSpec
from persona_mcp.envelope import decode, encode
from persona_mcp.tools.base import BaseTool, ToolContext
from persona_mcp.utils.security import check_identifiers


logger = logging.getLogger(__name__)


class ApiTool(BaseTool):
    def __init__(self, context: ToolContext, spec: ToolSpec) -> None:
        super().__init__(context)
        self.spec = spec
        self.name = spec.name
        self.description = spec.description or f"{spec.method} {spec.path}"
        self.read_only = spec.read_only
        self.destructive = spec.destructive
        self.idempotent = spec.idempotent

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.spec.schema()

    async def run(self, params: dict[str, Any]) -> dict[str, Any]:
        request = encode(self.name, params, self.context.catalog)
        if self.context.settings.security.validate_ids:
            check_identifiers(self.name, params, self.spec.path_params)

        response = await self.context.client.request(
            request.method,
            request.path,
            params=request.query or None,
            json_body=request.body,
            headers=request.headers or None,
        )
        result = decode(response.status_code, response.body)

        cache = self.context.cache
        if cache is not None and not self.spec.is_read:
            dropped = cache.invalidate_prefix(f"persona://{self.spec.collection}")
            if dropped:
                logger.debug(
                    "Invalidated cached resources after write",
                    extra={"collection": self.spec.collection, "dropped": dropped},
                )
        return result
