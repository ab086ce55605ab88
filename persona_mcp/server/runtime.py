"""
描述: 运行时组件装配
主要功能:
    - 由 Settings 构建 客户端 / 目录 / 缓存 / 工具注册中心 / 资源管理器
    - stdio 与 HTTP 两种入口共用
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from persona_mcp.catalog import ToolCatalog, build_catalog
from persona_mcp.config import Settings
from persona_mcp.persona.client import PersonaClient
from persona_mcp.resources.cache import TTLCache
from persona_mcp.resources.manager import ResourceManager
from persona_mcp.server.handlers import PersonaMCPHandlers
from persona_mcp.tools.base import ToolContext
from persona_mcp.tools.registry import ToolRegistry, build_registry


logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    client: PersonaClient
    catalog: ToolCatalog
    cache: TTLCache | None
    registry: ToolRegistry
    resources: ResourceManager

    @property
    def handlers(self) -> PersonaMCPHandlers:
        return PersonaMCPHandlers(self.registry, self.resources)


def build_runtime(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
    catalog: ToolCatalog | None = None,
) -> Runtime:
    """
    装配运行时组件

    参数:
        settings: 全局配置对象
        transport: 自定义 httpx 传输层 (测试用)
        catalog: 预构建的工具目录 (默认内置目录 + openapi.spec_path)
    """
    client = PersonaClient(settings, transport=transport)
    if catalog is None:
        catalog = build_catalog(settings.openapi.spec_path)
    cache = None
    if settings.cache.enabled:
        cache = TTLCache(max_size=settings.cache.max_size, ttl_seconds=settings.cache.ttl_seconds)

    context = ToolContext(settings=settings, client=client, catalog=catalog, cache=cache)
    registry = build_registry(context)
    resources = ResourceManager(context, tool_lister=registry.list_tools)
    logger.info(
        "Runtime ready",
        extra={"tools": len(registry), "catalog": len(catalog), "cache_enabled": cache is not None},
    )
    return Runtime(
        settings=settings,
        client=client,
        catalog=catalog,
        cache=cache,
        registry=registry,
        resources=resources,
    )
