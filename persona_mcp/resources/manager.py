"""
描述: MCP 资源管理器
主要功能:
    - persona://<collection>[/<id>][?query] 只读数据视图
    - openapi://usage-guide|schemas|tools|openapi.yaml 文档资源
    - 读取结果写入 TTL 缓存
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from persona_mcp.catalog import ToolCatalog
from persona_mcp.catalog.builtin import resource_by_collection
from persona_mcp.envelope import decode
from persona_mcp.errors import ResourceNotFound, UpstreamError
from persona_mcp.persona.query import build_query_params
from persona_mcp.resources.docs import schemas_summary, usage_guide
from persona_mcp.tools.base import ToolContext
from persona_mcp.utils.security import validate_resource_id


logger = logging.getLogger(__name__)

JSON_MIME = "application/json"

DOC_RESOURCES: tuple[tuple[str, str, str, str], ...] = (
    ("openapi://openapi.yaml", "OpenAPI Specification",
     "OpenAPI document for the Persona API configured for this server", "application/x-yaml"),
    ("openapi://usage-guide", "MCP Usage Guide",
     "How to use this MCP server, with parameter conventions and workflows", "text/markdown"),
    ("openapi://schemas", "API Schemas",
     "ID formats, pagination parameters and request body patterns", JSON_MIME),
    ("openapi://tools", "Available Tools",
     "Every tool exposed by this server with its input schema", JSON_MIME),
)


@dataclass(frozen=True)
class ResourceInfo:
    uri: str
    name: str
    description: str
    mime_type: str = JSON_MIME


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    mime_type: str
    text: str


def _readable_collections(catalog: ToolCatalog) -> list[str]:
    """目录中存在 GET 工具的集合"""
    return sorted({spec.collection for spec in catalog.specs() if spec.is_read and spec.collection})


def resource_uri_templates(catalog: ToolCatalog) -> list[str]:
    uris: list[str] = []
    for collection in _readable_collections(catalog):
        uris.append(f"persona://{collection}")
        uris.append(f"persona://{collection}/{{id}}")
    uris.extend(uri for uri, *_ in DOC_RESOURCES)
    return uris


def _parse_query(query: str) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for key, value in parse_qsl(query, keep_blank_values=False):
        try:
            params[key] = json.loads(value)
        except ValueError:
            params[key] = value
    return params


class ResourceManager:
    """
    资源管理器

    功能:
        - 列出资源与资源模板
        - 解析 URI 并读取内容 (经缓存)
    """
    def __init__(
        self,
        context: ToolContext,
        tool_lister: Callable[[], list[dict[str, Any]]] | None = None,
    ) -> None:
        self.context = context
        self._tool_lister = tool_lister

    # region 列表
    def list_resources(self) -> list[ResourceInfo]:
        resources: list[ResourceInfo] = []
        for collection in _readable_collections(self.context.catalog):
            definition = resource_by_collection(collection)
            title = definition.title if definition else collection.replace("-", " ")
            resources.append(ResourceInfo(
                uri=f"persona://{collection}",
                name=f"All {collection.replace('-', ' ').title()}",
                description=f"List of {title.lower()} objects from your organization",
            ))
        for uri, name, description, mime_type in DOC_RESOURCES:
            if uri == "openapi://openapi.yaml" and not self.context.settings.openapi.spec_path:
                continue
            resources.append(ResourceInfo(uri, name, description, mime_type))
        return resources

    def list_templates(self) -> list[ResourceInfo]:
        templates: list[ResourceInfo] = []
        for collection in _readable_collections(self.context.catalog):
            definition = resource_by_collection(collection)
            title = definition.title if definition else collection
            id_format = f"{definition.id_prefix}xxx" if definition else "xxx_yyy"
            templates.append(ResourceInfo(
                uri=f"persona://{collection}/{{id}}",
                name=f"Individual {title}",
                description=f"Get a specific {title.lower()} by ID (format: {id_format})",
            ))
        return templates
    # endregion

    # region 读取
    async def read(self, uri: str) -> ResourceContent:
        """
        读取资源内容

        抛出:
            ResourceNotFound: URI 非法或资源不存在
            UpstreamError: Persona 返回非 404 错误
        """
        parts = urlsplit(uri)
        if parts.scheme == "openapi":
            return self._read_doc(uri, parts.netloc or parts.path.lstrip("/"))
        if parts.scheme != "persona":
            raise ResourceNotFound(uri, f"unsupported scheme '{parts.scheme}'")

        cache = self.context.cache
        if cache is not None:
            cached = cache.get(uri)
            if cached is not None:
                logger.debug("Resource cache hit", extra={"uri": uri})
                return cached

        collection = parts.netloc
        if collection not in _readable_collections(self.context.catalog):
            raise ResourceNotFound(uri, f"unknown collection '{collection}'")
        segments = [unquote(segment) for segment in parts.path.split("/") if segment]
        if len(segments) > 1:
            raise ResourceNotFound(uri, "expected persona://<collection> or persona://<collection>/<id>")

        definition = resource_by_collection(collection)
        resource_type = definition.resource_type if definition else None
        path = f"/{collection}"
        if segments:
            resource_id = segments[0]
            if not validate_resource_id(resource_id):
                raise ResourceNotFound(uri, f"invalid resource id '{resource_id}'")
            path = f"{path}/{resource_id}"

        query = build_query_params(_parse_query(parts.query), resource_type)
        response = await self.context.client.request("GET", path, params=query or None)
        try:
            result = decode(response.status_code, response.body)
        except UpstreamError as exc:
            if exc.http_status == 404:
                raise ResourceNotFound(uri, "not found upstream") from exc
            raise

        content = ResourceContent(uri=uri, mime_type=JSON_MIME, text=json.dumps(result, ensure_ascii=False, indent=2))
        if cache is not None:
            cache.set(uri, content)
        logger.info("Resource read", extra={"uri": uri, "status_code": response.status_code})
        return content

    def _read_doc(self, uri: str, name: str) -> ResourceContent:
        if name == "usage-guide":
            text = usage_guide(_readable_collections(self.context.catalog))
            return ResourceContent(uri, "text/markdown", text)
        if name == "schemas":
            return ResourceContent(uri, JSON_MIME, json.dumps(schemas_summary(), indent=2))
        if name == "tools":
            tools = self._tool_lister() if self._tool_lister else [
                {"name": spec.name, "description": spec.description, "inputSchema": spec.schema()}
                for spec in self.context.catalog.specs()
            ]
            return ResourceContent(uri, JSON_MIME, json.dumps({"tools": tools, "total": len(tools)}, indent=2))
        if name == "openapi.yaml":
            spec_path = self.context.settings.openapi.spec_path
            if not spec_path or not Path(spec_path).exists():
                raise ResourceNotFound(uri, "no OpenAPI document configured")
            return ResourceContent(uri, "application/x-yaml", Path(spec_path).read_text(encoding="utf-8"))
        raise ResourceNotFound(uri, f"unknown documentation resource '{name}'")
    # endregion
