"""
描述: OpenAPI 文档 -> ToolSpec 生成器
主要功能:
    - 读取 YAML/JSON 格式的 OpenAPI 描述
    - 由 operationId 推导工具名 (list-all-accounts -> account_list)
    - 区分路径/查询/请求头参数, 识别 data.attributes 与 meta 请求体
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from persona_mcp.catalog.spec import ToolSpec, camel_case
from persona_mcp.errors import ConfigurationError


logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "patch", "put", "delete")
TOOL_NAME_PATTERN = re.compile(r"^[a-z_]+$")

_NAME_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("list-all-",), "list"),
    (("create-an-", "create-a-"), "create"),
    (("retrieve-an-", "retrieve-a-"), "retrieve"),
    (("update-an-", "update-a-"), "update"),
    (("redact-an-", "redact-a-"), "redact"),
)


def load_openapi_document(path: str | Path) -> dict[str, Any]:
    spec_path = Path(path)
    if not spec_path.exists():
        raise ConfigurationError(f"OpenAPI document not found: {spec_path}")
    document = yaml.safe_load(spec_path.read_text(encoding="utf-8")) or {}
    if not isinstance(document, dict) or not isinstance(document.get("paths"), dict):
        raise ConfigurationError(f"OpenAPI document has no 'paths' mapping: {spec_path}")
    return document


def tool_name_from_operation(operation_id: str) -> str:
    """
    operationId -> 工具名

    示例:
        list-all-accounts -> account_list
        create-an-inquiry -> inquiry_create
        inquiry-approve -> inquiry_approve
    """
    name = operation_id.strip().lower()
    for prefixes, action in _NAME_RULES:
        for prefix in prefixes:
            if name.startswith(prefix):
                resource = name[len(prefix):]
                if action == "list":
                    resource = _singular(resource)
                return f"{resource.replace('-', '_')}_{action}"
    return name.replace("-", "_")


def _singular(plural: str) -> str:
    if plural.endswith("ies"):
        return plural[:-3] + "y"
    if plural.endswith("s"):
        return plural[:-1]
    return plural


def _resolve_ref(document: dict[str, Any], node: Any, depth: int = 0) -> Any:
    if not isinstance(node, dict) or "$ref" not in node or depth > 16:
        return node
    ref = node["$ref"]
    if not isinstance(ref, str) or not ref.startswith("#/"):
        return {}
    target: Any = document
    for part in ref[2:].split("/"):
        if not isinstance(target, dict):
            return {}
        target = target.get(part.replace("~1", "/").replace("~0", "~"), {})
    return _resolve_ref(document, target, depth + 1)


def _body_properties(document: dict[str, Any], operation: dict[str, Any]) -> tuple[str, dict[str, Any], list[str]]:
    """返回 (body_style, properties, required)"""
    body = _resolve_ref(document, operation.get("requestBody"))
    if not isinstance(body, dict):
        return "none", {}, []
    content = body.get("content") or {}
    media = content.get("application/json") or next(iter(content.values()), None)
    schema = _resolve_ref(document, (media or {}).get("schema"))
    if not isinstance(schema, dict):
        return "attributes", {}, []
    top = schema.get("properties") or {}

    data = _resolve_ref(document, top.get("data"))
    if isinstance(data, dict):
        attributes = _resolve_ref(document, (data.get("properties") or {}).get("attributes"))
        if isinstance(attributes, dict):
            return (
                "attributes",
                {camel_case(k): _resolve_ref(document, v) for k, v in (attributes.get("properties") or {}).items()},
                [camel_case(k) for k in attributes.get("required") or []],
            )
        return "attributes", {}, []

    meta = _resolve_ref(document, top.get("meta"))
    if isinstance(meta, dict):
        return (
            "meta",
            {camel_case(k): _resolve_ref(document, v) for k, v in (meta.get("properties") or {}).items()},
            [camel_case(k) for k in meta.get("required") or []],
        )
    return "attributes", {}, []


def _operation_to_spec(
    document: dict[str, Any],
    path: str,
    method: str,
    operation: dict[str, Any],
    shared_parameters: list[Any],
) -> ToolSpec | None:
    operation_id = operation.get("operationId")
    if not operation_id:
        return None
    name = tool_name_from_operation(str(operation_id))
    if not TOOL_NAME_PATTERN.match(name):
        logger.warning(
            "Skipping OpenAPI operation with unsupported tool name",
            extra={"operation_id": operation_id, "tool_name": name},
        )
        return None

    properties: dict[str, Any] = {}
    required: list[str] = []
    query_params: dict[str, str] = {}
    header_params: dict[str, str] = {}
    tool_path = path

    for raw in [*shared_parameters, *(operation.get("parameters") or [])]:
        param = _resolve_ref(document, raw)
        if not isinstance(param, dict) or not param.get("name"):
            continue
        wire_name = str(param["name"])
        location = param.get("in")
        schema = dict(_resolve_ref(document, param.get("schema")) or {})
        if param.get("description"):
            schema.setdefault("description", param["description"])
        if location == "path":
            param_name = camel_case(wire_name)
            tool_path = tool_path.replace(f"{{{wire_name}}}", f"{{{param_name}}}")
            schema["type"] = "string"
            properties[param_name] = schema
            required.append(param_name)
        elif location == "query":
            param_name = wire_name if "[" in wire_name else camel_case(wire_name)
            query_params[param_name] = wire_name
            properties[param_name] = schema
            if param.get("required"):
                required.append(param_name)
        elif location == "header" and wire_name.lower() not in ("authorization", "persona-version", "key-inflection"):
            param_name = camel_case(wire_name.lower())
            header_params[param_name] = wire_name
            properties[param_name] = schema

    body_style, body_props, body_required = _body_properties(document, operation)
    if method == "get":
        body_style = "none"
    for key, value in body_props.items():
        properties.setdefault(key, value if isinstance(value, dict) else {})
    required.extend(key for key in body_required if key not in required)

    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "additionalProperties": True,
    }
    if required:
        input_schema["required"] = required

    segments = [segment for segment in path.split("/") if segment and not segment.startswith("{")]
    return ToolSpec(
        name=name,
        method=method.upper(),
        path=tool_path,
        description=str(operation.get("summary") or operation.get("description") or f"{method.upper()} {path}"),
        resource_type=_singular(segments[0]) if segments else None,
        query_params=query_params,
        header_params=header_params,
        body_style=body_style,  # type: ignore[arg-type]
        input_schema=input_schema,
        read_only=method == "get",
        destructive=method == "delete",
        idempotent=method in ("get", "put", "patch"),
    )


def specs_from_document(document: dict[str, Any], tags: list[str] | None = None) -> list[ToolSpec]:
    """遍历 paths 生成 ToolSpec, 可按 tag 过滤"""
    specs: list[ToolSpec] = []
    wanted = {tag.lower() for tag in tags or []}
    for path, path_item in (document.get("paths") or {}).items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters") or []
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            if wanted and not wanted & {str(tag).lower() for tag in operation.get("tags") or []}:
                continue
            spec = _operation_to_spec(document, str(path), method, operation, shared)
            if spec is not None:
                specs.append(spec)
    logger.info("Generated tools from OpenAPI document", extra={"tool_count": len(specs)})
    return specs


def load_openapi_specs(path: str | Path) -> list[ToolSpec]:
    return specs_from_document(load_openapi_document(path))
