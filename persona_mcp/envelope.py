"""
描述: JSON:API 信封转换器
主要功能:
    - encode: 工具名 + 扁平参数 -> HTTP 方法/路径/查询参数/请求头/JSON:API 请求体
    - decode: HTTP 状态码 + 响应体 -> 扁平结果, 或抛出结构化错误

两个函数均为纯函数, 不持有状态, 不发起网络请求, 不重试.
"""

from __future__ import annotations

import copy
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any
from urllib.parse import quote

from pydantic import ValidationError

from persona_mcp.catalog import ToolCatalog
from persona_mcp.catalog.spec import ToolSpec, infer_spec
from persona_mcp.errors import (
    DomainError,
    InvalidToolName,
    MalformedInvocation,
    UnparseableResponse,
    UpstreamError,
)
from persona_mcp.persona.models import APIErrorResponse, ResourceEnvelope
from persona_mcp.persona.query import build_query_params


TOOL_NAME_PATTERN = re.compile(r"^[a-z_]+$")

# 调用方不得自行包装请求体
RESERVED_KEYS = frozenset({"data", "attributes"})


@dataclass
class EncodedRequest:
    """encode 的输出, 交给 HTTP 客户端发送"""
    method: str
    path: str
    body: dict[str, Any] | None = None
    query: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


# region encode
def validate_tool_name(tool_name: Any) -> str:
    if not isinstance(tool_name, str) or not TOOL_NAME_PATTERN.fullmatch(tool_name):
        raise InvalidToolName(tool_name)
    return tool_name


def _path_value(spec: ToolSpec, name: str, value: Any) -> str:
    if isinstance(value, bool) or value is None:
        raise MalformedInvocation(
            f"Missing required identifier '{name}' for tool '{spec.name}'",
            tool_name=spec.name,
            parameter=name,
        )
    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, str) or not value.strip():
        raise MalformedInvocation(
            f"Identifier '{name}' for tool '{spec.name}' must be a non-empty string",
            tool_name=spec.name,
            parameter=name,
        )
    return value


def encode(
    tool_name: str,
    params: Mapping[str, Any] | None = None,
    catalog: ToolCatalog | None = None,
) -> EncodedRequest:
    """
    将工具调用转换为 JSON:API 请求

    参数:
        tool_name: 工具名, 必须匹配 ^[a-z_]+$
        params: 扁平参数 (驼峰命名), 不得包含 data/attributes 顶层键
        catalog: 工具目录; 未登记的工具名按命名约定推断

    返回:
        EncodedRequest. 路径标识符、请求头参数 (如 idempotencyKey) 与写操作声明的
        查询参数 (如 include) 不进入请求体, decode(200, body) 的结果中没有这些键

    抛出:
        InvalidToolName: 工具名不合法
        MalformedInvocation: 参数预包装或缺失必需标识符
    """
    validate_tool_name(tool_name)
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise MalformedInvocation(
            f"Parameters for tool '{tool_name}' must be an object",
            tool_name=tool_name,
        )
    for key in params:
        if key in RESERVED_KEYS:
            raise MalformedInvocation(
                f"Parameter '{key}' is reserved; pass attributes as flat parameters",
                tool_name=tool_name,
                parameter=key,
            )

    spec = catalog.resolve(tool_name, dict(params)) if catalog else infer_spec(tool_name, dict(params))
    remaining = dict(params)

    path = spec.path
    for name in spec.path_params:
        value = _path_value(spec, name, remaining.pop(name, None))
        path = path.replace(f"{{{name}}}", quote(value, safe=""))

    headers: dict[str, str] = {}
    for name, header in spec.header_params.items():
        value = remaining.pop(name, None)
        if value is not None and value != "":
            headers[header] = str(value)

    if spec.is_read:
        query_input = {spec.query_params.get(name, name): value for name, value in remaining.items()}
        return EncodedRequest(
            method=spec.method,
            path=path,
            query=build_query_params(query_input, spec.resource_type),
            headers=headers,
        )

    query_input = {
        spec.query_params[name]: remaining.pop(name)
        for name in list(remaining)
        if name in spec.query_params
    }
    query = build_query_params(query_input, spec.resource_type)

    payload = copy.deepcopy(remaining)
    body: dict[str, Any] | None
    if spec.body_style == "meta":
        body = {"meta": payload}
    elif spec.body_style == "none":
        body = None
    else:
        body = {"data": {"attributes": payload}}
    return EncodedRequest(method=spec.method, path=path, body=body, query=query, headers=headers)
# endregion


# region decode
def _reason_phrase(http_status: int) -> str:
    try:
        return HTTPStatus(http_status).phrase
    except ValueError:
        return f"HTTP {http_status}"


def _coerce_body(http_status: int, body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as exc:
            raise UnparseableResponse(http_status, "body is not valid JSON", body) from exc
    return body


def _upstream_error(http_status: int, body: Mapping[str, Any]) -> UpstreamError | UnparseableResponse:
    try:
        envelope = APIErrorResponse.model_validate(body)
    except ValidationError:
        return UnparseableResponse(http_status, "malformed errors array", dict(body))
    if not envelope.errors:
        return UnparseableResponse(http_status, "empty errors array", dict(body))
    fallback = _reason_phrase(http_status)
    return UpstreamError(http_status, [error.to_domain(fallback) for error in envelope.errors])


def decode(http_status: int, body: Any) -> dict[str, Any]:
    """
    将 Persona 响应转换为扁平结果

    参数:
        http_status: HTTP 状态码
        body: 已解析的 JSON (dict) 或原始文本

    返回:
        单个资源: attributes 合并 id/type 的扁平字典
        资源列表: {"items": [...], "links": ..., "meta": ...}
        空响应体: {}

    抛出:
        UpstreamError: 响应体为 JSON:API 错误信封, 每个错误项对应一个 DomainError
        UnparseableResponse: 响应体不属于任何已知结构
    """
    body = _coerce_body(http_status, body)
    success = 200 <= http_status < 300

    if body is None:
        if success:
            return {}
        raise UpstreamError(
            http_status,
            [DomainError(status=str(http_status), title=_reason_phrase(http_status))],
        )

    if not isinstance(body, Mapping):
        raise UnparseableResponse(http_status, f"expected a JSON object, got {type(body).__name__}", body)

    if isinstance(body.get("errors"), list):
        raise _upstream_error(http_status, body)

    if not success:
        raise UnparseableResponse(http_status, "error status without an errors array", dict(body))

    if "data" not in body:
        if isinstance(body.get("meta"), Mapping):
            return copy.deepcopy(dict(body["meta"]))
        raise UnparseableResponse(http_status, "missing 'data' member", dict(body))

    try:
        envelope = ResourceEnvelope.model_validate(body)
    except ValidationError as exc:
        raise UnparseableResponse(http_status, "malformed 'data' member", dict(body)) from exc

    if envelope.data is None:
        return {}
    if isinstance(envelope.data, list):
        result: dict[str, Any] = {"items": [item.flatten() for item in envelope.data]}
        if envelope.links:
            result["links"] = envelope.links
        if envelope.meta:
            result["meta"] = envelope.meta
    else:
        result = envelope.data.flatten()
    if envelope.included:
        result["included"] = [item.flatten() for item in envelope.included]
    return result
# endregion


class EnvelopeTranslator:
    """绑定工具目录的 encode/decode"""

    def __init__(self, catalog: ToolCatalog | None = None) -> None:
        self.catalog = catalog

    def encode(self, tool_name: str, params: Mapping[str, Any] | None = None) -> EncodedRequest:
        return encode(tool_name, params, self.catalog)

    def decode(self, http_status: int, body: Any) -> dict[str, Any]:
        return decode(http_status, body)
