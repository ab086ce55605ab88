"""
描述: 工具规格 (ToolSpec) 定义与命名约定推断
主要功能:
    - 描述单个 Persona 接口: 方法、路径模板、路径/查询/请求头参数、请求体风格
    - 根据 <resource>_<action> 命名约定推断未登记工具的规格
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Literal


BodyStyle = Literal["attributes", "meta", "none"]

_PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z][A-Za-z0-9]*)\}")

CRUD_ACTIONS: dict[str, str] = {
    "list": "GET",
    "retrieve": "GET",
    "create": "POST",
    "update": "PATCH",
    "redact": "DELETE",
    "delete": "DELETE",
}

IRREGULAR_PLURALS: dict[str, str] = {
    "inquiry": "inquiries",
    "inquiry_session": "inquiry-sessions",
    "inquiry_template": "inquiry-templates",
    "user_audit_log": "user-audit-logs",
    "workflow_run": "workflow-runs",
    "api_key": "api-keys",
    "api_log": "api-logs",
    "client_token": "client-tokens",
}

# 复合资源名需先于单词资源匹配
COMPOUND_RESOURCES: tuple[str, ...] = (
    "inquiry_session",
    "inquiry_template",
    "user_audit_log",
    "workflow_run",
    "api_key",
    "api_log",
    "client_token",
)


# region 工具规格
@dataclass(frozen=True)
class ToolSpec:
    """
    单个工具的接口规格

    属性:
        path: 路径模板, 占位符使用驼峰参数名 (如 /accounts/{accountId})
        query_params: 工具参数名 -> 查询字符串键
        header_params: 工具参数名 -> 请求头名
        body_style: attributes (data.attributes) / meta / none
    """
    name: str
    method: str
    path: str
    description: str = ""
    resource_type: str | None = None
    query_params: dict[str, str] = field(default_factory=dict)
    header_params: dict[str, str] = field(default_factory=dict)
    body_style: BodyStyle = "attributes"
    input_schema: dict[str, Any] = field(default_factory=dict)
    id_prefix: str | None = None
    read_only: bool = False
    destructive: bool = False
    idempotent: bool = False
    inferred: bool = False

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(_PLACEHOLDER_PATTERN.findall(self.path))

    @property
    def is_read(self) -> bool:
        return self.method == "GET"

    @property
    def collection(self) -> str:
        """路径首段 (如 /accounts/{accountId} -> accounts)"""
        segments = [segment for segment in self.path.split("/") if segment]
        return segments[0] if segments else ""

    def schema(self) -> dict[str, Any]:
        if self.input_schema:
            return self.input_schema
        return default_input_schema(self)
# endregion


# region 命名约定
def camel_case(name: str) -> str:
    """kebab-case / snake_case -> lowerCamelCase"""
    return re.sub(r"[-_]([a-z0-9])", lambda match: match.group(1).upper(), name)


def kebab_case(name: str) -> str:
    return name.replace("_", "-")


def pluralize(resource: str) -> str:
    if resource in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[resource]
    word = kebab_case(resource)
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


def split_tool_name(tool_name: str) -> tuple[str, str]:
    """拆分为 (resource, action)"""
    for resource in COMPOUND_RESOURCES:
        if tool_name.startswith(resource + "_"):
            return resource, tool_name[len(resource) + 1:]
    head, sep, tail = tool_name.partition("_")
    if not sep:
        return "", tool_name
    return head, tail


def infer_spec(tool_name: str, params: dict[str, Any] | None = None) -> ToolSpec:
    """
    根据命名约定推断工具规格

    规则:
        - <resource>_list / _create: 作用于集合路径
        - <resource>_retrieve / _update / _redact: 作用于 /<plural>/{<resource>Id}
        - 其他动作: POST /<plural>/{<resource>Id}/<action-kebab>, 参数放入 meta
        - 无下划线的名称视为集合级动作
        - 其他动作在给定 params 且其中没有 <resource>Id 时退回集合路径;
          retrieve / update / redact 始终需要标识符
    """
    resource, action = split_tool_name(tool_name)
    if not resource:
        return ToolSpec(
            name=tool_name,
            method="POST",
            path="/" + kebab_case(action).strip("-"),
            inferred=True,
        )

    collection = "/" + pluralize(resource).strip("-")
    id_param = camel_case(resource) + "Id"
    item_path = f"{collection}/{{{id_param}}}"
    action_base = item_path
    if params is not None and id_param not in params:
        action_base = collection
    resource_type = kebab_case(resource)

    if action == "list":
        return ToolSpec(
            name=tool_name, method="GET", path=collection, resource_type=resource_type,
            body_style="none", read_only=True, idempotent=True, inferred=True,
        )
    if action == "create":
        return ToolSpec(
            name=tool_name, method="POST", path=collection, resource_type=resource_type,
            inferred=True,
        )
    if action == "retrieve":
        return ToolSpec(
            name=tool_name, method="GET", path=item_path, resource_type=resource_type,
            body_style="none", read_only=True, idempotent=True, inferred=True,
        )
    if action == "update":
        return ToolSpec(
            name=tool_name, method="PATCH", path=item_path, resource_type=resource_type,
            idempotent=True, inferred=True,
        )
    if action in ("redact", "delete"):
        return ToolSpec(
            name=tool_name, method="DELETE", path=item_path, resource_type=resource_type,
            body_style="none", destructive=True, inferred=True,
        )
    action_path = kebab_case(action).strip("-")
    return ToolSpec(
        name=tool_name,
        method="POST",
        path=f"{action_base}/{action_path}" if action_path else action_base,
        resource_type=resource_type,
        body_style="meta",
        inferred=True,
    )


def default_input_schema(spec: ToolSpec) -> dict[str, Any]:
    """路径参数必填, 其余参数透传"""
    properties: dict[str, Any] = {}
    for param in spec.path_params:
        schema: dict[str, Any] = {
            "type": "string",
            "minLength": 1,
            "description": f"Identifier substituted into {spec.path}",
        }
        if spec.id_prefix:
            schema["description"] = (
                f"Identifier substituted into {spec.path} (format: {spec.id_prefix}xxx)"
            )
        properties[param] = schema
    for param in spec.query_params:
        properties.setdefault(param, {"description": f"Query parameter {spec.query_params[param]}"})
    for param, header in spec.header_params.items():
        properties.setdefault(param, {"type": "string", "description": f"Sent as the {header} header"})
    if spec.body_style == "attributes" and not spec.is_read:
        properties.setdefault(
            "fields",
            {"type": "object", "description": "Template-defined fields, passed through verbatim"},
        )
    schema = {
        "type": "object",
        "properties": properties,
        "additionalProperties": True,
    }
    if spec.path_params:
        schema["required"] = list(spec.path_params)
    return schema
# endregion
