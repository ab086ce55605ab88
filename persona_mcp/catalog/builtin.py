"""
描述: 内置 Persona 工具目录
主要功能:
    - 登记 Persona 主要资源及其支持的操作
    - 为每个操作生成 ToolSpec (list / retrieve / create / update / redact / 动作接口)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from persona_mcp.catalog.spec import ToolSpec, camel_case, default_input_schema, kebab_case


LIST_QUERY_PARAMS: dict[str, str] = {
    "pageSize": "page[size]",
    "pageAfter": "page[after]",
    "pageBefore": "page[before]",
    "include": "include",
    "sort": "sort",
    "filter": "filter",
}

RETRIEVE_QUERY_PARAMS: dict[str, str] = {
    "include": "include",
    "fields": "fields",
}

WRITE_QUERY_PARAMS: dict[str, str] = {"include": "include"}

IDEMPOTENCY_HEADER: dict[str, str] = {"idempotencyKey": "Idempotency-Key"}


@dataclass(frozen=True)
class ResourceDef:
    """单个 Persona 资源登记"""
    singular: str
    collection: str
    title: str
    id_prefix: str
    actions: tuple[str, ...] = ("list", "retrieve")
    meta_actions: tuple[str, ...] = ()

    @property
    def id_param(self) -> str:
        return camel_case(self.singular) + "Id"

    @property
    def resource_type(self) -> str:
        return kebab_case(self.singular)


RESOURCES: tuple[ResourceDef, ...] = (
    ResourceDef(
        "inquiry", "inquiries", "Inquiry", "inq_",
        actions=("list", "retrieve", "create", "update", "redact"),
        meta_actions=("approve", "decline", "mark_for_review", "expire", "resume", "add_tag", "remove_tag"),
    ),
    ResourceDef(
        "account", "accounts", "Account", "act_",
        actions=("list", "retrieve", "create", "update", "redact"),
        meta_actions=("add_tag", "remove_tag", "consolidate"),
    ),
    ResourceDef(
        "case", "cases", "Case", "case_",
        actions=("list", "retrieve", "create", "update"),
        meta_actions=("assign", "set_status", "add_tag", "remove_tag"),
    ),
    ResourceDef("report", "reports", "Report", "rep_", actions=("list", "retrieve", "create", "redact")),
    ResourceDef(
        "transaction", "transactions", "Transaction", "txn_",
        actions=("list", "retrieve", "create", "redact"),
        meta_actions=("tag",),
    ),
    ResourceDef("verification", "verifications", "Verification", "ver_", actions=("retrieve",)),
    ResourceDef(
        "webhook", "webhooks", "Webhook", "wbh_",
        actions=("list", "retrieve", "create", "update"),
        meta_actions=("archive", "enable", "disable"),
    ),
    ResourceDef("document", "documents", "Document", "doc_", actions=("retrieve",)),
    ResourceDef("device", "devices", "Device", "dev_"),
    ResourceDef("list", "lists", "List", "lst_", meta_actions=("archive",)),
    ResourceDef("inquiry_template", "inquiry-templates", "Inquiry Template", "itmpl_"),
    ResourceDef("inquiry_session", "inquiry-sessions", "Inquiry Session", "iqse_", meta_actions=("expire",)),
    ResourceDef("event", "events", "Event", "evt_"),
    ResourceDef("api_key", "api-keys", "API Key", "api_"),
    ResourceDef("api_log", "api-logs", "API Log", "req_"),
    ResourceDef("client_token", "client-tokens", "Client Token", "ctkn_", actions=("retrieve",)),
    ResourceDef("importer", "importers", "Importer", "mprt_"),
    ResourceDef("user_audit_log", "user-audit-logs", "User Audit Log", "ual_"),
    ResourceDef("workflow_run", "workflow-runs", "Workflow Run", "wfr_", actions=("list", "retrieve", "create")),
)


# region inquiry_create 参数定义
INQUIRY_CREATE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "templateId": {"type": "string", "description": "Legacy template ID starting with tmpl_"},
        "inquiryTemplateId": {"type": "string", "description": "Inquiry template ID starting with itmpl_"},
        "inquiryTemplateVersionId": {
            "type": "string",
            "description": "Inquiry template version ID starting with itmplv_",
        },
        "referenceId": {"type": "string", "description": "Reference ID to refer to an entity in your user model"},
        "accountId": {"type": "string", "description": "Account ID to associate with this inquiry"},
        "creatorEmailAddress": {"type": "string", "description": "Email of the user creating this inquiry"},
        "themeId": {"type": "string", "description": "Theme ID for styling (Legacy 2.0 only)"},
        "themeSetId": {"type": "string", "description": "Theme Set ID for styling (Dynamic Flow only)"},
        "redirectUri": {"type": "string", "description": "Redirect URL after completion (Hosted flow only)"},
        "note": {"type": "string", "description": "Unstructured field for custom use"},
        "initialStepName": {"type": "string", "description": "Alternate initial step (Dynamic Flow only)"},
        "fields": {
            "type": "object",
            "description": "Key-value pairs defined by your template, e.g. nameFirst, nameLast, emailAddress",
        },
        "tags": {"type": "array", "items": {"type": "string"}, "description": "Tag names for the inquiry"},
        "expirationAfterCreateSeconds": {"type": "integer", "minimum": 1},
        "expirationAfterStartSeconds": {"type": "integer", "minimum": 1},
        "expirationAfterResumeSeconds": {"type": "integer", "minimum": 1},
        "oneTimeLinkExpirationSeconds": {"type": "integer", "minimum": 1},
        "idempotencyKey": {"type": "string", "description": "Sent as the Idempotency-Key header"},
        "include": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Related objects to include in the response",
        },
    },
    "anyOf": [
        {"required": ["templateId"]},
        {"required": ["inquiryTemplateId"]},
        {"required": ["inquiryTemplateVersionId"]},
    ],
    "additionalProperties": True,
}
# endregion


def _describe(resource: ResourceDef, action: str) -> str:
    title = resource.title
    lower = title.lower()
    descriptions = {
        "list": f"List {lower}s. Supports pageSize, pageAfter, pageBefore, include, sort and filter keys.",
        "retrieve": f"Retrieve a {lower} by {resource.id_param} (format: {resource.id_prefix}xxx).",
        "create": f"Create a {lower}. Pass attributes at the top level; template data goes in 'fields'.",
        "update": f"Update a {lower}. Pass {resource.id_param} and only the attributes to change.",
        "redact": f"Permanently redact a {lower}'s personal data. This cannot be undone.",
    }
    if action in descriptions:
        return descriptions[action]
    readable = action.replace("_", " ")
    return f"Run the '{readable}' action on a {lower}. Extra parameters are sent as request meta."


def _build_spec(resource: ResourceDef, action: str) -> ToolSpec:
    name = f"{resource.singular}_{action}"
    collection = f"/{resource.collection}"
    item_path = f"{collection}/{{{resource.id_param}}}"
    common: dict[str, Any] = {
        "name": name,
        "description": _describe(resource, action),
        "resource_type": resource.resource_type,
        "id_prefix": resource.id_prefix,
    }
    if action == "list":
        return ToolSpec(
            method="GET", path=collection, query_params=dict(LIST_QUERY_PARAMS),
            body_style="none", read_only=True, idempotent=True, **common,
        )
    if action == "retrieve":
        return ToolSpec(
            method="GET", path=item_path, query_params=dict(RETRIEVE_QUERY_PARAMS),
            body_style="none", read_only=True, idempotent=True, **common,
        )
    if action == "create":
        return ToolSpec(
            method="POST", path=collection, query_params=dict(WRITE_QUERY_PARAMS),
            header_params=dict(IDEMPOTENCY_HEADER), **common,
        )
    if action == "update":
        return ToolSpec(
            method="PATCH", path=item_path, query_params=dict(WRITE_QUERY_PARAMS),
            header_params=dict(IDEMPOTENCY_HEADER), idempotent=True, **common,
        )
    if action == "redact":
        return ToolSpec(method="DELETE", path=item_path, body_style="none", destructive=True, **common)
    return ToolSpec(
        method="POST",
        path=f"{item_path}/{kebab_case(action)}",
        header_params=dict(IDEMPOTENCY_HEADER),
        body_style="meta",
        **common,
    )


def builtin_specs() -> list[ToolSpec]:
    """生成内置目录的全部 ToolSpec"""
    specs: list[ToolSpec] = []
    for resource in RESOURCES:
        for action in resource.actions + resource.meta_actions:
            spec = _build_spec(resource, action)
            if spec.name == "inquiry_create":
                spec = replace(spec, input_schema=INQUIRY_CREATE_SCHEMA)
            elif not spec.input_schema:
                spec = replace(spec, input_schema=default_input_schema(spec))
            specs.append(spec)
    return specs


def resource_by_collection(collection: str) -> ResourceDef | None:
    for resource in RESOURCES:
        if resource.collection == collection:
            return resource
    return None
