"""
描述: openapi:// 文档类资源内容
主要功能:
    - 使用指南 (Markdown)
    - API 结构摘要 (ID 格式, 分页参数, 请求体模式)
"""

from __future__ import annotations

from typing import Any

from persona_mcp.catalog.builtin import RESOURCES


def usage_guide(collections: list[str]) -> str:
    list_lines = "\n".join(f"- `persona://{collection}`" for collection in collections)
    return f"""# Persona API MCP Server - Usage Guide

## Overview
This server exposes the Persona identity-verification API as MCP tools,
resources and prompts. Tools perform reads and writes; resources are
read-only views; prompts are guided workflows for inquiries.

## Tool naming
Tools are named `<resource>_<action>`, e.g. `inquiry_create`,
`account_update`, `inquiry_approve`. Call `list_capabilities` to see every
tool this server currently exposes.

## Parameters
- Pass parameters flat, in camelCase. Never wrap them in `data` or `attributes`.
- Identifiers (`inquiryId`, `accountId`, ...) are placed in the URL path.
- Template-defined inquiry data goes in the nested `fields` object.
- List tools accept `pageSize`, `pageAfter`, `pageBefore`, `include`, `sort`
  and `filter` (an object of filter keys).
- Write tools accept `idempotencyKey`, sent as the `Idempotency-Key` header.

## Read-only resources
{list_lines}

Append an ID to read one object, e.g. `persona://inquiries/inq_123`.
Query strings are forwarded: `persona://inquiries?pageSize=5&include=["account"]`.

## Documentation resources
- `openapi://usage-guide` - this guide
- `openapi://schemas` - ID formats and request body patterns
- `openapi://tools` - tools with their input schemas
- `openapi://openapi.yaml` - the configured OpenAPI document, when present

## Common workflows
1. Create an inquiry: `inquiry_create` with `inquiryTemplateId` and `fields`.
2. Check it: `persona://inquiries/inq_newid`.
3. Decide: `inquiry_approve` / `inquiry_decline` with `inquiryId`.

## Errors
Failures are returned as JSON with a `code` (`UPSTREAM_ERROR`,
`MALFORMED_INVOCATION`, ...). Upstream errors keep Persona's `errors`
entries, including `source.pointer` for the offending attribute.
"""


def schemas_summary() -> dict[str, Any]:
    return {
        "commonIdFormats": {
            "description": "ID prefixes used throughout the Persona API",
            "formats": {resource.singular: f"{resource.id_prefix}xxx" for resource in RESOURCES},
        },
        "commonParameters": {
            "pagination": {
                "pageSize": "page[size]: number of items per page (1-100, default 25)",
                "pageAfter": "page[after]: cursor for the next page",
                "pageBefore": "page[before]: cursor for the previous page",
            },
            "filtering": {
                "include": "Related resources to include (comma-separated or array)",
                "filter": "Object of filter keys, sent as filter[<key>]",
                "sort": "Sort expression",
            },
        },
        "requestBodyPatterns": {
            "create": {
                "toolParameters": {"inquiryTemplateId": "itmpl_xxx", "fields": {"nameFirst": "Jane"}},
                "wireBody": {"data": {"attributes": {"inquiryTemplateId": "itmpl_xxx", "fields": {"nameFirst": "Jane"}}}},
            },
            "update": {
                "toolParameters": {"accountId": "act_xxx", "emailAddress": "new@example.com"},
                "wireBody": {"data": {"attributes": {"emailAddress": "new@example.com"}}},
            },
            "actions": {
                "toolParameters": {"inquiryId": "inq_xxx", "tagName": "high-risk"},
                "wireBody": {"meta": {"tagName": "high-risk"}},
            },
        },
    }
