"""
Query-string helpers for Persona read requests.

Tool callers use lowerCamelCase names (``pageSize``, ``include``); the wire
format uses JSON:API bracket keys (``page[size]``, ``filter[referenceId]``).
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any


PAGINATION_ALIASES: dict[str, str] = {
    "pageSize": "page[size]",
    "pageAfter": "page[after]",
    "pageBefore": "page[before]",
}

PASSTHROUGH_KEYS = frozenset({"include", "sort", "page[size]", "page[after]", "page[before]"})


def to_wire_key(name: str, resource_type: str | None = None) -> str:
    """Map a tool parameter name to its query-string key."""
    if name in PAGINATION_ALIASES:
        return PAGINATION_ALIASES[name]
    if name in PASSTHROUGH_KEYS or "[" in name:
        return name
    if name == "fields" and resource_type:
        return f"fields[{resource_type}]"
    return f"filter[{name}]"


def format_query_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, Sequence):
        items = [format_query_value(item) for item in value]
        return ",".join(item for item in items if item is not None)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def build_query_params(
    params: Mapping[str, Any],
    resource_type: str | None = None,
) -> dict[str, str]:
    """
    Build wire query parameters from tool-style parameters.

    ``filter`` may be given as a nested mapping and is expanded to
    ``filter[<key>]`` entries. ``None`` values are dropped.
    """
    query: dict[str, str] = {}
    for name, value in params.items():
        if name == "filter" and isinstance(value, Mapping):
            for filter_key, filter_value in value.items():
                formatted = format_query_value(filter_value)
                if formatted is not None:
                    query[f"filter[{filter_key}]"] = formatted
            continue
        formatted = format_query_value(value)
        if formatted is None:
            continue
        query[to_wire_key(name, resource_type)] = formatted
    return query
