"""
描述: 输入校验与脱敏工具
主要功能:
    - Persona 资源 ID 格式校验 (inq_xxx / act_xxx ...)
    - 字符串清洗 (去除控制字符, 长度限制)
    - 日志参数脱敏
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from persona_mcp.errors import MalformedInvocation


RESOURCE_ID_PATTERN = re.compile(r"^[a-z]{2,}_[A-Za-z0-9_-]+$")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

SENSITIVE_KEYS = frozenset({
    "authorization",
    "apikey",
    "api_key",
    "password",
    "secret",
    "token",
    "ssn",
    "socialsecuritynumber",
    "identificationnumber",
})

REDACTED = "[REDACTED]"


def validate_resource_id(value: Any, prefix: str | None = None) -> bool:
    """校验 Persona 资源 ID: 小写前缀 + 下划线 + 字母数字/下划线/连字符"""
    if not isinstance(value, str) or not value:
        return False
    if "\x00" in value or not 5 <= len(value) <= 100:
        return False
    if prefix and not value.startswith(prefix):
        return False
    return bool(RESOURCE_ID_PATTERN.match(value))


def validate_inquiry_id(value: Any) -> bool:
    return validate_resource_id(value, "inq_")


def sanitize_string(value: Any, max_length: int = 1000, field_name: str = "value") -> str:
    """
    清洗字符串输入

    抛出:
        MalformedInvocation: 非字符串 / 含空字节 / 超长
    """
    if not isinstance(value, str):
        raise MalformedInvocation(f"{field_name} must be a string", parameter=field_name)
    if "\x00" in value:
        raise MalformedInvocation(f"{field_name} contains invalid null bytes", parameter=field_name)
    if len(value) > max_length:
        raise MalformedInvocation(
            f"{field_name} exceeds maximum length of {max_length} characters",
            parameter=field_name,
        )
    return _CONTROL_CHARS.sub("", value).strip()


def check_identifiers(tool_name: str, params: Mapping[str, Any], names: tuple[str, ...]) -> None:
    """路径标识符必须符合资源 ID 格式"""
    for name in names:
        value = params.get(name)
        if value is not None and not validate_resource_id(value):
            raise MalformedInvocation(
                f"Invalid identifier format for '{name}': {value!r}",
                tool_name=tool_name,
                parameter=name,
            )


def _is_sensitive(key: str) -> bool:
    normalized = key.replace("-", "").replace("_", "").lower()
    return key.lower() in SENSITIVE_KEYS or normalized in SENSITIVE_KEYS


def redact_sensitive(value: Any) -> Any:
    """递归替换敏感字段值, 用于日志输出"""
    if isinstance(value, Mapping):
        return {
            key: REDACTED if isinstance(key, str) and _is_sensitive(key) else redact_sensitive(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact_sensitive(item) for item in value]
    return value
