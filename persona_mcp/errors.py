"""
异常处理模块

统一定义 Persona MCP Server 的异常类与结构化错误值，便于精确捕获并回传给调用方
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ============================================
# region 结构化错误值
# ============================================
@dataclass(frozen=True)
class DomainError:
    """单条 JSON:API 错误 (errors[] 中的一项)"""

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str | None = None
    detail: str | None = None
    source_pointer: str | None = None
    source_parameter: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def is_actionable(self) -> bool:
        return bool(self.title or self.detail or self.code)

    @property
    def message(self) -> str:
        return self.detail or self.title or self.code or "Unknown upstream error"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "status": self.status,
            "code": self.code,
            "title": self.title,
            "detail": self.detail,
        }
        if self.id:
            payload["id"] = self.id
        source: dict[str, str] = {}
        if self.source_pointer is not None:
            source["pointer"] = self.source_pointer
        if self.source_parameter is not None:
            source["parameter"] = self.source_parameter
        if source:
            payload["source"] = source
        if self.meta:
            payload["meta"] = dict(self.meta)
        return payload
# endregion
# ============================================


# ============================================
# region 基础异常
# ============================================
class PersonaMCPError(Exception):
    """Persona MCP 基础异常类"""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigurationError(PersonaMCPError):
    """配置错误"""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)
# endregion
# ============================================


# ============================================
# region 信封转换异常
# ============================================
class InvalidToolName(PersonaMCPError):
    """工具名不符合 ^[a-z_]+$"""

    def __init__(self, tool_name: Any) -> None:
        super().__init__(
            message=f"Invalid tool name: {tool_name!r} (expected lowercase letters and underscores)",
            code="INVALID_TOOL_NAME",
            details={"tool_name": tool_name if isinstance(tool_name, str) else repr(tool_name)},
        )


class MalformedInvocation(PersonaMCPError):
    """调用参数结构错误 (预包装 data/attributes，或缺失标识符)"""

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        parameter: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if tool_name:
            details["tool_name"] = tool_name
        if parameter:
            details["parameter"] = parameter
        super().__init__(message, "MALFORMED_INVOCATION", details)
        self.tool_name = tool_name
        self.parameter = parameter


class UpstreamError(PersonaMCPError):
    """Persona API 返回的 JSON:API 错误信封"""

    def __init__(self, http_status: int, errors: list[DomainError]) -> None:
        first = errors[0].message if errors else f"HTTP {http_status}"
        super().__init__(
            message=f"Persona API error (HTTP {http_status}): {first}",
            code="UPSTREAM_ERROR",
            details={"http_status": http_status},
        )
        self.http_status = http_status
        self.errors = list(errors)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["errors"] = [error.to_dict() for error in self.errors]
        return payload


class UnparseableResponse(PersonaMCPError):
    """响应体既不是资源信封也不是错误信封"""

    def __init__(self, http_status: int, reason: str, body: Any = None) -> None:
        preview = body if isinstance(body, (dict, list)) else str(body)[:500]
        super().__init__(
            message=f"Unparseable Persona API response (HTTP {http_status}): {reason}",
            code="UNPARSEABLE_RESPONSE",
            details={"http_status": http_status, "body": preview},
        )
        self.http_status = http_status


class TransportError(PersonaMCPError):
    """网络异常 (重试耗尽)"""

    def __init__(self, method: str, path: str, cause: str) -> None:
        super().__init__(
            message=f"Request to Persona API failed: {cause}",
            code="TRANSPORT_ERROR",
            details={"method": method, "path": path, "cause": cause},
        )
# endregion
# ============================================


# ============================================
# region MCP 相关异常
# ============================================
class ToolNotFound(PersonaMCPError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(
            message=f"Unknown tool: {tool_name}",
            code="TOOL_NOT_FOUND",
            details={"tool_name": tool_name},
        )


class ResourceNotFound(PersonaMCPError):
    def __init__(self, uri: str, cause: str) -> None:
        super().__init__(
            message=f"Resource not found: {uri} ({cause})",
            code="RESOURCE_NOT_FOUND",
            details={"uri": uri, "cause": cause},
        )


class PromptNotFound(PersonaMCPError):
    def __init__(self, prompt_name: str) -> None:
        super().__init__(
            message=f"Unknown prompt: {prompt_name}",
            code="PROMPT_NOT_FOUND",
            details={"prompt_name": prompt_name},
        )


class PromptError(PersonaMCPError):
    """Prompt 参数错误"""

    def __init__(self, prompt_name: str, message: str, argument: str | None = None) -> None:
        details: dict[str, Any] = {"prompt_name": prompt_name}
        if argument:
            details["argument"] = argument
        super().__init__(message, "PROMPT_ERROR", details)
# endregion
# ============================================
