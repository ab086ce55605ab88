"""
描述: Persona API JSON:API 数据模型
主要功能:
    - 定义通过 Pydantic 验证后的资源信封与错误信封结构
    - 错误项转换为 DomainError
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from persona_mcp.errors import DomainError


def _stringify(value: Any) -> Any:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# region 错误信封
class APIErrorSource(BaseModel):
    model_config = ConfigDict(extra="allow")

    pointer: str | None = None
    parameter: str | None = None


class APIError(BaseModel):
    """
    JSON:API 错误项

    属性:
        status: HTTP 状态码 (字符串)
        code: 业务错误码
        source: 出错位置 (pointer 指向请求体, parameter 指向查询参数)
    """
    model_config = ConfigDict(extra="allow")

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str | None = None
    detail: str | None = None
    source: APIErrorSource | None = None
    meta: dict[str, Any] | None = None

    @field_validator("id", "status", "code", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        return _stringify(value)

    def to_domain(self, fallback_title: str | None = None) -> DomainError:
        title = self.title
        if not (self.title or self.detail or self.code):
            title = fallback_title
        return DomainError(
            id=self.id,
            status=self.status,
            code=self.code,
            title=title,
            detail=self.detail,
            source_pointer=self.source.pointer if self.source else None,
            source_parameter=self.source.parameter if self.source else None,
            meta=dict(self.meta or {}),
        )


class APIErrorResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    errors: list[APIError]
# endregion


# region 资源信封
class ResourceObject(BaseModel):
    """JSON:API 资源对象 (data)"""
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    id: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _stringify(value)

    def flatten(self) -> dict[str, Any]:
        result = dict(self.attributes)
        if self.id is not None:
            result["id"] = self.id
        if self.type is not None:
            result["type"] = self.type
        return result


class ResourceEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: ResourceObject | list[ResourceObject] | None = None
    included: list[ResourceObject] | None = None
    links: dict[str, Any] | None = None
    meta: dict[str, Any] | None = None
# endregion
