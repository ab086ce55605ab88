"""
描述: 工具目录
主要功能:
    - 汇总内置 ToolSpec 与 OpenAPI 文档生成的 ToolSpec
    - 按名称解析工具规格, 未登记名称按命名约定推断
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from persona_mcp.catalog.builtin import builtin_specs
from persona_mcp.catalog.openapi import load_openapi_specs
from persona_mcp.catalog.spec import ToolSpec, infer_spec


logger = logging.getLogger(__name__)


class ToolCatalog:
    """工具名 -> ToolSpec 映射, 后登记者覆盖先登记者"""

    def __init__(self, specs: Iterable[ToolSpec] = ()) -> None:
        self._specs: dict[str, ToolSpec] = {}
        self.extend(specs)

    def extend(self, specs: Iterable[ToolSpec]) -> None:
        for spec in specs:
            self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def resolve(self, name: str, params: dict[str, Any] | None = None) -> ToolSpec:
        spec = self._specs.get(name)
        if spec is not None:
            return spec
        return infer_spec(name, params)

    def specs(self) -> list[ToolSpec]:
        return sorted(self._specs.values(), key=lambda spec: spec.name)

    def collections(self) -> list[str]:
        return sorted({spec.collection for spec in self._specs.values() if spec.collection})

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)


def build_catalog(openapi_path: str | None = None) -> ToolCatalog:
    """内置目录 + 可选 OpenAPI 文档"""
    catalog = ToolCatalog(builtin_specs())
    if openapi_path:
        generated = load_openapi_specs(openapi_path)
        catalog.extend(generated)
        logger.info(
            "Merged OpenAPI tools into catalog",
            extra={"openapi_path": openapi_path, "generated": len(generated), "total": len(catalog)},
        )
    return catalog


__all__ = ["ToolCatalog", "ToolSpec", "build_catalog", "infer_spec"]
