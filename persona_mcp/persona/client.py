"""
描述: Persona API 客户端
主要功能:
    - 封装 HTTP 请求与鉴权 (Bearer API Key, Persona-Version, Key-Inflection)
    - 网络异常 / 429 / 5xx 指数退避重试
    - 请求日志 (脱敏 Authorization)
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import httpx

from persona_mcp.config import Settings
from persona_mcp.errors import TransportError
from persona_mcp.persona.query import format_query_value


logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


@dataclass
class PersonaResponse:
    """原始响应, 4xx/5xx 不抛异常, 交由信封转换器解析"""
    status_code: int
    body: Any
    request_id: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _parse_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _clean_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    if not params:
        return None
    cleaned: dict[str, str] = {}
    for key, value in params.items():
        formatted = format_query_value(value)
        if formatted is not None:
            cleaned[key] = formatted
    return cleaned or None


# region Persona 客户端
class PersonaClient:
    """
    Persona API 客户端

    功能:
        - 每次请求创建独立的 httpx.AsyncClient
        - 返回 PersonaResponse, 不解释 JSON:API 结构
    """
    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """
        参数:
            settings: 全局配置对象
            transport: 自定义传输层 (测试中注入 httpx.MockTransport)
        """
        self._settings = settings
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._settings.persona.api_url.rstrip("/")

    def _default_headers(self) -> dict[str, str]:
        persona = self._settings.persona
        return {
            "Authorization": f"Bearer {persona.api_key}",
            "Persona-Version": persona.api_version,
            "Key-Inflection": persona.key_inflection,
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": f"{self._settings.server.name}/{self._settings.server.version}",
        }

    def _retry_wait(self, attempt: int, response: httpx.Response | None = None) -> float:
        request = self._settings.persona.request
        if response is not None:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return min(float(retry_after), request.max_retry_delay)
        return min(request.retry_delay * (2 ** attempt), request.max_retry_delay)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> PersonaResponse:
        """
        执行 API 请求

        参数:
            method: HTTP 方法
            path: API 路径 (不含 Base URL)
            params: 查询参数
            json_body: JSON 请求体
            headers: 额外请求头 (如 Idempotency-Key)

        返回:
            PersonaResponse

        抛出:
            TransportError: 网络异常且重试耗尽
        """
        method = method.upper()
        url = f"{self.base_url}{path}"
        request_settings = self._settings.persona.request
        retries = request_settings.max_retries

        request_headers = self._default_headers()
        if headers:
            request_headers.update(headers)
        if method == "POST" and json_body is not None:
            request_headers.setdefault("Idempotency-Key", str(uuid.uuid4()))
        query = _clean_params(params)

        log_requests = self._settings.logging.enable_request_logging
        if log_requests:
            logger.debug(
                "Persona API request",
                extra={
                    "method": method,
                    "path": path,
                    "params": query,
                    "headers": {k: ("[REDACTED]" if k == "Authorization" else v) for k, v in request_headers.items()},
                },
            )

        for attempt in range(retries + 1):
            started = time.perf_counter()
            try:
                async with httpx.AsyncClient(
                    timeout=request_settings.timeout,
                    trust_env=False,
                    transport=self._transport,
                ) as client:
                    response = await client.request(
                        method,
                        url,
                        params=query,
                        json=json_body,
                        headers=request_headers,
                    )
            except httpx.HTTPError as exc:
                if attempt >= retries:
                    logger.error(
                        "Persona API request failed",
                        extra={"method": method, "path": path, "attempts": attempt + 1, "error": str(exc)},
                    )
                    raise TransportError(method, path, str(exc) or type(exc).__name__) from exc
                wait = self._retry_wait(attempt)
                logger.warning(
                    "Persona API network error, retrying",
                    extra={"method": method, "path": path, "attempt": attempt + 1, "wait_seconds": wait},
                )
                await asyncio.sleep(wait)
                continue

            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            request_id = response.headers.get("X-Request-Id")
            if response.status_code in RETRYABLE_STATUS and attempt < retries:
                wait = self._retry_wait(attempt, response)
                logger.warning(
                    "Persona API returned retryable status",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "attempt": attempt + 1,
                        "wait_seconds": wait,
                    },
                )
                await asyncio.sleep(wait)
                continue

            if log_requests:
                logger.info(
                    "Persona API response",
                    extra={
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                        "request_id": request_id,
                    },
                )
            return PersonaResponse(
                status_code=response.status_code,
                body=_parse_body(response),
                request_id=request_id,
            )

        raise TransportError(method, path, "retries exhausted")

    async def health_check(self) -> bool:
        """调用 GET /inquiries?page[size]=1 检测连通性"""
        try:
            response = await self.request("GET", "/inquiries", params={"page[size]": 1})
        except TransportError as exc:
            logger.warning("Persona API health check failed", extra={"error": str(exc)})
            return False
        return response.ok
# endregion
