"""
描述: Persona MCP Server 配置加载器
主要功能:
    - 统一管理 MCP Server 配置
    - 支持 YAML 文件加载与环境变量覆盖
    - 启动前配置校验
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Literal
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field, ValidationError

from persona_mcp.errors import ConfigurationError


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

logger = logging.getLogger(__name__)


# region 基础配置模型
class ServerSettings(BaseModel):
    """服务监听配置"""
    name: str = "persona-api-mcp"
    version: str = "1.0.0"
    description: str = "MCP server for Persona API integration"
    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8081


class RequestSettings(BaseModel):
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 10.0


class PersonaSettings(BaseModel):
    """Persona API 配置"""
    api_key: str = ""
    api_url: str = "https://withpersona.com/api/v1"
    api_version: str = "2023-01-05"
    key_inflection: str = "camel"
    request: RequestSettings = Field(default_factory=RequestSettings)


class OpenAPISettings(BaseModel):
    spec_path: str | None = None


class CacheSettings(BaseModel):
    enabled: bool = True
    ttl_seconds: int = 300
    max_size: int = 1000


class ToolsSettings(BaseModel):
    enabled: list[str] = Field(default_factory=list)
    read_only: bool = False


class SecuritySettings(BaseModel):
    validate_ids: bool = True
    max_string_length: int = 1000


class LoggingFileSettings(BaseModel):
    enabled: bool = False
    path: str = "logs/persona-mcp.log"
    max_size_mb: int = 100
    backup_count: int = 5


class LoggingOutputSettings(BaseModel):
    console: bool = True
    file: LoggingFileSettings = Field(default_factory=LoggingFileSettings)


class LoggingSettings(BaseModel):
    """日志系统配置"""
    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    enable_request_logging: bool = True
    output: LoggingOutputSettings = Field(default_factory=LoggingOutputSettings)


class Settings(BaseModel):
    """MCP Server 配置聚合根"""
    environment: Literal["development", "production", "test"] = "development"
    server: ServerSettings = Field(default_factory=ServerSettings)
    persona: PersonaSettings = Field(default_factory=PersonaSettings)
    openapi: OpenAPISettings = Field(default_factory=OpenAPISettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    tools: ToolsSettings = Field(default_factory=ToolsSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
# endregion


# region 配置加载逻辑
_ENV_OVERRIDES: dict[str, list[str]] = {
    "PERSONA_API_KEY": ["persona", "api_key"],
    "PERSONA_API_URL": ["persona", "api_url"],
    "PERSONA_API_VERSION": ["persona", "api_version"],
    "PERSONA_API_TIMEOUT": ["persona", "request", "timeout"],
    "PERSONA_API_RETRIES": ["persona", "request", "max_retries"],
    "PERSONA_API_RETRY_DELAY": ["persona", "request", "retry_delay"],
    "PERSONA_OPENAPI_PATH": ["openapi", "spec_path"],
    "MCP_SERVER_NAME": ["server", "name"],
    "MCP_SERVER_VERSION": ["server", "version"],
    "MCP_HOST": ["server", "host"],
    "MCP_PORT": ["server", "port"],
    "MCP_TRANSPORT": ["server", "transport"],
    "MCP_TOOLS_ENABLED": ["tools", "enabled"],
    "MCP_TOOLS_READ_ONLY": ["tools", "read_only"],
    "CACHE_ENABLED": ["cache", "enabled"],
    "CACHE_TTL": ["cache", "ttl_seconds"],
    "CACHE_MAX_SIZE": ["cache", "max_size"],
    "LOG_LEVEL": ["logging", "level"],
    "LOG_FORMAT": ["logging", "format"],
    "ENABLE_REQUEST_LOGGING": ["logging", "enable_request_logging"],
    "APP_ENV": ["environment"],
}


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            expr = match.group(1)
            if ":-" in expr:
                key, default = expr.split(":-", 1)
                return os.getenv(key, default)
            return os.getenv(expr, "")

        return _ENV_PATTERN.sub(replace, value)
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, dict):
        return {key: _expand_env(val) for key, val in value.items()}
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return _expand_env(data)


def _set_nested(data: dict[str, Any], keys: list[str], value: Any) -> None:
    current = data
    for key in keys[:-1]:
        current = current.setdefault(key, {})
    current[keys[-1]] = value


def _parse_env_override(env_key: str, env_value: str) -> Any:
    if env_key == "MCP_TOOLS_ENABLED":
        return [item.strip() for item in env_value.split(",") if item.strip()]
    return env_value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    for env_key, path in _ENV_OVERRIDES.items():
        env_value = os.getenv(env_key)
        if env_value is not None and env_value != "":
            _set_nested(data, path, _parse_env_override(env_key, env_value))
    return data


def load_settings(config_path: str | None = None) -> Settings:
    """
    加载配置: YAML 文件 -> 环境变量覆盖 -> Pydantic 校验

    参数:
        config_path: 配置文件路径 (默认读取 CONFIG_PATH 或 config.yaml)

    抛出:
        ConfigurationError: 配置结构非法
    """
    path = Path(config_path or os.getenv("CONFIG_PATH", "config.yaml"))
    data = _load_yaml(path)
    data = _apply_env_overrides(data)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        problems = ", ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(
            f"Configuration validation failed: {problems}",
            details={"config_path": str(path)},
        ) from exc


def validate_settings(settings: Settings) -> None:
    """启动前校验必需配置"""
    if not settings.persona.api_key:
        raise ConfigurationError("PERSONA_API_KEY environment variable is required")

    parts = urlsplit(settings.persona.api_url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ConfigurationError(
            f"Invalid API URL format: {settings.persona.api_url}",
            details={"api_url": settings.persona.api_url},
        )

    if settings.persona.request.timeout <= 0:
        raise ConfigurationError("API timeout must be greater than 0")
    if settings.persona.request.max_retries < 0:
        raise ConfigurationError("API retries must be non-negative")

    if settings.environment == "production":
        if settings.logging.level.upper() == "DEBUG":
            logger.warning("Debug logging is enabled in production environment")
        if parts.hostname in ("localhost", "127.0.0.1"):
            logger.warning("Using localhost API URL in production")
# endregion
