"""
描述: MCP Server 日志工具库
主要功能:
    - JSON 格式结构化输出 (附带 extra 字段)
    - 工具调用上下文追踪 (request_id, tool)
    - 日志统一输出到 stderr (stdout 保留给 stdio 协议), 可选滚动文件
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from persona_mcp.config import LoggingSettings


# region 上下文变量
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
tool_name_var: ContextVar[str] = ContextVar("tool_name", default="")
# endregion


_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "asctime", "taskName",
})


# region 日志 Formatter
class JsonFormatter(logging.Formatter):
    """JSON 日志格式化器"""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id := request_id_var.get():
            payload["request_id"] = request_id
        if tool_name := tool_name_var.get():
            payload["tool"] = tool_name

        # extra 字段
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """文本格式化器 (开发环境用)"""

    def format(self, record: logging.LogRecord) -> str:
        base = f"[{self.formatTime(record)}] {record.levelname:5} {record.name}: {record.getMessage()}"
        if tool_name := tool_name_var.get():
            base += f" (tool={tool_name})"
        extras = [
            f"{key}={getattr(record, key)}"
            for key in ("method", "path", "status_code", "duration_ms")
            if hasattr(record, key)
        ]
        if extras:
            base += f" [{', '.join(extras)}]"
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base
# endregion


# region 日志初始化
def setup_logging(settings: LoggingSettings) -> None:
    """
    初始化日志系统

    参数:
        settings: 日志配置对象
    """
    level = getattr(logging, settings.level.upper(), logging.INFO)
    formatter: logging.Formatter = JsonFormatter() if settings.format == "json" else TextFormatter()

    handlers: list[logging.Handler] = []
    if settings.output.console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        handlers.append(console)

    file_settings = settings.output.file
    if file_settings.enabled:
        log_path = Path(file_settings.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=file_settings.max_size_mb * 1024 * 1024,
            backupCount=file_settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonFormatter())
        handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.NullHandler())
    logging.basicConfig(level=level, handlers=handlers, force=True)
    # httpx 默认 INFO 级别会逐条打印请求 URL
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
# endregion
