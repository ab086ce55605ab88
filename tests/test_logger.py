from __future__ import annotations

import json
import logging

from persona_mcp.config import LoggingSettings
from persona_mcp.utils.logger import JsonFormatter, TextFormatter, setup_logging, tool_name_var


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("persona_mcp.test", logging.INFO, __file__, 1, "Tool call", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_and_context() -> None:
    token = tool_name_var.set("inquiry_create")
    try:
        line = JsonFormatter().format(_record(status_code=201, duration_ms=12.5))
    finally:
        tool_name_var.reset(token)
    payload = json.loads(line)
    assert payload["message"] == "Tool call"
    assert payload["level"] == "INFO"
    assert payload["tool"] == "inquiry_create"
    assert payload["status_code"] == 201
    assert payload["duration_ms"] == 12.5


def test_text_formatter() -> None:
    line = TextFormatter().format(_record(method="GET", path="/inquiries"))
    assert "persona_mcp.test: Tool call" in line
    assert "method=GET" in line


def test_setup_logging_writes_rotating_file(tmp_path) -> None:
    settings = LoggingSettings()
    settings.output.console = False
    settings.output.file.enabled = True
    settings.output.file.path = str(tmp_path / "logs" / "server.log")
    setup_logging(settings)
    try:
        logging.getLogger("persona_mcp.test").info("hello", extra={"uri": "persona://inquiries"})
        for handler in logging.getLogger().handlers:
            handler.flush()
        line = (tmp_path / "logs" / "server.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        assert json.loads(line)["uri"] == "persona://inquiries"
    finally:
        for handler in list(logging.getLogger().handlers):
            handler.close()
            logging.getLogger().removeHandler(handler)
