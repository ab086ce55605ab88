"""
描述: Persona MCP Server 主入口
主要功能:
    - 命令行参数解析 (--transport / --config)
    - 日志与配置加载
    - stdio: 信号处理 + 显式关闭事件; http: uvicorn 启动 FastAPI 网关
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

from persona_mcp.config import Settings, load_settings, validate_settings
from persona_mcp.errors import ConfigurationError
from persona_mcp.utils.logger import setup_logging


logger = logging.getLogger("persona_mcp")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="persona-mcp", description="MCP server for the Persona API")
    parser.add_argument("--transport", choices=("stdio", "http"), default=None, help="override server.transport")
    parser.add_argument("--config", default=None, help="path to config.yaml (default: CONFIG_PATH or ./config.yaml)")
    return parser.parse_args(argv)


async def serve_stdio(settings: Settings) -> None:
    from persona_mcp.server.mcp import build_mcp_server, run_stdio
    from persona_mcp.server.runtime import build_runtime

    runtime = build_runtime(settings)
    server = build_mcp_server(settings, runtime.handlers)

    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown_event.set)
        except NotImplementedError:
            # Windows 事件循环不支持 add_signal_handler
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(shutdown_event.set))

    await run_stdio(server, shutdown_event)


def serve_http(settings: Settings) -> None:
    import uvicorn

    from persona_mcp.server.app_factory import create_app

    app = create_app(settings)
    logger.info(
        "Starting HTTP gateway",
        extra={"host": settings.server.host, "port": settings.server.port},
    )
    uvicorn.run(app, host=settings.server.host, port=settings.server.port, log_level="info")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv()
    try:
        settings = load_settings(args.config)
        if args.transport:
            settings.server.transport = args.transport
        setup_logging(settings.logging)
        validate_settings(settings)
    except ConfigurationError as exc:
        logging.basicConfig(stream=sys.stderr)
        logger.error("Invalid configuration: %s", exc.message, extra={"details": exc.details})
        return 1

    logger.info(
        "Persona MCP server config loaded",
        extra={
            "transport": settings.server.transport,
            "environment": settings.environment,
            "api_url": settings.persona.api_url,
        },
    )
    if settings.server.transport == "http":
        serve_http(settings)
    else:
        asyncio.run(serve_stdio(settings))
    logger.info("Persona MCP server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
