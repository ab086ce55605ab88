"""
描述: HTTP 网关运行脚本
主要功能:
    - 配置 asyncio 策略 (Windows)
    - 加载 .env 与 config.yaml
    - 使用 uvicorn 启动 FastAPI 网关
"""

from __future__ import annotations

import asyncio
import os
import sys
from pathlib import Path

# Windows 兼容性：在任何 asyncio 操作前设置策略
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

BASE_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("CONFIG_PATH", str(BASE_DIR / "config.yaml"))

from dotenv import load_dotenv

load_dotenv(BASE_DIR / ".env")

from persona_mcp.__main__ import main


if __name__ == "__main__":
    sys.exit(main(["--transport", "http", *sys.argv[1:]]))
