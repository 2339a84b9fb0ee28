from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn

from .core.config import DEFAULT_HTTP_PORT, ConfigLoaderError, Settings, load_settings
from .core.logging import configure_logging
from .main import build_tool_service, create_app
from .services.protocol import MCPProtocolHandler
from .services.stdio import run_stdio

MODES = ("stdio", "http", "sse", "proxy")

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spoonacular-mcp",
        description="Spoonacular recipe and nutrition tools over MCP (stdio, HTTP, SSE or subprocess proxy).",
    )
    parser.add_argument("mode", nargs="?", choices=MODES, default="stdio", help="Transport (default: %(default)s)")
    parser.add_argument("port", nargs="?", type=int, default=None, help="Listening port for HTTP modes")
    parser.add_argument("--host", default="0.0.0.0", help="Listening host for HTTP modes (default: %(default)s)")
    return parser


def resolve_port(mode: str, port: Optional[int], settings: Settings) -> int:
    if port is not None:
        return port
    if mode == "proxy":
        return settings.proxy_port()
    return DEFAULT_HTTP_PORT


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        settings = load_settings()
    except ConfigLoaderError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    logger.debug("Loaded settings %s", settings.safe_payload)

    if args.mode == "stdio":
        handler = MCPProtocolHandler(build_tool_service(settings))
        try:
            asyncio.run(run_stdio(handler))
        except KeyboardInterrupt:
            logger.info("Interrupted; shutting down")
        return 0

    port = resolve_port(args.mode, args.port, settings)
    app = create_app(args.mode, settings)
    logger.info("Spoonacular MCP Server listening on %s:%d (%s mode)", args.host, port, args.mode)
    uvicorn.run(app, host=args.host, port=port, log_level=settings.log_level.lower())
    return 0
