from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import health, mcp, proxy, sse
from .core.config import Settings
from .services.bridge import SubprocessBridge
from .services.protocol import MCPProtocolHandler
from .services.registry import registry
from .services.spoonacular import SpoonacularClient
from .services.sse import SSESessionManager
from .services.tools import ToolService

HTTP_MODES = ("http", "sse", "proxy")

logger = logging.getLogger(__name__)

ToolServiceFactory = Callable[[Settings], ToolService]
BridgeFactory = Callable[[Settings], SubprocessBridge]


def build_tool_service(settings: Settings) -> ToolService:
    client = SpoonacularClient(
        api_key=settings.api_key.get_secret_value(),
        base_url=settings.api_base,
        timeout_seconds=settings.request_timeout_seconds,
    )
    return ToolService(registry=registry, client=client)


def build_bridge(settings: Settings) -> SubprocessBridge:
    return SubprocessBridge(settings.server_command, timeout_seconds=settings.bridge_timeout_seconds)


def create_app(
    mode: str,
    settings: Settings,
    *,
    tool_service_factory: Optional[ToolServiceFactory] = None,
    bridge_factory: Optional[BridgeFactory] = None,
) -> FastAPI:
    if mode not in HTTP_MODES:
        raise ValueError(f"Unsupported HTTP mode '{mode}'")
    make_tool_service = tool_service_factory or build_tool_service
    make_bridge = bridge_factory or build_bridge

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting Spoonacular MCP server in %s mode", mode)
        if mode == "proxy":
            bridge = make_bridge(settings)
            await bridge.start()
            app.state.bridge = bridge
            try:
                yield
            finally:
                await bridge.stop()
            return

        tool_service = make_tool_service(settings)
        app.state.protocol_handler = MCPProtocolHandler(tool_service)
        if mode == "sse":
            app.state.sse_sessions = SSESessionManager()
        try:
            yield
        finally:
            await tool_service.aclose()

    app = FastAPI(
        title="Spoonacular MCP Server",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    if mode == "http":
        app.include_router(mcp.router)
    elif mode == "sse":
        app.include_router(sse.router)
    else:
        app.include_router(proxy.router)
    return app
