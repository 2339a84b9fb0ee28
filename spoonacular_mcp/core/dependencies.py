from __future__ import annotations

from fastapi import HTTPException, Request, status

from ..services.bridge import SubprocessBridge
from ..services.protocol import MCPProtocolHandler
from ..services.sse import SSESessionManager


def _state(request: Request, name: str):  # type: ignore[no-untyped-def]
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not available in this mode",
        )
    return value


def get_protocol_handler(request: Request) -> MCPProtocolHandler:
    return _state(request, "protocol_handler")


def get_bridge(request: Request) -> SubprocessBridge:
    return _state(request, "bridge")


def get_sse_sessions(request: Request) -> SSESessionManager:
    return _state(request, "sse_sessions")
