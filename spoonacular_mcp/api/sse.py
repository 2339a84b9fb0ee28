from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import StreamingResponse

from ..core.dependencies import get_protocol_handler, get_sse_sessions
from ..services.protocol import MCPProtocolHandler
from ..services.sse import SSESessionManager
from ._body import read_jsonrpc_body

router = APIRouter(tags=["sse"])

logger = logging.getLogger(__name__)


@router.get("/sse", name="sse_stream")
async def open_stream(request: Request, sessions: SSESessionManager = Depends(get_sse_sessions)):
    return StreamingResponse(
        sessions.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post("/message", name="sse_message", status_code=status.HTTP_202_ACCEPTED)
async def post_message(
    request: Request,
    session_id: str = Query(..., alias="sessionId"),
    sessions: SSESessionManager = Depends(get_sse_sessions),
    handler: MCPProtocolHandler = Depends(get_protocol_handler),
):
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    message = await read_jsonrpc_body(request)
    response = await handler.handle(message)
    if response is not None:
        await session.send(response)
    return Response(content="Accepted", status_code=status.HTTP_202_ACCEPTED, media_type="text/plain")
