from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from ..core.dependencies import get_protocol_handler
from ..services.protocol import MCPProtocolHandler
from ._body import read_jsonrpc_body

router = APIRouter(tags=["mcp"])

logger = logging.getLogger(__name__)


@router.post("/mcp", name="mcp_dispatch")
async def dispatch(request: Request, handler: MCPProtocolHandler = Depends(get_protocol_handler)):
    message = await read_jsonrpc_body(request)
    logger.debug("Dispatching in-process JSON-RPC method '%s'", message.get("method"))
    response = await handler.handle(message)
    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return response
