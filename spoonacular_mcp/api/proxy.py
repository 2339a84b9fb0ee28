from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from ..core.dependencies import get_bridge
from ..services.bridge import BridgeError, BridgeTimeoutError, SubprocessBridge
from ._body import read_jsonrpc_body

router = APIRouter(tags=["proxy"])

logger = logging.getLogger(__name__)


@router.post("/mcp", name="mcp_proxy")
async def proxy(request: Request, bridge: SubprocessBridge = Depends(get_bridge)):
    message = await read_jsonrpc_body(request)
    try:
        reply = await bridge.request(message)
    except BridgeTimeoutError:
        return JSONResponse(status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"error": "Request timeout"})
    except BridgeError as exc:
        logger.error("Error processing MCP request: %s", exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})
    if reply is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return reply
