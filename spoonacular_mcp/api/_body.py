from __future__ import annotations

import json
from typing import Any, Dict

from fastapi import HTTPException, Request, status


async def read_jsonrpc_body(request: Request) -> Dict[str, Any]:
    """Parse the request body as a single JSON-RPC object or fail with 400."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid JSON body: {exc}") from exc
    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON-RPC object",
        )
    return payload
