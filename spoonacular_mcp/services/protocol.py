from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .. import __version__
from .tools import ToolService

JSONRPC_VERSION = "2.0"
DEFAULT_PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "spoonacular-mcp-server"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

logger = logging.getLogger(__name__)


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def error_response(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def result_response(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


class MCPProtocolHandler:
    """Maps JSON-RPC messages onto the tool service.

    Supported methods:
        - "initialize"  -> server info and capabilities
        - "ping"        -> empty result
        - "tools/list"  -> registered tool schemas
        - "tools/call"  -> run a tool by name with arguments
    Notifications (messages without an id) never produce a response.
    """

    def __init__(self, tool_service: ToolService) -> None:
        self.tool_service = tool_service
        self._methods: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def handle_line(self, line: bytes | str) -> Optional[Dict[str, Any]]:
        text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
        try:
            message = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.warning("Discarding unparsable JSON-RPC line: %s", exc)
            return error_response(None, PARSE_ERROR, f"Parse error: {exc}")
        return await self.handle(message)

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(message, dict) or not isinstance(message.get("method"), str):
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, INVALID_REQUEST, "Invalid Request")

        method = message["method"]
        is_notification = "id" not in message
        request_id = message.get("id")

        if is_notification:
            logger.debug("Received notification '%s'", method)
            return None

        params = message.get("params")
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return error_response(request_id, INVALID_PARAMS, "Invalid params: expected an object")

        handler = self._methods.get(method)
        if handler is None:
            return error_response(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = await handler(params)
        except JsonRpcError as exc:
            return error_response(request_id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("Unhandled error while processing '%s'", method)
            return error_response(request_id, INTERNAL_ERROR, f"Internal error: {exc}")
        return result_response(request_id, result)

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        client_info = params.get("clientInfo") or {}
        logger.info("Initializing session for client %s", client_info.get("name", "unknown"))
        return {
            "protocolVersion": requested if isinstance(requested, str) else DEFAULT_PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": self.tool_service.list_tools()}

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: 'name' is required")
        result = await self.tool_service.call_tool(name, params.get("arguments"))
        return result.to_payload()
