from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..schemas.mcp import ToolResult
from .registry import ToolRegistry, ToolValidationError, UnknownToolError
from .spoonacular import SpoonacularClient

logger = logging.getLogger(__name__)


class ToolService:
    """Single entry point for listing and calling tools, shared by every transport."""

    def __init__(self, *, registry: ToolRegistry, client: SpoonacularClient) -> None:
        self.registry = registry
        self.client = client

    def list_tools(self) -> List[Dict[str, Any]]:
        return [definition.to_mcp() for definition in self.registry.list_tools()]

    async def call_tool(self, tool_name: str, arguments: Dict[str, Any] | None = None) -> ToolResult:
        logger.info("Executing tool '%s'", tool_name)
        try:
            params = self.registry.validate(tool_name, arguments)
        except UnknownToolError as exc:
            logger.warning("Rejected call to unknown tool '%s'", tool_name)
            return ToolResult.error(str(exc))
        except ToolValidationError as exc:
            logger.warning("Invalid arguments for tool '%s': %s", tool_name, exc.kinds)
            return ToolResult.error(str(exc))

        result = await self.client.invoke(tool_name, params)
        logger.info("Tool '%s' returned isError=%s", tool_name, result.isError)
        return result

    async def aclose(self) -> None:
        await self.client.aclose()
