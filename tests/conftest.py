from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from spoonacular_mcp.core.config import Settings
from spoonacular_mcp.schemas.mcp import ToolResult
from spoonacular_mcp.services.registry import registry
from spoonacular_mcp.services.spoonacular import SpoonacularClient
from spoonacular_mcp.services.tools import ToolService

API_KEY = "test-secret-key-123"
STUB_SERVER = ROOT_DIR / "tests" / "mcp_stub_server.py"

MINIMAL_ARGS = {
    "search_recipes": {"query": "pasta"},
    "get_recipe_information": {"id": 716429},
    "search_ingredients": {"query": "apple"},
    "analyze_nutrition": {"ingredientList": "1 cup rice\n2 eggs", "servings": 2},
    "find_recipes_by_ingredients": {"ingredients": "apples,flour,sugar"},
    "get_random_recipes": {},
}


class StubUpstream:
    """Stands in for api.spoonacular.com and records every request it sees."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {"results": [], "totalResults": 0}
        self.error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.payload, (bytes, str)):
            return httpx.Response(self.status_code, content=self.payload)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> SpoonacularClient:
        return SpoonacularClient(api_key=API_KEY, transport=httpx.MockTransport(self.handler))

    def tool_service(self, settings: Settings | None = None) -> ToolService:
        return ToolService(registry=registry, client=self.client())

    def call(self, tool_name: str, arguments: Dict[str, Any] | None = None) -> ToolResult:
        async def _run() -> ToolResult:
            service = self.tool_service()
            try:
                return await service.call_tool(tool_name, arguments)
            finally:
                await service.aclose()

        return asyncio.run(_run())


@pytest.fixture
def upstream() -> StubUpstream:
    return StubUpstream()


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY)


@pytest.fixture
def stub_command() -> List[str]:
    return [sys.executable, str(STUB_SERVER)]
