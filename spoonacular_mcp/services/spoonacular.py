from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import httpx

from ..core.config import DEFAULT_API_BASE
from ..schemas.mcp import ToolResult
from ..schemas.tools import (
    IngredientSearchParams,
    NutritionAnalysisParams,
    RandomRecipesParams,
    RecipeInformationParams,
    RecipeSearchParams,
    RecipesByIngredientsParams,
    ToolParams,
)

logger = logging.getLogger(__name__)

_REDACTED = "***"
_SEARCH_FILTERS = ("diet", "intolerances", "includeIngredients", "excludeIngredients", "type", "cuisine")


@dataclass
class UpstreamRequest:
    """One outbound call: method, path, query string and optional form body."""

    method: str
    path: str
    params: Dict[str, str] = field(default_factory=dict)
    form: Optional[Dict[str, str]] = None


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _search_recipes(params: RecipeSearchParams) -> UpstreamRequest:
    query = {"query": params.query, "number": str(params.number)}
    for name in _SEARCH_FILTERS:
        value = getattr(params, name)
        if value:
            query[name] = value
    return UpstreamRequest("GET", "/recipes/complexSearch", query)


def _recipe_information(params: RecipeInformationParams) -> UpstreamRequest:
    return UpstreamRequest(
        "GET",
        f"/recipes/{params.id}/information",
        {"includeNutrition": _flag(params.includeNutrition)},
    )


def _search_ingredients(params: IngredientSearchParams) -> UpstreamRequest:
    return UpstreamRequest(
        "GET",
        "/food/ingredients/search",
        {
            "query": params.query,
            "number": str(params.number),
            "metaInformation": _flag(params.metaInformation),
        },
    )


def _analyze_nutrition(params: NutritionAnalysisParams) -> UpstreamRequest:
    return UpstreamRequest(
        "POST",
        "/recipes/parseIngredients",
        form={"ingredientList": params.ingredientList, "servings": str(params.servings)},
    )


def _recipes_by_ingredients(params: RecipesByIngredientsParams) -> UpstreamRequest:
    return UpstreamRequest(
        "GET",
        "/recipes/findByIngredients",
        {
            "ingredients": params.ingredients,
            "number": str(params.number),
            "ranking": str(params.ranking),
        },
    )


def _random_recipes(params: RandomRecipesParams) -> UpstreamRequest:
    query = {"number": str(params.number)}
    if params.tags:
        query["tags"] = params.tags
    return UpstreamRequest("GET", "/recipes/random", query)


REQUEST_BUILDERS: Dict[str, Callable[[Any], UpstreamRequest]] = {
    "search_recipes": _search_recipes,
    "get_recipe_information": _recipe_information,
    "search_ingredients": _search_ingredients,
    "analyze_nutrition": _analyze_nutrition,
    "find_recipes_by_ingredients": _recipes_by_ingredients,
    "get_random_recipes": _random_recipes,
}


def build_request(tool_name: str, params: ToolParams) -> UpstreamRequest:
    try:
        builder = REQUEST_BUILDERS[tool_name]
    except KeyError:
        raise ValueError(f"Unknown tool: {tool_name}") from None
    return builder(params)


class UpstreamError(RuntimeError):
    pass


class SpoonacularClient:
    """Forwards validated tool arguments to the Spoonacular REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_API_BASE,
        timeout_seconds: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Spoonacular API key is required")
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._api_key = api_key
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SpoonacularClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        await self.aclose()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds, connect=10.0),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def invoke(self, tool_name: str, params: ToolParams) -> ToolResult:
        """Run one upstream call; failures come back as error-flagged results."""
        request = build_request(tool_name, params)
        logger.info("Calling Spoonacular %s %s for tool '%s'", request.method, request.path, tool_name)
        try:
            data = await self._send(request)
        except UpstreamError as exc:
            message = self._redact(str(exc))
            logger.warning("Spoonacular call for tool '%s' failed: %s", tool_name, message)
            return ToolResult.error(message)
        return ToolResult.from_text(json.dumps(data, indent=2, ensure_ascii=False))

    async def _send(self, request: UpstreamRequest) -> Any:
        query = dict(request.params)
        query["apiKey"] = self._api_key
        client = self._get_client()
        try:
            response = await client.request(
                request.method,
                request.path,
                params=query,
                data=request.form,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Failed to fetch from Spoonacular API: {exc}") from exc

        if not response.is_success:
            raise UpstreamError(f"API request failed: {response.status_code} {response.reason_phrase}".rstrip())

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(f"Failed to fetch from Spoonacular API: invalid JSON response ({exc})") from exc

    def _redact(self, text: str) -> str:
        return text.replace(self._api_key, _REDACTED)
