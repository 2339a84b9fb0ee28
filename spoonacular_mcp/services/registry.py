from __future__ import annotations

import logging
import typing
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import ValidationError

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

_JSON_TYPES: Dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}

_RANGE_ERRORS = {"greater_than", "greater_than_equal", "less_than", "less_than_equal"}


class UnknownToolError(LookupError):
    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    kind: str  # missing | wrong_type | out_of_range
    message: str


class ToolValidationError(ValueError):
    def __init__(self, tool_name: str, issues: List[ValidationIssue]) -> None:
        self.tool_name = tool_name
        self.issues = issues
        detail = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        super().__init__(f"Invalid arguments for {tool_name}: {detail}")

    @property
    def kinds(self) -> List[str]:
        return [issue.kind for issue in self.issues]


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    params_model: Type[ToolParams]
    input_schema: Dict[str, Any] = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_schema", _build_input_schema(self.params_model))

    def to_mcp(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) is typing.Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _build_input_schema(model: Type[ToolParams]) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for name, info in model.model_fields.items():
        prop: Dict[str, Any] = {"type": _JSON_TYPES.get(_unwrap_optional(info.annotation), "string")}
        for constraint in info.metadata:
            minimum = getattr(constraint, "ge", None)
            maximum = getattr(constraint, "le", None)
            if minimum is not None:
                prop["minimum"] = minimum
            if maximum is not None:
                prop["maximum"] = maximum
        if info.is_required():
            required.append(name)
        elif info.default is not None:
            prop["default"] = info.default
        if info.description:
            prop["description"] = info.description
        properties[name] = prop
    return {"type": "object", "properties": properties, "required": required}


class ToolRegistry:
    """Fixed, ordered catalogue of tools and their argument validation."""

    def __init__(self, definitions: List[ToolDefinition]) -> None:
        self._definitions: Tuple[ToolDefinition, ...] = tuple(definitions)
        self._by_name = {definition.name: definition for definition in self._definitions}
        if len(self._by_name) != len(self._definitions):
            raise ValueError("Tool names must be unique")

    def list_tools(self) -> List[ToolDefinition]:
        return list(self._definitions)

    def names(self) -> List[str]:
        return [definition.name for definition in self._definitions]

    def get_tool(self, tool_name: str) -> ToolDefinition:
        try:
            return self._by_name[tool_name]
        except KeyError:
            raise UnknownToolError(tool_name) from None

    def validate(self, tool_name: str, raw_args: Optional[Mapping[str, Any]]) -> ToolParams:
        """Return typed, defaulted arguments or raise ToolValidationError."""
        definition = self.get_tool(tool_name)
        if raw_args is None:
            raw_args = {}
        if not isinstance(raw_args, Mapping):
            raise ToolValidationError(
                tool_name,
                [ValidationIssue(field="arguments", kind="wrong_type", message="Arguments must be an object")],
            )
        try:
            return definition.params_model.model_validate(dict(raw_args))
        except ValidationError as exc:
            issues = [_to_issue(error) for error in exc.errors()]
            logger.debug("Rejected arguments for tool '%s': %s", tool_name, [i.field for i in issues])
            raise ToolValidationError(tool_name, issues) from exc


def _to_issue(error: Mapping[str, Any]) -> ValidationIssue:
    field_name = ".".join(str(part) for part in error.get("loc", ())) or "arguments"
    error_type = error.get("type", "")
    if error_type == "missing":
        kind = "missing"
    elif error_type in _RANGE_ERRORS:
        kind = "out_of_range"
    else:
        kind = "wrong_type"
    return ValidationIssue(field=field_name, kind=kind, message=str(error.get("msg", "invalid value")))


TOOL_DEFINITIONS: List[ToolDefinition] = [
    ToolDefinition(
        name="search_recipes",
        description="Search for recipes based on ingredients, diet, cuisine, and other criteria",
        params_model=RecipeSearchParams,
    ),
    ToolDefinition(
        name="get_recipe_information",
        description="Get detailed information about a specific recipe by ID",
        params_model=RecipeInformationParams,
    ),
    ToolDefinition(
        name="search_ingredients",
        description="Search for ingredients by name",
        params_model=IngredientSearchParams,
    ),
    ToolDefinition(
        name="analyze_nutrition",
        description="Analyze nutrition information for a list of ingredients",
        params_model=NutritionAnalysisParams,
    ),
    ToolDefinition(
        name="find_recipes_by_ingredients",
        description="Find recipes that can be made with the ingredients you have",
        params_model=RecipesByIngredientsParams,
    ),
    ToolDefinition(
        name="get_random_recipes",
        description="Get random recipes, optionally filtered by tags",
        params_model=RandomRecipesParams,
    ),
]

registry = ToolRegistry(TOOL_DEFINITIONS)
