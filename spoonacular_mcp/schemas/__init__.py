from .mcp import TextContent, ToolResult
from .tools import (
    IngredientSearchParams,
    NutritionAnalysisParams,
    RandomRecipesParams,
    RecipeInformationParams,
    RecipeSearchParams,
    RecipesByIngredientsParams,
    ToolParams,
)

__all__ = [
    "TextContent",
    "ToolResult",
    "ToolParams",
    "RecipeSearchParams",
    "RecipeInformationParams",
    "IngredientSearchParams",
    "NutritionAnalysisParams",
    "RecipesByIngredientsParams",
    "RandomRecipesParams",
]
