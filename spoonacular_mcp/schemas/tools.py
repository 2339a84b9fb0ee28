from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolParams(BaseModel):
    """Base for tool arguments: no type coercion, unknown keys dropped."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


class RecipeSearchParams(ToolParams):
    query: str = Field(..., description="The search query for recipes")
    number: int = Field(10, ge=1, le=100, description="Number of results to return (1-100)")
    diet: Optional[str] = Field(None, description="Diet type (vegetarian, vegan, gluten-free, etc.)")
    intolerances: Optional[str] = Field(None, description="Comma-separated list of intolerances")
    includeIngredients: Optional[str] = Field(
        None, description="Comma-separated list of ingredients that must be included"
    )
    excludeIngredients: Optional[str] = Field(None, description="Comma-separated list of ingredients to exclude")
    type: Optional[str] = Field(None, description="Meal type (main course, side dish, dessert, etc.)")
    cuisine: Optional[str] = Field(None, description="Cuisine type (italian, mexican, chinese, etc.)")


class RecipeInformationParams(ToolParams):
    id: int = Field(..., description="The recipe ID")
    includeNutrition: bool = Field(False, description="Include nutrition information")


class IngredientSearchParams(ToolParams):
    query: str = Field(..., description="The ingredient search query")
    number: int = Field(10, ge=1, le=100, description="Number of results to return")
    metaInformation: bool = Field(False, description="Include meta information")


class NutritionAnalysisParams(ToolParams):
    ingredientList: str = Field(..., description="List of ingredients, one per line")
    servings: int = Field(..., ge=1, description="Number of servings")


class RecipesByIngredientsParams(ToolParams):
    ingredients: str = Field(..., description="Comma-separated list of ingredients you have")
    number: int = Field(5, ge=1, le=100, description="Number of recipes to find")
    ranking: int = Field(
        1,
        ge=1,
        le=2,
        description="Ranking strategy: 1=maximize used ingredients, 2=minimize missing ingredients",
    )


class RandomRecipesParams(ToolParams):
    number: int = Field(1, ge=1, le=100, description="Number of random recipes to fetch")
    tags: Optional[str] = Field(None, description="Comma-separated list of tags (diet, meal type, etc.)")
