from __future__ import annotations

from pydantic import BaseModel, Field


class FindByIngredientsRequest(BaseModel):
    ingredient_ids: list[int] = Field(
        default_factory=list,
        description="Ingredients the user has; order and duplicates are ignored",
    )
    match_type: str | None = Field(
        default="any",
        description='"any", "all" or "exact"; anything else behaves like "any"',
    )
    include_score: bool = False


class IngredientOut(BaseModel):
    id: int
    name: str
    category: str


class RecipeIngredientOut(IngredientOut):
    quantity: str | None = None
    is_optional: bool = False


class InstructionOut(BaseModel):
    step_number: int
    description: str


class RecipeSummary(BaseModel):
    id: int
    name: str | None = None
    title: str
    description: str | None = None
    category: str | None = None
    cuisine: str | None = None
    difficulty: str | None = None
    prep_time: str | None = None
    cook_time: str | None = None
    servings: int | None = None
    ingredients: list[RecipeIngredientOut] = Field(default_factory=list)
    instructions: list[InstructionOut] = Field(default_factory=list)


class IngredientDetail(IngredientOut):
    recipes: list[RecipeSummary] = Field(
        default_factory=list,
        description="Recipes that use the ingredient, in catalog order",
    )


class ScoredRecipeSummary(RecipeSummary):
    match_score: float
    can_make: bool
    missing_ingredients: list[str] = Field(default_factory=list)
    available_optional_ingredients: list[str] = Field(default_factory=list)


class FeasibilityResponse(BaseModel):
    recipe_id: int
    can_make: bool
    match_score: float
    missing_ingredients: list[IngredientOut]
    available_optional_ingredients: list[IngredientOut]
    ingredient_categories: dict[str, int]


class CategoriesResponse(BaseModel):
    categories: list[str]
    version: str | None = None
