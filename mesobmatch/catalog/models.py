from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Bump whenever the enumeration below changes.
CATEGORY_SET_VERSION = "2025-08-01"


class IngredientCategory(str, Enum):
    spices = "spices"
    vegetables = "vegetables"
    meat = "meat"
    grains = "grains"
    legumes = "legumes"
    dairy = "dairy"
    oils = "oils"
    herbs = "herbs"
    fruits = "fruits"
    nuts = "nuts"
    other = "other"


DEFAULT_CATEGORIES: tuple[str, ...] = tuple(c.value for c in IngredientCategory)


@dataclass(frozen=True)
class Ingredient:
    id: int
    name: str
    category: str


@dataclass(frozen=True)
class Recipe:
    id: int
    title: str
    name: str | None = None
    description: str | None = None
    category: str | None = None
    cuisine: str | None = None
    difficulty: str | None = None
    prep_time: str | None = None
    cook_time: str | None = None
    servings: int | None = None


@dataclass(frozen=True)
class RecipeIngredientLink:
    recipe_id: int
    ingredient_id: int
    is_optional: bool = False
    quantity: str | None = None


@dataclass(frozen=True)
class Instruction:
    recipe_id: int
    step_number: int
    description: str
