from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    invalid_request = "invalid_request"
    unknown_entity = "unknown_entity"


@dataclass(frozen=True)
class MatchError:
    """Typed error value returned by engine functions instead of raising."""

    kind: ErrorKind
    message: str


NO_INGREDIENTS = MatchError(ErrorKind.invalid_request, "No ingredients provided")


def recipe_not_found(recipe_id: int) -> MatchError:
    return MatchError(ErrorKind.unknown_entity, f"Recipe {recipe_id} not found")


def ingredient_not_found(ingredient_id: int) -> MatchError:
    return MatchError(ErrorKind.unknown_entity, f"Ingredient {ingredient_id} not found")
