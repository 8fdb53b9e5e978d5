from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from .models import (
    DEFAULT_CATEGORIES,
    Ingredient,
    IngredientCategory,
    Instruction,
    Recipe,
    RecipeIngredientLink,
)

logger = logging.getLogger(__name__)

_EMPTY: frozenset[int] = frozenset()


class CatalogIndex:
    """Read-only lookup structure over one catalog snapshot.

    Holds ``recipe_id -> {ingredient_id -> is_optional}`` in link order,
    ``ingredient_id -> category`` and the reverse
    ``ingredient_id -> {recipe_id}`` index. Instances are never mutated
    after :func:`build_index` returns them. ``version`` identifies the
    snapshot the index was built from and travels with it, so callers
    that hold an index never pair it with another snapshot's version.
    """

    def __init__(
        self,
        recipes: dict[int, Recipe],
        ingredients: dict[int, Ingredient],
        links: dict[int, dict[int, RecipeIngredientLink]],
        categories: tuple[str, ...],
        *,
        instructions: dict[int, tuple[Instruction, ...]] | None = None,
        version: int = 0,
        dropped_links: int = 0,
        duplicate_links: int = 0,
        duplicate_recipes: int = 0,
        duplicate_ingredients: int = 0,
        uncategorized_ingredients: int = 0,
        dropped_instructions: int = 0,
    ) -> None:
        self._recipes = recipes
        self._ingredients = ingredients
        self._links = links
        self._categories = categories
        self._instructions = instructions or {}
        self._positions = {rid: i for i, rid in enumerate(recipes)}
        self.version = version

        self._flags: dict[int, Mapping[int, bool]] = {
            rid: MappingProxyType({iid: link.is_optional for iid, link in by_ing.items()})
            for rid, by_ing in links.items()
        }

        reverse: dict[int, set[int]] = {}
        for rid, by_ing in links.items():
            for iid in by_ing:
                reverse.setdefault(iid, set()).add(rid)
        self._reverse = {iid: frozenset(rids) for iid, rids in reverse.items()}

        self.dropped_links = dropped_links
        self.duplicate_links = duplicate_links
        self.duplicate_recipes = duplicate_recipes
        self.duplicate_ingredients = duplicate_ingredients
        self.uncategorized_ingredients = uncategorized_ingredients
        self.dropped_instructions = dropped_instructions

    # ── Recipes ──────────────────────────────────────────────────────────

    @property
    def recipe_ids(self) -> tuple[int, ...]:
        return tuple(self._recipes)

    @property
    def categories(self) -> tuple[str, ...]:
        return self._categories

    def has_recipe(self, recipe_id: int) -> bool:
        return recipe_id in self._recipes

    def recipe(self, recipe_id: int) -> Recipe | None:
        return self._recipes.get(recipe_id)

    def recipes(self) -> list[Recipe]:
        return list(self._recipes.values())

    def position(self, recipe_id: int) -> int:
        """Snapshot position of a recipe, used as the deterministic tie-break."""
        return self._positions[recipe_id]

    def ingredients_of(self, recipe_id: int) -> Mapping[int, bool]:
        """Return ``ingredient_id -> is_optional`` for a recipe, in link order."""
        return self._flags.get(recipe_id, MappingProxyType({}))

    def ingredient_ids_of(self, recipe_id: int) -> frozenset[int]:
        return frozenset(self.ingredients_of(recipe_id))

    def required_of(self, recipe_id: int) -> list[int]:
        return [iid for iid, optional in self.ingredients_of(recipe_id).items() if not optional]

    def optional_of(self, recipe_id: int) -> list[int]:
        return [iid for iid, optional in self.ingredients_of(recipe_id).items() if optional]

    def link(self, recipe_id: int, ingredient_id: int) -> RecipeIngredientLink | None:
        return self._links.get(recipe_id, {}).get(ingredient_id)

    def instructions_of(self, recipe_id: int) -> tuple[Instruction, ...]:
        """Preparation steps of a recipe, ordered by step number."""
        return self._instructions.get(recipe_id, ())

    def recipe_categories(self) -> list[str]:
        return sorted({r.category for r in self._recipes.values() if r.category})

    # ── Ingredients ──────────────────────────────────────────────────────

    def has_ingredient(self, ingredient_id: int) -> bool:
        return ingredient_id in self._ingredients

    def ingredient(self, ingredient_id: int) -> Ingredient | None:
        return self._ingredients.get(ingredient_id)

    def ingredients(self) -> list[Ingredient]:
        return list(self._ingredients.values())

    def recipes_containing(self, ingredient_id: int) -> frozenset[int]:
        return self._reverse.get(ingredient_id, _EMPTY)

    def category_of(self, ingredient_id: int) -> str | None:
        """Category of an ingredient, or ``None`` when the id is unknown."""
        ing = self._ingredients.get(ingredient_id)
        return ing.category if ing else None

    def categorized_ingredients(self) -> dict[str, list[Ingredient]]:
        grouped: dict[str, list[Ingredient]] = {c: [] for c in self._categories}
        for ing in sorted(self._ingredients.values(), key=lambda i: i.name.lower()):
            grouped.setdefault(ing.category, []).append(ing)
        return grouped

    def search_ingredients(self, query: str | None = None, category: str | None = None) -> list[Ingredient]:
        """Case-insensitive substring lookup by name, optionally within a category."""
        needle = (query or "").strip().lower()
        return [
            ing
            for ing in self._ingredients.values()
            if (not category or ing.category == category)
            and (not needle or needle in ing.name.lower())
        ]


def build_index(
    recipes: Iterable[Recipe],
    ingredients: Iterable[Ingredient],
    links: Iterable[RecipeIngredientLink],
    categories: Iterable[str] = DEFAULT_CATEGORIES,
    *,
    instructions: Iterable[Instruction] = (),
    unparsed_links: int = 0,
    version: int = 0,
) -> CatalogIndex:
    """Build a :class:`CatalogIndex` from raw snapshot records.

    Stale links (unknown recipe or ingredient) and duplicate
    (recipe, ingredient) links are skipped and counted; the first link for a
    pair wins. ``unparsed_links`` is the number of link rows the loader could
    not read at all; they are reported as stale. Repeated recipe or
    ingredient ids keep their first record and are counted. Ingredients whose
    category is not in ``categories`` are indexed under ``other``.
    Construction never fails on bad data.
    """
    allowed = tuple(categories)
    fallback = IngredientCategory.other.value

    recipe_map: dict[int, Recipe] = {}
    duplicate_recipes = 0
    for r in recipes:
        if r.id in recipe_map:
            duplicate_recipes += 1
            continue
        recipe_map[r.id] = r

    ingredient_map: dict[int, Ingredient] = {}
    uncategorized = 0
    duplicate_ingredients = 0
    for ing in ingredients:
        if ing.id in ingredient_map:
            duplicate_ingredients += 1
            continue
        if ing.category not in allowed:
            uncategorized += 1
            ing = Ingredient(id=ing.id, name=ing.name, category=fallback)
        ingredient_map[ing.id] = ing

    if duplicate_recipes or duplicate_ingredients:
        logger.warning(
            "Catalog index ignored %d repeated recipe ids and %d repeated ingredient ids",
            duplicate_recipes,
            duplicate_ingredients,
        )

    link_map: dict[int, dict[int, RecipeIngredientLink]] = {rid: {} for rid in recipe_map}
    dropped = unparsed_links
    duplicates = 0
    for link in links:
        if link.recipe_id not in recipe_map or link.ingredient_id not in ingredient_map:
            dropped += 1
            continue
        by_ing = link_map[link.recipe_id]
        if link.ingredient_id in by_ing:
            duplicates += 1
            continue
        by_ing[link.ingredient_id] = link

    if dropped or duplicates:
        logger.warning(
            "Catalog index skipped %d stale and %d duplicate recipe-ingredient links",
            dropped,
            duplicates,
        )
    if uncategorized:
        logger.warning(
            "%d ingredients had a category outside %s and were filed under %r",
            uncategorized,
            allowed,
            fallback,
        )

    steps: dict[int, dict[int, Instruction]] = {}
    dropped_steps = 0
    for step in instructions:
        by_number = steps.setdefault(step.recipe_id, {})
        if step.recipe_id not in recipe_map or step.step_number in by_number:
            dropped_steps += 1
            continue
        by_number[step.step_number] = step
    if dropped_steps:
        logger.warning("Catalog index skipped %d stale or repeated instruction steps", dropped_steps)

    return CatalogIndex(
        recipe_map,
        ingredient_map,
        link_map,
        allowed,
        instructions={
            rid: tuple(by_number[n] for n in sorted(by_number))
            for rid, by_number in steps.items()
            if by_number
        },
        version=version,
        dropped_links=dropped,
        duplicate_links=duplicates,
        duplicate_recipes=duplicate_recipes,
        duplicate_ingredients=duplicate_ingredients,
        uncategorized_ingredients=uncategorized,
        dropped_instructions=dropped_steps,
    )
