"""
Request-level orchestration of the matching engine.

Responsibilities:
- Resolve the current catalog snapshot.
- Run evaluate -> rank -> feasibility for a request.
- Shape engine output into API summaries.
- Cache results and record analytics events.

Each request reads the index once and uses that index's own version for
cache keys and events, so a concurrent reload cannot mix two snapshots.
"""
from __future__ import annotations

import time

from ..analytics.store import record_makeable, record_search
from ..catalog.data_store import get_index
from ..catalog.index import CatalogIndex
from .cache import cache_get, cache_set, search_key
from .errors import NO_INGREDIENTS, MatchError, ingredient_not_found, recipe_not_found
from .evaluator import evaluate, parse_match_mode
from .models import (
    FeasibilityResponse,
    FindByIngredientsRequest,
    IngredientDetail,
    IngredientOut,
    InstructionOut,
    RecipeIngredientOut,
    RecipeSummary,
    ScoredRecipeSummary,
)
from .ranker import (
    available_optional_ingredients,
    can_make_with,
    ingredient_category_counts,
    makeable,
    match_score,
    missing_ingredients,
    popular,
    rank,
)


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 1)


def _ingredient_out(index: CatalogIndex, ingredient_id: int) -> IngredientOut:
    ing = index.ingredient(ingredient_id)
    return IngredientOut(id=ing.id, name=ing.name, category=ing.category)


def recipe_summary(index: CatalogIndex, recipe_id: int) -> RecipeSummary:
    recipe = index.recipe(recipe_id)
    ingredients: list[RecipeIngredientOut] = []
    for iid, optional in index.ingredients_of(recipe_id).items():
        ing = index.ingredient(iid)
        link = index.link(recipe_id, iid)
        ingredients.append(RecipeIngredientOut(
            id=ing.id,
            name=ing.name,
            category=ing.category,
            quantity=link.quantity if link else None,
            is_optional=optional,
        ))
    return RecipeSummary(
        id=recipe.id,
        name=recipe.name,
        title=recipe.title,
        description=recipe.description,
        category=recipe.category,
        cuisine=recipe.cuisine,
        difficulty=recipe.difficulty,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        servings=recipe.servings,
        ingredients=ingredients,
        instructions=[
            InstructionOut(step_number=step.step_number, description=step.description)
            for step in index.instructions_of(recipe_id)
        ],
    )


def _names(index: CatalogIndex, ingredient_ids: list[int]) -> list[str]:
    return [index.ingredient(iid).name for iid in ingredient_ids]


def find_recipes(
    request: FindByIngredientsRequest,
) -> list[RecipeSummary] | list[ScoredRecipeSummary] | MatchError:
    """Find recipes for the requested ingredients.

    Without ``include_score`` qualifying recipes come back in catalog order.
    With it they are ranked by match score and carry feasibility details.
    """
    start_time = time.time()
    requested = frozenset(request.ingredient_ids)
    if not requested:
        return NO_INGREDIENTS

    index = get_index()
    mode = parse_match_mode(request.match_type)
    event = {
        "match_type": mode.value,
        "mode_fallback": (request.match_type or "any").strip().lower() != mode.value,
        "include_score": request.include_score,
    }

    key = search_key(
        "find", requested, index.version,
        mode=mode.value, include_score=request.include_score,
    )
    cached = cache_get(key)
    if cached is not None:
        record_search(
            requested, index.version, **event,
            total_candidates=len(cached),
            results_returned=len(cached),
            response_time_ms=_elapsed_ms(start_time),
            cache_hit=True,
        )
        return cached

    candidates = evaluate(index, requested, mode)
    if isinstance(candidates, MatchError):
        return candidates

    results: list = []
    if request.include_score:
        for match in rank(index, candidates, requested):
            summary = recipe_summary(index, match.recipe_id)
            results.append(ScoredRecipeSummary(
                **summary.model_dump(),
                match_score=match.score,
                can_make=can_make_with(index, match.recipe_id, requested),
                missing_ingredients=_names(
                    index, missing_ingredients(index, match.recipe_id, requested)
                ),
                available_optional_ingredients=_names(
                    index, available_optional_ingredients(index, match.recipe_id, requested)
                ),
            ))
    else:
        results = [recipe_summary(index, rid) for rid in candidates]

    cache_set(key, results)
    record_search(
        requested, index.version, **event,
        total_candidates=len(candidates),
        results_returned=len(results),
        response_time_ms=_elapsed_ms(start_time),
        cache_hit=False,
    )
    return results


def makeable_recipes(ingredient_ids: list[int]) -> list[RecipeSummary] | MatchError:
    start_time = time.time()
    index = get_index()
    recipe_ids = makeable(index, ingredient_ids)
    if isinstance(recipe_ids, MatchError):
        return recipe_ids

    results = [recipe_summary(index, rid) for rid in recipe_ids]
    record_makeable(
        ingredient_ids, index.version,
        results_returned=len(results),
        response_time_ms=_elapsed_ms(start_time),
    )
    return results


def recipe_feasibility(recipe_id: int, ingredient_ids: list[int]) -> FeasibilityResponse | MatchError:
    index = get_index()
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)

    return FeasibilityResponse(
        recipe_id=recipe_id,
        can_make=can_make_with(index, recipe_id, ingredient_ids),
        match_score=match_score(index, recipe_id, ingredient_ids),
        missing_ingredients=[
            _ingredient_out(index, iid)
            for iid in missing_ingredients(index, recipe_id, ingredient_ids)
        ],
        available_optional_ingredients=[
            _ingredient_out(index, iid)
            for iid in available_optional_ingredients(index, recipe_id, ingredient_ids)
        ],
        ingredient_categories=ingredient_category_counts(index, recipe_id),
    )


def get_recipe(recipe_id: int) -> RecipeSummary | MatchError:
    index = get_index()
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    return recipe_summary(index, recipe_id)


def get_ingredient(ingredient_id: int) -> IngredientDetail | MatchError:
    """An ingredient with every recipe that uses it, optional uses included."""
    index = get_index()
    ing = index.ingredient(ingredient_id)
    if ing is None:
        return ingredient_not_found(ingredient_id)
    return IngredientDetail(
        id=ing.id,
        name=ing.name,
        category=ing.category,
        recipes=[
            recipe_summary(index, rid)
            for rid in sorted(index.recipes_containing(ingredient_id), key=index.position)
        ],
    )


def list_recipes(category: str | None = None) -> list[RecipeSummary]:
    index = get_index()
    return [
        recipe_summary(index, r.id)
        for r in index.recipes()
        if not category or r.category == category
    ]


def popular_recipes(limit: int) -> list[RecipeSummary]:
    index = get_index()
    return [recipe_summary(index, rid) for rid in popular(index, limit)]
