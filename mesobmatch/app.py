from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Query

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .catalog.data_store import get_index, reload_index
from .catalog.models import CATEGORY_SET_VERSION
from .config import DEFAULT_APP_CONFIG
from .matching.cache import get_cache_stats, prune_cache
from .matching.errors import ErrorKind, MatchError
from .matching.models import (
    CategoriesResponse,
    FeasibilityResponse,
    FindByIngredientsRequest,
    IngredientDetail,
    IngredientOut,
    RecipeSummary,
)
from .matching.service import (
    find_recipes,
    get_ingredient,
    get_recipe,
    list_recipes,
    makeable_recipes,
    popular_recipes,
    recipe_feasibility,
)

logging.basicConfig(level=DEFAULT_APP_CONFIG.log_level.upper())

app = FastAPI(title="MesobMatch Recipe Matching API", version="1.0.0")

_STATUS_BY_KIND = {
    ErrorKind.invalid_request: 400,
    ErrorKind.unknown_entity: 404,
}


def _unwrap(result):
    """Turn an engine ``MatchError`` into the matching HTTP error."""
    if isinstance(result, MatchError):
        raise HTTPException(status_code=_STATUS_BY_KIND[result.kind], detail=result.message)
    return result


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Ingredients ──────────────────────────────────────────────────────────


@app.get("/api/v1/ingredients", response_model=list[IngredientOut])
def ingredients(category: str | None = None, q: str | None = None) -> list[IngredientOut]:
    index = get_index()
    return [
        IngredientOut(id=ing.id, name=ing.name, category=ing.category)
        for ing in index.search_ingredients(q, category)
    ]


@app.get("/api/v1/ingredients/categorized")
def ingredients_categorized() -> dict[str, list[IngredientOut]]:
    grouped = get_index().categorized_ingredients()
    return {
        category: [IngredientOut(id=i.id, name=i.name, category=i.category) for i in items]
        for category, items in grouped.items()
    }


@app.get("/api/v1/ingredients/categories", response_model=CategoriesResponse)
def ingredient_categories() -> CategoriesResponse:
    return CategoriesResponse(
        categories=list(get_index().categories),
        version=CATEGORY_SET_VERSION,
    )


# Registered after the fixed /ingredients/* paths.
@app.get("/api/v1/ingredients/{ingredient_id}", response_model=IngredientDetail)
def ingredient_detail(ingredient_id: int) -> IngredientDetail:
    return _unwrap(get_ingredient(ingredient_id))


# ── Recipes ──────────────────────────────────────────────────────────────
# Fixed paths are registered before /recipes/{recipe_id}.


@app.get("/api/v1/recipes", response_model=list[RecipeSummary])
def recipes(category: str | None = None) -> list[RecipeSummary]:
    return list_recipes(category)


@app.get("/api/v1/recipes/categories", response_model=CategoriesResponse)
def recipe_categories() -> CategoriesResponse:
    return CategoriesResponse(categories=get_index().recipe_categories())


@app.get("/api/v1/recipes/popular", response_model=list[RecipeSummary])
def popular(limit: int = Query(default=DEFAULT_APP_CONFIG.popular_limit, ge=1, le=100)) -> list[RecipeSummary]:
    return popular_recipes(limit)


# Scored and plain summaries share one route, so the payload is not
# re-validated against a single response model.
@app.post("/api/v1/recipes/find_by_ingredients", response_model=None)
def find_by_ingredients(body: FindByIngredientsRequest):
    return _unwrap(find_recipes(body))


@app.get("/api/v1/recipes/makeable", response_model=list[RecipeSummary])
def makeable(ingredient_ids: list[int] = Query(default=[])) -> list[RecipeSummary]:
    return _unwrap(makeable_recipes(ingredient_ids))


@app.get("/api/v1/recipes/{recipe_id}", response_model=RecipeSummary)
def recipe_detail(recipe_id: int) -> RecipeSummary:
    return _unwrap(get_recipe(recipe_id))


@app.get("/api/v1/recipes/{recipe_id}/feasibility", response_model=FeasibilityResponse)
def feasibility(
    recipe_id: int,
    ingredient_ids: list[int] = Query(default=[]),
) -> FeasibilityResponse:
    return _unwrap(recipe_feasibility(recipe_id, ingredient_ids))


# ── Operations ───────────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events(), get_index())


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()


@app.post("/snapshot/reload")
def snapshot_reload() -> dict:
    index = reload_index()
    pruned = prune_cache(index.version)
    return {
        "status": "reloaded",
        "version": index.version,
        "recipes": len(index.recipe_ids),
        "dropped_links": index.dropped_links,
        "pruned_cache_entries": pruned,
    }
