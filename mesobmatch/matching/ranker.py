from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from ..catalog.index import CatalogIndex
from ..catalog.models import Recipe
from .errors import NO_INGREDIENTS, MatchError, recipe_not_found


@dataclass(frozen=True)
class MatchResult:
    recipe_id: int
    score: float
    recipe: Recipe | None = None


# ── Scoring ──────────────────────────────────────────────────────────────


def _score(index: CatalogIndex, recipe_id: int, requested: frozenset[int]) -> float:
    recipe_ingredients = index.ingredient_ids_of(recipe_id)
    if not recipe_ingredients:
        return 0.0
    matching = len(recipe_ingredients & requested)
    return round(matching / len(recipe_ingredients) * 100, 2)


def match_score(
    index: CatalogIndex,
    recipe_id: int,
    requested_ids: Iterable[int],
) -> float | MatchError:
    """Percentage of the recipe's ingredients (required and optional) that
    were requested, rounded to 2 decimals. Recipes without ingredients
    score 0.
    """
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    return _score(index, recipe_id, frozenset(requested_ids))


def rank(
    index: CatalogIndex,
    candidates: Iterable[int],
    requested_ids: Iterable[int],
) -> list[MatchResult]:
    """Score ``candidates`` and order them by score, highest first.

    Equal scores keep the order in which the candidates were given.
    Duplicate and unknown candidate ids are skipped.
    """
    requested = frozenset(requested_ids)
    seen: set[int] = set()
    results: list[MatchResult] = []
    for rid in candidates:
        if rid in seen or not index.has_recipe(rid):
            continue
        seen.add(rid)
        results.append(MatchResult(rid, _score(index, rid, requested), index.recipe(rid)))
    # sorted() is stable, so ties stay in first-seen order
    return sorted(results, key=lambda r: -r.score)


def rank_shards(
    index: CatalogIndex,
    shard_candidates: Iterable[Iterable[int]],
    requested_ids: Iterable[int],
) -> list[MatchResult]:
    """Rank candidates evaluated independently per shard.

    The shards are merged back into catalog order before ranking, so the
    result is identical to ranking an unsharded evaluation.
    """
    merged = {rid for shard in shard_candidates for rid in shard if index.has_recipe(rid)}
    return rank(index, sorted(merged, key=index.position), requested_ids)


# ── Feasibility ──────────────────────────────────────────────────────────


def can_make_with(
    index: CatalogIndex,
    recipe_id: int,
    available_ids: Iterable[int],
) -> bool | MatchError:
    """True when every required ingredient is available.

    Optional ingredients never block; a recipe without required ingredients
    is always makeable.
    """
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    available = frozenset(available_ids)
    return all(iid in available for iid in index.required_of(recipe_id))


def missing_ingredients(
    index: CatalogIndex,
    recipe_id: int,
    available_ids: Iterable[int],
) -> list[int] | MatchError:
    """Required ingredient ids not in ``available_ids``, in recipe order."""
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    available = frozenset(available_ids)
    return [iid for iid in index.required_of(recipe_id) if iid not in available]


def available_optional_ingredients(
    index: CatalogIndex,
    recipe_id: int,
    available_ids: Iterable[int],
) -> list[int] | MatchError:
    """Optional ingredient ids present in ``available_ids``, in recipe order."""
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    available = frozenset(available_ids)
    return [iid for iid in index.optional_of(recipe_id) if iid in available]


def makeable(index: CatalogIndex, available_ids: Iterable[int]) -> list[int] | MatchError:
    """All recipes that can be made with ``available_ids``, in catalog order."""
    available = frozenset(available_ids)
    if not available:
        return NO_INGREDIENTS
    return [
        rid
        for rid in index.recipe_ids
        if all(iid in available for iid in index.required_of(rid))
    ]


# ── Catalog summaries ────────────────────────────────────────────────────


def popular(index: CatalogIndex, limit: int = 10) -> list[int]:
    """Recipes with the most ingredients first; ties in catalog order.

    Recipes without any ingredients are left out.
    """
    sized = [(rid, len(index.ingredients_of(rid))) for rid in index.recipe_ids]
    ordered = sorted((s for s in sized if s[1] > 0), key=lambda s: -s[1])
    return [rid for rid, _ in ordered[:limit]]


def ingredient_category_counts(index: CatalogIndex, recipe_id: int) -> dict[str, int] | MatchError:
    if not index.has_recipe(recipe_id):
        return recipe_not_found(recipe_id)
    counts: Counter[str] = Counter()
    for iid in index.ingredients_of(recipe_id):
        counts[index.category_of(iid) or "other"] += 1
    return dict(counts)
