from __future__ import annotations

from collections import Counter
from typing import Any

from ..catalog.index import CatalogIndex


def compute_analytics(events: list[dict[str, Any]], index: CatalogIndex | None = None) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    makeable_checks = [e for e in events if e["type"] == "makeable"]
    total = len(searches)

    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    mode_counter: Counter[str] = Counter(s.get("match_type", "any") for s in searches)

    # Requests whose match_type was not recognised and ran as "any"
    fallbacks = sum(1 for s in searches if s.get("mode_fallback"))

    ingredient_counter: Counter[int] = Counter()
    for e in searches + makeable_checks:
        for iid in e.get("ingredient_ids", []) or []:
            ingredient_counter[iid] += 1
    top_ingredients = []
    for iid, count in ingredient_counter.most_common(10):
        ing = index.ingredient(iid) if index else None
        top_ingredients.append({"id": iid, "name": ing.name if ing else None, "count": count})

    scored = sum(1 for s in searches if s.get("include_score"))
    empty_results = sum(1 for s in searches if s.get("results_returned") == 0)

    cache_hits = sum(1 for s in searches if s.get("cache_hit"))
    cache_misses = total - cache_hits

    snapshot_counter: Counter[int] = Counter(
        s["snapshot_version"] for s in searches if "snapshot_version" in s
    )

    result: dict[str, Any] = {
        "total_searches": total,
        "total_makeable_checks": len(makeable_checks),
        "avg_response_time_ms": avg_time,
        "match_type_usage": dict(mode_counter),
        "match_type_fallbacks": fallbacks,
        "scored_search_rate": round(scored / total * 100, 1) if total else 0.0,
        "empty_result_rate": round(empty_results / total * 100, 1) if total else 0.0,
        "top_ingredients": top_ingredients,
        "searches_by_snapshot": {
            str(version): count
            for version, count in sorted(snapshot_counter.items())
        },
        "cache_stats": {
            "hits": cache_hits,
            "misses": cache_misses,
            "hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        },
    }

    if index is not None:
        result["catalog"] = {
            "snapshot_version": index.version,
            "recipes": len(index.recipe_ids),
            "ingredients": len(index.ingredients()),
            "dropped_links": index.dropped_links,
            "duplicate_links": index.duplicate_links,
            "duplicate_recipes": index.duplicate_recipes,
            "duplicate_ingredients": index.duplicate_ingredients,
            "dropped_instructions": index.dropped_instructions,
            "uncategorized_ingredients": index.uncategorized_ingredients,
        }

    return result
