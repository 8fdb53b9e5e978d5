from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from mesobmatch.app import app
from mesobmatch.catalog.data_store import get_index, reload_index
from mesobmatch.matching.cache import (
    cache_get,
    cache_set,
    clear_cache,
    get_cache_stats,
    prune_cache,
    search_key,
)

client = TestClient(app)


def _find(ids, **extra):
    return client.post(
        "/api/v1/recipes/find_by_ingredients",
        json={"ingredient_ids": ids, **extra},
    )


def _write_beef_only_snapshot(root: Path) -> Path:
    (root / "ingredients.csv").write_text("id,name,category\n1,Beef,meat\n")
    (root / "recipes.csv").write_text("id,title\n10,Steak\n")
    (root / "recipe_ingredients.csv").write_text("recipe_id,ingredient_id\n10,1\n")
    return root


def test_cache_miss_then_hit():
    clear_cache()
    resp1 = _find([1, 7], include_score=True)
    assert resp1.status_code == 200
    stats = get_cache_stats()
    assert stats["misses"] == 1

    resp2 = _find([1, 7], include_score=True)
    assert resp2.json() == resp1.json()
    stats = get_cache_stats()
    assert stats["hits"] == 1


def test_cache_treats_request_as_a_set():
    clear_cache()
    _find([7, 1, 1])
    _find([1, 7])
    assert get_cache_stats()["hits"] == 1


def test_cache_different_queries_miss():
    clear_cache()
    _find([1], match_type="any")
    _find([1], match_type="all")
    _find([1], include_score=True)
    stats = get_cache_stats()
    assert stats["misses"] == 3
    assert stats["hits"] == 0
    assert stats["entries_by_kind"] == {"find": 3}


def test_snapshot_version_is_part_of_key():
    assert search_key("find", [1, 2], 1) == search_key("find", [2, 1, 1], 1)
    assert search_key("find", [1, 2], 1) != search_key("find", [1, 2], 2)
    assert search_key("find", [1], 1, mode="any") != search_key("find", [1], 1, mode="all")


def test_expired_entries_are_evicted():
    clear_cache()
    key = search_key("find", [1], 1)
    with patch("mesobmatch.matching.cache.time.time", return_value=1000.0):
        cache_set(key, ["stale"])
    with patch("mesobmatch.matching.cache.time.time", return_value=1000.0 + 301):
        assert cache_get(key, ttl=300) is None
    stats = get_cache_stats()
    assert stats["size"] == 0
    assert stats["expired"] == 1


def test_prune_drops_entries_from_other_snapshots():
    clear_cache()
    cache_set(search_key("find", [1], 1), ["old"])
    cache_set(search_key("find", [1], 2), ["new"])

    assert prune_cache(2) == 1

    stats = get_cache_stats()
    assert stats["entries_by_snapshot"] == {"2": 1}
    assert stats["pruned"] == 1
    assert cache_get(search_key("find", [1], 2)) == ["new"]


def test_reload_clears_cache():
    clear_cache()
    _find([1])
    resp = client.post("/snapshot/reload")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "reloaded"
    assert body["version"] == get_index().version
    assert body["pruned_cache_entries"] == 1
    assert get_cache_stats()["size"] == 0


def test_search_racing_a_reload_does_not_leak_into_new_snapshot(tmp_path: Path):
    clear_cache()
    old_index = get_index()
    try:
        reload_index(_write_beef_only_snapshot(tmp_path))

        # A request that resolved the index just before the reload finishes after it.
        with patch("mesobmatch.matching.service.get_index", return_value=old_index):
            late = _find([1]).json()
        assert [r["id"] for r in late] == [2, 5]

        fresh = _find([1]).json()
        assert [r["id"] for r in fresh] == [10]
    finally:
        reload_index()
        clear_cache()


def test_cache_stats_endpoint():
    clear_cache()
    _find([1, 7])
    _find([1, 7])
    resp = client.get("/cache/stats")
    assert resp.status_code == 200
    body = resp.json()
    assert body["hits"] == 1
    assert body["hit_rate"] == 50.0
    assert body["entries_by_snapshot"] == {str(get_index().version): 1}
