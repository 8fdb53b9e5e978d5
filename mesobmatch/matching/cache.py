"""
Result cache for ingredient searches.

Searches are keyed on their *set* semantics, so ``[3, 1, 1]`` and ``[1, 3]``
share an entry, and on the snapshot version of the index that answered
them, so a reloaded catalog never serves results computed against the
previous one. Entries left behind by an older snapshot are pruned on reload.
"""
from __future__ import annotations

import time
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..config import DEFAULT_APP_CONFIG


@dataclass(frozen=True)
class SearchKey:
    kind: str
    ingredient_ids: frozenset[int]
    snapshot_version: int
    options: tuple[tuple[str, Any], ...] = ()


_entries: dict[SearchKey, tuple[float, Any]] = {}
_counters: Counter[str] = Counter()


def search_key(
    kind: str,
    ingredient_ids: Iterable[int],
    snapshot_version: int,
    **options: Any,
) -> SearchKey:
    return SearchKey(
        kind=kind,
        ingredient_ids=frozenset(ingredient_ids),
        snapshot_version=snapshot_version,
        options=tuple(sorted(options.items())),
    )


def cache_get(key: SearchKey, ttl: float = DEFAULT_APP_CONFIG.cache_ttl) -> Any | None:
    entry = _entries.get(key)
    if entry is not None:
        created_at, value = entry
        if time.time() - created_at < ttl:
            _counters["hits"] += 1
            return value
        _entries.pop(key, None)
        _counters["expired"] += 1
    _counters["misses"] += 1
    return None


def cache_set(key: SearchKey, value: Any) -> None:
    _entries[key] = (time.time(), value)


def prune_cache(snapshot_version: int) -> int:
    """Drop entries computed against any snapshot other than ``snapshot_version``."""
    stale = [key for key in list(_entries) if key.snapshot_version != snapshot_version]
    for key in stale:
        _entries.pop(key, None)
    _counters["pruned"] += len(stale)
    return len(stale)


def get_cache_stats() -> dict:
    hits, misses = _counters["hits"], _counters["misses"]
    lookups = hits + misses
    keys = list(_entries)
    return {
        "size": len(keys),
        "hits": hits,
        "misses": misses,
        "expired": _counters["expired"],
        "pruned": _counters["pruned"],
        "hit_rate": round(hits / lookups * 100, 1) if lookups else 0.0,
        "entries_by_kind": dict(Counter(k.kind for k in keys)),
        "entries_by_snapshot": {
            str(version): count
            for version, count in sorted(Counter(k.snapshot_version for k in keys).items())
        },
    }


def clear_cache() -> None:
    _entries.clear()
    _counters.clear()
