"""
In-memory log of matching requests.

Each event records the sorted, de-duplicated ingredient ids of the request
and the snapshot version of the catalog that answered it. The log keeps the
most recent ``analytics_max_events`` events.
"""
from __future__ import annotations

import time
from collections import deque
from collections.abc import Iterable
from typing import Any

from ..config import DEFAULT_APP_CONFIG

SEARCH = "search"
MAKEABLE = "makeable"
EVENT_TYPES = (SEARCH, MAKEABLE)

_events: deque[dict[str, Any]] = deque(maxlen=DEFAULT_APP_CONFIG.analytics_max_events)


def record_event(
    event_type: str,
    ingredient_ids: Iterable[int],
    snapshot_version: int,
    **data: Any,
) -> None:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type!r}")
    _events.append({
        "type": event_type,
        "timestamp": time.time(),
        "snapshot_version": snapshot_version,
        "ingredient_ids": sorted(set(ingredient_ids)),
        **data,
    })


def record_search(
    ingredient_ids: Iterable[int],
    snapshot_version: int,
    *,
    match_type: str,
    mode_fallback: bool,
    include_score: bool,
    total_candidates: int,
    results_returned: int,
    response_time_ms: float,
    cache_hit: bool,
) -> None:
    record_event(
        SEARCH,
        ingredient_ids,
        snapshot_version,
        match_type=match_type,
        mode_fallback=mode_fallback,
        include_score=include_score,
        total_candidates=total_candidates,
        results_returned=results_returned,
        response_time_ms=response_time_ms,
        cache_hit=cache_hit,
    )


def record_makeable(
    ingredient_ids: Iterable[int],
    snapshot_version: int,
    *,
    results_returned: int,
    response_time_ms: float,
) -> None:
    record_event(
        MAKEABLE,
        ingredient_ids,
        snapshot_version,
        results_returned=results_returned,
        response_time_ms=response_time_ms,
    )


def get_events(event_type: str | None = None, snapshot_version: int | None = None) -> list[dict[str, Any]]:
    return [
        e for e in _events
        if (event_type is None or e["type"] == event_type)
        and (snapshot_version is None or e["snapshot_version"] == snapshot_version)
    ]


def clear_events() -> None:
    _events.clear()
