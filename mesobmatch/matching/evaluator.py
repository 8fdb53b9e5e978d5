from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from ..catalog.index import CatalogIndex
from .errors import NO_INGREDIENTS, MatchError

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    any = "any"
    all = "all"
    exact = "exact"


def parse_match_mode(raw: str | MatchMode | None) -> MatchMode:
    """Map a caller-supplied mode string to a :class:`MatchMode`.

    Missing or unrecognised values fall back to ``any``; unrecognised ones
    are logged.
    """
    if isinstance(raw, MatchMode):
        return raw
    if raw is None or raw == "":
        return MatchMode.any
    try:
        return MatchMode(str(raw).strip().lower())
    except ValueError:
        logger.warning("Unknown match mode %r, falling back to 'any'", raw)
        return MatchMode.any


def evaluate(
    index: CatalogIndex,
    requested_ids: Iterable[int],
    mode: str | MatchMode | None = MatchMode.any,
) -> list[int] | MatchError:
    """Return the ids of recipes qualifying for ``requested_ids`` under ``mode``.

    ``requested_ids`` is treated as a set. Candidates come back once each,
    in catalog order; that order is the tie-break the ranker relies on.
    """
    requested = frozenset(requested_ids)
    if not requested:
        return NO_INGREDIENTS

    match_mode = parse_match_mode(mode)

    # Reverse index: only recipes sharing at least one ingredient can qualify
    # under any mode.
    touched: set[int] = set()
    for iid in requested:
        touched |= index.recipes_containing(iid)

    if match_mode is MatchMode.any:
        qualifying = touched
    elif match_mode is MatchMode.all:
        qualifying = {rid for rid in touched if requested <= index.ingredient_ids_of(rid)}
    else:
        qualifying = {rid for rid in touched if index.ingredient_ids_of(rid) == requested}

    return sorted(qualifying, key=index.position)
