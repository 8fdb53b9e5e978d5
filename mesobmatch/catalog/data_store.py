from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from ..config import DEFAULT_APP_CONFIG
from .index import CatalogIndex, build_index
from .models import (
    DEFAULT_CATEGORIES,
    Ingredient,
    Instruction,
    Recipe,
    RecipeIngredientLink,
)

logger = logging.getLogger(__name__)

INGREDIENTS_CSV = "ingredients.csv"
RECIPES_CSV = "recipes.csv"
LINKS_CSV = "recipe_ingredients.csv"
INSTRUCTIONS_CSV = "instructions.csv"

_REQUIRED_COLUMNS: dict[str, list[str]] = {
    INGREDIENTS_CSV: ["id", "name", "category"],
    RECIPES_CSV: ["id", "title"],
    LINKS_CSV: ["recipe_id", "ingredient_id"],
    INSTRUCTIONS_CSV: ["recipe_id", "step_number", "description"],
}

_RECIPE_TEXT_FIELDS = [
    "name",
    "description",
    "category",
    "cuisine",
    "difficulty",
    "prep_time",
    "cook_time",
]

# The current index carries its own version; both are swapped in together.
_index: CatalogIndex | None = None
_versions = itertools.count(1)


class SnapshotError(RuntimeError):
    """Raised when a snapshot is missing a file or column, or a recipe or
    ingredient row has an unreadable id."""


@dataclass(frozen=True)
class Snapshot:
    recipes: list[Recipe]
    ingredients: list[Ingredient]
    links: list[RecipeIngredientLink]
    instructions: list[Instruction] = field(default_factory=list)
    unparsed_links: int = 0


def _read(snapshot_dir: Path, filename: str, optional: bool = False) -> pd.DataFrame | None:
    path = snapshot_dir / filename
    if not path.is_file():
        if optional:
            logger.debug("No %s in %s", filename, snapshot_dir)
            return None
        raise SnapshotError(f"Snapshot file not found: {path}")
    df = pd.read_csv(path, dtype=str)
    missing = [c for c in _REQUIRED_COLUMNS[filename] if c not in df.columns]
    if missing:
        raise SnapshotError(f"{path} is missing columns: {', '.join(missing)}")
    return df


def _ids(df: pd.DataFrame, column: str) -> pd.Series:
    """Parse a whole-number column. Blank or unreadable cells become ``<NA>``."""
    stripped = df[column].map(lambda v: v.strip() if isinstance(v, str) else v)
    numeric = pd.to_numeric(stripped, errors="coerce")
    return numeric.where(numeric % 1 == 0).astype("Int64")


def _strict_ids(df: pd.DataFrame, filename: str, column: str = "id") -> pd.Series:
    ids = _ids(df, column)
    bad = ids.isna()
    if bad.any():
        # +2: header line and 1-based numbering
        lines = ", ".join(str(i + 2) for i in df.index[bad])
        raise SnapshotError(f"{filename} has an unreadable {column} on line(s) {lines}")
    return ids


def _text(value) -> str | None:
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _flag(value) -> bool:
    if pd.isna(value):
        return False
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes")
    return bool(value)


def _optional_int(value) -> int | None:
    return None if pd.isna(value) else int(value)


def load_snapshot(snapshot_dir: Path) -> Snapshot:
    """Read recipes, ingredients, links and instructions from a snapshot directory.

    Link rows whose recipe or ingredient id cannot be read are skipped and
    counted. ``instructions.csv`` may be absent.
    """
    ing_df = _read(snapshot_dir, INGREDIENTS_CSV)
    rec_df = _read(snapshot_dir, RECIPES_CSV)
    link_df = _read(snapshot_dir, LINKS_CSV)
    step_df = _read(snapshot_dir, INSTRUCTIONS_CSV, optional=True)

    ing_ids = _strict_ids(ing_df, INGREDIENTS_CSV)
    ingredients = [
        Ingredient(
            id=int(ing_ids[idx]),
            name=str(row["name"]).strip(),
            category=str(row["category"]).strip().lower(),
        )
        for idx, row in ing_df.iterrows()
    ]

    rec_ids = _strict_ids(rec_df, RECIPES_CSV)
    servings = _ids(rec_df, "servings") if "servings" in rec_df.columns else None
    if servings is not None:
        unreadable = int((servings.isna() & rec_df["servings"].notna()).sum())
        if unreadable:
            logger.warning("%d recipes have an unreadable servings value; left empty", unreadable)
    recipes = [
        Recipe(
            id=int(rec_ids[idx]),
            title=str(row["title"]).strip(),
            servings=_optional_int(servings[idx]) if servings is not None else None,
            **{f: _text(row.get(f)) for f in _RECIPE_TEXT_FIELDS},
        )
        for idx, row in rec_df.iterrows()
    ]

    link_rids = _ids(link_df, "recipe_id")
    link_iids = _ids(link_df, "ingredient_id")
    readable = link_rids.notna() & link_iids.notna()
    unparsed = int((~readable).sum())
    if unparsed:
        logger.warning("%s: skipped %d rows with an unreadable recipe or ingredient id", LINKS_CSV, unparsed)
    links = [
        RecipeIngredientLink(
            recipe_id=int(link_rids[idx]),
            ingredient_id=int(link_iids[idx]),
            is_optional=_flag(row.get("is_optional")),
            quantity=_text(row.get("quantity")),
        )
        for idx, row in link_df[readable].iterrows()
    ]

    instructions: list[Instruction] = []
    if step_df is not None:
        step_rids = _ids(step_df, "recipe_id")
        numbers = _ids(step_df, "step_number")
        for idx, row in step_df.iterrows():
            description = _text(row["description"])
            if pd.isna(step_rids[idx]) or pd.isna(numbers[idx]) or description is None:
                logger.warning("%s: skipped unreadable line %d", INSTRUCTIONS_CSV, idx + 2)
                continue
            instructions.append(Instruction(
                recipe_id=int(step_rids[idx]),
                step_number=int(numbers[idx]),
                description=description,
            ))

    return Snapshot(recipes, ingredients, links, instructions, unparsed)


def load_index(
    snapshot_dir: Path,
    categories: tuple[str, ...] = DEFAULT_CATEGORIES,
    version: int = 0,
) -> CatalogIndex:
    snapshot = load_snapshot(snapshot_dir)
    index = build_index(
        snapshot.recipes,
        snapshot.ingredients,
        snapshot.links,
        categories,
        instructions=snapshot.instructions,
        unparsed_links=snapshot.unparsed_links,
        version=version,
    )
    logger.info(
        "Loaded catalog snapshot v%d from %s: %d recipes, %d ingredients, %d links",
        version,
        snapshot_dir,
        len(snapshot.recipes),
        len(snapshot.ingredients),
        len(snapshot.links),
    )
    return index


def get_index() -> CatalogIndex:
    """Return the current catalog index, loading the snapshot on first call."""
    global _index
    if _index is None:
        _index = load_index(DEFAULT_APP_CONFIG.snapshot_dir, version=next(_versions))
    return _index


def reload_index(snapshot_dir: Path | None = None) -> CatalogIndex:
    """Re-read the snapshot and swap it in as the current index."""
    global _index
    index = load_index(snapshot_dir or DEFAULT_APP_CONFIG.snapshot_dir, version=next(_versions))
    _index = index
    return index


def get_snapshot_version() -> int:
    """Version of the current index, or 0 before the first load."""
    index = _index
    return index.version if index is not None else 0
