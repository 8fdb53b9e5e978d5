"""
Catalog snapshot layer.

Responsibilities:
- Define the recipe, ingredient and recipe-ingredient records the engine reads.
- Load a read-only snapshot of those records from CSV files.
- Build the in-memory Catalog Index used by the matching engine.
"""
