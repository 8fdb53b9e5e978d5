"""
Ingredient matching engine.

Responsibilities:
- Filter the catalog to recipes that qualify for a set of available
  ingredients under a match mode (any / all / exact).
- Score and rank qualifying recipes deterministically.
- Report feasibility, missing ingredients and usable optional ingredients.
"""
