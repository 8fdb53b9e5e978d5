from __future__ import annotations

from fastapi.testclient import TestClient

from mesobmatch.app import app

client = TestClient(app)

# Ids from the bundled snapshot
BEEF, ONIONS, MITMITA, CARDAMOM, BUTTER, CHEESE = 1, 7, 17, 18, 24, 25
TEFF, OLIVE_OIL, JALAPENO, PEANUTS = 23, 26, 28, 30
DORO_WAT, KITFO, BEEF_TIBS, MISIR_WAT, GOMEN, INJERA, BUNA = 1, 2, 5, 4, 6, 8, 9


def _find(**body):
    return client.post("/api/v1/recipes/find_by_ingredients", json=body)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


# ── find_by_ingredients ──────────────────────────────────────────────────


def test_find_any_returns_recipes_in_catalog_order():
    resp = _find(ingredient_ids=[BEEF], match_type="any")
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [KITFO, BEEF_TIBS]


def test_find_defaults_to_any():
    resp = _find(ingredient_ids=[BEEF])
    assert [r["id"] for r in resp.json()] == [KITFO, BEEF_TIBS]


def test_find_all_requires_every_ingredient():
    resp = _find(ingredient_ids=[BEEF, ONIONS], match_type="all")
    assert [r["id"] for r in resp.json()] == [BEEF_TIBS]


def test_find_exact():
    resp = _find(ingredient_ids=[TEFF, TEFF], match_type="exact")
    body = resp.json()
    assert [r["id"] for r in body] == [INJERA]
    assert body[0]["ingredients"][0]["quantity"] == "3 cups flour"


def test_find_unknown_match_type_behaves_like_any():
    any_resp = _find(ingredient_ids=[BEEF, ONIONS], match_type="any")
    odd_resp = _find(ingredient_ids=[BEEF, ONIONS], match_type="most")
    assert odd_resp.status_code == 200
    assert odd_resp.json() == any_resp.json()


def test_find_without_score_has_no_score_fields():
    body = _find(ingredient_ids=[BEEF]).json()
    assert "match_score" not in body[0]


def test_find_with_score_ranks_and_reports_missing():
    resp = _find(
        ingredient_ids=[BEEF, ONIONS, JALAPENO, OLIVE_OIL],
        match_type="any",
        include_score=True,
    )
    assert resp.status_code == 200
    body = resp.json()

    scores = [r["match_score"] for r in body]
    assert scores == sorted(scores, reverse=True)

    top = body[0]
    assert top["id"] == BEEF_TIBS
    assert top["match_score"] == 66.67
    assert top["can_make"] is True
    assert top["missing_ingredients"] == []

    # Misir Wat and Gomen tie at 40.0 and keep catalog order
    tied = [r["id"] for r in body if r["match_score"] == 40.0]
    assert tied == [MISIR_WAT, GOMEN]

    kitfo = next(r for r in body if r["id"] == KITFO)
    assert kitfo["match_score"] == 20.0
    assert kitfo["can_make"] is False
    assert kitfo["missing_ingredients"] == ["Mitmita", "Butter"]


def test_find_with_score_respects_match_type():
    body = _find(ingredient_ids=[BEEF, ONIONS], match_type="all", include_score=True).json()
    assert [r["id"] for r in body] == [BEEF_TIBS]


def test_find_reports_available_optional_ingredients():
    body = _find(
        ingredient_ids=[BEEF, MITMITA, BUTTER, CHEESE],
        match_type="all",
        include_score=True,
    ).json()
    assert [r["id"] for r in body] == [KITFO]
    assert body[0]["available_optional_ingredients"] == ["Cheese"]
    assert body[0]["can_make"] is True


def test_find_empty_ingredients_is_bad_request():
    for body in ({"ingredient_ids": []}, {}, {"ingredient_ids": [], "match_type": "exact"}):
        resp = _find(**body)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "No ingredients provided"}


def test_empty_request_is_rejected_before_match_type_is_read(caplog):
    with caplog.at_level("WARNING"):
        resp = _find(ingredient_ids=[], match_type="bogus")
    assert resp.status_code == 400
    assert "Unknown match mode" not in caplog.text


def test_find_rejects_non_integer_ids():
    resp = _find(ingredient_ids=["beef"])
    assert resp.status_code == 422


# ── makeable ─────────────────────────────────────────────────────────────


def test_makeable_includes_recipes_without_required_ingredients():
    resp = client.get("/api/v1/recipes/makeable", params={"ingredient_ids": [TEFF]})
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [INJERA, BUNA]


def test_makeable_ignores_optional_ingredients():
    resp = client.get(
        "/api/v1/recipes/makeable",
        params={"ingredient_ids": [BEEF, MITMITA, BUTTER]},
    )
    assert KITFO in [r["id"] for r in resp.json()]


def test_makeable_without_ingredients_is_bad_request():
    resp = client.get("/api/v1/recipes/makeable")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No ingredients provided"


# ── Single recipe ────────────────────────────────────────────────────────


def test_recipe_detail():
    resp = client.get(f"/api/v1/recipes/{KITFO}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Kitfo"
    optional = [i["name"] for i in body["ingredients"] if i["is_optional"]]
    assert optional == ["Cardamom", "Cheese"]


def test_recipe_detail_unknown_is_404():
    resp = client.get("/api/v1/recipes/9999")
    assert resp.status_code == 404


def test_recipe_detail_lists_instructions_in_step_order():
    body = client.get(f"/api/v1/recipes/{KITFO}").json()
    steps = body["instructions"]
    assert [s["step_number"] for s in steps] == [1, 2, 3, 4, 5]
    assert steps[0]["description"] == "Select the finest quality beef and mince very finely"
    assert steps[-1]["description"].startswith("Serve immediately")


def test_recipe_without_instructions_has_empty_list():
    body = client.get(f"/api/v1/recipes/{BUNA}").json()
    assert body["instructions"] == []


def test_find_results_carry_instructions():
    body = _find(ingredient_ids=[MITMITA], include_score=True).json()
    assert [r["id"] for r in body] == [KITFO]
    assert len(body[0]["instructions"]) == 5


def test_feasibility():
    resp = client.get(
        f"/api/v1/recipes/{KITFO}/feasibility",
        params={"ingredient_ids": [BEEF, BUTTER, CHEESE]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["can_make"] is False
    assert body["match_score"] == 60.0
    assert [i["name"] for i in body["missing_ingredients"]] == ["Mitmita"]
    assert [i["name"] for i in body["available_optional_ingredients"]] == ["Cheese"]
    assert body["ingredient_categories"] == {"meat": 1, "spices": 2, "dairy": 2}


def test_feasibility_unknown_recipe_is_404():
    resp = client.get("/api/v1/recipes/9999/feasibility", params={"ingredient_ids": [BEEF]})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Recipe 9999 not found"


# ── Catalog listings ─────────────────────────────────────────────────────


def test_recipes_filter_by_category():
    body = client.get("/api/v1/recipes", params={"category": "Bread"}).json()
    assert [r["id"] for r in body] == [INJERA]


def test_recipe_categories():
    body = client.get("/api/v1/recipes/categories").json()
    assert body["categories"] == ["Appetizer", "Beverage", "Bread", "Main Course", "Vegetarian"]


def test_popular():
    body = client.get("/api/v1/recipes/popular", params={"limit": 3}).json()
    assert [r["title"] for r in body] == ["Doro Wat", "Shiro Wat", "Beef Tibs"]


def test_popular_excludes_recipes_without_ingredients():
    body = client.get("/api/v1/recipes/popular", params={"limit": 100}).json()
    assert BUNA not in [r["id"] for r in body]


def test_ingredient_categories():
    body = client.get("/api/v1/ingredients/categories").json()
    assert body["categories"][0] == "spices"
    assert "nuts" in body["categories"]
    assert body["version"]


def test_ingredients_search():
    body = client.get("/api/v1/ingredients", params={"q": "pepper"}).json()
    assert [i["name"] for i in body] == ["Black Pepper"]


def test_ingredients_categorized():
    body = client.get("/api/v1/ingredients/categorized").json()
    assert [i["name"] for i in body["dairy"]] == ["Butter", "Cheese"]
    assert set(body) >= {"spices", "fruits", "nuts", "other"}


# ── Single ingredient ────────────────────────────────────────────────────


def test_ingredient_detail_lists_recipes_using_it():
    resp = client.get(f"/api/v1/ingredients/{BEEF}")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Beef"
    assert body["category"] == "meat"
    assert [r["id"] for r in body["recipes"]] == [KITFO, BEEF_TIBS]


def test_ingredient_detail_includes_optional_uses():
    body = client.get(f"/api/v1/ingredients/{CARDAMOM}").json()
    assert [r["id"] for r in body["recipes"]] == [DORO_WAT, KITFO]


def test_unused_ingredient_has_no_recipes():
    body = client.get(f"/api/v1/ingredients/{PEANUTS}").json()
    assert body["recipes"] == []


def test_ingredient_detail_unknown_is_404():
    resp = client.get("/api/v1/ingredients/9999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Ingredient 9999 not found"


def test_fixed_ingredient_paths_still_resolve():
    assert client.get("/api/v1/ingredients/categories").status_code == 200
    assert client.get("/api/v1/ingredients/categorized").status_code == 200
