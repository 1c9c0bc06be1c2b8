"""
Route Tests
===========

HTTP surface through FastAPI's TestClient. The generation service singleton
gets a fake generation client so no request leaves the process.
"""

import logging

import pytest
from fastapi.testclient import TestClient

from mealplanner.main import app, cors_origins_from_env, log_level_from_env
from mealplanner.services.meal_generation_service import meal_generation_service

client = TestClient(app)


def generation_body(recipes, duration=2, meal_types=("lunch",), start_date="2026-01-26"):
    body = {
        "favoriteRecipes": recipes,
        "preferences": {"duration": duration, "people": 2, "maxPrepTime": 45},
        "selectedMealTypes": list(meal_types),
    }
    if start_date is not None:
        body["startDate"] = start_date
    return body


@pytest.fixture
def fake_generation(monkeypatch, fake_client_factory):
    def install(**kwargs):
        fake = fake_client_factory(**kwargs)
        monkeypatch.setattr(meal_generation_service, "generation_client", fake)
        return fake
    return install


class TestGenerateMealPlanRoute:

    def test_success(self, recipes, fake_generation):
        fake_generation(duration=2)

        response = client.post("/ai/generate-meal-plan", json=generation_body(recipes))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["source"] == "groq"
        assert data["mealPlan"] == {
            "2026-01-26": {"lunch": [{"recipeId": "r-paella", "notes": ""}]},
            "2026-01-27": {"lunch": [{"recipeId": "r-paella", "notes": ""}]},
        }

    def test_recipe_snapshot_reaches_the_prompt(self, recipes, fake_generation):
        fake = fake_generation(duration=1)

        client.post("/ai/generate-meal-plan", json=generation_body(recipes, duration=1))

        assert '"r-paella" - "Paella de verduras"' in fake.prompts[0]
        assert "Maximum preparation time: 45 minutes" in fake.prompts[0]

    def test_no_favorites_is_a_bad_request(self, fake_generation):
        fake = fake_generation(duration=2)

        response = client.post("/ai/generate-meal-plan", json=generation_body([]))

        assert response.status_code == 400
        assert "No favorite recipes" in response.json()["detail"]
        assert fake.prompts == []

    def test_unknown_meal_type_is_a_bad_request(self, recipes, fake_generation):
        fake_generation(duration=2)

        response = client.post("/ai/generate-meal-plan", json=generation_body(recipes, meal_types=["brunch"]))

        assert response.status_code == 400

    def test_bad_start_date_is_a_bad_request(self, recipes, fake_generation):
        fake_generation(duration=2)

        response = client.post("/ai/generate-meal-plan", json=generation_body(recipes, start_date="26-01-2026"))

        assert response.status_code == 400
        assert "YYYY-MM-DD" in response.json()["detail"]

    def test_missing_duration_fails_schema_validation(self, recipes):
        body = generation_body(recipes)
        del body["preferences"]["duration"]

        response = client.post("/ai/generate-meal-plan", json=body)

        assert response.status_code == 422

    def test_exhausted_generation_is_a_bad_gateway(self, recipes, fake_generation):
        fake_generation(duration=2, fail=True)

        response = client.post("/ai/generate-meal-plan", json=generation_body(recipes))

        assert response.status_code == 502
        assert response.json()["detail"] == "Could not generate a meal plan"


class TestPreviewPromptRoute:

    def test_preview(self, recipes):
        response = client.post("/ai/preview-prompt", json=generation_body(recipes, duration=9))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [b["dayOffset"] for b in data["batches"]] == [0, 7]
        assert data["excludedRecipes"] == 1
        assert "r-paella" in data["batches"][0]["prompt"]

    def test_preview_validates_the_request(self):
        response = client.post("/ai/preview-prompt", json=generation_body([]))

        assert response.status_code == 400


class TestIngredientRoutes:

    def test_search(self):
        response = client.get("/ingredients", params={"query": "pollo"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["count"] == 1
        assert data["ingredients"][0]["id"] == "ing-010"

    def test_search_rejects_unknown_language(self):
        response = client.get("/ingredients", params={"query": "pollo", "lang": "fr"})

        assert response.status_code == 422

    def test_abstract_measures_are_not_taken_for_an_id(self):
        response = client.get("/ingredients/abstract-measures")

        assert response.status_code == 200
        names = [m["name"] for m in response.json()["data"]["measures"]]
        assert "pizca" in names
        assert "pinch" in names

    def test_by_category(self):
        response = client.get("/ingredients/category/PESCADOS")

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 3

    def test_by_id(self):
        response = client.get("/ingredients/ing-001")

        assert response.status_code == 200
        assert response.json()["data"]["ingredient"]["names"] == {"es": "Tomate", "en": "Tomato"}

    def test_unknown_id(self):
        response = client.get("/ingredients/ing-999")

        assert response.status_code == 404


class TestNormalizeIngredientsRoute:

    def test_normalize(self):
        response = client.post("/recipes/ingredients/normalize", json={
            "ingredients": [
                {"ingredient": "Tomate", "quantity": 500, "unit": "g"},
                {"ingredient": "ing-029", "isAbstract": True, "abstractMeasure": "pizca", "displayQuantity": "2"},
            ]
        })

        assert response.status_code == 200
        lines = response.json()["data"]["ingredients"]
        assert lines[0]["ingredientId"] == "ing-001"
        assert lines[1]["unit"] == "g"
        assert lines[1]["quantity"] == 1.0

    def test_unknown_ingredient_is_not_found(self):
        response = client.post("/recipes/ingredients/normalize", json={
            "ingredients": [{"ingredient": "nonexistent-id", "quantity": 1, "unit": "g"}]
        })

        assert response.status_code == 404

    def test_disallowed_unit_is_kept_by_default(self):
        response = client.post("/recipes/ingredients/normalize", json={
            "ingredients": [{"ingredient": "Sal", "quantity": 1, "unit": "cup"}]
        })

        assert response.status_code == 200
        assert response.json()["data"]["ingredients"][0]["unit"] == "cup"

    def test_disallowed_unit_is_rejected_in_strict_mode(self):
        response = client.post("/recipes/ingredients/normalize?strictUnits=true", json={
            "ingredients": [{"ingredient": "Sal", "quantity": 1, "unit": "cup"}]
        })

        assert response.status_code == 400
        assert response.json()["detail"]["allowedUnits"] == ["g", "tsp"]

    def test_bad_quantity(self):
        response = client.post("/recipes/ingredients/normalize", json={
            "ingredients": [{"ingredient": "Tomate", "quantity": "lots", "unit": "g"}]
        })

        assert response.status_code == 400


def test_health():
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    body = response.json()
    assert body["generation"]["models"] == meal_generation_service.generation_client.models
    assert isinstance(body["generation"]["configured"], bool)


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG),
    (" WARNING ", logging.WARNING),
    ("loud", logging.INFO),
    ("BASIC_FORMAT", logging.INFO),
])
def test_log_level_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("LOG_LEVEL", value)

    assert log_level_from_env() == expected


def test_log_level_defaults_to_info(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    assert log_level_from_env() == logging.INFO


@pytest.mark.parametrize("value, expected", [
    ("*", ["*"]),
    ("", ["*"]),
    ("https://a.test, https://b.test,", ["https://a.test", "https://b.test"]),
    ("https://a.test,*", ["*"]),
])
def test_cors_origins_from_env(monkeypatch, value, expected):
    monkeypatch.setenv("CORS_ORIGINS", value)

    assert cors_origins_from_env() == expected
