"""
Ingredient Normalizer Tests
===========================

Runs against the packaged ingredient dataset.
"""

import pytest

from mealplanner.services.abstract_measures import (
    ABSTRACT_MEASURES,
    get_abstract_measure,
    list_abstract_measures,
)
from mealplanner.services.errors import IngredientNotFound, UnitNotAllowed, ValidationError
from mealplanner.services.ingredient_catalog import IngredientCatalog
from mealplanner.services.ingredient_normalizer import IngredientNormalizer, parse_quantity


@pytest.fixture
def catalog():
    return IngredientCatalog()


@pytest.fixture
def normalizer(catalog):
    return IngredientNormalizer(catalog)


class TestNormalizeIngredient:

    def test_abstract_pinch_is_converted_to_grams(self, normalizer):
        line = normalizer.normalize_ingredient({
            "ingredient": "Sal",
            "isAbstract": True,
            "abstractMeasure": "pizca",
            "displayQuantity": "2",
        })

        assert line == {
            "ingredientId": "ing-029",
            "quantity": 1.0,
            "unit": "g",
            "displayQuantity": "2",
            "displayUnit": "pizca",
            "isAbstract": True,
            "abstractMeasure": "pizca",
            "estimatedValue": 1.0,
        }

    def test_abstract_measure_defaults_to_one(self, normalizer):
        line = normalizer.normalize_ingredient({
            "ingredient": "Olive oil",
            "isAbstract": True,
            "abstractMeasure": "un chorrito",
        })

        assert line["ingredientId"] == "ing-028"
        assert line["quantity"] == 10
        assert line["unit"] == "ml"
        assert line["displayQuantity"] == "1"
        assert line["abstractMeasure"] == "chorrito"

    def test_abstract_measure_skips_unit_validation(self, normalizer):
        # Salt only allows g and tsp; a splash converts to ml
        line = normalizer.normalize_ingredient({
            "ingredient": "ing-029",
            "isAbstract": True,
            "abstractMeasure": "splash",
            "displayQuantity": "1,5",
        })

        assert line["unit"] == "ml"
        assert line["quantity"] == 15.0

    def test_regular_ingredient_keeps_quantity_and_unit(self, normalizer):
        line = normalizer.normalize_ingredient({"ingredient": "Tomato", "quantity": "500", "unit": "g"})

        assert line == {
            "ingredientId": "ing-001",
            "quantity": 500.0,
            "unit": "g",
            "displayQuantity": "500",
            "displayUnit": "g",
            "isAbstract": False,
            "abstractMeasure": None,
            "estimatedValue": 500.0,
        }

    def test_display_strings_are_preserved(self, normalizer):
        line = normalizer.normalize_ingredient({
            "ingredient": "Leche",
            "quantity": 0.5,
            "unit": "l",
            "displayQuantity": "1/2",
            "displayUnit": "litro",
        })

        assert line["quantity"] == 0.5
        assert line["displayQuantity"] == "1/2"
        assert line["displayUnit"] == "litro"

    def test_unknown_ingredient(self, normalizer):
        with pytest.raises(IngredientNotFound, match="nonexistent-id"):
            normalizer.normalize_ingredient({"ingredient": "nonexistent-id", "quantity": 1, "unit": "g"})

    def test_unit_not_allowed_lists_permitted_units(self, normalizer):
        with pytest.raises(UnitNotAllowed) as exc_info:
            normalizer.normalize_ingredient({"ingredient": "Sal", "quantity": 1, "unit": "cup"})

        assert exc_info.value.allowed_units == ["g", "tsp"]
        assert "g, tsp" in str(exc_info.value)

    def test_unknown_abstract_measure_is_a_regular_unit(self, normalizer):
        line = normalizer.normalize_ingredient({
            "ingredient": "Huevo",
            "isAbstract": True,
            "abstractMeasure": "docena",
            "quantity": 1,
            "unit": "unit",
        })

        assert line["isAbstract"] is False
        assert line["unit"] == "unit"

    def test_quantity_is_required_for_regular_units(self, normalizer):
        with pytest.raises(ValidationError):
            normalizer.normalize_ingredient({"ingredient": "Tomate", "unit": "g"})


class TestResolveIngredientId:

    def test_id_before_name(self, normalizer):
        assert normalizer.resolve_ingredient_id("ing-010", None) == "ing-010"

    def test_names_in_both_languages(self, normalizer):
        assert normalizer.resolve_ingredient_id("pechuga de pollo", None) == "ing-010"
        assert normalizer.resolve_ingredient_id("Chicken Breast", "g") == "ing-010"

    def test_blank_identifier(self, normalizer):
        with pytest.raises(IngredientNotFound):
            normalizer.resolve_ingredient_id("  ", None)


class TestProcessIngredients:

    def test_disallowed_unit_falls_back_to_unvalidated(self, normalizer):
        lines = normalizer.process_ingredients([
            {"ingredient": "Sal", "quantity": 1, "unit": "cup"},
            {"ingredient": "Tomate", "quantity": 2, "unit": "unit"},
        ])

        assert [line["ingredientId"] for line in lines] == ["ing-029", "ing-001"]
        assert lines[0]["unit"] == "cup"

    def test_unknown_ingredient_is_not_swallowed(self, normalizer):
        with pytest.raises(IngredientNotFound):
            normalizer.process_ingredients([{"ingredient": "nonexistent-id", "unit": "g", "quantity": 1}])


class TestParseQuantity:

    @pytest.mark.parametrize("value, expected", [
        (2, 2.0),
        (0.25, 0.25),
        ("3", 3.0),
        ("1,5", 1.5),
        ("1/2", 0.5),
        ("1 1/2", 1.5),
        (" 250 ", 250.0),
    ])
    def test_accepted_values(self, value, expected):
        assert parse_quantity(value) == expected

    def test_empty_values_use_default(self):
        assert parse_quantity(None) is None
        assert parse_quantity("  ", default=1.0) == 1.0

    @pytest.mark.parametrize("value", ["abc", "1/0", "-2", True])
    def test_rejected_values(self, value):
        with pytest.raises(ValidationError):
            parse_quantity(value)


class TestAbstractMeasures:

    @pytest.mark.parametrize("name", ["pizca", "Pizca", "una pizca", "pizcas", "  UNA  PIZCA "])
    def test_lookup_variants(self, name):
        assert get_abstract_measure(name) is ABSTRACT_MEASURES["pizca"]

    def test_english_plural_with_es(self):
        assert get_abstract_measure("pinches").name == "pinch"

    def test_unknown_measure(self):
        assert get_abstract_measure("docena") is None
        assert get_abstract_measure(None) is None

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ABSTRACT_MEASURES["pizca"] = None

    def test_list_is_serializable(self):
        measures = list_abstract_measures()

        assert {"name": "chorrito", "baseUnit": "ml", "baseValue": 10} in measures
        assert len(measures) == len(ABSTRACT_MEASURES)


class TestIngredientCatalog:

    def test_search_by_language(self, catalog):
        assert [i["id"] for i in catalog.search("tomat", lang="en")] == ["ing-001"]
        assert catalog.search("tomato", lang="es") == []

    def test_search_limit(self, catalog):
        assert len(catalog.search(limit=5)) == 5

    def test_by_category_is_case_insensitive(self, catalog):
        fruits = catalog.by_category("frutas")

        assert [i["id"] for i in fruits] == ["ing-033", "ing-034", "ing-035", "ing-036"]

    def test_get_by_id(self, catalog):
        assert catalog.get_by_id("ing-016")["names"]["en"] == "Egg"
        assert catalog.get_by_id("ing-999") is None

    def test_custom_data_path(self, tmp_path):
        data = tmp_path / "ingredients.json"
        data.write_text('[{"id": "x1", "names": {"es": "Quinoa", "en": "Quinoa"}, "category": "Cereales", "allowedUnits": ["g"]}]', encoding="utf-8")

        catalog = IngredientCatalog(str(data))

        assert catalog.resolve("quinoa")["id"] == "x1"
        assert len(catalog.all()) == 1
