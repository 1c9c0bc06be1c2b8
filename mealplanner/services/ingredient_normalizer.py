# mealplanner/services/ingredient_normalizer.py

"""
Turns raw recipe-form ingredient entries into canonical ingredient lines.

Applied on every recipe create/update before the recipe is saved.
"""

import logging
from fractions import Fraction
from typing import Any, Dict, List, Optional

from mealplanner.services.abstract_measures import get_abstract_measure
from mealplanner.services.errors import IngredientNotFound, UnitNotAllowed, ValidationError
from mealplanner.services.ingredient_catalog import IngredientCatalog, ingredient_catalog

logger = logging.getLogger(__name__)


def parse_quantity(value: Any, default: Optional[float] = None) -> Optional[float]:
    """
    Parse a user-entered quantity.

    Accepts numbers, decimal strings with either "." or "," ("1,5"), simple
    fractions ("1/2") and mixed numbers ("1 1/2"). Empty values return default.

    Raises:
        ValidationError: If the value is not a number or is negative
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default

    if isinstance(value, bool):
        raise ValidationError(f"Invalid quantity: {value!r}")

    if isinstance(value, (int, float)):
        quantity = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        try:
            quantity = float(sum(Fraction(part) for part in text.split()))
        except (ValueError, ZeroDivisionError):
            raise ValidationError(f"Invalid quantity: {value!r}")

    if quantity < 0:
        raise ValidationError(f"Quantity cannot be negative: {value!r}")

    return quantity


def _format_quantity(quantity: float) -> str:
    return str(int(quantity)) if float(quantity).is_integer() else str(quantity)


class IngredientNormalizer:
    """Resolves ingredient references and units against the ingredient catalog."""

    def __init__(self, catalog: Optional[IngredientCatalog] = None):
        self.catalog = catalog or ingredient_catalog

    def resolve_ingredient_id(self, identifier: Any, unit: Optional[str]) -> str:
        """
        Resolve an ingredient id or localized name, optionally validating the unit.

        Args:
            identifier: Catalog id or a name in any language
            unit: Unit to validate against the entry's allowed units, or None to skip

        Returns:
            The catalog id

        Raises:
            IngredientNotFound: If neither the id nor any name matches
            UnitNotAllowed: If unit is given and not allowed for the ingredient
        """
        if identifier is None or not str(identifier).strip():
            raise IngredientNotFound(str(identifier))

        ingredient = self.catalog.resolve(str(identifier).strip())
        if ingredient is None:
            raise IngredientNotFound(str(identifier))

        allowed_units = ingredient.get("allowedUnits") or []
        if unit and unit not in allowed_units:
            raise UnitNotAllowed(unit, self.catalog.display_name(ingredient), allowed_units)

        return str(ingredient["id"])

    def normalize_ingredient(self, raw: Dict[str, Any], validate_unit: bool = True) -> Dict[str, Any]:
        """
        Build the canonical ingredient line for one raw entry.

        Abstract measures found in the measure table are converted to their base
        unit: quantity = displayQuantity (default 1) x baseValue. Everything else
        keeps its quantity and unit, and the unit is checked against the catalog
        unless validate_unit is False.
        """
        measure = None
        if raw.get("isAbstract"):
            measure = get_abstract_measure(raw.get("abstractMeasure"))
            if measure is None:
                logger.warning(
                    f"Unknown abstract measure {raw.get('abstractMeasure')!r} for "
                    f"{raw.get('ingredient')!r}, treating it as a regular unit"
                )

        if measure is not None:
            display_quantity = raw.get("displayQuantity")
            count = parse_quantity(display_quantity, default=1.0)
            quantity = count * measure.base_value
            unit = measure.base_unit
            estimated_value = quantity
            display_unit = raw.get("displayUnit") or raw.get("abstractMeasure")
            display_quantity = str(display_quantity) if display_quantity not in (None, "") else _format_quantity(count)
            ingredient_id = self.resolve_ingredient_id(raw.get("ingredient"), None)
        else:
            quantity = parse_quantity(raw.get("quantity"))
            if quantity is None:
                raise ValidationError(f"Quantity is required for ingredient {raw.get('ingredient')!r}")
            unit = raw.get("unit") or ""
            ingredient_id = self.resolve_ingredient_id(raw.get("ingredient"), unit if validate_unit else None)
            estimated = raw.get("estimatedValue")
            estimated_value = parse_quantity(estimated, default=quantity)
            display_unit = raw.get("displayUnit") or unit
            display_quantity = raw.get("displayQuantity")
            display_quantity = str(display_quantity) if display_quantity not in (None, "") else _format_quantity(quantity)

        return {
            "ingredientId": ingredient_id,
            "quantity": quantity,
            "unit": unit,
            "displayQuantity": display_quantity,
            "displayUnit": display_unit,
            "isAbstract": measure is not None,
            "abstractMeasure": measure.name if measure is not None else None,
            "estimatedValue": estimated_value,
        }

    def process_ingredients(self, ingredients: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Normalize every ingredient of a recipe.

        A unit the catalog does not list for the ingredient does not block the
        save: the entry is resolved again without unit validation. Any other
        error (unknown ingredient, bad quantity) propagates.
        """
        processed = []
        for raw in ingredients:
            try:
                line = self.normalize_ingredient(raw)
            except UnitNotAllowed as e:
                logger.info(f"{e} - keeping the unit as entered")
                line = self.normalize_ingredient(raw, validate_unit=False)
            processed.append(line)
        return processed


# Create singleton instance
ingredient_normalizer = IngredientNormalizer()
