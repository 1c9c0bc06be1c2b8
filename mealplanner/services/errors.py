# mealplanner/services/errors.py

"""
Domain errors raised by the meal planner services.

Routes translate these into HTTP responses; services never raise HTTPException.
"""

from typing import List, Optional


class MealPlannerError(Exception):
    """Base class for all meal planner errors."""


class ValidationError(MealPlannerError, ValueError):
    """Malformed request (missing favorites, missing meal types, bad quantity...)."""


class GenerationExhausted(MealPlannerError):
    """Every model and retry failed to produce a valid, complete plan."""

    def __init__(self, message: str = "Could not generate a meal plan"):
        super().__init__(message)


class IngredientNotFound(MealPlannerError, LookupError):
    """Ingredient reference matches neither a catalog id nor a localized name."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Ingredient not found: {identifier}")


class UnitNotAllowed(MealPlannerError, ValueError):
    """Unit is not in the catalog entry's allowed units."""

    def __init__(self, unit: str, ingredient_name: str, allowed_units: Optional[List[str]] = None):
        self.unit = unit
        self.ingredient_name = ingredient_name
        self.allowed_units = list(allowed_units or [])
        super().__init__(
            f"Unit '{unit}' is not allowed for {ingredient_name}. "
            f"Allowed units: {', '.join(self.allowed_units)}"
        )


class MalformedUpstreamResponse(MealPlannerError):
    """
    Model output that could not be repaired into JSON.

    Internal only: the response parser records it on a Malformed result and the
    generation client moves on to the next model.
    """
