# mealplanner/services/meal_generation_service.py

import logging
import time
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from mealplanner.services.errors import GenerationExhausted, ValidationError
from mealplanner.services.generation_client import GenerationClient
from mealplanner.services.plan_validator import validate_complete_plan
from mealplanner.services.prompt_builder import build_generation_prompt, plan_dates
from mealplanner.services.recipe_categorizer import MEAL_TYPES, categorize_recipes_by_tags

logger = logging.getLogger(__name__)

# Long plans are generated one week at a time
BATCH_SIZE_DAYS = 7
BATCH_PAUSE_SECONDS = 1

GENERATION_SOURCE = "groq"


class MealGenerationService:
    """
    Service class for generating meal plans from a user's favorite recipes.
    """

    def __init__(
        self,
        generation_client: Optional[GenerationClient] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.generation_client = generation_client or GenerationClient()
        self.sleep = sleep

    @staticmethod
    def validate_request(
        favorite_recipes: Sequence[Dict[str, Any]],
        preferences: Dict[str, Any],
        selected_meal_types: Sequence[str],
    ) -> None:
        """
        Reject requests that can never produce a plan.

        Raises:
            ValidationError: No favorites, no or unknown meal types, bad duration/people
        """
        if not favorite_recipes:
            raise ValidationError("No favorite recipes available")

        if not selected_meal_types:
            raise ValidationError("Select at least one meal type")

        unknown = [m for m in selected_meal_types if m not in MEAL_TYPES]
        if unknown:
            raise ValidationError(
                f"Unknown meal type(s): {', '.join(map(str, unknown))}. Use: {', '.join(MEAL_TYPES)}"
            )

        for field in ("duration", "people"):
            value = (preferences or {}).get(field)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ValidationError(f"preferences.{field} must be an integer >= 1")

    def build_prompts(
        self,
        favorite_recipes: Sequence[Dict[str, Any]],
        preferences: Dict[str, Any],
        selected_meal_types: Sequence[str],
        start_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Get the prompts that would be sent for this request, one per batch.
        Useful for debugging prompt changes.
        """
        self.validate_request(favorite_recipes, preferences, selected_meal_types)
        start_date = start_date or date.today()
        categorized = categorize_recipes_by_tags(favorite_recipes)

        batches = []
        for batch_start, batch_days in self._batches(preferences["duration"]):
            batches.append({
                "dayOffset": batch_start,
                "dates": plan_dates(start_date, batch_days, batch_start),
                "prompt": build_generation_prompt(
                    categorized,
                    {**preferences, "duration": batch_days},
                    selected_meal_types,
                    day_offset=batch_start,
                    start_date=start_date,
                ),
            })

        return {
            "batches": batches,
            "categories": categorized.to_dict(),
            "excludedRecipes": categorized.excluded_count,
        }

    def generate_meal_plan(
        self,
        favorite_recipes: Sequence[Dict[str, Any]],
        preferences: Dict[str, Any],
        selected_meal_types: Sequence[str],
        start_date: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Generate a meal plan with the AI model.

        Args:
            favorite_recipes: Recipe snapshots (id, title, tags, prepTime, ingredients)
            preferences: duration, people and optional maxPrepTime
            selected_meal_types: Meal types to plan for every day
            start_date: First planned day (defaults to today)

        Returns:
            dict: {"success": True, "mealPlan": {date: {mealType: [...]}}, "source": "groq"}

        Raises:
            ValidationError: If the request is malformed
            GenerationExhausted: If no valid, complete plan could be generated
        """
        self.validate_request(favorite_recipes, preferences, selected_meal_types)

        start_date = start_date or date.today()
        duration = preferences["duration"]
        recipes = list(favorite_recipes)
        meal_types = list(selected_meal_types)

        logger.info(
            f"Generating plan: {duration} day(s), {len(recipes)} recipe(s), meals: {', '.join(meal_types)}"
        )

        categorized = categorize_recipes_by_tags(recipes)
        if categorized.excluded_count:
            logger.info(f"{categorized.excluded_count} recipe(s) have no meal-time tag and were left out of the prompt")

        combined_plan: Dict[str, Any] = {}
        for batch_start, batch_days in self._batches(duration):
            logger.info(f"Generating days {batch_start + 1} to {batch_start + batch_days}")

            prompt = build_generation_prompt(
                categorized,
                {**preferences, "duration": batch_days},
                meal_types,
                day_offset=batch_start,
                start_date=start_date,
            )
            logger.debug(f"Prompt length: {len(prompt)} characters")

            batch_plan = self.generation_client.call_with_retry(
                prompt,
                recipes,
                meal_types,
                expected_dates=plan_dates(start_date, batch_days, batch_start),
            )
            if batch_plan is None:
                logger.error(f"Batch starting at day {batch_start + 1} failed")
                raise GenerationExhausted()

            combined_plan.update(batch_plan)

            if batch_start + batch_days < duration:
                self.sleep(BATCH_PAUSE_SECONDS)

        final_plan = validate_complete_plan(combined_plan, recipes, meal_types, duration)
        if final_plan is None:
            raise GenerationExhausted()

        logger.info(f"Plan generated: {len(final_plan)} day(s)")
        return {
            "success": True,
            "mealPlan": final_plan,
            "source": GENERATION_SOURCE,
        }

    @staticmethod
    def _batches(duration: int) -> List[tuple]:
        """(day_offset, days) for each batch."""
        return [
            (batch_start, min(BATCH_SIZE_DAYS, duration - batch_start))
            for batch_start in range(0, duration, BATCH_SIZE_DAYS)
        ]


def parse_start_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional YYYY-MM-DD start date.

    Raises:
        ValidationError: If the value is not a valid date
    """
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("Invalid date format. Use YYYY-MM-DD")


# Create singleton instance
meal_generation_service = MealGenerationService()
