# mealplanner/services/plan_validator.py

"""
Validation of generated meal plans.

Two passes:
- validate_batch_plan: structural check of one model response. Keeps only the
  days where every requested meal type is present and well formed.
- validate_complete_plan: final check that the plan covers exactly the
  requested number of days, with a bounded number of empty meal slots.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from mealplanner.services.recipe_categorizer import COURSE_MEAL_TYPES, course_roles, has_meal_tag

logger = logging.getLogger(__name__)

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# A final plan may have at most this many empty meal slots per day on average
MAX_ISSUES_PER_DAY = 3

# Allowed item counts for lunch/dinner: one standalone dish or a two-course pair
COURSE_ARITIES = (1, 2)


def build_recipe_map(recipes: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {str(recipe["id"]): recipe for recipe in recipes if recipe.get("id") is not None}


def is_valid_date_key(date_str: Any) -> bool:
    """YYYY-MM-DD and an existing calendar date."""
    if not isinstance(date_str, str) or not DATE_KEY_RE.match(date_str):
        return False
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def only_requested_dates(plan: Any, expected_dates: Iterable[str]) -> Any:
    """Drop days outside expected_dates. Anything that is not a dict is returned as is."""
    if not isinstance(plan, dict):
        return plan
    wanted = set(expected_dates)
    extra = sorted(str(d) for d in plan if d not in wanted)
    if extra:
        logger.warning(f"Ignoring days outside the requested range: {', '.join(extra)}")
    return {d: day for d, day in plan.items() if d in wanted}


def _recipe_id_of(item: Any, recipe_map: Dict[str, Dict[str, Any]]) -> Optional[str]:
    """The item's recipeId if it refers to a known recipe, else None."""
    if not isinstance(item, dict):
        return None
    recipe_id = item.get("recipeId")
    if recipe_id is None or isinstance(recipe_id, (dict, list, bool)):
        return None
    recipe_id = str(recipe_id)
    return recipe_id if recipe_id in recipe_map else None


def _warn_on_tag_mismatch(date_str: str, meal_type: str, recipes: List[Dict[str, Any]]) -> None:
    """Log items whose tags do not fit the slot. Never rejects anything."""
    for recipe in recipes:
        if not has_meal_tag(recipe, meal_type):
            logger.debug(f"{date_str} {meal_type}: recipe {recipe.get('id')} has no '{meal_type}' tag")

    if meal_type not in COURSE_MEAL_TYPES:
        return

    roles = [set(course_roles(recipe)) for recipe in recipes]
    if len(recipes) == 1 and "uniqueDish" not in roles[0]:
        logger.warning(f"{date_str} {meal_type}: single recipe {recipes[0].get('id')} is not tagged as a standalone dish")
    elif len(recipes) == 2:
        if any("uniqueDish" in r for r in roles):
            logger.warning(f"{date_str} {meal_type}: standalone dish combined with another recipe")
        elif not ({"firstCourse"} <= roles[0] | roles[1] and {"secondCourse"} <= roles[0] | roles[1]):
            logger.warning(f"{date_str} {meal_type}: two recipes that are not a first + second course pair")


def validate_batch_plan(
    plan: Any,
    recipes: Sequence[Dict[str, Any]],
    selected_meal_types: Sequence[str],
) -> Optional[Dict[str, Dict[str, List[Dict[str, Any]]]]]:
    """
    Keep only the days of a parsed model response that pass every check.

    A day is kept when its key is a real YYYY-MM-DD date and, for every selected
    meal type, the value is a list that still has items after dropping unknown
    recipe ids; lunch and dinner must end up with exactly 1 or 2 items.

    Args:
        plan: Parsed model output (any shape)
        recipes: Recipes the model was allowed to use
        selected_meal_types: Meal types every day must contain

    Returns:
        The valid days, or None if no day is valid
    """
    if not isinstance(plan, dict):
        return None

    recipe_map = build_recipe_map(recipes)
    valid_plan: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}

    for date_str, day_plan in plan.items():
        if not is_valid_date_key(date_str):
            logger.info(f"Dropping day with invalid date key: {date_str!r}")
            continue

        if not isinstance(day_plan, dict):
            logger.info(f"{date_str}: day is not an object")
            continue

        missing = [m for m in selected_meal_types if not day_plan.get(m)]
        if missing:
            logger.info(f"{date_str}: missing meal types {', '.join(missing)}")
            continue

        validated_day: Dict[str, List[Dict[str, Any]]] = {}
        for meal_type in selected_meal_types:
            items = day_plan[meal_type]
            if not isinstance(items, list):
                logger.info(f"{date_str} {meal_type}: not a list")
                break

            valid_items = []
            for item in items:
                recipe_id = _recipe_id_of(item, recipe_map)
                if recipe_id is None:
                    logger.info(f"{date_str} {meal_type}: dropping unknown recipe reference {item!r}")
                    continue
                notes = item.get("notes")
                valid_items.append({
                    "recipeId": recipe_id,
                    "notes": notes if isinstance(notes, str) else "",
                })

            if not valid_items:
                logger.info(f"{date_str} {meal_type}: no valid recipes left")
                break

            if meal_type in COURSE_MEAL_TYPES and len(valid_items) not in COURSE_ARITIES:
                logger.info(f"{date_str} {meal_type}: must have 1 or 2 recipes, has {len(valid_items)}")
                break

            _warn_on_tag_mismatch(date_str, meal_type, [recipe_map[i["recipeId"]] for i in valid_items])
            validated_day[meal_type] = valid_items
        else:
            valid_plan[date_str] = validated_day

    logger.info(f"Batch validated: {len(valid_plan)} valid day(s) out of {len(plan)}")
    return valid_plan or None


def validate_complete_plan(
    plan: Any,
    recipes: Sequence[Dict[str, Any]],
    selected_meal_types: Sequence[str],
    expected_days: int,
) -> Optional[Dict[str, Dict[str, List[Dict[str, str]]]]]:
    """
    Final check before a plan is returned to the user.

    The plan must have exactly expected_days days; missing days are never
    padded here. Each selected meal type is re-filtered to known recipes and
    reduced to {recipeId, notes: ""}. Every slot that ends up empty counts as
    one issue and is stored as []. More than MAX_ISSUES_PER_DAY issues per day
    on average rejects the plan.

    Returns:
        The final plan with sorted date keys, or None
    """
    if not isinstance(plan, dict) or len(plan) != expected_days:
        got = len(plan) if isinstance(plan, dict) else 0
        logger.warning(f"Incomplete plan: expected {expected_days} days, got {got}")
        return None

    recipe_map = build_recipe_map(recipes)
    final_plan: Dict[str, Dict[str, List[Dict[str, str]]]] = {}
    issues = 0

    for date_str in sorted(plan.keys(), key=str):
        if not is_valid_date_key(date_str):
            logger.warning(f"Incomplete plan: invalid date key {date_str!r}")
            return None

        day_plan = plan[date_str]
        if not isinstance(day_plan, dict):
            day_plan = {}
        final_day: Dict[str, List[Dict[str, str]]] = {}

        for meal_type in selected_meal_types:
            items = day_plan.get(meal_type)
            if not isinstance(items, list):
                logger.warning(f"{date_str}: {meal_type} is not a list")
                issues += 1
                final_day[meal_type] = []
                continue

            valid_items = []
            for item in items:
                recipe_id = _recipe_id_of(item, recipe_map)
                if recipe_id is not None:
                    valid_items.append({"recipeId": recipe_id, "notes": ""})

            if not valid_items:
                logger.warning(f"{date_str}: {meal_type} has no valid recipes")
                issues += 1
            elif meal_type in COURSE_MEAL_TYPES and len(valid_items) > max(COURSE_ARITIES):
                logger.info(f"{date_str}: {meal_type} has {len(valid_items)} recipes, keeping the first 2")
                valid_items = valid_items[:max(COURSE_ARITIES)]

            final_day[meal_type] = valid_items

        final_plan[date_str] = final_day

    if issues > expected_days * MAX_ISSUES_PER_DAY:
        logger.warning(f"Too many issues in plan: {issues}")
        return None

    logger.info(f"Final plan validated: {len(final_plan)} days, {issues} issue(s)")
    return final_plan
