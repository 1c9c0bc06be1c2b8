# mealplanner/services/prompt_builder.py

"""
Builds the meal plan generation prompt.

Every hard rule the validators enforce is stated in the prompt both as a rule
and as a list of prohibited combinations, so fewer responses get thrown away.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence

from mealplanner.services.recipe_categorizer import (
    COURSE_MEAL_TYPES,
    CategorizedRecipes,
    course_roles,
)

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_MAX_PREP_TIME = 60
NONE_AVAILABLE = "NONE AVAILABLE"

# Ingredients listed per recipe; the rest are summarized with "..."
PROMPT_INGREDIENT_LIMIT = 5

MEAL_TYPE_LABELS = {
    "breakfast": "BREAKFAST",
    "lunch": "LUNCH",
    "dinner": "DINNER",
    "snack": "SNACK",
}

MEAL_TYPE_TAG_HINTS = {
    "breakfast": "tags: breakfast / desayuno",
    "lunch": "tags: lunch / comida, plus uniqueDish, firstCourse or secondCourse",
    "dinner": "tags: dinner / cena, plus uniqueDish, firstCourse or secondCourse",
    "snack": "tags: snack / merienda",
}

COMPOSITION_RULES = {
    "breakfast": "1 or more recipes from the BREAKFAST list",
    "lunch": "EITHER 1 recipe tagged uniqueDish (standalone dish) "
             "OR 2 recipes: 1 tagged firstCourse + 1 tagged secondCourse",
    "dinner": "EITHER 1 recipe tagged uniqueDish (standalone dish) "
              "OR 2 recipes: 1 tagged firstCourse + 1 tagged secondCourse",
    "snack": "1 or more recipes from the SNACK list",
}

ROLE_LABELS = {
    "uniqueDish": "standalone dish",
    "firstCourse": "first course",
    "secondCourse": "second course",
}


def plan_dates(start_date: date, duration: int, day_offset: int = 0) -> List[str]:
    """Dates start_date + day_offset + i for i in [0, duration), as YYYY-MM-DD."""
    return [
        (start_date + timedelta(days=day_offset + i)).strftime(DATE_FORMAT)
        for i in range(duration)
    ]


def _ingredient_name(ingredient: Any) -> str:
    if isinstance(ingredient, dict):
        return str(ingredient.get("name") or ingredient.get("ingredient") or "").strip()
    return str(ingredient).strip()


def format_recipe_for_prompt(recipe: Dict[str, Any]) -> str:
    """One recipe as it appears in the candidate list."""
    tags = recipe.get("tags") or []
    roles = [ROLE_LABELS[role] for role in course_roles(recipe)]
    prep_time = recipe.get("prepTime")
    prep_text = f"{prep_time} min" if prep_time not in (None, "") else "not specified"

    names = [name for name in map(_ingredient_name, recipe.get("ingredients") or []) if name]
    if names:
        ingredients_text = ", ".join(names[:PROMPT_INGREDIENT_LIMIT])
        if len(names) > PROMPT_INGREDIENT_LIMIT:
            ingredients_text += "..."
    else:
        ingredients_text = "not specified"

    return (
        f'  • ID: "{recipe.get("id")}" - "{recipe.get("title", "")}"\n'
        f'    Tags: {", ".join(map(str, tags)) or "no tags"}'
        f'{" | Course: " + ", ".join(roles) if roles else ""}\n'
        f'    Prep time: {prep_text} | Ingredients: {ingredients_text}'
    )


def _recipe_section(meal_type: str, recipes: Sequence[Dict[str, Any]]) -> str:
    heading = f"### {MEAL_TYPE_LABELS.get(meal_type, meal_type.upper())} ({meal_type}) - {MEAL_TYPE_TAG_HINTS.get(meal_type, '')}"
    body = "\n".join(format_recipe_for_prompt(r) for r in recipes) or f"  {NONE_AVAILABLE}"
    return f"{heading}\n{body}"


def _weekday_labels(dates: Sequence[str]) -> str:
    labels = []
    for date_str in dates:
        day = date.fromisoformat(date_str)
        kind = "weekend" if day.weekday() >= 5 else "weekday"
        labels.append(f"{date_str} ({day.strftime('%A')}, {kind})")
    return "\n".join(f"- {label}" for label in labels)


def build_generation_prompt(
    categorized: CategorizedRecipes,
    preferences: Dict[str, Any],
    selected_meal_types: Sequence[str],
    day_offset: int = 0,
    start_date: Optional[date] = None,
) -> str:
    """
    Build the prompt for one generation request.

    Args:
        categorized: Recipes bucketed by meal time
        preferences: duration, people and optional maxPrepTime
        selected_meal_types: Meal types every day must contain
        day_offset: Days between start_date and the first planned day
        start_date: First day of the whole plan (defaults to today)

    Returns:
        The complete prompt text
    """
    start_date = start_date or date.today()
    duration = int(preferences.get("duration") or 1)
    people = preferences.get("people") or 1
    max_prep_time = preferences.get("maxPrepTime") or DEFAULT_MAX_PREP_TIME
    dates = plan_dates(start_date, duration, day_offset)
    meal_types = list(selected_meal_types)

    structure = "\n".join(
        f"• {meal_type}: {COMPOSITION_RULES.get(meal_type, '1 suitable recipe')}"
        for meal_type in meal_types
    )

    course_types = [m for m in meal_types if m in COURSE_MEAL_TYPES]
    course_rules = ""
    if course_types:
        slots = " and ".join(course_types)
        course_rules = f"""
2. For {slots.upper()} (composition):
   - OPTION A: exactly 1 recipe tagged uniqueDish (standalone dish), nothing else
   - OPTION B: exactly 2 recipes - ONE tagged firstCourse AND ONE tagged secondCourse

3. PROHIBITED COMBINATIONS for {slots} (NEVER output these):
   - a single firstCourse recipe alone
   - a single secondCourse recipe alone
   - two firstCourse recipes
   - two secondCourse recipes
   - two uniqueDish recipes
   - a uniqueDish recipe mixed with a firstCourse or secondCourse recipe
   - three or more recipes
"""

    tag_rule_no = 4 if course_types else 2

    sections = "\n\n".join(
        _recipe_section(meal_type, categorized.for_meal_type(meal_type))
        for meal_type in meal_types
    )

    example_type = course_types[0] if course_types else "lunch"
    first_date = dates[0]
    second_date = dates[1] if len(dates) > 1 else dates[0]

    return f"""GENERATE A MEAL PLAN as strict JSON. Follow EXACTLY these rules.

## BASIC INFORMATION
- Days to plan: {duration} ({', '.join(dates)})
- People: {people}
- Maximum preparation time: {max_prep_time} minutes
- Meals per day: {', '.join(meal_types)}

## MANDATORY STRUCTURE PER DAY (based on TAGS):
{structure}

## ABSOLUTE RULES (DO NOT IGNORE ANY):
1. Use ONLY the recipes listed below, referenced by their exact ID. Never invent recipes or IDs.
   A section marked {NONE_AVAILABLE} has no recipes for that meal type.
{course_rules}
{tag_rule_no}. TAG USAGE:
   - Tag "breakfast"/"desayuno" -> ONLY for breakfast
   - Tag "lunch"/"comida" -> ONLY for lunch
   - Tag "dinner"/"cena" -> ONLY for dinner
   - Tag "snack"/"merienda" -> ONLY for snack
   - Tag "special"/"especial" -> ONLY on weekends
   - Weekdays: prefer recipes tagged "quick", "easy" or "cheap" ("rápido", "fácil", "económico")

{tag_rule_no + 1}. INGREDIENT VARIETY:
   - Decide for each recipe which ingredients are MAIN (the protein or starch the dish is built on)
     and which are secondary or common (oil, salt, garlic, onion, spices)
   - Never repeat the same main ingredient twice on the same day (for example no potatoes at both lunch and dinner)
   - Never repeat the same main protein or starch on two consecutive days
   - Every day must balance protein, vegetables and carbohydrates

## DAYS TO PLAN:
{_weekday_labels(dates)}

## AVAILABLE RECIPES BY MEAL TYPE:

{sections}

## CORRECT EXAMPLES:

### Example 1: {example_type} with 2 recipes (firstCourse + secondCourse)
"{first_date}": {{
  "{example_type}": [
    {{"recipeId": "ID1", "notes": "First course"}},
    {{"recipeId": "ID2", "notes": "Second course"}}
  ]
}}

### Example 2: {example_type} with 1 uniqueDish recipe
"{second_date}": {{
  "{example_type}": [
    {{"recipeId": "ID3", "notes": "Standalone dish"}}
  ]
}}

## EXACT OUTPUT FORMAT:
{{ "YYYY-MM-DD": {{ "<mealType>": [ {{"recipeId": "<id>"}} ] }} }}

## GENERATE THE PLAN FOR {duration} DAYS:
{', '.join(dates)}

FINAL CHECK:
• Every day MUST contain all {len(meal_types)} meal types: {', '.join(meal_types)}
• lunch/dinner: EITHER 1 recipe (uniqueDish) OR 2 recipes (firstCourse + secondCourse)
• Use ONLY the IDs listed above

RESPONSE: ONLY the JSON object, with no text before or after it, no explanations and no markdown."""
