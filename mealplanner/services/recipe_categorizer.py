# mealplanner/services/recipe_categorizer.py

"""
Recipe tag vocabulary and meal-time categorization.

Tags are matched case-insensitively. Both the English and the Spanish tag names
used by the recipe form are understood.
"""

from typing import Any, Dict, Iterable, List, Set

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

# Meal types that must be one standalone dish or a first + second course pair
COURSE_MEAL_TYPES = ("lunch", "dinner")

# Meal type -> bucket name in the categorized result
MEAL_TYPE_BUCKETS = {
    "breakfast": "breakfast",
    "lunch": "lunch",
    "dinner": "dinner",
    "snack": "snacks",
}

MEAL_TAGS: Dict[str, Set[str]] = {
    "breakfast": {"breakfast", "desayuno"},
    "lunch": {"lunch", "comida", "almuerzo"},
    "dinner": {"dinner", "cena"},
    "snack": {"snack", "merienda"},
}

COURSE_TAGS: Dict[str, Set[str]] = {
    "uniqueDish": {"uniquedish", "unique dish", "standalone", "plato único", "plato unico"},
    "firstCourse": {"firstcourse", "first course", "starter", "primer plato", "entrante"},
    "secondCourse": {"secondcourse", "second course", "segundo plato"},
}

# Informational tags used for weekday/weekend guidance in the prompt
QUICK_TAGS = {"quick", "easy", "cheap", "rápido", "rapido", "fácil", "facil", "económico", "economico"}
SPECIAL_TAGS = {"special", "especial"}


def normalize_tags(recipe: Dict[str, Any]) -> Set[str]:
    tags = recipe.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    return {str(tag).strip().lower() for tag in tags if tag is not None}


def has_meal_tag(recipe: Dict[str, Any], meal_type: str) -> bool:
    return bool(normalize_tags(recipe) & MEAL_TAGS.get(meal_type, set()))


def course_roles(recipe: Dict[str, Any]) -> List[str]:
    """Course roles ("uniqueDish", "firstCourse", "secondCourse") a recipe is tagged with."""
    tags = normalize_tags(recipe)
    return [role for role, synonyms in COURSE_TAGS.items() if tags & synonyms]


class CategorizedRecipes:
    """Result of categorization: meal-time buckets plus the recipes left out."""

    def __init__(self, buckets: Dict[str, List[Dict[str, Any]]], excluded: List[Dict[str, Any]]):
        self.buckets = buckets
        self.excluded = excluded

    @property
    def excluded_count(self) -> int:
        return len(self.excluded)

    def for_meal_type(self, meal_type: str) -> List[Dict[str, Any]]:
        return self.buckets.get(MEAL_TYPE_BUCKETS.get(meal_type, meal_type), [])

    def __getitem__(self, bucket: str) -> List[Dict[str, Any]]:
        return self.buckets[bucket]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CategorizedRecipes):
            return NotImplemented
        return self.buckets == other.buckets and self.excluded == other.excluded

    def to_dict(self) -> dict:
        return {
            **{name: [r.get("id") for r in recipes] for name, recipes in self.buckets.items()},
            "excluded": [r.get("id") for r in self.excluded],
        }


def categorize_recipes_by_tags(recipes: Iterable[Dict[str, Any]]) -> CategorizedRecipes:
    """
    Put each recipe in every meal-time bucket whose tag it carries.

    Recipes carrying no meal-time tag end up in no bucket; they are returned in
    CategorizedRecipes.excluded so callers can report them.
    """
    buckets: Dict[str, List[Dict[str, Any]]] = {name: [] for name in MEAL_TYPE_BUCKETS.values()}
    excluded: List[Dict[str, Any]] = []

    for recipe in recipes:
        tags = normalize_tags(recipe)
        matched = False
        for meal_type, synonyms in MEAL_TAGS.items():
            if tags & synonyms:
                buckets[MEAL_TYPE_BUCKETS[meal_type]].append(recipe)
                matched = True
        if not matched:
            excluded.append(recipe)

    return CategorizedRecipes(buckets, excluded)
