# mealplanner/services/ingredient_catalog.py

"""
Static ingredient reference data.

The catalog is read from a JSON dataset on first use and never mutated
afterwards, so concurrent requests can read it without locking.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_INGREDIENTS_PATH = Path(__file__).resolve().parent.parent / "data" / "ingredients.json"
SUPPORTED_LANGUAGES = ("es", "en")


class IngredientCatalog:
    """
    Read-only ingredient catalog keyed by id.

    Each entry looks like:
        {
            "id": "ing-001",
            "names": {"es": "Tomate", "en": "Tomato"},
            "category": "Verduras",
            "allowedUnits": ["g", "kg", "unit"]
        }
    """

    def __init__(self, data_path: Optional[str] = None):
        self.data_path = Path(data_path or os.getenv("INGREDIENTS_DATA_PATH") or DEFAULT_INGREDIENTS_PATH)
        self._entries: Optional[Tuple[Dict[str, Any], ...]] = None
        self._by_id: Dict[str, Dict[str, Any]] = {}
        self._by_name: Dict[str, Dict[str, Any]] = {}

    def _ensure_loaded(self) -> Tuple[Dict[str, Any], ...]:
        if self._entries is not None:
            return self._entries

        # Two first calls may both load; they build identical indexes
        with open(self.data_path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        by_id: Dict[str, Dict[str, Any]] = {}
        by_name: Dict[str, Dict[str, Any]] = {}
        for item in raw:
            ingredient_id = str(item["id"])
            by_id[ingredient_id] = item
            for name in (item.get("names") or {}).values():
                if name:
                    # First entry wins when two ingredients share a name
                    by_name.setdefault(name.strip().lower(), item)

        self._by_id = by_id
        self._by_name = by_name
        self._entries = tuple(raw)
        logger.info(f"Loaded {len(self._entries)} ingredients from {self.data_path}")

        return self._entries

    def all(self) -> List[Dict[str, Any]]:
        return list(self._ensure_loaded())

    def get_by_id(self, ingredient_id: str) -> Optional[Dict[str, Any]]:
        self._ensure_loaded()
        return self._by_id.get(str(ingredient_id))

    def find_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact match against any localized name."""
        if not name:
            return None
        self._ensure_loaded()
        return self._by_name.get(name.strip().lower())

    def resolve(self, identifier: str) -> Optional[Dict[str, Any]]:
        """Exact id first, then localized name."""
        if identifier is None:
            return None
        identifier = str(identifier)
        return self.get_by_id(identifier) or self.find_by_name(identifier)

    def search(self, query: Optional[str] = None, lang: str = "es", limit: int = 20) -> List[Dict[str, Any]]:
        """
        Substring search on the names in one language.

        Args:
            query: Text to look for (case-insensitive). None returns everything.
            lang: Language of the names to search ("es" or "en")
            limit: Maximum number of results

        Returns:
            Matching catalog entries, in dataset order
        """
        entries = self._ensure_loaded()
        results = list(entries)

        if query:
            q = query.lower()
            results = [
                item for item in entries
                if (item.get("names") or {}).get(lang) and q in item["names"][lang].lower()
            ]

        return results[:max(limit, 0)]

    def by_category(self, category: str) -> List[Dict[str, Any]]:
        wanted = (category or "").lower()
        return [
            item for item in self._ensure_loaded()
            if (item.get("category") or "").lower() == wanted
        ]

    @staticmethod
    def display_name(ingredient: Dict[str, Any]) -> str:
        names = ingredient.get("names") or {}
        return names.get("es") or names.get("en") or str(ingredient.get("id"))


# Create singleton instance
ingredient_catalog = IngredientCatalog()
