# mealplanner/services/abstract_measures.py

"""
Fixed equivalence table for abstract kitchen measures.

Each abstract measure ("una pizca", "a splash", ...) maps to a concrete base
unit (ml or g) and the amount of that unit one measure stands for.
"""

from types import MappingProxyType
from typing import Dict, List, Optional


class AbstractMeasureEntry:
    """One row of the abstract measure table."""

    __slots__ = ("name", "base_unit", "base_value")

    def __init__(self, name: str, base_unit: str, base_value: float):
        self.name = name
        self.base_unit = base_unit
        self.base_value = base_value

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "baseUnit": self.base_unit,
            "baseValue": self.base_value,
        }

    def __repr__(self) -> str:
        return f"AbstractMeasureEntry({self.name!r}, {self.base_unit!r}, {self.base_value!r})"


_ENTRIES = (
    # Spanish names, as entered in the recipe form
    AbstractMeasureEntry("pizca", "g", 0.5),
    AbstractMeasureEntry("pellizco", "g", 0.5),
    AbstractMeasureEntry("chorrito", "ml", 10),
    AbstractMeasureEntry("chorro", "ml", 20),
    AbstractMeasureEntry("cucharada", "ml", 15),
    AbstractMeasureEntry("cucharadita", "ml", 5),
    AbstractMeasureEntry("taza", "ml", 240),
    AbstractMeasureEntry("vaso", "ml", 200),
    AbstractMeasureEntry("puñado", "g", 30),
    AbstractMeasureEntry("al gusto", "g", 1),
    # English names
    AbstractMeasureEntry("pinch", "g", 0.5),
    AbstractMeasureEntry("dash", "ml", 1),
    AbstractMeasureEntry("splash", "ml", 10),
    AbstractMeasureEntry("tablespoon", "ml", 15),
    AbstractMeasureEntry("teaspoon", "ml", 5),
    AbstractMeasureEntry("cup", "ml", 240),
    AbstractMeasureEntry("glass", "ml", 200),
    AbstractMeasureEntry("handful", "g", 30),
    AbstractMeasureEntry("to taste", "g", 1),
)

ABSTRACT_MEASURES: "MappingProxyType[str, AbstractMeasureEntry]" = MappingProxyType(
    {entry.name: entry for entry in _ENTRIES}
)

# Leading articles users type in front of the measure ("una pizca", "a pinch")
_ARTICLES = ("un ", "una ", "a ", "an ")

# Plural forms map back onto their singular entry
_PLURAL_SUFFIXES = ("es", "s")


def _normalize_name(name: str) -> str:
    key = " ".join(name.strip().lower().split())
    for article in _ARTICLES:
        if key.startswith(article):
            key = key[len(article):]
            break
    return key


def get_abstract_measure(name: Optional[str]) -> Optional[AbstractMeasureEntry]:
    """
    Look up an abstract measure by name.

    Matching ignores case, surrounding whitespace, a leading article and a
    plural suffix, so "Una Pizca", "pizcas" and "pizca" all resolve to the same
    entry. Returns None when the name is not in the table.
    """
    if not name or not isinstance(name, str):
        return None

    key = _normalize_name(name)
    entry = ABSTRACT_MEASURES.get(key)
    if entry is not None:
        return entry

    for suffix in _PLURAL_SUFFIXES:
        if key.endswith(suffix):
            entry = ABSTRACT_MEASURES.get(key[: -len(suffix)])
            if entry is not None:
                return entry

    return None


def list_abstract_measures() -> List[Dict[str, object]]:
    """Serializable copy of the whole table."""
    return [entry.to_dict() for entry in ABSTRACT_MEASURES.values()]
