"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the test suite:
- A small set of favorite recipes covering every meal time and course role
- A fixed start date so generated date keys are predictable
- A fake generation client that answers without any network access
- A scripted upstream for driving a real OpenAI client through httpx.MockTransport

Nothing here talks to the real text-generation API.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

import httpx
import pytest

from mealplanner.services.prompt_builder import plan_dates


START_DATE = date(2026, 1, 26)  # a Monday


# =============================================================================
# Recipes
# =============================================================================

def make_recipe(recipe_id: str, title: str, tags: List[str], prep_time: Optional[int] = 30, ingredients=None) -> Dict[str, Any]:
    return {
        "id": recipe_id,
        "title": title,
        "tags": tags,
        "prepTime": prep_time,
        "ingredients": ingredients if ingredients is not None else [{"name": "Sal", "quantity": 1, "unit": "g"}],
    }


@pytest.fixture
def recipes() -> List[Dict[str, Any]]:
    return [
        make_recipe("r-paella", "Paella de verduras", ["lunch", "uniqueDish"], 45,
                    [{"name": "Arroz"}, {"name": "Pimiento rojo"}, {"name": "Tomate"}]),
        make_recipe("r-salad", "Ensalada mixta", ["comida", "primer plato", "rápido"], 10),
        make_recipe("r-chicken", "Pollo al horno", ["lunch", "dinner", "secondCourse"], 50),
        make_recipe("r-soup", "Sopa de verduras", ["cena", "firstCourse"], 25),
        make_recipe("r-toast", "Tostadas con tomate", ["breakfast", "quick"], 5),
        make_recipe("r-yogurt", "Yogur con fresas", ["merienda"], 5),
        make_recipe("r-untagged", "Bizcocho", ["postre"], 60),
    ]


@pytest.fixture
def recipe_ids(recipes) -> List[str]:
    return [r["id"] for r in recipes]


# =============================================================================
# Fake generation client
# =============================================================================

class FakeGenerationClient:
    """
    Stand-in for GenerationClient.

    Answers each batch with a valid day for every date of that batch (lunch is
    always the standalone paella). Batches are assumed to be asked for in order.
    """

    def __init__(self, duration: int, start_date: date = START_DATE, batch_size: int = 7,
                 drop_last_day: bool = False, fail: bool = False):
        self.duration = duration
        self.start_date = start_date
        self.batch_size = batch_size
        self.drop_last_day = drop_last_day
        self.fail = fail
        self.prompts: List[str] = []
        self.expected_dates: List[Optional[Sequence[str]]] = []

    def call_with_retry(self, prompt: str, recipes: Sequence[Dict[str, Any]], selected_meal_types: Sequence[str],
                        expected_dates: Optional[Sequence[str]] = None):
        offset = len(self.prompts) * self.batch_size
        self.prompts.append(prompt)
        self.expected_dates.append(expected_dates)
        if self.fail:
            return None

        days = min(self.batch_size, self.duration - offset)
        dates = plan_dates(self.start_date, days, offset)
        if self.drop_last_day:
            dates = dates[:-1]

        return {d: {m: [{"recipeId": "r-paella", "notes": "model note"}] for m in selected_meal_types} for d in dates}


@pytest.fixture
def fake_client_factory():
    return FakeGenerationClient


# =============================================================================
# Scripted upstream for a real OpenAI client on httpx.MockTransport
# =============================================================================


def completion(model: str, content: Any) -> dict:
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1769644800,
        "model": model,
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 10, "total_tokens": 20},
    }


class ScriptedUpstream:
    """Answers each chat completion request with the next step of the script."""

    def __init__(self, steps):
        self.steps = list(steps)
        self.requests: List[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        step = self.steps.pop(0)
        if isinstance(step, int):
            return httpx.Response(step, json={"error": {"message": f"status {step}", "type": "error"}})
        return httpx.Response(200, json=completion(body["model"], step))

    @property
    def models_called(self) -> List[str]:
        return [r["model"] for r in self.requests]


