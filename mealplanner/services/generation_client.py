# mealplanner/services/generation_client.py

"""
Client for the text-generation endpoint (Groq, OpenAI-compatible API).

Tries a fixed, ordered list of models for a bounded number of passes and
returns the first response that survives parsing and batch validation.
"""

import logging
import os
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import openai
from dotenv import load_dotenv
from openai import OpenAI

from mealplanner.services.plan_validator import only_requested_dates, validate_batch_plan
from mealplanner.services.response_parser import parse_model_response

load_dotenv()

logger = logging.getLogger(__name__)

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_BASE_URL = os.getenv("GROQ_BASE_URL", "https://api.groq.com/openai/v1")
GROQ_TIMEOUT_SECONDS = float(os.getenv("GROQ_TIMEOUT_SECONDS", "30"))

# Largest model first, then faster fallbacks
DEFAULT_MODELS = (
    "llama-3.3-70b-versatile",
    "meta-llama/llama-4-scout-17b-16e-instruct",
    "llama-3.1-8b-instant",
)
GROQ_MODELS = tuple(
    m.strip() for m in os.getenv("GROQ_MODELS", ",".join(DEFAULT_MODELS)).split(",") if m.strip()
)

# Low temperature keeps the structure of the answer consistent between calls
TEMPERATURE = 0.2
MAX_TOKENS = 3000
DEFAULT_MAX_RETRIES = 3
RATE_LIMIT_DELAY_SECONDS = 2
RETRY_DELAY_SECONDS = 1


def attempt_sequence(max_retries: int, models: Sequence[str]) -> Iterator[Tuple[int, int, str]]:
    """Every (retry_index, model_index, model) in the order they are tried."""
    for retry_index in range(max_retries):
        for model_index, model in enumerate(models):
            yield retry_index, model_index, model


def should_continue(last_result: Optional[Dict[str, Any]]) -> bool:
    """Keep trying until a response has produced a validated plan."""
    return last_result is None


class GenerationClient:
    """
    Calls the chat completions endpoint with retries across models.

    The OpenAI SDK is pointed at Groq's OpenAI-compatible endpoint. Its own
    retry logic is disabled (max_retries=0) because the model/retry loop here
    decides what happens after a failure.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        models: Optional[Sequence[str]] = None,
        timeout: Optional[float] = None,
        openai_client: Optional[OpenAI] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key or GROQ_API_KEY
        self.base_url = base_url or GROQ_BASE_URL
        self.models: List[str] = list(models or GROQ_MODELS)
        self.timeout = timeout or GROQ_TIMEOUT_SECONDS
        self.sleep = sleep
        self._client = openai_client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def request_completion(self, model: str, prompt: str) -> Optional[str]:
        """
        Send one prompt to one model.

        Returns:
            The text of the first choice, or None if the response carried none

        Raises:
            openai.RateLimitError: On HTTP 429
            openai.APIError: On any other HTTP, network or timeout failure
        """
        response = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
            response_format={"type": "json_object"},
            timeout=self.timeout,
        )

        choices = getattr(response, "choices", None) or []
        if not choices:
            return None
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        return content if isinstance(content, str) and content else None

    def call_with_retry(
        self,
        prompt: str,
        recipes: Sequence[Dict[str, Any]],
        selected_meal_types: Sequence[str],
        max_retries: int = DEFAULT_MAX_RETRIES,
        expected_dates: Optional[Sequence[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Try every model, max_retries times, until one answer validates.

        Args:
            prompt: Complete generation prompt
            recipes: Recipes the plan may reference
            selected_meal_types: Meal types every day must contain
            max_retries: Number of passes over the model list
            expected_dates: Dates the prompt asked for. Days outside them are
                dropped before validation, so an answer for the wrong dates
                counts as a failed attempt.

        Returns:
            The batch-validated plan of the first accepted response, or None
            when every attempt failed. Never raises.
        """
        if not self.is_configured:
            logger.warning("GROQ_API_KEY is not configured, skipping AI generation")
            return None

        last_model_index = len(self.models) - 1
        result = None

        for retry_index, model_index, model in attempt_sequence(max_retries, self.models):
            if model_index == 0 and retry_index > 0:
                logger.info(f"Retry {retry_index + 1} in {RETRY_DELAY_SECONDS} second(s)...")
                self.sleep(RETRY_DELAY_SECONDS)

            logger.info(f"Attempt {retry_index + 1}, model: {model}")
            try:
                text = self.request_completion(model, prompt)
            except openai.RateLimitError:
                logger.warning(f"Rate limited by {model}")
                if model_index < last_model_index:
                    self.sleep(RATE_LIMIT_DELAY_SECONDS)
                continue
            except openai.APIError as e:
                logger.error(f"Error with model {model}: {e}")
                continue

            if not text:
                logger.warning(f"Empty response from {model}")
                continue

            logger.debug(f"Response from {model}: {len(text)} characters")

            parsed = parse_model_response(text)
            if not parsed.is_ok:
                logger.warning(f"Malformed response from {model}: {parsed.error}")
                continue

            plan = parsed.data
            if expected_dates is not None:
                plan = only_requested_dates(plan, expected_dates)

            result = validate_batch_plan(plan, recipes, selected_meal_types)
            if not should_continue(result):
                logger.info(f"Plan accepted from {model}")
                return result

            logger.warning(f"Response from {model} had no valid days")

        logger.error("All generation attempts failed")
        return None
