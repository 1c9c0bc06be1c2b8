# mealplanner/services/response_parser.py

"""
Cleans and parses the text a generative model returned for a meal plan.

Model output regularly breaks strict JSON in the same few ways (markdown fences,
prose around the object, single quotes, unquoted keys, trailing commas). Those
are repaired textually, in a fixed order, before json.loads is attempted.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

from mealplanner.services.errors import MalformedUpstreamResponse

logger = logging.getLogger(__name__)

EMPTY_JSON = "{}"

_CODE_BLOCK_RE = re.compile(r"```(?:json)?\s*\n([\s\S]*?)\n\s*```")

# Ordered (pattern, replacement) repairs
_REPAIRS = (
    (re.compile(r"'"), '"'),
    (re.compile(r'\\"'), '"'),
    (re.compile(r",\s*}"), "}"),
    (re.compile(r",\s*]"), "]"),
    (re.compile(r"([{,]\s*)(\w+)(\s*:)"), r'\1"\2"\3'),
    (re.compile(r"\n"), " "),
    (re.compile(r"\s+"), " "),
)


class ParseResult:
    """
    Outcome of parsing a model response: Ok(data) or Malformed(error).

    Downstream code must still treat every field of data as possibly missing
    or of the wrong type.
    """

    __slots__ = ("data", "error")

    def __init__(self, data: Optional[Dict[str, Any]] = None, error: Optional[MalformedUpstreamResponse] = None):
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "ParseResult":
        return cls(data=data)

    @classmethod
    def malformed(cls, reason: str) -> "ParseResult":
        return cls(error=MalformedUpstreamResponse(reason))

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.is_ok:
            return f"ParseResult.ok({self.data!r})"
        return f"ParseResult.malformed({str(self.error)!r})"


def clean_model_response(text: Optional[str]) -> str:
    """
    Apply the textual repairs and return the candidate JSON string.

    Returns "{}" when the text holds no object at all, or is not text.
    """
    if not isinstance(text, str) or not text:
        return EMPTY_JSON

    cleaned = text.strip()

    code_block = _CODE_BLOCK_RE.search(cleaned)
    if code_block:
        cleaned = code_block.group(1)

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace == -1 or last_brace == -1 or last_brace < first_brace:
        return EMPTY_JSON

    cleaned = cleaned[first_brace:last_brace + 1]

    for pattern, replacement in _REPAIRS:
        cleaned = pattern.sub(replacement, cleaned)

    return cleaned


def parse_model_response(text: Optional[str]) -> ParseResult:
    """
    Repair and parse a model response. Never raises.

    An empty object counts as malformed: there is nothing a validator could
    accept in it.
    """
    if text is not None and not isinstance(text, str):
        return ParseResult.malformed(f"Expected text, got {type(text).__name__}")

    cleaned = clean_model_response(text)
    if cleaned == EMPTY_JSON:
        return ParseResult.malformed("No JSON object found in response")

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Could not parse model response after repairs: {e}")
        return ParseResult.malformed(f"Invalid JSON: {e}")

    if not isinstance(parsed, dict):
        return ParseResult.malformed(f"Expected a JSON object, got {type(parsed).__name__}")

    if not parsed:
        return ParseResult.malformed("Empty JSON object")

    return ParseResult.ok(parsed)
