# tools/meal_parser.py
"""
NutriFlow — Meal Response Parser
================================
Recovers a structured meal list from the AI backend's raw reply.

The reply may be NDJSON (only the last line counts), carry escaped
entities, wrap its JSON in a ```json fence, or surround it with prose.
Anything unusable yields None instead of raising; individual meals are
repaired (defaults + clamping) rather than rejected.
"""

import asyncio
import json
import math
import re
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from tools.food_lookup import Food
from tools.settings import log
from tools.target_calculator import sanitize_input

# =============================================================================
# VALIDATION SCHEMA
# =============================================================================
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")

GRAMS_RANGE = (1, 1000)
DEFAULT_GRAMS = 100
PREP_TIME_RANGE = (5, 120)
DEFAULT_PREP_TIME = 20
MAX_INSTRUCTIONS = 6
MAX_MEALS = 6
DEFAULT_MEAL_NAME = "Unnamed Meal"
DEFAULT_MEAL_TYPE = "snack"


class MealIngredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    food: Food
    grams: float = Field(..., ge=GRAMS_RANGE[0], le=GRAMS_RANGE[1])


class Meal(BaseModel):
    """One meal of a daily plan."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: MealType
    foods: List[MealIngredient] = Field(default_factory=list)
    prep_time: int = Field(..., ge=PREP_TIME_RANGE[0], le=PREP_TIME_RANGE[1])
    instructions: List[str] = Field(default_factory=list, max_length=MAX_INSTRUCTIONS)


# Escapes that survive in Ollama's inner `response` text, replaced in order
ESCAPE_SEQUENCES = [
    ("\\u0026", "&"),
    ("\\u003c", "<"),
    ("\\u003e", ">"),
    ('\\"', '"'),
    ("\\\\", "\\"),
]

CODE_BLOCK_PATTERN = re.compile(r"```json\s*([\s\S]*?)\s*```")
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


# =============================================================================
# HELPERS: field repair
# =============================================================================
def _finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def clamp_grams(value: Any) -> float:
    """Clamp to [1, 1000]; 100 when the value is not a number."""
    number = _finite_number(value)
    if number is None:
        return DEFAULT_GRAMS
    return max(GRAMS_RANGE[0], min(GRAMS_RANGE[1], number))


def clamp_prep_time(value: Any) -> int:
    """Clamp to [5, 120] minutes; 20 when the value is not a number."""
    number = _finite_number(value)
    if number is None:
        return DEFAULT_PREP_TIME
    return int(round(max(PREP_TIME_RANGE[0], min(PREP_TIME_RANGE[1], number))))


def normalize_meal_type(value: Any) -> str:
    meal_type = str(value).strip().lower() if value is not None else ""
    return meal_type if meal_type in MEAL_TYPES else DEFAULT_MEAL_TYPE


def unescape_response(text: str) -> str:
    for escaped, plain in ESCAPE_SEQUENCES:
        text = text.replace(escaped, plain)
    return text


# =============================================================================
# HELPERS: payload extraction
# =============================================================================
def extract_response_text(raw: str) -> Optional[str]:
    """Inner `response` text of the last non-empty NDJSON line, or None."""
    lines = [line for line in (raw or "").strip().split("\n") if line.strip()]
    if not lines:
        return None

    try:
        envelope = json.loads(lines[-1])
    except (ValueError, RecursionError) as e:
        log.debug(f"Envelope decode failed: {e}")
        return None

    if not isinstance(envelope, dict):
        return None
    return str(envelope.get("response") or "")


def extract_json_object(text: str) -> Optional[str]:
    """Body of a ```json fence if present, then first '{' .. last '}'."""
    fenced = CODE_BLOCK_PATTERN.search(text)
    if fenced:
        text = fenced.group(1)

    match = JSON_OBJECT_PATTERN.search(text)
    return match.group(0) if match else None


def extract_meal_entries(raw: str) -> Optional[List[Any]]:
    """Raw `meals` list from a backend reply, or None when unrecoverable."""
    text = extract_response_text(raw)
    if text is None:
        return None

    body = extract_json_object(unescape_response(text))
    if body is None:
        log.debug(f"No JSON found in response: {text[:200]}")
        return None

    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as e:
        log.debug(f"Meal JSON decode failed: {e} (response length {len(raw)})")
        return None

    meals = data.get("meals") if isinstance(data, dict) else None
    if not isinstance(meals, list):
        return None
    return meals


# =============================================================================
# MEAL REPAIR
# =============================================================================
def _ingredient_entries(raw_foods: Any) -> List[Dict[str, Any]]:
    """(name, grams) pairs from a loosely-typed `foods` list."""
    if not isinstance(raw_foods, list):
        return []

    entries = []
    for entry in raw_foods:
        if isinstance(entry, dict) and entry.get("name") is not None:
            entries.append({"name": str(entry["name"]), "grams": clamp_grams(entry.get("grams"))})
        elif isinstance(entry, str) and entry.strip():
            entries.append({"name": entry, "grams": DEFAULT_GRAMS})
    return entries


async def repair_meal(
    raw_meal: Any,
    resolve_food: Callable[[str], Awaitable[Food]],
) -> Meal:
    """Build a valid Meal from one loosely-typed entry."""
    if not isinstance(raw_meal, dict):
        raw_meal = {}

    entries = _ingredient_entries(raw_meal.get("foods"))
    # Independent lookups; gather keeps input order
    foods = await asyncio.gather(*(resolve_food(entry["name"]) for entry in entries))

    instructions = raw_meal.get("instructions")
    if not isinstance(instructions, list):
        instructions = []

    return Meal(
        name=sanitize_input(raw_meal.get("name") or DEFAULT_MEAL_NAME),
        type=normalize_meal_type(raw_meal.get("type")),
        foods=[
            MealIngredient(food=food, grams=entry["grams"])
            for food, entry in zip(foods, entries)
        ],
        prep_time=clamp_prep_time(raw_meal.get("prepTime")),
        instructions=[sanitize_input(step) for step in instructions[:MAX_INSTRUCTIONS]],
    )


# =============================================================================
# MAIN TOOL: parse_meals
# =============================================================================
async def parse_meals(
    raw: str,
    resolve_food: Callable[[str], Awaitable[Food]],
) -> Optional[List[Meal]]:
    """
    Parse the AI backend's reply into meals.

    Args:
        raw: Raw response body (single JSON envelope or NDJSON fragments).
        resolve_food: Async name -> Food lookup (FoodLookupService.find_or_create).

    Returns:
        Up to 6 repaired meals, or None when no meal list could be recovered.

    Example:
        >>> meals = await parse_meals(body, foods.find_or_create)
    """
    entries = extract_meal_entries(raw)
    if not entries:
        return None

    meals = [await repair_meal(entry, resolve_food) for entry in entries[:MAX_MEALS]]
    return meals or None


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "Meal",
    "MealIngredient",
    "MealType",
    "MEAL_TYPES",
    "parse_meals",
    "repair_meal",
    "extract_meal_entries",
    "extract_response_text",
    "extract_json_object",
    "unescape_response",
    "clamp_grams",
    "clamp_prep_time",
    "normalize_meal_type",
]
