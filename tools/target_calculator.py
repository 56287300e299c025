# tools/target_calculator.py
"""
NutriFlow — Target Calculator
=============================
Turns a user profile into daily calorie & macro targets.

  - Resting energy: Mifflin-St Jeor (female offset)
  - Activity multiplier from the profile's activity level
  - 5% deficit for body recomposition, maintenance otherwise
  - Protein 1.8 g/kg, carbs 2.5 g/kg, fat = remaining calories
  - Fiber: at least 35 g, or calories / 50

Pure functions, no I/O.
"""

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# CONSTANTS & FORMULAS
# =============================================================================
ActivityLevel = Literal["sedentary", "low", "moderate", "high"]
Goal = Literal["recomp", "maintain", "gain"]

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,    # little or no exercise
    "low": 1.375,        # light exercise 1-3 days/week
    "moderate": 1.55,    # moderate exercise 3-5 days/week
    "high": 1.725,       # hard exercise 6-7 days/week
}

GOAL_CALORIE_FACTORS = {
    "recomp": 0.95,
    "maintain": 1.0,
    "gain": 1.0,
}

MIFFLIN_FEMALE_OFFSET = 161  # +5 for men
PROTEIN_PER_KG = 1.8
CARBS_PER_KG = 2.5
FIBER_FLOOR_G = 35
CALORIES_PER_FIBER_G = 50

MACRO_CALORIES = {
    "protein": 4,
    "carbs": 4,
    "fat": 9,
}

AGE_RANGE = (18, 100)
WEIGHT_RANGE_KG = (30, 300)
HEIGHT_RANGE_CM = (120, 250)
PREP_TIME_RANGE_MIN = (5, 120)
MAX_INPUT_LENGTH = 200


# =============================================================================
# VALIDATION SCHEMA
# =============================================================================
class Profile(BaseModel):
    """Body data and goal captured from the user."""
    model_config = ConfigDict(frozen=True)

    age: int = Field(..., ge=AGE_RANGE[0], le=AGE_RANGE[1])
    weight: float = Field(..., ge=WEIGHT_RANGE_KG[0], le=WEIGHT_RANGE_KG[1], description="kg")
    height: float = Field(..., ge=HEIGHT_RANGE_CM[0], le=HEIGHT_RANGE_CM[1], description="cm")
    activity_level: ActivityLevel
    goal: Goal


class Targets(BaseModel):
    """Daily nutrition targets (kcal / grams)."""
    model_config = ConfigDict(frozen=True)

    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: int


# =============================================================================
# HELPERS
# =============================================================================
def round_half_up(value: float) -> int:
    """Round .5 away from zero on the positive side (162.5 -> 163)."""
    return int(math.floor(value + 0.5))


def sanitize_input(text: str) -> str:
    """Trim, cap at 200 chars and drop angle brackets."""
    return str(text).strip()[:MAX_INPUT_LENGTH].replace("<", "").replace(">", "")


def _parse_int(raw: str):
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _parse_float(raw: str):
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def is_valid_age(raw: str) -> bool:
    age = _parse_int(raw)
    return age is not None and AGE_RANGE[0] <= age <= AGE_RANGE[1]


def is_valid_weight(raw: str) -> bool:
    weight = _parse_float(raw)
    return weight is not None and WEIGHT_RANGE_KG[0] <= weight <= WEIGHT_RANGE_KG[1]


def is_valid_height(raw: str) -> bool:
    height = _parse_float(raw)
    return height is not None and HEIGHT_RANGE_CM[0] <= height <= HEIGHT_RANGE_CM[1]


def is_valid_prep_time(raw: str) -> bool:
    minutes = _parse_int(raw)
    return minutes is not None and PREP_TIME_RANGE_MIN[0] <= minutes <= PREP_TIME_RANGE_MIN[1]


# =============================================================================
# MAIN TOOL: calculate_targets
# =============================================================================
def calculate_targets(profile: Profile) -> Targets:
    """
    Calculate daily nutrition targets for a profile.

    Args:
        profile: A validated Profile.

    Returns:
        Targets with calories, protein, carbs, fat and fiber.

    Example:
        >>> p = Profile(age=45, weight=65, height=165, activity_level="moderate", goal="recomp")
        >>> calculate_targets(p).protein
        117
    """
    bmr = (
        10 * profile.weight
        + 6.25 * profile.height
        - 5 * profile.age
        - MIFFLIN_FEMALE_OFFSET
    )
    tdee = bmr * ACTIVITY_MULTIPLIERS.get(profile.activity_level, ACTIVITY_MULTIPLIERS["moderate"])

    calories = round_half_up(tdee * GOAL_CALORIE_FACTORS.get(profile.goal, 1.0))
    protein = round_half_up(profile.weight * PROTEIN_PER_KG)
    carbs = round_half_up(profile.weight * CARBS_PER_KG)
    fat = round_half_up(
        (calories - protein * MACRO_CALORIES["protein"] - carbs * MACRO_CALORIES["carbs"])
        / MACRO_CALORIES["fat"]
    )
    fiber = max(FIBER_FLOOR_G, round_half_up(calories / CALORIES_PER_FIBER_G))

    return Targets(calories=calories, protein=protein, carbs=carbs, fat=fat, fiber=fiber)


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "Profile",
    "Targets",
    "ActivityLevel",
    "Goal",
    "ACTIVITY_MULTIPLIERS",
    "calculate_targets",
    "round_half_up",
    "sanitize_input",
    "is_valid_age",
    "is_valid_weight",
    "is_valid_height",
    "is_valid_prep_time",
]
