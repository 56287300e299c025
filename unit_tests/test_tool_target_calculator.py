# unit_tests/test_tool_target_calculator.py
"""
Unit Tests for Target Calculator Tool
=====================================
Run with: python -m pytest unit_tests/test_tool_target_calculator.py -v
"""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tools.target_calculator import (  # noqa: E402
    Profile,
    calculate_targets,
    is_valid_age,
    is_valid_height,
    is_valid_prep_time,
    is_valid_weight,
    round_half_up,
    sanitize_input,
)


def make_profile(**overrides):
    data = {"age": 45, "weight": 65, "height": 165, "activity_level": "moderate", "goal": "recomp"}
    data.update(overrides)
    return Profile(**data)


def test_reference_profile():
    """45y, 65kg, 165cm, moderate, recomp."""
    print("\n" + "="*60)
    print("TEST 1: Reference Profile")
    print("="*60)

    targets = calculate_targets(make_profile())
    print(f"   {targets}")

    assert targets.calories == 1907
    assert targets.protein == 117
    assert targets.carbs == 163, "162.5 rounds half-up"
    assert targets.fat == 87
    assert targets.fiber == 38
    print("✅ Reference targets passed")


def test_goals_and_activity():
    print("\n" + "="*60)
    print("TEST 2: Goals & Activity")
    print("="*60)

    recomp = calculate_targets(make_profile(goal="recomp"))
    maintain = calculate_targets(make_profile(goal="maintain"))
    gain = calculate_targets(make_profile(goal="gain"))
    assert recomp.calories < maintain.calories
    assert maintain == gain

    sedentary = calculate_targets(make_profile(activity_level="sedentary"))
    high = calculate_targets(make_profile(activity_level="high"))
    assert sedentary.calories < high.calories
    assert sedentary.protein == high.protein == 117
    print("✅ Goal & activity effects passed")


def test_fiber_floor():
    print("\n" + "="*60)
    print("TEST 3: Fiber Floor")
    print("="*60)

    small = make_profile(age=90, weight=40, height=140, activity_level="sedentary")
    targets = calculate_targets(small)
    print(f"   Calories: {targets.calories}, Fiber: {targets.fiber}")
    assert targets.fiber == 35
    print("✅ Fiber floor passed")


def test_macros_fit_calories():
    targets = calculate_targets(make_profile(weight=80, height=180, age=30, activity_level="high"))
    macro_kcal = targets.protein * 4 + targets.carbs * 4 + targets.fat * 9
    assert abs(macro_kcal - targets.calories) <= 9


def test_round_half_up():
    assert round_half_up(162.5) == 163
    assert round_half_up(0.5) == 1
    assert round_half_up(87.44) == 87
    assert round_half_up(2.5) == 3


def test_profile_bounds():
    with pytest.raises(ValidationError):
        make_profile(age=17)
    with pytest.raises(ValidationError):
        make_profile(weight=301)
    with pytest.raises(ValidationError):
        make_profile(goal="cut")


def test_validators():
    print("\n" + "="*60)
    print("TEST 4: Input Validators")
    print("="*60)

    assert is_valid_age("18") and is_valid_age(" 100 ")
    assert not is_valid_age("17") and not is_valid_age("abc") and not is_valid_age("")
    assert is_valid_weight("30") and is_valid_weight("72.5")
    assert not is_valid_weight("29.9") and not is_valid_weight("nan")
    assert is_valid_height("120") and not is_valid_height("251")
    assert is_valid_prep_time("5") and is_valid_prep_time("120")
    assert not is_valid_prep_time("4") and not is_valid_prep_time("121")
    print("✅ Validators passed")


def test_sanitize_input():
    assert sanitize_input("  tofu  ") == "tofu"
    assert sanitize_input("<script>tofu</script>") == "scripttofu/script"
    assert len(sanitize_input("a" * 500)) == 200
    assert sanitize_input("") == ""


def test_calories_increase_with_activity():
    for goal in ("recomp", "maintain", "gain"):
        calories = [
            calculate_targets(make_profile(activity_level=level, goal=goal)).calories
            for level in ("sedentary", "low", "moderate", "high")
        ]
        assert calories == sorted(calories)
        assert len(set(calories)) == 4, f"Strictly increasing for {goal}: {calories}"


@pytest.mark.parametrize("age,weight,height,activity_level,goal", [
    (18, 30, 120, "sedentary", "recomp"),
    (30, 80, 180, "high", "maintain"),
    (45, 65, 165, "moderate", "recomp"),
    (60, 95.5, 172.5, "low", "gain"),
    (100, 300, 250, "high", "maintain"),
])
def test_fat_and_fiber_formulas(age, weight, height, activity_level, goal):
    targets = calculate_targets(make_profile(
        age=age, weight=weight, height=height, activity_level=activity_level, goal=goal,
    ))

    assert targets.protein == round_half_up(weight * 1.8)
    assert targets.carbs == round_half_up(weight * 2.5)
    assert targets.fat == round_half_up((targets.calories - targets.protein * 4 - targets.carbs * 4) / 9)
    assert targets.fiber == max(35, round_half_up(targets.calories / 50))
