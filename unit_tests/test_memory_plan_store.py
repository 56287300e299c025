# unit_tests/test_memory_plan_store.py
"""
Unit Tests for Plan Store
=========================
Run with: python -m pytest unit_tests/test_memory_plan_store.py -v
"""

import os
import sys
from datetime import date
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from memory.plan_store import load_plan, plan_filename, save_plan  # noqa: E402
from tools.food_lookup import FALLBACK_FOODS  # noqa: E402
from tools.meal_parser import Meal, MealIngredient  # noqa: E402
from tools.target_calculator import Profile, calculate_targets  # noqa: E402

PROFILE = Profile(age=45, weight=65, height=165, activity_level="moderate", goal="recomp")
TARGETS = calculate_targets(PROFILE)
MEALS = [
    Meal(
        name="Tofu & Greens",
        type="breakfast",
        foods=[MealIngredient(food=FALLBACK_FOODS[0], grams=200)],
        prep_time=15,
        instructions=["Crumble tofu", "Sauté"],
    )
]


def test_save_and_load(tmp_path):
    print("\n" + "="*60)
    print("TEST 1: Save & Load")
    print("="*60)

    result = save_plan(MEALS, PROFILE, TARGETS, directory=str(tmp_path), plan_date=date(2025, 3, 14))
    print(f"   Result: {result}")

    assert result["status"] == "success"
    assert result["path"].endswith("plan_2025-03-14.json")
    assert os.path.exists(result["path"])

    data = load_plan(result["path"])
    assert data["date"] == "2025-03-14"
    assert data["profile"]["goal"] == "recomp"
    assert data["targets"]["calories"] == 1907
    assert data["meals"][0]["name"] == "Tofu & Greens"
    assert data["meals"][0]["foods"][0]["food"]["name"] == "Tofu, firm"
    assert data["meals"][0]["instructions"][1] == "Sauté"
    print("✅ Round trip passed")


def test_same_day_overwrites(tmp_path):
    day = date(2025, 3, 14)
    save_plan(MEALS, PROFILE, TARGETS, directory=str(tmp_path), plan_date=day)
    second = save_plan([], PROFILE, TARGETS, directory=str(tmp_path), plan_date=day)

    assert second["status"] == "success"
    assert load_plan(second["path"])["meals"] == []
    assert len(list(tmp_path.iterdir())) == 1


def test_creates_directory(tmp_path):
    target = tmp_path / "nested" / "plans"
    result = save_plan(MEALS, PROFILE, TARGETS, directory=str(target), plan_date=date(2025, 1, 1))
    assert result["status"] == "success"
    assert target.is_dir()


def test_save_error_is_reported(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    result = save_plan(MEALS, PROFILE, TARGETS, directory=str(blocker))
    assert result["status"] == "error"
    assert result["error_message"].startswith("Save failed")


def test_plan_filename():
    assert plan_filename(date(2024, 12, 1), "meal_plans") == os.path.join("meal_plans", "plan_2024-12-01.json")
