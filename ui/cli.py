# ui/cli.py
"""
NutriFlow — Terminal App
========================
Menu-driven plant-based meal planner.

Run with: nutriflow
Or simply: python -m ui.cli
"""

import asyncio
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pandas as pd

# ========================================
# PATH SETUP
# ========================================
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agents.meal_planner_agent import (  # noqa: E402
    MealPlanGenerator,
    calculate_meal_totals,
    compare_to_targets,
)
from memory.plan_store import save_plan  # noqa: E402
from memory.session_context import SessionContext, get_default_context  # noqa: E402
from tools.food_lookup import Food, FoodLookupService  # noqa: E402
from tools.meal_parser import Meal  # noqa: E402
from tools.ollama_client import OllamaClient  # noqa: E402
from tools.settings import NUTRIFLOW_CONFIG, log  # noqa: E402
from tools.target_calculator import (  # noqa: E402
    Profile,
    Targets,
    calculate_targets,
    is_valid_age,
    is_valid_height,
    is_valid_prep_time,
    is_valid_weight,
    sanitize_input,
)

# ========================================
# CONFIGURATION
# ========================================
MAX_INPUT_ATTEMPTS = 3
DEFAULT_PREFERENCES = "tofu, tempeh, lentils, quinoa"
NAME_COLUMN_WIDTH = 25

MENU_OPTIONS: List[Tuple[str, str]] = [
    ("Set up profile", "setup"),
    ("Generate meal plan", "generate"),
    ("Search foods", "search"),
    ("High-protein foods", "protein"),
    ("View targets", "targets"),
    ("Exit", "exit"),
]

ACTIVITY_OPTIONS: List[Tuple[str, str]] = [
    ("Sedentary (little or no exercise)", "sedentary"),
    ("Low (light exercise 1-3 days/week)", "low"),
    ("Moderate (moderate exercise 3-5 days/week)", "moderate"),
    ("High (hard exercise 6-7 days/week)", "high"),
]

GOAL_OPTIONS: List[Tuple[str, str]] = [
    ("Body recomposition (lose fat, gain muscle)", "recomp"),
    ("Maintain current composition", "maintain"),
    ("Gain muscle", "gain"),
]

TARGET_PURPOSES = {
    "Calories": "Energy balance for recomposition",
    "Protein": "Muscle preservation & growth",
    "Carbohydrates": "Training fuel & recovery",
    "Fat": "Hormone production & health",
    "Fiber": "Gut health & satiety",
}


class TooManyInvalidInputsError(Exception):
    """The user used up the retry budget for one field."""


# ========================================
# RENDERING
# ========================================
def render_table(rows: Sequence[dict]) -> str:
    return pd.DataFrame(list(rows)).to_string(index=False)


def truncate_name(name: str, width: int = NAME_COLUMN_WIDTH) -> str:
    return name[:width] + "..." if len(name) > width else name


def targets_table(targets: Targets) -> str:
    values = [
        ("Calories", f"{targets.calories} kcal"),
        ("Protein", f"{targets.protein}g"),
        ("Carbohydrates", f"{targets.carbs}g"),
        ("Fat", f"{targets.fat}g"),
        ("Fiber", f"{targets.fiber}g"),
    ]
    return render_table(
        {"Nutrient": label, "Target": value, "Purpose": TARGET_PURPOSES[label]}
        for label, value in values
    )


def foods_table(foods: Sequence[Food]) -> str:
    return render_table(
        {
            "Food": truncate_name(food.name),
            "Protein/100g": f"{food.protein:g}g",
            "Carbs/100g": f"{food.carbs:g}g",
            "Fat/100g": f"{food.fat:g}g",
            "Fiber/100g": f"{food.fiber:g}g",
            "Calories/100g": f"{food.calories:g}",
        }
        for food in foods
    )


def format_meal(meal: Meal) -> str:
    totals = calculate_meal_totals(meal)
    lines = [f"\n{meal.name} ({meal.type})", f"⏱️ {meal.prep_time} minutes", "", "Ingredients:"]
    lines += [f"  • {item.grams:g}g {item.food.name}" for item in meal.foods]
    lines.append(
        f"📊 {round(totals['calories'])}kcal | P:{round(totals['protein'])}g | "
        f"C:{round(totals['carbs'])}g | F:{round(totals['fat'])}g | Fiber:{round(totals['fiber'])}g"
    )
    if meal.instructions:
        lines += ["", "Steps:"]
        lines += [f"  {i}. {step}" for i, step in enumerate(meal.instructions, 1)]
    lines.append("─" * 40)
    return "\n".join(lines)


def format_plan(meals: Sequence[Meal], targets: Optional[Targets] = None) -> str:
    parts = ["\n🍽️ Your Meal Plan", "═" * 50]
    parts += [format_meal(meal) for meal in meals]
    if targets is not None:
        parts += ["\nDaily Totals vs Targets:", render_table(compare_to_targets(meals, targets))]
    return "\n".join(parts)


# ========================================
# APP
# ========================================
class NutriFlowApp:
    """Interactive session: one profile, one context, many actions."""

    def __init__(
        self,
        context: Optional[SessionContext] = None,
        foods: Optional[FoodLookupService] = None,
        backend: Optional[OllamaClient] = None,
        ask: Callable[[str], str] = input,
        plan_dir: Optional[str] = None,
    ):
        self.context = context or get_default_context()
        self.foods = foods or FoodLookupService(self.context)
        self.backend = backend or OllamaClient()
        self.generator = MealPlanGenerator(self.context, self.foods, self.backend)
        self.ask = ask
        self.plan_dir = plan_dir or NUTRIFLOW_CONFIG["plan_dir"]
        self.profile: Optional[Profile] = None
        self.targets: Optional[Targets] = None

    # ---------------------------------------------------------------- input
    def prompt(self, message: str, default: Optional[str] = None) -> str:
        suffix = f" [{default}]" if default else ""
        answer = self.ask(f"{message}{suffix} ").strip()
        return answer if answer or default is None else default

    def prompt_validated(
        self,
        message: str,
        validator: Callable[[str], bool],
        error_message: str,
    ) -> str:
        for attempt in range(1, MAX_INPUT_ATTEMPTS + 1):
            answer = self.prompt(message)
            if validator(answer):
                return answer
            log.error(f"{error_message} ({MAX_INPUT_ATTEMPTS - attempt} attempts remaining)")
        raise TooManyInvalidInputsError("Too many invalid inputs. Please restart setup.")

    def choose(self, message: str, options: Sequence[Tuple[str, str]]) -> str:
        print(f"\n{message}")
        for i, (label, _) in enumerate(options, 1):
            print(f"  {i}. {label}")
        choice = self.prompt_validated(
            "Select:",
            lambda raw: raw.isdigit() and 1 <= int(raw) <= len(options),
            f"Please enter a number between 1 and {len(options)}",
        )
        return options[int(choice) - 1][1]

    def pause(self) -> None:
        self.ask("\nPress Enter to continue...")

    # -------------------------------------------------------------- actions
    def setup_profile(self) -> Profile:
        log.info("Setting up your nutrition profile...\n")
        age = self.prompt_validated(
            "Age (18-100):", is_valid_age, "Please enter a valid age between 18 and 100"
        )
        weight = self.prompt_validated(
            "Weight in kg (30-300):", is_valid_weight, "Please enter a valid weight between 30-300 kg"
        )
        height = self.prompt_validated(
            "Height in cm (120-250):", is_valid_height, "Please enter a valid height between 120-250 cm"
        )
        activity_level = self.choose("Activity level:", ACTIVITY_OPTIONS)
        goal = self.choose("Primary goal:", GOAL_OPTIONS)

        return Profile(
            age=int(age),
            weight=float(weight),
            height=float(height),
            activity_level=activity_level,
            goal=goal,
        )

    async def generate_plan(self) -> None:
        if self.profile is None or self.targets is None:
            log.warn("Please set up your profile first.")
            return

        max_time = int(self.prompt_validated(
            "Max prep time per meal (5-120 minutes):",
            is_valid_prep_time,
            "Please enter a valid time between 5-120 minutes",
        ))
        raw_prefs = self.prompt("Food preferences (comma-separated):", DEFAULT_PREFERENCES)
        preferences = [p for p in (sanitize_input(item) for item in raw_prefs.split(",")) if p]

        log.info("Generating your meal plan...")
        meals = await self.generator.generate(self.targets, preferences, max_time)
        if not meals:
            log.error("Failed to generate meals. Please try again.")
            return

        print(format_plan(meals, self.targets))

        if self.prompt("Save this meal plan? (y/n)", "n").lower().startswith("y"):
            result = save_plan(meals, self.profile, self.targets, directory=self.plan_dir)
            if result["status"] == "success":
                log.success(f"Saved to {result['path']}")
            else:
                log.error(result["error_message"])

    async def search_foods(self) -> None:
        query = self.prompt("Search foods:")
        results = await self.foods.search_with_fallback(query)
        if not results:
            log.warn("No foods found. Try a different term.")
            return
        print(f"\nSearch Results: ({len(results)} found)")
        print(foods_table(results))

    async def show_high_protein(self) -> None:
        log.info("Collecting high-protein plant foods...")
        results = await self.foods.top_high_protein_foods()
        if not results:
            log.warn("No high-protein foods available right now.")
            return
        print(foods_table(results))

    def show_targets(self) -> None:
        if self.targets is None:
            log.warn("Please set up your profile first.")
            return
        print("\nYour Daily Nutrition Targets:")
        print(targets_table(self.targets))

    # ----------------------------------------------------------------- loop
    async def handle(self, action: str) -> bool:
        """Run one menu action. Returns False when the user exits."""
        if action == "setup":
            self.profile = self.setup_profile()
            self.targets = calculate_targets(self.profile)
            log.success("Profile saved successfully!")
            self.show_targets()
        elif action == "generate":
            await self.generate_plan()
        elif action == "search":
            await self.search_foods()
        elif action == "protein":
            await self.show_high_protein()
        elif action == "targets":
            self.show_targets()
        elif action == "exit":
            log.success("Thank you for using NutriFlow! 🌱")
            return False
        return True

    async def run(self) -> None:
        print("🌱 NutriFlow 🌱  Functional Plant-Based Nutrition")
        if not await self.backend.check_health():
            log.warn("Ollama not available. Using offline mode with local meal templates.")

        while True:
            try:
                action = self.choose("Choose an action:", MENU_OPTIONS)
                if not await self.handle(action):
                    return
            except (TooManyInvalidInputsError, ValueError) as e:
                log.error(f"Operation failed: {e}")
            self.pause()


# ========================================
# ENTRY POINT
# ========================================
def main() -> int:
    try:
        asyncio.run(NutriFlowApp().run())
    except KeyboardInterrupt:
        print()
        log.info("Goodbye!")
    except Exception as e:
        log.error(f"Application error: {e}")
        print("\nIf this persists, please check:")
        print("1. Internet connection is available")
        print("2. Ollama is running (optional)")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
