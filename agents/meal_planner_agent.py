"""
NutriFlow — Meal Planner Agent
==============================
- AI Path: local Ollama model writes the day's meals (cached when parsed)
- Template Path: three hand-written plant-based meals (never fails, never cached)
- Circuit breaker decides whether the AI path is attempted at all
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from memory.session_context import SessionContext, get_default_context
from tools.food_lookup import FoodLookupService
from tools.meal_parser import Meal, MealIngredient, clamp_prep_time, parse_meals
from tools.ollama_client import BackendError, OllamaClient
from tools.settings import log
from tools.target_calculator import Targets

# =============================================================================
# CONFIGURATION
# =============================================================================
PLAN_MEAL_COUNT = 3
MEAL_MIN_PROTEIN_G = 20
MEAL_MIN_FIBER_G = 12
EXAMPLE_PREP_TIME_CAP = 20

NUTRIENT_KEYS = ("calories", "protein", "carbs", "fat", "fiber")

# =============================================================================
# MEAL TEMPLATES (The Safe Path)
# =============================================================================
FALLBACK_TEMPLATES: List[Dict[str, Any]] = [
    {
        "name": "High-Protein Tofu Scramble Bowl",
        "type": "breakfast",
        "foods": [("tofu", 200), ("spinach", 100), ("hemp seeds", 15), ("nutritional yeast", 10)],
        "prep_time": 15,
        "instructions": [
            "Heat pan with oil",
            "Crumble tofu and sauté 5 min",
            "Add spinach until wilted",
            "Top with hemp seeds and nutritional yeast",
        ],
    },
    {
        "name": "Power Lentil & Quinoa One-Pot",
        "type": "lunch",
        "foods": [("red lentils", 150), ("quinoa", 100), ("kale", 80), ("tahini", 20)],
        "prep_time": 25,
        "instructions": [
            "Combine lentils, quinoa, and 3 cups water in pot",
            "Simmer 20 min until tender",
            "Stir in chopped kale last 2 min",
            "Serve with tahini drizzle",
        ],
    },
    {
        "name": "Tempeh & Vegetable Sheet Pan",
        "type": "dinner",
        "foods": [("tempeh", 150), ("sweet potato", 200), ("broccoli", 150), ("pumpkin seeds", 20)],
        "prep_time": 30,
        "instructions": [
            "Cube tempeh and vegetables",
            "Toss with oil and seasonings on tray",
            "Roast at 200°C for 25 min",
            "Sprinkle with pumpkin seeds before serving",
        ],
    },
]


class MealBackend(Protocol):
    async def generate(self, prompt: str) -> str: ...


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================
def build_prompt(targets: Targets, preferences: Sequence[str], max_prep_time: int) -> str:
    """Natural-language generation prompt with targets, constraints and output shape."""
    example_prep = min(max_prep_time, EXAMPLE_PREP_TIME_CAP)
    return f"""You are a professional plant-based nutritionist specializing in body recomposition. Create ONE daily meal plan.

EXACT NUTRITIONAL TARGETS (must be met):
- Total daily calories: {targets.calories} kcal
- Total daily protein: {targets.protein}g
- Total daily carbs: {targets.carbs}g
- Total daily fat: {targets.fat}g
- Total daily fiber: {targets.fiber}g

MANDATORY MEAL REQUIREMENTS:
- Generate exactly {PLAN_MEAL_COUNT} meals: 1 breakfast, 1 lunch, 1 dinner
- Each meal must contain minimum {MEAL_MIN_PROTEIN_G}g protein AND {MEAL_MIN_FIBER_G}g fiber
- Only whole, unprocessed plant foods (no meat substitutes, protein powders, or packaged foods)
- Each meal uses ONE cooking method only: raw preparation, one pot, one pan, or one baking tray
- Maximum preparation time per meal: {max_prep_time} minutes
- User preferences to include: {", ".join(preferences)}

REQUIRED FOODS TO EMPHASIZE:
- High-protein: tempeh, tofu, lentils, chickpeas, hemp seeds, nutritional yeast
- Complete proteins: combine legumes + grains OR nuts + seeds
- Anti-inflammatory: leafy greens, berries, nuts, olive oil, turmeric
- Hormone-supporting: flax seeds, soy foods, cruciferous vegetables

COOKING CONSTRAINTS:
- Breakfast: Raw or one-pan maximum
- Lunch: One-pot or one-tray maximum
- Dinner: One-pot, one-pan, or one-tray maximum
- Simple techniques only: sauté, steam, roast, boil, or raw

OUTPUT FORMAT (respond with ONLY this JSON, no other text):
{{
 "meals": [
   {{
     "name": "High-Protein [Food] [Cooking Method]",
     "type": "breakfast",
     "foods": [
       {{"name": "firm tofu", "grams": 200}},
       {{"name": "hemp seeds", "grams": 30}}
     ],
     "prepTime": {example_prep},
     "instructions": [
       "Heat 1 tbsp olive oil in large pan",
       "Crumble tofu, sauté 5 minutes until golden",
       "Add vegetables, cook 3 minutes",
       "Sprinkle hemp seeds before serving"
     ]
   }}
 ]
}}

Generate {PLAN_MEAL_COUNT} complete meals that total exactly {targets.calories} calories and {targets.protein}g protein."""


def plan_cache_key(
    targets: Targets, preferences: Sequence[str], max_prep_time: int
) -> Tuple[Targets, Tuple[str, ...], int]:
    return (targets, tuple(preferences), max_prep_time)


async def build_fallback_meals(foods: FoodLookupService, max_prep_time: int) -> List[Meal]:
    """The fixed three-meal template plan, hydrated with live or offline foods."""
    meals = []
    for template in FALLBACK_TEMPLATES:
        ingredients = []
        for name, grams in template["foods"]:
            ingredients.append(MealIngredient(food=await foods.find_or_create(name), grams=grams))

        meals.append(Meal(
            name=template["name"],
            type=template["type"],
            foods=ingredients,
            prep_time=clamp_prep_time(min(max_prep_time, template["prep_time"])),
            instructions=list(template["instructions"]),
        ))
    return meals


def calculate_meal_totals(meal: Meal) -> Dict[str, float]:
    """Sum calories & macros of a meal from per-100g values."""
    totals = {key: 0.0 for key in NUTRIENT_KEYS}
    for item in meal.foods:
        factor = item.grams / 100
        for key in NUTRIENT_KEYS:
            totals[key] += getattr(item.food, key) * factor
    return totals


def calculate_plan_totals(meals: Sequence[Meal]) -> Dict[str, float]:
    """Daily totals across all meals."""
    totals = {key: 0.0 for key in NUTRIENT_KEYS}
    for meal in meals:
        for key, value in calculate_meal_totals(meal).items():
            totals[key] += value
    return totals


def compare_to_targets(meals: Sequence[Meal], targets: Targets) -> List[Dict[str, Any]]:
    """Rows of (nutrient, actual, target, difference), all rounded."""
    totals = calculate_plan_totals(meals)
    labels = {
        "calories": "Calories",
        "protein": "Protein (g)",
        "carbs": "Carbs (g)",
        "fat": "Fat (g)",
        "fiber": "Fiber (g)",
    }
    rows = []
    for key in NUTRIENT_KEYS:
        target = getattr(targets, key)
        rows.append({
            "Nutrient": labels[key],
            "Actual": round(totals[key]),
            "Target": target,
            "Difference": round(totals[key] - target),
        })
    return rows


# =============================================================================
# MAIN AGENT: MealPlanGenerator
# =============================================================================
class MealPlanGenerator:
    """Cache -> circuit breaker -> AI backend -> parser, with template fallback."""

    def __init__(
        self,
        context: Optional[SessionContext] = None,
        foods: Optional[FoodLookupService] = None,
        backend: Optional[MealBackend] = None,
    ):
        self.context = context or get_default_context()
        self.foods = foods or FoodLookupService(self.context)
        self.backend = backend or OllamaClient()

    async def generate(
        self,
        targets: Targets,
        preferences: Sequence[str],
        max_prep_time: int,
    ) -> List[Meal]:
        """
        Generate one day's meals.

        Args:
            targets: Daily targets from calculate_targets().
            preferences: Foods the user wants included.
            max_prep_time: Max minutes per meal (5-120).

        Returns:
            A non-empty list of meals. AI-written plans are cached under the
            exact (targets, preferences, max_prep_time) inputs; template
            plans are returned but never cached.
        """
        cache_key = plan_cache_key(targets, preferences, max_prep_time)
        cached = self.context.plan_cache.get(cache_key)
        if cached is not None:
            return list(cached)

        breaker = self.context.breaker
        if breaker.is_open():
            log.warn("Service temporarily unavailable, using fallback meals")
            return await build_fallback_meals(self.foods, max_prep_time)

        prompt = build_prompt(targets, preferences, max_prep_time)
        try:
            raw = await self.backend.generate(prompt)
        except BackendError as e:
            breaker.record_failure()
            log.error(f"AI generation failed: {e}")
            return await build_fallback_meals(self.foods, max_prep_time)

        breaker.record_success()

        try:
            meals = await parse_meals(raw, self.foods.find_or_create)
        except Exception as e:
            log.error(f"Could not parse AI response: {e}")
            meals = None

        if not meals:
            log.warn("AI response had no usable meals, using fallback meals")
            return await build_fallback_meals(self.foods, max_prep_time)

        self.context.plan_cache.set(cache_key, tuple(meals))
        return meals


async def build_daily_food_lists(
    foods: FoodLookupService,
    preferences: Sequence[str],
    per_meal: int = 3,
) -> Dict[str, List[str]]:
    """
    Product names per meal slot for one day (tool-server plan).

    Each slot searches the first preference (default "tofu").
    """
    search_term = preferences[0] if preferences else "tofu"
    day: Dict[str, List[str]] = {}
    for slot in ("breakfast", "lunch", "dinner", "snacks"):
        found = await foods.search_products(search_term, per_meal)
        day[slot] = [food.name for food in found]
    return day


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "MealPlanGenerator",
    "MealBackend",
    "FALLBACK_TEMPLATES",
    "build_prompt",
    "build_fallback_meals",
    "build_daily_food_lists",
    "plan_cache_key",
    "calculate_meal_totals",
    "calculate_plan_totals",
    "compare_to_targets",
]
