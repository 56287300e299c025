"""
NutriFlow — Nutrition Tools
===========================
The two callable tools shared by the MCP server and the HTTP app:

  search_nutrition_data(query, max_results=20)          -> {products, count}
  generate_meal_plan(calorie_target, days=7, preferred_foods=[]) -> {meal_plan}

Results are JSON text inside a uniform content envelope:
  {"content": [{"type": "text", "text": "<json>"}]}
"""

import json
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from agents.meal_planner_agent import build_daily_food_lists
from memory.session_context import get_default_context
from tools.food_lookup import Food, FoodLookupService
from tools.settings import NUTRIFLOW_CONFIG

SERVER_NAME = "meal-planning-server"
SERVER_VERSION = NUTRIFLOW_CONFIG["version"]


# =============================================================================
# PYDANTIC MODELS
# =============================================================================
class SearchNutritionRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Food name or keyword")
    max_results: int = Field(20, ge=1, le=100, description="Maximum products to return")


class GenerateMealPlanRequest(BaseModel):
    calorie_target: float = Field(..., gt=0, description="Daily calories")
    days: int = Field(7, ge=1, le=31, description="Number of days to plan")
    preferred_foods: List[str] = Field(default_factory=list, description="Foods to build meals around")


class TextContent(BaseModel):
    type: str = "text"
    text: str


class ToolResponse(BaseModel):
    content: List[TextContent]


# =============================================================================
# DEPENDENCIES
# =============================================================================
_FOOD_SERVICE = None


def get_food_service() -> FoodLookupService:
    global _FOOD_SERVICE
    if _FOOD_SERVICE is None:
        _FOOD_SERVICE = FoodLookupService(get_default_context())
    return _FOOD_SERVICE


# =============================================================================
# TOOLS
# =============================================================================
def to_nutrition_data(food: Food) -> Dict[str, Any]:
    return {
        "name": food.name,
        "calories_per_100g": food.calories,
        "protein_per_100g": food.protein,
        "carbs_per_100g": food.carbs,
        "fat_per_100g": food.fat,
        "fiber_per_100g": food.fiber,
    }


async def search_nutrition_data(
    foods: FoodLookupService,
    request: SearchNutritionRequest,
) -> Dict[str, Any]:
    """
    Search Open Food Facts for plant-based nutrition information.

    Args:
        foods: Food lookup service.
        request: query text and max_results (default 20).

    Returns:
        {"products": [...], "count": n}; empty on any upstream failure.
    """
    results = await foods.search_products(request.query, request.max_results)
    products = [to_nutrition_data(food) for food in results]
    return {"products": products, "count": len(products)}


async def generate_meal_plan(
    foods: FoodLookupService,
    request: GenerateMealPlanRequest,
) -> Dict[str, Any]:
    """
    Create a simple multi-day plant-based plan from preferred foods.

    Args:
        foods: Food lookup service.
        request: calorie_target, days (default 7), preferred_foods.

    Returns:
        {"meal_plan": [{"day", "meals", "total_calories"}, ...]}
    """
    meal_plan = []
    for day in range(1, request.days + 1):
        meals = await build_daily_food_lists(foods, request.preferred_foods)
        meal_plan.append({
            "day": day,
            "meals": meals,
            "total_calories": request.calorie_target,
        })
    return {"meal_plan": meal_plan}


TOOLS: Dict[str, Dict[str, Any]] = {
    "search_nutrition_data": {
        "title": "Search Nutrition Data",
        "description": "Search Open Food Facts database for plant-based nutrition information",
        "input_model": SearchNutritionRequest,
        "handler": search_nutrition_data,
    },
    "generate_meal_plan": {
        "title": "Generate Meal Plan",
        "description": "Create personalized plant-based meal plan with nutritional analysis",
        "input_model": GenerateMealPlanRequest,
        "handler": generate_meal_plan,
    },
}


def as_text(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2)


def envelope(payload: Dict[str, Any]) -> ToolResponse:
    return ToolResponse(content=[TextContent(text=as_text(payload))])


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "SearchNutritionRequest",
    "GenerateMealPlanRequest",
    "ToolResponse",
    "TOOLS",
    "get_food_service",
    "search_nutrition_data",
    "generate_meal_plan",
    "as_text",
    "envelope",
]
