# tools/food_lookup.py
"""
NutriFlow — Food Lookup Service
===============================
Searches Open Food Facts for plant foods and normalizes products into
per-100g Food records. Results are cached per search term; any network
problem falls back to a small offline table of plant proteins.

Lookup chain:
  1. Food cache (normalized term)
  2. Open Food Facts search (bounded timeout, quality filter, max 15)
  3. Offline FALLBACK_FOODS (substring match), never cached
"""

import math
from typing import Any, Awaitable, Callable, Dict, List, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

from memory.session_context import SessionContext, get_default_context
from tools.net import RequestTimeoutError, http_get
from tools.settings import NUTRIFLOW_CONFIG, log
from tools.target_calculator import sanitize_input


# =============================================================================
# VALIDATION SCHEMA
# =============================================================================
class Food(BaseModel):
    """Nutrition per 100 g."""
    model_config = ConfigDict(frozen=True)

    name: str
    protein: float = Field(0.0, ge=0)
    carbs: float = Field(0.0, ge=0)
    fat: float = Field(0.0, ge=0)
    fiber: float = Field(0.0, ge=0)
    calories: float = Field(0.0, ge=0)


# =============================================================================
# FOOD DATABASE — Offline Fallback
# =============================================================================
FALLBACK_FOODS: List[Food] = [
    Food(name="Tofu, firm", protein=15.7, carbs=4.3, fat=8.7, fiber=2.3, calories=144),
    Food(name="Tempeh", protein=21.3, carbs=1.8, fat=10.9, fiber=6.1, calories=208),
    Food(name="Green lentils in water", protein=6, carbs=12, fat=0.5, fiber=4.1, calories=82),
    Food(name="Chickpeas in water", protein=7.2, carbs=23.4, fat=2.2, fiber=7.4, calories=127),
    Food(name="Shelled Hemp", protein=35, carbs=1.1, fat=52, fiber=4.5, calories=617),
    Food(name="Nutritional yeast", protein=50.6, carbs=10, fat=4.8, fiber=23.2, calories=332),
]

# Generic plant-protein stand-in when nothing matches a name
PLACEHOLDER_MACROS = {"protein": 8, "carbs": 15, "fat": 3, "fiber": 5, "calories": 120}

HIGH_PROTEIN_QUERIES = ["tofu", "tempeh", "seitan", "hemp seeds", "nutritional yeast"]
HIGH_PROTEIN_MIN_G = 15
HIGH_PROTEIN_LIMIT = 10

MIN_QUALITY_G = 3  # protein or fiber per 100 g

SEARCH_FIELDS = "product_name,nutriments"
PRODUCT_FIELDS = "product_name,brands,nutrition_grades,nutriments,code"
PLANT_BASED_CATEGORY = "plant-based-foods"


# =============================================================================
# HELPERS
# =============================================================================
def _num(value: Any) -> float:
    """Loose numeric coercion: missing, zero, NaN or junk all become 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def parse_off_product(product: Any) -> Optional[Food]:
    """
    Normalize one Open Food Facts product into a Food.

    Returns None when the product has no name, no nutriments, or neither
    calories nor protein.
    """
    if not isinstance(product, dict):
        return None
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict) or not nutriments:
        return None

    name = str(product.get("product_name") or "").strip()
    if not name:
        return None

    calories = _num(nutriments.get("energy-kcal_100g")) or _num(nutriments.get("energy_kcal_100g"))
    protein = _num(nutriments.get("proteins_100g"))

    if calories == 0 and protein == 0:
        return None

    return Food(
        name=sanitize_input(name),
        protein=max(0.0, protein),
        carbs=max(0.0, _num(nutriments.get("carbohydrates_100g"))),
        fat=max(0.0, _num(nutriments.get("fat_100g"))),
        fiber=max(0.0, _num(nutriments.get("fiber_100g"))),
        calories=max(0.0, calories),
    )


def passes_quality_filter(food: Food) -> bool:
    return food.calories > 0 and (food.protein >= MIN_QUALITY_G or food.fiber >= MIN_QUALITY_G)


def search_fallback_foods(term: str) -> List[Food]:
    """Case-insensitive substring match against the offline table."""
    needle = term.lower().strip()
    return [food for food in FALLBACK_FOODS if needle in food.name.lower()]


def placeholder_food(name: str) -> Food:
    return Food(name=name, **PLACEHOLDER_MACROS)


# =============================================================================
# SERVICE
# =============================================================================
class FoodLookupService:
    """Cached Open Food Facts search with offline fallback."""

    def __init__(
        self,
        context: Optional[SessionContext] = None,
        fetch: Callable[..., Awaitable[Any]] = http_get,
        config: Optional[Dict[str, Any]] = None,
    ):
        self.context = context or get_default_context()
        self._get = fetch
        self.config = {**NUTRIFLOW_CONFIG, **(config or {})}

    @property
    def search_url(self) -> str:
        return f"{self.config['off_api_base']}/search"

    async def _fetch_products(self, params: Dict[str, Any]) -> List[Any]:
        response = await self._get(self.search_url, params=params, timeout=self.config["timeout_s"])
        if not response.ok:
            raise requests.HTTPError(f"HTTP {response.status_code}")
        data = response.json()
        products = data.get("products") if isinstance(data, dict) else None
        return products if isinstance(products, list) else []

    async def search(self, term: str) -> List[Food]:
        """
        Search foods by term.

        Args:
            term: Free-text search term, e.g. "tofu".

        Returns:
            Up to 15 quality-filtered foods. Successful lookups (even empty
            ones) are cached under the lower-cased, trimmed term. Failed
            lookups return offline matches and are not cached.
        """
        cache_key = term.lower().strip()
        cached = self.context.food_cache.get(cache_key)
        if cached is not None:
            return list(cached)

        try:
            products = await self._fetch_products({
                "categories_tags_en": term,
                "fields": SEARCH_FIELDS,
                "page_size": str(self.config["search_page_size"]),
            })
        except (RequestTimeoutError, requests.RequestException, ValueError) as e:
            log.debug(f"Food search failed for {term!r}: {e}. Using offline foods...")
            return search_fallback_foods(term)

        foods = []
        for product in products:
            food = parse_off_product(product)
            if food is not None and passes_quality_filter(food):
                foods.append(food)
        foods = foods[: self.config["max_search_results"]]

        self.context.food_cache.set(cache_key, tuple(foods))
        return foods

    async def search_with_fallback(self, term: str) -> List[Food]:
        """search(), then the offline table when nothing came back."""
        foods = await self.search(term)
        if foods:
            return foods
        return search_fallback_foods(term)

    async def find_or_create(self, name: str) -> Food:
        """First match for a name, or a generic plant-protein placeholder."""
        clean_name = sanitize_input(name)
        found = await self.search_with_fallback(clean_name)
        return found[0] if found else placeholder_food(clean_name)

    async def top_high_protein_foods(self) -> List[Food]:
        """Best protein sources across a fixed set of searches (max 10)."""
        pooled: List[Food] = []
        for query in HIGH_PROTEIN_QUERIES:
            pooled.extend(await self.search(query))

        rich = [food for food in pooled if food.protein >= HIGH_PROTEIN_MIN_G]
        rich.sort(key=lambda food: food.protein, reverse=True)
        return rich[:HIGH_PROTEIN_LIMIT]

    async def search_products(self, query: str, limit: int = 20) -> List[Food]:
        """
        Uncached keyword search scoped to plant-based foods.

        Used by the tool server. Any failure is logged and yields [].
        """
        try:
            products = await self._fetch_products({
                "search_terms": query,
                "page_size": str(max(1, int(limit))),
                "categories_tags_en": PLANT_BASED_CATEGORY,
                "fields": PRODUCT_FIELDS,
            })
        except (RequestTimeoutError, requests.RequestException, ValueError) as e:
            log.error(f"OpenFoodFacts API error: {e}")
            return []

        foods = [parse_off_product(product) for product in products]
        return [food for food in foods if food is not None and food.calories > 0]


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "Food",
    "FoodLookupService",
    "FALLBACK_FOODS",
    "HIGH_PROTEIN_QUERIES",
    "parse_off_product",
    "passes_quality_filter",
    "search_fallback_foods",
    "placeholder_food",
]
