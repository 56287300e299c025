"""
NutriFlow — HTTP Tool API (FastAPI)
===================================
Plain HTTP access to the nutrition tools for browsers and scripts.
MCP clients connect to api/mcp_server.py instead.

  GET  /                               health
  GET  /tools                          tool names, titles, input schemas
  POST /tools/search_nutrition_data    {query, max_results}
  POST /tools/generate_meal_plan       {calorie_target, days, preferred_foods}
  POST /tools/call                     {name, arguments}
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Type

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import Depends, FastAPI, HTTPException  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from pydantic import BaseModel, Field, ValidationError  # noqa: E402
import uvicorn  # noqa: E402

from api.nutrition_tools import (  # noqa: E402
    SERVER_NAME,
    SERVER_VERSION,
    TOOLS,
    GenerateMealPlanRequest,
    SearchNutritionRequest,
    ToolResponse,
    envelope,
    generate_meal_plan,
    get_food_service,
    search_nutrition_data,
)
from tools.food_lookup import FoodLookupService  # noqa: E402
from tools.settings import NUTRIFLOW_CONFIG, log  # noqa: E402


class ToolCallRequest(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


async def run_tool(name: str, arguments: Dict[str, Any], foods: FoodLookupService) -> ToolResponse:
    tool = TOOLS.get(name)
    if tool is None:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

    input_model: Type[BaseModel] = tool["input_model"]
    try:
        request = input_model(**arguments)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=json.loads(e.json()))

    handler: Callable[..., Awaitable[Dict[str, Any]]] = tool["handler"]
    return envelope(await handler(foods, request))


# =============================================================================
# APP SETUP
# =============================================================================
app = FastAPI(
    title="NutriFlow Tool API",
    version=SERVER_VERSION,
    description="Plant-based nutrition search and meal-plan tools over HTTP",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Health & Discovery
# -----------------------------------------------------------------------------
@app.get("/")
async def root():
    """Root endpoint for health checking."""
    return {
        "status": "online",
        "system": SERVER_NAME,
        "version": SERVER_VERSION,
        "docs": "/docs",
        "tools": list(TOOLS),
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/tools")
async def list_tools():
    """Tool names, titles, descriptions and input schemas."""
    return {
        "tools": [
            {
                "name": name,
                "title": tool["title"],
                "description": tool["description"],
                "inputSchema": tool["input_model"].model_json_schema(),
            }
            for name, tool in TOOLS.items()
        ]
    }


# -----------------------------------------------------------------------------
# Tool Calls
# -----------------------------------------------------------------------------
@app.post("/tools/call", response_model=ToolResponse)
async def call_tool(request: ToolCallRequest, foods: FoodLookupService = Depends(get_food_service)):
    """Generic dispatch: {"name": ..., "arguments": {...}}."""
    return await run_tool(request.name, request.arguments, foods)


@app.post("/tools/search_nutrition_data", response_model=ToolResponse)
async def search_nutrition_endpoint(
    request: SearchNutritionRequest,
    foods: FoodLookupService = Depends(get_food_service),
):
    return envelope(await search_nutrition_data(foods, request))


@app.post("/tools/generate_meal_plan", response_model=ToolResponse)
async def generate_meal_plan_endpoint(
    request: GenerateMealPlanRequest,
    foods: FoodLookupService = Depends(get_food_service),
):
    return envelope(await generate_meal_plan(foods, request))


# =============================================================================
# MAIN
# =============================================================================
def main() -> None:
    host = NUTRIFLOW_CONFIG["api_host"]
    port = NUTRIFLOW_CONFIG["api_port"]
    print("\n" + "=" * 50)
    print(f"🚀 NUTRIFLOW TOOL API v{SERVER_VERSION}")
    print("=" * 50)
    for name in TOOLS:
        print(f"   • {name}")
    print("=" * 50)
    log.info(f"API Docs: http://{host}:{port}/docs")
    print("=" * 50 + "\n")

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
