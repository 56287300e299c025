"""
NutriFlow — MCP Tool Server
===========================
Model Context Protocol server exposing the nutrition tools to any MCP
client (desktop assistants, IDE agents, CrewAI adapters).

  search_nutrition_data(query, max_results=20)
  generate_meal_plan(calorie_target, days=7, preferred_foods=[])

Transport comes from NUTRIFLOW_MCP_TRANSPORT: stdio (default),
streamable-http or sse. Over stdio, stdout carries the protocol, so all
status lines go to stderr.

Run with: nutriflow-server
"""

import sys
from pathlib import Path
from typing import Callable, List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from mcp.server.fastmcp import FastMCP  # noqa: E402
from mcp.types import TextContent  # noqa: E402

from api.nutrition_tools import (  # noqa: E402
    SERVER_NAME,
    SERVER_VERSION,
    TOOLS,
    GenerateMealPlanRequest,
    SearchNutritionRequest,
    as_text,
    generate_meal_plan,
    get_food_service,
    search_nutrition_data,
)
from tools.food_lookup import FoodLookupService  # noqa: E402
from tools.settings import NUTRIFLOW_CONFIG, log  # noqa: E402

TRANSPORTS = ("stdio", "streamable-http", "sse")

INSTRUCTIONS = (
    "Plant-based nutrition tools. Use search_nutrition_data for per-100g macros "
    "of plant foods and generate_meal_plan for a simple multi-day plan built "
    "around preferred foods."
)


def create_mcp_server(
    foods_provider: Callable[[], FoodLookupService] = get_food_service,
) -> FastMCP:
    """
    Build the MCP server with both tools registered.

    Args:
        foods_provider: Returns the FoodLookupService the tools use.

    Returns:
        A FastMCP instance ready for .run(transport=...).
    """
    server = FastMCP(
        SERVER_NAME,
        instructions=INSTRUCTIONS,
        host=NUTRIFLOW_CONFIG["api_host"],
        port=NUTRIFLOW_CONFIG["api_port"],
    )

    search_tool = TOOLS["search_nutrition_data"]
    plan_tool = TOOLS["generate_meal_plan"]

    @server.tool(
        name="search_nutrition_data",
        title=search_tool["title"],
        description=search_tool["description"],
        structured_output=False,
    )
    async def search_tool_handler(query: str, max_results: int = 20) -> List[TextContent]:
        request = SearchNutritionRequest(query=query, max_results=max_results)
        payload = await search_nutrition_data(foods_provider(), request)
        return [TextContent(type="text", text=as_text(payload))]

    @server.tool(
        name="generate_meal_plan",
        title=plan_tool["title"],
        description=plan_tool["description"],
        structured_output=False,
    )
    async def plan_tool_handler(
        calorie_target: float,
        days: int = 7,
        preferred_foods: Optional[List[str]] = None,
    ) -> List[TextContent]:
        request = GenerateMealPlanRequest(
            calorie_target=calorie_target,
            days=days,
            preferred_foods=preferred_foods or [],
        )
        payload = await generate_meal_plan(foods_provider(), request)
        return [TextContent(type="text", text=as_text(payload))]

    return server


server = create_mcp_server()


# =============================================================================
# MAIN
# =============================================================================
def main() -> None:
    log.stream = sys.stderr

    transport = NUTRIFLOW_CONFIG["mcp_transport"]
    if transport not in TRANSPORTS:
        log.warn(f"Unknown MCP transport {transport!r}, using stdio")
        transport = "stdio"

    print("\n" + "=" * 50, file=sys.stderr)
    print(f"🚀 NUTRIFLOW MCP SERVER v{SERVER_VERSION} ({transport})", file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    for name in TOOLS:
        print(f"   • {name}", file=sys.stderr)
    print("=" * 50 + "\n", file=sys.stderr)

    server.run(transport=transport)


if __name__ == "__main__":
    main()
