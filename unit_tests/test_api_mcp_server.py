# unit_tests/test_api_mcp_server.py
"""
Unit Tests for the MCP Tool Server
==================================
Drives the server through a real MCP client session (in-memory transport).

Run with: python -m pytest unit_tests/test_api_mcp_server.py -v
"""

import asyncio
import json
import sys
from pathlib import Path

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from conftest import FakeFetch, FakeResponse, off_product  # noqa: E402
from api.mcp_server import create_mcp_server  # noqa: E402
from tools.food_lookup import FoodLookupService  # noqa: E402


@pytest.fixture
def fetch():
    return FakeFetch([FakeResponse({"products": [
        off_product("Organic Tofu", kcal=144, protein=15.7, carbs=4.3, fat=8.7, fiber=2.3),
        off_product("Empty Tofu", kcal=0, protein=1),
    ]})])


@pytest.fixture
def server(context, fetch):
    foods = FoodLookupService(context, fetch=fetch)
    return create_mcp_server(lambda: foods)


def list_tools(server):
    async def run():
        async with create_connected_server_and_client_session(server._mcp_server) as client:
            return await client.list_tools()
    return asyncio.run(run())


def call_tool(server, name, arguments):
    async def run():
        async with create_connected_server_and_client_session(server._mcp_server) as client:
            return await client.call_tool(name, arguments)
    return asyncio.run(run())


def tool_payload(result):
    assert result.isError is False
    assert len(result.content) == 1
    assert result.content[0].type == "text"
    return json.loads(result.content[0].text)


# =============================================================================
# DISCOVERY
# =============================================================================
def test_list_tools(server):
    print("\n" + "="*60)
    print("TEST 1: MCP tools/list")
    print("="*60)

    tools = {tool.name: tool for tool in list_tools(server).tools}
    for name, tool in tools.items():
        print(f"   {name}: {tool.description}")

    assert set(tools) == {"search_nutrition_data", "generate_meal_plan"}
    assert tools["search_nutrition_data"].title == "Search Nutrition Data"
    assert tools["search_nutrition_data"].inputSchema["required"] == ["query"]
    assert set(tools["generate_meal_plan"].inputSchema["properties"]) == {
        "calorie_target", "days", "preferred_foods",
    }
    assert tools["generate_meal_plan"].inputSchema["required"] == ["calorie_target"]
    print("✅ Discovery passed")


# =============================================================================
# tools/call
# =============================================================================
def test_search_nutrition_data(server, fetch):
    print("\n" + "="*60)
    print("TEST 2: MCP search_nutrition_data")
    print("="*60)

    result = call_tool(server, "search_nutrition_data", {"query": "tofu", "max_results": 5})
    data = tool_payload(result)
    print(f"   {data}")

    assert data == {
        "products": [{
            "name": "Organic Tofu",
            "calories_per_100g": 144,
            "protein_per_100g": 15.7,
            "carbs_per_100g": 4.3,
            "fat_per_100g": 8.7,
            "fiber_per_100g": 2.3,
        }],
        "count": 1,
    }
    assert result.content[0].text == json.dumps(data, indent=2)
    assert fetch.calls[0]["params"]["page_size"] == "5"
    print("✅ Search tool passed")


def test_search_defaults_and_upstream_failure(context, offline_fetch):
    foods = FoodLookupService(context, fetch=offline_fetch)
    result = call_tool(create_mcp_server(lambda: foods), "search_nutrition_data", {"query": "tofu"})

    assert tool_payload(result) == {"products": [], "count": 0}
    assert offline_fetch.calls[0]["params"]["page_size"] == "20"


def test_generate_meal_plan(server, fetch):
    print("\n" + "="*60)
    print("TEST 3: MCP generate_meal_plan")
    print("="*60)

    result = call_tool(server, "generate_meal_plan", {
        "calorie_target": 2000, "days": 2, "preferred_foods": ["lentils", "rice"],
    })
    plan = tool_payload(result)["meal_plan"]

    assert [day["day"] for day in plan] == [1, 2]
    assert all(day["total_calories"] == 2000 for day in plan)
    assert list(plan[0]["meals"]) == ["breakfast", "lunch", "dinner", "snacks"]
    assert plan[1]["meals"]["snacks"] == ["Organic Tofu"]
    assert all(call["params"]["search_terms"] == "lentils" for call in fetch.calls)
    print("✅ Plan tool passed")


def test_generate_meal_plan_defaults(server, fetch):
    plan = tool_payload(call_tool(server, "generate_meal_plan", {"calorie_target": 1800}))["meal_plan"]
    assert len(plan) == 7
    assert fetch.calls[0]["params"]["search_terms"] == "tofu"


def test_unknown_tool_is_an_error(server):
    result = call_tool(server, "delete_everything", {})
    assert result.isError is True
    assert "Unknown tool" in result.content[0].text


def test_invalid_arguments_are_an_error(server, fetch):
    result = call_tool(server, "generate_meal_plan", {"calorie_target": -5})
    assert result.isError is True
    assert fetch.calls == []
