# tools/settings.py
"""
NutriFlow — Settings & Console Log
==================================
Runtime configuration (loaded once from .env / environment) and the
emoji status-line logger shared by every module.
"""

import os
import sys
from typing import Any, Dict, Optional, TextIO

from dotenv import load_dotenv

# =============================================================================
# CONFIGURATION
# =============================================================================
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"⚠️ Settings: {name}={raw!r} is not a number, using {default}", file=sys.stderr)
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


NUTRIFLOW_CONFIG: Dict[str, Any] = {
    "app_name": "nutriflow",
    "version": "1.0.0",
    # AI backend (local Ollama)
    "ollama_url": os.environ.get("NUTRIFLOW_OLLAMA_URL", "http://localhost:11434").rstrip("/"),
    "ollama_model": os.environ.get("NUTRIFLOW_OLLAMA_MODEL", "gemma3n:latest"),
    "meal_generation_timeout_s": _env_float("NUTRIFLOW_MEAL_TIMEOUT", 300.0),
    "health_timeout_s": _env_float("NUTRIFLOW_HEALTH_TIMEOUT", 3.0),
    "temperature": 0.7,
    "top_p": 0.9,
    # Food database (Open Food Facts)
    "off_api_base": os.environ.get(
        "NUTRIFLOW_OFF_API", "https://world.openfoodfacts.org/api/v2"
    ).rstrip("/"),
    "timeout_s": _env_float("NUTRIFLOW_TIMEOUT", 8.0),
    "search_page_size": 20,
    "max_search_results": 15,
    # Caches & circuit breaker
    "cache_size": _env_int("NUTRIFLOW_CACHE_SIZE", 50),
    "circuit_threshold": 3,
    "circuit_cooldown_s": 30.0,
    # Persistence & server
    "plan_dir": os.environ.get("NUTRIFLOW_PLAN_DIR", "meal_plans"),
    "api_host": os.environ.get("NUTRIFLOW_API_HOST", "127.0.0.1"),
    "api_port": _env_int("NUTRIFLOW_API_PORT", 8000),
    "mcp_transport": os.environ.get("NUTRIFLOW_MCP_TRANSPORT", "stdio"),
    "debug": os.environ.get("NUTRIFLOW_DEBUG", "").lower() in ("1", "true", "yes", "on"),
}


# =============================================================================
# CONSOLE LOG
# =============================================================================
class ConsoleLog:
    """Emoji-prefixed status lines on stdout, or on `stream` when set."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def _emit(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout)

    def info(self, msg: str) -> None:
        self._emit(f"ℹ️  {msg}")

    def success(self, msg: str) -> None:
        self._emit(f"✅ {msg}")

    def warn(self, msg: str) -> None:
        self._emit(f"⚠️ {msg}")

    def error(self, msg: str) -> None:
        self._emit(f"❌ {msg}")

    def debug(self, msg: str) -> None:
        if NUTRIFLOW_CONFIG["debug"]:
            self._emit(f"🐛 {msg}")


log = ConsoleLog()


__all__ = ["NUTRIFLOW_CONFIG", "ConsoleLog", "log"]
