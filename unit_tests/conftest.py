import sys
from pathlib import Path

import pytest
import requests

# Add root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from memory.session_context import CircuitBreaker, SessionContext  # noqa: E402
from tools.ollama_client import BackendError  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """Just enough of requests.Response for the services."""
    def __init__(self, payload=None, status_code: int = 200, text: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeFetch:
    """Records every GET and answers from a queue (or a fixed response)."""
    def __init__(self, responses=None, error: Exception = None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    async def __call__(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error is not None:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0] if self.responses else FakeResponse({"products": []})


class FakeBackend:
    """Stand-in for OllamaClient.generate."""
    def __init__(self, reply: str = "", error: Exception = None, healthy: bool = True):
        self.reply = reply
        self.error = error
        self.healthy = healthy
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    async def check_health(self, timeout_s=None) -> bool:
        return self.healthy


def off_product(name, kcal=100, protein=10, carbs=5, fat=2, fiber=4):
    return {
        "product_name": name,
        "nutriments": {
            "energy-kcal_100g": kcal,
            "proteins_100g": protein,
            "carbohydrates_100g": carbs,
            "fat_100g": fat,
            "fiber_100g": fiber,
        },
    }


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def context(clock):
    return SessionContext(cache_size=50, breaker=CircuitBreaker(threshold=3, cooldown_seconds=30, clock=clock))


@pytest.fixture
def offline_fetch():
    return FakeFetch(error=requests.ConnectionError("Connection refused"))


@pytest.fixture
def refused_backend():
    return FakeBackend(error=BackendError("Connection failed: Connection refused"))
