# tools/ollama_client.py
"""
NutriFlow — Ollama Client
=========================
Thin client for the local text-generation backend (Ollama).

  POST {OLLAMA_URL}/api/generate   -> raw response text (JSON or NDJSON)
  GET  {OLLAMA_URL}/api/tags       -> health check
"""

from typing import Any, Awaitable, Callable, Dict, Optional

import requests

from tools.net import RequestTimeoutError, http_get, http_post_json
from tools.settings import NUTRIFLOW_CONFIG, log


class BackendError(Exception):
    """The AI backend could not be reached or answered with a non-2xx status."""


class BackendTimeoutError(BackendError):
    """The AI backend did not answer before the deadline."""


class OllamaClient:
    """Calls /api/generate with a long deadline; never retries."""

    def __init__(
        self,
        base_url: str = NUTRIFLOW_CONFIG["ollama_url"],
        model: str = NUTRIFLOW_CONFIG["ollama_model"],
        timeout_s: float = NUTRIFLOW_CONFIG["meal_generation_timeout_s"],
        post: Callable[..., Awaitable[Any]] = http_post_json,
        get: Callable[..., Awaitable[Any]] = http_get,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout_s = timeout_s
        self._post = post
        self._get = get

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": NUTRIFLOW_CONFIG["temperature"],
                "top_p": NUTRIFLOW_CONFIG["top_p"],
            },
        }

    async def generate(self, prompt: str) -> str:
        """
        Send a prompt and return the raw response body.

        Raises:
            BackendTimeoutError: the deadline expired.
            BackendError: connection failure or non-2xx status.
        """
        log.debug(f"Ollama model: {self.model}")
        try:
            response = await self._post(
                f"{self.base_url}/api/generate",
                self.build_payload(prompt),
                timeout=self.timeout_s,
            )
        except RequestTimeoutError as e:
            raise BackendTimeoutError(str(e)) from e
        except requests.RequestException as e:
            raise BackendError(f"Connection failed: {e}") from e

        log.debug(f"Response status: {response.status_code}")
        if not response.ok:
            raise BackendError(f"HTTP {response.status_code}")
        return response.text

    async def check_health(self, timeout_s: Optional[float] = None) -> bool:
        """True when /api/tags answers 2xx in time. Never raises."""
        try:
            response = await self._get(
                f"{self.base_url}/api/tags",
                timeout=timeout_s or NUTRIFLOW_CONFIG["health_timeout_s"],
            )
            return bool(response.ok)
        except (RequestTimeoutError, requests.RequestException) as e:
            log.debug(f"Ollama health check failed: {e}")
            return False


__all__ = ["OllamaClient", "BackendError", "BackendTimeoutError"]
