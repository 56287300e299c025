"""
NutriFlow — Session Context (caches + circuit breaker)
======================================================
- Bounded FIFO caches (no TTL, size-triggered eviction only)
- Circuit breaker guarding the AI meal backend
- One SessionContext owns all of the above; pass it around explicitly

No locking: a single user drives one request at a time.
"""

import time
from typing import Any, Callable, Dict, Generic, Hashable, Iterator, Optional, TypeVar

from tools.settings import NUTRIFLOW_CONFIG

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


# =============================================================================
# BOUNDED CACHE
# =============================================================================
class BoundedCache(Generic[K, V]):
    """Insertion-ordered map that evicts its oldest key when full."""

    def __init__(self, max_size: int = NUTRIFLOW_CONFIG["cache_size"]):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self._entries: Dict[K, V] = {}

    def __contains__(self, key: K) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries)

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        return self._entries.get(key, default)

    def set(self, key: K, value: V) -> Optional[K]:
        """Store a value; returns the evicted key, if any."""
        evicted = None
        if key not in self._entries and len(self._entries) >= self.max_size:
            evicted = next(iter(self._entries))
            del self._entries[evicted]
        self._entries[key] = value
        return evicted

    def clear(self) -> None:
        self._entries.clear()


# =============================================================================
# CIRCUIT BREAKER
# =============================================================================
class CircuitBreaker:
    """
    Fail-fast gate for the AI backend.

    CLOSED while failures < threshold. OPEN once the threshold is reached and
    until `cooldown_seconds` have passed since the last failure. There is no
    half-open trial call and time alone never resets the counter; only
    record_success() does.
    """

    def __init__(
        self,
        threshold: int = NUTRIFLOW_CONFIG["circuit_threshold"],
        cooldown_seconds: float = NUTRIFLOW_CONFIG["circuit_cooldown_s"],
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = threshold
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.failures = 0
        self.last_failure = 0.0

    def is_open(self) -> bool:
        return (
            self.failures >= self.threshold
            and (self._clock() - self.last_failure) < self.cooldown_seconds
        )

    def record_success(self) -> None:
        self.failures = 0

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure = self._clock()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "failures": self.failures,
            "last_failure": self.last_failure,
            "open": self.is_open(),
        }


# =============================================================================
# SESSION CONTEXT
# =============================================================================
class SessionContext:
    """Owns the food cache, the plan cache and the circuit breaker."""

    def __init__(
        self,
        cache_size: int = NUTRIFLOW_CONFIG["cache_size"],
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.food_cache: BoundedCache = BoundedCache(cache_size)
        self.plan_cache: BoundedCache = BoundedCache(cache_size)
        self.breaker = breaker or CircuitBreaker()

    def reset(self) -> None:
        self.food_cache.clear()
        self.plan_cache.clear()
        self.breaker.record_success()


_DEFAULT_CONTEXT: Optional[SessionContext] = None


def get_default_context() -> SessionContext:
    """Process-wide context used by the terminal app and the tool server."""
    global _DEFAULT_CONTEXT
    if _DEFAULT_CONTEXT is None:
        _DEFAULT_CONTEXT = SessionContext()
    return _DEFAULT_CONTEXT


# =============================================================================
# EXPORTS
# =============================================================================
__all__ = [
    "BoundedCache",
    "CircuitBreaker",
    "SessionContext",
    "get_default_context",
]
