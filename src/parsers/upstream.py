"""Shared upstream protection: response cache, circuit breaker and rate limiter.

One UpstreamGuard per process, injected into every API client. Entries are
independent per key, so concurrent requests only race on cache hit/miss
(last writer wins).
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger

from src.parsers.exceptions import CircuitOpenError

T = TypeVar("T")


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


@dataclass
class _CircuitState:
    failures: int = 0
    open_until: float = 0.0


class UpstreamGuard:
    """TTL response cache keyed by request + per-endpoint failure circuit."""

    def __init__(
        self,
        *,
        cache_ttl_sec: float = 15.0,
        failure_threshold: int = 3,
        cooldown_sec: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache_ttl = cache_ttl_sec
        self._failure_threshold = failure_threshold
        self._cooldown = cooldown_sec
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}
        self._circuits: dict[str, _CircuitState] = {}

    @classmethod
    def from_settings(cls, settings: Any) -> "UpstreamGuard":
        return cls(
            cache_ttl_sec=settings.http_cache_ttl_sec,
            failure_threshold=settings.http_cb_failure_threshold,
            cooldown_sec=settings.http_cb_cooldown_sec,
        )

    def init(self) -> None:
        """Start with empty cache and closed circuits."""
        self._cache = {}
        self._circuits = {}

    def clear(self) -> None:
        self._cache.clear()
        self._circuits.clear()

    def is_open(self, endpoint: str) -> bool:
        state = self._circuits.get(endpoint)
        return state is not None and state.open_until > self._clock()

    def cached(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._cache.pop(key, None)
            return None
        return entry.value

    def record_success(self, endpoint: str, key: str | None, value: Any) -> None:
        self._circuits[endpoint] = _CircuitState()
        if key is not None:
            self._cache[key] = _CacheEntry(value=value, expires_at=self._clock() + self._cache_ttl)

    def record_failure(self, endpoint: str) -> None:
        state = self._circuits.setdefault(endpoint, _CircuitState())
        state.failures += 1
        if state.failures >= self._failure_threshold:
            state.open_until = self._clock() + self._cooldown
            logger.warning(
                f"[UPSTREAM] Circuit open for {endpoint} "
                f"({state.failures} consecutive failures, cooldown {self._cooldown:.0f}s)"
            )

    async def call(
        self,
        endpoint: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        cache_key: str | None = None,
    ) -> T:
        """Run fetch() behind the circuit for `endpoint`, caching under `cache_key`.

        Raises CircuitOpenError immediately while the endpoint's circuit is open.
        Any exception from fetch() counts as a failure and is re-raised.
        """
        if self.is_open(endpoint):
            raise CircuitOpenError(f"Circuit open for {endpoint}")

        if cache_key is not None:
            hit = self.cached(cache_key)
            if hit is not None:
                return hit

        try:
            value = await fetch()
        except Exception:
            self.record_failure(endpoint)
            raise

        self.record_success(endpoint, cache_key, value)
        return value


class RateLimiter:
    """Minimum-interval limiter for a single async HTTP client."""

    def __init__(self, max_rps: float) -> None:
        self._min_interval = 1.0 / max_rps if max_rps > 0 else 0.0
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        if self._min_interval <= 0:
            return
        async with self._lock:
            wait = self._min_interval - (time.monotonic() - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = time.monotonic()
