# -*- coding: utf-8 -*-
# ttl_cache.py — in-memory TTL cache and fixed-window rate limiter
#
# Both live as long as a warm Lambda container does. Nothing is shared
# between containers; treat them as best-effort.

import json, math, logging, time
from typing import Any, Callable, NamedTuple

logger = logging.getLogger(__name__)


def make_key(action: str, params: dict) -> str:
    return f"{action}:{json.dumps(params, sort_keys=True, default=str)}"


class TTLCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.time):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self.clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        value, expires_at = entry
        if self.clock() >= expires_at:
            del self._entries[key]
            return default
        return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self.ttl if ttl is None else ttl
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (value, self.clock() + ttl)

    def expire(self, key: str) -> None:
        self._entries.pop(key, None)

    def cleanup(self) -> int:
        now = self.clock()
        stale = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in stale:
            del self._entries[k]
        if stale:
            logger.debug("Dropped %d expired cache entries", len(stale))
        return len(stale)

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        return len(self._entries)


class RateLimitStatus(NamedTuple):
    allowed: bool
    remaining: int
    reset_seconds: int
    limit: int


class RateLimiter:
    """Fixed window counter per key (usually the client IP)."""

    def __init__(self, limit: int = 200, window: float = 60, clock: Callable[[], float] = time.time):
        self.limit = limit
        self.window = window
        self.clock = clock
        self._buckets: dict[str, list] = {}  # key -> [count, reset_at]

    def check(self, key: str) -> RateLimitStatus:
        now = self.clock()
        bucket = self._buckets.get(key)
        if bucket is None or now >= bucket[1]:
            bucket = [0, now + self.window]
            self._buckets[key] = bucket
        bucket[0] += 1

        allowed = bucket[0] <= self.limit
        if not allowed:
            logger.warning("Rate limit exceeded for %s (%d/%d)", key, bucket[0], self.limit)
        return RateLimitStatus(
            allowed=allowed,
            remaining=max(0, self.limit - bucket[0]),
            reset_seconds=math.ceil(bucket[1] - now),
            limit=self.limit,
        )

    def cleanup(self) -> int:
        now = self.clock()
        stale = [k for k, (_, reset_at) in self._buckets.items() if now >= reset_at + self.window]
        for k in stale:
            del self._buckets[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._buckets)
