"""
Rate limiting — owned by the app instance, keyed by client identity.

The limiter is injected into ``create_app``; nothing here is process-global.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from combinators import RateLimitPolicy


@runtime_checkable
class RateLimiter(Protocol):
    def allow(self, key: str) -> bool:
        """Consume one request for key. False means reject."""
        ...


class AllowAll:
    """Limiter that never rejects."""

    def allow(self, key: str) -> bool:
        return True


@dataclass(slots=True)
class _Bucket:
    tokens: float
    last_refill: float
    last_seen: float


class TokenBucketLimiter:
    """
    Non-blocking token bucket per key.

    Example:
        limiter = TokenBucketLimiter(RateLimitPolicy(max_per_second=1, burst=2))
        if not limiter.allow(client_ip):
            ...  # 429

    Note: Buckets idle longer than idle_ttl seconds are dropped on the next
    call, so memory stays bounded by the number of active clients.
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        *,
        idle_ttl: float = 180.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rate = policy.max_per_second
        self._burst = float(policy.burst if policy.burst is not None else max(1, int(policy.max_per_second)))
        self._idle_ttl = idle_ttl
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._last_sweep = clock()

    def allow(self, key: str) -> bool:
        now = self._clock()
        self._sweep(now)

        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = _Bucket(tokens=self._burst, last_refill=now, last_seen=now)
            self._buckets[key] = bucket

        elapsed = now - bucket.last_refill
        bucket.tokens = min(self._burst, bucket.tokens + elapsed * self._rate)
        bucket.last_refill = now
        bucket.last_seen = now

        if bucket.tokens >= 1.0:
            bucket.tokens -= 1.0
            return True
        return False

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self._idle_ttl:
            return
        self._last_sweep = now
        stale = [k for k, b in self._buckets.items() if now - b.last_seen > self._idle_ttl]
        for k in stale:
            del self._buckets[k]

    def __len__(self) -> int:
        return len(self._buckets)


__all__ = (
    "RateLimiter",
    "AllowAll",
    "TokenBucketLimiter",
)
