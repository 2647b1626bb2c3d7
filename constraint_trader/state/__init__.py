"""Shared evaluation state: lock and price baselines (in-memory or Redis)."""

from __future__ import annotations

import redis

from constraint_trader.state.baseline import (
    PriceBaselineStore,
    InMemoryPriceBaselineStore,
    RedisPriceBaselineStore,
)
from constraint_trader.state.lock import (
    EvaluationLock,
    InMemoryEvaluationLock,
    RedisEvaluationLock,
)


def build_state(redis_url: str = "", lock_ttl_seconds: int = 30, baseline_ttl_seconds: int = 3600):
    """Return (lock, baselines): Redis-backed when redis_url is set, else in-process."""
    if not redis_url:
        return (
            InMemoryEvaluationLock(default_lease_seconds=lock_ttl_seconds),
            InMemoryPriceBaselineStore(ttl_seconds=baseline_ttl_seconds),
        )
    client = redis.Redis.from_url(redis_url)
    return (
        RedisEvaluationLock(client, default_lease_seconds=lock_ttl_seconds),
        RedisPriceBaselineStore(client, ttl_seconds=baseline_ttl_seconds),
    )


__all__ = [
    "PriceBaselineStore",
    "InMemoryPriceBaselineStore",
    "RedisPriceBaselineStore",
    "EvaluationLock",
    "InMemoryEvaluationLock",
    "RedisEvaluationLock",
    "build_state",
]
