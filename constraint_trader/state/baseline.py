"""
Price baselines: last price seen per symbol between evaluation ticks.
Entries expire after a period of inactivity (default 1 hour).
"""

from __future__ import annotations
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

DEFAULT_BASELINE_TTL = 3600


class PriceBaselineStore(ABC):

    @abstractmethod
    def get(self, symbol: str) -> Optional[float]:
        """Last recorded price, or None if unseen or expired."""
        pass

    @abstractmethod
    def set(self, symbol: str, price: float) -> None:
        """Record price and restart the inactivity TTL."""
        pass


class InMemoryPriceBaselineStore(PriceBaselineStore):

    def __init__(self, ttl_seconds: int = DEFAULT_BASELINE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, float]] = {}

    def get(self, symbol: str) -> Optional[float]:
        symbol = symbol.upper()
        with self._lock:
            entry = self._entries.get(symbol)
            if entry is None:
                return None
            price, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[symbol]
                return None
            return price

    def set(self, symbol: str, price: float) -> None:
        with self._lock:
            self._entries[symbol.upper()] = (float(price), self._clock() + self.ttl_seconds)


class RedisPriceBaselineStore(PriceBaselineStore):
    """Baselines in Redis so every process sees the same last price."""

    def __init__(self, client, ttl_seconds: int = DEFAULT_BASELINE_TTL, prefix: str = "price_baseline"):
        self._redis = client
        self.ttl_seconds = ttl_seconds
        self._prefix = prefix

    def _key(self, symbol: str) -> str:
        return f"{self._prefix}:{symbol.upper()}"

    def get(self, symbol: str) -> Optional[float]:
        raw = self._redis.get(self._key(symbol))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return float(raw)

    def set(self, symbol: str, price: float) -> None:
        self._redis.set(self._key(symbol), repr(float(price)), ex=self.ttl_seconds)
