"""
Finnhub price feed with retry and rate-limit handling.
"""

from __future__ import annotations
import logging
import time
from datetime import datetime
from functools import wraps

import pandas as pd
import requests

from constraint_trader.core.errors import (
    InvalidSymbolError,
    PriceFeedError,
    PriceFeedTimeoutError,
    RateLimitError,
)
from constraint_trader.market.base import PriceFeed, SERIES_COLUMNS

logger = logging.getLogger("constraint_trader.market.finnhub")


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry on RateLimitError with exponential backoff."""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except RateLimitError:
                    if attempt >= max_retries - 1:
                        raise
                    delay = base_delay * (2 ** attempt)
                    logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                    time.sleep(delay)
        return wrapped
    return decorator


class FinnhubPriceFeed(PriceFeed):
    """Quotes from /quote, daily closes from /stock/candle."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 5.0,
        max_workers: int = 8,
        session: requests.Session = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self.max_workers = max_workers

    def _get(self, path: str, symbol: str, params: dict, timeout: float) -> dict:
        query = dict(params, symbol=symbol, token=self._api_key)
        try:
            r = self._session.get(f"{self._base_url}{path}", params=query, timeout=timeout)
        except requests.Timeout as e:
            raise PriceFeedTimeoutError(symbol, "request timed out") from e
        except requests.RequestException as e:
            raise PriceFeedError(symbol, f"request failed: {e}") from e
        if r.status_code == 429:
            raise RateLimitError(symbol, "rate limit exceeded")
        if r.status_code == 401:
            raise PriceFeedError(symbol, "invalid API key")
        if r.status_code != 200:
            raise PriceFeedError(symbol, f"HTTP {r.status_code}")
        try:
            body = r.json()
        except ValueError as e:
            raise PriceFeedError(symbol, "response is not JSON") from e
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise PriceFeedError(symbol, f"unexpected response type {type(body).__name__}")
        return body

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_current_price(self, symbol: str) -> float:
        if not symbol:
            raise InvalidSymbolError(symbol, "stock symbol is required")
        symbol = symbol.upper()
        quote = self._get("/quote", symbol, {}, self._timeout)
        price = quote.get("c")
        if not price:
            raise InvalidSymbolError(symbol, "no price data available")
        try:
            return float(price)
        except (TypeError, ValueError) as e:
            raise PriceFeedError(symbol, f"malformed price {price!r}") from e

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def get_historical_data(self, symbol: str, start: datetime, end: datetime) -> pd.DataFrame:
        symbol = symbol.upper()
        candle = self._get(
            "/stock/candle",
            symbol,
            {"resolution": "D", "from": int(start.timestamp()), "to": int(end.timestamp())},
            self._timeout * 2,
        )
        if candle.get("s") != "ok" or not candle.get("c"):
            raise InvalidSymbolError(symbol, "no historical data available")
        try:
            df = pd.DataFrame({
                "time": pd.to_datetime(candle["t"], unit="s", utc=True),
                "price": pd.Series(candle["c"], dtype=float),
                "volume": pd.Series(candle.get("v") or [0.0] * len(candle["c"]), dtype=float),
            })
        except (KeyError, TypeError, ValueError) as e:
            raise PriceFeedError(symbol, f"malformed candle data: {e}") from e
        return df[SERIES_COLUMNS].sort_values("time").reset_index(drop=True)
