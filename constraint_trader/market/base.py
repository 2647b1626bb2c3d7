"""Abstract price feed: current quotes and historical series."""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Dict, Iterable

import pandas as pd

from constraint_trader.core.errors import PriceFeedError

logger = logging.getLogger("constraint_trader.market")

SERIES_COLUMNS = ["time", "price", "volume"]


class PriceFeed(ABC):
    """Price data provider. Errors are raised as PriceFeedError subclasses."""

    max_workers: int = 8

    @abstractmethod
    def get_current_price(self, symbol: str) -> float:
        """Latest trade price for symbol."""
        pass

    @abstractmethod
    def get_historical_data(self, symbol: str, start: datetime, end: datetime) -> pd.DataFrame:
        """Return daily series DataFrame with columns: time, price, volume (ordered by time)."""
        pass

    def get_multiple_prices(self, symbols: Iterable[str]) -> Dict[str, float]:
        """Current prices for many symbols, fetched concurrently. Failed symbols are omitted."""
        unique = sorted({s.upper() for s in symbols if s})
        prices: Dict[str, float] = {}
        if not unique:
            return prices
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(unique))) as executor:
            futures = {executor.submit(self.get_current_price, sym): sym for sym in unique}
            for future in as_completed(futures):
                sym = futures[future]
                try:
                    prices[sym] = future.result()
                except PriceFeedError as e:
                    logger.warning("Price fetch failed for %s: %s", sym, e)
        return prices

    def validate_symbol(self, symbol: str) -> bool:
        try:
            return self.get_current_price(symbol) > 0
        except PriceFeedError:
            return False
