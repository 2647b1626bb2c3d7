"""Market data: price feed abstraction, Finnhub implementation, market hours."""

from constraint_trader.market.base import PriceFeed
from constraint_trader.market.finnhub import FinnhubPriceFeed
from constraint_trader.market.hours import NyseMarketHours

__all__ = ["PriceFeed", "FinnhubPriceFeed", "NyseMarketHours"]
