"""Analytics: Sharpe, max drawdown, volatility, profitable sells."""

from constraint_trader.analytics.metrics import (
    period_returns,
    sharpe_ratio,
    max_drawdown,
    volatility,
    successful_trades,
)

__all__ = [
    "period_returns",
    "sharpe_ratio",
    "max_drawdown",
    "volatility",
    "successful_trades",
]
