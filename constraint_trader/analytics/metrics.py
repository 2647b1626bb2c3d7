"""
Performance statistics: period returns, Sharpe ratio, max drawdown, volatility,
and profitable-sell counting over a backtest trade log.
"""

from __future__ import annotations
from typing import Iterable, List, Sequence

import numpy as np

from constraint_trader.core.types import BacktestTrade, TradeSide

TRADING_DAYS = 252
RISK_FREE_RATE = 0.02


def period_returns(values: Sequence[float]) -> List[float]:
    """Simple returns between consecutive values (e.g. equity curve or closes)."""
    if len(values) < 2:
        return []
    arr = np.asarray(values, dtype=float)
    return (np.diff(arr) / arr[:-1]).tolist()


def sharpe_ratio(equity_curve: Sequence[float], risk_free_rate: float = RISK_FREE_RATE,
                 periods_per_year: float = TRADING_DAYS) -> float:
    """Daily (not annualized) Sharpe of the equity curve. 0 when undefined."""
    returns = period_returns(equity_curve)
    if len(returns) < 2:
        return 0.0
    arr = np.array(returns)
    std = arr.std()
    if std <= 1e-12:
        return 0.0
    return float((arr.mean() - risk_free_rate / periods_per_year) / std)


def max_drawdown(equity_curve: Iterable[float], initial_capital: float) -> float:
    """Largest peak-to-trough decline in percent (0..100). Peak starts at initial_capital."""
    values = list(equity_curve)
    if not values or initial_capital <= 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    peak = np.maximum.accumulate(np.concatenate(([initial_capital], arr)))[1:]
    dd = (peak - arr) / peak
    return float(min(max(dd.max(), 0.0), 1.0)) * 100.0


def volatility(prices: Sequence[float]) -> float:
    """Population std of consecutive returns, in percent."""
    returns = period_returns(prices)
    if not returns:
        return 0.0
    return float(np.std(returns)) * 100.0


def successful_trades(trades: Iterable[BacktestTrade]) -> int:
    """
    Count SELL trades priced above the running average cost.
    Average cost is buy-weighted and reduced proportionally on each sell.
    """
    count = 0
    position = 0.0
    total_cost = 0.0
    avg_cost = 0.0
    for t in trades:
        if t.side == TradeSide.BUY:
            total_cost += t.price * t.quantity
            position += t.quantity
            avg_cost = total_cost / position if position > 0 else 0.0
        elif position > 0:
            if t.price > avg_cost:
                count += 1
            total_cost -= t.quantity * avg_cost
            position -= t.quantity
            if position <= 0:
                position = total_cost = avg_cost = 0.0
            else:
                avg_cost = total_cost / position
    return count
