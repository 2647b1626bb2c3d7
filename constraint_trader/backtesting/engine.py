"""
Backtest simulator: replays a constraint's trigger rules over a historical price
series in one forward pass. Whole shares only, no fees or slippage.
"""

from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import List, Tuple

import pandas as pd

from constraint_trader.analytics.metrics import max_drawdown, sharpe_ratio, successful_trades
from constraint_trader.core.errors import InsufficientHistoryError
from constraint_trader.core.types import (
    BacktestResult,
    BacktestTrade,
    Constraint,
    TradeReason,
    TradeSide,
)
from constraint_trader.triggers import rules

logger = logging.getLogger("constraint_trader.backtest")


def _series(df: pd.DataFrame) -> List[Tuple[datetime, float]]:
    """(time, price) pairs from a series DataFrame; accepts a `close` column in place of `price`."""
    price_col = "price" if "price" in df.columns else "close"
    return [
        (pd.Timestamp(t).to_pydatetime(), float(p))
        for t, p in zip(df["time"], df[price_col])
    ]


class BacktestSimulator:
    """Stateless between runs; all accumulators live inside run()."""

    def run(self, constraint: Constraint, price_series: pd.DataFrame, initial_capital: float = 10000.0) -> BacktestResult:
        """
        Run on a DataFrame with columns time, price (ordered by time).
        Raises InsufficientHistoryError with fewer than 2 points.
        """
        points = _series(price_series)
        if len(points) < 2:
            raise InsufficientHistoryError(f"{constraint.symbol}: need at least 2 price points, got {len(points)}")

        cash = initial_capital
        shares = 0
        trades: List[BacktestTrade] = []
        equity_curve: List[float] = []
        # Running totals over every BUY so far; never reduced by sells
        bought_cost = 0.0
        bought_shares = 0
        previous = points[0][1]

        for when, price in points[1:]:
            change = rules.pct_change(previous, price)

            if rules.buy_fires(change, constraint) and cash >= constraint.buy_amount:
                qty = math.floor(constraint.buy_amount / price)
                cost = qty * price
                if qty > 0 and cost <= cash:
                    cash -= cost
                    shares += qty
                    bought_cost += price * qty
                    bought_shares += qty
                    trades.append(BacktestTrade(when, TradeSide.BUY, price, qty, TradeReason.PRICE_DROP))

            if rules.sell_fires(change, constraint) and shares > 0:
                qty = min(math.floor(constraint.sell_amount / price), shares)
                if qty > 0:
                    cash += qty * price
                    shares -= qty
                    trades.append(BacktestTrade(when, TradeSide.SELL, price, qty, TradeReason.PRICE_RISE))

            if constraint.profit_trigger_percent is not None and shares > 0 and bought_shares > 0:
                avg_cost = bought_cost / bought_shares
                if rules.profit_fires(price, avg_cost, constraint):
                    cash += shares * price
                    trades.append(BacktestTrade(when, TradeSide.SELL, price, shares, TradeReason.PROFIT_TARGET))
                    shares = 0

            equity_curve.append(cash + shares * price)
            previous = price

        final_value = cash + shares * points[-1][1]
        total_return = final_value - initial_capital
        result = BacktestResult(
            constraint_id=constraint.id,
            start_date=points[0][0],
            end_date=points[-1][0],
            total_trades=len(trades),
            successful_trades=successful_trades(trades),
            total_return=total_return,
            total_return_percent=total_return / initial_capital * 100,
            max_drawdown=max_drawdown(equity_curve, initial_capital),
            sharpe_ratio=sharpe_ratio(equity_curve),
            trades=trades,
            equity_curve=equity_curve,
        )
        logger.info(
            "Backtest %s on %s: %d trades, return %.2f (%.2f%%)",
            constraint.id, constraint.symbol, result.total_trades, total_return, result.total_return_percent,
        )
        return result
