"""
Backtest service: validates a request, loads the constraint and its history,
runs the simulator, and compares results with a benchmark.
"""

from __future__ import annotations
import dataclasses
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from constraint_trader.analytics.metrics import volatility
from constraint_trader.backtesting.engine import BacktestSimulator
from constraint_trader.core.errors import (
    ConstraintNotFoundError,
    InsufficientHistoryError,
    InvalidDateRangeError,
    TraderError,
)
from constraint_trader.core.types import BacktestResult, MarketComparison
from constraint_trader.market.base import PriceFeed
from constraint_trader.portfolio.repositories import ConstraintRepository

logger = logging.getLogger("constraint_trader.backtest.service")


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


class BacktestService:
    """Concurrent requests are independent; history fetches are bounded by a semaphore."""

    def __init__(
        self,
        constraints: ConstraintRepository,
        price_feed: PriceFeed,
        simulator: Optional[BacktestSimulator] = None,
        max_concurrent: int = 2,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.constraints = constraints
        self.price_feed = price_feed
        self.simulator = simulator or BacktestSimulator()
        self._slots = threading.BoundedSemaphore(max(1, max_concurrent))
        self._clock = clock

    def _fetch_history(self, symbol: str, start: datetime, end: datetime):
        with self._slots:
            return self.price_feed.get_historical_data(symbol, start, end)

    def run_backtest(
        self,
        constraint_id: str,
        start_date: datetime,
        end_date: datetime,
        initial_capital: float = 10000.0,
        owner_id: Optional[str] = None,
    ) -> BacktestResult:
        """Raises InvalidDateRangeError, ConstraintNotFoundError, InsufficientHistoryError."""
        start, end = _aware(start_date), _aware(end_date)
        if start >= end:
            raise InvalidDateRangeError("start date must be before end date")
        if end > self._clock():
            raise InvalidDateRangeError("end date cannot be in the future")
        if initial_capital <= 0:
            raise ValueError(f"initial capital must be positive, got {initial_capital}")

        constraint = self.constraints.get_constraint(constraint_id)
        if constraint is None or (owner_id is not None and constraint.owner_id != owner_id):
            raise ConstraintNotFoundError(constraint_id)

        history = self._fetch_history(constraint.symbol, start, end)
        if len(history) < 2:
            raise InsufficientHistoryError(f"{constraint.symbol}: insufficient historical data for backtesting")
        result = self.simulator.run(constraint, history, initial_capital)
        return dataclasses.replace(result, start_date=start, end_date=end)

    def run_multiple_backtests(
        self,
        owner_id: str,
        start_date: datetime,
        end_date: datetime,
        initial_capital: float = 10000.0,
    ) -> List[BacktestResult]:
        """Backtest every constraint of owner_id. Failing constraints are logged and skipped."""
        results = []
        for c in self.constraints.get_owner_constraints(owner_id):
            try:
                results.append(self.run_backtest(c.id, start_date, end_date, initial_capital, owner_id))
            except TraderError as e:
                logger.warning("Backtest of %s skipped: %s", c.id, e)
        return results

    def compare_to_market(self, result: BacktestResult, benchmark_symbol: str = "SPY") -> MarketComparison:
        """Benchmark return over the same dates, outperformance, and volatilities (percent)."""
        bench = self._fetch_history(benchmark_symbol, result.start_date, result.end_date)
        if len(bench) < 2:
            raise InsufficientHistoryError(f"{benchmark_symbol}: insufficient benchmark data")
        closes = bench["price"].astype(float).tolist()
        market_return = (closes[-1] - closes[0]) / closes[0] * 100
        return MarketComparison(
            backtest_return=result.total_return_percent,
            market_return=market_return,
            outperformance=result.total_return_percent - market_return,
            volatility=volatility([t.price for t in result.trades]),
            market_volatility=volatility(closes),
        )
