"""Backtesting: single-pass constraint replay and backtest requests."""

from constraint_trader.backtesting.engine import BacktestSimulator
from constraint_trader.backtesting.service import BacktestService

__all__ = ["BacktestSimulator", "BacktestService"]
