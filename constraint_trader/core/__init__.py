"""Core: config, types, errors, logging."""

from constraint_trader.core.config import load_config, parse_constraints, Config
from constraint_trader.core.types import (
    Constraint,
    Position,
    TriggerEvent,
    TriggerKind,
    TradeRecord,
    TradeSide,
    TradeReason,
    BacktestTrade,
    BacktestResult,
)
from constraint_trader.core.logger import setup_logging

__all__ = [
    "load_config",
    "parse_constraints",
    "Config",
    "Constraint",
    "Position",
    "TriggerEvent",
    "TriggerKind",
    "TradeRecord",
    "TradeSide",
    "TradeReason",
    "BacktestTrade",
    "BacktestResult",
    "setup_logging",
]
