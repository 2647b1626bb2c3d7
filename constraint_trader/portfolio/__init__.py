"""Portfolio: position ledger and storage interfaces."""

from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import (
    ConstraintRepository,
    PositionRepository,
    TradeHistorySink,
    InMemoryConstraintRepository,
    InMemoryPositionRepository,
    InMemoryTradeHistory,
)

__all__ = [
    "PositionLedger",
    "ConstraintRepository",
    "PositionRepository",
    "TradeHistorySink",
    "InMemoryConstraintRepository",
    "InMemoryPositionRepository",
    "InMemoryTradeHistory",
]
