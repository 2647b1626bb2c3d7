"""
Exception taxonomy. Price feed errors are per-symbol and never fatal to a tick;
backtest errors are surfaced to the caller.
"""

from __future__ import annotations
from typing import Optional


class TraderError(Exception):
    """Base for all engine errors."""


class InvalidConstraintError(TraderError, ValueError):
    """Constraint values violate buy < 0 < sell or non-positive amounts."""


class PriceFeedError(TraderError):
    def __init__(self, symbol: Optional[str], message: str = ""):
        self.symbol = symbol
        super().__init__(f"{symbol}: {message}" if symbol else message)


class RateLimitError(PriceFeedError):
    pass


class InvalidSymbolError(PriceFeedError):
    pass


class PriceFeedTimeoutError(PriceFeedError):
    pass


class LockUnavailableError(TraderError):
    """Evaluation lock held by another tick or process."""


class InsufficientHistoryError(TraderError):
    pass


class InvalidDateRangeError(TraderError):
    pass


class ConstraintNotFoundError(TraderError):
    def __init__(self, constraint_id: str):
        self.constraint_id = constraint_id
        super().__init__(f"Constraint not found: {constraint_id}")


class LedgerError(TraderError):
    """Position update could not be applied."""
