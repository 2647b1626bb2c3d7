"""Constraint trader: price-trigger evaluation, simulated position ledger, and backtesting."""

__version__ = "0.1.0"
