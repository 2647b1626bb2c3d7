"""Trigger decision rules shared by live evaluation and backtesting."""

from __future__ import annotations

from constraint_trader.core.types import Constraint


def pct_change(previous: float, current: float) -> float:
    return (current - previous) / previous * 100


def buy_fires(change_pct: float, constraint: Constraint) -> bool:
    """Inclusive: exactly -N% fires a -N% buy rule."""
    return change_pct <= -abs(constraint.buy_trigger_percent)


def sell_fires(change_pct: float, constraint: Constraint) -> bool:
    return change_pct >= constraint.sell_trigger_percent


def profit_fires(current: float, average_cost: float, constraint: Constraint) -> bool:
    if constraint.profit_trigger_percent is None or average_cost <= 0:
        return False
    return pct_change(average_cost, current) >= constraint.profit_trigger_percent


def buy_trigger_price(previous: float, constraint: Constraint) -> float:
    return previous * (1 - abs(constraint.buy_trigger_percent) / 100)


def sell_trigger_price(previous: float, constraint: Constraint) -> float:
    return previous * (1 + constraint.sell_trigger_percent / 100)


def profit_trigger_price(average_cost: float, constraint: Constraint) -> float:
    return average_cost * (1 + constraint.profit_trigger_percent / 100)
