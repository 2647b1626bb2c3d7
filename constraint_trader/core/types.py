"""
Core data types for constraints, trigger events, positions, trades and backtests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from constraint_trader.core.errors import InvalidConstraintError


class TriggerKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    PROFIT = "PROFIT"


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeReason(str, Enum):
    PRICE_DROP = "PRICE_DROP"
    PRICE_RISE = "PRICE_RISE"
    PROFIT_TARGET = "PROFIT_TARGET"


@dataclass(frozen=True)
class Constraint:
    """Per-symbol trading rule: buy on drop, sell on rise, optional profit target."""
    id: str
    owner_id: str
    symbol: str
    buy_trigger_percent: float
    sell_trigger_percent: float
    buy_amount: float
    sell_amount: float
    profit_trigger_percent: Optional[float] = None
    is_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "symbol", (self.symbol or "").strip().upper())
        if self.buy_trigger_percent >= 0:
            raise InvalidConstraintError(f"buy_trigger_percent must be negative, got {self.buy_trigger_percent}")
        if self.sell_trigger_percent <= 0:
            raise InvalidConstraintError(f"sell_trigger_percent must be positive, got {self.sell_trigger_percent}")
        if self.profit_trigger_percent is not None and self.profit_trigger_percent <= 0:
            raise InvalidConstraintError(
                f"profit_trigger_percent must be positive, got {self.profit_trigger_percent}"
            )
        if self.buy_amount <= 0 or self.sell_amount <= 0:
            raise InvalidConstraintError("buy_amount and sell_amount must be positive")


@dataclass
class Position:
    """Holding for one owner and symbol. average_cost is 0 when quantity is 0."""
    owner_id: str
    symbol: str
    quantity: float = 0.0
    average_cost: float = 0.0
    current_price: Optional[float] = None
    last_updated: Optional[datetime] = None

    @property
    def market_value(self) -> float:
        price = self.current_price if self.current_price is not None else self.average_cost
        return self.quantity * price

    @property
    def unrealized_pnl(self) -> float:
        return self.market_value - self.quantity * self.average_cost

    @property
    def unrealized_pnl_percent(self) -> float:
        cost = self.quantity * self.average_cost
        if cost <= 0:
            return 0.0
        return self.unrealized_pnl / cost * 100


@dataclass(frozen=True)
class TriggerEvent:
    """A rule condition met at a given price on one evaluation tick."""
    constraint_id: str
    owner_id: str
    symbol: str
    kind: TriggerKind
    current_price: float
    trigger_price: float
    amount: float
    timestamp: datetime


@dataclass(frozen=True)
class TradeRecord:
    """Executed (simulated) trade for the audit trail."""
    owner_id: str
    constraint_id: Optional[str]
    symbol: str
    side: TradeSide
    reason: TradeReason
    quantity: float
    price: float
    trigger_price: float
    executed_at: datetime


@dataclass(frozen=True)
class BacktestTrade:
    date: datetime
    side: TradeSide
    price: float
    quantity: int
    reason: TradeReason

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "side": self.side.value,
            "price": self.price,
            "quantity": self.quantity,
            "reason": self.reason.value,
        }


@dataclass
class BacktestResult:
    """Backtest output: trades, equity curve and summary statistics."""
    constraint_id: str
    start_date: datetime
    end_date: datetime
    total_trades: int
    successful_trades: int
    total_return: float
    total_return_percent: float
    max_drawdown: float
    sharpe_ratio: float
    trades: List[BacktestTrade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "constraint_id": self.constraint_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_trades": self.total_trades,
            "successful_trades": self.successful_trades,
            "total_return": self.total_return,
            "total_return_percent": self.total_return_percent,
            "max_drawdown": self.max_drawdown,
            "sharpe_ratio": self.sharpe_ratio,
            "trades": [t.to_dict() for t in self.trades],
            "equity_curve": list(self.equity_curve),
        }


@dataclass(frozen=True)
class MarketComparison:
    backtest_return: float
    market_return: float
    outperformance: float
    volatility: float
    market_volatility: float


@dataclass(frozen=True)
class EvaluationStatus:
    is_running: bool
    active_constraint_count: int
