"""
Position ledger: per-owner, per-symbol quantity and weighted average cost.
Buys re-weight the average cost; sells only reduce quantity.
"""

from __future__ import annotations
import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from constraint_trader.core.errors import LedgerError
from constraint_trader.core.types import Position
from constraint_trader.portfolio.repositories import PositionRepository

logger = logging.getLogger("constraint_trader.portfolio.ledger")

# Residual fractional quantity below this is treated as a closed position.
QUANTITY_EPSILON = 1e-9


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PositionLedger:
    """Applies signed trades atomically per (owner, symbol)."""

    def __init__(self, repository: PositionRepository, clock: Callable[[], datetime] = _utcnow):
        self._repo = repository
        self._clock = clock
        self._guard = threading.Lock()
        self._key_locks: Dict[Tuple[str, str], threading.Lock] = defaultdict(threading.Lock)

    def _lock_for(self, owner_id: str, symbol: str) -> threading.Lock:
        with self._guard:
            return self._key_locks[(owner_id, symbol)]

    def get_position(self, owner_id: str, symbol: str) -> Optional[Position]:
        return self._repo.get(owner_id, symbol.upper())

    def positions_for(self, owner_id: str) -> List[Position]:
        return [p for p in self._repo.all() if p.owner_id == owner_id]

    def open_symbols(self) -> Set[str]:
        """Symbols with quantity > 0 for any owner."""
        return {p.symbol for p in self._repo.all() if p.quantity > 0}

    def apply_trade(self, owner_id: str, symbol: str, signed_quantity: float, price: float) -> Position:
        """
        Apply a trade and return the updated position.
        signed_quantity > 0 is a buy, < 0 a sell. Raises LedgerError on oversell.
        """
        symbol = symbol.upper()
        if price <= 0:
            raise LedgerError(f"{symbol}: trade price must be positive, got {price}")
        with self._lock_for(owner_id, symbol):
            pos = self._repo.get(owner_id, symbol) or Position(owner_id=owner_id, symbol=symbol)
            new_qty = pos.quantity + signed_quantity
            if new_qty < -QUANTITY_EPSILON:
                raise LedgerError(
                    f"{symbol}: sell of {-signed_quantity:.6f} exceeds held quantity {pos.quantity:.6f}"
                )
            if abs(new_qty) < QUANTITY_EPSILON:
                new_qty = 0.0
                new_avg = 0.0
            elif signed_quantity > 0:
                new_avg = (pos.quantity * pos.average_cost + signed_quantity * price) / new_qty
            else:
                new_avg = pos.average_cost
            pos.quantity = new_qty
            pos.average_cost = new_avg
            pos.current_price = price
            pos.last_updated = self._clock()
            self._repo.save(pos)
        logger.debug("%s/%s qty=%.6f avg=%.4f", owner_id, symbol, new_qty, new_avg)
        return pos

    def refresh_prices(self, prices: Dict[str, float]) -> int:
        """Set current_price on every position whose symbol has a fresh quote. Returns positions updated."""
        if not prices:
            return 0
        quotes = {s.upper(): p for s, p in prices.items()}
        updated = 0
        for pos in self._repo.all():
            price = quotes.get(pos.symbol)
            if price is None:
                continue
            with self._lock_for(pos.owner_id, pos.symbol):
                current = self._repo.get(pos.owner_id, pos.symbol)
                if current is None:
                    continue
                current.current_price = price
                current.last_updated = self._clock()
                self._repo.save(current)
                updated += 1
        return updated
