"""
Trigger evaluator: compares each symbol's current price with its stored baseline
and emits BUY / SELL / PROFIT events for the active constraints on that symbol.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from constraint_trader.core.errors import PriceFeedError
from constraint_trader.core.types import Constraint, TriggerEvent, TriggerKind
from constraint_trader.market.base import PriceFeed
from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.state.baseline import PriceBaselineStore
from constraint_trader.triggers import rules

logger = logging.getLogger("constraint_trader.triggers.evaluator")


def group_by_symbol(constraints: Iterable[Constraint]) -> Dict[str, List[Constraint]]:
    """Group constraints by symbol. Constraints without a symbol are skipped."""
    groups: Dict[str, List[Constraint]] = defaultdict(list)
    for c in constraints:
        if not c.symbol:
            logger.warning("Constraint %s has no symbol, skipping", c.id)
            continue
        groups[c.symbol].append(c)
    return dict(groups)


class TriggerEvaluator:
    """
    One evaluation pass. A symbol seen for the first time only records a baseline
    (no events), so a restart never fires on a stale comparison.
    """

    def __init__(
        self,
        price_feed: PriceFeed,
        baselines: PriceBaselineStore,
        ledger: PositionLedger,
        max_workers: int = 8,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.price_feed = price_feed
        self.baselines = baselines
        self.ledger = ledger
        self.max_workers = max_workers
        self._clock = clock

    def evaluate(self, active_constraints: Iterable[Constraint]) -> List[TriggerEvent]:
        groups = group_by_symbol(active_constraints)
        if not groups:
            logger.info("No active constraints")
            return []
        prices = self._fetch_prices(sorted(groups))
        events: List[TriggerEvent] = []
        for symbol in sorted(groups):
            current = prices.get(symbol)
            if current is None:
                continue
            events.extend(self._evaluate_symbol(symbol, current, groups[symbol]))
        logger.info("Evaluated %d symbols, %d triggers", len(groups), len(events))
        return events

    def _fetch_prices(self, symbols: List[str]) -> Dict[str, Optional[float]]:
        """Fetch current prices concurrently; a failing symbol maps to None."""

        def fetch(symbol: str) -> Optional[float]:
            try:
                return self.price_feed.get_current_price(symbol)
            except PriceFeedError as e:
                logger.warning("Skipping %s this tick: %s", symbol, e)
                return None

        workers = max(1, min(self.max_workers, len(symbols)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return dict(zip(symbols, executor.map(fetch, symbols)))

    def _evaluate_symbol(self, symbol: str, current: float, constraints: List[Constraint]) -> List[TriggerEvent]:
        previous = self.baselines.get(symbol)
        self.baselines.set(symbol, current)
        if previous is None or previous <= 0:
            logger.info("%s: baseline recorded at %.4f", symbol, current)
            return []
        change = rules.pct_change(previous, current)
        logger.debug("%s: %.4f -> %.4f (%.2f%%)", symbol, previous, current, change)
        now = self._clock()
        events: List[TriggerEvent] = []
        for c in constraints:
            events.extend(self._evaluate_constraint(c, previous, current, change, now))
        return events

    def _evaluate_constraint(
        self,
        c: Constraint,
        previous: float,
        current: float,
        change: float,
        now: datetime,
    ) -> List[TriggerEvent]:
        events = []

        def emit(kind: TriggerKind, trigger_price: float, amount: float) -> None:
            events.append(TriggerEvent(
                constraint_id=c.id,
                owner_id=c.owner_id,
                symbol=c.symbol,
                kind=kind,
                current_price=current,
                trigger_price=trigger_price,
                amount=amount,
                timestamp=now,
            ))

        if rules.buy_fires(change, c):
            emit(TriggerKind.BUY, rules.buy_trigger_price(previous, c), c.buy_amount)
        if rules.sell_fires(change, c):
            emit(TriggerKind.SELL, rules.sell_trigger_price(previous, c), c.sell_amount)
        if c.profit_trigger_percent is not None:
            pos = self.ledger.get_position(c.owner_id, c.symbol)
            if pos and pos.quantity > 0 and rules.profit_fires(current, pos.average_cost, c):
                emit(TriggerKind.PROFIT, rules.profit_trigger_price(pos.average_cost, c), c.sell_amount)
        return events
