"""
Trigger processor: turns trigger events into simulated trades, updates the
ledger, appends to trade history and notifies.
"""

from __future__ import annotations
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, List, Optional

from constraint_trader.core.types import (
    TradeReason,
    TradeRecord,
    TradeSide,
    TriggerEvent,
    TriggerKind,
)
from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import TradeHistorySink

logger = logging.getLogger("constraint_trader.triggers.processor")

REASONS = {
    TriggerKind.BUY: TradeReason.PRICE_DROP,
    TriggerKind.SELL: TradeReason.PRICE_RISE,
    TriggerKind.PROFIT: TradeReason.PROFIT_TARGET,
}


class TriggerPrecedence(str, Enum):
    """What to do when one constraint emits SELL and PROFIT in the same tick."""
    BOTH = "both"
    PROFIT = "profit"
    SELL = "sell"


def apply_precedence(events: Iterable[TriggerEvent], precedence: TriggerPrecedence) -> List[TriggerEvent]:
    events = list(events)
    if precedence == TriggerPrecedence.BOTH:
        return events
    dropped_kind = TriggerKind.SELL if precedence == TriggerPrecedence.PROFIT else TriggerKind.PROFIT
    kinds_by_constraint = {}
    for e in events:
        kinds_by_constraint.setdefault((e.constraint_id, e.symbol), set()).add(e.kind)
    kept = []
    for e in events:
        kinds = kinds_by_constraint[(e.constraint_id, e.symbol)]
        if e.kind == dropped_kind and {TriggerKind.SELL, TriggerKind.PROFIT} <= kinds:
            logger.info("%s/%s: %s dropped by %s precedence", e.constraint_id, e.symbol, e.kind.value, precedence.value)
            continue
        kept.append(e)
    return kept


class TriggerProcessor:
    """
    BUY converts the dollar amount into fractional shares and always proceeds.
    SELL / PROFIT sell at most the held quantity and are skipped with no position.
    """

    def __init__(
        self,
        ledger: PositionLedger,
        history: TradeHistorySink,
        notify: Optional[Callable[[TradeRecord], None]] = None,
        precedence: TriggerPrecedence = TriggerPrecedence.BOTH,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.ledger = ledger
        self.history = history
        self.notify = notify
        self.precedence = TriggerPrecedence(precedence)
        self._clock = clock
        self._notifier = ThreadPoolExecutor(max_workers=1, thread_name_prefix="trade-notify") if notify else None

    def process(self, event: TriggerEvent) -> Optional[TradeRecord]:
        """Execute one trigger. Returns the TradeRecord, or None if skipped."""
        if event.current_price <= 0:
            logger.warning("%s: non-positive price %.4f, skipping trigger", event.symbol, event.current_price)
            return None
        requested = event.amount / event.current_price
        if event.kind == TriggerKind.BUY:
            side = TradeSide.BUY
            quantity = requested
        else:
            side = TradeSide.SELL
            pos = self.ledger.get_position(event.owner_id, event.symbol)
            if pos is None or pos.quantity <= 0:
                logger.info("No position to sell for %s (%s), skipping trigger", event.symbol, event.owner_id)
                return None
            quantity = min(requested, pos.quantity)

        record = TradeRecord(
            owner_id=event.owner_id,
            constraint_id=event.constraint_id,
            symbol=event.symbol,
            side=side,
            reason=REASONS[event.kind],
            quantity=quantity,
            price=event.current_price,
            trigger_price=event.trigger_price,
            executed_at=self._clock(),
        )
        # Audit trail first: a trade that reaches the ledger always has a record
        self.history.append(record)
        signed = quantity if side == TradeSide.BUY else -quantity
        self.ledger.apply_trade(event.owner_id, event.symbol, signed, event.current_price)
        logger.info(
            "Processed %s trigger: %s %.4f %s @ %.2f",
            event.kind.value, side.value, quantity, event.symbol, event.current_price,
        )
        self._notify(record)
        return record

    def process_all(self, events: Iterable[TriggerEvent]) -> List[TradeRecord]:
        """Process a tick's events. A failure only abandons that one event."""
        records = []
        for event in apply_precedence(events, self.precedence):
            try:
                record = self.process(event)
            except Exception as e:
                logger.exception("Error processing %s trigger for %s: %s", event.kind.value, event.symbol, e)
                continue
            if record is not None:
                records.append(record)
        return records

    def _notify(self, record: TradeRecord) -> None:
        """Hand the record to the hook on a background thread; never blocks the tick."""
        if self._notifier is None:
            return
        future = self._notifier.submit(self.notify, record)
        future.add_done_callback(lambda f: self._notify_done(f, record))

    @staticmethod
    def _notify_done(future: Future, record: TradeRecord) -> None:
        e = future.exception()
        if e is not None:
            logger.warning("Notification failed for %s trade on %s: %s", record.side.value, record.symbol, e)

    def close(self, wait: bool = True) -> None:
        """Stop the notification thread, delivering queued notifications when wait is True."""
        if self._notifier is not None:
            self._notifier.shutdown(wait=wait)
