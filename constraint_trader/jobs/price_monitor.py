"""
Price monitor: runs constraint evaluation and position price refresh on two
independent cadences during market hours, plus manual on-demand triggers.
"""

from __future__ import annotations
import logging
import threading
from typing import Callable, List, Optional

from constraint_trader.core.errors import LockUnavailableError
from constraint_trader.core.types import EvaluationStatus, TradeRecord
from constraint_trader.market.base import PriceFeed
from constraint_trader.market.hours import NyseMarketHours
from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import ConstraintRepository
from constraint_trader.state.lock import EvaluationLock
from constraint_trader.triggers.evaluator import TriggerEvaluator
from constraint_trader.triggers.processor import TriggerProcessor

logger = logging.getLogger("constraint_trader.jobs.price_monitor")


class PriceMonitor:
    """
    Cadence (a): lock -> evaluate -> process -> release. A busy lock drops the
    tick; the advancing baseline picks up the missed move on the next one.
    Cadence (b): bulk refresh of current_price on open positions, no lock.
    market_hours=None treats the market as always open.
    """

    def __init__(
        self,
        constraints: ConstraintRepository,
        evaluator: TriggerEvaluator,
        processor: TriggerProcessor,
        ledger: PositionLedger,
        price_feed: PriceFeed,
        lock: EvaluationLock,
        market_hours: Optional[NyseMarketHours] = None,
        evaluation_interval_s: float = 60,
        price_refresh_interval_s: float = 300,
        lock_ttl_seconds: Optional[int] = None,
    ):
        self.constraints = constraints
        self.evaluator = evaluator
        self.processor = processor
        self.ledger = ledger
        self.price_feed = price_feed
        self.lock = lock
        self.market_hours = market_hours
        self.evaluation_interval_s = evaluation_interval_s
        self.price_refresh_interval_s = price_refresh_interval_s
        self.lock_ttl_seconds = lock_ttl_seconds
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    def _market_open(self) -> bool:
        return self.market_hours is None or self.market_hours.is_open()

    def run_evaluation_tick(self, force: bool = False) -> Optional[List[TradeRecord]]:
        """One evaluation pass. Returns executed trades, or None if the tick was skipped."""
        if not force and not self._market_open():
            logger.debug("Market is closed, skipping constraint evaluation")
            return None
        try:
            with self.lock.hold(self.lock_ttl_seconds):
                events = self.evaluator.evaluate(self.constraints.get_active_constraints())
                records = self.processor.process_all(events) if events else []
        except LockUnavailableError:
            logger.info("Evaluation already running, tick dropped")
            return None
        if records:
            logger.info("Executed %d of %d triggers", len(records), len(events))
        return records

    def run_price_refresh(self, force: bool = False) -> int:
        """Refresh current_price on every open position. Returns positions updated."""
        if not force and not self._market_open():
            logger.debug("Market is closed, skipping price updates")
            return 0
        symbols = self.ledger.open_symbols()
        if not symbols:
            return 0
        prices = self.price_feed.get_multiple_prices(symbols)
        updated = self.ledger.refresh_prices(prices)
        logger.info("Updated prices for %d symbols (%d positions)", len(prices), updated)
        return updated

    def trigger_evaluation_now(self) -> Optional[List[TradeRecord]]:
        """Manual evaluation: ignores schedule and market hours, still respects the lock."""
        logger.info("Manually triggering constraint evaluation")
        return self.run_evaluation_tick(force=True)

    def trigger_price_refresh_now(self) -> int:
        logger.info("Manually triggering price update")
        return self.run_price_refresh(force=True)

    def get_evaluation_status(self) -> EvaluationStatus:
        return EvaluationStatus(
            is_running=self.lock.is_held(),
            active_constraint_count=len(self.constraints.get_active_constraints()),
        )

    def _loop(self, interval_s: float, tick: Callable[[], object]) -> None:
        while not self._stop.wait(interval_s):
            try:
                tick()
            except Exception as e:
                logger.exception("Scheduled job error: %s", e)

    @property
    def is_started(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self.is_started:
            return
        self._stop.clear()
        self._threads = [
            threading.Thread(
                target=self._loop, args=(self.evaluation_interval_s, self.run_evaluation_tick),
                name="constraint-evaluation", daemon=True,
            ),
            threading.Thread(
                target=self._loop, args=(self.price_refresh_interval_s, self.run_price_refresh),
                name="price-refresh", daemon=True,
            ),
        ]
        for t in self._threads:
            t.start()
        logger.info(
            "Price monitoring started: evaluation every %ss, price refresh every %ss",
            self.evaluation_interval_s, self.price_refresh_interval_s,
        )

    def stop(self, timeout: float = 10.0) -> None:
        self._stop.set()
        for t in self._threads:
            t.join(timeout=timeout)
        self._threads = []
        logger.info("Price monitoring stopped")
