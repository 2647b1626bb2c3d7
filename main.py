#!/usr/bin/env python3
"""
Constraint Trader CLI: backtest | monitor | evaluate | refresh | status
Usage:
  python main.py backtest [--config config.yaml] [--start 2024-01-01] [--end 2024-06-30]
  python main.py monitor [--config config.yaml]
  python main.py evaluate [--config config.yaml]
"""

from __future__ import annotations
import argparse
import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from constraint_trader.backtesting.service import BacktestService
from constraint_trader.core.config import Config, load_config, parse_constraints
from constraint_trader.core.errors import TraderError
from constraint_trader.core.logger import setup_logging
from constraint_trader.jobs.price_monitor import PriceMonitor
from constraint_trader.market.finnhub import FinnhubPriceFeed
from constraint_trader.market.hours import NyseMarketHours
from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import (
    InMemoryConstraintRepository,
    InMemoryPositionRepository,
    InMemoryTradeHistory,
)
from constraint_trader.state import build_state
from constraint_trader.triggers.evaluator import TriggerEvaluator
from constraint_trader.triggers.processor import TriggerProcessor
from constraint_trader.utils.telegram import TelegramNotifier, send_telegram
from constraint_trader.utils.timeframes import interval_seconds

logger = logging.getLogger("constraint_trader")


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(str(value)).replace(tzinfo=timezone.utc)


def build_monitor(config: Config) -> PriceMonitor:
    """Wire evaluator, processor and scheduler from config."""
    constraints = InMemoryConstraintRepository(parse_constraints(config.constraints))
    feed = FinnhubPriceFeed(
        config.finnhub_api_key,
        base_url=config.finnhub_base_url,
        timeout=config.request_timeout,
        max_workers=config.price_fetch_workers,
    )
    lock, baselines = build_state(config.redis_url, config.lock_ttl_seconds, config.baseline_ttl_seconds)
    ledger = PositionLedger(InMemoryPositionRepository())
    evaluator = TriggerEvaluator(feed, baselines, ledger, max_workers=config.price_fetch_workers)
    processor = TriggerProcessor(
        ledger,
        InMemoryTradeHistory(),
        notify=TelegramNotifier(config.telegram_bot_token, config.telegram_chat_id),
        precedence=config.trigger_precedence,
    )
    return PriceMonitor(
        constraints=constraints,
        evaluator=evaluator,
        processor=processor,
        ledger=ledger,
        price_feed=feed,
        lock=lock,
        market_hours=None if config.skip_market_hours else NyseMarketHours(config.market_holidays),
        evaluation_interval_s=interval_seconds(config.evaluation_interval),
        price_refresh_interval_s=interval_seconds(config.price_refresh_interval),
        lock_ttl_seconds=config.lock_ttl_seconds,
    )


def run_backtest(config_path: Path | None, start: str | None, end: str | None) -> int:
    """Backtest every configured constraint and compare with the benchmark."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    if not config.finnhub_api_key:
        logger.error("Backtest needs FINNHUB_API_KEY in .env to fetch history")
        return 1
    start_date = _parse_date(start or config.backtest_start)
    end_date = _parse_date(end or config.backtest_end)
    if start_date is None or end_date is None:
        logger.error("Set backtest.start_date and backtest.end_date in config.yaml or pass --start/--end")
        return 1
    constraints = InMemoryConstraintRepository(parse_constraints(config.constraints))
    feed = FinnhubPriceFeed(config.finnhub_api_key, base_url=config.finnhub_base_url, timeout=config.request_timeout)
    service = BacktestService(constraints, feed, max_concurrent=config.max_concurrent_backtests)
    failures = 0
    for c in constraints.get_active_constraints():
        try:
            result = service.run_backtest(c.id, start_date, end_date, config.backtest_initial_capital)
            comparison = service.compare_to_market(result, config.benchmark_symbol)
        except TraderError as e:
            logger.error("Backtest %s (%s) failed: %s", c.id, c.symbol, e)
            failures += 1
            continue
        print(f"\n--- Backtest {c.id} ({c.symbol}) ---")
        print(f"Trades: {result.total_trades} (profitable sells: {result.successful_trades})")
        print(f"Total return: {result.total_return:.2f} ({result.total_return_percent:.2f}%)")
        print(f"Max drawdown: {result.max_drawdown:.2f}%")
        print(f"Sharpe ratio: {result.sharpe_ratio:.4f}")
        print(f"vs {config.benchmark_symbol}: {comparison.market_return:.2f}% "
              f"(outperformance {comparison.outperformance:.2f}%)")
        print(f"Volatility: {comparison.volatility:.2f}% (market {comparison.market_volatility:.2f}%)")
    return 1 if failures else 0


def run_monitor(config_path: Path | None) -> int:
    """Run both cadences until interrupted."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    if not config.finnhub_api_key:
        logger.error("Missing FINNHUB_API_KEY in .env")
        return 1
    monitor = build_monitor(config)
    status = monitor.get_evaluation_status()
    send_telegram(
        f"Constraint monitor starting | {status.active_constraint_count} active constraints",
        config.telegram_bot_token,
        config.telegram_chat_id,
    )
    monitor.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutdown by user")
    finally:
        monitor.stop()
        monitor.processor.close()
        send_telegram("Constraint monitor stopped.", config.telegram_bot_token, config.telegram_chat_id)
    return 0


def run_once(config_path: Path | None, mode: str) -> int:
    """Manual evaluate / refresh / status."""
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    monitor = build_monitor(config)
    if mode == "status":
        status = monitor.get_evaluation_status()
        print(json.dumps({"is_running": status.is_running, "active_constraints": status.active_constraint_count}))
        return 0
    if not config.finnhub_api_key:
        logger.error("Missing FINNHUB_API_KEY in .env")
        return 1
    if mode == "evaluate":
        records = monitor.trigger_evaluation_now()
        monitor.processor.close()
        if records is None:
            print("Evaluation skipped: another evaluation holds the lock")
            return 0
        print(f"Evaluation completed: {len(records)} trades")
        return 0
    updated = monitor.trigger_price_refresh_now()
    print(f"Price refresh completed: {updated} positions updated")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Constraint Trader CLI")
    parser.add_argument("mode", choices=["backtest", "monitor", "evaluate", "refresh", "status"])
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--start", default=None, help="Backtest start date (YYYY-MM-DD)")
    parser.add_argument("--end", default=None, help="Backtest end date (YYYY-MM-DD)")
    args = parser.parse_args()
    if args.mode == "backtest":
        return run_backtest(args.config, args.start, args.end)
    if args.mode == "monitor":
        return run_monitor(args.config)
    return run_once(args.config, args.mode)


if __name__ == "__main__":
    exit(main())
