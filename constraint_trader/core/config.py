"""
Load configuration from config.yaml and .env. API keys and connection URLs only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, List, Optional

import yaml
from dotenv import load_dotenv

from constraint_trader.core.types import Constraint


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    finnhub = data.get("finnhub", {})
    scheduler = data.get("scheduler", {})
    backtest = data.get("backtest", {})
    telegram = data.get("telegram", {})
    logging_cfg = data.get("logging", {})

    return Config(
        # Market data (key from env only)
        finnhub_api_key=env("FINNHUB_API_KEY"),
        finnhub_base_url=env("FINNHUB_BASE_URL", finnhub.get("base_url", "https://finnhub.io/api/v1")),
        request_timeout=env_float("REQUEST_TIMEOUT", finnhub.get("timeout", 5.0)),
        # Shared state; empty means in-process
        redis_url=env("REDIS_URL"),
        # Scheduler
        evaluation_interval=env("EVALUATION_INTERVAL", scheduler.get("evaluation_interval", "1m")),
        price_refresh_interval=env("PRICE_REFRESH_INTERVAL", scheduler.get("price_refresh_interval", "5m")),
        lock_ttl_seconds=env_int("LOCK_TTL_SECONDS", scheduler.get("lock_ttl_seconds", 30)),
        baseline_ttl_seconds=env_int("BASELINE_TTL_SECONDS", scheduler.get("baseline_ttl_seconds", 3600)),
        price_fetch_workers=env_int("PRICE_FETCH_WORKERS", scheduler.get("price_fetch_workers", 8)),
        trigger_precedence=env("TRIGGER_PRECEDENCE", scheduler.get("trigger_precedence", "both")).lower(),
        market_holidays=list(scheduler.get("market_holidays", []) or []),
        skip_market_hours=env_bool("SKIP_MARKET_HOURS", scheduler.get("skip_market_hours", False)),
        # Backtest
        backtest_start=backtest.get("start_date"),
        backtest_end=backtest.get("end_date"),
        backtest_initial_capital=float(backtest.get("initial_capital", 10000.0)),
        benchmark_symbol=backtest.get("benchmark_symbol", "SPY"),
        max_concurrent_backtests=env_int("MAX_CONCURRENT_BACKTESTS", backtest.get("max_concurrent_backtests", 2)),
        # Telegram
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=logging_cfg.get("level", "INFO"),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "constraint_trader.log"),
        constraints=list(data.get("constraints", []) or []),
    )


def parse_constraints(raw: List[dict]) -> List[Constraint]:
    """Build Constraint objects from the config's `constraints` list."""
    constraints = []
    for i, item in enumerate(raw):
        profit = item.get("profit_trigger_percent")
        constraints.append(Constraint(
            id=str(item.get("id", f"constraint-{i + 1}")),
            owner_id=str(item.get("owner_id", "local")),
            symbol=item.get("symbol", ""),
            buy_trigger_percent=float(item["buy_trigger_percent"]),
            sell_trigger_percent=float(item["sell_trigger_percent"]),
            buy_amount=float(item["buy_amount"]),
            sell_amount=float(item["sell_amount"]),
            profit_trigger_percent=float(profit) if profit is not None else None,
            is_active=bool(item.get("is_active", True)),
        ))
    return constraints


class Config:
    """Unified configuration. Immutable after load."""

    __slots__ = (
        "finnhub_api_key", "finnhub_base_url", "request_timeout", "redis_url",
        "evaluation_interval", "price_refresh_interval", "lock_ttl_seconds", "baseline_ttl_seconds",
        "price_fetch_workers", "trigger_precedence", "market_holidays", "skip_market_hours",
        "backtest_start", "backtest_end", "backtest_initial_capital", "benchmark_symbol",
        "max_concurrent_backtests",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file",
        "constraints",
    )

    def __init__(
        self,
        finnhub_api_key: str = "",
        finnhub_base_url: str = "https://finnhub.io/api/v1",
        request_timeout: float = 5.0,
        redis_url: str = "",
        evaluation_interval: str = "1m",
        price_refresh_interval: str = "5m",
        lock_ttl_seconds: int = 30,
        baseline_ttl_seconds: int = 3600,
        price_fetch_workers: int = 8,
        trigger_precedence: str = "both",
        market_holidays: Optional[List[str]] = None,
        skip_market_hours: bool = False,
        backtest_start: Optional[str] = None,
        backtest_end: Optional[str] = None,
        backtest_initial_capital: float = 10000.0,
        benchmark_symbol: str = "SPY",
        max_concurrent_backtests: int = 2,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "constraint_trader.log",
        constraints: Optional[List[dict]] = None,
    ):
        self.finnhub_api_key = finnhub_api_key
        self.finnhub_base_url = finnhub_base_url
        self.request_timeout = request_timeout
        self.redis_url = redis_url
        self.evaluation_interval = evaluation_interval
        self.price_refresh_interval = price_refresh_interval
        self.lock_ttl_seconds = lock_ttl_seconds
        self.baseline_ttl_seconds = baseline_ttl_seconds
        self.price_fetch_workers = price_fetch_workers
        self.trigger_precedence = trigger_precedence
        self.market_holidays = market_holidays or []
        self.skip_market_hours = skip_market_hours
        self.backtest_start = backtest_start
        self.backtest_end = backtest_end
        self.backtest_initial_capital = backtest_initial_capital
        self.benchmark_symbol = benchmark_symbol
        self.max_concurrent_backtests = max_concurrent_backtests
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.constraints = constraints or []
