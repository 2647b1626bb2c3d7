"""Unit tests for core.config."""

import pytest
from constraint_trader.core.config import load_config, parse_constraints
from constraint_trader.core.errors import InvalidConstraintError

CONFIG = """
finnhub:
  timeout: 3
scheduler:
  evaluation_interval: 2m
  trigger_precedence: Profit
  market_holidays: ["2024-12-25"]
backtest:
  initial_capital: 5000
  benchmark_symbol: QQQ
constraints:
  - id: a
    owner_id: u1
    symbol: aapl
    buy_trigger_percent: -3
    sell_trigger_percent: 4
    profit_trigger_percent: 8
    buy_amount: 1000
    sell_amount: 500
"""

ENV_KEYS = [
    "FINNHUB_API_KEY", "FINNHUB_BASE_URL", "REQUEST_TIMEOUT", "REDIS_URL",
    "EVALUATION_INTERVAL", "PRICE_REFRESH_INTERVAL", "LOCK_TTL_SECONDS",
    "BASELINE_TTL_SECONDS", "PRICE_FETCH_WORKERS", "TRIGGER_PRECEDENCE",
    "SKIP_MARKET_HOURS", "MAX_CONCURRENT_BACKTESTS", "TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_load_config_from_yaml(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    cfg = load_config(path, project_root=tmp_path)

    assert cfg.request_timeout == 3.0
    assert cfg.evaluation_interval == "2m"
    assert cfg.price_refresh_interval == "5m"
    assert cfg.trigger_precedence == "profit"
    assert cfg.market_holidays == ["2024-12-25"]
    assert cfg.backtest_initial_capital == 5000.0
    assert cfg.benchmark_symbol == "QQQ"
    assert cfg.redis_url == ""
    assert cfg.lock_ttl_seconds == 30
    assert len(cfg.constraints) == 1


def test_env_overrides_yaml(tmp_path, clean_env):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    clean_env.setenv("FINNHUB_API_KEY", "secret")
    clean_env.setenv("EVALUATION_INTERVAL", "30s")
    clean_env.setenv("LOCK_TTL_SECONDS", "not-a-number")
    clean_env.setenv("SKIP_MARKET_HOURS", "yes")
    cfg = load_config(path, project_root=tmp_path)

    assert cfg.finnhub_api_key == "secret"
    assert cfg.evaluation_interval == "30s"
    assert cfg.lock_ttl_seconds == 30
    assert cfg.skip_market_hours is True


def test_missing_file_gives_defaults(tmp_path, clean_env):
    cfg = load_config(tmp_path / "absent.yaml", project_root=tmp_path)
    assert cfg.evaluation_interval == "1m"
    assert cfg.constraints == []


def test_parse_constraints():
    raw = [
        {"id": "a", "owner_id": "u1", "symbol": "aapl", "buy_trigger_percent": -3, "sell_trigger_percent": 4,
         "profit_trigger_percent": 8, "buy_amount": 1000, "sell_amount": 500},
        {"symbol": "MSFT", "buy_trigger_percent": "-2.5", "sell_trigger_percent": 3,
         "buy_amount": 750, "sell_amount": 750, "is_active": False},
    ]
    a, b = parse_constraints(raw)
    assert a.symbol == "AAPL"
    assert a.profit_trigger_percent == 8.0
    assert b.id == "constraint-2"
    assert b.owner_id == "local"
    assert b.buy_trigger_percent == -2.5
    assert b.profit_trigger_percent is None
    assert b.is_active is False


def test_parse_constraints_rejects_invalid_values():
    raw = [{"symbol": "AAPL", "buy_trigger_percent": -3, "sell_trigger_percent": 4,
            "buy_amount": -1, "sell_amount": 500}]
    with pytest.raises(InvalidConstraintError):
        parse_constraints(raw)
