"""Test fakes and builders: price feed, Redis client, constraints, price series."""

from datetime import datetime, timedelta, timezone

import pandas as pd

from constraint_trader.core.errors import InvalidSymbolError
from constraint_trader.core.types import Constraint
from constraint_trader.market.base import PriceFeed


class FakePriceFeed(PriceFeed):
    """Prices from dicts; symbols in `failing` raise InvalidSymbolError."""

    def __init__(self, prices=None, history=None):
        self.prices = dict(prices or {})
        self.history = dict(history or {})
        self.failing = set()
        self.calls = []

    def get_current_price(self, symbol):
        self.calls.append(symbol)
        if symbol in self.failing or symbol not in self.prices:
            raise InvalidSymbolError(symbol, "no price data available")
        return self.prices[symbol]

    def get_historical_data(self, symbol, start, end):
        if symbol not in self.history:
            raise InvalidSymbolError(symbol, "no historical data available")
        return self.history[symbol]


class FakeRedis:
    """Subset of redis-py used by the lock and baseline store. No real expiry."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def set(self, key, value, ex=None, nx=False):
        if nx and key in self.store:
            return None
        self.store[key] = value
        self.ttls[key] = ex
        return True

    def get(self, key):
        return self.store.get(key)

    def exists(self, key):
        return 1 if key in self.store else 0

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    def eval(self, script, numkeys, key, token):
        if self.store.get(key) == token:
            return self.delete(key)
        return 0


def make_series(prices, start=datetime(2024, 1, 2, tzinfo=timezone.utc)):
    return pd.DataFrame({
        "time": [start + timedelta(days=i) for i in range(len(prices))],
        "price": [float(p) for p in prices],
    })


def make_constraint(**overrides):
    fields = dict(
        id="c1",
        owner_id="u1",
        symbol="AAPL",
        buy_trigger_percent=-5.0,
        sell_trigger_percent=10.0,
        buy_amount=1000.0,
        sell_amount=500.0,
    )
    fields.update(overrides)
    return Constraint(**fields)

