"""Unit tests for market.finnhub with a fake HTTP session."""

from datetime import datetime, timezone

import pytest
import requests
from constraint_trader.core.errors import (
    InvalidSymbolError,
    PriceFeedError,
    PriceFeedTimeoutError,
    RateLimitError,
)
from constraint_trader.core.types import TriggerKind
from constraint_trader.market.finnhub import FinnhubPriceFeed
from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import InMemoryPositionRepository
from constraint_trader.state.baseline import InMemoryPriceBaselineStore
from constraint_trader.triggers.evaluator import TriggerEvaluator

from helpers import make_constraint


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr("constraint_trader.market.finnhub.time.sleep", delays.append)
    return delays


def feed_with(*responses):
    session = FakeSession(*responses)
    return FinnhubPriceFeed("key", session=session), session


def test_current_price():
    feed, session = feed_with(FakeResponse(payload={"c": 187.5, "pc": 185.0}))
    assert feed.get_current_price("aapl") == 187.5
    url, params, timeout = session.requests[0]
    assert url == "https://finnhub.io/api/v1/quote"
    assert params == {"symbol": "AAPL", "token": "key"}
    assert timeout == 5.0


def test_zero_quote_is_invalid_symbol():
    feed, _ = feed_with(FakeResponse(payload={"c": 0}))
    with pytest.raises(InvalidSymbolError):
        feed.get_current_price("NOPE")


def test_rate_limit_retries_then_succeeds(no_sleep):
    feed, session = feed_with(FakeResponse(429), FakeResponse(payload={"c": 10.0}))
    assert feed.get_current_price("AAPL") == 10.0
    assert len(session.requests) == 2
    assert no_sleep == [1.0]


def test_rate_limit_gives_up(no_sleep):
    feed, session = feed_with(FakeResponse(429))
    with pytest.raises(RateLimitError):
        feed.get_current_price("AAPL")
    assert len(session.requests) == 3
    assert no_sleep == [1.0, 2.0]


@pytest.mark.parametrize("response, error", [
    (requests.Timeout("slow"), PriceFeedTimeoutError),
    (requests.ConnectionError("down"), PriceFeedError),
    (FakeResponse(401), PriceFeedError),
    (FakeResponse(500), PriceFeedError),
])
def test_transport_errors(response, error):
    feed, _ = feed_with(response)
    with pytest.raises(error):
        feed.get_current_price("AAPL")


def test_historical_data_frame():
    payload = {"s": "ok", "t": [1704326400, 1704240000], "c": [185.0, 184.25], "v": [100, 200]}
    feed, session = feed_with(FakeResponse(payload=payload))
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    end = datetime(2024, 1, 5, tzinfo=timezone.utc)
    df = feed.get_historical_data("AAPL", start, end)

    assert list(df.columns) == ["time", "price", "volume"]
    assert df["price"].tolist() == [184.25, 185.0]
    assert df["time"].is_monotonic_increasing
    url, params, _ = session.requests[0]
    assert url.endswith("/stock/candle")
    assert params["resolution"] == "D"
    assert params["from"] == int(start.timestamp())


def test_historical_no_data():
    feed, _ = feed_with(FakeResponse(payload={"s": "no_data"}))
    with pytest.raises(InvalidSymbolError):
        feed.get_historical_data("AAPL", datetime(2024, 1, 1), datetime(2024, 1, 5))


def test_multiple_prices_omit_failures():
    class Session:
        def get(self, url, params=None, timeout=None):
            return FakeResponse(payload={"c": 0 if params["symbol"] == "BAD" else 42.0})

    feed = FinnhubPriceFeed("key", session=Session(), max_workers=2)
    assert feed.get_multiple_prices(["aapl", "BAD", "MSFT", "AAPL"]) == {"AAPL": 42.0, "MSFT": 42.0}
    assert feed.validate_symbol("AAPL")
    assert not feed.validate_symbol("BAD")


class HtmlResponse(FakeResponse):
    def json(self):
        raise ValueError("Expecting value: line 1 column 1 (char 0)")


@pytest.mark.parametrize("response", [
    HtmlResponse(),
    FakeResponse(payload=["not", "a", "dict"]),
    FakeResponse(payload={"c": "n/a"}),
])
def test_malformed_body_is_price_feed_error(response):
    feed, _ = feed_with(response)
    with pytest.raises(PriceFeedError):
        feed.get_current_price("AAPL")


def test_malformed_candle_is_price_feed_error():
    feed, _ = feed_with(FakeResponse(payload={"s": "ok", "c": [1.0, 2.0]}))
    with pytest.raises(PriceFeedError):
        feed.get_historical_data("AAPL", datetime(2024, 1, 1), datetime(2024, 1, 5))


def test_gateway_page_for_one_symbol_does_not_stop_evaluation():
    class Session:
        def get(self, url, params=None, timeout=None):
            if params["symbol"] == "AAPL":
                return HtmlResponse()
            return FakeResponse(payload={"c": 90.0})

    feed = FinnhubPriceFeed("key", session=Session())
    baselines = InMemoryPriceBaselineStore()
    baselines.set("AAPL", 100.0)
    baselines.set("MSFT", 100.0)
    evaluator = TriggerEvaluator(feed, baselines, PositionLedger(InMemoryPositionRepository()))
    events = evaluator.evaluate([make_constraint(), make_constraint(id="c2", symbol="MSFT")])
    assert [(e.symbol, e.kind) for e in events] == [("MSFT", TriggerKind.BUY)]
    assert baselines.get("AAPL") == 100.0
