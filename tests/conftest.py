"""Shared fixtures: fake price feed, fake Redis, wired ledger/evaluator/processor."""

import pytest

from constraint_trader.portfolio.ledger import PositionLedger
from constraint_trader.portfolio.repositories import InMemoryPositionRepository, InMemoryTradeHistory
from constraint_trader.state.baseline import InMemoryPriceBaselineStore
from constraint_trader.triggers.evaluator import TriggerEvaluator
from constraint_trader.triggers.processor import TriggerProcessor

from helpers import FakePriceFeed, FakeRedis


@pytest.fixture
def feed():
    return FakePriceFeed()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def ledger():
    return PositionLedger(InMemoryPositionRepository())


@pytest.fixture
def baselines():
    return InMemoryPriceBaselineStore()


@pytest.fixture
def history():
    return InMemoryTradeHistory()


@pytest.fixture
def evaluator(feed, baselines, ledger):
    return TriggerEvaluator(feed, baselines, ledger, max_workers=4)


@pytest.fixture
def processor(ledger, history):
    return TriggerProcessor(ledger, history)
