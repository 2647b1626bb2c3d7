"""Unit tests for utils.telegram."""

from datetime import datetime, timezone

import requests
from constraint_trader.core.types import TradeReason, TradeRecord, TradeSide
from constraint_trader.utils import telegram


class Response:
    def __init__(self, status_code):
        self.status_code = status_code
        self.text = "error"


def record():
    return TradeRecord(
        owner_id="u1",
        constraint_id="c1",
        symbol="AAPL",
        side=TradeSide.BUY,
        quantity=2.5,
        price=180.0,
        trigger_price=182.0,
        reason=TradeReason.PRICE_DROP,
        executed_at=datetime(2024, 3, 5, 15, 0, tzinfo=timezone.utc),
    )


def test_not_configured_sends_nothing(monkeypatch):
    calls = []
    monkeypatch.setattr(telegram.requests, "post", lambda *a, **kw: calls.append(a))
    assert telegram.send_telegram("hi") is False
    assert calls == []


def test_send_and_failure(monkeypatch):
    sent = []

    def post(url, json=None, timeout=None):
        sent.append(json)
        return Response(200 if json["text"] == "ok" else 500)

    monkeypatch.setattr(telegram.requests, "post", post)
    assert telegram.send_telegram("ok", "token", "chat") is True
    assert telegram.send_telegram("bad", "token", "chat") is False
    assert sent[0] == {"chat_id": "chat", "text": "ok"}


def test_network_error_is_reported_not_raised(monkeypatch):
    def post(*args, **kwargs):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(telegram.requests, "post", post)
    assert telegram.send_telegram("ok", "token", "chat") is False


def test_notifier_formats_trade(monkeypatch):
    texts = []
    monkeypatch.setattr(telegram, "send_telegram", lambda text, token, chat: texts.append(text))
    telegram.TelegramNotifier("token", "chat")(record())
    assert texts == ["BUY 2.5000 AAPL @ $180.00 (PRICE_DROP, trigger $182.00) | owner u1"]
