"""Telegram trade notifications. Never log token or chat_id."""

from __future__ import annotations
import logging

import requests

from constraint_trader.core.types import TradeRecord

logger = logging.getLogger("constraint_trader.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success; False if not configured or on failure."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        r = requests.post(url, json={"chat_id": chat_id, "text": text}, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", e)
        return False


def format_trade(record: TradeRecord) -> str:
    return (
        f"{record.side.value} {record.quantity:.4f} {record.symbol} @ ${record.price:.2f} "
        f"({record.reason.value}, trigger ${record.trigger_price:.2f}) | owner {record.owner_id}"
    )


class TelegramNotifier:
    """Trade notification hook for TriggerProcessor."""

    def __init__(self, bot_token: str = "", chat_id: str = ""):
        self._bot_token = bot_token
        self._chat_id = chat_id

    def __call__(self, record: TradeRecord) -> None:
        send_telegram(format_trade(record), self._bot_token, self._chat_id)
