"""Utils: Telegram notifications, schedule intervals."""

from constraint_trader.utils.telegram import send_telegram, TelegramNotifier
from constraint_trader.utils.timeframes import interval_seconds

__all__ = ["send_telegram", "TelegramNotifier", "interval_seconds"]
