"""NYSE session check from the exchange calendar (holidays and early closes included)."""

from __future__ import annotations
import logging
import threading
from datetime import date, datetime, timezone
from typing import Dict, Iterable, Optional, Tuple

import pandas as pd
import pandas_market_calendars as mcal
import pytz

logger = logging.getLogger("constraint_trader.market.hours")

EASTERN = pytz.timezone("America/New_York")

Session = Optional[Tuple[pd.Timestamp, pd.Timestamp]]


class NyseMarketHours:
    """
    Market-hours oracle backed by pandas_market_calendars.
    `holidays` are extra closed dates (YYYY-MM-DD, exchange time) on top of the calendar.
    """

    def __init__(self, holidays: Optional[Iterable[str]] = None, calendar_name: str = "NYSE"):
        self._holidays = {date.fromisoformat(str(d)) for d in (holidays or [])}
        self._calendar = mcal.get_calendar(calendar_name)
        self._sessions: Dict[date, Session] = {}
        self._lock = threading.Lock()

    def session(self, day: date) -> Session:
        """(open, close) as UTC timestamps, or None when the exchange is closed that day."""
        if day in self._holidays:
            return None
        with self._lock:
            if day not in self._sessions:
                schedule = self._calendar.schedule(start_date=day, end_date=day)
                if schedule.empty:
                    self._sessions[day] = None
                else:
                    row = schedule.iloc[0]
                    self._sessions[day] = (row["market_open"], row["market_close"])
            return self._sessions[day]

    def is_open(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        et = now.astimezone(EASTERN)
        session = self.session(et.date())
        if session is None:
            logger.debug("Market closed: %s is not a trading day", et.date())
            return False
        market_open, market_close = session
        return market_open <= pd.Timestamp(now) < market_close
