"""Jobs: scheduled evaluation and price refresh."""

from constraint_trader.jobs.price_monitor import PriceMonitor

__all__ = ["PriceMonitor"]
