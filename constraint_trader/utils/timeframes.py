"""Schedule interval strings ('30s', '1m', '5m', '1h') to seconds."""

_UNITS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def interval_seconds(interval: str) -> int:
    """Convert an interval like '1m' or '5m' to seconds."""
    tf = str(interval).strip().lower()
    unit = tf[-1:]
    if unit not in _UNITS or not tf[:-1].isdigit() or int(tf[:-1]) <= 0:
        raise ValueError(f"Unsupported interval: {interval}")
    return int(tf[:-1]) * _UNITS[unit]
