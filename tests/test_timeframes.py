"""Unit tests for utils.timeframes."""

import pytest
from constraint_trader.utils.timeframes import interval_seconds


def test_interval_seconds():
    assert interval_seconds("30s") == 30
    assert interval_seconds("1m") == 60
    assert interval_seconds("5M") == 300
    assert interval_seconds("1h") == 3600
    assert interval_seconds("1d") == 86400


@pytest.mark.parametrize("bad", ["1x", "m", "0m", "-1m", ""])
def test_interval_invalid(bad):
    with pytest.raises(ValueError):
        interval_seconds(bad)
