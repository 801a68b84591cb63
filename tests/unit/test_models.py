import datetime as dt
from decimal import Decimal

import pytest

from signal_engine.core.models import Bar, SignalComponents, to_decimal


def test_bar_converts_prices_to_decimal():
    bar = Bar("BP.L", dt.date(2024, 1, 2), 0.1, "4.80", 4, Decimal("4.75"), 4.79, volume=0)
    assert bar.open == Decimal("0.1")
    assert bar.low == Decimal(4)
    assert bar.adjusted_close == Decimal("4.79")
    assert not bar.is_valid_trading_day


@pytest.mark.parametrize("field", ["open", "high", "low", "close", "adjusted_close"])
def test_bar_rejects_negative_prices(field):
    values = dict(open=1, high=1, low=1, close=1, adjusted_close=1)
    values[field] = -1
    with pytest.raises(ValueError):
        Bar("BP.L", dt.date(2024, 1, 2), volume=10, **values)


def test_bar_rejects_negative_volume():
    with pytest.raises(ValueError):
        Bar("BP.L", dt.date(2024, 1, 2), 1, 1, 1, 1, 1, volume=-1)


def test_to_decimal_avoids_binary_noise():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(3) == Decimal(3)


def test_components_breakdown():
    c = SignalComponents(20, 10, -20, 0)
    assert c.total_score == 10
    assert c.breakdown() == "Trend: 20/30, Momentum: 10/30, Value: -20/30, Bonus: 0/10 = 10/100"
