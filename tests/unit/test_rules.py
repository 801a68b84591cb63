import datetime as dt
from decimal import Decimal

import pandas as pd
import pytest

from signal_engine.core.models import MACDPoint
from signal_engine.core.rules import interpret_rsi, macd_cross_signal, sma_crossover_signal


def _series(values, start=0):
    index = pd.Index([dt.date(2024, 1, 1) + dt.timedelta(days=start + i) for i in range(len(values))], dtype=object)
    return pd.Series([Decimal(str(v)) for v in values], index=index, dtype=object)


def test_macd_cross_signal_fires_only_on_sign_changes():
    hist = _series([-1, 0, 1, "-0.5", "0.5", 0])
    assert macd_cross_signal(hist).tolist() == [0, 1, 0, -1, 1, -1]


def test_macd_cross_signal_ignores_moves_that_stay_on_one_side():
    hist = _series([1, 2, "0.1", 3])
    assert macd_cross_signal(hist).tolist() == [0, 0, 0, 0]
    hist = _series([-3, -1, "-0.000001"])
    assert macd_cross_signal(hist).tolist() == [0, 0, 0]


def test_macd_point_crossovers():
    day = dt.date(2024, 1, 2)
    prev = MACDPoint(day - dt.timedelta(days=1), Decimal(0), Decimal(0), Decimal("-0.1"))
    cur = MACDPoint(day, Decimal(0), Decimal(0), Decimal(0))
    assert cur.is_bullish_crossover(prev)
    assert not cur.is_bearish_crossover(prev)
    assert not cur.is_bullish_crossover(None)

    later = MACDPoint(day, Decimal(0), Decimal(0), Decimal("0.1"))
    assert not later.is_bullish_crossover(cur)
    assert cur.is_bearish_crossover(later)


def test_sma_crossover_signal_aligns_on_date():
    fast = _series([5, 1, 2, 3, 1])
    slow = _series([2, 2, 2, 2], start=1)
    # fast's first date has no slow value and drops out
    assert sma_crossover_signal(fast, slow).tolist() == [0, 1, 0, -1]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("70.01", "OVERBOUGHT"),
        ("70", "NEUTRAL"),
        ("30", "NEUTRAL"),
        ("29.99", "OVERSOLD"),
        (None, "INSUFFICIENT_DATA"),
    ],
)
def test_interpret_rsi(value, expected):
    assert interpret_rsi(Decimal(value) if value is not None else None) == expected
