import datetime as dt
from decimal import Decimal

import pytest

from signal_engine.core.errors import MissingDependencyData
from signal_engine.core.models import IndicatorPoint, SignalStrength, SignalType
from signal_engine.core.scoring import (
    IndicatorSummary,
    generate_signal,
    momentum_score,
    trend_score,
    value_score,
)

DAY = dt.date(2024, 6, 3)
NAMES = {"sma20": "SMA_20", "sma50": "SMA_50", "sma200": "SMA_200", "rsi": "RSI_14", "macd": "MACD_12_26_9"}


def summary(symbol="TEST", day=DAY, **values):
    points = {
        field: IndicatorPoint(symbol, day, NAMES[field], Decimal(str(v)))
        for field, v in values.items()
        if v is not None
    }
    return IndicatorSummary(symbol=symbol, **points)


def test_all_factors_aligned_is_a_strong_buy():
    s = summary(sma20=110, sma50=100, sma200=90, rsi=25, macd=12)
    signal = generate_signal("TEST", s, Decimal("112.50"))
    c = signal.components
    assert (c.trend_score, c.momentum_score, c.value_score, c.confluence_bonus) == (30, 30, 30, 10)
    assert signal.score == 100
    assert signal.signal_type is SignalType.BUY
    assert signal.strength is SignalStrength.STRONG
    assert signal.is_tradeable and signal.is_strong
    assert signal.price == Decimal("112.50")
    assert signal.reasoning == (
        "Strong uptrend (SMA20 > SMA50 > SMA200), Strong momentum (MACD histogram > 10), "
        "Oversold - good value, All signals aligned! | Score: Trend: 30/30, Momentum: 30/30, "
        "Value: 30/30, Bonus: 10/10 = 100/100"
    )


def test_overbought_rsi_forces_sell_and_total_is_not_clamped():
    s = summary(sma20=100, sma50=100, rsi=80, macd=-10)
    signal = generate_signal("TEST", s, 100)
    assert signal.components.trend_score == 10
    assert signal.components.momentum_score == 0
    assert signal.components.value_score == -20
    assert signal.score == -10
    assert signal.signal_type is SignalType.SELL
    assert signal.strength is SignalStrength.AVOID
    assert "OVERBOUGHT - caution!" in signal.reasoning
    assert signal.reasoning.endswith("= -10/100")


def test_rsi_override_fires_below_buy_threshold_only():
    # trend 30 + momentum 30 + value -20 = 40, RSI > 75
    s = summary(sma20=110, sma50=100, sma200=90, rsi="75.01", macd=11)
    assert generate_signal("TEST", s, 100).signal_type is SignalType.SELL
    s = summary(sma20=110, sma50=100, sma200=90, rsi=75, macd=11)
    assert generate_signal("TEST", s, 100).signal_type is SignalType.HOLD


def test_bearish_trend_with_low_score_is_a_sell():
    weak = summary(sma20=90, sma50=100, rsi=50, macd=-6)
    signal = generate_signal("TEST", weak, 90)
    assert signal.score == 10
    assert signal.signal_type is SignalType.SELL

    steadier = summary(sma20=90, sma50=100, rsi=50, macd=2)
    signal = generate_signal("TEST", steadier, 90)
    assert signal.score == 30
    assert signal.signal_type is SignalType.HOLD


def test_buy_threshold_is_inclusive():
    s = summary(sma20=105, sma50=100, rsi=50, macd=5)
    signal = generate_signal("TEST", s, 100)
    assert signal.score == 60
    assert signal.signal_type is SignalType.BUY
    assert signal.strength is SignalStrength.MODERATE


@pytest.mark.parametrize(
    "sma20, sma50, sma200, expected",
    [
        (110, 100, 90, 30),
        (110, 100, 105, 20),
        (110, 100, None, 20),
        ("99.5", 100, 90, 10),
        (99, 100, 90, 0),
        (100, 100, 90, 10),
    ],
)
def test_trend_score(sma20, sma50, sma200, expected):
    assert trend_score(summary(sma20=sma20, sma50=sma50, sma200=sma200)) == expected


@pytest.mark.parametrize(
    "histogram, expected",
    [("10.01", 30), (10, 20), ("0.01", 20), (0, 10), ("-4.99", 10), (-5, 0), (-20, 0)],
)
def test_momentum_score(histogram, expected):
    assert momentum_score(summary(macd=histogram)) == expected


@pytest.mark.parametrize(
    "rsi, expected",
    [("29.99", 30), (30, 20), ("39.99", 20), (40, 10), (60, 10), (65, 0), (70, 0), ("70.01", -20)],
)
def test_value_score(rsi, expected):
    assert value_score(summary(rsi=rsi)) == expected


def test_missing_inputs_raise_from_the_sub_scores_but_not_from_scoring():
    s = summary(rsi=35)
    with pytest.raises(MissingDependencyData):
        trend_score(s)
    with pytest.raises(MissingDependencyData):
        momentum_score(s)

    signal = generate_signal("TEST", s, 100)
    assert signal.components.trend_score == 0
    assert signal.components.momentum_score == 0
    assert signal.score == 20
    assert signal.signal_type is SignalType.HOLD
    assert signal.reasoning.startswith(
        "Bearish or no clear trend, Negative or weak momentum, Slightly oversold | Score:"
    )


def test_reasoning_omits_value_without_rsi():
    signal = generate_signal("TEST", summary(sma20=105, sma50=100, macd=1), 100)
    assert signal.reasoning == (
        "Uptrend (SMA20 > SMA50), Positive momentum (MACD bullish) | Score: "
        "Trend: 20/30, Momentum: 20/30, Value: 0/30, Bonus: 0/10 = 40/100"
    )
    assert signal.strength is SignalStrength.WEAK


@pytest.mark.parametrize("s", [None, IndicatorSummary(symbol="TEST")])
def test_no_data_falls_back_to_hold(s):
    signal = generate_signal("TEST", s, "42.10", as_of=DAY)
    assert signal.signal_type is SignalType.HOLD
    assert signal.strength is SignalStrength.AVOID
    assert signal.score == 0
    assert signal.reasoning == "Insufficient data"
    assert signal.date == DAY


def test_signal_date_follows_sma20():
    later = DAY + dt.timedelta(days=1)
    s = IndicatorSummary(
        symbol="TEST",
        sma20=IndicatorPoint("TEST", DAY, "SMA_20", Decimal(1)),
        rsi=IndicatorPoint("TEST", later, "RSI_14", Decimal(50)),
    )
    assert generate_signal("TEST", s, 1, as_of=later).date == DAY


def test_signal_date_without_sma20_falls_back_to_as_of():
    s = IndicatorSummary(symbol="TEST", rsi=IndicatorPoint("TEST", DAY, "RSI_14", Decimal(50)))
    later = DAY + dt.timedelta(days=7)
    assert generate_signal("TEST", s, 1, as_of=later).date == later
    assert generate_signal("TEST", s, 1).date == dt.date.today()


def test_summary_trend_signal():
    assert summary(sma20=101, sma50=100).trend_signal() == "BULLISH"
    assert summary(sma20=99, sma50=100).trend_signal() == "BEARISH"
    assert summary(sma20=100, sma50=100).trend_signal() == "NEUTRAL"
    assert summary(sma20=100).trend_signal() == "INSUFFICIENT_DATA"


@pytest.mark.parametrize(
    "score, expected",
    [(100, "STRONG"), (80, "STRONG"), (79, "MODERATE"), (60, "MODERATE"), (59, "WEAK"), (40, "WEAK"), (39, "AVOID"), (-20, "AVOID")],
)
def test_strength_tiers(score, expected):
    assert SignalStrength.from_score(score).value == expected
