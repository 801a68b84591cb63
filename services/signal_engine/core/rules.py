"""
Derived, non-persisted readings of indicator series.

The crossover functions return an int8 Series indexed like the input with
+1 for a bullish transition, -1 for a bearish one and 0 otherwise.
Comparisons run on a float view of the Decimal values; only the sign and
ordering matter here, and both survive the conversion.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

import numpy as np
import pandas as pd

OVERBOUGHT = "OVERBOUGHT"
OVERSOLD = "OVERSOLD"
NEUTRAL = "NEUTRAL"

RSI_OVERBOUGHT = Decimal(70)
RSI_OVERSOLD = Decimal(30)


def _as_float(series: pd.Series) -> pd.Series:
    return series.astype("float64")


def _cross_up(series1: pd.Series, series2: Union[pd.Series, float]) -> pd.Series:
    """Return True where series1 moves from below series2 to at or above it."""
    prev2 = series2.shift(1) if isinstance(series2, pd.Series) else series2
    return (series1.shift(1) < prev2) & (series1 >= series2)


def _cross_down(series1: pd.Series, series2: Union[pd.Series, float]) -> pd.Series:
    """Return True where series1 moves from above series2 to at or below it."""
    prev2 = series2.shift(1) if isinstance(series2, pd.Series) else series2
    return (series1.shift(1) > prev2) & (series1 <= series2)


def _signal_from(up: pd.Series, down: pd.Series, index: pd.Index) -> pd.Series:
    s = pd.Series(0, index=index, dtype=np.int8)
    s[up.to_numpy()] = 1
    s[down.to_numpy()] = -1
    return s


def macd_cross_signal(histogram: pd.Series) -> pd.Series:
    """
    +1 where the MACD histogram goes from negative to non-negative between
    two consecutive points (bullish crossover), -1 where it goes from
    positive to non-positive (bearish crossover).  Neutral otherwise.
    """
    hist = _as_float(histogram)
    return _signal_from(_cross_up(hist, 0.0), _cross_down(hist, 0.0), histogram.index)


def sma_crossover_signal(fast: pd.Series, slow: pd.Series) -> pd.Series:
    """
    +1 when the fast average crosses above the slow one (golden cross) and
    -1 when it crosses below (death cross).  The two series are joined on
    date first, so they may start on different dates.
    """
    aligned = pd.concat({"fast": fast, "slow": slow}, axis=1, join="inner").sort_index()
    f = _as_float(aligned["fast"])
    s = _as_float(aligned["slow"])
    return _signal_from(_cross_up(f, s), _cross_down(f, s), aligned.index)


def interpret_rsi(rsi: Optional[Decimal]) -> str:
    """RSI > 70 is overbought, RSI < 30 oversold, anything else neutral."""
    if rsi is None:
        return "INSUFFICIENT_DATA"
    if rsi > RSI_OVERBOUGHT:
        return OVERBOUGHT
    if rsi < RSI_OVERSOLD:
        return OVERSOLD
    return NEUTRAL
