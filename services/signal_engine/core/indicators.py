"""Technical indicators over date-indexed series of Decimal closes.

This module provides SMA, EMA, RSI and MACD as plain functions that take a
pandas Series of closing prices (indexed by date, object dtype holding
``Decimal``) and return a Series/DataFrame indexed by the dates for which
the indicator is defined.  Nothing is emitted before an indicator's
minimum window, so there are no NaN warm-up rows.

Rounding is ROUND_HALF_UP throughout and happens at every recurrence step,
so a stored series can be reproduced bit for bit from the same bars.

The ``Indicator`` classes wrap these functions with parameter validation,
the persisted naming convention (``SMA_20``, ``RSI_14``, ``MACD_12_26_9``)
and conversion to ``IndicatorPoint`` records.
"""

from __future__ import annotations

import abc
from decimal import Decimal
from typing import List, Sequence

import pandas as pd

from .errors import ConfigurationError, InsufficientData
from .models import (
    SIX_PLACES,
    TEN_PLACES,
    TWO_PLACES,
    Bar,
    IndicatorPoint,
    MACDPoint,
    round_half_up,
)

HUNDRED = Decimal(100)


def closes_from_bars(bars: Sequence[Bar]) -> pd.Series:
    """
    Build the close series the compute_* functions expect.  Bars must be
    in strictly ascending date order; gaps between dates are fine.
    """
    index = pd.Index([bar.date for bar in bars], dtype=object, name="date")
    close = pd.Series([bar.close for bar in bars], index=index, dtype=object, name="close")
    if not (close.index.is_unique and close.index.is_monotonic_increasing):
        raise ValueError("bars must have unique dates in ascending order")
    return close


def _require(name: str, close: pd.Series, required: int) -> None:
    if len(close) < required:
        raise InsufficientData(name, required, len(close))


def _check_window(kind: str, window: int) -> None:
    if window < 2:
        raise ConfigurationError(f"{kind} period must be at least 2, got {window}")


def _mean(values: Sequence[Decimal], places: Decimal) -> Decimal:
    return round_half_up(sum(values, Decimal(0)) / len(values), places)


def _ema_values(values: Sequence[Decimal], window: int) -> List[Decimal]:
    """
    EMA recurrence shared by ``compute_ema`` and the MACD signal line.
    The seed is the simple mean of the first ``window`` values; each later
    value is rounded to 6 places before it feeds the next step.
    """
    alpha = round_half_up(Decimal(2) / (window + 1), TEN_PLACES)
    previous = _mean(values[:window], TEN_PLACES)
    out = [previous]
    for value in values[window:]:
        previous = round_half_up(value * alpha + previous * (1 - alpha), SIX_PLACES)
        out.append(previous)
    return out


def compute_sma(close: pd.Series, window: int) -> pd.Series:
    """
    Compute the simple moving average (SMA) over the given window.
    The first value lands on the ``window``-th close.
    """
    _check_window("SMA", window)
    _require(f"SMA_{window}", close, window)
    values = close.tolist()
    out = [
        round_half_up(sum(values[i - window + 1 : i + 1], Decimal(0)) / window, SIX_PLACES)
        for i in range(window - 1, len(values))
    ]
    return pd.Series(out, index=close.index[window - 1 :], dtype=object, name=f"SMA_{window}")


def compute_ema(close: pd.Series, window: int) -> pd.Series:
    """
    Compute the exponential moving average (EMA) with smoothing factor
    ``2 / (window + 1)``, seeded by the SMA of the first ``window`` closes.
    """
    _check_window("EMA", window)
    _require(f"EMA_{window}", close, window)
    out = _ema_values(close.tolist(), window)
    return pd.Series(out, index=close.index[window - 1 :], dtype=object, name=f"EMA_{window}")


def _rsi_from_averages(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return round_half_up(HUNDRED, TWO_PLACES)
    rs = round_half_up(avg_gain / avg_loss, TEN_PLACES)
    rsi = HUNDRED - round_half_up(HUNDRED / (1 + rs), TEN_PLACES)
    return round_half_up(rsi, TWO_PLACES)


def compute_rsi(close: pd.Series, period: int = 14) -> pd.Series:
    """
    Compute the Relative Strength Index (RSI) using Wilder's smoothing.
    RSI oscillates between 0 and 100. Oversold <30, overbought >70.
    """
    _check_window("RSI", period)
    _require(f"RSI_{period}", close, period + 1)
    values = close.tolist()
    deltas = [values[i] - values[i - 1] for i in range(1, len(values))]
    gains = [d if d > 0 else Decimal(0) for d in deltas]
    losses = [Decimal(0) if d > 0 else abs(d) for d in deltas]

    avg_gain = _mean(gains[:period], TEN_PLACES)
    avg_loss = _mean(losses[:period], TEN_PLACES)
    out = [_rsi_from_averages(avg_gain, avg_loss)]
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = round_half_up((avg_gain * (period - 1) + gain) / period, TEN_PLACES)
        avg_loss = round_half_up((avg_loss * (period - 1) + loss) / period, TEN_PLACES)
        out.append(_rsi_from_averages(avg_gain, avg_loss))
    return pd.Series(out, index=close.index[period:], dtype=object, name=f"RSI_{period}")


def compute_macd(
    close: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9
) -> pd.DataFrame:
    """
    Compute the Moving Average Convergence Divergence (MACD).
    Returns a DataFrame with columns macd_line, signal_line and histogram.

    The slow EMA starts ``slow - fast`` dates after the fast one; the two
    are joined on date so the fast series' extra prefix drops out.
    """
    if fast >= slow:
        raise ConfigurationError("Fast period must be less than slow period")
    _check_window("MACD signal", signal)
    _require(f"MACD_{fast}_{slow}_{signal}", close, slow + signal)

    aligned = pd.concat(
        {"fast": compute_ema(close, fast), "slow": compute_ema(close, slow)},
        axis=1,
        join="inner",
    ).sort_index()
    macd_line = aligned["fast"] - aligned["slow"]

    signal_line = _ema_values(macd_line.tolist(), signal)
    lines = macd_line.iloc[signal - 1 :]
    histogram = [round_half_up(m - s, SIX_PLACES) for m, s in zip(lines.tolist(), signal_line)]
    return pd.DataFrame(
        {"macd_line": lines.tolist(), "signal_line": signal_line, "histogram": histogram},
        index=lines.index,
        dtype=object,
    )


class Indicator(abc.ABC):
    """Common calculate/name/minimum-window contract of every indicator."""

    name: str
    min_data_points: int

    @abc.abstractmethod
    def compute(self, close: pd.Series) -> pd.Series:
        """Return the indicator's primary value per date."""

    def calculate(self, bars: Sequence[Bar]) -> List[IndicatorPoint]:
        if len(bars) < self.min_data_points:
            raise InsufficientData(self.name, self.min_data_points, len(bars))
        symbol = bars[0].symbol
        series = self.compute(closes_from_bars(bars))
        return [IndicatorPoint(symbol, date, self.name, value) for date, value in series.items()]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class SMA(Indicator):
    def __init__(self, window: int) -> None:
        _check_window("SMA", window)
        self.window = window
        self.name = f"SMA_{window}"
        self.min_data_points = window

    def compute(self, close: pd.Series) -> pd.Series:
        return compute_sma(close, self.window)


class EMA(Indicator):
    def __init__(self, window: int) -> None:
        _check_window("EMA", window)
        self.window = window
        self.name = f"EMA_{window}"
        self.min_data_points = window

    def compute(self, close: pd.Series) -> pd.Series:
        return compute_ema(close, self.window)


class RSI(Indicator):
    def __init__(self, period: int = 14) -> None:
        _check_window("RSI", period)
        self.period = period
        self.name = f"RSI_{period}"
        # one extra bar for the first price change
        self.min_data_points = period + 1

    def compute(self, close: pd.Series) -> pd.Series:
        return compute_rsi(close, self.period)


class MACD(Indicator):
    """
    MACD line = EMA(fast) - EMA(slow), signal line = EMA(signal) of the
    MACD line, histogram = MACD line - signal line.  The histogram is the
    persisted value; the three components ride along as metadata.
    """

    def __init__(self, fast: int = 12, slow: int = 26, signal: int = 9) -> None:
        if fast >= slow:
            raise ConfigurationError("Fast period must be less than slow period")
        _check_window("MACD fast", fast)
        _check_window("MACD signal", signal)
        self.fast = fast
        self.slow = slow
        self.signal = signal
        self.name = f"MACD_{fast}_{slow}_{signal}"
        self.min_data_points = slow + signal

    def compute(self, close: pd.Series) -> pd.Series:
        return self.compute_frame(close)["histogram"]

    def compute_frame(self, close: pd.Series) -> pd.DataFrame:
        return compute_macd(close, self.fast, self.slow, self.signal)

    def calculate(self, bars: Sequence[Bar]) -> List[IndicatorPoint]:
        if len(bars) < self.min_data_points:
            raise InsufficientData(self.name, self.min_data_points, len(bars))
        symbol = bars[0].symbol
        frame = self.compute_frame(closes_from_bars(bars))
        points = []
        for date, row in frame.iterrows():
            detail = MACDPoint(
                date=date,
                macd_line=round_half_up(row["macd_line"], SIX_PLACES),
                signal_line=round_half_up(row["signal_line"], SIX_PLACES),
                histogram=row["histogram"],
            )
            points.append(
                IndicatorPoint(symbol, date, self.name, detail.histogram, detail.to_metadata())
            )
        return points

    def calculate_detailed(self, bars: Sequence[Bar]) -> List[MACDPoint]:
        return [MACDPoint.from_point(point) for point in self.calculate(bars)]


def standard_indicators() -> List[Indicator]:
    """The indicator set computed for every symbol by the pipeline."""
    return [
        SMA(20),
        SMA(50),
        SMA(200),
        EMA(12),
        EMA(26),
        EMA(50),
        MACD(),
        RSI(),
    ]
