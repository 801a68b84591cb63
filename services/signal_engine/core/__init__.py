"""Numerical core of the signal engine.

This package computes technical indicators from daily bars, scores the
latest indicator values into a BUY/SELL/HOLD signal and sizes a position
from that signal.  Everything here is a pure, synchronous computation over
in-memory values: no I/O and no state shared between calls.
"""

from .errors import (
    ConfigurationError,
    DegenerateDivision,
    InsufficientData,
    MissingDependencyData,
    SignalEngineError,
)
from .models import (
    Bar,
    IndicatorPoint,
    MACDPoint,
    PositionSize,
    RiskParameters,
    Signal,
    SignalComponents,
    SignalStrength,
    SignalType,
)
from .indicators import (
    EMA,
    MACD,
    RSI,
    SMA,
    Indicator,
    closes_from_bars,
    compute_ema,
    compute_macd,
    compute_rsi,
    compute_sma,
    standard_indicators,
)
from .rules import interpret_rsi, macd_cross_signal, sma_crossover_signal
from .scoring import IndicatorSummary, generate_signal
from .sizing import PositionSizer, SizingStrategy

__all__ = [
    "ConfigurationError",
    "DegenerateDivision",
    "InsufficientData",
    "MissingDependencyData",
    "SignalEngineError",
    "Bar",
    "IndicatorPoint",
    "MACDPoint",
    "PositionSize",
    "RiskParameters",
    "Signal",
    "SignalComponents",
    "SignalStrength",
    "SignalType",
    "EMA",
    "MACD",
    "RSI",
    "SMA",
    "Indicator",
    "closes_from_bars",
    "compute_ema",
    "compute_macd",
    "compute_rsi",
    "compute_sma",
    "standard_indicators",
    "interpret_rsi",
    "macd_cross_signal",
    "sma_crossover_signal",
    "IndicatorSummary",
    "generate_signal",
    "PositionSizer",
    "SizingStrategy",
]
