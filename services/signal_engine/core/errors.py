"""Exceptions raised by the indicator, scoring and sizing code.

Only ``ConfigurationError`` and ``InsufficientData`` ever reach callers of
the core; the other two are raised and handled internally so that scoring
and sizing degrade instead of failing.
"""
from __future__ import annotations

from typing import Optional


class SignalEngineError(Exception):
    """Base class for every error raised by signal_engine."""


class ConfigurationError(SignalEngineError, ValueError):
    """Invalid construction parameters (period too small, fast >= slow...)."""


class InsufficientData(SignalEngineError, ValueError):
    """Fewer bars than an indicator's minimum window."""

    def __init__(self, indicator: str, required: int, available: int) -> None:
        super().__init__(
            f"Need at least {required} data points for {indicator}, got {available}"
        )
        self.indicator = indicator
        self.required = required
        self.available = available


class MissingDependencyData(SignalEngineError, LookupError):
    """A required value has no persisted latest point."""

    def __init__(self, symbol: str, dependency: str, detail: Optional[str] = None) -> None:
        super().__init__(detail or f"No latest {dependency} for {symbol}")
        self.symbol = symbol
        self.dependency = dependency


class DegenerateDivision(SignalEngineError, ArithmeticError):
    """A divisor that is zero or negative where a positive one is required."""
