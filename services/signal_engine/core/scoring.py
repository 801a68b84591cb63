"""
Multi-factor signal scoring.

A signal is scored from the latest known SMA(20), SMA(50), SMA(200),
RSI(14) and MACD(12, 26, 9) histogram of a symbol:

* trend (0-30) from the moving-average stack,
* momentum (0-30) from the MACD histogram,
* value (-20-30) from RSI, negative when overbought,
* a 10 point confluence bonus when all three are positive.

The total is the plain sum of the four and is not clamped to 0-100.  Any
input may be missing; its sub-score then degrades to 0.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional

from .errors import MissingDependencyData
from .models import (
    IndicatorPoint,
    Number,
    Signal,
    SignalComponents,
    SignalStrength,
    SignalType,
    to_decimal,
)
from .rules import interpret_rsi

logger = logging.getLogger("signal_engine.scoring")

BUY_THRESHOLD = 60
SELL_RSI = Decimal(75)
BEARISH_SELL_BELOW = 30
NEAR_CROSS = Decimal("0.99")

SUMMARY_INDICATORS = {
    "sma20": "SMA_20",
    "sma50": "SMA_50",
    "sma200": "SMA_200",
    "rsi": "RSI_14",
    "macd": "MACD_12_26_9",
}


@dataclass(frozen=True)
class IndicatorSummary:
    """Latest persisted point of each indicator the scorer reads."""

    symbol: str
    sma20: Optional[IndicatorPoint] = None
    sma50: Optional[IndicatorPoint] = None
    sma200: Optional[IndicatorPoint] = None
    rsi: Optional[IndicatorPoint] = None
    macd: Optional[IndicatorPoint] = None

    def _points(self) -> List[IndicatorPoint]:
        return [p for p in (self.sma20, self.sma50, self.sma200, self.rsi, self.macd) if p is not None]

    @property
    def is_empty(self) -> bool:
        return not self._points()

    def require(self, field: str) -> Decimal:
        point = getattr(self, field)
        if point is None:
            raise MissingDependencyData(self.symbol, SUMMARY_INDICATORS[field])
        return point.value

    def trend_signal(self) -> str:
        if self.sma20 is None or self.sma50 is None:
            return "INSUFFICIENT_DATA"
        if self.sma20.value > self.sma50.value:
            return "BULLISH"
        if self.sma20.value < self.sma50.value:
            return "BEARISH"
        return "NEUTRAL"

    def rsi_signal(self) -> str:
        return interpret_rsi(self.rsi.value if self.rsi is not None else None)


def trend_score(summary: IndicatorSummary) -> int:
    sma20 = summary.require("sma20")
    sma50 = summary.require("sma50")
    sma200 = summary.sma200.value if summary.sma200 is not None else None
    if sma200 is not None and sma20 > sma50 > sma200:
        return 30
    if sma20 > sma50:
        return 20
    if sma20 > sma50 * NEAR_CROSS:
        return 10
    return 0


def momentum_score(summary: IndicatorSummary) -> int:
    histogram = summary.require("macd")
    if histogram > 0:
        return 30 if abs(histogram) > 10 else 20
    if histogram > -5:
        return 10
    return 0


def value_score(summary: IndicatorSummary) -> int:
    rsi = summary.require("rsi")
    if rsi < 30:
        return 30
    if rsi < 40:
        return 20
    if rsi <= 60:
        return 10
    if rsi > 70:
        return -20
    return 0


def confluence_bonus(trend: int, momentum: int, value: int) -> int:
    return 10 if trend > 0 and momentum > 0 and value > 0 else 0


def _degrade(score: Callable[[IndicatorSummary], int], summary: IndicatorSummary) -> int:
    try:
        return score(summary)
    except MissingDependencyData as exc:
        logger.debug("%s: %s scored 0 (%s)", summary.symbol, score.__name__, exc)
        return 0


def classify(score: int, summary: IndicatorSummary) -> SignalType:
    if score >= BUY_THRESHOLD:
        return SignalType.BUY
    if summary.rsi is not None and summary.rsi.value > SELL_RSI:
        return SignalType.SELL
    if summary.trend_signal() == "BEARISH" and score < BEARISH_SELL_BELOW:
        return SignalType.SELL
    return SignalType.HOLD


_TREND_REASONS = {
    30: "Strong uptrend (SMA20 > SMA50 > SMA200)",
    20: "Uptrend (SMA20 > SMA50)",
    10: "Weak bullish trend",
    0: "Bearish or no clear trend",
}
_MOMENTUM_REASONS = {
    30: "Strong momentum (MACD histogram > 10)",
    20: "Positive momentum (MACD bullish)",
    10: "Early momentum building",
    0: "Negative or weak momentum",
}
_VALUE_REASONS = {
    30: "Oversold - good value",
    20: "Slightly oversold",
    10: "Neutral valuation",
    0: "Elevated RSI",
    -20: "OVERBOUGHT - caution!",
}


def build_reasoning(summary: IndicatorSummary, components: SignalComponents) -> str:
    reasons = [
        _TREND_REASONS[components.trend_score],
        _MOMENTUM_REASONS[components.momentum_score],
    ]
    if summary.rsi is not None:
        reasons.append(_VALUE_REASONS[components.value_score])
    if components.confluence_bonus > 0:
        reasons.append("All signals aligned!")
    return ", ".join(reasons) + " | Score: " + components.breakdown()


def hold_signal(
    symbol: str, price: Number, reason: str, as_of: Optional[dt.date] = None
) -> Signal:
    return Signal(
        symbol=symbol,
        date=as_of or dt.date.today(),
        signal_type=SignalType.HOLD,
        score=0,
        strength=SignalStrength.AVOID,
        price=to_decimal(price),
        reasoning=reason,
        components=SignalComponents(),
    )


def generate_signal(
    symbol: str,
    summary: Optional[IndicatorSummary],
    price: Number,
    as_of: Optional[dt.date] = None,
) -> Signal:
    """Score ``summary`` into a Signal.  Never raises for missing data."""
    if summary is None or summary.is_empty:
        logger.warning("No indicators available for %s", symbol)
        return hold_signal(symbol, price, "Insufficient data", as_of)

    trend = _degrade(trend_score, summary)
    momentum = _degrade(momentum_score, summary)
    value = _degrade(value_score, summary)
    components = SignalComponents(trend, momentum, value, confluence_bonus(trend, momentum, value))

    total = components.total_score
    return Signal(
        symbol=symbol,
        date=summary.sma20.date if summary.sma20 is not None else (as_of or dt.date.today()),
        signal_type=classify(total, summary),
        score=total,
        strength=SignalStrength.from_score(total),
        price=to_decimal(price),
        reasoning=build_reasoning(summary, components),
        components=components,
    )
