"""
Value objects shared by the indicator engines, the scorer and the sizer.

Every price and indicator value is a ``decimal.Decimal``.  Floats are
accepted at construction time only through their string form so that a
value such as ``0.1`` does not carry binary noise into chained
calculations.
"""
from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigurationError

Number = Union[Decimal, int, float, str]

SIX_PLACES = Decimal("0.000001")
TEN_PLACES = Decimal("0.0000000001")
TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def to_decimal(value: Number) -> Decimal:
    """Convert ``value`` to Decimal, going through ``str`` for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round_half_up(value: Decimal, places: Decimal) -> Decimal:
    return value.quantize(places, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Bar:
    symbol: str
    date: dt.date
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    adjusted_close: Decimal
    volume: int = 0

    def __post_init__(self) -> None:
        for name in ("open", "high", "low", "close", "adjusted_close"):
            value = to_decimal(getattr(self, name))
            if value < 0:
                raise ValueError(f"{name} price cannot be negative: {value}")
            object.__setattr__(self, name, value)
        if self.volume < 0:
            raise ValueError("Volume cannot be negative")

    @property
    def is_valid_trading_day(self) -> bool:
        return self.volume > 0


@dataclass(frozen=True)
class IndicatorPoint:
    symbol: str
    date: dt.date
    name: str
    value: Decimal
    metadata: Optional[Mapping[str, Decimal]] = None


@dataclass(frozen=True)
class MACDPoint:
    date: dt.date
    macd_line: Decimal
    signal_line: Decimal
    histogram: Decimal

    @classmethod
    def from_point(cls, point: IndicatorPoint) -> "MACDPoint":
        meta = point.metadata or {}
        return cls(
            date=point.date,
            macd_line=meta.get("macd_line", Decimal(0)),
            signal_line=meta.get("signal_line", Decimal(0)),
            histogram=point.value,
        )

    def to_metadata(self) -> Dict[str, Decimal]:
        return {
            "macd_line": self.macd_line,
            "signal_line": self.signal_line,
            "histogram": self.histogram,
        }

    def is_bullish_crossover(self, previous: Optional["MACDPoint"]) -> bool:
        if previous is None:
            return False
        return previous.histogram < 0 and self.histogram >= 0

    def is_bearish_crossover(self, previous: Optional["MACDPoint"]) -> bool:
        if previous is None:
            return False
        return previous.histogram > 0 and self.histogram <= 0


@dataclass(frozen=True)
class SignalComponents:
    trend_score: int = 0
    momentum_score: int = 0
    value_score: int = 0
    confluence_bonus: int = 0

    @property
    def total_score(self) -> int:
        return self.trend_score + self.momentum_score + self.value_score + self.confluence_bonus

    def breakdown(self) -> str:
        return (
            f"Trend: {self.trend_score}/30, Momentum: {self.momentum_score}/30, "
            f"Value: {self.value_score}/30, Bonus: {self.confluence_bonus}/10 "
            f"= {self.total_score}/100"
        )


class SignalType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class SignalStrength(str, enum.Enum):
    STRONG = "STRONG"      # 80-100
    MODERATE = "MODERATE"  # 60-79
    WEAK = "WEAK"          # 40-59
    AVOID = "AVOID"        # below 40

    @classmethod
    def from_score(cls, score: int) -> "SignalStrength":
        if score >= 80:
            return cls.STRONG
        if score >= 60:
            return cls.MODERATE
        if score >= 40:
            return cls.WEAK
        return cls.AVOID


@dataclass(frozen=True)
class Signal:
    symbol: str
    date: dt.date
    signal_type: SignalType
    score: int
    strength: SignalStrength
    price: Decimal
    reasoning: str
    components: SignalComponents = field(default_factory=SignalComponents)

    @property
    def is_tradeable(self) -> bool:
        return self.score >= 60

    @property
    def is_strong(self) -> bool:
        return self.score >= 80


@dataclass(frozen=True)
class RiskParameters:
    """Risk limits applied by the position sizer, all in percent except
    ``min_position_value`` which is a currency amount."""

    max_position_percent: Decimal
    risk_per_trade_percent: Decimal
    stop_loss_percent: Decimal
    min_position_value: Decimal

    def __post_init__(self) -> None:
        for name in (
            "max_position_percent",
            "risk_per_trade_percent",
            "stop_loss_percent",
            "min_position_value",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def conservative(cls) -> "RiskParameters":
        return cls(Decimal(5), Decimal(1), Decimal(8), Decimal(500))

    @classmethod
    def moderate(cls) -> "RiskParameters":
        return cls(Decimal(10), Decimal(2), Decimal(10), Decimal(1000))

    @classmethod
    def aggressive(cls) -> "RiskParameters":
        return cls(Decimal(15), Decimal(3), Decimal(12), Decimal(1500))

    @classmethod
    def from_profile(cls, name: str) -> "RiskParameters":
        presets = {
            "conservative": cls.conservative,
            "moderate": cls.moderate,
            "aggressive": cls.aggressive,
        }
        try:
            return presets[name.strip().lower()]()
        except KeyError:
            raise ConfigurationError(
                f"Unknown risk profile {name!r}; expected one of {sorted(presets)}"
            ) from None


@dataclass(frozen=True)
class PositionSize:
    symbol: str
    shares: int
    entry_price: Decimal
    investment_amount: Decimal
    stop_loss_price: Decimal
    risk_amount: Decimal
    portfolio_percent: Decimal

    @property
    def is_valid(self) -> bool:
        return self.shares > 0

    @property
    def stop_loss_distance_percent(self) -> Decimal:
        if self.entry_price <= 0:
            return Decimal(0)
        ratio = round_half_up((self.entry_price - self.stop_loss_price) / self.entry_price, FOUR_PLACES)
        return ratio * 100

    def as_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "shares": self.shares,
            "entry_price": self.entry_price,
            "investment_amount": self.investment_amount,
            "stop_loss_price": self.stop_loss_price,
            "risk_amount": self.risk_amount,
            "portfolio_percent": self.portfolio_percent,
        }
