"""
Risk-bounded position sizing.

The sizer turns a Signal into a whole number of shares.  A raw target
amount comes from the chosen strategy.  A target above the maximum
position value is capped at it; otherwise a target under the minimum
position value is dropped to zero.  Shares always round down so the
investment never exceeds the target.
"""
from __future__ import annotations

import enum
import logging
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from .errors import ConfigurationError, DegenerateDivision
from .models import (
    FOUR_PLACES,
    TWO_PLACES,
    Number,
    PositionSize,
    RiskParameters,
    Signal,
    round_half_up,
    to_decimal,
)

logger = logging.getLogger("signal_engine.sizing")

HUNDRED = Decimal(100)
EQUAL_WEIGHT_SLOTS = 10


class SizingStrategy(str, enum.Enum):
    FIXED_PERCENTAGE = "fixed_percentage"  # fixed % of portfolio
    RISK_BASED = "risk_based"  # sized from the stop-loss distance
    SIGNAL_STRENGTH = "signal_strength"  # fixed % scaled by score
    EQUAL_WEIGHT = "equal_weight"  # portfolio split across fixed slots

    @classmethod
    def parse(cls, name: "str | SizingStrategy") -> "SizingStrategy":
        if isinstance(name, cls):
            return name
        try:
            return cls(name.strip().lower().replace("-", "_"))
        except ValueError:
            raise ConfigurationError(
                f"Unknown sizing strategy {name!r}; expected one of {[s.value for s in cls]}"
            ) from None


class PositionSizer:
    def __init__(
        self,
        portfolio_value: Number,
        strategy: "SizingStrategy | str" = SizingStrategy.FIXED_PERCENTAGE,
        risk: Optional[RiskParameters] = None,
    ) -> None:
        self.portfolio_value = to_decimal(portfolio_value)
        if self.portfolio_value <= 0:
            raise ConfigurationError("Portfolio value must be positive")
        self.strategy = SizingStrategy.parse(strategy)
        self.risk = risk or RiskParameters.moderate()

    def calculate_position_size(self, signal: Signal) -> PositionSize:
        price = signal.price
        stop_loss = self.stop_loss_price(price)
        if price <= 0:
            logger.warning("%s: non-positive price %s, skipping", signal.symbol, price)
            return PositionSize(signal.symbol, 0, price, Decimal(0), stop_loss, Decimal(0), Decimal(0))

        target = self._apply_limits(self._target_amount(signal), signal.symbol)

        shares = int((target / price).to_integral_value(rounding=ROUND_DOWN))
        investment = shares * price
        return PositionSize(
            symbol=signal.symbol,
            shares=shares,
            entry_price=price,
            investment_amount=investment,
            stop_loss_price=stop_loss,
            risk_amount=shares * (price - stop_loss),
            portfolio_percent=round_half_up(investment / self.portfolio_value, FOUR_PLACES) * HUNDRED,
        )

    def stop_loss_price(self, price: Decimal) -> Decimal:
        """Long positions only: ``price`` less ``stop_loss_percent`` of it."""
        return price - round_half_up(price * self.risk.stop_loss_percent / HUNDRED, FOUR_PLACES)

    def max_position_value(self) -> Decimal:
        return round_half_up(self.portfolio_value * self.risk.max_position_percent / HUNDRED, TWO_PLACES)

    def _target_amount(self, signal: Signal) -> Decimal:
        if self.strategy is SizingStrategy.RISK_BASED:
            try:
                return self._risk_based(signal)
            except DegenerateDivision as exc:
                logger.info("%s: %s, using fixed percentage", signal.symbol, exc)
                return self.max_position_value()
        if self.strategy is SizingStrategy.SIGNAL_STRENGTH:
            factor = round_half_up(Decimal(signal.score) / HUNDRED, TWO_PLACES)
            return self.max_position_value() * factor
        if self.strategy is SizingStrategy.EQUAL_WEIGHT:
            return round_half_up(self.portfolio_value / EQUAL_WEIGHT_SLOTS, TWO_PLACES)
        return self.max_position_value()

    def _risk_based(self, signal: Signal) -> Decimal:
        risk_per_trade = round_half_up(
            self.portfolio_value * self.risk.risk_per_trade_percent / HUNDRED, TWO_PLACES
        )
        distance = signal.price - self.stop_loss_price(signal.price)
        if distance <= 0:
            raise DegenerateDivision(f"stop-loss distance {distance} is not positive")
        return round_half_up(risk_per_trade / distance, TWO_PLACES)

    def _apply_limits(self, target: Decimal, symbol: str) -> Decimal:
        maximum = self.max_position_value()
        if target > maximum:
            logger.warning("%s: position size %s exceeds max %s, limiting", symbol, target, maximum)
            return maximum
        if target < self.risk.min_position_value:
            logger.warning(
                "%s: position size %s below minimum %s, skipping",
                symbol,
                target,
                self.risk.min_position_value,
            )
            return Decimal(0)
        return target
