"""
Per-symbol orchestration: bars -> indicator points -> summary -> signal.

Each symbol is processed on its own.  A symbol without enough bars for an
indicator just skips that indicator, and a failure on one symbol is logged
and skipped so the rest of a batch still runs.
"""
from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_LOOKBACK_DAYS
from .core.errors import InsufficientData, MissingDependencyData
from .core.indicators import Indicator, standard_indicators
from .core.models import Signal, SignalType
from .core.scoring import SUMMARY_INDICATORS, IndicatorSummary, generate_signal
from .log import get_logger
from .storage import IndicatorRepository, MarketDataRepository

logger = get_logger("signal_engine.pipeline")


class IndicatorService:
    def __init__(
        self,
        market_repo: MarketDataRepository,
        indicator_repo: IndicatorRepository,
        indicators: Optional[Sequence[Indicator]] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> None:
        self.market_repo = market_repo
        self.indicator_repo = indicator_repo
        self.indicators = list(indicators) if indicators is not None else standard_indicators()
        self.lookback_days = lookback_days

    def calculate_and_store(self, symbol: str, end: Optional[dt.date] = None) -> Dict[str, int]:
        """
        Compute every configured indicator for ``symbol`` over the lookback
        window ending at ``end`` (default today) and persist the points.
        Returns the number of points stored per indicator name.
        """
        end = end or dt.date.today()
        start = end - dt.timedelta(days=self.lookback_days)
        bars = self.market_repo.find_between(symbol, start, end)
        if not bars:
            logger.warning("No market data found for %s", symbol)
            return {}
        logger.info("Loaded %d data points for %s", len(bars), symbol)

        stored: Dict[str, int] = {}
        for indicator in self.indicators:
            try:
                points = indicator.calculate(bars)
            except InsufficientData as exc:
                logger.warning("Not enough data for %s on %s (need %d, have %d)",
                               indicator.name, symbol, exc.required, exc.available)
                continue
            except Exception:
                logger.exception("Failed to calculate %s for %s", indicator.name, symbol)
                continue
            stored[indicator.name] = self.indicator_repo.save_batch(points)
            logger.info("Calculated and stored %s for %s (%d values)",
                        indicator.name, symbol, stored[indicator.name])
        return stored

    def calculate_for_symbols(
        self, symbols: Sequence[str], end: Optional[dt.date] = None
    ) -> Dict[str, Dict[str, int]]:
        results: Dict[str, Dict[str, int]] = {}
        for symbol in symbols:
            try:
                results[symbol] = self.calculate_and_store(symbol, end)
            except Exception:
                logger.exception("Failed to calculate indicators for %s", symbol)
        return results

    def latest_summary(self, symbol: str) -> IndicatorSummary:
        latest = {
            field: self.indicator_repo.get_latest(symbol, name)
            for field, name in SUMMARY_INDICATORS.items()
        }
        return IndicatorSummary(symbol=symbol, **latest)


class SignalGenerator:
    def __init__(self, indicator_service: IndicatorService, market_repo: MarketDataRepository) -> None:
        self.indicator_service = indicator_service
        self.market_repo = market_repo

    def generate_signal(self, symbol: str) -> Signal:
        summary = self.indicator_service.latest_summary(symbol)
        price = self.market_repo.latest_price(symbol)
        if price is None:
            raise MissingDependencyData(symbol, "price", f"No price data for {symbol}")
        return generate_signal(symbol, summary, price)

    def generate_signals(self, symbols: Sequence[str]) -> List[Signal]:
        logger.info("Generating signals for %d symbols", len(symbols))
        signals: List[Signal] = []
        for symbol in symbols:
            try:
                signal = self.generate_signal(symbol)
            except Exception:
                logger.exception("Failed to generate signal for %s", symbol)
                continue
            logger.info("%s: %s - Score: %d - %s", symbol, signal.signal_type.value,
                        signal.score, signal.strength.value)
            signals.append(signal)
        return signals

    def top_buy_signals(self, symbols: Sequence[str], limit: int = 5) -> List[Signal]:
        buys = [s for s in self.generate_signals(symbols) if s.signal_type is SignalType.BUY]
        return sorted(buys, key=lambda s: s.score, reverse=True)[:limit]

    def tradeable_signals(self, symbols: Sequence[str]) -> List[Signal]:
        tradeable = [s for s in self.generate_signals(symbols) if s.is_tradeable]
        return sorted(tradeable, key=lambda s: s.score, reverse=True)


_MARKERS = {SignalType.BUY: "[+]", SignalType.SELL: "[-]", SignalType.HOLD: "[ ]"}


def signal_report(signals: Sequence[Signal]) -> str:
    """Plain-text report of ``signals`` followed by BUY/SELL/HOLD counts."""
    rule = "=" * 100
    lines = [rule, "TRADING SIGNAL REPORT".center(100), rule]
    for signal in signals:
        lines.append(
            f"{_MARKERS[signal.signal_type]} {signal.symbol} | {signal.signal_type.value} | "
            f"Score: {signal.score}/100 | Price: {signal.price:.2f}"
        )
        lines.append(f"    Strength: {signal.strength.value}")
        lines.append(f"    {signal.reasoning}")
        if signal.is_tradeable:
            lines.append("    TRADEABLE SIGNAL")
    buys = sum(1 for s in signals if s.signal_type is SignalType.BUY)
    sells = sum(1 for s in signals if s.signal_type is SignalType.SELL)
    tradeable = sum(1 for s in signals if s.is_tradeable)
    lines.append(rule)
    lines.append(
        f"Summary: {buys} BUY | {sells} SELL | {len(signals) - buys - sells} HOLD | "
        f"{tradeable} Tradeable (>=60 score)"
    )
    lines.append(rule)
    return "\n".join(lines)
