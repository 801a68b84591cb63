"""
FastAPI application exposing indicator computation, signal scoring and
position sizing.  The API is stateless: callers send the bars or latest
indicator values they have, nothing is read from or written to storage.

Decimal values are returned as strings so no precision is lost in JSON.
"""
from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from ..core import (
    EMA,
    MACD,
    RSI,
    SMA,
    Bar,
    ConfigurationError,
    Indicator,
    IndicatorPoint,
    IndicatorSummary,
    InsufficientData,
    PositionSizer,
    RiskParameters,
    Signal,
    SignalStrength,
    SignalType,
    SizingStrategy,
    generate_signal,
)
from ..core.scoring import BUY_THRESHOLD, SUMMARY_INDICATORS
from ..log import get_logger

logger = get_logger("signal_api")
app = FastAPI(title="Indicator & Signal API")


# ----------------------------------------------------------------------
# Models
# ----------------------------------------------------------------------
class BarIn(BaseModel):
    date: dt.date
    open: Decimal = Field(..., ge=0)
    high: Decimal = Field(..., ge=0)
    low: Decimal = Field(..., ge=0)
    close: Decimal = Field(..., ge=0)
    adjusted_close: Optional[Decimal] = Field(None, ge=0)
    volume: int = Field(0, ge=0)


class IndicatorRequest(BaseModel):
    symbol: str = Field(..., description="Ticker, e.g. SHEL.L")
    bars: List[BarIn] = Field(..., min_length=1, description="Daily bars, oldest first")
    indicators: List[str] = Field(
        ..., description="Indicators: sma20, ema12, rsi14, macd, macd_12_26_9"
    )

    @field_validator("bars")
    @classmethod
    def validate_order(cls, v: List[BarIn]) -> List[BarIn]:
        for prev, cur in zip(v, v[1:]):
            if cur.date <= prev.date:
                raise ValueError("bars must be in strictly ascending date order")
        return v


class ScoreRequest(BaseModel):
    """
    Latest known indicator values for a symbol.  Any of them may be left
    out; the matching sub-score then counts as zero.
    """
    symbol: str
    price: Decimal = Field(..., ge=0)
    as_of: Optional[dt.date] = None
    sma20: Optional[Decimal] = None
    sma50: Optional[Decimal] = None
    sma200: Optional[Decimal] = None
    rsi: Optional[Decimal] = Field(None, ge=0, le=100)
    macd_histogram: Optional[Decimal] = None


class SizeRequest(BaseModel):
    symbol: str
    price: Decimal = Field(..., gt=0)
    score: int = Field(..., description="Signal total score")
    portfolio_value: Decimal = Field(..., gt=0)
    strategy: str = Field("fixed_percentage", description="fixed_percentage, risk_based, signal_strength, equal_weight")
    risk_profile: str = Field("moderate", description="conservative, moderate or aggressive")


_INDICATOR_KEY = re.compile(r"(sma|ema|rsi|macd)((?:_?\d+)*)")


def _parse_indicator(key: str) -> Indicator:
    m = _INDICATOR_KEY.fullmatch(key.strip().lower())
    if m is None:
        raise HTTPException(400, detail=f"Unknown indicator {key}")
    kind = m.group(1)
    params = [int(p) for p in re.findall(r"\d+", m.group(2))]
    try:
        if kind in ("sma", "ema") and len(params) == 1:
            return (SMA if kind == "sma" else EMA)(params[0])
        if kind == "rsi" and len(params) <= 1:
            return RSI(*params)
        if kind == "macd" and len(params) in (0, 3):
            return MACD(*params)
    except ConfigurationError as exc:
        raise HTTPException(400, detail=str(exc))
    raise HTTPException(400, detail=f"Unknown indicator {key}")


def _dec(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(value)


def _point_out(point: IndicatorPoint) -> Dict[str, Any]:
    out: Dict[str, Any] = {"date": point.date.isoformat(), "value": _dec(point.value)}
    if point.metadata:
        out["metadata"] = {k: _dec(v) for k, v in point.metadata.items()}
    return out


def _signal_out(signal: Signal) -> Dict[str, Any]:
    c = signal.components
    return {
        "symbol": signal.symbol,
        "date": signal.date.isoformat(),
        "signal_type": signal.signal_type.value,
        "score": signal.score,
        "strength": signal.strength.value,
        "price": _dec(signal.price),
        "reasoning": signal.reasoning,
        "tradeable": signal.is_tradeable,
        "components": {
            "trend": c.trend_score,
            "momentum": c.momentum_score,
            "value": c.value_score,
            "confluence_bonus": c.confluence_bonus,
        },
    }


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------
@app.post("/indicators/compute")
async def compute_indicators(req: IndicatorRequest):
    if not req.indicators:
        raise HTTPException(400, detail="No indicators requested")
    bars = [
        Bar(
            symbol=req.symbol,
            date=b.date,
            open=b.open,
            high=b.high,
            low=b.low,
            close=b.close,
            adjusted_close=b.adjusted_close if b.adjusted_close is not None else b.close,
            volume=b.volume,
        )
        for b in req.bars
    ]
    result: Dict[str, Any] = {}
    for key in req.indicators:
        indicator = _parse_indicator(key)
        try:
            points = indicator.calculate(bars)
        except InsufficientData as exc:
            raise HTTPException(422, detail=str(exc))
        result[indicator.name] = [_point_out(p) for p in points]
    return result


@app.post("/signals/score")
async def score_signal(req: ScoreRequest):
    as_of = req.as_of or dt.date.today()
    values = {
        "sma20": req.sma20,
        "sma50": req.sma50,
        "sma200": req.sma200,
        "rsi": req.rsi,
        "macd": req.macd_histogram,
    }
    points = {
        field: IndicatorPoint(req.symbol, as_of, SUMMARY_INDICATORS[field], value)
        for field, value in values.items()
        if value is not None
    }
    summary = IndicatorSummary(symbol=req.symbol, **points)
    return _signal_out(generate_signal(req.symbol, summary, req.price, as_of=as_of))


@app.post("/positions/size")
async def size_position(req: SizeRequest):
    try:
        sizer = PositionSizer(
            req.portfolio_value,
            SizingStrategy.parse(req.strategy),
            RiskParameters.from_profile(req.risk_profile),
        )
    except ConfigurationError as exc:
        raise HTTPException(400, detail=str(exc))
    signal = Signal(
        symbol=req.symbol,
        date=dt.date.today(),
        signal_type=SignalType.BUY if req.score >= BUY_THRESHOLD else SignalType.HOLD,
        score=req.score,
        strength=SignalStrength.from_score(req.score),
        price=req.price,
        reasoning="",
    )
    position = sizer.calculate_position_size(signal)
    logger.info("%s sized at %d shares (%s)", req.symbol, position.shares, sizer.strategy.value)
    out = {k: (_dec(v) if isinstance(v, Decimal) else v) for k, v in position.as_dict().items()}
    out["valid"] = position.is_valid
    return out
