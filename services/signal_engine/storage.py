"""
SQLAlchemy persistence for daily bars and computed indicator points.

Two tables: ``market_data`` keyed by (symbol, trade_date) and
``technical_indicators`` keyed by (symbol, trade_date, indicator_name).
Decimals are written as text so every backend round-trips them exactly.
Saving an indicator point for an existing key overwrites it, which is how
a later run replaces an earlier one.

Repositories take an Engine in their constructor; build one with
``create_db_engine`` and share it explicitly.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import JSON, BigInteger, Column, Date, String, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base
from sqlalchemy.types import TypeDecorator

from .core.models import Bar, IndicatorPoint
from .log import get_logger

logger = get_logger("signal_engine.storage")

Base = declarative_base()


class DecimalText(TypeDecorator):
    """Decimal stored as its exact string form."""

    impl = String(48)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(value)


# --- ORM models ---------------------------------------------------------------

class MarketDataRow(Base):
    __tablename__ = "market_data"
    symbol = Column(String(20), primary_key=True)
    trade_date = Column(Date, primary_key=True)
    open = Column(DecimalText, nullable=False)
    high = Column(DecimalText, nullable=False)
    low = Column(DecimalText, nullable=False)
    close = Column(DecimalText, nullable=False)
    adjusted_close = Column(DecimalText, nullable=False)
    volume = Column(BigInteger, nullable=False, default=0)

    @classmethod
    def from_bar(cls, bar: Bar) -> "MarketDataRow":
        return cls(
            symbol=bar.symbol,
            trade_date=bar.date,
            open=bar.open,
            high=bar.high,
            low=bar.low,
            close=bar.close,
            adjusted_close=bar.adjusted_close,
            volume=bar.volume,
        )

    def to_bar(self) -> Bar:
        return Bar(
            symbol=self.symbol,
            date=self.trade_date,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            adjusted_close=self.adjusted_close,
            volume=self.volume,
        )


class IndicatorRow(Base):
    __tablename__ = "technical_indicators"
    symbol = Column(String(20), primary_key=True)
    trade_date = Column(Date, primary_key=True)
    indicator_name = Column(String(50), primary_key=True)
    value = Column(DecimalText, nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)

    @classmethod
    def from_point(cls, point: IndicatorPoint) -> "IndicatorRow":
        meta = None
        if point.metadata:
            meta = {k: str(v) for k, v in point.metadata.items()}
        return cls(
            symbol=point.symbol,
            trade_date=point.date,
            indicator_name=point.name,
            value=point.value,
            meta=meta,
        )

    def to_point(self) -> IndicatorPoint:
        metadata: Optional[Dict[str, Decimal]] = None
        if self.meta:
            metadata = {k: Decimal(v) for k, v in self.meta.items()}
        return IndicatorPoint(self.symbol, self.trade_date, self.indicator_name, self.value, metadata)


def create_db_engine(url: str, create_tables: bool = True) -> Engine:
    engine = create_engine(url, future=True)
    if create_tables:
        Base.metadata.create_all(engine)  # create if missing; no destructive changes
    return engine


# --- Repositories -------------------------------------------------------------

class MarketDataRepository:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def save_batch(self, bars: Iterable[Bar]) -> int:
        count = 0
        with Session(self.engine) as session:
            for bar in bars:
                session.merge(MarketDataRow.from_bar(bar))
                count += 1
            session.commit()
        logger.debug("Saved %d bars", count)
        return count

    def find_between(self, symbol: str, start: dt.date, end: dt.date) -> List[Bar]:
        """Bars for ``symbol`` with start <= date <= end, oldest first."""
        with Session(self.engine) as session:
            rows = session.execute(
                select(MarketDataRow)
                .where(
                    MarketDataRow.symbol == symbol,
                    MarketDataRow.trade_date >= start,
                    MarketDataRow.trade_date <= end,
                )
                .order_by(MarketDataRow.trade_date)
            ).scalars().all()
            return [row.to_bar() for row in rows]

    def latest_bar(self, symbol: str) -> Optional[Bar]:
        with Session(self.engine) as session:
            row = session.execute(
                select(MarketDataRow)
                .where(MarketDataRow.symbol == symbol)
                .order_by(MarketDataRow.trade_date.desc())
                .limit(1)
            ).scalars().first()
            return row.to_bar() if row is not None else None

    def latest_price(self, symbol: str) -> Optional[Decimal]:
        bar = self.latest_bar(symbol)
        return bar.close if bar is not None else None

    def symbols(self) -> List[str]:
        with Session(self.engine) as session:
            return list(
                session.execute(
                    select(MarketDataRow.symbol).distinct().order_by(MarketDataRow.symbol)
                ).scalars()
            )


class IndicatorRepository:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def save_batch(self, points: Iterable[IndicatorPoint]) -> int:
        count = 0
        with Session(self.engine) as session:
            for point in points:
                session.merge(IndicatorRow.from_point(point))
                count += 1
            session.commit()
        return count

    def find(
        self,
        symbol: str,
        name: str,
        start: Optional[dt.date] = None,
        end: Optional[dt.date] = None,
    ) -> List[IndicatorPoint]:
        stmt = select(IndicatorRow).where(
            IndicatorRow.symbol == symbol, IndicatorRow.indicator_name == name
        )
        if start is not None:
            stmt = stmt.where(IndicatorRow.trade_date >= start)
        if end is not None:
            stmt = stmt.where(IndicatorRow.trade_date <= end)
        with Session(self.engine) as session:
            rows = session.execute(stmt.order_by(IndicatorRow.trade_date)).scalars().all()
            return [row.to_point() for row in rows]

    def get_latest(self, symbol: str, name: str) -> Optional[IndicatorPoint]:
        with Session(self.engine) as session:
            row = session.execute(
                select(IndicatorRow)
                .where(IndicatorRow.symbol == symbol, IndicatorRow.indicator_name == name)
                .order_by(IndicatorRow.trade_date.desc())
                .limit(1)
            ).scalars().first()
            return row.to_point() if row is not None else None

    def delete_by_symbol(self, symbol: str) -> int:
        with Session(self.engine) as session:
            result = session.execute(delete(IndicatorRow).where(IndicatorRow.symbol == symbol))
            session.commit()
            return result.rowcount
