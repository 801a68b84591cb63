import datetime as dt
from decimal import Decimal

import pytest

from signal_engine.core.models import Bar


def build_bars(closes, symbol="TEST", start=dt.date(2024, 1, 1)):
    """One bar per calendar day starting at ``start``."""
    bars = []
    for i, close in enumerate(closes):
        c = Decimal(str(close))
        bars.append(Bar(
            symbol=symbol,
            date=start + dt.timedelta(days=i),
            open=c,
            high=c,
            low=c,
            close=c,
            adjusted_close=c,
            volume=1000,
        ))
    return bars


@pytest.fixture
def make_bars():
    return build_bars
