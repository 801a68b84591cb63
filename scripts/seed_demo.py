"""
Seed the development database with synthetic daily bars for a few demo
symbols.  The bars follow a seeded random walk so every run produces the
same history.  It connects to the database using the DATABASE_URL
environment variable.
"""
import datetime as dt
from decimal import Decimal

import numpy as np

from signal_engine.config import load_settings
from signal_engine.core.models import Bar
from signal_engine.storage import MarketDataRepository, create_db_engine

DEMO_DAYS = 400
START_PRICES = {"SHEL.L": 2500.0, "AZN.L": 11000.0, "BP.L": 480.0}


def synthetic_bars(symbol: str, start_price: float, days: int, seed: int) -> list:
    rng = np.random.default_rng(seed)
    returns = rng.normal(0.0004, 0.015, size=days)
    closes = start_price * np.cumprod(1 + returns)
    end = dt.date.today()
    dates = [end - dt.timedelta(days=days - 1 - i) for i in range(days)]
    bars = []
    for day, close in zip(dates, closes):
        if day.weekday() >= 5:
            continue
        c = Decimal(f"{close:.4f}")
        bars.append(Bar(
            symbol=symbol,
            date=day,
            open=c,
            high=Decimal(f"{close * 1.01:.4f}"),
            low=Decimal(f"{close * 0.99:.4f}"),
            close=c,
            adjusted_close=c,
            volume=int(rng.integers(100_000, 5_000_000)),
        ))
    return bars


def main():
    settings = load_settings()
    engine = create_db_engine(settings.database_url)
    repo = MarketDataRepository(engine)
    for seed, (symbol, price) in enumerate(START_PRICES.items()):
        count = repo.save_batch(synthetic_bars(symbol, price, DEMO_DAYS, seed))
        print(f"Seeded {count} bars for {symbol}")
    print("Seeding complete")


if __name__ == "__main__":
    main()
