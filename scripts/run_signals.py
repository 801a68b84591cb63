"""
Compute indicators for the configured symbols, print the signal report
and size a position for every BUY signal.

    DATABASE_URL=sqlite:///signal_engine.db SYMBOLS=SHEL.L,BP.L python scripts/run_signals.py
"""
import sys

from signal_engine.config import load_settings
from signal_engine.core import PositionSizer, SignalType
from signal_engine.core.errors import ConfigurationError
from signal_engine.log import get_logger
from signal_engine.pipeline import IndicatorService, SignalGenerator, signal_report
from signal_engine.storage import IndicatorRepository, MarketDataRepository, create_db_engine


def main():
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"[signals] Invalid configuration: {e}")
        sys.exit(1)
    logger = get_logger("run_signals", settings.log_level)
    logger.info("Processing %d symbols against %s", len(settings.symbols), settings.database_url)

    engine = create_db_engine(settings.database_url)
    market_repo = MarketDataRepository(engine)
    indicator_service = IndicatorService(
        market_repo, IndicatorRepository(engine), lookback_days=settings.lookback_days
    )
    indicator_service.calculate_for_symbols(settings.symbols)

    signals = SignalGenerator(indicator_service, market_repo).generate_signals(settings.symbols)
    print(signal_report(signals))

    sizer = PositionSizer(settings.portfolio_value, settings.sizing_strategy, settings.risk)
    for signal in signals:
        if signal.signal_type is not SignalType.BUY:
            continue
        position = sizer.calculate_position_size(signal)
        if not position.is_valid:
            print(f"{signal.symbol}: position below minimum, skipped")
            continue
        print(
            f"{position.symbol}: {position.shares} shares @ {position.entry_price:.2f} = "
            f"{position.investment_amount:.2f} ({position.portfolio_percent:.2f}% of portfolio), "
            f"stop {position.stop_loss_price:.2f} ({position.stop_loss_distance_percent:.2f}% below), "
            f"risk {position.risk_amount:.2f}"
        )


if __name__ == "__main__":
    main()
