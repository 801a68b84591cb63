"""Environment-driven settings.

``load_settings`` reads the environment once and returns an immutable
``Settings``; callers pass it (or the objects built from it) explicitly
instead of reaching for module globals.

Environment variables:

* DATABASE_URL: SQLAlchemy URL (default: sqlite:///signal_engine.db)
* SYMBOLS: comma-separated symbols to process
* PORTFOLIO_VALUE: portfolio value used for sizing (default: 20000)
* RISK_PROFILE: conservative, moderate or aggressive (default: moderate)
* SIZING_STRATEGY: fixed_percentage, risk_based, signal_strength or
  equal_weight (default: fixed_percentage)
* LOOKBACK_DAYS: calendar days of bars loaded per symbol (default: 300)
* SIGNAL_ENGINE_LOG_LEVEL: logging level (default: INFO)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional, Tuple

from .core.errors import ConfigurationError
from .core.models import RiskParameters
from .core.sizing import SizingStrategy

DEFAULT_SYMBOLS = ("SHEL.L", "AZN.L", "HSBA.L", "ULVR.L", "BP.L")
# ~214 weekday bars; SMA_200 needs 200
DEFAULT_LOOKBACK_DAYS = 300


def _env(name: str, default: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Read ``name``, stripping whitespace and surrounding quotes."""
    v = (os.environ if environ is None else environ).get(name)
    if v is None:
        return default
    v = v.strip()
    if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
        v = v[1:-1].strip()
    return v or default


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///signal_engine.db"
    symbols: Tuple[str, ...] = DEFAULT_SYMBOLS
    portfolio_value: Decimal = Decimal(20000)
    risk_profile: str = "moderate"
    sizing_strategy: SizingStrategy = SizingStrategy.FIXED_PERCENTAGE
    lookback_days: int = DEFAULT_LOOKBACK_DAYS
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        RiskParameters.from_profile(self.risk_profile)

    @property
    def risk(self) -> RiskParameters:
        return RiskParameters.from_profile(self.risk_profile)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    symbols_raw = _env("SYMBOLS", None, environ)
    symbols = (
        tuple(s.strip() for s in symbols_raw.split(",") if s.strip())
        if symbols_raw
        else DEFAULT_SYMBOLS
    )
    try:
        portfolio_value = Decimal(_env("PORTFOLIO_VALUE", "20000", environ))
    except InvalidOperation:
        raise ConfigurationError("PORTFOLIO_VALUE must be a number") from None
    try:
        lookback_days = int(_env("LOOKBACK_DAYS", str(DEFAULT_LOOKBACK_DAYS), environ))
    except ValueError:
        raise ConfigurationError("LOOKBACK_DAYS must be an integer") from None

    risk_profile = _env("RISK_PROFILE", "moderate", environ).lower()
    return Settings(
        database_url=_env("DATABASE_URL", "sqlite:///signal_engine.db", environ),
        symbols=symbols,
        portfolio_value=portfolio_value,
        risk_profile=risk_profile,
        sizing_strategy=SizingStrategy.parse(_env("SIZING_STRATEGY", "fixed_percentage", environ)),
        lookback_days=lookback_days,
        log_level=_env("SIGNAL_ENGINE_LOG_LEVEL", "INFO", environ).upper(),
    )
