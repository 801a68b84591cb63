"""Daily-bar indicator engine producing scored trading signals and
risk-bounded position sizes."""

__version__ = "0.1.0"
