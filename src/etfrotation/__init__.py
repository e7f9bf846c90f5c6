"""Multi-factor ETF rotation engine."""

__version__ = "0.1.0"
