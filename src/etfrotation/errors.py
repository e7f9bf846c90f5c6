"""
Error kinds raised by the rotation core.

Every ``RotationError`` is recoverable: the engine reports it on the
``CycleResult`` of the event that produced it and carries on with the next
event. ``ConfigError`` is the only construction-time failure.
"""

from __future__ import annotations

from datetime import datetime


class ConfigError(ValueError):
    """Invalid engine configuration."""


class RotationError(Exception):
    """Base class for recoverable, cycle-scoped failures."""


class InsufficientHistory(RotationError):
    """One or more rolling windows have not collected ``lookback`` bars yet."""

    def __init__(self, symbols: list[str]) -> None:
        self.symbols = list(symbols)
        super().__init__(f"Rolling window not full for: {', '.join(self.symbols)}")


class DegenerateVolatility(RotationError):
    """Volatility too close to zero to be inverted safely."""

    def __init__(self, symbol: str, volatility: float) -> None:
        self.symbol = symbol
        self.volatility = volatility
        super().__init__(f"{symbol}: degenerate volatility {volatility!r}")


class StaleUpdate(RotationError):
    """Latest bar is not contiguous with the evaluation time."""

    def __init__(self, symbol: str, end_time: datetime | None, expected: datetime) -> None:
        self.symbol = symbol
        self.end_time = end_time
        self.expected = expected
        super().__init__(
            f"{symbol}: bar ending {end_time} is stale (expected end {expected})"
        )


class CorrelationNotComputed(RotationError):
    """Correlation aggregate read before the first rotation cycle computed it."""

    def __init__(self, symbol: str = "") -> None:
        self.symbol = symbol
        super().__init__(f"Correlation not computed yet{f' for {symbol}' if symbol else ''}")
