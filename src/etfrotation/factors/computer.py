"""
Per-instrument factor computation.

Momentum and volatility are streaming window statistics updated on every
appended bar. The weighted (absolute) return that ranking and the safety
gate read blends momentum over one or more horizons: the full-lookback
horizon is the streaming momentum, shorter horizons are read from the
rolling window.
"""

from __future__ import annotations

from typing import Iterable

from etfrotation.errors import DegenerateVolatility
from etfrotation.history.rolling import RollingWindow
from etfrotation.indicators.streaming import StreamingMomentum, StreamingStdDev
from etfrotation.models.types import Bar, CorrelationScore, FactorSnapshot


class FactorComputer:
    """Maintains a ``FactorSnapshot`` per instrument.

    Usage:
        factors = FactorComputer(["SPY", "TLT"], lookback=120)
        snap = factors.update("SPY", bar, store.window("SPY"))
    """

    def __init__(
        self,
        symbols: Iterable[str],
        lookback: int,
        horizons: dict[int, float] | None = None,
        min_volatility: float = 1e-8,
    ) -> None:
        self.lookback = lookback
        self.horizons = horizons or {lookback: 100.0}
        self.min_volatility = min_volatility
        self._momentum: dict[str, StreamingMomentum] = {}
        self._stddev: dict[str, StreamingStdDev] = {}
        self._snapshots: dict[str, FactorSnapshot] = {}
        for symbol in symbols:
            self._momentum[symbol] = StreamingMomentum(lookback)
            self._stddev[symbol] = StreamingStdDev(lookback)
            self._snapshots[symbol] = FactorSnapshot(symbol=symbol)

    def update(self, symbol: str, bar: Bar, window: RollingWindow[Bar]) -> FactorSnapshot:
        """Feed the bar just appended to ``window`` and refresh the snapshot."""
        momentum = self._momentum[symbol]
        stddev = self._stddev[symbol]
        momentum.update(bar.close)
        stddev.update(bar.close)

        snap = self._snapshots[symbol]
        snap.momentum = momentum.value
        snap.volatility = stddev.value
        snap.weighted_return = self._weighted_return(momentum, window)
        snap.ready = momentum.ready and stddev.ready and window.is_ready
        return snap

    def _weighted_return(self, momentum: StreamingMomentum, window: RollingWindow[Bar]) -> float:
        total_weight = 0.0
        weighted = 0.0
        for horizon, weight in self.horizons.items():
            if len(window) < horizon:
                continue
            if horizon == self.lookback:
                # Full-window leg is the streaming momentum itself
                leg = momentum.value
            else:
                oldest = window[horizon - 1].close
                if oldest <= 0:
                    continue
                leg = window[0].close / oldest - 1.0
            weighted += weight * leg
            total_weight += weight
        return weighted / total_weight if total_weight > 0 else 0.0

    def snapshot(self, symbol: str) -> FactorSnapshot:
        return self._snapshots[symbol]

    def is_ready(self, symbol: str) -> bool:
        return self._snapshots[symbol].ready

    def set_correlation(self, symbol: str, aggregate: float) -> None:
        self._snapshots[symbol].correlation = CorrelationScore.of(aggregate)

    def check_volatility(self, symbol: str) -> float:
        """Return the volatility, or raise if it is too small to invert."""
        volatility = self._snapshots[symbol].volatility
        if volatility <= self.min_volatility:
            raise DegenerateVolatility(symbol, volatility)
        return volatility
