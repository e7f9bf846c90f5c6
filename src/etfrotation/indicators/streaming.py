"""
Streaming window indicators — O(1) per bar update.

Each indicator keeps its own window and running sums so that a new bar
needs only a constant-time update, not a full O(N) recalculation.
"""

from __future__ import annotations

import collections
import math


class StreamingMomentum:
    """Ratio change across the window: ``newest / oldest - 1``.

    Ready once ``period`` values have been seen.
    """

    __slots__ = ("period", "_buffer")

    def __init__(self, period: int) -> None:
        self.period = period
        self._buffer: collections.deque[float] = collections.deque(maxlen=period)

    def update(self, price: float) -> float:
        self._buffer.append(price)
        return self.value

    @property
    def ready(self) -> bool:
        return len(self._buffer) == self.period

    @property
    def value(self) -> float:
        if len(self._buffer) < 2 or self._buffer[0] <= 0:
            return 0.0
        return self._buffer[-1] / self._buffer[0] - 1.0


class StreamingStdDev:
    """Sample standard deviation (n - 1) over a sliding window.

    Running sums are taken around the first price seen so that a flat
    window yields exactly zero.
    """

    __slots__ = ("period", "_buffer", "_shift", "_sum", "_sum_sq")

    def __init__(self, period: int) -> None:
        self.period = period
        self._buffer: collections.deque[float] = collections.deque(maxlen=period)
        self._shift: float | None = None
        self._sum: float = 0.0
        self._sum_sq: float = 0.0

    def update(self, price: float) -> float:
        if self._shift is None:
            self._shift = price
        if len(self._buffer) == self.period:
            old = self._buffer[0] - self._shift
            self._sum -= old
            self._sum_sq -= old * old
        self._buffer.append(price)
        delta = price - self._shift
        self._sum += delta
        self._sum_sq += delta * delta
        return self.value

    @property
    def ready(self) -> bool:
        return len(self._buffer) == self.period

    @property
    def value(self) -> float:
        n = len(self._buffer)
        if n < 2:
            return 0.0
        variance = (self._sum_sq - self._sum * self._sum / n) / (n - 1)
        return math.sqrt(max(variance, 0.0))
