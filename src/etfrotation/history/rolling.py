"""
Fixed-capacity rolling windows of period bars, one per instrument.

Index 0 is always the newest bar; the oldest bar is evicted when a new one
is inserted into a full window.
"""

from __future__ import annotations

import collections
from typing import Generic, Iterable, Iterator, TypeVar

from etfrotation.errors import InsufficientHistory
from etfrotation.models.types import Bar

T = TypeVar("T")


class RollingWindow(Generic[T]):
    """Newest-first ring buffer with a fixed capacity."""

    __slots__ = ("size", "_items")

    def __init__(self, size: int) -> None:
        if size < 1:
            raise ValueError("RollingWindow size must be positive")
        self.size = size
        self._items: collections.deque[T] = collections.deque(maxlen=size)

    def add(self, item: T) -> None:
        self._items.appendleft(item)

    def __getitem__(self, index: int) -> T:
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    def oldest_first(self) -> list[T]:
        return list(reversed(self._items))

    @property
    def is_ready(self) -> bool:
        return len(self._items) == self.size


class RollingHistoryStore:
    """Per-instrument rolling windows of closed bars.

    The set of instruments is fixed at construction; appending a bar for
    an unknown symbol raises ``KeyError``.
    """

    def __init__(self, symbols: Iterable[str], lookback: int) -> None:
        self.lookback = lookback
        self._windows: dict[str, RollingWindow[Bar]] = {
            symbol: RollingWindow(lookback) for symbol in symbols
        }

    @property
    def symbols(self) -> list[str]:
        return list(self._windows)

    def window(self, symbol: str) -> RollingWindow[Bar]:
        return self._windows[symbol]

    def append(self, symbol: str, bar: Bar) -> None:
        self._windows[symbol].add(bar)

    def is_full(self, symbol: str) -> bool:
        return self._windows[symbol].is_ready

    def latest(self, symbol: str) -> Bar | None:
        window = self._windows[symbol]
        return window[0] if len(window) else None

    def missing(self, symbols: Iterable[str]) -> list[str]:
        """Symbols whose window is not yet full."""
        return [s for s in symbols if not self._windows[s].is_ready]

    def aligned_matrix(self, symbols: list[str], n: int | None = None) -> list[list[float]]:
        """Return an n x len(symbols) matrix of closes, oldest row first.

        Raises:
            InsufficientHistory: if any requested window is not full.
        """
        n = self.lookback if n is None else n
        if n > self.lookback:
            raise ValueError(f"Requested {n} rows but windows hold {self.lookback}")

        missing = self.missing(symbols)
        if missing:
            raise InsufficientHistory(missing)

        columns = [self._windows[s].oldest_first()[-n:] for s in symbols]
        return [[column[row].close for column in columns] for row in range(n)]
