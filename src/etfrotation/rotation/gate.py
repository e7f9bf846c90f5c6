"""
Readiness barrier that synchronises per-instrument bar arrival.

A rotation may only consume the gate once every instrument has delivered a
fresh, contiguous bar since the previous rotation, and every one of those
bars closed at the same decision epoch.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from etfrotation.errors import StaleUpdate


class UpdateGate:
    """All-or-nothing readiness flags, one per instrument.

    Each flag remembers the end time of the bar that set it, so a flag set
    on an earlier bar does not count as ready at a later evaluation time.
    """

    def __init__(self, symbols: Iterable[str], bar_resolution: timedelta) -> None:
        self.bar_resolution = bar_resolution
        self._marked: dict[str, datetime | None] = {symbol: None for symbol in symbols}

    def mark_updated(self, symbol: str, timestamp: datetime, latest_end_time: datetime | None) -> None:
        """Flag ``symbol`` as updated if its latest bar just closed.

        Raises:
            StaleUpdate: the latest bar's end time is not ``timestamp - bar_resolution``.
                The flag is left unchanged.
            KeyError: ``symbol`` is not tracked.
        """
        if symbol not in self._marked:
            raise KeyError(symbol)
        expected = timestamp - self.bar_resolution
        if latest_end_time is None or latest_end_time != expected:
            raise StaleUpdate(symbol, latest_end_time, expected)
        self._marked[symbol] = latest_end_time

    def is_ready(self, symbol: str, timestamp: datetime | None = None) -> bool:
        """True if ``symbol`` is flagged; with ``timestamp``, only for the bar that just closed."""
        marked = self._marked[symbol]
        if marked is None:
            return False
        return timestamp is None or marked == timestamp - self.bar_resolution

    def all_ready(self, timestamp: datetime | None = None) -> bool:
        return all(self.is_ready(symbol, timestamp) for symbol in self._marked)

    def pending(self, timestamp: datetime | None = None) -> list[str]:
        """Instruments still waiting for a fresh update."""
        return [symbol for symbol in self._marked if not self.is_ready(symbol, timestamp)]

    def reset(self) -> None:
        # Rebuild in one assignment so no partially reset state is observable
        self._marked = dict.fromkeys(self._marked)

    def consume(self, timestamp: datetime | None = None) -> bool:
        """Reset and return True if every instrument is ready, else leave untouched."""
        if not self.all_ready(timestamp):
            return False
        self.reset()
        return True

    def snapshot(self) -> dict[str, bool]:
        return {symbol: marked is not None for symbol, marked in self._marked.items()}
