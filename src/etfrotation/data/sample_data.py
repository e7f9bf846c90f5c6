"""
Sample bar data for testing and replays.

Produces consolidated period bars (as ``BarEvent``s) with configurable
trend and volatility, or from explicit close series, with no external data
needed.
"""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta
from typing import Iterable

from etfrotation.models.types import BarEvent

DEFAULT_START = datetime(2007, 1, 1)


def bars_from_closes(
    symbol: str,
    closes: Iterable[float],
    start: datetime = DEFAULT_START,
    resolution: timedelta = timedelta(days=1),
) -> list[BarEvent]:
    """Wrap a close series into contiguous bar events.

    Bar ``k`` ends at ``start + (k + 1) * resolution`` and is delivered one
    resolution after it closes, which is what the update gate expects.
    """
    events: list[BarEvent] = []
    for k, close in enumerate(closes):
        end_time = start + (k + 1) * resolution
        events.append(BarEvent(
            symbol=symbol,
            timestamp=end_time + resolution,
            close=float(close),
            end_time=end_time,
        ))
    return events


def generate_bars(
    symbol: str,
    n: int = 250,
    start_price: float = 100.0,
    volatility: float = 0.01,
    trend: float = 0.0003,
    start: datetime = DEFAULT_START,
    resolution: timedelta = timedelta(days=1),
    seed: int | None = 42,
) -> list[BarEvent]:
    """Generate a geometric random walk of closes.

    Args:
        symbol: Instrument symbol.
        n: Number of bars.
        start_price: Price before the first bar.
        volatility: Per-bar standard deviation of log returns.
        trend: Drift per bar (+ve = uptrend, -ve = downtrend).
        start: Start time of the first bar.
        resolution: Bar length.
        seed: Random seed for reproducibility.
    """
    rng = random.Random(seed)
    closes: list[float] = []
    price = start_price
    for _ in range(n):
        price *= math.exp(trend + volatility * rng.gauss(0, 1))
        closes.append(round(price, 4))
    return bars_from_closes(symbol, closes, start=start, resolution=resolution)


def interleave(*series: list[BarEvent]) -> list[BarEvent]:
    """Merge per-symbol event lists into one time-ordered stream.

    Events with the same timestamp keep the order of ``series``.
    """
    merged = [event for events in series for event in events]
    return sorted(merged, key=lambda e: e.timestamp)
