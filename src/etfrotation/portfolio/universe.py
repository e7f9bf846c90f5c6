"""
Universe definitions for rotation.

A universe is the ordered union of growth instruments (rotated into when
momentum is healthy) and safety instruments (typically treasuries). The
order is significant: it is the deterministic tie-break order for ranking.
"""

from __future__ import annotations

from typing import Iterable

from etfrotation.config import RotationConfig
from etfrotation.errors import ConfigError
from etfrotation.models.enums import InstrumentClass
from etfrotation.models.types import Instrument


class Universe:
    """Ordered, immutable set of instruments."""

    def __init__(self, instruments: Iterable[Instrument]):
        self._instruments = tuple(instruments)
        symbols = [i.symbol for i in self._instruments]
        if not symbols:
            raise ConfigError("Universe must contain at least one instrument")
        if len(set(symbols)) != len(symbols):
            raise ConfigError(f"Duplicate symbols in universe: {symbols}")
        self._by_symbol = {i.symbol: i for i in self._instruments}

    @classmethod
    def from_symbols(cls, growth: Iterable[str], safety: Iterable[str] = ()) -> Universe:
        return cls(
            [Instrument(s, InstrumentClass.GROWTH) for s in growth]
            + [Instrument(s, InstrumentClass.SAFETY) for s in safety]
        )

    @classmethod
    def from_config(cls, config: RotationConfig) -> Universe:
        return cls.from_symbols(config.growth_symbols, config.safety_symbols)

    @property
    def symbols(self) -> list[str]:
        return [i.symbol for i in self._instruments]

    @property
    def instruments(self) -> tuple[Instrument, ...]:
        return self._instruments

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._by_symbol

    def __len__(self) -> int:
        return len(self._instruments)

    def get(self, symbol: str) -> Instrument:
        return self._by_symbol[symbol]

    def classify(self, symbol: str) -> InstrumentClass:
        return self._by_symbol[symbol].instrument_class

    def get_symbols_by_class(self, instrument_class: InstrumentClass) -> list[str]:
        return [i.symbol for i in self._instruments if i.instrument_class == instrument_class]
