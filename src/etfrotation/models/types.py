"""Core data types (dataclasses) used throughout the rotation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from etfrotation.errors import CorrelationNotComputed, RotationError
from etfrotation.models.enums import (
    CycleOutcome,
    InstrumentClass,
    RotationAction,
    TradeSide,
)


# ─── Universe & Market Data ────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Instrument:
    """Tradable instrument with its static universe classification."""

    symbol: str
    instrument_class: InstrumentClass = InstrumentClass.GROWTH


@dataclass(slots=True)
class Bar:
    """Consolidated period bar (only ``close`` and ``end_time`` are required)."""

    symbol: str
    time: datetime
    end_time: datetime
    close: float
    open: float | None = None
    high: float | None = None
    low: float | None = None
    volume: float = 0.0


@dataclass(slots=True)
class BarEvent:
    """Bar-closed notification delivered by the consolidation collaborator."""

    symbol: str
    timestamp: datetime
    close: float
    end_time: datetime

    def to_bar(self, start_time: datetime | None = None) -> Bar:
        return Bar(
            symbol=self.symbol,
            time=start_time or self.end_time,
            end_time=self.end_time,
            close=self.close,
        )


# ─── Factors ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CorrelationScore:
    """Aggregate correlation, explicitly "not computed" before the first cycle.

    Use ``CorrelationScore.not_computed()`` / ``CorrelationScore.of(x)``;
    reading ``value`` on the former raises ``CorrelationNotComputed``.
    """

    _value: float | None = None

    @classmethod
    def not_computed(cls) -> CorrelationScore:
        return cls(None)

    @classmethod
    def of(cls, value: float) -> CorrelationScore:
        return cls(float(value))

    @property
    def computed(self) -> bool:
        return self._value is not None

    @property
    def value(self) -> float:
        if self._value is None:
            raise CorrelationNotComputed()
        return self._value


@dataclass
class FactorSnapshot:
    """Latest per-instrument factor values."""

    symbol: str
    momentum: float = 0.0
    volatility: float = 0.0
    weighted_return: float = 0.0
    correlation: CorrelationScore = field(default_factory=CorrelationScore.not_computed)
    ready: bool = False

    @property
    def inverse_volatility(self) -> float:
        return 1.0 / self.volatility


# ─── Scoring & Decisions ───────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class ScoreEntry:
    """One row of the per-cycle score board."""

    symbol: str
    score: float
    return_rank: float
    volatility_rank: float
    correlation_rank: float


@dataclass(frozen=True)
class RotationDecision:
    """Allocation decision handed to the execution collaborator."""

    action: RotationAction
    symbol: str | None = None
    target_quantity: float = 0.0
    reason: str = ""

    @classmethod
    def hold(cls, reason: str = "") -> RotationDecision:
        return cls(RotationAction.HOLD, reason=reason)

    @classmethod
    def liquidate(cls, reason: str = "") -> RotationDecision:
        return cls(RotationAction.LIQUIDATE, reason=reason)

    @classmethod
    def rotate(cls, symbol: str, target_quantity: float, reason: str = "") -> RotationDecision:
        return cls(RotationAction.ROTATE, symbol=symbol, target_quantity=target_quantity, reason=reason)


@dataclass
class CycleReport:
    """Diagnostics of one completed rotation cycle, for logging or plotting."""

    timestamp: datetime
    scores: list[ScoreEntry] = field(default_factory=list)
    winner: str | None = None
    winner_return: float | None = None
    excluded: list[str] = field(default_factory=list)
    correlations: dict[str, float] = field(default_factory=dict)

    @property
    def ranked(self) -> list[tuple[str, float]]:
        """(symbol, score) pairs, best first."""
        return [(entry.symbol, entry.score) for entry in self.scores]


@dataclass
class CycleResult:
    """Outcome of processing a single bar event."""

    outcome: CycleOutcome
    timestamp: datetime
    decision: RotationDecision | None = None
    report: CycleReport | None = None
    errors: list[RotationError] = field(default_factory=list)
    fault: Exception | None = None

    @property
    def completed(self) -> bool:
        return self.outcome == CycleOutcome.COMPLETED


# ─── Execution ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class OrderIntent:
    """Market order the execution collaborator should place."""

    symbol: str
    side: TradeSide
    quantity: float
    tag: str = "rotation"
