"""Core enums used throughout the rotation engine."""

from __future__ import annotations

from enum import Enum


# ─── Universe ──────────────────────────────────────────────────────────────────


class InstrumentClass(str, Enum):
    """Which side of the universe an instrument belongs to."""

    GROWTH = "GROWTH"
    SAFETY = "SAFETY"


# ─── Decisions ─────────────────────────────────────────────────────────────────


class RotationAction(str, Enum):
    """Output of a completed rotation cycle."""

    HOLD = "HOLD"
    ROTATE = "ROTATE"
    LIQUIDATE = "LIQUIDATE"


class CycleOutcome(str, Enum):
    """What happened to the rotation cycle on a given bar event."""

    WARMING_UP = "WARMING_UP"              # first event seen, scheduler initialised
    NOT_DUE = "NOT_DUE"                    # interval has not elapsed
    AWAITING_UPDATES = "AWAITING_UPDATES"  # gate not fully satisfied
    INSUFFICIENT_HISTORY = "INSUFFICIENT_HISTORY"
    COMPLETED = "COMPLETED"
    FAULTED = "FAULTED"


# ─── Ranking ───────────────────────────────────────────────────────────────────


class RankMethod(str, Enum):
    """How tied factor values are ranked."""

    ORDINAL = "ordinal"  # ties broken by universe order, earlier ranks higher
    AVERAGE = "average"  # ties share the mean of their ordinal positions


# ─── Execution ─────────────────────────────────────────────────────────────────


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
