"""
Rotation decision pipeline.
Synchronises bar arrival, scores instruments by ranked factors and decides the allocation.
"""

from .correlation import CorrelationEngine
from .decision import DecisionEngine
from .engine import EngineStats, RotationEngine
from .gate import UpdateGate
from .ranking import RankScorer, default_correlation_penalty, rank
from .scheduler import RotationScheduler

__all__ = [
    "CorrelationEngine",
    "DecisionEngine",
    "EngineStats",
    "RotationEngine",
    "UpdateGate",
    "RankScorer",
    "default_correlation_penalty",
    "rank",
    "RotationScheduler",
]
