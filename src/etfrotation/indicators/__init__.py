"""Indicators package."""

from etfrotation.indicators.streaming import (  # noqa: F401
    StreamingMomentum,
    StreamingStdDev,
)
