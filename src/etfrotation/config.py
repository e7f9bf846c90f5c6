"""
Central configuration for the ETF rotation engine.

Settings are loaded from environment variables (or a ``.env`` file) with
sensible defaults. ``RotationConfig`` is the immutable, construction-time
view that the engine actually consumes; it is never reloaded at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Callable

from pydantic import Field
from pydantic_settings import BaseSettings

from etfrotation.errors import ConfigError
from etfrotation.models.enums import RankMethod


# Global ETF rotation defaults: US mid cap, Europe, emerging markets, Latin
# America and Pacific ex-Japan, with long and short duration treasuries.
DEFAULT_GROWTH_SYMBOLS = ("MDY", "IEV", "EEM", "ILF", "EPP")
DEFAULT_SAFETY_SYMBOLS = ("EDV", "SHY")


class Environment(str, Enum):
    DEVELOPMENT = "development"
    BACKTEST = "backtest"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Environment ---
    env: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"

    # --- Universe ---
    growth_symbols: list[str] = Field(default_factory=lambda: list(DEFAULT_GROWTH_SYMBOLS))
    safety_symbols: list[str] = Field(default_factory=lambda: list(DEFAULT_SAFETY_SYMBOLS))
    cash_symbol: str | None = None  # e.g. "SHY" to park in a cash ETF instead of liquidating

    # --- Windows & Timing ---
    lookback_period: int = Field(default=120, ge=2)
    rotation_interval_days: int = Field(default=28, ge=0)
    bar_resolution_days: int = Field(default=1, ge=1)

    # --- Factor Weights ---
    weight_return: float = Field(default=1.0, ge=0.0)
    weight_volatility: float = Field(default=1.0, ge=0.0)
    weight_correlation: float = Field(default=0.5, ge=0.0)
    correlation_offset: float = 2.0  # penalty = offset - aggregate correlation

    # --- Ranking & Guards ---
    rank_method: RankMethod = RankMethod.ORDINAL
    min_volatility: float = Field(default=1e-8, ge=0.0)

    # --- Paper Account ---
    initial_capital: float = Field(default=25_000.0, gt=0.0)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def offset_penalty(offset: float) -> Callable[[float], float]:
    """Build a correlation penalty ``offset - aggregate`` (higher is better)."""

    def penalty(aggregate: float) -> float:
        return offset - aggregate

    return penalty


@dataclass(frozen=True)
class RotationConfig:
    """Immutable engine configuration, supplied once at construction."""

    growth_symbols: tuple[str, ...] = DEFAULT_GROWTH_SYMBOLS
    safety_symbols: tuple[str, ...] = DEFAULT_SAFETY_SYMBOLS
    lookback_period: int = 120
    rotation_interval: timedelta = timedelta(days=28)
    bar_resolution: timedelta = timedelta(days=1)
    weight_return: float = 1.0
    weight_volatility: float = 1.0
    weight_correlation: float = 0.5
    correlation_penalty: Callable[[float], float] = field(
        default_factory=lambda: offset_penalty(2.0)
    )
    rank_method: RankMethod = RankMethod.ORDINAL
    min_volatility: float = 1e-8
    cash_symbol: str | None = None
    # horizon (bars) -> weight; None means a single horizon equal to the lookback
    momentum_horizons: dict[int, float] | None = None

    def __post_init__(self) -> None:
        self.validate()

    @property
    def symbols(self) -> tuple[str, ...]:
        """Growth symbols followed by safety symbols, in configuration order."""
        return self.growth_symbols + self.safety_symbols

    @property
    def horizons(self) -> dict[int, float]:
        if self.momentum_horizons is None:
            return {self.lookback_period: 100.0}
        return dict(self.momentum_horizons)

    def validate(self) -> None:
        symbols = self.symbols
        if not symbols:
            raise ConfigError("Universe must contain at least one instrument")
        if len(set(symbols)) != len(symbols):
            raise ConfigError(f"Duplicate symbols in universe: {symbols}")
        if self.lookback_period < 2:
            raise ConfigError("lookback_period must be at least 2")
        if self.bar_resolution <= timedelta(0):
            raise ConfigError("bar_resolution must be positive")
        if self.rotation_interval < timedelta(0):
            raise ConfigError("rotation_interval must not be negative")
        for name in ("weight_return", "weight_volatility", "weight_correlation"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        if self.min_volatility < 0:
            raise ConfigError("min_volatility must not be negative")
        if self.cash_symbol is not None and self.cash_symbol not in symbols:
            raise ConfigError(f"cash_symbol {self.cash_symbol!r} is not in the universe")
        horizons = self.horizons
        if not horizons or sum(horizons.values()) <= 0:
            raise ConfigError("momentum_horizons must carry a positive total weight")
        for horizon, weight in horizons.items():
            if not 2 <= horizon <= self.lookback_period:
                raise ConfigError(
                    f"Momentum horizon {horizon} outside [2, {self.lookback_period}]"
                )
            if weight < 0:
                raise ConfigError(f"Momentum horizon {horizon} has a negative weight")

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> RotationConfig:
        """Snapshot the environment-driven settings into an engine config."""
        s = source or settings
        return cls(
            growth_symbols=tuple(s.growth_symbols),
            safety_symbols=tuple(s.safety_symbols),
            lookback_period=s.lookback_period,
            rotation_interval=timedelta(days=s.rotation_interval_days),
            bar_resolution=timedelta(days=s.bar_resolution_days),
            weight_return=s.weight_return,
            weight_volatility=s.weight_volatility,
            weight_correlation=s.weight_correlation,
            correlation_penalty=offset_penalty(s.correlation_offset),
            rank_method=s.rank_method,
            min_volatility=s.min_volatility,
            cash_symbol=s.cash_symbol,
        )


# Singleton settings instance
settings = Settings()
