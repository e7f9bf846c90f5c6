"""
Rotation Engine — the event-driven orchestrator.

Each closed bar:
1. Append to the instrument's rolling window
2. Refresh momentum / volatility
3. Mark the update gate (contiguous bars only)
4. If the rotation interval elapsed and every instrument delivered the bar
   that closed at this epoch:
   a. verify every window is full
   b. consume the gate and advance the scheduler
   c. exclude degenerate-volatility instruments
   d. correlation -> rank scoring -> decision

A cycle either completes or is skipped; failures are reported on the
returned ``CycleResult`` and never terminate the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from etfrotation.config import RotationConfig, settings
from etfrotation.errors import (
    ConfigError,
    DegenerateVolatility,
    InsufficientHistory,
    RotationError,
    StaleUpdate,
)
from etfrotation.factors.computer import FactorComputer
from etfrotation.history.rolling import RollingHistoryStore
from etfrotation.models.enums import CycleOutcome, RotationAction
from etfrotation.models.types import (
    BarEvent,
    CycleReport,
    CycleResult,
    RotationDecision,
)
from etfrotation.portfolio.universe import Universe
from etfrotation.rotation.correlation import CorrelationEngine
from etfrotation.rotation.decision import DecisionEngine
from etfrotation.rotation.gate import UpdateGate
from etfrotation.rotation.ranking import RankScorer
from etfrotation.rotation.scheduler import RotationScheduler

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    """Running counters for the rotation engine."""

    bars_processed: int = 0
    stale_updates: int = 0
    cycles_completed: int = 0
    cycles_insufficient: int = 0
    cycles_faulted: int = 0
    degenerate_exclusions: int = 0
    rotations: int = 0
    liquidations: int = 0
    holds: int = 0

    def record_decision(self, decision: RotationDecision) -> None:
        self.cycles_completed += 1
        if decision.action == RotationAction.ROTATE:
            self.rotations += 1
        elif decision.action == RotationAction.LIQUIDATE:
            self.liquidations += 1
        else:
            self.holds += 1


class RotationEngine:
    """Multi-factor single-winner rotation engine.

    Usage:
        engine = RotationEngine(RotationConfig.from_settings(), portfolio_value=account.total_value)
        for event in bar_events:
            result = engine.on_bar_closed(event)
            if result.decision:
                execute(result.decision)
    """

    def __init__(
        self,
        config: RotationConfig | None = None,
        universe: Universe | None = None,
        portfolio_value: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or RotationConfig.from_settings()
        self.universe = universe or Universe.from_config(self.config)
        self.symbols = self.universe.symbols
        if self.config.cash_symbol is not None and self.config.cash_symbol not in self.universe:
            raise ConfigError(f"cash_symbol {self.config.cash_symbol!r} is not in the universe")

        self._portfolio_value = portfolio_value or (lambda: settings.initial_capital)

        # Components
        self.history = RollingHistoryStore(self.symbols, self.config.lookback_period)
        self.factors = FactorComputer(
            self.symbols,
            self.config.lookback_period,
            horizons=self.config.horizons,
            min_volatility=self.config.min_volatility,
        )
        self.gate = UpdateGate(self.symbols, self.config.bar_resolution)
        self.scheduler = RotationScheduler(self.config.rotation_interval)
        self.correlation = CorrelationEngine(self.config.lookback_period)
        self.scorer = RankScorer(
            weight_return=self.config.weight_return,
            weight_volatility=self.config.weight_volatility,
            weight_correlation=self.config.weight_correlation,
            correlation_penalty=self.config.correlation_penalty,
            method=self.config.rank_method,
        )
        self.decider = DecisionEngine(cash_symbol=self.config.cash_symbol)

        # State
        self.stats = EngineStats()
        self.last_report: CycleReport | None = None
        self._prices: dict[str, float] = {}

    # ─── Event Entry Point ─────────────────────────────────────────────────

    def on_bar_closed(self, event: BarEvent) -> CycleResult:
        """Process one consolidated bar and run a rotation cycle if one is due."""
        self.stats.bars_processed += 1
        errors: list[RotationError] = []

        latest = self.history.latest(event.symbol)
        if latest is not None and event.end_time <= latest.end_time:
            # Out-of-order bar: keep the window chronological
            stale = StaleUpdate(event.symbol, event.end_time, event.timestamp - self.config.bar_resolution)
            self._record_stale(stale, errors)
        else:
            bar = event.to_bar(start_time=event.end_time - self.config.bar_resolution)
            self.history.append(event.symbol, bar)
            self.factors.update(event.symbol, bar, self.history.window(event.symbol))
            self._prices[event.symbol] = event.close
            try:
                self.gate.mark_updated(event.symbol, event.timestamp, bar.end_time)
            except StaleUpdate as exc:
                self._record_stale(exc, errors)

        return self.evaluate(event.timestamp, errors)

    def evaluate(self, timestamp: datetime, errors: list[RotationError] | None = None) -> CycleResult:
        """Run a rotation cycle at ``timestamp`` if the scheduler and gate allow it."""
        errors = errors if errors is not None else []

        if self.scheduler.observe(timestamp):
            logger.info("Rotation clock started at %s", timestamp)
            return CycleResult(CycleOutcome.WARMING_UP, timestamp, errors=errors)

        if not self.scheduler.due_for_rotation(timestamp):
            return CycleResult(CycleOutcome.NOT_DUE, timestamp, errors=errors)

        if not self.gate.all_ready(timestamp):
            logger.debug("Rotation due, waiting on: %s", self.gate.pending(timestamp))
            return CycleResult(CycleOutcome.AWAITING_UPDATES, timestamp, errors=errors)

        missing = self.history.missing(self.symbols)
        if missing:
            exc = InsufficientHistory(missing)
            self.stats.cycles_insufficient += 1
            logger.warning("Rotation skipped: %s", exc)
            errors.append(exc)
            return CycleResult(CycleOutcome.INSUFFICIENT_HISTORY, timestamp, errors=errors)

        # Past this point the gate is consumed and the clock advanced, even on a fault
        self.gate.consume(timestamp)
        self.scheduler.advance(timestamp)

        try:
            decision, report = self._run_cycle(timestamp, errors)
        except (ArithmeticError, LookupError, TypeError, ValueError, RotationError) as exc:
            self.stats.cycles_faulted += 1
            logger.error("Rotation cycle at %s abandoned: %s", timestamp, exc, exc_info=True)
            return CycleResult(CycleOutcome.FAULTED, timestamp, errors=errors, fault=exc)

        self.stats.record_decision(decision)
        self.last_report = report
        return CycleResult(
            CycleOutcome.COMPLETED, timestamp, decision=decision, report=report, errors=errors
        )

    # ─── Cycle ─────────────────────────────────────────────────────────────

    def _run_cycle(
        self, timestamp: datetime, errors: list[RotationError]
    ) -> tuple[RotationDecision, CycleReport]:
        eligible: list[str] = []
        excluded: list[str] = []
        for symbol in self.symbols:
            try:
                self.factors.check_volatility(symbol)
            except DegenerateVolatility as exc:
                self.stats.degenerate_exclusions += 1
                logger.warning("Excluded from cycle: %s", exc)
                errors.append(exc)
                excluded.append(symbol)
            else:
                eligible.append(symbol)

        correlations = self.correlation.compute(self.history, eligible) if eligible else {}
        for symbol, aggregate in correlations.items():
            self.factors.set_correlation(symbol, aggregate)

        snapshots = {symbol: self.factors.snapshot(symbol) for symbol in eligible}
        scores = self.scorer.score(eligible, snapshots)
        decision = self.decider.decide(scores, snapshots, self._portfolio_value(), self._prices)

        report = CycleReport(
            timestamp=timestamp,
            scores=scores,
            winner=scores[0].symbol if scores else None,
            winner_return=snapshots[scores[0].symbol].weighted_return if scores else None,
            excluded=excluded,
            correlations=correlations,
        )

        for entry in scores:
            logger.info("SCORE %s %.2f", entry.symbol, entry.score)
        if report.winner is not None:
            logger.info(
                "Best %s return %.2f%% -> %s %s",
                report.winner, 100 * report.winner_return, decision.action.value, decision.symbol or "CASH",
            )
        return decision, report

    # ─── Helpers ───────────────────────────────────────────────────────────

    def _record_stale(self, exc: StaleUpdate, errors: list[RotationError]) -> None:
        self.stats.stale_updates += 1
        logger.warning("Gate not marked: %s", exc)
        errors.append(exc)
