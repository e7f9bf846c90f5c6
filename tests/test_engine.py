"""
Integration tests for the RotationEngine: gating, scheduling, error
reporting and the end-to-end rotation scenarios.
"""

import math
from datetime import datetime, timedelta

import pytest

from etfrotation.config import RotationConfig
from etfrotation.data.sample_data import DEFAULT_START, bars_from_closes, generate_bars, interleave
from etfrotation.errors import (
    ConfigError,
    DegenerateVolatility,
    InsufficientHistory,
    StaleUpdate,
)
from etfrotation.models.enums import CycleOutcome, RotationAction
from etfrotation.models.types import BarEvent
from etfrotation.portfolio.universe import Universe
from etfrotation.rotation.engine import RotationEngine

DAY = timedelta(days=1)
PORTFOLIO_VALUE = 25_000.0


def _config(lookback=120, interval_days=28, **kwargs):
    return RotationConfig(
        growth_symbols=("A", "B"),
        safety_symbols=("C",),
        lookback_period=lookback,
        rotation_interval=timedelta(days=interval_days),
        bar_resolution=DAY,
        **kwargs,
    )


def _engine(config):
    return RotationEngine(config, portfolio_value=lambda: PORTFOLIO_VALUE)


def _run(engine, events):
    return [engine.on_bar_closed(event) for event in events]


def _stream(**closes):
    return interleave(*(bars_from_closes(symbol, series) for symbol, series in closes.items()))


# ─── Scenario price paths (120 bars) ───────────────────────────────────────────

N = 120
# A: gentle uptrend, low volatility, moves against B/C
A_UP = [100 + 0.02 * i + 0.3 * math.cos(i / 3) for i in range(N)]
# B: downtrend with a large swing; C is B scaled, so B and C are perfectly correlated
B_DOWN = [100 - 0.1 * i + 4 * math.sin(i / 5) for i in range(N)]
C_DOWN = [b / 2 for b in B_DOWN]
# All three falling
A_FALL = [100 - 0.05 * i + math.cos(i / 3) for i in range(N)]
C_FALL = [80 - 0.08 * i + 2 * math.sin(i / 7) for i in range(N)]


class TestRotationScenarios:
    def test_selects_high_momentum_low_correlation_instrument(self):
        engine = _engine(_config())
        results = _run(engine, _stream(A=A_UP, B=B_DOWN, C=C_DOWN))

        completed = [r for r in results if r.completed]
        assert len(completed) == 1
        result = completed[0]

        assert result.decision.action == RotationAction.ROTATE
        assert result.decision.symbol == "A"
        assert result.decision.target_quantity == pytest.approx(PORTFOLIO_VALUE / A_UP[-1])

        report = result.report
        assert report.winner == "A"
        assert report.winner_return == pytest.approx(A_UP[-1] / A_UP[0] - 1)
        assert report.ranked[0] == ("A", pytest.approx(7.5))
        assert report.correlations["A"] < report.correlations["B"]

    def test_all_negative_momentum_liquidates(self):
        engine = _engine(_config())
        results = _run(engine, _stream(A=A_FALL, B=B_DOWN, C=C_FALL))

        completed = [r for r in results if r.completed]
        assert len(completed) == 1
        assert completed[0].decision.action == RotationAction.LIQUIDATE
        assert completed[0].report.winner_return <= 0
        assert engine.stats.liquidations == 1

    def test_all_negative_momentum_with_cash_proxy(self):
        engine = _engine(_config(cash_symbol="C"))
        results = _run(engine, _stream(A=A_FALL, B=B_DOWN, C=C_FALL))

        decision = [r for r in results if r.completed][0].decision
        assert decision.action == RotationAction.ROTATE
        assert decision.symbol == "C"
        assert decision.target_quantity == pytest.approx(PORTFOLIO_VALUE / C_FALL[-1])

    def test_short_history_emits_no_decision(self):
        engine = _engine(_config())
        # C starts trading 20 bars later but keeps pace with A and B from then on
        late_c = bars_from_closes("C", C_DOWN[20:], start=DEFAULT_START + 20 * DAY)
        events = interleave(bars_from_closes("A", A_UP), bars_from_closes("B", B_DOWN), late_c)
        results = _run(engine, events)

        assert not any(r.decision for r in results)
        insufficient = [r for r in results if r.outcome == CycleOutcome.INSUFFICIENT_HISTORY]
        assert insufficient
        error = insufficient[-1].errors[-1]
        assert isinstance(error, InsufficientHistory)
        assert error.symbols == ["C"]

        # neither the clock nor the gate was consumed
        first_timestamp = results[0].timestamp
        assert engine.scheduler.last_rotation_time == first_timestamp
        assert engine.gate.all_ready()
        assert engine.stats.cycles_completed == 0


# Five contiguous bars each: with lookback 5 and a 3-day interval the first
# cycle completes on C's fifth bar, the last event of the stream.
FIVE_BARS = {
    "A": [10.0, 10.4, 10.2, 10.9, 11.3],
    "B": [20.0, 19.5, 19.9, 19.1, 18.7],
    "C": [30.0, 30.2, 30.1, 30.6, 30.4],
}


class TestRotationGating:
    def test_first_event_warms_up(self):
        engine = _engine(_config(lookback=5, interval_days=3))
        result = engine.on_bar_closed(_stream(A=[1.0])[0])
        assert result.outcome == CycleOutcome.WARMING_UP
        assert result.decision is None

    def test_not_due_before_interval(self):
        engine = _engine(_config(lookback=2, interval_days=30))
        results = _run(engine, _stream(A=[1.0, 1.1, 1.2], B=[2.0, 2.1, 2.3], C=[3.0, 3.3, 3.1]))
        assert {r.outcome for r in results[1:]} == {CycleOutcome.NOT_DUE}

    def test_fires_once_when_due_and_ready(self):
        engine = _engine(_config(lookback=5, interval_days=3))
        results = _run(engine, _stream(**FIVE_BARS))
        outcomes = [r.outcome for r in results]

        # bar 4 of A and B: due, but the others have not delivered that bar yet
        assert outcomes[-3:] == [
            CycleOutcome.AWAITING_UPDATES,
            CycleOutcome.AWAITING_UPDATES,
            CycleOutcome.COMPLETED,
        ]
        assert outcomes.count(CycleOutcome.COMPLETED) == 1
        last = results[-1]
        assert engine.scheduler.last_rotation_time == last.timestamp
        assert not any(engine.gate.snapshot().values())

    def test_gate_blocks_until_every_instrument_updates(self):
        engine = _engine(_config(lookback=5, interval_days=3))
        _run(engine, _stream(**FIVE_BARS))
        assert engine.stats.cycles_completed == 1

        # Interval elapsed again but only A and B deliver fresh bars
        t = datetime(2007, 1, 21)
        results = [
            engine.on_bar_closed(BarEvent("A", t, 11.5, t - DAY)),
            engine.on_bar_closed(BarEvent("B", t, 18.9, t - DAY)),
        ]
        assert [r.outcome for r in results] == [CycleOutcome.AWAITING_UPDATES] * 2
        assert engine.gate.pending() == ["C"]

        result = engine.on_bar_closed(BarEvent("C", t, 30.7, t - DAY))
        assert result.outcome == CycleOutcome.COMPLETED
        assert engine.stats.cycles_completed == 2

    def test_every_cycle_sees_one_bar_date(self):
        engine = _engine(_config(lookback=10, interval_days=5))
        events = interleave(
            generate_bars("A", n=40, seed=11),
            generate_bars("B", n=40, seed=12),
            generate_bars("C", n=40, seed=13),
        )

        completed = 0
        for event in events:
            result = engine.on_bar_closed(event)
            if not result.completed:
                continue
            completed += 1
            ends = {s: engine.history.latest(s).end_time for s in engine.symbols}
            assert set(ends.values()) == {result.timestamp - DAY}, ends

            decision = result.decision
            if decision.action == RotationAction.ROTATE:
                close = engine.history.latest(decision.symbol).close
                assert decision.target_quantity == pytest.approx(PORTFOLIO_VALUE / close)

        assert completed >= 3
        assert engine.stats.cycles_completed == completed

    def test_ready_without_elapsed_time_does_not_fire(self):
        engine = _engine(_config(lookback=5, interval_days=3))
        _run(engine, _stream(**FIVE_BARS))
        rotated_at = engine.scheduler.last_rotation_time

        t = rotated_at + DAY
        results = [
            engine.on_bar_closed(BarEvent(s, t, p, t - DAY))
            for s, p in (("A", 11.5), ("B", 18.9), ("C", 30.7))
        ]
        assert engine.gate.all_ready()
        assert [r.outcome for r in results] == [CycleOutcome.NOT_DUE] * 3


class TestErrorReporting:
    def test_stale_bar_reported_and_not_marked(self):
        engine = _engine(_config(lookback=3, interval_days=3))
        t = datetime(2007, 1, 10)
        result = engine.on_bar_closed(BarEvent("A", t, 10.0, t - 4 * DAY))

        assert isinstance(result.errors[0], StaleUpdate)
        assert not engine.gate.is_ready("A")
        # the bar still enters the history
        assert engine.history.latest("A").close == 10.0
        assert engine.stats.stale_updates == 1

    def test_out_of_order_bar_not_appended(self):
        engine = _engine(_config(lookback=3, interval_days=3))
        t = datetime(2007, 1, 10)
        engine.on_bar_closed(BarEvent("A", t, 10.0, t - DAY))
        result = engine.on_bar_closed(BarEvent("A", t + DAY, 9.0, t - 2 * DAY))

        assert isinstance(result.errors[0], StaleUpdate)
        assert len(engine.history.window("A")) == 1
        assert engine.history.latest("A").close == 10.0

    def test_degenerate_volatility_excluded(self):
        engine = _engine(_config())
        flat = [50.0] * N
        results = _run(engine, _stream(A=A_UP, B=B_DOWN, C=flat))

        result = [r for r in results if r.completed][0]
        assert result.report.excluded == ["C"]
        assert [s for s, _ in result.report.ranked] == ["A", "B"]
        assert any(isinstance(e, DegenerateVolatility) for e in result.errors)
        assert result.decision.symbol == "A"
        assert not engine.factors.snapshot("C").correlation.computed

    def test_all_degenerate_holds(self):
        engine = _engine(_config(lookback=3, interval_days=2))
        results = _run(engine, _stream(A=[5.0] * 4, B=[7.0] * 4, C=[9.0] * 4))

        result = [r for r in results if r.completed][0]
        assert result.decision.action == RotationAction.HOLD
        assert result.report.excluded == ["A", "B", "C"]

    def test_fault_after_consumption_resets_gate(self):
        def broken_value():
            raise ZeroDivisionError("valuation unavailable")

        engine = RotationEngine(_config(lookback=5, interval_days=3), portfolio_value=broken_value)
        results = _run(engine, _stream(**FIVE_BARS))

        faulted = [r for r in results if r.outcome == CycleOutcome.FAULTED]
        assert len(faulted) == 1
        assert isinstance(faulted[0].fault, ZeroDivisionError)
        assert engine.stats.cycles_faulted == 1
        assert not any(engine.gate.snapshot().values())
        assert engine.scheduler.last_rotation_time == faulted[0].timestamp
        # history untouched by the fault
        assert engine.history.is_full("A")

    def test_lookup_error_mid_cycle_is_contained(self):
        def missing_account():
            raise KeyError("account")

        engine = RotationEngine(_config(lookback=5, interval_days=3), portfolio_value=missing_account)
        results = _run(engine, _stream(**FIVE_BARS))

        faulted = [r for r in results if r.outcome == CycleOutcome.FAULTED]
        assert len(faulted) == 1
        assert isinstance(faulted[0].fault, KeyError)
        assert faulted[0].decision is None


class TestEngineConstruction:
    def test_cash_symbol_outside_custom_universe(self):
        config = _config(cash_symbol="C")
        with pytest.raises(ConfigError):
            RotationEngine(config, universe=Universe.from_symbols(["A", "B"]))

    def test_default_engine_uses_settings_universe(self):
        engine = RotationEngine()
        assert engine.symbols == ["MDY", "IEV", "EEM", "ILF", "EPP", "EDV", "SHY"]
        assert engine.config.lookback_period == 120
