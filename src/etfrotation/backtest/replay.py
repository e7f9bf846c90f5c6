"""
Replay — drives an ordered bar stream through the engine and a paper account.

Each cycle:
1. Update the account's price for the bar's symbol
2. Hand the bar to the rotation engine
3. Execute any decision on the paper account
4. Record the equity curve
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from etfrotation.config import RotationConfig, settings
from etfrotation.data.sample_data import generate_bars, interleave
from etfrotation.execution.paper import PaperFill, PaperRotationAccount
from etfrotation.models.enums import CycleOutcome
from etfrotation.models.types import BarEvent, CycleReport, RotationDecision
from etfrotation.rotation.engine import RotationEngine

logger = logging.getLogger(__name__)


@dataclass
class ReplayResult:
    """Everything a replay produced."""

    decisions: list[tuple[datetime, RotationDecision]] = field(default_factory=list)
    reports: list[CycleReport] = field(default_factory=list)
    fills: list[PaperFill] = field(default_factory=list)
    equity_curve: list[tuple[datetime, float]] = field(default_factory=list)
    outcomes: dict[CycleOutcome, int] = field(default_factory=dict)

    @property
    def final_value(self) -> float:
        return self.equity_curve[-1][1] if self.equity_curve else 0.0


def build_engine(
    config: RotationConfig, account: PaperRotationAccount
) -> RotationEngine:
    """Engine sized against the paper account's live valuation."""
    return RotationEngine(config, portfolio_value=account.total_value)


def replay(
    events: Iterable[BarEvent],
    engine: RotationEngine,
    account: PaperRotationAccount,
) -> ReplayResult:
    """Feed ``events`` (already in time order) through ``engine``."""
    result = ReplayResult()

    for event in events:
        account.set_price(event.symbol, event.close)
        cycle = engine.on_bar_closed(event)
        result.outcomes[cycle.outcome] = result.outcomes.get(cycle.outcome, 0) + 1

        if cycle.decision is not None:
            result.decisions.append((event.timestamp, cycle.decision))
            result.fills.extend(account.execute(cycle.decision, timestamp=event.timestamp))
        if cycle.report is not None:
            result.reports.append(cycle.report)

        result.equity_curve.append((event.timestamp, account.total_value()))

    logger.info(
        "Replay finished: %d decisions, final value %.2f",
        len(result.decisions), result.final_value,
    )
    return result


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    config = RotationConfig.from_settings()
    n_bars = int(os.getenv("REPLAY_BARS", "500"))
    series = [
        generate_bars(symbol, n=n_bars, trend=0.0004 - 0.0001 * i, seed=i)
        for i, symbol in enumerate(config.symbols)
    ]

    account = PaperRotationAccount(initial_capital=settings.initial_capital)
    engine = build_engine(config, account)
    result = replay(interleave(*series), engine, account)

    print(f"Replayed {n_bars} synthetic bars for {len(config.symbols)} instruments")
    for timestamp, decision in result.decisions:
        print(f"  {timestamp:%Y-%m-%d}  {decision.action.value:<9} {decision.symbol or 'CASH'}")
    print(account.summary())


if __name__ == "__main__":
    main()
