"""
Paper Rotation Account — simulated execution collaborator.

Holds cash and fractional positions, fills order intents at the last set
price and values the portfolio. Used for replays and tests; it never talks
to a real broker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from etfrotation.execution.planner import plan_orders
from etfrotation.models.enums import TradeSide
from etfrotation.models.types import OrderIntent, RotationDecision

logger = logging.getLogger(__name__)


@dataclass
class PaperFill:
    """A simulated fill record."""

    fill_id: str
    symbol: str
    side: TradeSide
    quantity: float
    price: float
    timestamp: datetime | None = None


class PaperRotationAccount:
    """Simulated account for executing rotation decisions.

    Usage:
        account = PaperRotationAccount(initial_capital=25_000)
        account.set_price("MDY", 150.0)
        fills = account.execute(decision)
        account.total_value()
    """

    def __init__(self, initial_capital: float = 25_000.0) -> None:
        self._initial_capital = initial_capital
        self._cash = initial_capital
        self._positions: dict[str, float] = {}
        self._prices: dict[str, float] = {}
        self._fills: list[PaperFill] = []
        self._fill_counter = 0

    # ─── Price Feed ────────────────────────────────────────────────────────

    def set_price(self, symbol: str, price: float) -> None:
        """Update current market price for a symbol."""
        self._prices[symbol] = price

    # ─── Execution ─────────────────────────────────────────────────────────

    def execute(self, decision: RotationDecision, timestamp: datetime | None = None) -> list[PaperFill]:
        """Plan and fill the orders needed to reach ``decision``."""
        intents = plan_orders(decision, self.positions)
        return [self.fill(intent, timestamp) for intent in intents]

    def fill(self, intent: OrderIntent, timestamp: datetime | None = None) -> PaperFill:
        """Fill a single order at the current price.

        Raises:
            ValueError: no positive price has been set for the symbol.
        """
        price = self._prices.get(intent.symbol, 0.0)
        if price <= 0:
            raise ValueError(f"No price to fill {intent.symbol}")

        signed = intent.quantity if intent.side == TradeSide.BUY else -intent.quantity
        self._cash -= signed * price
        remaining = self._positions.get(intent.symbol, 0.0) + signed
        if abs(remaining) < 1e-9:
            self._positions.pop(intent.symbol, None)
        else:
            self._positions[intent.symbol] = remaining

        self._fill_counter += 1
        record = PaperFill(
            fill_id=f"PAPER-{self._fill_counter:04d}",
            symbol=intent.symbol,
            side=intent.side,
            quantity=intent.quantity,
            price=price,
            timestamp=timestamp,
        )
        self._fills.append(record)
        logger.info(
            "%s %s %.4f @ %.2f (%s)", intent.side.value, intent.symbol, intent.quantity, price, intent.tag
        )
        return record

    # ─── Valuation ─────────────────────────────────────────────────────────

    @property
    def cash(self) -> float:
        return self._cash

    @property
    def positions(self) -> dict[str, float]:
        return dict(self._positions)

    @property
    def fills(self) -> list[PaperFill]:
        return list(self._fills)

    def total_value(self) -> float:
        return self._cash + sum(
            qty * self._prices.get(symbol, 0.0) for symbol, qty in self._positions.items()
        )

    def summary(self) -> dict:
        value = self.total_value()
        return {
            "initial_capital": self._initial_capital,
            "cash": round(self._cash, 2),
            "total_value": round(value, 2),
            "return_pct": round((value / self._initial_capital - 1.0) * 100, 2),
            "positions": self.positions,
            "fills": len(self._fills),
        }
