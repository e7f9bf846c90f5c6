"""Winner selection with an absolute-return safety gate."""

from __future__ import annotations

from etfrotation.models.types import FactorSnapshot, RotationDecision, ScoreEntry


class DecisionEngine:
    """Turns a ranked score board into a single allocation decision.

    Rules:
        - no eligible instrument      -> HOLD
        - winner weighted return <= 0 -> LIQUIDATE (or rotate into ``cash_symbol``)
        - otherwise                   -> ROTATE fully into the winner
    """

    def __init__(self, cash_symbol: str | None = None) -> None:
        self.cash_symbol = cash_symbol

    def decide(
        self,
        scores: list[ScoreEntry],
        snapshots: dict[str, FactorSnapshot],
        portfolio_value: float,
        prices: dict[str, float],
    ) -> RotationDecision:
        """Pick the top entry of ``scores`` (already ordered best first).

        Raises:
            ValueError: the price needed to size the position is not positive.
        """
        if not scores:
            return RotationDecision.hold(reason="NO_ELIGIBLE_INSTRUMENTS")

        best = scores[0]
        weighted_return = snapshots[best.symbol].weighted_return

        if weighted_return <= 0:
            if self.cash_symbol is not None:
                return RotationDecision.rotate(
                    self.cash_symbol,
                    self._target_quantity(self.cash_symbol, portfolio_value, prices),
                    reason="ABSOLUTE_RETURN_GATE",
                )
            return RotationDecision.liquidate(reason="ABSOLUTE_RETURN_GATE")

        return RotationDecision.rotate(
            best.symbol,
            self._target_quantity(best.symbol, portfolio_value, prices),
            reason="TOP_SCORE",
        )

    @staticmethod
    def _target_quantity(symbol: str, portfolio_value: float, prices: dict[str, float]) -> float:
        price = prices.get(symbol, 0.0)
        if price <= 0:
            raise ValueError(f"No usable price for {symbol}: {price!r}")
        return portfolio_value / price
