"""
Rank-based multi-factor scoring.

Raw factor values live on very different scales, so each factor vector is
converted to ranks (1 = worst, N = best) before being combined:

    score = WA * rank(weighted return)
          + WB * rank(1 / volatility)
          + WC * rank(penalty(aggregate correlation))

Tie rule: with ``RankMethod.ORDINAL`` the instrument listed earlier in the
universe receives the higher rank; with ``RankMethod.AVERAGE`` tied values
share the mean of the positions they occupy.
"""

from __future__ import annotations

from typing import Callable, Sequence

from etfrotation.config import offset_penalty
from etfrotation.models.enums import RankMethod
from etfrotation.models.types import FactorSnapshot, ScoreEntry

default_correlation_penalty: Callable[[float], float] = offset_penalty(2.0)


def rank(values: Sequence[float], method: RankMethod = RankMethod.ORDINAL) -> list[float]:
    """Rank ``values`` in place order, 1 for the lowest and N for the highest."""
    # Ascending by value; among equals the later position sorts first so the
    # earlier one ends up with the higher rank.
    order = sorted(range(len(values)), key=lambda i: (values[i], -i))
    ranks = [0.0] * len(values)

    if method == RankMethod.ORDINAL:
        for position, index in enumerate(order, start=1):
            ranks[index] = float(position)
        return ranks

    start = 0
    while start < len(order):
        end = start
        while end + 1 < len(order) and values[order[end + 1]] == values[order[start]]:
            end += 1
        shared = (start + end) / 2.0 + 1.0
        for k in range(start, end + 1):
            ranks[order[k]] = shared
        start = end + 1
    return ranks


class RankScorer:
    """Combines per-factor ranks into one composite score per instrument."""

    def __init__(
        self,
        weight_return: float = 1.0,
        weight_volatility: float = 1.0,
        weight_correlation: float = 0.5,
        correlation_penalty: Callable[[float], float] = default_correlation_penalty,
        method: RankMethod = RankMethod.ORDINAL,
    ) -> None:
        self.weight_return = weight_return
        self.weight_volatility = weight_volatility
        self.weight_correlation = weight_correlation
        self.correlation_penalty = correlation_penalty
        self.method = method

    def score(self, symbols: list[str], snapshots: dict[str, FactorSnapshot]) -> list[ScoreEntry]:
        """Score ``symbols`` (in universe order) and return entries best first.

        Every snapshot must have positive volatility and a computed
        correlation; filter degenerate instruments out beforehand.
        """
        if not symbols:
            return []

        snaps = [snapshots[s] for s in symbols]
        return_ranks = rank([s.weighted_return for s in snaps], self.method)
        vol_ranks = rank([s.inverse_volatility for s in snaps], self.method)
        corr_ranks = rank(
            [self.correlation_penalty(s.correlation.value) for s in snaps], self.method
        )

        entries = [
            ScoreEntry(
                symbol=symbol,
                score=(
                    self.weight_return * r_ret
                    + self.weight_volatility * r_vol
                    + self.weight_correlation * r_corr
                ),
                return_rank=r_ret,
                volatility_rank=r_vol,
                correlation_rank=r_corr,
            )
            for symbol, r_ret, r_vol, r_corr in zip(symbols, return_ranks, vol_ranks, corr_ranks)
        ]

        # sorted() is stable, so equal scores keep universe order
        return sorted(entries, key=lambda e: e.score, reverse=True)
