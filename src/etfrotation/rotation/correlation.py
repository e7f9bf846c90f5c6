"""
Pearson correlation across aligned instrument windows.

Each instrument's aggregate score is the row sum of the correlation matrix:
an instrument that moves with the rest of the universe scores high, which
downstream ranking penalises.
"""

from __future__ import annotations

import math

from etfrotation.history.rolling import RollingHistoryStore


class CorrelationEngine:
    """Builds the correlation matrix from a lookback x instruments price matrix."""

    def __init__(self, lookback: int) -> None:
        self.lookback = lookback

    @staticmethod
    def pearson(a: list[float], b: list[float]) -> float:
        """Pearson correlation coefficient of two equal-length series."""
        n = len(a)
        if n < 2 or n != len(b):
            return 0.0

        mean_a = sum(a) / n
        mean_b = sum(b) / n

        numerator = sum((x - mean_a) * (y - mean_b) for x, y in zip(a, b))
        var_a = sum((x - mean_a) ** 2 for x in a)
        var_b = sum((y - mean_b) ** 2 for y in b)

        denominator = math.sqrt(var_a * var_b)
        if denominator == 0:
            return 0.0  # flat series carries no co-movement

        # Clamp rounding overshoot so the coefficient stays in [-1, 1]
        return max(-1.0, min(1.0, numerator / denominator))

    def correlation_matrix(self, matrix: list[list[float]]) -> list[list[float]]:
        """Symmetric correlation matrix of the columns of ``matrix``.

        Diagonal entries are exactly 1; the lower triangle mirrors the upper.
        """
        if not matrix:
            return []
        n_cols = len(matrix[0])
        columns = [[row[j] for row in matrix] for j in range(n_cols)]

        corr = [[0.0] * n_cols for _ in range(n_cols)]
        for i in range(n_cols):
            corr[i][i] = 1.0
            for j in range(i + 1, n_cols):
                value = self.pearson(columns[i], columns[j])
                corr[i][j] = value
                corr[j][i] = value
        return corr

    @staticmethod
    def aggregate(corr: list[list[float]]) -> list[float]:
        """Row sums of a correlation matrix."""
        return [sum(row) for row in corr]

    def compute(self, store: RollingHistoryStore, symbols: list[str]) -> dict[str, float]:
        """Aggregate correlation per symbol over the aligned lookback window.

        Raises:
            InsufficientHistory: propagated from the history store.
        """
        matrix = store.aligned_matrix(symbols, self.lookback)
        scores = self.aggregate(self.correlation_matrix(matrix))
        return dict(zip(symbols, scores))
