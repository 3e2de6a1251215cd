"""Pairwise correlation analysis across accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

import numpy as np
import pandas as pd

from portfolio_risk.risk_metrics import TRADING_DAYS, correlation
from portfolio_risk.stats import ReturnSeries, stddev

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorrelationEntry:
    """Correlation of one unordered pair of distinct accounts."""

    account1: str
    account2: str
    correlation: float

    def to_dict(self) -> dict:
        return {
            "account1": self.account1,
            "account2": self.account2,
            "correlation": self.correlation,
        }


@dataclass(frozen=True)
class CorrelationMatrix:
    """Dense symmetric lookup plus the deduplicated pair list."""

    account_ids: tuple[str, ...]
    values: Mapping[tuple[str, str], float]
    pairs: tuple[CorrelationEntry, ...]

    def get(self, first: str, second: str) -> float:
        """Correlation for any ordered pair; self-pairs are exactly 1."""
        if first == second:
            if first not in self.account_ids:
                raise KeyError(first)
            return 1.0
        return self.values[(first, second)]

    def to_frame(self) -> pd.DataFrame:
        """The full matrix as a labelled DataFrame."""
        ids = list(self.account_ids)
        data = [[self.get(a, b) for b in ids] for a in ids]
        return pd.DataFrame(data, index=ids, columns=ids)


def build_correlation_matrix(
    returns_by_id: Mapping[str, ReturnSeries],
) -> CorrelationMatrix:
    """
    Correlate every pair of accounts.

    Accounts are visited in the mapping's iteration order, so the pair list
    is deterministic for a given input order. Each unordered pair (i < j)
    is emitted once; the lookup holds both orientations and the diagonal.
    """
    ids = tuple(returns_by_id)
    values: dict[tuple[str, str], float] = {}
    pairs: list[CorrelationEntry] = []

    for i, first in enumerate(ids):
        values[(first, first)] = 1.0
        for second in ids[i + 1:]:
            corr = correlation(returns_by_id[first], returns_by_id[second])
            values[(first, second)] = corr
            values[(second, first)] = corr
            pairs.append(CorrelationEntry(first, second, corr))

    logger.debug("Built correlation matrix: %d accounts, %d pairs", len(ids), len(pairs))
    return CorrelationMatrix(account_ids=ids, values=values, pairs=tuple(pairs))


def portfolio_volatility(
    returns_by_id: Mapping[str, ReturnSeries],
    weights: Mapping[str, float],
    trading_days: int = TRADING_DAYS,
) -> float:
    """
    Annualized volatility from the covariance model.

    ``sqrt(sum_ij w_i w_j s_i s_j rho_ij) * sqrt(trading_days)`` with weights
    as fractions; accounts absent from *weights* count as weight 0.
    """
    ids = list(returns_by_id)
    if not ids:
        return 0.0

    matrix = build_correlation_matrix(returns_by_id)
    w = np.array([weights.get(i, 0.0) for i in ids], dtype=float)
    sd = np.array([stddev(returns_by_id[i]) for i in ids], dtype=float)
    rho = np.array([[matrix.get(a, b) for b in ids] for a in ids], dtype=float)

    cov = rho * np.outer(sd, sd)
    variance = float(w @ cov @ w)
    # Rounding can push a zero variance slightly negative.
    return float(np.sqrt(max(variance, 0.0)) * np.sqrt(trading_days))
