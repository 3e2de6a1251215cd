"""Sources of per-account daily return series."""

from __future__ import annotations

import logging
from typing import Protocol

import numpy as np

from portfolio_risk.config import RiskConfig
from portfolio_risk.ledger import AccountSnapshot

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 90


class ReturnSeriesSource(Protocol):
    """Produces the daily fractional returns for an account."""

    async def fetch_returns(
        self, account: AccountSnapshot, days: int = DEFAULT_WINDOW_DAYS
    ) -> np.ndarray:
        ...


class SyntheticReturnSource:
    """
    Placeholder feed that synthesizes plausible daily returns.

    Each series is the sum of three terms:
        - a trend drawn once per series, uniform in +/- ``trend_range``;
        - the type's base volatility times a uniform shock in [-1, 1];
        - a sinusoidal seasonality ``sin(i / period * pi) * amplitude``.

    Swap this for a real historical feed by implementing
    ``fetch_returns``; nothing downstream depends on where returns come from.
    """

    def __init__(
        self,
        config: RiskConfig | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        """
        Args:
            config: Volatility table and seasonality parameters.
            seed: Random seed for reproducibility.
            rng: Explicit generator; takes precedence over ``seed``.
        """
        self.config = config or RiskConfig()
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def generate(
        self, account: AccountSnapshot, days: int = DEFAULT_WINDOW_DAYS
    ) -> np.ndarray:
        cfg = self.config
        base_vol = cfg.volatility_for(account.type)
        trend = self.rng.uniform(-cfg.trend_range, cfg.trend_range)
        shocks = self.rng.uniform(-1.0, 1.0, size=days)
        t = np.arange(days)
        seasonality = np.sin(t / cfg.seasonality_period * np.pi) * cfg.seasonality_amplitude

        logger.debug(
            "Synthesized %d returns for %s (type=%s, vol=%.4f, trend=%.6f)",
            days, account.id, account.type, base_vol, trend,
        )
        return trend + base_vol * shocks + seasonality

    async def fetch_returns(
        self, account: AccountSnapshot, days: int = DEFAULT_WINDOW_DAYS
    ) -> np.ndarray:
        return self.generate(account, days)
