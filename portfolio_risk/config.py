"""Tunable parameters for risk calculation and return synthesis."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

DEFAULT_TYPE_VOLATILITY: Mapping[str, float] = MappingProxyType({
    "Checking": 0.001,
    "Savings": 0.0005,
    "Credit Card": 0.002,
    "Money Market": 0.0015,
})


@dataclass(frozen=True)
class RiskConfig:
    """Immutable bundle of every knob the risk pipeline reads."""

    risk_free_rate: float = 0.04
    trading_days: int = 252
    window_days: int = 90

    # Return synthesis
    type_volatility: Mapping[str, float] = field(
        default_factory=lambda: DEFAULT_TYPE_VOLATILITY
    )
    default_volatility: float = 0.001
    trend_range: float = 0.00025
    seasonality_amplitude: float = 0.0001
    seasonality_period: int = 30

    # Fetching
    fetch_timeout: float | None = None
    max_attempts: int = 3

    def __post_init__(self) -> None:
        if self.trading_days <= 0:
            raise ValueError(f"trading_days must be positive, got {self.trading_days}")
        if self.window_days < 0:
            raise ValueError(f"window_days must be non-negative, got {self.window_days}")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def volatility_for(self, account_type: str) -> float:
        """Base daily volatility for an instrument type."""
        return self.type_volatility.get(account_type, self.default_volatility)
