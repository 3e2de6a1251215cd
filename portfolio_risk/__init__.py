"""
Portfolio Risk - account-level and portfolio-level risk metrics.

Computes parametric Value at Risk, Sharpe and Sortino ratios, maximum
drawdown and pairwise return correlation for a set of accounts, then
combines them by balance weight into a portfolio report with a discrete
risk level.
"""

from portfolio_risk.config import RiskConfig
from portfolio_risk.exceptions import RiskComputationError
from portfolio_risk.portfolio import (
    PortfolioRiskReport,
    RiskLevel,
    aggregate_portfolio,
    compute_portfolio_risk,
)

__version__ = "1.0.0"

__all__ = [
    "PortfolioRiskReport",
    "RiskComputationError",
    "RiskConfig",
    "RiskLevel",
    "aggregate_portfolio",
    "compute_portfolio_risk",
]
