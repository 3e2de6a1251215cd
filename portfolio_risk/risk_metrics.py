"""Risk metric calculations over daily return series."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from portfolio_risk.stats import ReturnSeries, as_array, mean, stddev

logger = logging.getLogger(__name__)

TRADING_DAYS = 252
DEFAULT_RISK_FREE_RATE = 0.04

# One-sided z-scores for the parametric VaR; anything else uses 95 %.
Z_SCORES: dict[float, float] = {
    0.90: 1.282,
    0.95: 1.645,
    0.99: 2.326,
}


@dataclass(frozen=True)
class Drawdown:
    """Largest peak-to-trough decline of a balance path."""

    amount: float
    percent: float


@dataclass(frozen=True)
class AccountRiskMetrics:
    """Immutable bundle of the metrics computed for one account."""

    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float  # percent of peak
    max_drawdown_amount: float
    var_95: float
    var_99: float

    def to_dict(self) -> dict:
        return {
            "volatility": self.volatility,
            "sharpeRatio": self.sharpe_ratio,
            "sortinoRatio": self.sortino_ratio,
            "maxDrawdown": self.max_drawdown,
            "var95": self.var_95,
            "var99": self.var_99,
        }


# ------------------------------------------------------------------
# Value at Risk
# ------------------------------------------------------------------


def z_score(confidence: float) -> float:
    return Z_SCORES.get(confidence, Z_SCORES[0.95])


def calculate_var(returns: ReturnSeries, confidence: float = 0.95) -> float:
    """
    Parametric (variance-covariance) daily VaR.

    Returned as a fractional return threshold, ``mean - z * stddev``;
    more negative means more risk. An empty series gives 0.
    """
    arr = as_array(returns)
    if arr.size == 0:
        return 0.0
    return mean(arr) - z_score(confidence) * stddev(arr)


# ------------------------------------------------------------------
# Return / risk ratios
# ------------------------------------------------------------------


def annualized_volatility(
    returns: ReturnSeries,
    trading_days: int = TRADING_DAYS,
) -> float:
    """Population stddev of daily returns scaled by sqrt(trading_days)."""
    return stddev(returns) * float(np.sqrt(trading_days))


def sharpe_ratio(
    returns: ReturnSeries,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS,
) -> float:
    """Annualized Sharpe Ratio; 0 when the series is empty or flat."""
    arr = as_array(returns)
    if arr.size == 0:
        return 0.0
    sd = stddev(arr)
    if sd == 0:
        logger.debug("sharpe_ratio: zero stddev over %d returns", arr.size)
        return 0.0
    annual_mean = mean(arr) * trading_days
    annual_sd = sd * np.sqrt(trading_days)
    return float((annual_mean - risk_free_rate) / annual_sd)


def downside_deviation(returns: ReturnSeries) -> float:
    """
    Root of the summed squared negative returns divided by the *total* count.

    Deviations are measured from 0 and only strictly negative returns
    contribute, but the divisor is N rather than the number of losing days.
    This is the convention used throughout the package and makes the
    Sortino ratio larger than the textbook (negative-count) form.
    """
    arr = as_array(returns)
    if arr.size == 0:
        return 0.0
    losses = arr[arr < 0]
    return float(np.sqrt(np.sum(losses ** 2) / arr.size))


def sortino_ratio(
    returns: ReturnSeries,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS,
) -> float:
    """Annualized Sortino Ratio; 0 when there is no downside."""
    arr = as_array(returns)
    if arr.size == 0:
        return 0.0
    dd = downside_deviation(arr)
    if dd == 0:
        logger.debug("sortino_ratio: no downside over %d returns", arr.size)
        return 0.0
    annual_mean = mean(arr) * trading_days
    annual_dd = dd * np.sqrt(trading_days)
    return float((annual_mean - risk_free_rate) / annual_dd)


# ------------------------------------------------------------------
# Drawdown
# ------------------------------------------------------------------


def balance_history(initial_balance: float, returns: ReturnSeries) -> np.ndarray:
    """Compound *returns* onto *initial_balance*; length is len(returns) + 1."""
    arr = as_array(returns)
    history = np.empty(arr.size + 1)
    history[0] = initial_balance
    history[1:] = initial_balance * np.cumprod(1 + arr)
    return history


def max_drawdown(balances: ReturnSeries) -> Drawdown:
    """
    Maximum drawdown of a balance path.

    The percentage is taken against the running peak at the point where the
    largest drawdown occurs. A non-positive peak yields 0 %.
    """
    arr = as_array(balances)
    if arr.size == 0:
        return Drawdown(0.0, 0.0)

    peaks = np.maximum.accumulate(arr)
    drawdowns = peaks - arr
    idx = int(np.argmax(drawdowns))
    amount = float(drawdowns[idx])
    peak = float(peaks[idx])
    percent = amount / peak * 100 if peak > 0 else 0.0
    return Drawdown(amount, percent)


# ------------------------------------------------------------------
# Correlation
# ------------------------------------------------------------------


def correlation(first: ReturnSeries, second: ReturnSeries) -> float:
    """
    Pearson correlation using population statistics.

    Returns 0 when the series differ in length, either is empty, or either
    has zero standard deviation.
    """
    a = as_array(first)
    b = as_array(second)
    if a.size == 0 or b.size == 0 or a.size != b.size:
        logger.debug("correlation: unusable lengths %d and %d", a.size, b.size)
        return 0.0

    da = a - a.mean()
    db = b - b.mean()
    sd_a = np.sqrt(np.mean(da * da))
    sd_b = np.sqrt(np.mean(db * db))
    if sd_a == 0 or sd_b == 0:
        return 0.0
    # Collinear series can land a rounding step outside [-1, 1].
    return float(np.clip(np.mean(da * db) / (sd_a * sd_b), -1.0, 1.0))


# ------------------------------------------------------------------
# Per-account bundle
# ------------------------------------------------------------------


def compute_account_metrics(
    returns: ReturnSeries,
    balance: float,
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS,
) -> AccountRiskMetrics:
    """Compute every per-account metric, compounding drawdown from *balance*."""
    arr = as_array(returns)
    drawdown = max_drawdown(balance_history(balance, arr))
    return AccountRiskMetrics(
        volatility=annualized_volatility(arr, trading_days),
        sharpe_ratio=sharpe_ratio(arr, risk_free_rate, trading_days),
        sortino_ratio=sortino_ratio(arr, risk_free_rate, trading_days),
        max_drawdown=drawdown.percent,
        max_drawdown_amount=drawdown.amount,
        var_95=calculate_var(arr, 0.95),
        var_99=calculate_var(arr, 0.99),
    )
