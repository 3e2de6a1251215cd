"""Portfolio aggregation: weights, combined returns and risk classification."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Protocol, Sequence

import numpy as np

from portfolio_risk.config import RiskConfig
from portfolio_risk.correlation import CorrelationEntry, build_correlation_matrix
from portfolio_risk.exceptions import (
    DataFetchError,
    RiskComputationError,
    StaleAccountSetError,
)
from portfolio_risk.ledger import AccountLedgerProvider, AccountSnapshot
from portfolio_risk.returns_source import ReturnSeriesSource
from portfolio_risk.risk_metrics import (
    AccountRiskMetrics,
    annualized_volatility,
    calculate_var,
    compute_account_metrics,
    sharpe_ratio,
    sortino_ratio,
)
from portfolio_risk.stats import ReturnSeries, as_array, mean

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    VERY_HIGH = "Very High"


# (max volatility, min Sharpe, level), checked in order; first match wins.
RISK_THRESHOLDS: tuple[tuple[float, float, RiskLevel], ...] = (
    (0.10, 1.5, RiskLevel.LOW),
    (0.20, 1.0, RiskLevel.MODERATE),
    (0.35, 0.5, RiskLevel.HIGH),
)


@dataclass(frozen=True)
class Account:
    """An account with its weight, return series and computed metrics."""

    id: str
    name: str
    type: str
    balance: float
    weight: float  # percent of net worth
    returns: tuple[float, ...]
    metrics: AccountRiskMetrics

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "balance": self.balance,
            "type": self.type,
            "weight": self.weight,
            "returns": list(self.returns),
            **self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class PortfolioRiskMetrics:
    """Metrics of the weighted combination of all account series."""

    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    var_95: float
    var_99: float
    average_return: float

    def to_dict(self) -> dict:
        return {
            "var95": self.var_95,
            "var99": self.var_99,
            "sharpeRatio": self.sharpe_ratio,
            "sortinoRatio": self.sortino_ratio,
            "volatility": self.volatility,
            "averageReturn": self.average_return,
        }


@dataclass(frozen=True)
class PortfolioRiskReport:
    """Consolidated output of one full recomputation."""

    total_assets: float
    total_liabilities: float
    net_worth: float
    accounts: tuple[Account, ...]
    portfolio: PortfolioRiskMetrics
    correlations: tuple[CorrelationEntry, ...]
    allocation_by_type: Mapping[str, float]
    risk_level: RiskLevel

    def to_dict(self) -> dict:
        return {
            "totalAssets": self.total_assets,
            "totalLiabilities": self.total_liabilities,
            "netWorth": self.net_worth,
            "accounts": [a.to_dict() for a in self.accounts],
            "portfolio": self.portfolio.to_dict(),
            "correlationMatrix": [c.to_dict() for c in self.correlations],
            "allocationByType": dict(self.allocation_by_type),
            "riskLevel": self.risk_level.value,
        }


# ------------------------------------------------------------------
# Aggregation steps
# ------------------------------------------------------------------


def partition_balances(balances: Sequence[float]) -> tuple[float, float]:
    """Split balances into (total assets, total liabilities as a magnitude)."""
    assets = float(sum(b for b in balances if b > 0))
    liabilities = float(sum(abs(b) for b in balances if b <= 0))
    return assets, liabilities


def compute_weights(balances: Sequence[float], net_worth: float) -> list[float]:
    """
    Percent-of-net-worth weights.

    With a non-positive net worth every weight is 0; the weights are left
    as they are rather than renormalised. Liabilities give negative weights
    and assets may exceed 100.
    """
    if net_worth <= 0:
        logger.debug("Net worth %.2f is not positive; all weights are 0", net_worth)
        return [0.0 for _ in balances]
    return [b / net_worth * 100 for b in balances]


def portfolio_returns(
    weights: Sequence[float],
    series: Sequence[ReturnSeries],
) -> np.ndarray:
    """
    Weighted sum of account returns per day.

    Series are truncated to the shortest one so every day used is present
    in all accounts. Weights are percentages.
    """
    if not series:
        return np.empty(0)
    arrays = [as_array(s) for s in series]
    length = min(a.size for a in arrays)
    stacked = np.vstack([a[:length] for a in arrays])
    fractions = np.asarray(weights, dtype=float) / 100
    return (fractions[:, None] * stacked).sum(axis=0)


def classify_risk(volatility: float, sharpe: float) -> RiskLevel:
    for max_vol, min_sharpe, level in RISK_THRESHOLDS:
        if volatility < max_vol and sharpe > min_sharpe:
            return level
    return RiskLevel.VERY_HIGH


def allocation_by_type(accounts: Sequence[AccountSnapshot]) -> dict[str, float]:
    """Sum of balances per instrument type, in first-seen order."""
    allocation: dict[str, float] = {}
    for account in accounts:
        allocation[account.type] = allocation.get(account.type, 0.0) + account.balance
    return allocation


def compute_portfolio_metrics(
    returns: ReturnSeries,
    risk_free_rate: float,
    trading_days: int,
) -> PortfolioRiskMetrics:
    arr = as_array(returns)
    return PortfolioRiskMetrics(
        volatility=annualized_volatility(arr, trading_days),
        sharpe_ratio=sharpe_ratio(arr, risk_free_rate, trading_days),
        sortino_ratio=sortino_ratio(arr, risk_free_rate, trading_days),
        var_95=calculate_var(arr, 0.95),
        var_99=calculate_var(arr, 0.99),
        average_return=mean(arr),
    )


def aggregate_portfolio(
    accounts: Sequence[AccountSnapshot],
    returns_by_id: Mapping[str, ReturnSeries],
    config: RiskConfig | None = None,
) -> PortfolioRiskReport:
    """
    Build a full report from account snapshots and their return series.

    Raises:
        DataFetchError: the ledger lists the same account id twice.
        StaleAccountSetError: *returns_by_id* does not cover exactly the
            given accounts.
    """
    cfg = config or RiskConfig()
    ids = [a.id for a in accounts]
    if len(set(ids)) != len(ids):
        dupes = sorted({i for i in ids if ids.count(i) > 1})
        raise DataFetchError(f"ledger has duplicate account ids: {dupes}")
    if set(ids) != set(returns_by_id):
        raise StaleAccountSetError(
            f"accounts {sorted(set(ids))} do not match return series "
            f"{sorted(returns_by_id)}"
        )

    balances = [a.balance for a in accounts]
    total_assets, total_liabilities = partition_balances(balances)
    net_worth = total_assets - total_liabilities

    series = [as_array(returns_by_id[a.id]) for a in accounts]
    metrics = [
        compute_account_metrics(s, a.balance, cfg.risk_free_rate, cfg.trading_days)
        for a, s in zip(accounts, series)
    ]

    weights = compute_weights(balances, net_worth)
    combined = portfolio_returns(weights, series)
    portfolio = compute_portfolio_metrics(combined, cfg.risk_free_rate, cfg.trading_days)
    risk_level = classify_risk(portfolio.volatility, portfolio.sharpe_ratio)

    matrix = build_correlation_matrix({a.id: s for a, s in zip(accounts, series)})

    report = PortfolioRiskReport(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=net_worth,
        accounts=tuple(
            Account(
                id=a.id,
                name=a.name,
                type=a.type,
                balance=a.balance,
                weight=w,
                returns=tuple(s.tolist()),
                metrics=m,
            )
            for a, s, w, m in zip(accounts, series, weights, metrics)
        ),
        portfolio=portfolio,
        correlations=matrix.pairs,
        allocation_by_type=allocation_by_type(accounts),
        risk_level=risk_level,
    )
    logger.info(
        "Aggregated %d accounts over %d days: net worth %.2f, risk %s",
        len(accounts), combined.size, net_worth, risk_level.value,
    )
    return report


# ------------------------------------------------------------------
# Fetch + recompute
# ------------------------------------------------------------------


class BatchReturnSeriesSource(Protocol):
    """A source that fetches every account's series in one round trip."""

    async def fetch_all(
        self, accounts: Sequence[AccountSnapshot], days: int
    ) -> Mapping[str, ReturnSeries]:
        ...


async def fetch_return_series(
    accounts: Sequence[AccountSnapshot],
    source: ReturnSeriesSource | BatchReturnSeriesSource,
    days: int,
) -> dict[str, np.ndarray]:
    """Fetch all series, batched if the source supports it, else one per account."""
    fetch_all = getattr(source, "fetch_all", None)
    if fetch_all is not None:
        raw = dict(await fetch_all(accounts, days))
    else:
        fetched = await asyncio.gather(
            *(source.fetch_returns(a, days) for a in accounts)
        )
        raw = {a.id: s for a, s in zip(accounts, fetched)}

    result: dict[str, np.ndarray] = {}
    for account_id, series in raw.items():
        if series is None:
            raise DataFetchError(f"no return series for account {account_id!r}")
        arr = as_array(series)
        if arr.ndim != 1 or not np.all(np.isfinite(arr)):
            raise DataFetchError(f"invalid return series for account {account_id!r}")
        result[account_id] = arr
    return result


async def _recompute(
    ledger: AccountLedgerProvider,
    source: ReturnSeriesSource | BatchReturnSeriesSource,
    cfg: RiskConfig,
) -> PortfolioRiskReport:
    async def fetch() -> tuple[list[AccountSnapshot], dict[str, np.ndarray]]:
        accounts = await ledger.fetch_accounts()
        returns = await fetch_return_series(accounts, source, cfg.window_days)
        return accounts, returns

    try:
        if cfg.fetch_timeout is None:
            accounts, returns = await fetch()
        else:
            accounts, returns = await asyncio.wait_for(fetch(), cfg.fetch_timeout)
    except asyncio.TimeoutError as exc:
        raise DataFetchError(f"fetch timed out after {cfg.fetch_timeout}s") from exc

    return aggregate_portfolio(accounts, returns, cfg)


async def compute_portfolio_risk(
    ledger: AccountLedgerProvider,
    source: ReturnSeriesSource | BatchReturnSeriesSource,
    config: RiskConfig | None = None,
) -> PortfolioRiskReport:
    """
    Fetch accounts and their returns, then build a fresh report.

    A stale or partial account set restarts the whole pass, up to
    ``config.max_attempts`` times. Any other failure aborts; no partial
    report is ever returned.

    Raises:
        RiskComputationError: the report could not be produced.
    """
    cfg = config or RiskConfig()
    last_error: StaleAccountSetError | None = None
    for attempt in range(1, cfg.max_attempts + 1):
        try:
            return await _recompute(ledger, source, cfg)
        except StaleAccountSetError as exc:
            logger.warning(
                "Attempt %d/%d saw a stale account set: %s",
                attempt, cfg.max_attempts, exc,
            )
            last_error = exc
        except Exception as exc:
            logger.error("Risk recomputation failed: %s", exc)
            raise RiskComputationError(str(exc)) from exc

    raise RiskComputationError(
        f"account set still stale after {cfg.max_attempts} attempts"
    ) from last_error
