"""Tests for fetching data and recomputing the portfolio report."""

import asyncio

import numpy as np
import pytest

from portfolio_risk.config import RiskConfig
from portfolio_risk.exceptions import (
    DataFetchError,
    RiskComputationError,
    StaleAccountSetError,
)
from portfolio_risk.ledger import AccountSnapshot, StaticLedgerProvider
from portfolio_risk.portfolio import compute_portfolio_risk
from portfolio_risk.returns_source import SyntheticReturnSource


def _make_accounts() -> list[AccountSnapshot]:
    return [
        AccountSnapshot("chk", "Checking", "Checking", 3000.0),
        AccountSnapshot("sav", "Savings", "Savings", 7000.0),
        AccountSnapshot("cc", "Card", "Credit Card", -500.0),
    ]


class _FailingLedger:
    async def fetch_accounts(self):
        raise ConnectionError("ledger unavailable")


class _PartialBatchSource:
    """Drops the last account for the first ``stale_calls`` batches."""

    def __init__(self, stale_calls: int) -> None:
        self.stale_calls = stale_calls
        self.calls = 0

    async def fetch_all(self, accounts, days):
        self.calls += 1
        ids = [a.id for a in accounts]
        if self.calls <= self.stale_calls:
            ids = ids[:-1]
        return {i: np.full(days, 0.001) for i in ids}


class _NanSource:
    async def fetch_returns(self, account, days):
        return [float("nan")] * days


class _SlowSource:
    async def fetch_returns(self, account, days):
        await asyncio.sleep(1)
        return [0.0] * days


def _run(ledger, source, config=None):
    return asyncio.run(compute_portfolio_risk(ledger, source, config))


def test_full_recompute():
    config = RiskConfig(window_days=60)
    report = _run(StaticLedgerProvider(_make_accounts()), SyntheticReturnSource(config, seed=1), config)
    assert [a.id for a in report.accounts] == ["chk", "sav", "cc"]
    assert all(len(a.returns) == 60 for a in report.accounts)
    assert report.net_worth == 9500.0
    assert sum(a.weight for a in report.accounts) == pytest.approx(100.0)


def test_seeded_recompute_is_reproducible():
    ledger = StaticLedgerProvider(_make_accounts())
    first = _run(ledger, SyntheticReturnSource(seed=5))
    second = _run(ledger, SyntheticReturnSource(seed=5))
    assert first.to_dict() == second.to_dict()


def test_ledger_failure_aborts():
    with pytest.raises(RiskComputationError, match="failed to compute risk metrics") as info:
        _run(_FailingLedger(), SyntheticReturnSource(seed=0))
    assert isinstance(info.value.__cause__, ConnectionError)


def test_stale_account_set_is_retried_from_scratch():
    source = _PartialBatchSource(stale_calls=1)
    report = _run(StaticLedgerProvider(_make_accounts()), source)
    assert source.calls == 2
    assert len(report.accounts) == 3


def test_persistently_stale_account_set_fails():
    source = _PartialBatchSource(stale_calls=10)
    config = RiskConfig(max_attempts=2)
    with pytest.raises(RiskComputationError) as info:
        _run(StaticLedgerProvider(_make_accounts()), source, config)
    assert source.calls == 2
    assert isinstance(info.value.__cause__, StaleAccountSetError)


def test_non_finite_returns_abort():
    with pytest.raises(RiskComputationError) as info:
        _run(StaticLedgerProvider(_make_accounts()), _NanSource())
    assert isinstance(info.value.__cause__, DataFetchError)


def test_fetch_timeout_aborts():
    config = RiskConfig(fetch_timeout=0.01)
    with pytest.raises(RiskComputationError) as info:
        _run(StaticLedgerProvider(_make_accounts()), _SlowSource(), config)
    assert isinstance(info.value.__cause__, DataFetchError)


def test_error_message_detail():
    err = RiskComputationError("ledger unavailable")
    assert str(err) == "failed to compute risk metrics: ledger unavailable"
    assert str(RiskComputationError()) == "failed to compute risk metrics"


class _CountingLedger:
    def __init__(self, accounts) -> None:
        self.accounts = accounts
        self.calls = 0

    async def fetch_accounts(self):
        self.calls += 1
        return list(self.accounts)


def test_duplicate_ids_abort_without_retry():
    ledger = _CountingLedger([
        AccountSnapshot("x", "A", "Checking", 100.0),
        AccountSnapshot("x", "B", "Savings", 50.0),
    ])
    with pytest.raises(RiskComputationError, match="duplicate") as info:
        _run(ledger, SyntheticReturnSource(seed=0))
    assert ledger.calls == 1
    assert isinstance(info.value.__cause__, DataFetchError)
