"""Tests for the synthetic return series source."""

import asyncio

import numpy as np
import pytest

from portfolio_risk.config import RiskConfig
from portfolio_risk.ledger import AccountSnapshot
from portfolio_risk.returns_source import SyntheticReturnSource


def _make_account(account_type: str = "Checking") -> AccountSnapshot:
    return AccountSnapshot(id="acc-1", name="Main", type=account_type, balance=1000.0)


def test_same_seed_same_series():
    a = SyntheticReturnSource(seed=42).generate(_make_account(), 90)
    b = SyntheticReturnSource(seed=42).generate(_make_account(), 90)
    np.testing.assert_array_equal(a, b)


def test_different_seed_different_series():
    a = SyntheticReturnSource(seed=1).generate(_make_account(), 90)
    b = SyntheticReturnSource(seed=2).generate(_make_account(), 90)
    assert not np.array_equal(a, b)


def test_length_matches_days():
    source = SyntheticReturnSource(seed=0)
    assert source.generate(_make_account(), 30).shape == (30,)
    assert source.generate(_make_account(), 0).shape == (0,)


@pytest.mark.parametrize("account_type", ["Checking", "Savings", "Credit Card", "Money Market", "Brokerage"])
def test_returns_bounded_by_components(account_type):
    config = RiskConfig()
    series = SyntheticReturnSource(config, seed=3).generate(_make_account(account_type), 365)
    bound = config.trend_range + config.volatility_for(account_type) + config.seasonality_amplitude
    assert np.all(np.abs(series) <= bound + 1e-15)


def test_unknown_type_uses_default_volatility():
    config = RiskConfig()
    assert config.volatility_for("Brokerage") == config.default_volatility
    assert config.volatility_for("Savings") == 0.0005


def test_seasonality_only_when_noise_disabled():
    config = RiskConfig(type_volatility={}, default_volatility=0.0, trend_range=0.0)
    series = SyntheticReturnSource(config, seed=5).generate(_make_account(), 60)
    t = np.arange(60)
    np.testing.assert_allclose(series, np.sin(t / 30 * np.pi) * 0.0001, atol=1e-18)


def test_explicit_generator_takes_precedence():
    a = SyntheticReturnSource(seed=99, rng=np.random.default_rng(11)).generate(_make_account(), 20)
    b = SyntheticReturnSource(rng=np.random.default_rng(11)).generate(_make_account(), 20)
    np.testing.assert_array_equal(a, b)


def test_fetch_returns_is_async():
    source = SyntheticReturnSource(seed=8)
    series = asyncio.run(source.fetch_returns(_make_account(), 45))
    assert len(series) == 45
    assert np.all(np.isfinite(series))


def test_window_defaults_to_90_days():
    source = SyntheticReturnSource(seed=4)
    assert source.generate(_make_account()).shape == (90,)
    assert len(asyncio.run(source.fetch_returns(_make_account()))) == 90
