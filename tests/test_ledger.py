"""Tests for loading account snapshots."""

import asyncio

import pytest

from portfolio_risk.ledger import (
    AccountSnapshot,
    CsvLedgerProvider,
    StaticLedgerProvider,
    load_accounts,
)


def _write_csv(tmp_path, text: str):
    path = tmp_path / "accounts.csv"
    path.write_text(text)
    return path


def test_load_accounts(tmp_path):
    path = _write_csv(
        tmp_path,
        "id,name,type,balance\n"
        "001,Checking,Checking,1500.50\n"
        "002,Visa,Credit Card,-320\n",
    )
    accounts = load_accounts(path)
    assert accounts == [
        AccountSnapshot("001", "Checking", "Checking", 1500.50),
        AccountSnapshot("002", "Visa", "Credit Card", -320.0),
    ]


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="not found"):
        load_accounts(tmp_path / "missing.csv")


def test_missing_columns_raise(tmp_path):
    path = _write_csv(tmp_path, "id,name,balance\n1,Checking,10\n")
    with pytest.raises(ValueError, match="missing columns"):
        load_accounts(path)


def test_duplicate_ids_raise(tmp_path):
    path = _write_csv(tmp_path, "id,name,type,balance\n1,A,Checking,10\n1,B,Savings,20\n")
    with pytest.raises(ValueError, match="duplicate"):
        load_accounts(path)


def test_blank_balance_raises(tmp_path):
    path = _write_csv(tmp_path, "id,name,type,balance\n1,A,Checking,\n")
    with pytest.raises(ValueError, match="non-finite"):
        load_accounts(path)


def test_csv_provider_is_async(tmp_path):
    path = _write_csv(tmp_path, "id,name,type,balance\nx,A,Savings,10\n")
    accounts = asyncio.run(CsvLedgerProvider(path).fetch_accounts())
    assert [a.id for a in accounts] == ["x"]


def test_static_provider_returns_copy():
    provider = StaticLedgerProvider([AccountSnapshot("a", "A", "Checking", 1.0)])
    first = asyncio.run(provider.fetch_accounts())
    first.clear()
    assert len(asyncio.run(provider.fetch_accounts())) == 1
