"""Account ledger snapshots and the providers that supply them."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

import pandas as pd

REQUIRED_COLUMNS = {"id", "name", "type", "balance"}


@dataclass(frozen=True)
class AccountSnapshot:
    """One account as reported by the ledger. Negative balance is a liability."""

    id: str
    name: str
    type: str
    balance: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.balance):
            raise ValueError(f"Account {self.id!r} has a non-finite balance")


class AccountLedgerProvider(Protocol):
    """Anything that can list the current accounts."""

    async def fetch_accounts(self) -> list[AccountSnapshot]:
        ...


class StaticLedgerProvider:
    """Serve a fixed, in-memory account list."""

    def __init__(self, accounts: Iterable[AccountSnapshot]) -> None:
        self._accounts = tuple(accounts)

    async def fetch_accounts(self) -> list[AccountSnapshot]:
        return list(self._accounts)


class CsvLedgerProvider:
    """Read accounts from a CSV with columns [id, name, type, balance]."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def fetch_accounts(self) -> list[AccountSnapshot]:
        return load_accounts(self.path)


def load_accounts(path: str | Path) -> list[AccountSnapshot]:
    """
    Load an accounts CSV.

    Args:
        path: CSV with columns [id, name, type, balance].

    Returns:
        Account snapshots in file order.
    """
    df = _read_csv(path)
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"Accounts CSV missing columns: {missing}")
    if df["id"].duplicated().any():
        dupes = df.loc[df["id"].duplicated(), "id"].tolist()
        raise ValueError(f"Accounts CSV has duplicate ids: {dupes}")

    return [
        AccountSnapshot(
            id=str(row["id"]),
            name=str(row["name"]),
            type=str(row["type"]),
            balance=float(row["balance"]),
        )
        for _, row in df.iterrows()
    ]


def _read_csv(path: str | Path) -> pd.DataFrame:
    """Read a CSV, raising a clear error if the file is missing."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    return pd.read_csv(path, dtype=str)
