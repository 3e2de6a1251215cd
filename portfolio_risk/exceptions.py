"""Exceptions raised by the portfolio risk pipeline."""

from __future__ import annotations


class RiskAnalysisError(Exception):
    """Base class for every error this package raises on purpose."""


class DataFetchError(RiskAnalysisError):
    """The ledger or return series source failed to deliver usable data."""


class StaleAccountSetError(RiskAnalysisError):
    """Fetched return series do not cover exactly the fetched accounts."""


class RiskComputationError(RiskAnalysisError):
    """A full recomputation could not produce a report."""

    message = "failed to compute risk metrics"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail
        text = self.message if detail is None else f"{self.message}: {detail}"
        super().__init__(text)
