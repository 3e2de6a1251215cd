"""Serialize portfolio risk reports for the presentation layer."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from portfolio_risk.portfolio import PortfolioRiskReport


def allocation_percentages(
    allocation: Mapping[str, float],
    net_worth: float,
) -> dict[str, float]:
    """Allocation by type as percent of net worth; all 0 if net worth <= 0."""
    if net_worth <= 0:
        return {k: 0.0 for k in allocation}
    return {k: v / net_worth * 100 for k, v in allocation.items()}


def build_report_data(report: PortfolioRiskReport) -> dict:
    """Assemble the report into a single JSON-ready dictionary."""
    data = report.to_dict()
    data["generated_at"] = datetime.now(timezone.utc).isoformat()
    data["allocationPercentByType"] = allocation_percentages(
        report.allocation_by_type, report.net_worth
    )
    return data


def export_json(
    data: dict,
    output: str | Path = "output/risk_report.json",
) -> Path:
    """Write the report data to a JSON file."""
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    return path
