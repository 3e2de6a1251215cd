"""Command-line interface for Portfolio Risk."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from portfolio_risk.config import RiskConfig
from portfolio_risk.correlation import portfolio_volatility
from portfolio_risk.exceptions import RiskComputationError
from portfolio_risk.ledger import CsvLedgerProvider
from portfolio_risk.portfolio import PortfolioRiskReport, compute_portfolio_risk
from portfolio_risk.report import allocation_percentages, build_report_data, export_json
from portfolio_risk.returns_source import SyntheticReturnSource


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="portfolio-risk",
        description="Account and portfolio risk metrics: VaR, Sharpe, Sortino, drawdown, correlation.",
    )

    parser.add_argument(
        "--accounts",
        type=str,
        default="data/sample_accounts.csv",
        help="Path to accounts CSV (default: data/sample_accounts.csv)",
    )
    parser.add_argument(
        "--days", "-d",
        type=int,
        default=90,
        help="Length of the daily return window (default: 90)",
    )
    parser.add_argument(
        "--risk-free-rate",
        type=float,
        default=0.04,
        help="Annual risk-free rate (default: 0.04)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible synthetic returns",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for account and return data (default: no limit)",
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        default="output",
        help="Output directory for the JSON report (default: output/)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug detail",
    )

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _pct(value: float, digits: int = 2) -> str:
    return f"{value * 100:.{digits}f}%"


def _dollar(value: float) -> str:
    return f"${value:,.2f}"


def print_report(report: PortfolioRiskReport, trading_days: int) -> None:
    """Render the report as rich tables."""
    overview = Table(title="Portfolio Overview")
    overview.add_column("Metric", style="cyan")
    overview.add_column("Value", justify="right")
    overview.add_row("Total Assets", _dollar(report.total_assets))
    overview.add_row("Total Liabilities", _dollar(report.total_liabilities))
    overview.add_row("Net Worth", _dollar(report.net_worth))
    overview.add_row("VaR (95%)", _pct(report.portfolio.var_95))
    overview.add_row("VaR (99%)", _pct(report.portfolio.var_99))
    overview.add_row("Sharpe Ratio", f"{report.portfolio.sharpe_ratio:.4f}")
    overview.add_row("Sortino Ratio", f"{report.portfolio.sortino_ratio:.4f}")
    overview.add_row("Annual Volatility", _pct(report.portfolio.volatility))
    overview.add_row(
        "Covariance-Model Volatility",
        _pct(portfolio_volatility(
            {a.id: a.returns for a in report.accounts},
            {a.id: a.weight / 100 for a in report.accounts},
            trading_days,
        )),
    )
    overview.add_row("Average Daily Return", _pct(report.portfolio.average_return, 3))
    overview.add_row("Risk Level", f"[bold]{report.risk_level.value}[/bold]")
    console.print(overview)

    accounts_table = Table(title="Account Risk Metrics")
    accounts_table.add_column("Account", style="cyan")
    accounts_table.add_column("Type")
    accounts_table.add_column("Balance", justify="right")
    accounts_table.add_column("Weight", justify="right")
    accounts_table.add_column("Volatility", justify="right")
    accounts_table.add_column("Sharpe", justify="right")
    accounts_table.add_column("Sortino", justify="right")
    accounts_table.add_column("Max DD", justify="right")
    accounts_table.add_column("VaR 95%", justify="right")
    accounts_table.add_column("VaR 99%", justify="right")
    for acc in report.accounts:
        m = acc.metrics
        accounts_table.add_row(
            acc.name,
            acc.type,
            _dollar(acc.balance),
            f"{acc.weight:.1f}%",
            _pct(m.volatility),
            f"{m.sharpe_ratio:.2f}",
            f"{m.sortino_ratio:.2f}",
            f"{m.max_drawdown:.2f}%",
            _pct(m.var_95),
            _pct(m.var_99),
        )
    console.print(accounts_table)

    if report.correlations:
        names = {a.id: a.name for a in report.accounts}
        corr_table = Table(title="Account Correlations")
        corr_table.add_column("Account 1", style="cyan")
        corr_table.add_column("Account 2", style="cyan")
        corr_table.add_column("Correlation", justify="right")
        for entry in report.correlations:
            corr_table.add_row(
                names[entry.account1], names[entry.account2], f"{entry.correlation:.3f}"
            )
        console.print(corr_table)

    percents = allocation_percentages(report.allocation_by_type, report.net_worth)
    alloc_table = Table(title="Allocation by Type")
    alloc_table.add_column("Type", style="cyan")
    alloc_table.add_column("Amount", justify="right")
    alloc_table.add_column("Share of Net Worth", justify="right")
    for kind, amount in report.allocation_by_type.items():
        alloc_table.add_row(kind, _dollar(amount), f"{percents[kind]:.1f}%")
    console.print(alloc_table)


def run(args: argparse.Namespace) -> None:
    """Execute the full analysis pipeline."""
    configure_logging(args.verbose)
    console.print(Panel.fit(
        "[bold blue]Portfolio Risk[/bold blue]\n"
        "VaR, Sharpe, Sortino, drawdown and correlation across accounts",
        border_style="blue",
    ))

    try:
        config = replace(
            RiskConfig(),
            window_days=args.days,
            risk_free_rate=args.risk_free_rate,
            fetch_timeout=args.timeout,
        )
    except ValueError as exc:
        console.print(f"[red]Invalid options:[/red] {exc}")
        sys.exit(1)

    ledger = CsvLedgerProvider(args.accounts)
    source = SyntheticReturnSource(config, seed=args.seed)

    console.print("\n[bold]Computing risk metrics...[/bold]")
    try:
        report = asyncio.run(compute_portfolio_risk(ledger, source, config))
    except RiskComputationError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)

    print_report(report, config.trading_days)

    output_dir = Path(args.output_dir)
    json_path = export_json(build_report_data(report), output_dir / "risk_report.json")
    console.print(f"\n[green]JSON report saved:[/green] {json_path}")
    console.print("\n[bold green]Analysis complete.[/bold green]")


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    run(args)


if __name__ == "__main__":
    main()
