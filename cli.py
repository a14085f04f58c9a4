"""
CLI entry point for the strategy analytics tool.
"""
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from strategy_analytics.cache import SnapshotCache
from strategy_analytics.config import GRANULARITIES, Config, default_config, load_config
from strategy_analytics.correlation import interpret_correlation
from strategy_analytics.engine import AnalyticsEngine
from strategy_analytics.errors import CombinationLimitError
from strategy_analytics.ledger import (
    InMemoryTradeLedger,
    StaticTemplateRegistry,
    generate_sample_trades,
    load_templates,
    load_trades,
    save_trades,
)
from strategy_analytics.reporting import generate_all_reports

# Console is created once and passed down. Log to stderr to keep stdout
# free for data output.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Strategy performance & correlation analytics.")
console = Console(stderr=True)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to the YAML configuration file.", exists=True)
LedgerOption = typer.Option(None, "--ledger", "-l", help="Trade file (JSON or CSV). Overrides data.ledger_path.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    """Strategy performance & correlation analytics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config_or_exit(config_path: Optional[Path]) -> Config:
    """Helper to load config and exit on failure."""
    if config_path is None:
        return default_config()
    try:
        return load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


def _build_engine(config: Config, ledger_path: Optional[Path]) -> AnalyticsEngine:
    """Loads the ledger and template catalog and binds an engine to them."""
    path = ledger_path or config.data.ledger_path
    try:
        trades = load_trades(path)
        templates = load_templates(config.data.templates_path) if config.data.templates_path else None
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Data Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    cache = SnapshotCache()
    ledger = InMemoryTradeLedger(trades, cache=cache)
    registry = StaticTemplateRegistry(templates) if templates else StaticTemplateRegistry()
    console.print(f"Loaded {len(ledger)} trades across {len(registry.all())} strategies.")
    return AnalyticsEngine(ledger, registry, config, cache)


@app.command()
def analyze(
    config_path: Optional[Path] = ConfigOption,
    ledger_path: Optional[Path] = LedgerOption,
):
    """Run every analysis and write the configured reports."""
    config = _load_config_or_exit(config_path)
    engine = _build_engine(config, ledger_path)

    try:
        console.rule("[bold]Generating Reports[/bold]")
        run_dir = Path(config.run.output_dir)
        run_dir.mkdir(parents=True, exist_ok=True)
        console.print(f"Run artifacts will be saved to: [cyan]{run_dir}[/cyan]")
        generate_all_reports(config, engine, run_dir, console)
    except CombinationLimitError as e:
        console.print(f"[bold red]Portfolio search aborted:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print("[bold green]Analyze command finished.[/bold green]")


@app.command()
def correlations(
    config_path: Optional[Path] = ConfigOption,
    ledger_path: Optional[Path] = LedgerOption,
):
    """Show every strategy pair ranked by diversification benefit."""
    config = _load_config_or_exit(config_path)
    engine = _build_engine(config, ledger_path)

    table = Table(title="Strategy Pairs")
    for column in ("Strategy A", "Strategy B", "Correlation", "Benefit [%]", "Win Rate [%]", "Rating", "Reading"):
        table.add_column(column)
    for pair in engine.pairwise_correlations()[: config.reporting.top_n]:
        table.add_row(
            pair.strategy_a,
            pair.strategy_b,
            f"{pair.correlation:.2f}",
            f"{pair.diversification_benefit:.1f}",
            f"{pair.combined_win_rate:.1f}",
            pair.recommendation,
            interpret_correlation(pair.correlation),
        )
    console.print(table)


@app.command()
def portfolios(
    size: Optional[int] = typer.Option(None, "--size", "-k", min=1, help="Strategies per portfolio."),
    config_path: Optional[Path] = ConfigOption,
    ledger_path: Optional[Path] = LedgerOption,
):
    """Rank multi-strategy portfolios by diversification and win rate."""
    config = _load_config_or_exit(config_path)
    engine = _build_engine(config, ledger_path)

    try:
        recommendations = engine.portfolio_recommendations(size)
    except CombinationLimitError as e:
        console.print(f"[bold red]Portfolio search aborted:[/bold red] {e}")
        raise typer.Exit(code=1)

    if not recommendations:
        console.print("[yellow]No portfolio has any closed trades.[/yellow]")
        return

    table = Table(title="Portfolio Recommendations")
    for column in ("Strategies", "Score", "Win Rate [%]", "Avg Return [%]", "Risk Reduction [%]", "Rationale"):
        table.add_column(column)
    for rec in recommendations[: config.reporting.top_n]:
        table.add_row(
            " + ".join(rec.strategies),
            f"{rec.diversification_score:.1f}",
            f"{rec.expected_win_rate:.1f}",
            f"{rec.expected_avg_return:.2f}",
            f"{rec.risk_reduction:.1f}",
            rec.rationale,
        )
    console.print(table)


@app.command()
def performance(
    config_path: Optional[Path] = ConfigOption,
    ledger_path: Optional[Path] = LedgerOption,
):
    """Show per-strategy and overall win/loss statistics."""
    config = _load_config_or_exit(config_path)
    engine = _build_engine(config, ledger_path)

    table = Table(title="Strategy Performance")
    for column in ("Strategy", "Trades", "Open", "Win Rate [%]", "Avg Gain [%]", "Avg Loss [%]",
                   "Profit Factor", "Return [%]", "Best [%]", "Worst [%]"):
        table.add_column(column)
    for p in engine.all_strategy_performance():
        table.add_row(
            p.template_name, str(p.total_trades), str(p.open_trades), f"{p.win_rate:.1f}",
            f"{p.avg_gain:.2f}", f"{p.avg_loss:.2f}", str(p.profit_factor), f"{p.total_return:.2f}",
            f"{p.best_trade:.2f}", f"{p.worst_trade:.2f}",
        )
    console.print(table)

    overall = engine.overall_performance()
    console.print(
        f"Overall: {overall.total_trades} trades, {overall.total_wins} wins, {overall.total_losses} losses, "
        f"win rate {overall.win_rate:.1f}%, avg return {overall.avg_return:.2f}%"
    )


@app.command()
def periods(
    granularity: str = typer.Option("month", "--granularity", "-g", help=f"One of: {', '.join(GRANULARITIES)}."),
    config_path: Optional[Path] = ConfigOption,
    ledger_path: Optional[Path] = LedgerOption,
):
    """Show performance bucketed by calendar period."""
    if granularity not in GRANULARITIES:
        console.print(f"[bold red]Unknown granularity '{granularity}'.[/bold red] Expected one of {', '.join(GRANULARITIES)}.")
        raise typer.Exit(code=1)

    config = _load_config_or_exit(config_path)
    engine = _build_engine(config, ledger_path)
    report = engine.strategy_comparison_report(granularity)

    table = Table(title=f"Performance by {granularity}")
    for column in ("Period", "Trades", "Closed", "Wins", "Losses", "Win Rate [%]", "Avg Return [%]"):
        table.add_column(column)
    for r in report.period_reports:
        table.add_row(
            r.period, str(r.total_trades), str(r.closed_trades), str(r.winning_trades),
            str(r.losing_trades), f"{r.win_rate:.1f}", f"{r.avg_return:.2f}",
        )
    console.print(table)

    if report.overall.best_period:
        console.print(f"Best period: {report.overall.best_period.period}")
        console.print(f"Worst period: {report.overall.worst_period.period}")


@app.command(name="sample-data")
def sample_data(
    output: Path = typer.Option(Path("data/trades.json"), "--output", "-o", help="Where to write the trades."),
    count: int = typer.Option(25, "--count", "-n", min=1, help="Number of trades."),
    seed: int = typer.Option(42, "--seed", help="Random seed."),
):
    """Write a deterministic demo trade ledger."""
    trades = generate_sample_trades(count, seed)
    save_trades(trades, output)
    console.print(f"[bold green]Wrote {len(trades)} sample trades to {output}.[/bold green]")


if __name__ == "__main__":
    app()
