"""
Generating output reports from an analytics run.
"""
import io
import json
import math
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd
from pydantic import BaseModel
from rich.console import Console

from strategy_analytics.config import Config
from strategy_analytics.correlation import interpret_correlation
from strategy_analytics.engine import AnalyticsEngine
from strategy_analytics.performance import status_counts
from strategy_analytics.returns import trade_returns_frame
from strategy_analytics.types import (
    PortfolioRecommendation,
    StrategyComparisonReport,
    StrategyPerformance,
    TemplateCorrelation,
)

__all__ = [
    "generate_all_reports",
    "correlations_frame",
    "portfolios_frame",
    "performance_frame",
    "export_report_csv",
    "export_report_json",
]


def _to_json_serializable(data):
    """Recursively converts non-serializable types in a dictionary."""
    if isinstance(data, BaseModel):
        return _to_json_serializable(data.model_dump())
    if isinstance(data, dict):
        return {k: _to_json_serializable(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_to_json_serializable(i) for i in data]
    if isinstance(data, (Path, pd.Timestamp, datetime, date)):
        return data.isoformat() if not isinstance(data, Path) else str(data)
    if data is None:
        return None
    if isinstance(data, (np.integer,)):
        return int(data)
    if isinstance(data, (np.floating, float)):
        value = float(data)
        if math.isnan(value):
            return None
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        return value
    if isinstance(data, np.bool_):
        return bool(data)
    return data


def correlations_frame(pairs: List[TemplateCorrelation]) -> pd.DataFrame:
    """One row per strategy pair, with a plain-language reading of the correlation."""
    if not pairs:
        return pd.DataFrame()
    df = pd.DataFrame([p.model_dump() for p in pairs])
    df["interpretation"] = df["correlation"].map(interpret_correlation)
    return df


def portfolios_frame(recommendations: List[PortfolioRecommendation]) -> pd.DataFrame:
    if not recommendations:
        return pd.DataFrame()
    df = pd.DataFrame([r.model_dump() for r in recommendations])
    df["strategies"] = df["strategies"].map(" + ".join)
    return df


def performance_frame(performances: List[StrategyPerformance]) -> pd.DataFrame:
    if not performances:
        return pd.DataFrame()
    df = pd.DataFrame([p.model_dump() for p in performances])
    # ProfitFactor dumps to a float or "inf"; keep the column textual for CSV.
    df["profit_factor"] = [str(p.profit_factor) for p in performances]
    return df


def export_report_csv(report: StrategyComparisonReport) -> str:
    """Renders a comparison report as a two-section CSV document."""
    overall = report.overall
    buf = io.StringIO()
    buf.write("Strategy Comparison Report\n")
    buf.write(f"Generated,{report.generated_at.isoformat()}\n")
    buf.write(f"Time Period,{report.granularity}\n\n")
    buf.write("Overall Statistics\n")
    buf.write(f"Total Trades,{overall.total_trades}\n")
    buf.write(f"Winning Trades,{overall.total_wins}\n")
    buf.write(f"Losing Trades,{overall.total_losses}\n")
    buf.write(f"Win Rate,{overall.win_rate:.2f}%\n")
    buf.write(f"Average Return,{overall.avg_return:.2f}%\n")
    buf.write(f'Best Period,"{overall.best_period.period if overall.best_period else "N/A"}"\n')
    buf.write(f'Worst Period,"{overall.worst_period.period if overall.worst_period else "N/A"}"\n\n')
    buf.write("Period Details\n")

    if report.period_reports:
        df = pd.DataFrame([r.model_dump() for r in report.period_reports])
        df.to_csv(buf, index=False, float_format="%.2f")
    return buf.getvalue()


def export_report_json(report: StrategyComparisonReport) -> str:
    return json.dumps(_to_json_serializable(report), indent=2)


# impure
def _write_csv(df: pd.DataFrame, path: Path) -> None:
    if not df.empty:
        df.to_csv(path, index=False)


# impure
def _generate_csv_reports(engine: AnalyticsEngine, config: Config, output_dir: Path) -> None:
    """Writes one CSV per analysis."""
    _write_csv(correlations_frame(engine.pairwise_correlations()), output_dir / "correlations.csv")
    _write_csv(portfolios_frame(engine.portfolio_recommendations()), output_dir / "portfolios.csv")
    _write_csv(performance_frame(engine.all_strategy_performance()), output_dir / "performance.csv")
    _write_csv(trade_returns_frame(engine.ledger.all_trades()), output_dir / "returns.csv")

    report = engine.strategy_comparison_report(config.reporting.granularity)
    (output_dir / "periods.csv").write_text(export_report_csv(report))


def _summary(engine: AnalyticsEngine, config: Config) -> Dict[str, Any]:
    top_n = config.reporting.top_n
    return {
        "run_name": config.run.name,
        "trade_status": status_counts(engine.ledger.all_trades()),
        "overall": engine.overall_performance(),
        "strategies": engine.all_strategy_performance(),
        "correlation_matrix": engine.build_correlation_matrix(),
        "pairs": engine.pairwise_correlations()[:top_n],
        "portfolios": engine.portfolio_recommendations()[:top_n],
        "periods": engine.strategy_comparison_report(config.reporting.granularity),
    }


# impure
def _generate_summary_json(engine: AnalyticsEngine, config: Config, output_dir: Path) -> None:
    """Generates a JSON file with every analysis result."""
    with (output_dir / "summary.json").open("w") as f:
        json.dump(_to_json_serializable(_summary(engine, config)), f, indent=2)


# impure
def _generate_summary_markdown(engine: AnalyticsEngine, config: Config, output_dir: Path) -> None:
    """Generates a Markdown file with a human-readable summary."""
    top_n = config.reporting.top_n
    overall = engine.overall_performance()

    md = f"# Strategy Analysis: {config.run.name}\n\n"
    md += "## Overall Performance\n\n"
    md += f"- **Total Trades**: {overall.total_trades}\n"
    md += f"- **Closed / Open**: {overall.closed_trades} / {overall.open_trades}\n"
    md += f"- **Win Rate [%]**: {overall.win_rate:.2f}\n"
    md += f"- **Avg Return [%]**: {overall.avg_return:.2f}\n"
    if overall.best_strategy:
        md += f"- **Best Strategy**: {overall.best_strategy.template_name}\n"
    if overall.worst_strategy:
        md += f"- **Worst Strategy**: {overall.worst_strategy.template_name}\n"

    md += "\n## Strategies\n\n"
    md += "| Strategy | Trades | Win Rate [%] | Avg Gain [%] | Avg Loss [%] | Profit Factor | Return [%] |\n"
    md += "|---|---|---|---|---|---|---|\n"
    for p in engine.all_strategy_performance():
        md += (
            f"| {p.template_name} | {p.total_trades} | {p.win_rate:.2f} | {p.avg_gain:.2f} "
            f"| {p.avg_loss:.2f} | {p.profit_factor} | {p.total_return:.2f} |\n"
        )

    md += "\n## Top Strategy Pairs\n\n"
    for pair in engine.pairwise_correlations()[:top_n]:
        md += (
            f"- **{pair.strategy_a} / {pair.strategy_b}**: correlation {pair.correlation:.2f} "
            f"({interpret_correlation(pair.correlation)}), benefit {pair.diversification_benefit:.1f}%, "
            f"{pair.recommendation}\n"
        )

    md += "\n## Top Portfolios\n\n"
    for rec in engine.portfolio_recommendations()[:top_n]:
        md += (
            f"- **{' + '.join(rec.strategies)}**: score {rec.diversification_score:.1f}, "
            f"win rate {rec.expected_win_rate:.1f}%. {rec.rationale}\n"
        )

    (output_dir / "summary.md").write_text(md)


# impure
def generate_all_reports(
    config: Config,
    engine: AnalyticsEngine,
    run_dir: Path,
    console: Console,
) -> None:
    """
    Orchestrates the generation of all output reports.
    #impure: Writes to the filesystem.
    """
    formats = config.reporting.output_formats

    if "csv" in formats:
        console.print("Generating CSV tables...")
        _generate_csv_reports(engine, config, run_dir)

    if "json" in formats:
        console.print("Generating summary JSON...")
        _generate_summary_json(engine, config, run_dir)

    if "markdown" in formats:
        console.print("Generating summary Markdown...")
        _generate_summary_markdown(engine, config, run_dir)

    console.print("All reports generated.")
