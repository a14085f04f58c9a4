"""Tests for report generation and comparison report export."""
import io
import json
import math
from datetime import date, datetime
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
from rich.console import Console

from strategy_analytics.config import Config, ReportingConfig, RunConfig
from strategy_analytics.engine import AnalyticsEngine
from strategy_analytics.ledger import InMemoryTradeLedger, StaticTemplateRegistry, generate_sample_trades
from strategy_analytics.reporting import (
    _to_json_serializable,
    correlations_frame,
    export_report_csv,
    export_report_json,
    generate_all_reports,
    performance_frame,
    portfolios_frame,
)
from strategy_analytics.types import ProfitFactor


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    return Config(run=RunConfig(name="test_reporting_run", output_dir=tmp_path))


@pytest.fixture
def engine(test_config: Config) -> AnalyticsEngine:
    trades = generate_sample_trades(count=30, seed=5, now=datetime(2024, 6, 1))
    return AnalyticsEngine(InMemoryTradeLedger(trades), StaticTemplateRegistry(), test_config)


@pytest.fixture
def console() -> Console:
    return Console(file=io.StringIO())


def test_generate_all_reports_writes_every_format(
    test_config: Config, engine: AnalyticsEngine, console: Console, tmp_path: Path
) -> None:
    generate_all_reports(test_config, engine, tmp_path, console)

    for name in (
        "correlations.csv", "portfolios.csv", "performance.csv", "returns.csv", "periods.csv",
        "summary.json", "summary.md",
    ):
        assert (tmp_path / name).is_file(), f"{name} was not written"
    assert "All reports generated." in console.file.getvalue()


def test_summary_json_contents(test_config: Config, engine: AnalyticsEngine, console: Console, tmp_path: Path) -> None:
    generate_all_reports(test_config, engine, tmp_path, console)
    with open(tmp_path / "summary.json", "r", encoding="utf-8") as f:
        summary = json.load(f)

    assert summary["run_name"] == "test_reporting_run"
    assert summary["trade_status"] == {"open": 0, "closed": 30, "cancelled": 0}
    assert summary["overall"]["total_trades"] == 30
    assert len(summary["correlation_matrix"]["strategies"]) == 8
    assert len(summary["pairs"]) == test_config.reporting.top_n
    assert summary["periods"]["granularity"] == "month"
    for strategy in summary["strategies"]:
        assert isinstance(strategy["profit_factor"], (float, int)) or strategy["profit_factor"] == "inf"


def test_summary_markdown(test_config: Config, engine: AnalyticsEngine, console: Console, tmp_path: Path) -> None:
    generate_all_reports(test_config, engine, tmp_path, console)
    md = (tmp_path / "summary.md").read_text()
    assert md.startswith("# Strategy Analysis: test_reporting_run")
    assert "## Top Strategy Pairs" in md
    assert "## Top Portfolios" in md


def test_only_configured_formats(engine: AnalyticsEngine, console: Console, tmp_path: Path) -> None:
    config = Config(reporting=ReportingConfig(output_formats=["json"]))
    generate_all_reports(config, engine, tmp_path, console)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["summary.json"]


def test_export_report_csv(engine: AnalyticsEngine) -> None:
    report = engine.strategy_comparison_report("month")
    lines = export_report_csv(report).splitlines()

    assert lines[0] == "Strategy Comparison Report"
    assert lines[1].startswith("Generated,")
    assert lines[2] == "Time Period,month"
    assert "Overall Statistics" in lines
    assert "Total Trades,30" in lines
    assert any(line.startswith("Best Period,") for line in lines)

    details = lines.index("Period Details")
    table = pd.read_csv(io.StringIO("\n".join(lines[details + 1:])))
    assert list(table["period"]) == [r.period for r in report.period_reports]
    assert table["total_trades"].sum() == 30


def test_export_report_csv_empty() -> None:
    engine = AnalyticsEngine(InMemoryTradeLedger(), StaticTemplateRegistry())
    text = export_report_csv(engine.strategy_comparison_report("week"))
    assert 'Best Period,"N/A"' in text
    assert text.endswith("Period Details\n")


def test_export_report_json(engine: AnalyticsEngine) -> None:
    report = engine.strategy_comparison_report("quarter")
    data = json.loads(export_report_json(report))
    assert data["granularity"] == "quarter"
    assert len(data["period_reports"]) == len(report.period_reports)
    assert data["period_reports"][0]["start_date"] == report.period_reports[0].start_date.isoformat()


def test_frames(engine: AnalyticsEngine) -> None:
    pairs = correlations_frame(engine.pairwise_correlations())
    assert len(pairs) == 28
    assert "interpretation" in pairs.columns

    portfolios = portfolios_frame(engine.portfolio_recommendations(2))
    assert portfolios["strategies"].str.contains(" + ", regex=False).all()

    performance = performance_frame(engine.all_strategy_performance())
    assert performance["profit_factor"].map(type).eq(str).all()

    assert correlations_frame([]).empty
    assert portfolios_frame([]).empty
    assert performance_frame([]).empty


def test_to_json_serializable() -> None:
    data = {
        "pf": ProfitFactor(infinite=True),
        "np_int": np.int64(3),
        "np_float": np.float64(1.5),
        "nan": float("nan"),
        "inf": math.inf,
        "flag": np.bool_(True),
        "day": date(2024, 1, 2),
        "path": Path("runs") / "x",
        "nested": [(1, 2)],
    }
    result = _to_json_serializable(data)
    assert result == {
        "pf": "inf",
        "np_int": 3,
        "np_float": 1.5,
        "nan": None,
        "inf": "inf",
        "flag": True,
        "day": "2024-01-02",
        "path": str(Path("runs") / "x"),
        "nested": [[1, 2]],
    }
    json.dumps(result)
