"""
Tests for per-strategy, per-ticker and overall performance rollups.
"""
from datetime import datetime
from typing import List, Optional

import pytest

from strategy_analytics.performance import (
    all_strategy_performance,
    overall_performance,
    status_counts,
    stock_performance,
    strategy_performance,
    trade_metrics,
)
from strategy_analytics.types import ProfitFactor, Trade


def _trade(
    trade_id: str,
    template_id: str,
    exit_price: Optional[float],
    status: str = "closed",
    ticker: str = "AAPL",
) -> Trade:
    return Trade(
        id=trade_id,
        ticker=ticker,
        template_id=template_id,
        template_name=template_id.replace("-", " ").title(),
        entry_price=100.0,
        entry_date=datetime(2024, 2, 1),
        exit_price=exit_price,
        exit_date=datetime(2024, 2, 9) if exit_price is not None else None,
        status=status,
    )


@pytest.fixture
def ledger() -> List[Trade]:
    """Momentum: +10, +20, -5, one open, one cancelled. Swing: -2, open."""
    return [
        _trade("m1", "momentum", 110.0),
        _trade("m2", "momentum", 120.0, ticker="MSFT"),
        _trade("m3", "momentum", 95.0),
        _trade("m4", "momentum", None, status="open"),
        _trade("m5", "momentum", 150.0, status="cancelled"),
        _trade("s1", "swing", 98.0, ticker="MSFT"),
        _trade("s2", "swing", None, status="open"),
    ]


def test_strategy_performance_three_trade_fixture(ledger: List[Trade]):
    perf = strategy_performance(ledger, "momentum")

    assert perf.template_name == "Momentum"
    assert perf.total_trades == 5
    assert perf.open_trades == 1
    assert perf.winning_trades == 2
    assert perf.losing_trades == 1
    assert perf.win_rate == pytest.approx(66.67, abs=0.01)
    assert perf.avg_gain == pytest.approx(15.0)
    assert perf.avg_loss == pytest.approx(5.0)
    assert float(perf.profit_factor) == pytest.approx(6.0)
    assert perf.total_return == pytest.approx(8.33, abs=0.01)
    assert perf.best_trade == pytest.approx(20.0)
    assert perf.worst_trade == pytest.approx(-5.0)


def test_cancelled_trades_do_not_contribute(ledger: List[Trade]):
    """The cancelled +50% trade would otherwise be the best trade."""
    perf = strategy_performance(ledger, "momentum")
    assert perf.best_trade == pytest.approx(20.0)
    assert trade_metrics(ledger)["closed_trades"] == 4


def test_strategy_without_closed_trades():
    perf = strategy_performance([_trade("o1", "breakout", None, status="open")], "breakout")

    assert perf.win_rate == 0.0
    assert float(perf.profit_factor) == 0.0
    assert perf.avg_gain == perf.avg_loss == perf.total_return == 0.0
    assert perf.best_trade == perf.worst_trade == 0.0


def test_unknown_strategy_is_none(ledger: List[Trade]):
    assert strategy_performance(ledger, "does-not-exist") is None


def test_profit_factor_infinite_variant():
    trades = [_trade("w1", "breakout", 105.0), _trade("w2", "breakout", 112.0)]
    perf = strategy_performance(trades, "breakout")

    assert perf.profit_factor.infinite
    assert str(perf.profit_factor) == "∞"
    assert perf.model_dump(mode="json")["profit_factor"] == "inf"


def test_profit_factor_from_totals():
    assert ProfitFactor.from_totals(30.0, 5.0).value == pytest.approx(6.0)
    assert not ProfitFactor.from_totals(0.0, 0.0).infinite
    assert ProfitFactor.from_totals(0.0, 0.0).value == 0.0
    assert str(ProfitFactor.from_totals(1.0, 3.0)) == "0.33"


def test_all_strategy_performance_sorted(ledger: List[Trade]):
    ranked = all_strategy_performance(ledger)
    assert [p.template_id for p in ranked] == ["momentum", "swing"]
    assert ranked[1].total_return == pytest.approx(-2.0)


def test_stock_performance(ledger: List[Trade]):
    msft = stock_performance(ledger, "MSFT")
    assert msft.total_trades == 2
    assert msft.winning_trades == 1
    assert msft.losing_trades == 1
    assert msft.win_rate == pytest.approx(50.0)
    assert msft.total_return == pytest.approx(9.0)
    assert stock_performance(ledger, "TSLA") is None


def test_overall_performance(ledger: List[Trade]):
    overall = overall_performance(ledger)

    assert overall.total_trades == 7
    assert overall.closed_trades == 4
    assert overall.open_trades == 2
    assert overall.total_wins == 2
    assert overall.total_losses == 2
    assert overall.win_rate == pytest.approx(50.0)
    assert overall.avg_return == pytest.approx(23 / 4)
    assert overall.best_strategy.template_id == "momentum"
    assert overall.worst_strategy.template_id == "swing"


def test_overall_performance_empty_ledger():
    overall = overall_performance([])
    assert overall.total_trades == 0
    assert overall.win_rate == 0.0
    assert overall.best_strategy is None
    assert overall.worst_strategy is None


def test_overall_performance_idempotent(ledger: List[Trade]):
    snapshot = tuple(ledger)
    assert overall_performance(snapshot) == overall_performance(snapshot)
    assert overall_performance(snapshot).model_dump_json() == overall_performance(snapshot).model_dump_json()


def test_status_counts(ledger: List[Trade]):
    assert status_counts(ledger) == {"open": 2, "closed": 4, "cancelled": 1}
    assert status_counts([]) == {"open": 0, "closed": 0, "cancelled": 0}
