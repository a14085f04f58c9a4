"""
Win/loss rollups per strategy, per ticker and across the whole ledger.
"""
from collections import Counter
from typing import Dict, List, Optional, Sequence

from strategy_analytics.returns import closed_trades, trade_return
from strategy_analytics.types import (
    OverallPerformance,
    ProfitFactor,
    StockPerformance,
    StrategyPerformance,
    Trade,
)

__all__ = [
    "trade_metrics",
    "strategy_performance",
    "all_strategy_performance",
    "stock_performance",
    "overall_performance",
    "status_counts",
]


def trade_metrics(trades: Sequence[Trade]) -> Dict[str, float]:
    """
    Counts and return statistics over a set of trades.

    Returns:
        A dict with total_trades, closed_trades, open_trades, winning_trades,
        losing_trades, win_rate, avg_return, total_return, total_gain,
        total_loss, best_trade, worst_trade. Best and worst only consider
        winners and losers respectively and are 0 when there are none.
    """
    closed = closed_trades(trades)
    returns = [trade_return(t) for t in closed]
    gains = [r for r in returns if r > 0]
    losses = [r for r in returns if r < 0]
    total_return = sum(returns)

    return {
        "total_trades": len(trades),
        "closed_trades": len(closed),
        "open_trades": sum(1 for t in trades if t.status == "open"),
        "winning_trades": len(gains),
        "losing_trades": len(losses),
        "win_rate": len(gains) / len(closed) * 100 if closed else 0.0,
        "avg_return": total_return / len(closed) if closed else 0.0,
        "total_return": total_return,
        "total_gain": sum(gains),
        "total_loss": sum(abs(r) for r in losses),
        "best_trade": max(gains, default=0.0),
        "worst_trade": min(losses, default=0.0),
    }


def strategy_performance(trades: Sequence[Trade], template_id: str) -> Optional[StrategyPerformance]:
    """
    Performance of one strategy, or None if nothing was ever traded under it.

    `total_return` is the net mean return per closed trade.
    """
    own = [t for t in trades if t.template_id == template_id]
    if not own:
        return None

    m = trade_metrics(own)
    return StrategyPerformance(
        template_id=template_id,
        template_name=own[0].template_name or template_id,
        total_trades=m["total_trades"],
        winning_trades=m["winning_trades"],
        losing_trades=m["losing_trades"],
        open_trades=m["open_trades"],
        win_rate=m["win_rate"],
        avg_gain=m["total_gain"] / m["winning_trades"] if m["winning_trades"] else 0.0,
        avg_loss=m["total_loss"] / m["losing_trades"] if m["losing_trades"] else 0.0,
        profit_factor=ProfitFactor.from_totals(m["total_gain"], m["total_loss"]),
        total_return=m["avg_return"],
        best_trade=m["best_trade"],
        worst_trade=m["worst_trade"],
    )


def all_strategy_performance(trades: Sequence[Trade]) -> List[StrategyPerformance]:
    """Performance of every strategy in the ledger, best total return first."""
    template_ids = list(dict.fromkeys(t.template_id for t in trades))
    performances = [strategy_performance(trades, tid) for tid in template_ids]
    return sorted((p for p in performances if p), key=lambda p: p.total_return, reverse=True)


def stock_performance(trades: Sequence[Trade], ticker: str) -> Optional[StockPerformance]:
    own = [t for t in trades if t.ticker == ticker]
    if not own:
        return None

    m = trade_metrics(own)
    return StockPerformance(
        ticker=ticker,
        total_trades=m["total_trades"],
        winning_trades=m["winning_trades"],
        losing_trades=m["losing_trades"],
        win_rate=m["win_rate"],
        total_return=m["avg_return"],
    )


def overall_performance(trades: Sequence[Trade]) -> OverallPerformance:
    """
    Ledger-wide rollup.

    The best and worst strategies are the ends of `all_strategy_performance`.
    """
    m = trade_metrics(trades)
    ranked = all_strategy_performance(trades)
    return OverallPerformance(
        total_trades=m["total_trades"],
        closed_trades=m["closed_trades"],
        open_trades=m["open_trades"],
        total_wins=m["winning_trades"],
        total_losses=m["losing_trades"],
        win_rate=m["win_rate"],
        avg_return=m["avg_return"],
        best_strategy=ranked[0] if ranked else None,
        worst_strategy=ranked[-1] if ranked else None,
    )


def status_counts(trades: Sequence[Trade]) -> Dict[str, int]:
    """Number of trades in each lifecycle state."""
    counts = Counter(t.status for t in trades)
    return {status: counts.get(status, 0) for status in ("open", "closed", "cancelled")}
