"""
Percentage returns of closed trades.

This module turns ledger snapshots into per-strategy return series. Only
closed trades contribute; cancelled and open trades are ignored, and a
closed trade without an exit price is skipped with a warning.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from strategy_analytics.types import Trade

__all__ = [
    "trade_return",
    "closed_trades",
    "closed_returns",
    "trades_for",
    "returns_for",
    "returns_by_strategy",
    "trade_returns_frame",
]

log = logging.getLogger(__name__)


def trade_return(trade: Trade) -> Optional[float]:
    """Percentage return of a trade, or None when it has no exit price."""
    if trade.exit_price is None:
        return None
    return (trade.exit_price - trade.entry_price) / trade.entry_price * 100


def closed_trades(trades: Iterable[Trade]) -> List[Trade]:
    """
    Closed trades that carry an exit price, in ledger order.

    Closed trades missing their exit price violate the ledger's lifecycle
    and are dropped here rather than propagated.
    """
    result = []
    for trade in trades:
        if trade.status != "closed":
            continue
        if trade.exit_price is None:
            log.warning(f"Skipping closed trade {trade.id} ({trade.ticker}) with no exit price.")
            continue
        result.append(trade)
    return result


def closed_returns(trades: Iterable[Trade]) -> List[float]:
    """Returns of every valid closed trade in `trades`, in ledger order."""
    return [r for r in (trade_return(t) for t in closed_trades(trades)) if r is not None]


def trades_for(trades: Iterable[Trade], strategy: str) -> List[Trade]:
    """All trades recorded under a strategy, matched by template id or name."""
    return [t for t in trades if strategy in (t.template_id, t.template_name)]


def returns_for(trades: Sequence[Trade], strategy: str) -> List[float]:
    """
    The return series of one strategy.

    Args:
        trades: A ledger snapshot.
        strategy: Template id or template name.

    Returns:
        Percentage returns of the strategy's closed trades in ledger order.
        An empty list when the strategy has no closed trades.
    """
    return closed_returns(trades_for(trades, strategy))


def returns_by_strategy(trades: Sequence[Trade], strategies: Iterable[str]) -> Dict[str, List[float]]:
    """Maps each strategy to its return series."""
    return {name: returns_for(trades, name) for name in strategies}


def trade_returns_frame(trades: Sequence[Trade]) -> pd.DataFrame:
    """
    One row per valid closed trade.

    Returns:
        A DataFrame with columns id, ticker, template_id, template_name,
        entry_date, exit_date, return_pct. Empty when there are no closed
        trades.
    """
    closed = closed_trades(trades)
    if not closed:
        return pd.DataFrame()

    df = pd.DataFrame(
        [
            t.model_dump(include={"id", "ticker", "template_id", "template_name", "entry_date", "exit_date"})
            for t in closed
        ]
    )
    df["return_pct"] = [trade_return(t) for t in closed]
    return df[["id", "ticker", "template_id", "template_name", "entry_date", "exit_date", "return_pct"]]
