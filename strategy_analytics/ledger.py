"""
Trade ledger and template registry used by the analytics engine.

The analytics functions only ever read snapshots (`all_trades()`); the
in-memory ledger here enforces the trade lifecycle and invalidates an
attached result cache whenever it changes.
"""
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd
import yaml
from pydantic import ValidationError

from strategy_analytics.cache import SnapshotCache
from strategy_analytics.errors import LedgerError
from strategy_analytics.types import Template, Trade

__all__ = [
    "TradeLedger",
    "TemplateRegistry",
    "InMemoryTradeLedger",
    "StaticTemplateRegistry",
    "DEFAULT_TEMPLATES",
    "load_trades",
    "save_trades",
    "load_templates",
    "generate_sample_trades",
]

log = logging.getLogger(__name__)


class TradeLedger(Protocol):
    def all_trades(self) -> Sequence[Trade]: ...


class TemplateRegistry(Protocol):
    def all(self) -> Sequence[Template]: ...


DEFAULT_TEMPLATES: Tuple[Template, ...] = (
    Template(id="support-resistance", name="Support & Resistance",
             description="Monitor key support and resistance levels for breakouts"),
    Template(id="profit-taking", name="Profit Taking Levels",
             description="Set alerts at key profit-taking milestones"),
    Template(id="entry-points", name="Entry Point Strategy",
             description="Identify optimal entry points with multiple levels"),
    Template(id="risk-management", name="Risk Management",
             description="Protect capital with stop-loss and trailing alerts"),
    Template(id="sector-rotation", name="Sector Rotation Strategy",
             description="Monitor sector rotation opportunities"),
    Template(id="mean-reversion", name="Mean Reversion",
             description="Trade mean reversion patterns"),
    Template(id="momentum", name="Momentum Trading",
             description="Capture momentum moves with tiered alerts"),
    Template(id="dividend-capture", name="Dividend Capture",
             description="Alerts for dividend-focused strategies"),
)


class StaticTemplateRegistry:
    """An immutable template catalog."""

    def __init__(self, templates: Sequence[Template] = DEFAULT_TEMPLATES):
        self._templates = tuple(templates)

    def all(self) -> Tuple[Template, ...]:
        return self._templates

    def get(self, key: str) -> Optional[Template]:
        """Looks a template up by id or name."""
        return next((t for t in self._templates if key in (t.id, t.name)), None)


class InMemoryTradeLedger:
    """
    Ordered trade log with lifecycle enforcement.

    Trades move open -> closed or open -> cancelled exactly once. After that
    only the notes may change.
    """

    def __init__(self, trades: Sequence[Trade] = (), cache: Optional[SnapshotCache] = None):
        self._trades: List[Trade] = list(trades)
        self.cache = cache

    def all_trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def __len__(self) -> int:
        return len(self._trades)

    def _changed(self) -> None:
        if self.cache is not None:
            self.cache.invalidate()

    def _index_of(self, trade_id: str) -> int:
        for i, trade in enumerate(self._trades):
            if trade.id == trade_id:
                return i
        raise LedgerError(f"Unknown trade id: {trade_id}")

    def get(self, trade_id: str) -> Trade:
        return self._trades[self._index_of(trade_id)]

    def record_entry(
        self,
        ticker: str,
        template_id: str,
        template_name: str,
        entry_price: float,
        quantity: float = 1,
        notes: Optional[str] = None,
        entry_date: Optional[datetime] = None,
    ) -> Trade:
        """Appends a new open trade and returns it."""
        try:
            trade = Trade(
                id=f"trade_{uuid.uuid4().hex[:12]}",
                ticker=ticker,
                template_id=template_id,
                template_name=template_name,
                entry_price=entry_price,
                entry_date=entry_date or datetime.now(timezone.utc),
                quantity=quantity,
                notes=notes,
                status="open",
            )
        except ValidationError as e:
            raise LedgerError(f"Invalid trade entry for {ticker}: {e}") from e

        self._trades.append(trade)
        self._changed()
        log.info(f"Recorded {trade.id}: {ticker} under '{template_name}' at {entry_price}.")
        return trade

    def close_trade(
        self,
        trade_id: str,
        exit_price: float,
        exit_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Trade:
        """Records the exit of an open trade. Exit price and date are set together."""
        i = self._index_of(trade_id)
        trade = self._trades[i]
        if trade.status != "open":
            raise LedgerError(f"Cannot close trade {trade_id}: status is {trade.status}.")
        if exit_price <= 0:
            raise LedgerError(f"Exit price must be positive, got {exit_price}.")

        update = {
            "exit_price": float(exit_price),
            "exit_date": exit_date or datetime.now(timezone.utc),
            "status": "closed",
        }
        if notes:
            update["notes"] = notes
        # Re-validate so the exit date is normalized like any other trade date.
        self._trades[i] = Trade.model_validate({**trade.model_dump(), **update})
        self._changed()
        log.info(f"Closed {trade_id} at {exit_price}.")
        return self._trades[i]

    def cancel_trade(self, trade_id: str) -> Trade:
        i = self._index_of(trade_id)
        trade = self._trades[i]
        if trade.status != "open":
            raise LedgerError(f"Cannot cancel trade {trade_id}: status is {trade.status}.")
        self._trades[i] = trade.model_copy(update={"status": "cancelled"})
        self._changed()
        return self._trades[i]

    def update_notes(self, trade_id: str, notes: Optional[str]) -> Trade:
        i = self._index_of(trade_id)
        self._trades[i] = self._trades[i].model_copy(update={"notes": notes})
        self._changed()
        return self._trades[i]

    def delete_trade(self, trade_id: str) -> bool:
        """Removes a trade. Returns False if the id is unknown."""
        remaining = [t for t in self._trades if t.id != trade_id]
        if len(remaining) == len(self._trades):
            return False
        self._trades = remaining
        self._changed()
        return True

    def clear(self) -> None:
        self._trades = []
        self._changed()

    def trade_history(self, template_id: Optional[str] = None, ticker: Optional[str] = None) -> List[Trade]:
        """Trades filtered by strategy and/or ticker, most recent entry first."""
        trades = [
            t for t in self._trades
            if (template_id is None or t.template_id == template_id)
            and (ticker is None or t.ticker == ticker)
        ]
        return sorted(trades, key=lambda t: t.entry_date, reverse=True)


# impure
def load_trades(path: Path) -> List[Trade]:
    """
    Reads a trade file into validated Trade objects.

    JSON files hold a list of trade records (snake_case or camelCase keys);
    CSV files hold one trade per row.
    #impure: Reads from the filesystem.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Trade file not found: {path}")

    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path, dtype=str)
        # Values stay strings for pydantic to coerce; empty cells are dropped
        # so the model defaults apply.
        records = [
            {k: v for k, v in row.items() if pd.notna(v)}
            for row in df.to_dict(orient="records")
        ]
    else:
        with path.open("r", encoding="utf-8") as f:
            records = json.load(f)
        if not isinstance(records, list):
            raise ValueError(f"Trade file {path} must contain a JSON list.")

    try:
        trades = [Trade.model_validate(r) for r in records]
    except ValidationError as e:
        raise ValueError(f"Invalid trade record in {path}: {e}") from e

    log.info(f"Loaded {len(trades)} trades from {path}.")
    return trades


# impure
def save_trades(trades: Sequence[Trade], path: Path) -> None:
    """
    Writes trades as a JSON list.
    #impure: Writes to the filesystem.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump([t.model_dump(mode="json") for t in trades], f, indent=2)


# impure
def load_templates(path: Path) -> List[Template]:
    """
    Reads a YAML list of templates (id, name, description).
    #impure: Reads from the filesystem.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Template file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in {path}: {e}") from e

    if not isinstance(raw, list):
        raise ValueError(f"Template file {path} must contain a YAML list.")
    try:
        return [Template.model_validate(entry) for entry in raw]
    except ValidationError as e:
        raise ValueError(f"Invalid template entry in {path}: {e}") from e


def generate_sample_trades(
    count: int = 25,
    seed: int = 42,
    now: Optional[datetime] = None,
) -> List[Trade]:
    """
    Deterministic demo trades: four strategies, six tickers, ~60% winners.

    Winners gain up to 30%, losers lose up to 20%. Entries fall within the
    last 90 days and every trade is closed.
    """
    rng = np.random.default_rng(seed)
    now = now or datetime.now(timezone.utc)
    templates = [t for t in DEFAULT_TEMPLATES if t.id in
                 ("profit-taking", "risk-management", "momentum", "mean-reversion")]
    tickers = ["TSMC", "NVIDIA", "UNH", "JPM", "BRK.B", "BROADCOM"]

    trades = []
    for i in range(count):
        template = templates[rng.integers(len(templates))]
        ticker = tickers[rng.integers(len(tickers))]
        entry_price = 100 + rng.random() * 200
        if rng.random() > 0.4:
            multiplier = 1 + rng.random() * 0.3
        else:
            multiplier = 1 - rng.random() * 0.2
        entry_date = now - timedelta(days=float(rng.random() * 90))
        holding = timedelta(days=float(rng.random() * 30))

        trades.append(
            Trade(
                id=f"trade_sample_{i:03d}",
                ticker=ticker,
                template_id=template.id,
                template_name=template.name,
                entry_price=round(entry_price, 2),
                entry_date=entry_date,
                exit_price=round(entry_price * multiplier, 2),
                exit_date=min(entry_date + holding, now),
                quantity=1,
                status="closed",
            )
        )
    return trades
