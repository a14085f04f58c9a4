"""
Calendar-bucketed performance reports.

Trades are assigned to a calendar window by their entry date. Weeks start
on Sunday. Two bucketing modes exist:

- data-driven (default): one report per window that holds at least one
  trade, in chronological order;
- trailing: with a `reference_date`, a fixed run of windows ending at that
  date (30 days, 12 weeks, 12 months, 4 quarters or 3 years), including
  empty ones.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from strategy_analytics.config import GRANULARITIES
from strategy_analytics.performance import trade_metrics
from strategy_analytics.types import ComparisonStats, PeriodReport, StrategyComparisonReport, Trade

__all__ = ["window_for", "trailing_windows", "period_reports", "strategy_comparison_report"]

Window = Tuple[date, date, str]

TRAILING_COUNTS = {"day": 30, "week": 12, "month": 12, "quarter": 4, "year": 3}


def _check_granularity(granularity: str) -> None:
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity '{granularity}'. Expected one of {', '.join(GRANULARITIES)}.")


def window_for(day: date, granularity: str) -> Window:
    """The calendar window containing `day`, as (start, end, label)."""
    _check_granularity(granularity)
    if granularity == "day":
        return day, day, day.strftime("%b %d, %Y")
    if granularity == "week":
        start = day - timedelta(days=(day.weekday() + 1) % 7)
        return start, start + timedelta(days=6), f"Week of {start.strftime('%b %d, %Y')}"
    if granularity == "month":
        start = day.replace(day=1)
        return start, start + relativedelta(months=1, days=-1), start.strftime("%B %Y")
    if granularity == "quarter":
        quarter = (day.month - 1) // 3
        start = date(day.year, quarter * 3 + 1, 1)
        return start, start + relativedelta(months=3, days=-1), f"Q{quarter + 1} {day.year}"
    if granularity == "year":
        return date(day.year, 1, 1), date(day.year, 12, 31), str(day.year)
    return date.min, date.max, "All Time"


def trailing_windows(granularity: str, reference_date: date) -> List[Window]:
    """Consecutive windows ending with the one that holds `reference_date`, oldest first."""
    _check_granularity(granularity)
    if granularity == "all":
        return [(date.min, reference_date, "All Time")]

    count = TRAILING_COUNTS[granularity]
    step = {
        "day": relativedelta(days=1),
        "week": relativedelta(weeks=1),
        "month": relativedelta(months=1),
        "quarter": relativedelta(months=3),
        "year": relativedelta(years=1),
    }[granularity]
    return [window_for(reference_date - step * i, granularity) for i in reversed(range(count))]


def _report(window: Window, trades: Sequence[Trade]) -> PeriodReport:
    start, end, label = window
    m = trade_metrics(trades)
    return PeriodReport(
        period=label,
        start_date=start,
        end_date=end,
        total_trades=m["total_trades"],
        closed_trades=m["closed_trades"],
        open_trades=m["open_trades"],
        winning_trades=m["winning_trades"],
        losing_trades=m["losing_trades"],
        win_rate=m["win_rate"],
        avg_return=m["avg_return"],
        total_return=m["total_return"],
        best_trade=m["best_trade"],
        worst_trade=m["worst_trade"],
    )


def period_reports(
    trades: Sequence[Trade],
    granularity: str,
    reference_date: Optional[date] = None,
) -> List[PeriodReport]:
    """
    Per-window trade metrics.

    Args:
        trades: A ledger snapshot.
        granularity: One of day, week, month, quarter, year, all.
        reference_date: When given, report the trailing run of windows
            ending at this date instead of the windows found in the data.

    Raises:
        ValueError: If the granularity is unknown.
    """
    _check_granularity(granularity)

    if reference_date is not None:
        return [
            _report(w, [t for t in trades if w[0] <= t.entry_date.date() <= w[1]])
            for w in trailing_windows(granularity, reference_date)
        ]

    if not trades:
        return []

    if granularity == "all":
        days = [t.entry_date.date() for t in trades]
        return [_report((min(days), max(days), "All Time"), list(trades))]

    buckets: Dict[Window, List[Trade]] = {}
    for trade in trades:
        buckets.setdefault(window_for(trade.entry_date.date(), granularity), []).append(trade)

    return [_report(w, buckets[w]) for w in sorted(buckets)]


def strategy_comparison_report(
    trades: Sequence[Trade],
    granularity: str,
    reference_date: Optional[date] = None,
) -> StrategyComparisonReport:
    """
    Period reports plus a rollup across them.

    The rollup's average return is the mean of per-period averages; the
    best and worst periods are chosen by average return, earliest wins ties.
    """
    reports = period_reports(trades, granularity, reference_date)
    overall = trade_metrics(trades)

    best = max(reports, key=lambda r: r.avg_return, default=None)
    worst = min(reports, key=lambda r: r.avg_return, default=None)

    return StrategyComparisonReport(
        generated_at=datetime.now(timezone.utc),
        granularity=granularity,
        period_reports=reports,
        overall=ComparisonStats(
            total_trades=overall["total_trades"],
            total_wins=sum(r.winning_trades for r in reports),
            total_losses=sum(r.losing_trades for r in reports),
            win_rate=overall["win_rate"],
            avg_return=sum(r.avg_return for r in reports) / len(reports) if reports else 0.0,
            best_period=best,
            worst_period=worst,
        ),
    )
