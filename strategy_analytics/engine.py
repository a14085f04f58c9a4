"""
The analytics facade consumed by the CLI and report layer.

An `AnalyticsEngine` is bound to a trade ledger and a template registry.
Every call takes a fresh snapshot of both and delegates to the pure
functions in the component modules, optionally through a `SnapshotCache`.
"""
import logging
from datetime import date
from typing import Callable, Hashable, List, Optional, Sequence, Tuple, TypeVar

from strategy_analytics import correlation, performance, periods, portfolio
from strategy_analytics.cache import SnapshotCache
from strategy_analytics.config import Config, default_config
from strategy_analytics.ledger import TemplateRegistry, TradeLedger
from strategy_analytics.returns import returns_for
from strategy_analytics.types import (
    CorrelationMatrix,
    OverallPerformance,
    PeriodReport,
    PortfolioRecommendation,
    StockPerformance,
    StrategyComparisonReport,
    StrategyPerformance,
    Template,
    TemplateCorrelation,
    Trade,
)

__all__ = ["AnalyticsEngine"]

log = logging.getLogger(__name__)

T = TypeVar("T")


class AnalyticsEngine:
    """Strategy performance and correlation analytics over a trade ledger."""

    def __init__(
        self,
        ledger: TradeLedger,
        registry: TemplateRegistry,
        config: Optional[Config] = None,
        cache: Optional[SnapshotCache] = None,
    ):
        self.ledger = ledger
        self.registry = registry
        self.config = config or default_config()
        self.cache = cache

    def _snapshot(self) -> Tuple[Tuple[Trade, ...], Tuple[Template, ...]]:
        return tuple(self.ledger.all_trades()), tuple(self.registry.all())

    def _cached(self, operation: str, args: Hashable, trades: Sequence[Trade], compute: Callable[[], T]) -> T:
        if self.cache is None:
            return compute()
        value = self.cache.get_or_compute(operation, args, trades, compute)
        # Hand out a copy so callers cannot mutate the cached list.
        return list(value) if isinstance(value, list) else value

    def extract_returns(self, strategy: str) -> List[float]:
        """Return series of a strategy, looked up by template id or name."""
        trades, _ = self._snapshot()
        return returns_for(trades, strategy)

    def build_correlation_matrix(self) -> CorrelationMatrix:
        trades, templates = self._snapshot()
        return self._cached(
            "correlation_matrix", templates, trades,
            lambda: correlation.build_correlation_matrix(trades, templates),
        )

    def pairwise_correlations(self) -> List[TemplateCorrelation]:
        trades, templates = self._snapshot()
        return self._cached(
            "pairwise_correlations", templates, trades,
            lambda: correlation.pairwise_correlations(trades, templates, self.config.thresholds),
        )

    def portfolio_recommendations(self, size: Optional[int] = None) -> List[PortfolioRecommendation]:
        """
        Ranked portfolios of `size` strategies (config default when omitted).

        Raises:
            CombinationLimitError: If the search space exceeds the configured ceiling.
        """
        size = self.config.analysis.portfolio_size if size is None else size
        trades, templates = self._snapshot()
        log.info(f"Searching portfolios of {size} across {len(templates)} strategies.")
        return self._cached(
            "portfolio_recommendations", (size, templates), trades,
            lambda: portfolio.portfolio_recommendations(
                trades, templates, size, self.config.analysis, self.config.thresholds
            ),
        )

    def strategy_performance(self, strategy_id: str) -> Optional[StrategyPerformance]:
        trades, _ = self._snapshot()
        return performance.strategy_performance(trades, strategy_id)

    def all_strategy_performance(self) -> List[StrategyPerformance]:
        trades, _ = self._snapshot()
        return self._cached(
            "all_strategy_performance", None, trades,
            lambda: performance.all_strategy_performance(trades),
        )

    def stock_performance(self, ticker: str) -> Optional[StockPerformance]:
        trades, _ = self._snapshot()
        return performance.stock_performance(trades, ticker)

    def overall_performance(self) -> OverallPerformance:
        trades, _ = self._snapshot()
        return self._cached(
            "overall_performance", None, trades,
            lambda: performance.overall_performance(trades),
        )

    def period_reports(self, granularity: str, reference_date: Optional[date] = None) -> List[PeriodReport]:
        trades, _ = self._snapshot()
        return periods.period_reports(trades, granularity, reference_date)

    def strategy_comparison_report(
        self, granularity: str, reference_date: Optional[date] = None
    ) -> StrategyComparisonReport:
        trades, _ = self._snapshot()
        return periods.strategy_comparison_report(trades, granularity, reference_date)
