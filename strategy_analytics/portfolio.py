"""
Search for well-diversified multi-strategy portfolios.

Every subset of `size` strategies is scored on how weakly its members are
correlated and on the win rate of their pooled trades. The number of
subsets grows combinatorially, so the search refuses to start above a
configured ceiling.
"""
import logging
import math
from itertools import combinations
from typing import Dict, FrozenSet, Iterator, List, Sequence, Tuple

from strategy_analytics.config import AnalysisConfig, ThresholdConfig
from strategy_analytics.correlation import DEFAULT_THRESHOLDS, pairwise_correlations
from strategy_analytics.errors import CombinationLimitError
from strategy_analytics.returns import returns_by_strategy
from strategy_analytics.stats import mean
from strategy_analytics.types import PortfolioRecommendation, Template, TemplateCorrelation, Trade

__all__ = ["portfolio_recommendations", "iter_combinations", "diversification_score", "rationale_for"]

log = logging.getLogger(__name__)

DEFAULT_ANALYSIS = AnalysisConfig()


def iter_combinations(n: int, k: int) -> Iterator[Tuple[int, ...]]:
    """Index tuples of every k-subset of range(n), in lexicographic order."""
    if k < 1 or k > n:
        return iter(())
    return combinations(range(n), k)


def diversification_score(avg_correlation: float) -> float:
    """Maps an average correlation in [-1, 1] onto [0, 100]; -1 scores 100."""
    return min(100.0, max(0.0, 100 - (avg_correlation + 1) * 50))


def rationale_for(avg_correlation: float) -> str:
    if avg_correlation < 0:
        return "Strategies move in opposite directions - excellent diversification"
    if avg_correlation < 0.3:
        return "Low correlation - good diversification benefits"
    if avg_correlation < 0.6:
        return "Moderate correlation - some diversification benefits"
    return "High correlation - limited diversification benefits"


def _check_ceiling(n: int, k: int, limit: int) -> None:
    count = math.comb(n, k)
    if count > limit:
        raise CombinationLimitError(n, k, count, limit)
    log.debug(f"Evaluating {count} portfolios of size {k} from {n} strategies.")


def portfolio_recommendations(
    trades: Sequence[Trade],
    templates: Sequence[Template],
    size: int = 3,
    analysis: AnalysisConfig = DEFAULT_ANALYSIS,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> List[PortfolioRecommendation]:
    """
    Ranks every portfolio of `size` strategies drawn from the catalog.

    Subsets whose strategies have no closed trades between them are skipped.
    Results are sorted by a weighted blend of diversification score and
    expected win rate, best first. All valid subsets are returned.

    Raises:
        CombinationLimitError: If C(N, size) exceeds `analysis.max_combinations`.
    """
    names = [t.name for t in templates]
    n = len(names)
    if size < 1 or size > n:
        return []
    _check_ceiling(n, size, analysis.max_combinations)

    series = returns_by_strategy(trades, names)
    pairs: Dict[FrozenSet[str], TemplateCorrelation] = {
        frozenset((p.strategy_a, p.strategy_b)): p
        for p in pairwise_correlations(trades, templates, thresholds)
    }

    recommendations = []
    for indices in iter_combinations(n, size):
        members = [names[i] for i in indices]
        pooled = [r for name in members for r in series[name]]
        if not pooled:
            continue

        win_rate = sum(1 for r in pooled if r > 0) / len(pooled) * 100
        member_pairs = [pairs[frozenset(pair)] for pair in combinations(members, 2)]
        avg_correlation = mean([p.correlation for p in member_pairs])

        recommendations.append(
            PortfolioRecommendation(
                strategies=members,
                expected_win_rate=win_rate,
                expected_avg_return=mean(pooled),
                diversification_score=diversification_score(avg_correlation),
                risk_reduction=mean([p.diversification_benefit for p in member_pairs]),
                rationale=rationale_for(avg_correlation),
            )
        )

    def weighted(rec: PortfolioRecommendation) -> float:
        return (
            analysis.diversification_weight * rec.diversification_score
            + analysis.win_rate_weight * rec.expected_win_rate
        )

    return sorted(recommendations, key=weighted, reverse=True)
