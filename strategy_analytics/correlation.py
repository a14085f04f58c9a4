"""
Correlation and diversification analysis between strategies.

Correlation and diversification benefit compare two return series after
positional alignment (see `stats.align`). Combined win rate and combined
average return are taken over the pooled, un-truncated series.
"""
import logging
from typing import Dict, List, Sequence, Tuple

from strategy_analytics.config import ThresholdConfig
from strategy_analytics.returns import returns_by_strategy
from strategy_analytics.stats import align, mean, pearson, stddev
from strategy_analytics.types import (
    CorrelationMatrix,
    Recommendation,
    Template,
    TemplateCorrelation,
    Trade,
)

__all__ = [
    "diversification_benefit",
    "combined_metrics",
    "classify_pair",
    "build_correlation_matrix",
    "pairwise_correlations",
    "interpret_correlation",
]

log = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = ThresholdConfig()


def diversification_benefit(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Percentage by which pooling two return streams lowers dispersion.

    Compares the standard deviation of the concatenated series against the
    average of the individual standard deviations. This is a heuristic, not
    a covariance-weighted portfolio variance.

    Returns:
        A value >= 0. Zero when either series is empty or both are constant.
    """
    if len(a) == 0 or len(b) == 0:
        return 0.0

    vol_a = stddev(a)
    vol_b = stddev(b)
    vol_combined = stddev(list(a) + list(b))

    avg_vol = (vol_a + vol_b) / 2
    if avg_vol == 0:
        return 0.0

    return max(0.0, (avg_vol - vol_combined) / avg_vol * 100)


def combined_metrics(a: Sequence[float], b: Sequence[float]) -> Tuple[float, float]:
    """Win rate (%) and mean return of the pooled series."""
    pooled = list(a) + list(b)
    if not pooled:
        return 0.0, 0.0
    win_rate = sum(1 for r in pooled if r > 0) / len(pooled) * 100
    return win_rate, mean(pooled)


def classify_pair(
    correlation: float,
    benefit: float,
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> Recommendation:
    """Labels a strategy pair; rules are checked in order, first match wins."""
    if correlation < thresholds.excellent_correlation and benefit > thresholds.excellent_benefit:
        return "excellent"
    if correlation < thresholds.good_correlation and benefit > thresholds.good_benefit:
        return "good"
    if correlation > thresholds.avoid_correlation:
        return "avoid"
    return "neutral"


def build_correlation_matrix(trades: Sequence[Trade], templates: Sequence[Template]) -> CorrelationMatrix:
    """
    Builds the N x N correlation matrix over the template catalog.

    Each unordered pair is evaluated once and mirrored. The diagonal is 1.
    """
    names = [t.name for t in templates]
    by_name = returns_by_strategy(trades, names)
    series = [by_name[name] for name in names]
    n = len(names)

    matrix = [[0.0] * n for _ in range(n)]
    for i in range(n):
        matrix[i][i] = 1.0
        for j in range(i + 1, n):
            value = pearson(*align(series[i], series[j]))
            matrix[i][j] = value
            matrix[j][i] = value

    log.debug(f"Built {n}x{n} correlation matrix.")
    return CorrelationMatrix(
        strategies=names,
        matrix=matrix,
        descriptions={t.name: t.description for t in templates},
    )


def pairwise_correlations(
    trades: Sequence[Trade],
    templates: Sequence[Template],
    thresholds: ThresholdConfig = DEFAULT_THRESHOLDS,
) -> List[TemplateCorrelation]:
    """
    Every unordered pair of strategies with its recommendation.

    Returns:
        N*(N-1)/2 entries sorted by diversification benefit, best first.
        Ties keep catalog order.
    """
    names = [t.name for t in templates]
    series: Dict[str, List[float]] = returns_by_strategy(trades, names)

    pairs = []
    for i, name_a in enumerate(names):
        for name_b in names[i + 1:]:
            aligned_a, aligned_b = align(series[name_a], series[name_b])
            correlation = pearson(aligned_a, aligned_b)
            benefit = diversification_benefit(aligned_a, aligned_b)
            win_rate, avg_return = combined_metrics(series[name_a], series[name_b])

            pairs.append(
                TemplateCorrelation(
                    strategy_a=name_a,
                    strategy_b=name_b,
                    correlation=correlation,
                    diversification_benefit=benefit,
                    combined_win_rate=win_rate,
                    combined_avg_return=avg_return,
                    recommendation=classify_pair(correlation, benefit, thresholds),
                )
            )

    # sorted() is stable, so equal benefits keep enumeration order.
    return sorted(pairs, key=lambda p: p.diversification_benefit, reverse=True)


def interpret_correlation(correlation: float) -> str:
    """Short human-readable reading of a correlation value."""
    if correlation < -0.5:
        return "Strong negative - excellent diversification"
    if correlation < -0.2:
        return "Moderate negative - good diversification"
    if correlation < 0.2:
        return "Very weak - independent strategies"
    if correlation < 0.5:
        return "Weak positive - some overlap"
    if correlation < 0.8:
        return "Moderate positive - significant overlap"
    return "Strong positive - very similar strategies"
