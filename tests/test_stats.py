"""
Tests for the numeric primitives.
"""
import math

import pytest

from strategy_analytics.stats import align, mean, pearson, stddev


def test_mean_and_population_stddev():
    """stddev divides by N, not N - 1."""
    assert mean([1, 2, 3, 4]) == pytest.approx(2.5)
    assert stddev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)


def test_mean_and_stddev_empty():
    assert mean([]) == 0.0
    assert stddev([]) == 0.0


def test_pearson_perfect_correlations():
    assert pearson([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)
    assert pearson([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)


def test_pearson_zero_variance_is_zero():
    assert pearson([1, 1, 1], [1, 2, 3]) == 0.0
    assert pearson([1, 2, 3], [0.1, 0.1, 0.1]) == 0.0


@pytest.mark.parametrize("a, b", [([], []), ([1, 2], [1, 2, 3]), ([1.0], [2.0])])
def test_pearson_degenerate_inputs(a, b):
    """Empty, mismatched and single-point inputs degrade to 0."""
    assert pearson(a, b) == 0.0


def test_pearson_matches_definition():
    a = [5, -3, 2, -1, 4]
    b = [-4, 3, -2, 1, -3]
    # sum((a - 1.4) * (b + 1)) = -39; sqrt(45.2 * 34) = 39.2020...
    assert pearson(a, b) == pytest.approx(-39 / math.sqrt(45.2 * 34))


def test_align_truncates_positionally():
    """The longer series loses its trailing elements; no date matching."""
    a, b = align([1, 2, 3, 4, 5], [10, 20])
    assert a == [1, 2]
    assert b == [10, 20]

    a, b = align([], [1, 2, 3])
    assert a == [] and b == []
