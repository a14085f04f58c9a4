"""
Numeric primitives shared by the correlation and portfolio modules.

All functions accept any sequence of floats and return plain Python floats.
Degenerate inputs (empty, constant, mismatched) return 0.0 instead of
raising.
"""
import math
from typing import List, Sequence, Tuple

import numpy as np

__all__ = ["mean", "stddev", "pearson", "align"]


def mean(series: Sequence[float]) -> float:
    if len(series) == 0:
        return 0.0
    return float(np.mean(np.asarray(series, dtype=float)))


def stddev(series: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    if len(series) == 0:
        return 0.0
    return float(np.std(np.asarray(series, dtype=float), ddof=0))


def pearson(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Pearson correlation coefficient of two equal-length series.

    Returns 0.0 when either series is empty, the lengths differ, or either
    series is constant. The result is clipped to [-1, 1] to absorb rounding.
    """
    if len(a) == 0 or len(a) != len(b):
        return 0.0

    x = np.asarray(a, dtype=float)
    y = np.asarray(b, dtype=float)
    if np.all(x == x[0]) or np.all(y == y[0]):
        return 0.0

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
    if denominator == 0:
        return 0.0

    return float(np.clip(np.sum(dx * dy) / denominator, -1.0, 1.0))


def align(a: Sequence[float], b: Sequence[float]) -> Tuple[List[float], List[float]]:
    """
    Truncates both series to the shorter length, keeping the leading elements.

    Alignment is positional (ledger order), not by trade date: the i-th
    return of one strategy is paired with the i-th return of the other.
    """
    n = min(len(a), len(b))
    return list(a[:n]), list(b[:n])
