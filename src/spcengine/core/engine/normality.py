"""Approximate normality estimate used to caveat capability results.

This is a heuristic, not a certified test. Up to 5000 points the standardized
third and fourth moments are mapped through exp(-2 * departure); above that a
simplified Anderson-Darling statistic against the standard normal CDF is mapped
through exp(-A2). Both results are clamped to [0.001, 1].
"""

import math
from typing import Sequence

import numpy as np

from spcengine.utils.statistics import mean, normal_cdf, std_dev

MIN_P_VALUE = 0.001
MAX_P_VALUE = 1.0
MIN_POINTS = 3
MOMENT_METHOD_MAX_POINTS = 5000


def _clamp(p_value: float) -> float:
    return max(MIN_P_VALUE, min(MAX_P_VALUE, p_value))


def _moment_p_value(data: np.ndarray, avg: float, sigma: float) -> float:
    z = (data - avg) / sigma
    skewness = float(np.mean(z ** 3))
    excess_kurtosis = float(np.mean(z ** 4)) - 3.0

    departure = abs(skewness) + abs(excess_kurtosis) / 2
    return _clamp(math.exp(-departure * 2))


def _anderson_darling_p_value(data: np.ndarray, avg: float, sigma: float) -> float:
    ordered = np.sort(data)
    n = len(ordered)
    cdf = [normal_cdf((x - avg) / sigma) for x in ordered]

    total = 0.0
    for i in range(n):
        lower = cdf[i]
        upper_tail = 1.0 - cdf[n - 1 - i]
        # Points so far out that the CDF saturates carry no usable log term.
        if 0.0 < lower < 1.0 and upper_tail > 0.0:
            total += (2 * i + 1) * (math.log(lower) + math.log(upper_tail))

    a_squared = -n - total / n
    return _clamp(math.exp(-a_squared))


def estimate_normality_p_value(data: Sequence[float]) -> float:
    """Return an approximate p-value for the normality of ``data``.

    Fewer than 3 points, or a constant population, are reported as 1.0.

    Examples:
        >>> estimate_normality_p_value([1.0, 2.0])
        1.0
    """
    n = len(data)
    if n < MIN_POINTS:
        return MAX_P_VALUE

    avg = mean(data)
    sigma = std_dev(data, 1)
    if sigma == 0:
        return MAX_P_VALUE

    arr = np.asarray(data, dtype=np.float64)
    if n <= MOMENT_METHOD_MAX_POINTS:
        return _moment_p_value(arr, avg, sigma)
    return _anderson_darling_p_value(arr, avg, sigma)
