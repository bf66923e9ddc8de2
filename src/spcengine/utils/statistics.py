"""Statistical primitives for SPC calculations.

This module provides:
- Descriptive statistics (mean, standard deviation, range, median)
- Moving ranges for individuals charts
- Standard normal CDF/PDF helpers
- Zone boundary calculations for the Western Electric rules

All functions are pure and accept any sequence of numbers. Empty input yields
0.0 rather than an error so that results compose downstream.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence.

    Examples:
        >>> mean([1.0, 2.0, 3.0])
        2.0
        >>> mean([])
        0.0
    """
    if len(values) == 0:
        return 0.0
    return float(np.mean(_as_array(values)))


def std_dev(values: Sequence[float], ddof: int = 1) -> float:
    """Standard deviation with ``ddof`` delta degrees of freedom.

    Computes sqrt(sum((x - mean)^2) / (n - ddof)). Use ddof=1 for the sample
    statistic (Cp/Cpk) and ddof=0 for the population statistic (Pp/Ppk).

    Args:
        values: Measurements
        ddof: Delta degrees of freedom (default: 1)

    Returns:
        The standard deviation, or 0.0 when n <= ddof (including n = 0)

    Examples:
        >>> round(std_dev([2, 4, 4, 4, 5, 5, 7, 9], ddof=0), 6)
        2.0
    """
    n = len(values)
    if n <= ddof:
        return 0.0
    return float(np.std(_as_array(values), ddof=ddof))


def value_range(values: Sequence[float]) -> float:
    """Range (max - min); 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.ptp(_as_array(values)))


def median(values: Sequence[float]) -> float:
    """Median: middle value, or the average of the two middle values.

    Returns 0.0 for an empty sequence.
    """
    if len(values) == 0:
        return 0.0
    return float(np.median(_as_array(values)))


def moving_ranges(values: Sequence[float]) -> List[float]:
    """Absolute differences between consecutive values (span 2).

    Examples:
        >>> moving_ranges([10, 12, 11])
        [2.0, 1.0]
    """
    if len(values) < 2:
        return []
    return [float(mr) for mr in np.abs(np.diff(_as_array(values)))]


def normal_cdf(z: float) -> float:
    """Standard normal cumulative distribution function."""
    return 0.5 * (1.0 + math.erf(z / math.sqrt(2.0)))


def normal_pdf(x: float, mu: float, sigma: float) -> float:
    """Normal probability density at ``x`` for N(mu, sigma^2).

    Raises:
        ValueError: If sigma is not positive
    """
    if sigma <= 0:
        raise ValueError(f"Sigma must be positive, got {sigma}")
    coefficient = 1.0 / (sigma * math.sqrt(2.0 * math.pi))
    exponent = -((x - mu) ** 2) / (2.0 * sigma ** 2)
    return coefficient * math.exp(exponent)


@dataclass(frozen=True)
class ZoneBoundaries:
    """Zone boundaries for the Western Electric rules.

    Zones are defined as distances from the center line:
    - Zone C: [0, 1 sigma]
    - Zone B: (1 sigma, 2 sigma]
    - Zone A: (2 sigma, 3 sigma]

    Attributes:
        center_line: Center line of the chart
        sigma: One zone width, (UCL - center) / 3
        plus_1_sigma: Center line + 1 sigma
        plus_2_sigma: Center line + 2 sigma
        plus_3_sigma: Center line + 3 sigma (UCL)
        minus_1_sigma: Center line - 1 sigma
        minus_2_sigma: Center line - 2 sigma
        minus_3_sigma: Center line - 3 sigma (LCL)
    """
    center_line: float
    sigma: float
    plus_1_sigma: float
    plus_2_sigma: float
    plus_3_sigma: float
    minus_1_sigma: float
    minus_2_sigma: float
    minus_3_sigma: float

    def distance(self, value: float) -> float:
        """Absolute distance of ``value`` from the center line."""
        return abs(value - self.center_line)

    def in_zone_a(self, value: float) -> bool:
        """Between 2 sigma (exclusive) and the control limit (inclusive), either side."""
        if value > self.center_line:
            return self.plus_2_sigma < value <= self.plus_3_sigma
        if value < self.center_line:
            return self.minus_3_sigma <= value < self.minus_2_sigma
        return False

    def beyond_zone_c(self, value: float) -> bool:
        return self.distance(value) > self.sigma

    def in_zone_c(self, value: float) -> bool:
        return self.distance(value) <= self.sigma


def calculate_zones(
    center_line: float,
    sigma: float,
    ucl: float | None = None,
    lcl: float | None = None,
) -> ZoneBoundaries:
    """Calculate zone boundaries from a center line and zone width.

    When the chart's control limits are given they are used as the outer
    edges of Zone A as is; center_line + 3 * sigma can round below the UCL.

    A zero sigma is accepted: it describes a chart whose limits collapse onto the
    center line (for example an individuals chart of constant data).

    Raises:
        ValueError: If sigma is negative

    Examples:
        >>> zones = calculate_zones(100.0, 2.0)
        >>> zones.plus_3_sigma
        106.0
        >>> zones.minus_2_sigma
        96.0
    """
    if sigma < 0:
        raise ValueError(f"Sigma cannot be negative, got {sigma}")

    return ZoneBoundaries(
        center_line=center_line,
        sigma=sigma,
        plus_1_sigma=center_line + sigma,
        plus_2_sigma=center_line + 2 * sigma,
        plus_3_sigma=ucl if ucl is not None else center_line + 3 * sigma,
        minus_1_sigma=center_line - sigma,
        minus_2_sigma=center_line - 2 * sigma,
        minus_3_sigma=lcl if lcl is not None else center_line - 3 * sigma,
    )
