"""Process capability and performance indices.

All indices are computed on the flattened measurement population (every
individual measurement, not subgroup means):

- Cp  = (USL - LSL) / (6 * s)          s: sample std dev (n - 1)
- Cpk = min(USL - mean, mean - LSL) / (3 * s)
- Pp  = (USL - LSL) / (6 * sigma)      sigma: population std dev (n)
- Ppk = min(USL - mean, mean - LSL) / (3 * sigma)

A process with zero observed variance is reported as infinitely capable
(``math.inf``) rather than raising.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from spcengine.core.engine.normality import estimate_normality_p_value
from spcengine.utils.statistics import mean, std_dev

SAMPLE_DDOF = 1
POPULATION_DDOF = 0


@dataclass(frozen=True)
class ProcessMetrics:
    """Capability summary of a measurement population.

    Attributes:
        n: Number of measurements
        mean: Population mean
        std_dev: Sample standard deviation (n - 1 denominator)
        cp: Potential capability from the sample standard deviation
        cpk: Actual capability from the sample standard deviation
        pp: Potential performance from the population standard deviation
        ppk: Actual performance from the population standard deviation
        pass_rate: Percentage of measurements within [LSL, USL]
        normality_p_value: Approximate normality p-value, when estimated
    """
    n: int
    mean: float
    std_dev: float
    cp: float
    cpk: float
    pp: float
    ppk: float
    pass_rate: float
    normality_p_value: float | None = None


def _potential_index(usl: float, lsl: float, sigma: float) -> float:
    if sigma == 0:
        return math.inf
    return (usl - lsl) / (6 * sigma)


def _actual_index(usl: float, lsl: float, center: float, sigma: float) -> float:
    if sigma == 0:
        return math.inf
    upper = (usl - center) / (3 * sigma)
    lower = (center - lsl) / (3 * sigma)
    return min(upper, lower)


def calculate_cp(data: Sequence[float], usl: float, lsl: float) -> float:
    """Cp = (USL - LSL) / (6 * s).

    Examples:
        >>> calculate_cp([10.0, 10.0], 11.0, 9.0)
        inf
    """
    return _potential_index(usl, lsl, std_dev(data, SAMPLE_DDOF))


def calculate_cpk(data: Sequence[float], usl: float, lsl: float) -> float:
    """Cpk = min((USL - mean) / 3s, (mean - LSL) / 3s)."""
    return _actual_index(usl, lsl, mean(data), std_dev(data, SAMPLE_DDOF))


def calculate_pp(data: Sequence[float], usl: float, lsl: float) -> float:
    """Pp = (USL - LSL) / (6 * sigma_overall)."""
    return _potential_index(usl, lsl, std_dev(data, POPULATION_DDOF))


def calculate_ppk(data: Sequence[float], usl: float, lsl: float) -> float:
    """Ppk = min((USL - mean) / 3sigma, (mean - LSL) / 3sigma) with population sigma."""
    return _actual_index(usl, lsl, mean(data), std_dev(data, POPULATION_DDOF))


def calculate_pass_rate(data: Sequence[float], usl: float, lsl: float) -> float:
    """Percentage of measurements within the specification limits (inclusive).

    Returns 0.0 for an empty population.
    """
    if len(data) == 0:
        return 0.0
    within_spec = sum(1 for x in data if lsl <= x <= usl)
    return 100.0 * within_spec / len(data)


def calculate_process_metrics(
    data: Sequence[float],
    usl: float,
    lsl: float,
    include_normality: bool = True,
) -> ProcessMetrics:
    """Compute the full capability summary for a measurement population.

    Args:
        data: Flattened measurements
        usl: Upper Specification Limit
        lsl: Lower Specification Limit
        include_normality: Also estimate the approximate normality p-value

    Returns:
        ProcessMetrics for the population
    """
    return ProcessMetrics(
        n=len(data),
        mean=mean(data),
        std_dev=std_dev(data, SAMPLE_DDOF),
        cp=calculate_cp(data, usl, lsl),
        cpk=calculate_cpk(data, usl, lsl),
        pp=calculate_pp(data, usl, lsl),
        ppk=calculate_ppk(data, usl, lsl),
        pass_rate=calculate_pass_rate(data, usl, lsl),
        normality_p_value=estimate_normality_p_value(data) if include_normality else None,
    )


class CapabilityGrade(str, Enum):
    """Letter grade for a capability index."""

    A = "A"  # excellent, >= 1.67
    B = "B"  # good, >= 1.33
    C = "C"  # acceptable, >= 1.00
    D = "D"  # insufficient, >= 0.67
    E = "E"  # severely insufficient

    @property
    def status(self) -> str:
        """Coarse status: "adequate" (A/B), "marginal" (C) or "inadequate" (D/E)."""
        if self in (CapabilityGrade.A, CapabilityGrade.B):
            return "adequate"
        if self is CapabilityGrade.C:
            return "marginal"
        return "inadequate"


_GRADE_THRESHOLDS = (
    (1.67, CapabilityGrade.A),
    (1.33, CapabilityGrade.B),
    (1.0, CapabilityGrade.C),
    (0.67, CapabilityGrade.D),
)


def grade_capability(index: float) -> CapabilityGrade:
    """Grade a capability index (typically Cpk).

    NaN grades as E.

    Examples:
        >>> grade_capability(1.4)
        <CapabilityGrade.B: 'B'>
    """
    for threshold, grade in _GRADE_THRESHOLDS:
        if index >= threshold:
            return grade
    return CapabilityGrade.E
