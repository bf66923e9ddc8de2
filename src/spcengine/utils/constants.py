"""Statistical constants for SPC control chart calculations.

Constants from ASTM E2587 and the AIAG SPC reference manual, at the precision
they are published with. These constants are used to derive X-bar/R and I-MR
control limits from averaged ranges.
"""

import numbers
from dataclasses import dataclass
from typing import Dict

from spcengine.core.exceptions import ConstantsRangeError

MIN_SUBGROUP_SIZE = 2
MAX_SUBGROUP_SIZE = 25

CONSTANT_KEYS = ("A2", "D3", "D4", "c4", "d2", "d3")


@dataclass(frozen=True)
class SpcConstants:
    """Statistical constants for a given subgroup size.

    Attributes:
        n: Subgroup size
        A2: Factor for X-bar chart control limits from R-bar
        D3: Lower control limit factor for R chart
        D4: Upper control limit factor for R chart
        c4: Standard deviation correction factor (sigma from S-bar)
        d2: Average range factor (sigma from R-bar)
        d3: Standard deviation of the relative range
    """
    n: int
    A2: float
    D3: float
    D4: float
    c4: float
    d2: float
    d3: float


_CONSTANTS_TABLE: Dict[int, SpcConstants] = {
    2: SpcConstants(n=2, A2=1.880, D3=0.0, D4=3.267, c4=0.7979, d2=1.128, d3=0.853),
    3: SpcConstants(n=3, A2=1.023, D3=0.0, D4=2.575, c4=0.8862, d2=1.693, d3=0.888),
    4: SpcConstants(n=4, A2=0.729, D3=0.0, D4=2.282, c4=0.9213, d2=2.059, d3=0.880),
    5: SpcConstants(n=5, A2=0.577, D3=0.0, D4=2.115, c4=0.9400, d2=2.326, d3=0.864),
    6: SpcConstants(n=6, A2=0.483, D3=0.0, D4=2.004, c4=0.9515, d2=2.534, d3=0.848),
    7: SpcConstants(n=7, A2=0.419, D3=0.076, D4=1.924, c4=0.9594, d2=2.704, d3=0.833),
    8: SpcConstants(n=8, A2=0.373, D3=0.136, D4=1.864, c4=0.9650, d2=2.847, d3=0.820),
    9: SpcConstants(n=9, A2=0.337, D3=0.184, D4=1.816, c4=0.9693, d2=2.970, d3=0.808),
    10: SpcConstants(n=10, A2=0.308, D3=0.223, D4=1.777, c4=0.9727, d2=3.078, d3=0.797),
    11: SpcConstants(n=11, A2=0.285, D3=0.256, D4=1.744, c4=0.9754, d2=3.173, d3=0.787),
    12: SpcConstants(n=12, A2=0.266, D3=0.284, D4=1.716, c4=0.9776, d2=3.258, d3=0.778),
    13: SpcConstants(n=13, A2=0.249, D3=0.308, D4=1.692, c4=0.9794, d2=3.336, d3=0.770),
    14: SpcConstants(n=14, A2=0.235, D3=0.329, D4=1.671, c4=0.9810, d2=3.407, d3=0.763),
    15: SpcConstants(n=15, A2=0.223, D3=0.348, D4=1.652, c4=0.9823, d2=3.472, d3=0.756),
    16: SpcConstants(n=16, A2=0.212, D3=0.364, D4=1.636, c4=0.9835, d2=3.532, d3=0.750),
    17: SpcConstants(n=17, A2=0.203, D3=0.379, D4=1.621, c4=0.9845, d2=3.588, d3=0.744),
    18: SpcConstants(n=18, A2=0.194, D3=0.392, D4=1.608, c4=0.9854, d2=3.640, d3=0.739),
    19: SpcConstants(n=19, A2=0.187, D3=0.404, D4=1.596, c4=0.9862, d2=3.689, d3=0.734),
    20: SpcConstants(n=20, A2=0.180, D3=0.414, D4=1.586, c4=0.9869, d2=3.735, d3=0.729),
    21: SpcConstants(n=21, A2=0.173, D3=0.425, D4=1.575, c4=0.9876, d2=3.778, d3=0.724),
    22: SpcConstants(n=22, A2=0.167, D3=0.434, D4=1.566, c4=0.9882, d2=3.819, d3=0.720),
    23: SpcConstants(n=23, A2=0.162, D3=0.443, D4=1.557, c4=0.9887, d2=3.858, d3=0.716),
    24: SpcConstants(n=24, A2=0.157, D3=0.452, D4=1.548, c4=0.9892, d2=3.895, d3=0.712),
    25: SpcConstants(n=25, A2=0.153, D3=0.459, D4=1.541, c4=0.9896, d2=3.931, d3=0.708),
}


def is_valid_subgroup_size(n: object) -> bool:
    """Return True if ``n`` is an integer subgroup size covered by the table."""
    if isinstance(n, bool) or not isinstance(n, numbers.Integral):
        return False
    return MIN_SUBGROUP_SIZE <= n <= MAX_SUBGROUP_SIZE


def lookup_all(subgroup_size: int) -> SpcConstants:
    """Get all SPC constants for a given subgroup size.

    Args:
        subgroup_size: The subgroup size (n), an integer between 2 and 25

    Returns:
        SpcConstants object containing A2, D3, D4, c4, d2, d3 for the given n

    Raises:
        ConstantsRangeError: If subgroup_size is not an integer between 2 and 25

    Examples:
        >>> lookup_all(5).A2
        0.577
    """
    if not is_valid_subgroup_size(subgroup_size):
        raise ConstantsRangeError(
            f"Subgroup size must be an integer between {MIN_SUBGROUP_SIZE} and "
            f"{MAX_SUBGROUP_SIZE}, got {subgroup_size!r}"
        )

    return _CONSTANTS_TABLE[int(subgroup_size)]


def lookup(subgroup_size: int, key: str) -> float:
    """Get a single SPC constant by subgroup size and name.

    Args:
        subgroup_size: The subgroup size (n), an integer between 2 and 25
        key: One of "A2", "D3", "D4", "c4", "d2", "d3"

    Raises:
        ConstantsRangeError: If subgroup_size is out of range
        KeyError: If key is not a known constant name

    Examples:
        >>> lookup(5, "D4")
        2.115
    """
    constants = lookup_all(subgroup_size)
    if key not in CONSTANT_KEYS:
        raise KeyError(f"Unknown SPC constant {key!r}, expected one of {CONSTANT_KEYS}")
    return getattr(constants, key)


def get_A2(subgroup_size: int) -> float:
    """A2 factor for X-bar chart limits from R-bar."""
    return lookup_all(subgroup_size).A2


def get_D3(subgroup_size: int) -> float:
    """D3 factor for the R chart lower limit (0 below n=7)."""
    return lookup_all(subgroup_size).D3


def get_D4(subgroup_size: int) -> float:
    """D4 factor for the R chart upper limit."""
    return lookup_all(subgroup_size).D4


def get_c4(subgroup_size: int) -> float:
    return lookup_all(subgroup_size).c4


def get_d2(subgroup_size: int) -> float:
    """d2 factor relating the expected range to sigma (E[R] = d2 * sigma).

    Examples:
        >>> get_d2(2)
        1.128
    """
    return lookup_all(subgroup_size).d2


def get_d3(subgroup_size: int) -> float:
    return lookup_all(subgroup_size).d3
