"""Utilities for SPC constants and statistical primitives."""

from .constants import (
    SpcConstants,
    get_A2,
    get_c4,
    get_d2,
    get_d3,
    get_D3,
    get_D4,
    is_valid_subgroup_size,
    lookup,
    lookup_all,
)

from .statistics import (
    ZoneBoundaries,
    calculate_zones,
    mean,
    median,
    moving_ranges,
    normal_cdf,
    normal_pdf,
    std_dev,
    value_range,
)

__all__ = [
    # Constants
    "SpcConstants",
    "lookup",
    "lookup_all",
    "is_valid_subgroup_size",
    "get_A2",
    "get_D3",
    "get_D4",
    "get_c4",
    "get_d2",
    "get_d3",
    # Primitives
    "mean",
    "std_dev",
    "value_range",
    "median",
    "moving_ranges",
    "normal_cdf",
    "normal_pdf",
    # Zones
    "ZoneBoundaries",
    "calculate_zones",
]
