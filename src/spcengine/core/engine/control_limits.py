"""Control limit calculation for X-bar/R and I-MR charts.

This module turns imported rows into the derived series plotted on the primary
chart and computes the control limit set for the configured chart pair.

Calculation methods:
- X-bar & R: X-double-bar +/- A2 * R-bar; R chart D3 * R-bar .. D4 * R-bar
- I-MR: X-bar +/- (3 / d2) * MR-bar with n=2 constants; MR chart D3 * MR-bar .. D4 * MR-bar

Subgroup formation when raw rows don't already match the subgroup size is
decided from the width of the first row:
- width == subgroup size: each row is one subgroup
- width == 1: consecutive rows are chunked, a trailing partial group is dropped
- otherwise: the first subgroup-size values of each row are used
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from spcengine.core.exceptions import InsufficientDataError
from spcengine.core.schemas import ChartType, RawDataRow, SPCConfiguration
from spcengine.utils.constants import get_A2, get_D3, get_D4, get_d2
from spcengine.utils.statistics import mean, moving_ranges, value_range

# Moving ranges span two consecutive points, so I-MR limits use the n=2 row.
MOVING_RANGE_SPAN = 2


@dataclass(frozen=True)
class ControlLimits:
    """Control limits for one chart.

    Attributes:
        center_line: Center line of the chart
        ucl: Upper Control Limit
        lcl: Lower Control Limit
        sigma: Width of one zone, (ucl - center_line) / 3
    """
    center_line: float
    ucl: float
    lcl: float
    sigma: float


def _chart(center_line: float, ucl: float, lcl: float) -> ControlLimits:
    return ControlLimits(
        center_line=center_line,
        ucl=ucl,
        lcl=lcl,
        sigma=(ucl - center_line) / 3,
    )


@dataclass(frozen=True)
class XbarRLimits:
    """Control limits for the X-bar (means) and R (ranges) chart pair."""
    xbar: ControlLimits
    r: ControlLimits

    chart_type = ChartType.XBAR_R

    @property
    def primary(self) -> ControlLimits:
        return self.xbar

    @property
    def variability(self) -> ControlLimits:
        return self.r


@dataclass(frozen=True)
class IMRLimits:
    """Control limits for the Individuals and Moving Range chart pair."""
    individual: ControlLimits
    moving_range: ControlLimits

    chart_type = ChartType.I_MR

    @property
    def primary(self) -> ControlLimits:
        return self.individual

    @property
    def variability(self) -> ControlLimits:
        return self.moving_range


ControlLimitSet = XbarRLimits | IMRLimits


def primary_limits(limits: ControlLimitSet) -> ControlLimits:
    """Return the chart the anomaly rules are evaluated against.

    Raises:
        TypeError: If limits is not one of the two control limit variants
    """
    if isinstance(limits, XbarRLimits):
        return limits.xbar
    if isinstance(limits, IMRLimits):
        return limits.individual
    raise TypeError(f"Unsupported control limit set: {type(limits).__name__}")


class SubgroupLayout(Enum):
    """How raw rows are turned into subgroups."""
    ROW_PER_SUBGROUP = "row_per_subgroup"
    CHUNKED_COLUMN = "chunked_column"
    TRUNCATED_ROWS = "truncated_rows"


@dataclass(frozen=True)
class DerivedPoint:
    """One point of the primary chart.

    Attributes:
        index: Position in the series; anomaly records address points by it
        value: Subgroup mean (X-bar/R) or individual value (I-MR)
        variability: Subgroup range, or moving range (None for the first I-MR point)
        row_indices: Indices of the raw rows the point was built from
    """
    index: int
    value: float
    variability: float | None
    row_indices: tuple[int, ...]


@dataclass(frozen=True)
class DerivedSeries:
    """Ordered per-subgroup (or per-individual) statistics."""
    chart_type: ChartType
    points: tuple[DerivedPoint, ...]
    subgroups: tuple[tuple[float, ...], ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> list[float]:
        """Primary-chart values in index order."""
        return [p.value for p in self.points]

    @property
    def variability_values(self) -> list[float]:
        """Ranges or moving ranges, skipping the undefined first moving range."""
        return [p.variability for p in self.points if p.variability is not None]


def detect_layout(rows: Sequence[RawDataRow], subgroup_size: int) -> SubgroupLayout:
    """Decide the subgroup layout from the width of the first row.

    Raises:
        InsufficientDataError: If rows is empty
    """
    if not rows:
        raise InsufficientDataError("No data rows supplied")

    width = len(rows[0].values)
    if width == subgroup_size:
        return SubgroupLayout.ROW_PER_SUBGROUP
    if width == 1:
        return SubgroupLayout.CHUNKED_COLUMN
    return SubgroupLayout.TRUNCATED_ROWS


def _form_indexed_subgroups(
    rows: Sequence[RawDataRow], subgroup_size: int
) -> list[tuple[tuple[float, ...], tuple[int, ...]]]:
    layout = detect_layout(rows, subgroup_size)
    formed = []

    if layout is SubgroupLayout.CHUNKED_COLUMN:
        for start in range(0, len(rows), subgroup_size):
            chunk = rows[start:start + subgroup_size]
            if len(chunk) < subgroup_size:
                break  # trailing partial subgroup is discarded
            if any(not row.values for row in chunk):
                continue
            formed.append((
                tuple(row.values[0] for row in chunk),
                tuple(range(start, start + subgroup_size)),
            ))
    else:
        for i, row in enumerate(rows):
            values = tuple(row.values[:subgroup_size])
            if len(values) == subgroup_size:
                formed.append((values, (i,)))

    return formed


def form_subgroups(
    rows: Sequence[RawDataRow], subgroup_size: int
) -> list[tuple[float, ...]]:
    """Group raw rows into subgroups of exactly ``subgroup_size`` measurements.

    Groups that end up shorter than the subgroup size are dropped.

    Examples:
        >>> rows = [RawDataRow(values=(v,)) for v in [1, 2, 3, 4, 5]]
        >>> form_subgroups(rows, 2)
        [(1.0, 2.0), (3.0, 4.0)]
    """
    return [values for values, _ in _form_indexed_subgroups(rows, subgroup_size)]


def build_series(rows: Sequence[RawDataRow], config: SPCConfiguration) -> DerivedSeries:
    """Derive the primary-chart series for the configured chart type.

    Raises:
        InsufficientDataError: If no subgroup could be formed (X-bar/R), or
            fewer than 2 individual values are available (I-MR)
    """
    if not rows:
        raise InsufficientDataError("No data rows supplied")

    if config.chart_type is ChartType.I_MR:
        indexed = [(i, row.values[0]) for i, row in enumerate(rows) if row.values]
        if len(indexed) < MOVING_RANGE_SPAN:
            raise InsufficientDataError(
                f"Need at least {MOVING_RANGE_SPAN} values for I-MR chart, got {len(indexed)}"
            )
        values = [v for _, v in indexed]
        mrs = [None, *moving_ranges(values)]
        points = tuple(
            DerivedPoint(index=k, value=value, variability=mr, row_indices=(row_index,))
            for k, ((row_index, value), mr) in enumerate(zip(indexed, mrs))
        )
        return DerivedSeries(chart_type=ChartType.I_MR, points=points)

    indexed_subgroups = _form_indexed_subgroups(rows, config.subgroup_size)
    if not indexed_subgroups:
        raise InsufficientDataError(
            f"Could not form any subgroup of size {config.subgroup_size} "
            f"from {len(rows)} rows"
        )

    points = tuple(
        DerivedPoint(
            index=k,
            value=mean(values),
            variability=value_range(values),
            row_indices=row_indices,
        )
        for k, (values, row_indices) in enumerate(indexed_subgroups)
    )
    return DerivedSeries(
        chart_type=ChartType.XBAR_R,
        points=points,
        subgroups=tuple(values for values, _ in indexed_subgroups),
    )


def calculate_xbar_r_limits(
    subgroups: Sequence[Sequence[float]], subgroup_size: int
) -> XbarRLimits:
    """Calculate X-bar and R chart control limits.

    Args:
        subgroups: Subgroups of ``subgroup_size`` measurements each
        subgroup_size: The subgroup size (n), must be between 2 and 25

    Returns:
        XbarRLimits containing control limits for both X-bar and R charts

    Raises:
        InsufficientDataError: If no subgroups are supplied
        ConstantsRangeError: If subgroup_size is outside the constants table

    Examples:
        >>> limits = calculate_xbar_r_limits([[1, 3], [2, 4]], 2)
        >>> limits.xbar.center_line
        2.5
    """
    if not subgroups:
        raise InsufficientDataError("At least one subgroup is required for X-bar/R limits")

    A2 = get_A2(subgroup_size)
    D3 = get_D3(subgroup_size)
    D4 = get_D4(subgroup_size)

    xbar_bar = mean([mean(group) for group in subgroups])
    r_bar = mean([value_range(group) for group in subgroups])

    xbar_limits = _chart(
        center_line=xbar_bar,
        ucl=xbar_bar + A2 * r_bar,
        lcl=xbar_bar - A2 * r_bar,
    )
    r_limits = _chart(
        center_line=r_bar,
        ucl=D4 * r_bar,
        lcl=max(0.0, D3 * r_bar),
    )

    return XbarRLimits(xbar=xbar_limits, r=r_limits)


def calculate_imr_limits(values: Sequence[float]) -> IMRLimits:
    """Calculate I-MR (Individuals and Moving Range) chart control limits.

    Raises:
        InsufficientDataError: If fewer than 2 values are supplied

    Examples:
        >>> limits = calculate_imr_limits([10, 12, 11, 13, 10, 12])
        >>> round(limits.individual.center_line, 2)
        11.33
    """
    if len(values) < MOVING_RANGE_SPAN:
        raise InsufficientDataError(
            f"Need at least {MOVING_RANGE_SPAN} values for I-MR chart, got {len(values)}"
        )

    x_bar = mean(values)
    mr_bar = mean(moving_ranges(values))

    d2 = get_d2(MOVING_RANGE_SPAN)
    D3 = get_D3(MOVING_RANGE_SPAN)
    D4 = get_D4(MOVING_RANGE_SPAN)

    # 3 / d2 is roughly 2.66 for span 2
    individual_limits = _chart(
        center_line=x_bar,
        ucl=x_bar + (3 / d2) * mr_bar,
        lcl=x_bar - (3 / d2) * mr_bar,
    )
    mr_limits = _chart(
        center_line=mr_bar,
        ucl=D4 * mr_bar,
        lcl=max(0.0, D3 * mr_bar),
    )

    return IMRLimits(individual=individual_limits, moving_range=mr_limits)


def calculate_limits(series: DerivedSeries, subgroup_size: int) -> ControlLimitSet:
    """Calculate the control limit set matching the series' chart type."""
    if series.chart_type is ChartType.I_MR:
        return calculate_imr_limits(series.values)
    if series.chart_type is ChartType.XBAR_R:
        return calculate_xbar_r_limits(series.subgroups, subgroup_size)
    raise TypeError(f"Unsupported chart type: {series.chart_type!r}")
