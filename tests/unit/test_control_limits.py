"""Unit tests for control limit calculation and subgroup formation.

Tests verify:
- X-bar/R limits reproduce the table constants
- I-MR limits use the n=2 constants
- Variability chart lower limits never go negative
- Subgroup formation follows the first-row layout and drops partial groups
- Insufficient data is reported with InsufficientDataError
"""

import pytest

from spcengine.core.engine.control_limits import (
    ControlLimits,
    DerivedSeries,
    IMRLimits,
    SubgroupLayout,
    XbarRLimits,
    build_series,
    calculate_imr_limits,
    calculate_limits,
    calculate_xbar_r_limits,
    detect_layout,
    form_subgroups,
    primary_limits,
)
from spcengine.core.exceptions import ConstantsRangeError, InsufficientDataError
from spcengine.core.schemas import ChartType, SPCConfiguration


class TestXbarRLimits:
    """Test X-bar and R chart limits."""

    def test_limits_use_table_constants_for_n5(self):
        subgroups = [
            [10.2, 10.3, 10.1, 10.4, 10.2],
            [10.1, 10.2, 10.3, 10.2, 10.1],
            [10.3, 10.2, 10.4, 10.1, 10.3],
        ]
        limits = calculate_xbar_r_limits(subgroups, 5)

        xbar_bar = (10.24 + 10.18 + 10.26) / 3
        r_bar = (0.3 + 0.2 + 0.3) / 3

        assert limits.xbar.center_line == pytest.approx(xbar_bar)
        assert limits.xbar.ucl == pytest.approx(xbar_bar + 0.577 * r_bar)
        assert limits.xbar.lcl == pytest.approx(xbar_bar - 0.577 * r_bar)
        assert limits.r.center_line == pytest.approx(r_bar)
        assert limits.r.ucl == pytest.approx(2.115 * r_bar)
        assert limits.r.lcl == 0.0

    def test_exact_arithmetic_with_table_constant(self):
        limits = calculate_xbar_r_limits([[1.0, 3.0], [2.0, 4.0]], 2)
        # x-double-bar 2.5, R-bar 2.0, A2(2) 1.880
        assert limits.xbar.center_line == 2.5
        assert limits.xbar.ucl == 2.5 + 1.880 * 2.0
        assert limits.xbar.lcl == 2.5 - 1.880 * 2.0
        assert limits.r.ucl == 3.267 * 2.0

    def test_r_chart_lcl_positive_from_n7(self):
        subgroups = [[1, 2, 3, 4, 5, 6, 7], [2, 3, 4, 5, 6, 7, 8]]
        limits = calculate_xbar_r_limits(subgroups, 7)
        assert limits.r.lcl == pytest.approx(0.076 * 6.0)
        assert limits.r.lcl > 0

    def test_sigma_is_one_third_of_ucl_distance(self):
        limits = calculate_xbar_r_limits([[1.0, 3.0], [2.0, 4.0]], 2)
        assert limits.xbar.sigma == pytest.approx((limits.xbar.ucl - limits.xbar.center_line) / 3)

    def test_ordering_invariant(self):
        limits = calculate_xbar_r_limits([[5, 6, 7], [4, 6, 9], [5, 5, 5]], 3)
        for chart in (limits.xbar, limits.r):
            assert chart.ucl >= chart.center_line >= chart.lcl
        assert limits.r.lcl >= 0

    def test_empty_subgroups_raise(self):
        with pytest.raises(InsufficientDataError):
            calculate_xbar_r_limits([], 5)

    def test_invalid_subgroup_size_raises(self):
        with pytest.raises(ConstantsRangeError):
            calculate_xbar_r_limits([[1.0] * 30], 30)


class TestIMRLimits:
    """Test Individuals and Moving Range limits."""

    def test_known_values(self):
        values = [10, 12, 11, 13, 10, 12]
        limits = calculate_imr_limits(values)

        # x-bar 11.333, MR-bar 2.0
        assert limits.individual.center_line == pytest.approx(68 / 6)
        assert limits.individual.ucl == pytest.approx(68 / 6 + (3 / 1.128) * 2.0)
        assert limits.individual.lcl == pytest.approx(68 / 6 - (3 / 1.128) * 2.0)
        assert limits.moving_range.center_line == pytest.approx(2.0)
        assert limits.moving_range.ucl == pytest.approx(3.267 * 2.0)
        assert limits.moving_range.lcl == 0.0

    def test_multiplier_is_about_2_66(self):
        limits = calculate_imr_limits([0.0, 1.0])
        half_width = limits.individual.ucl - limits.individual.center_line
        assert half_width == pytest.approx(2.66, abs=0.001)

    def test_constant_data_collapses_variability_chart(self):
        limits = calculate_imr_limits([10, 10, 10, 10, 10])
        assert limits.moving_range.center_line == 0.0
        assert limits.moving_range.ucl == 0.0
        assert limits.moving_range.lcl == 0.0
        assert limits.individual.ucl == limits.individual.center_line == 10.0

    @pytest.mark.parametrize("values", [[], [10.0]])
    def test_fewer_than_two_values_raise(self, values):
        with pytest.raises(InsufficientDataError, match="at least 2"):
            calculate_imr_limits(values)


class TestLimitVariants:
    def test_primary_and_variability_accessors(self):
        xbar = calculate_xbar_r_limits([[1.0, 3.0], [2.0, 4.0]], 2)
        imr = calculate_imr_limits([1.0, 2.0, 4.0])

        assert xbar.chart_type is ChartType.XBAR_R
        assert xbar.primary is xbar.xbar
        assert xbar.variability is xbar.r
        assert imr.chart_type is ChartType.I_MR
        assert imr.primary is imr.individual
        assert imr.variability is imr.moving_range

    def test_primary_limits_dispatch(self):
        xbar = calculate_xbar_r_limits([[1.0, 3.0], [2.0, 4.0]], 2)
        imr = calculate_imr_limits([1.0, 2.0, 4.0])
        assert primary_limits(xbar) is xbar.xbar
        assert primary_limits(imr) is imr.individual

    def test_primary_limits_rejects_unknown_variant(self):
        chart = ControlLimits(center_line=0.0, ucl=3.0, lcl=-3.0, sigma=1.0)
        with pytest.raises(TypeError):
            primary_limits(chart)


class TestSubgroupFormation:
    """Subgroup formation policy driven by the width of the first row."""

    def test_rows_matching_size_are_subgroups(self, make_rows):
        rows = make_rows([[1, 2, 3], [4, 5, 6]])
        assert detect_layout(rows, 3) is SubgroupLayout.ROW_PER_SUBGROUP
        assert form_subgroups(rows, 3) == [(1.0, 2.0, 3.0), (4.0, 5.0, 6.0)]

    def test_single_column_is_chunked_and_partial_dropped(self, make_rows):
        rows = make_rows([[v] for v in range(12)])
        assert detect_layout(rows, 5) is SubgroupLayout.CHUNKED_COLUMN
        subgroups = form_subgroups(rows, 5)
        assert subgroups == [(0.0, 1.0, 2.0, 3.0, 4.0), (5.0, 6.0, 7.0, 8.0, 9.0)]

    def test_wide_rows_are_truncated(self, make_rows):
        rows = make_rows([[1, 2, 3, 4, 5, 6, 7], [8, 9, 10, 11, 12, 13, 14]])
        assert detect_layout(rows, 5) is SubgroupLayout.TRUNCATED_ROWS
        assert form_subgroups(rows, 5) == [(1, 2, 3, 4, 5), (8, 9, 10, 11, 12)]

    def test_short_rows_are_dropped(self, make_rows):
        rows = make_rows([[1, 2, 3, 4, 5], [1, 2, 3], [6, 7, 8, 9, 10]])
        assert form_subgroups(rows, 5) == [(1, 2, 3, 4, 5), (6, 7, 8, 9, 10)]

    def test_too_short_rows_form_nothing(self, make_rows):
        rows = make_rows([[1, 2, 3], [4, 5, 6]])
        assert form_subgroups(rows, 5) == []

    def test_empty_rows_raise(self):
        with pytest.raises(InsufficientDataError):
            detect_layout([], 5)


class TestBuildSeries:
    def test_xbar_series_points(self, make_rows, xbar_config):
        rows = make_rows([[1, 2, 3, 4, 5], [2, 4, 6, 8, 10]])
        series = build_series(rows, xbar_config)

        assert isinstance(series, DerivedSeries)
        assert series.chart_type is ChartType.XBAR_R
        assert series.values == [3.0, 6.0]
        assert series.variability_values == [4.0, 8.0]
        assert [p.row_indices for p in series.points] == [(0,), (1,)]

    def test_chunked_series_tracks_source_rows(self, make_rows):
        config = SPCConfiguration(usl=10, lsl=0, subgroup_size=2)
        rows = make_rows([[1], [3], [5], [7], [9]])
        series = build_series(rows, config)

        assert series.values == [2.0, 6.0]
        assert [p.row_indices for p in series.points] == [(0, 1), (2, 3)]

    def test_imr_series_uses_first_value_of_each_row(self, make_rows, imr_config):
        rows = make_rows([[10, 99], [12], [11]])
        series = build_series(rows, imr_config)

        assert series.chart_type is ChartType.I_MR
        assert series.values == [10.0, 12.0, 11.0]
        assert [p.variability for p in series.points] == [None, 2.0, 1.0]
        assert series.variability_values == [2.0, 1.0]

    def test_no_subgroups_raise(self, make_rows, xbar_config):
        with pytest.raises(InsufficientDataError, match="subgroup"):
            build_series(make_rows([[1, 2], [3, 4]]), xbar_config)

    def test_imr_single_value_raises(self, make_rows, imr_config):
        with pytest.raises(InsufficientDataError):
            build_series(make_rows([[10.0]]), imr_config)

    def test_calculate_limits_dispatches_on_chart_type(self, make_rows, xbar_config, imr_config):
        rows = make_rows([[1, 2, 3, 4, 5], [2, 4, 6, 8, 10]])
        xbar = calculate_limits(build_series(rows, xbar_config), xbar_config.subgroup_size)
        imr = calculate_limits(build_series(rows, imr_config), imr_config.subgroup_size)

        assert isinstance(xbar, XbarRLimits)
        assert isinstance(imr, IMRLimits)
        assert imr.individual.center_line == pytest.approx(1.5)
