"""Unit tests for statistical constants and primitives.

Tests verify:
- Statistical constants match the published tables
- Lookups reject sizes outside 2-25 and non-integers
- Descriptive statistics handle empty and degenerate input
- Zone boundaries are properly calculated
"""

import numpy as np
import pytest

from spcengine.core.exceptions import ConstantsRangeError
from spcengine.utils import (
    calculate_zones,
    get_A2,
    get_c4,
    get_d2,
    get_d3,
    get_D3,
    get_D4,
    is_valid_subgroup_size,
    lookup,
    lookup_all,
    mean,
    median,
    moving_ranges,
    normal_cdf,
    normal_pdf,
    std_dev,
    value_range,
)


class TestConstants:
    """Test statistical constants retrieval."""

    def test_subgroup_size_5_exact_values(self):
        """A2, D3 and D4 for n=5 come straight from the table."""
        assert lookup(5, "A2") == 0.577
        assert lookup(5, "D3") == 0.0
        assert lookup(5, "D4") == 2.115

    def test_lookup_all_returns_every_constant(self):
        constants = lookup_all(5)
        assert constants.n == 5
        assert constants.A2 == 0.577
        assert constants.D3 == 0.0
        assert constants.D4 == 2.115
        assert constants.c4 == 0.9400
        assert constants.d2 == 2.326
        assert constants.d3 == 0.864

    def test_d2_values(self):
        assert get_d2(2) == 1.128
        assert get_d2(3) == 1.693
        assert get_d2(10) == 3.078
        assert get_d2(25) == 3.931

    def test_D3_is_zero_below_seven(self):
        for n in range(2, 7):
            assert get_D3(n) == 0.0
        assert get_D3(7) == 0.076
        assert get_D3(15) == 0.348

    def test_other_getters(self):
        assert get_A2(2) == 1.880
        assert get_D4(2) == 3.267
        assert get_c4(10) == 0.9727
        assert get_d3(2) == 0.853

    def test_table_covers_2_to_25(self):
        for n in range(2, 26):
            assert lookup_all(n).n == n

    @pytest.mark.parametrize("n", [0, 1, 26, 100, -3])
    def test_out_of_range_raises(self, n):
        with pytest.raises(ConstantsRangeError, match="between 2 and 25"):
            lookup(n, "A2")

    @pytest.mark.parametrize("n", [2.5, 5.0, True, "5", None])
    def test_non_integer_raises(self, n):
        with pytest.raises(ConstantsRangeError):
            lookup_all(n)

    @pytest.mark.parametrize("n", [np.int64(5), np.int32(5), np.uint8(5)])
    def test_numpy_integers_are_accepted(self, n):
        assert is_valid_subgroup_size(n)
        assert lookup_all(n).A2 == 0.577
        assert get_d2(n) == 2.326

    def test_numpy_float_is_rejected(self):
        with pytest.raises(ConstantsRangeError):
            lookup_all(np.float64(5.0))

    def test_range_error_is_value_error(self):
        with pytest.raises(ValueError):
            get_A2(1)

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            lookup(5, "E2")

    def test_is_valid_subgroup_size(self):
        assert is_valid_subgroup_size(2)
        assert is_valid_subgroup_size(25)
        assert not is_valid_subgroup_size(1)
        assert not is_valid_subgroup_size(26)
        assert not is_valid_subgroup_size(3.0)


class TestDescriptiveStatistics:
    """Test mean, standard deviation, range and median."""

    def test_mean(self):
        assert mean([1.0, 2.0, 3.0, 4.0]) == pytest.approx(2.5)

    def test_mean_empty_is_zero(self):
        assert mean([]) == 0.0

    def test_std_dev_sample_and_population(self):
        data = [2, 4, 4, 4, 5, 5, 7, 9]
        assert std_dev(data, 0) == pytest.approx(2.0)
        assert std_dev(data, 1) == pytest.approx(2.138089935)

    def test_std_dev_defaults_to_sample(self):
        data = [1.0, 2.0, 3.0]
        assert std_dev(data) == std_dev(data, 1)

    @pytest.mark.parametrize("data, ddof", [
        ([], 0),
        ([], 1),
        ([5.0], 1),
    ])
    def test_std_dev_zero_when_n_not_above_ddof(self, data, ddof):
        assert std_dev(data, ddof) == 0.0

    def test_std_dev_single_value_population(self):
        assert std_dev([5.0], 0) == 0.0

    @pytest.mark.parametrize("data", [
        [1.0, 2.0],
        [10.2, 10.3, 10.1, 10.4],
        [0.0, 0.0, 0.0],
        [-5.0, 3.0, 8.0, 1.0, 2.0],
    ])
    def test_sample_std_dev_not_below_population(self, data):
        assert std_dev(data, 1) >= std_dev(data, 0)

    def test_range(self):
        assert value_range([3.0, 9.0, 1.0]) == 8.0
        assert value_range([]) == 0.0

    def test_median_odd_and_even(self):
        assert median([3.0, 1.0, 2.0]) == 2.0
        assert median([4.0, 1.0, 3.0, 2.0]) == 2.5

    def test_moving_ranges(self):
        assert moving_ranges([10, 12, 11, 13, 10]) == [2.0, 1.0, 2.0, 3.0]
        assert moving_ranges([10]) == []


class TestNormalDistribution:
    def test_cdf_reference_points(self):
        assert normal_cdf(0.0) == pytest.approx(0.5)
        assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-3)
        assert normal_cdf(-1.96) == pytest.approx(0.025, abs=1e-3)

    def test_pdf_peak(self):
        assert normal_pdf(0.0, 0.0, 1.0) == pytest.approx(0.3989423, abs=1e-6)

    def test_pdf_rejects_non_positive_sigma(self):
        with pytest.raises(ValueError):
            normal_pdf(0.0, 0.0, 0.0)


class TestZones:
    def test_calculate_zones(self):
        zones = calculate_zones(100.0, 2.0)
        assert zones.plus_1_sigma == 102.0
        assert zones.plus_3_sigma == 106.0
        assert zones.minus_2_sigma == 96.0
        assert zones.minus_3_sigma == 94.0

    def test_zone_membership_boundaries(self):
        zones = calculate_zones(100.0, 10.0)
        assert zones.in_zone_c(110.0)
        assert not zones.beyond_zone_c(110.0)
        assert zones.beyond_zone_c(110.01)
        assert not zones.in_zone_a(120.0)
        assert zones.in_zone_a(120.01)
        assert zones.in_zone_a(130.0)
        assert not zones.in_zone_a(130.01)
        assert zones.in_zone_a(75.0)

    def test_zone_a_outer_edge_is_the_control_limit(self):
        center, ucl = 0.34505516837858297, 1.977072729949848
        lcl = 2 * center - ucl
        zones = calculate_zones(center, (ucl - center) / 3, ucl=ucl, lcl=lcl)

        assert zones.plus_3_sigma == ucl
        assert zones.minus_3_sigma == lcl
        assert zones.in_zone_a(ucl)
        assert zones.in_zone_a(lcl)
        assert not zones.in_zone_a(center)

    def test_zero_sigma_is_allowed(self):
        zones = calculate_zones(10.0, 0.0)
        assert zones.in_zone_c(10.0)
        assert zones.beyond_zone_c(10.1)

    def test_negative_sigma_raises(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            calculate_zones(100.0, -1.0)
