"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from spcengine.core.engine.control_limits import ControlLimits
from spcengine.core.schemas import ChartType, RawDataRow, SPCConfiguration


def rows_from(data: list[list[float]]) -> list[RawDataRow]:
    """Build raw rows from nested lists of measurements."""
    return [RawDataRow(values=tuple(values)) for values in data]


@pytest.fixture
def make_rows():
    """Factory fixture turning nested lists into raw rows."""
    return rows_from


@pytest.fixture
def standard_limits() -> ControlLimits:
    """Primary chart with center 100 and one zone per 10 units.

    Zone C: 90..110, Zone B: 110..120 / 80..90, Zone A: 120..130 / 70..80.
    """
    return ControlLimits(center_line=100.0, ucl=130.0, lcl=70.0, sigma=10.0)


@pytest.fixture
def scenario_rows() -> list[RawDataRow]:
    """Three in-control subgroups of five measurements."""
    return rows_from([
        [10.2, 10.3, 10.1, 10.4, 10.2],
        [10.1, 10.2, 10.3, 10.2, 10.1],
        [10.3, 10.2, 10.4, 10.1, 10.3],
    ])


@pytest.fixture
def xbar_config() -> SPCConfiguration:
    return SPCConfiguration(usl=11.0, lsl=9.5, subgroup_size=5)


@pytest.fixture
def imr_config() -> SPCConfiguration:
    return SPCConfiguration(usl=11.0, lsl=9.0, chart_type=ChartType.I_MR)
