"""Pydantic schemas for SPC engine inputs.

These are the records handed over by the data-import and configuration
collaborators: raw measurement rows and the analysis configuration.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing_extensions import Self

from spcengine.core.config import get_settings
from spcengine.core.exceptions import ConfigurationError
from spcengine.utils.constants import MAX_SUBGROUP_SIZE, MIN_SUBGROUP_SIZE

ALL_RULES: frozenset[int] = frozenset(range(1, 9))


class ChartType(str, Enum):
    """Control chart pair used for limits and anomaly detection."""

    XBAR_R = "xbar-r"
    I_MR = "i-mr"


class RawDataRow(BaseModel):
    """One imported row of measurements.

    Attributes:
        values: Ordered measurements of the row (one or more)
        timestamp: Optional sampling timestamp as supplied by the importer
        group_no: Optional subgroup number as supplied by the importer
    """

    model_config = ConfigDict(frozen=True)

    values: tuple[float, ...]
    timestamp: str | None = None
    group_no: int | None = None


class SPCConfiguration(BaseModel):
    """Configuration of one SPC analysis run.

    Validators raise ConfigurationError, which pydantic lets through unchanged.

    Attributes:
        usl: Upper Specification Limit
        lsl: Lower Specification Limit (must be below usl)
        target: Optional target/nominal value
        subgroup_size: Measurements per subgroup for X-bar/R charts (2-25)
        enabled_rules: Western Electric rule ids to evaluate (subset of 1-8)
        chart_type: "xbar-r" or "i-mr"
    """

    model_config = ConfigDict(frozen=True)

    usl: float
    lsl: float
    target: float | None = None
    subgroup_size: int = 5
    enabled_rules: frozenset[int] = Field(default=ALL_RULES)
    chart_type: ChartType = ChartType.XBAR_R

    @field_validator("subgroup_size")
    @classmethod
    def validate_subgroup_size(cls, value: int) -> int:
        if value < MIN_SUBGROUP_SIZE or value > MAX_SUBGROUP_SIZE:
            raise ConfigurationError(
                f"subgroup_size must be between {MIN_SUBGROUP_SIZE} and "
                f"{MAX_SUBGROUP_SIZE}, got {value}"
            )
        return value

    @field_validator("enabled_rules")
    @classmethod
    def validate_enabled_rules(cls, value: frozenset[int]) -> frozenset[int]:
        unknown = sorted(value - ALL_RULES)
        if unknown:
            raise ConfigurationError(f"Unknown rule ids {unknown}, expected values 1-8")
        return value

    @model_validator(mode="after")
    def validate_spec_limits(self) -> Self:
        """Validate that the specification window is not empty."""
        if self.usl <= self.lsl:
            raise ConfigurationError(
                f"usl must be greater than lsl (usl={self.usl}, lsl={self.lsl})"
            )
        return self

    @classmethod
    def from_settings(cls, usl: float, lsl: float, **overrides) -> "SPCConfiguration":
        """Build a configuration, taking unset defaults from process settings."""
        settings = get_settings()
        values = {
            "subgroup_size": settings.default_subgroup_size,
            "enabled_rules": settings.default_enabled_rules,
            "chart_type": settings.default_chart_type,
        }
        values.update(overrides)
        return cls(usl=usl, lsl=lsl, **values)
