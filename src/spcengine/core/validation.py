"""Sanity checks on imported rows before analysis.

Problems that make the data unusable are reported as errors; things that only
make the results less reliable are reported as warnings.
"""

import math
from dataclasses import dataclass, field
from typing import Sequence

from spcengine.core.schemas import RawDataRow
from spcengine.utils.statistics import mean, std_dev

MIN_RELIABLE_ROWS = 3
EXTREME_OUTLIER_SIGMA = 6


@dataclass
class ValidationResult:
    """Outcome of validating imported rows.

    Attributes:
        valid: True if there are no errors
        errors: Problems that prevent analysis
        warnings: Problems that make results less reliable
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_rows(rows: Sequence[RawDataRow]) -> ValidationResult:
    """Validate imported rows.

    Checks for:
    - no rows at all (error)
    - fewer than 3 rows (warning)
    - rows of differing widths (warning)
    - non-finite measurements (error, one per cell)
    - measurements more than 6 population sigma from the mean (warning)
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not rows:
        errors.append("No data rows supplied")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    if len(rows) < MIN_RELIABLE_ROWS:
        warnings.append(
            f"Very few data rows (< {MIN_RELIABLE_ROWS}). Results may not be reliable."
        )

    widths = sorted({len(row.values) for row in rows})
    if len(widths) > 1:
        warnings.append(
            "Inconsistent row widths detected: " + ", ".join(str(w) for w in widths)
        )

    finite_values = []
    for row_number, row in enumerate(rows, start=1):
        for value_number, value in enumerate(row.values, start=1):
            if math.isfinite(value):
                finite_values.append(value)
            else:
                errors.append(
                    f"Invalid value at row {row_number}, measurement {value_number}"
                )

    if finite_values:
        avg = mean(finite_values)
        sigma = std_dev(finite_values, 0)
        outliers = [v for v in finite_values if abs(v - avg) > EXTREME_OUTLIER_SIGMA * sigma]
        if outliers:
            warnings.append(
                f"Found {len(outliers)} extreme outliers "
                f"(> {EXTREME_OUTLIER_SIGMA} sigma from mean)"
            )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
