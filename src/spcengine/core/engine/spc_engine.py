"""SPC Engine orchestrator running imported rows through the complete SPC pipeline.

Pipeline: validate rows, derive the primary-chart series, calculate control
limits, compute capability on the flat population, scan the series with the
enabled Western Electric rules and attribute the merged anomalies back to rows.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import structlog

from spcengine.core.engine.anomaly_rules import (
    AnomalyRecord,
    Severity,
    WesternElectricRuleLibrary,
)
from spcengine.core.engine.capability import ProcessMetrics, calculate_process_metrics
from spcengine.core.engine.control_limits import (
    ControlLimitSet,
    DerivedSeries,
    build_series,
    calculate_limits,
)
from spcengine.core.exceptions import InsufficientDataError, InvalidDataError, SPCError
from spcengine.core.schemas import RawDataRow, SPCConfiguration
from spcengine.core.validation import validate_rows
from spcengine.utils.statistics import mean, value_range


class RowStatus(str, Enum):
    """Display status of an imported row."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


def classify_row_status(anomalies: Sequence[AnomalyRecord]) -> RowStatus:
    """Highest severity among a row's anomalies; info-only rows stay normal."""
    severities = {a.severity for a in anomalies}
    if Severity.CRITICAL in severities:
        return RowStatus.CRITICAL
    if Severity.WARNING in severities:
        return RowStatus.WARNING
    return RowStatus.NORMAL


@dataclass
class ProcessedRow:
    """An imported row annotated with its statistics and status.

    Attributes:
        index: Position of the row in the import (0-based)
        values: Measurements of the row
        mean: Mean of the row's measurements
        range_value: Range of the row's measurements
        status: Highest severity among anomalies attributed to the row
        anomalies: Anomalies at the series point the row contributed to
    """

    index: int
    values: tuple[float, ...]
    mean: float
    range_value: float
    status: RowStatus
    anomalies: list[AnomalyRecord] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Result of running one configuration/data snapshot through the engine.

    Attributes:
        config: Configuration the analysis ran with
        series: Derived primary-chart series
        limits: Control limit set for the chart pair
        metrics: Capability summary of the flat population
        anomalies: Merged anomalies, one per series index, sorted by index
        rows: Imported rows with their status
        warnings: Data validation warnings
        processing_time_ms: Time taken to analyze in milliseconds
    """

    config: SPCConfiguration
    series: DerivedSeries
    limits: ControlLimitSet
    metrics: ProcessMetrics
    anomalies: list[AnomalyRecord]
    rows: list[ProcessedRow]
    warnings: list[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def in_control(self) -> bool:
        """True if no critical or warning anomaly was found."""
        return all(a.severity is Severity.INFO for a in self.anomalies)


class SPCEngine:
    """Main SPC analysis engine.

    Orchestrates the complete SPC pipeline:
    1. Validates imported rows
    2. Derives subgroup means/ranges (X-bar/R) or individuals/moving ranges (I-MR)
    3. Calculates control limits
    4. Calculates capability indices and the normality estimate
    5. Evaluates the enabled Western Electric rules
    6. Attributes anomalies to rows and classifies row status

    Every call is a pure function of its inputs; the engine holds no state
    between runs apart from its collaborators.

    Args:
        rule_library: Rule library (a default one is created if None)
        logger: Structured logger receiving diagnostic events (module logger if None)
    """

    def __init__(
        self,
        rule_library: WesternElectricRuleLibrary | None = None,
        logger: structlog.typing.FilteringBoundLogger | None = None,
    ):
        self._rule_library = rule_library or WesternElectricRuleLibrary()
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    def analyze(
        self,
        rows: Sequence[RawDataRow],
        config: SPCConfiguration,
    ) -> AnalysisResult:
        """Analyze imported rows with the given configuration.

        Args:
            rows: Imported measurement rows
            config: Validated analysis configuration

        Returns:
            AnalysisResult with limits, metrics, anomalies and row statuses

        Raises:
            InsufficientDataError: If there are no measurements, no subgroup could
                be formed, or fewer than 2 individual values are available
            InvalidDataError: If any measurement is not a finite number

        Example:
            >>> config = SPCConfiguration(usl=11.0, lsl=9.5, subgroup_size=5)
            >>> result = SPCEngine().analyze(rows, config)
            >>> print(result.metrics.cpk, len(result.anomalies))
        """
        start_time = time.perf_counter()
        log = self._logger.bind(
            chart_type=config.chart_type.value,
            subgroup_size=config.subgroup_size,
            row_count=len(rows),
        )

        try:
            result = self._analyze(rows, config)
        except SPCError as exc:
            log.warning("spc_analysis_failed", error=str(exc), error_type=type(exc).__name__)
            raise

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000

        for warning in result.warnings:
            log.warning("spc_data_warning", detail=warning)
        log.info(
            "spc_analysis_completed",
            points=len(result.series),
            anomalies=len(result.anomalies),
            cpk=result.metrics.cpk,
            processing_time_ms=round(result.processing_time_ms, 3),
        )
        return result

    def _analyze(
        self,
        rows: Sequence[RawDataRow],
        config: SPCConfiguration,
    ) -> AnalysisResult:
        if not rows:
            raise InsufficientDataError("No data rows supplied")

        validation = validate_rows(rows)
        if not validation.valid:
            raise InvalidDataError(validation.errors)

        population = [value for row in rows for value in row.values]
        if not population:
            raise InsufficientDataError("Data rows contain no measurements")

        series = build_series(rows, config)
        limits = calculate_limits(series, config.subgroup_size)
        metrics = calculate_process_metrics(population, config.usl, config.lsl)

        anomalies = self._rule_library.check_all(
            series.values, limits, config.enabled_rules
        )

        return AnalysisResult(
            config=config,
            series=series,
            limits=limits,
            metrics=metrics,
            anomalies=anomalies,
            rows=self._process_rows(rows, series, anomalies),
            warnings=validation.warnings,
        )

    def _process_rows(
        self,
        rows: Sequence[RawDataRow],
        series: DerivedSeries,
        anomalies: list[AnomalyRecord],
    ) -> list[ProcessedRow]:
        """Attribute anomalies to the rows each series point was built from."""
        by_point = {a.index: a for a in anomalies}
        by_row: dict[int, list[AnomalyRecord]] = {}
        for point in series.points:
            anomaly = by_point.get(point.index)
            if anomaly is None:
                continue
            for row_index in point.row_indices:
                by_row.setdefault(row_index, []).append(anomaly)

        processed = []
        for index, row in enumerate(rows):
            row_anomalies = by_row.get(index, [])
            processed.append(ProcessedRow(
                index=index,
                values=row.values,
                mean=mean(row.values),
                range_value=value_range(row.values),
                status=classify_row_status(row_anomalies),
                anomalies=row_anomalies,
            ))
        return processed
