"""SPC Engine - Statistical Process Control calculations."""

from .anomaly_rules import (
    AnomalyRecord,
    Rule1BeyondLimits,
    Rule2SameSide,
    Rule3Trend,
    Rule4Alternating,
    Rule5ZoneA,
    Rule6ZoneB,
    Rule7ZoneC,
    Rule8BeyondZoneC,
    Severity,
    WesternElectricRuleLibrary,
    detect_anomalies,
    merge_anomalies,
)
from .capability import (
    CapabilityGrade,
    ProcessMetrics,
    calculate_cp,
    calculate_cpk,
    calculate_pass_rate,
    calculate_pp,
    calculate_ppk,
    calculate_process_metrics,
    grade_capability,
)
from .control_limits import (
    ControlLimits,
    ControlLimitSet,
    DerivedPoint,
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
from .normality import estimate_normality_p_value
from .spc_engine import (
    AnalysisResult,
    ProcessedRow,
    RowStatus,
    SPCEngine,
    classify_row_status,
)

__all__ = [
    # SPC Engine
    "SPCEngine",
    "AnalysisResult",
    "ProcessedRow",
    "RowStatus",
    "classify_row_status",
    # Control Limits
    "ControlLimits",
    "ControlLimitSet",
    "XbarRLimits",
    "IMRLimits",
    "DerivedPoint",
    "DerivedSeries",
    "SubgroupLayout",
    "build_series",
    "calculate_limits",
    "calculate_xbar_r_limits",
    "calculate_imr_limits",
    "detect_layout",
    "form_subgroups",
    "primary_limits",
    # Capability
    "ProcessMetrics",
    "CapabilityGrade",
    "calculate_cp",
    "calculate_cpk",
    "calculate_pp",
    "calculate_ppk",
    "calculate_pass_rate",
    "calculate_process_metrics",
    "grade_capability",
    "estimate_normality_p_value",
    # Western Electric rules
    "WesternElectricRuleLibrary",
    "Rule1BeyondLimits",
    "Rule2SameSide",
    "Rule3Trend",
    "Rule4Alternating",
    "Rule5ZoneA",
    "Rule6ZoneB",
    "Rule7ZoneC",
    "Rule8BeyondZoneC",
    "AnomalyRecord",
    "Severity",
    "detect_anomalies",
    "merge_anomalies",
]
