"""Statistical process control engine: control limits, capability and anomaly rules."""

from spcengine.core.engine import (
    AnalysisResult,
    AnomalyRecord,
    ControlLimits,
    IMRLimits,
    ProcessMetrics,
    RowStatus,
    Severity,
    SPCEngine,
    XbarRLimits,
)
from spcengine.core.exceptions import (
    ConfigurationError,
    ConstantsRangeError,
    InsufficientDataError,
    InvalidDataError,
    SPCError,
)
from spcengine.core.schemas import ChartType, RawDataRow, SPCConfiguration

__version__ = "0.1.0"

__all__ = [
    "SPCEngine",
    "AnalysisResult",
    "AnomalyRecord",
    "ControlLimits",
    "XbarRLimits",
    "IMRLimits",
    "ProcessMetrics",
    "RowStatus",
    "Severity",
    "ChartType",
    "RawDataRow",
    "SPCConfiguration",
    "SPCError",
    "ConfigurationError",
    "InsufficientDataError",
    "InvalidDataError",
    "ConstantsRangeError",
]
