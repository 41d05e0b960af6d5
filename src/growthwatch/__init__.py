"""
growthwatch: weight-for-age growth assessment and alerting.

Scores a child's weight against WHO LMS reference curves, classifies the
percentile, and keeps at most one growth alert per patient.
"""

from .alerts import Alert, AlertStats, AlertType, Measurement, Severity, detect_percentile_alert
from .config import AssessmentConfig, CANONICAL_PERCENTILES
from .curves import CurvePoint, curves_to_frame, generate_curves
from .errors import InvalidArgumentError, ReferenceDataError
from .monitor import Evaluation, GrowthMonitor
from .reference import LMSPoint, ReferenceTable, Sex, load_reference_table
from .stores import AlertStore, InMemoryAlertStore, JsonFileAlertStore, create_store
from .zscores import (
    Interpretation,
    ScoreResult,
    calculate_weight_for_age,
    calculate_weight_for_age_batch,
    interpolate_lms,
    interpret_percentile,
    lms_value,
    lms_zscore,
    percentile_to_zscore,
    zscore_to_percentile,
)

__all__ = [
    "Alert",
    "AlertStats",
    "AlertStore",
    "AlertType",
    "AssessmentConfig",
    "CANONICAL_PERCENTILES",
    "CurvePoint",
    "Evaluation",
    "GrowthMonitor",
    "InMemoryAlertStore",
    "Interpretation",
    "InvalidArgumentError",
    "JsonFileAlertStore",
    "LMSPoint",
    "Measurement",
    "ReferenceDataError",
    "ReferenceTable",
    "ScoreResult",
    "Severity",
    "Sex",
    "calculate_weight_for_age",
    "calculate_weight_for_age_batch",
    "create_store",
    "curves_to_frame",
    "detect_percentile_alert",
    "generate_curves",
    "interpolate_lms",
    "interpret_percentile",
    "lms_value",
    "lms_zscore",
    "load_reference_table",
    "percentile_to_zscore",
    "zscore_to_percentile",
]
