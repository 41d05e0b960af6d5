"""
Percentile-based growth alerts.

An alert is raised when a weight-for-age percentile falls outside the
10th-90th band; below the 3rd or above the 97th it is critical.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4
import math

from pydantic import BaseModel, Field, field_validator

from .config import (
    CRITICAL_HIGH_PERCENTILE,
    CRITICAL_LOW_PERCENTILE,
    WARNING_HIGH_PERCENTILE,
    WARNING_LOW_PERCENTILE,
)
from .errors import InvalidArgumentError


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"


class AlertType(str, Enum):
    LOW_PERCENTILE = "low_percentile"
    HIGH_PERCENTILE = "high_percentile"
    NORMAL = "normal"


class Measurement(BaseModel):
    weight: float
    age_months: float
    date: datetime


class Alert(BaseModel):
    """
    A growth alert for one patient.

    Attributes:
        id (str): Opaque identifier, unique per detection.
        patient_id (str): Patient the alert belongs to; at most one stored alert per patient.
        severity (Severity): critical or warning.
        type (AlertType): low_percentile or high_percentile.
        message (str): Human-readable summary embedding the percentile.
        is_acknowledged (bool): Set once by acknowledge, never reset.
    """

    id: str
    patient_id: str
    patient_name: str
    severity: Severity
    type: AlertType
    message: str
    percentile: float
    measurement: Measurement
    is_acknowledged: bool = False
    created_at: datetime

    @field_validator("id", "patient_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Identifier must be a non-empty string")
        return v


class AlertStats(BaseModel):
    total: int = Field(0, ge=0)
    critical: int = Field(0, ge=0)
    warning: int = Field(0, ge=0)
    unacknowledged: int = Field(0, ge=0)


def _new_alert_id(patient_id: str, now: datetime) -> str:
    return f"alert-{patient_id}-{int(now.timestamp() * 1000)}-{uuid4().hex[:8]}"


def detect_percentile_alert(
    percentile: float,
    patient_id: str,
    patient_name: str,
    weight: float,
    age_months: float,
    now: Optional[datetime] = None,
) -> Optional[Alert]:
    """
    Build an alert for a percentile outside the normal band.

    <3 critical low, <10 warning low, >97 critical high, >90 warning high.
    Percentiles in [10, 90] produce no alert.

    Args:
        percentile: Weight-for-age percentile (0-100)
        patient_id: Patient identifier
        patient_name: Display name
        weight: Measured weight in kg
        age_months: Age at measurement
        now: Detection instant (default: current UTC time)

    Returns:
        Alert, or None when the percentile is in the normal band
    """
    if math.isnan(percentile):
        raise InvalidArgumentError("Percentile must be a number, got NaN")
    if percentile < CRITICAL_LOW_PERCENTILE:
        severity, alert_type, label = Severity.CRITICAL, AlertType.LOW_PERCENTILE, "Severe underweight"
    elif percentile < WARNING_LOW_PERCENTILE:
        severity, alert_type, label = Severity.WARNING, AlertType.LOW_PERCENTILE, "Underweight"
    elif percentile > CRITICAL_HIGH_PERCENTILE:
        severity, alert_type, label = Severity.CRITICAL, AlertType.HIGH_PERCENTILE, "Obesity"
    elif percentile > WARNING_HIGH_PERCENTILE:
        severity, alert_type, label = Severity.WARNING, AlertType.HIGH_PERCENTILE, "Overweight"
    else:
        return None

    now = now or datetime.now(timezone.utc)
    return Alert(
        id=_new_alert_id(patient_id, now),
        patient_id=patient_id,
        patient_name=patient_name,
        severity=severity,
        type=alert_type,
        message=f"{label} (P{percentile:.1f})",
        percentile=percentile,
        measurement=Measurement(weight=weight, age_months=age_months, date=now),
        is_acknowledged=False,
        created_at=now,
    )
