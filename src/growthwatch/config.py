"""
Configuration constants and settings for growth assessment.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

# Canonical reporting percentiles drawn as reference curves
CANONICAL_PERCENTILES = (3, 10, 25, 50, 75, 90, 97)

# |L| below this is treated as the log (L == 0) case of the Box-Cox transform
L_ZERO_THRESHOLD = 1e-6

# Upper bound of the bundled WHO weight-for-age reference
DEFAULT_MAX_AGE_MONTHS = 60

# Percentile bands used by the alert detector
CRITICAL_LOW_PERCENTILE = 3.0
WARNING_LOW_PERCENTILE = 10.0
WARNING_HIGH_PERCENTILE = 90.0
CRITICAL_HIGH_PERCENTILE = 97.0

REFERENCE_PACKAGE = "growthwatch"
REFERENCE_FILES = {
    "weight_for_age": "data/who_weight_for_age.csv",
}


class AssessmentConfig(BaseModel):
    """
    Settings shared by the scoring entry points.

    Attributes:
        on_out_of_range (str): What to do with ages beyond the last reference
            anchor. 'clamp' scores against the last anchor and logs a warning,
            'error' raises InvalidArgumentError. Negative ages are always rejected.
        alert_store_path (Optional[Path]): Default location of the JSON alert store.
    """

    on_out_of_range: Literal["clamp", "error"] = "clamp"
    alert_store_path: Optional[Path] = None

    @field_validator("alert_store_path")
    @classmethod
    def validate_store_path(cls, v: Optional[Path]) -> Optional[Path]:
        """Reject paths that point at an existing directory."""
        if v is not None and v.is_dir():
            raise ValueError("alert_store_path must be a file path, not a directory")
        return v
