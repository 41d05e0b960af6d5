from datetime import datetime, timezone

import pandas as pd
import pytest

from growthwatch.alerts import detect_percentile_alert
from growthwatch.reference import load_reference_table, table_from_frame


@pytest.fixture
def who_table():
    """Bundled WHO weight-for-age reference."""
    return load_reference_table()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def reference_frame() -> pd.DataFrame:
    """Minimal valid reference: constant L, M doubling from 0 to 60 months."""
    return pd.DataFrame(
        {
            "sex": ["male", "male", "female", "female"],
            "age": [0.0, 60.0, 0.0, 60.0],
            "L": [0.1, 0.1, 0.1, 0.1],
            "M": [10.0, 20.0, 9.0, 18.0],
            "S": [0.1, 0.1, 0.1, 0.1],
        }
    )


@pytest.fixture
def log_table(reference_frame: pd.DataFrame):
    """Reference with L == 0 at every anchor (pure log transform)."""
    frame = reference_frame.copy()
    frame["L"] = 0.0
    return table_from_frame(frame, "weight_for_age")


@pytest.fixture
def make_alert(fixed_now: datetime):
    """Factory for alerts with a chosen patient and percentile."""

    def _make(patient_id: str = "p1", percentile: float = 2.0, now: datetime = fixed_now):
        alert = detect_percentile_alert(percentile, patient_id, f"Patient {patient_id}", 5.0, 12, now=now)
        assert alert is not None
        return alert

    return _make


@pytest.fixture
def sample_measurements() -> pd.DataFrame:
    """Weights around the WHO medians at 24 months."""
    return pd.DataFrame(
        {
            "age": [24.0, 24.0, 12.0, 24.0, 36.0],
            "sex": ["male", "M", "female", "F", "male"],
            "weight_kg": [12.1515, 20.0, 5.0, 11.2873, float("nan")],
        }
    )
