"""
Percentile based screening of weight measurements.

Flags rows whose weight-for-age percentile falls outside a configurable band,
the batch counterpart of the per-patient alert detector.
"""

from typing import Dict, List, Literal, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ValidationError, field_validator

from ...config import AssessmentConfig, WARNING_HIGH_PERCENTILE, WARNING_LOW_PERCENTILE
from ...reference import ReferenceTable, load_reference_table
from ...zscores import calculate_weight_for_age_batch, interpret_percentile
from ..base import BaseDetector


class PercentileDetectorConfig(BaseModel):
    """
    Configuration for percentile based screening.

    Attributes:
        age_col (str): Column with age in months ('age' by default).
        sex_col (str): Column with sex ('sex' by default). 'male'/'female' or 'M'/'F'.
        low_percentile (float): Rows strictly below this percentile are flagged.
        high_percentile (float): Rows strictly above this percentile are flagged.
        on_out_of_range (str): 'clamp' or 'error' for ages beyond the reference.
    """

    age_col: str = "age"
    sex_col: str = "sex"
    low_percentile: float = WARNING_LOW_PERCENTILE
    high_percentile: float = WARNING_HIGH_PERCENTILE
    on_out_of_range: Literal["clamp", "error"] = "clamp"

    @field_validator("age_col", "sex_col")
    @classmethod
    def validate_column_names(cls, v: str) -> str:
        """Ensure column names are valid string identifiers."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Column name must be a non-empty string")
        return v

    @field_validator("low_percentile", "high_percentile")
    @classmethod
    def validate_percentile(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError("Percentile thresholds must be within [0, 100]")
        return v


# Columns this method can screen
SUPPORTED_COLUMNS = ("weight_kg",)


class PercentileDetector(BaseDetector):
    """
    Weight-for-age percentile detector.

    Usage:
        detector = PercentileDetector(age_col='age_months', sex_col='gender')
        flags = detector.detect(df, ['weight_kg'])

    Attributes:
        config (PercentileDetectorConfig): Column mapping and thresholds.
        table (ReferenceTable): LMS reference used for scoring.
    """

    def __init__(
        self,
        age_col: str = "age",
        sex_col: str = "sex",
        low_percentile: float = WARNING_LOW_PERCENTILE,
        high_percentile: float = WARNING_HIGH_PERCENTILE,
        on_out_of_range: str = "clamp",
        table: Optional[ReferenceTable] = None,
    ):
        """
        Raises:
            ValueError: If configuration is invalid
        """
        try:
            self.config = PercentileDetectorConfig(
                age_col=age_col,
                sex_col=sex_col,
                low_percentile=low_percentile,
                high_percentile=high_percentile,
                on_out_of_range=on_out_of_range,
            )
            self._assessment = AssessmentConfig(on_out_of_range=on_out_of_range)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e}") from e

        self.table = table or load_reference_table()
        self.validate_config()

    def validate_config(self) -> None:
        """
        Raises:
            ValueError: If age and sex columns coincide or the band is empty
        """
        if self.config.age_col == self.config.sex_col:
            raise ValueError("Configuration must specify unique column names")
        if self.config.low_percentile >= self.config.high_percentile:
            raise ValueError("low_percentile must be less than high_percentile")

    def score(self, df: pd.DataFrame, column: str = "weight_kg") -> pd.DataFrame:
        """
        Score a measurement column.

        Returns:
            DataFrame aligned with df holding 'waz', 'percentile' and
            'interpretation' (None where the row could not be scored)
        """
        self._validate_required_columns(df)
        self._validate_measure_column(df, column)

        metrics = calculate_weight_for_age_batch(
            agemos=np.asarray(df[self.config.age_col], dtype=np.float64),
            weight=np.asarray(df[column], dtype=np.float64),
            sex=np.asarray(df[self.config.sex_col].astype(str)),
            config=self._assessment,
            table=self.table,
        )
        percentile = metrics["percentile"]
        interpretation = [
            interpret_percentile(p).value if np.isfinite(p) else None
            for p in percentile
        ]
        return pd.DataFrame(
            {
                "waz": metrics["waz"],
                "percentile": percentile,
                # object dtype keeps None for unscored rows
                "interpretation": pd.Series(interpretation, index=df.index, dtype=object),
            },
            index=df.index,
        )

    def detect(self, df: pd.DataFrame, columns: List[str]) -> Dict[str, pd.Series]:
        """
        Flag measurements outside the configured percentile band.

        Unscorable rows (missing weight or age) are not flagged.

        Returns:
            Dict mapping column names to boolean Series, True where flagged

        Raises:
            ValueError: If an unsupported or missing column is requested
        """
        results = {}
        for col in columns:
            percentile = self.score(df, col)["percentile"]
            flags = (percentile < self.config.low_percentile) | (
                percentile > self.config.high_percentile
            )
            results[col] = flags.fillna(False).astype(bool).rename(col)
        return results

    def _validate_required_columns(self, df: pd.DataFrame) -> None:
        self._validate_column(df, self.config.age_col)
        self._validate_column(df, self.config.sex_col)

    def _validate_measure_column(self, df: pd.DataFrame, column: str) -> None:
        if column not in SUPPORTED_COLUMNS:
            raise ValueError(
                f"Unsupported column '{column}' for percentile screening. "
                f"Supported columns: {list(SUPPORTED_COLUMNS)}"
            )
        self._validate_column(df, column)
