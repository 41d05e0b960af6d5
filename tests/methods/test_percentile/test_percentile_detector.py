"""
Tests for PercentileDetector class.

Covers configuration validation, scoring, flagging and agreement with the
scalar weight-for-age entry point.
"""

import logging

import numpy as np
import pandas as pd
import pytest

from growthwatch.methods.percentile.detector import (
    PercentileDetector,
    PercentileDetectorConfig,
)
from growthwatch.zscores import calculate_weight_for_age


class TestPercentileDetectorConfig:
    """Tests for PercentileDetectorConfig Pydantic model."""

    def test_tc001_default_config(self):
        """TC001: Default configuration values."""
        config = PercentileDetectorConfig()
        assert config.age_col == "age"
        assert config.sex_col == "sex"
        assert config.low_percentile == 10.0
        assert config.high_percentile == 90.0
        assert config.on_out_of_range == "clamp"

    def test_tc002_invalid_column_names(self):
        """TC002: Empty column names are rejected."""
        with pytest.raises(ValueError, match="Column name must be a non-empty string"):
            PercentileDetectorConfig(age_col="")
        with pytest.raises(ValueError, match="Column name must be a non-empty string"):
            PercentileDetectorConfig(sex_col="   ")

    def test_tc003_percentile_bounds(self):
        """TC003: Thresholds must lie within [0, 100]."""
        with pytest.raises(ValueError):
            PercentileDetectorConfig(low_percentile=-1)
        with pytest.raises(ValueError):
            PercentileDetectorConfig(high_percentile=101)

    def test_tc004_out_of_range_mode(self):
        """TC004: Only clamp and error are accepted."""
        assert PercentileDetectorConfig(on_out_of_range="error").on_out_of_range == "error"
        with pytest.raises(ValueError):
            PercentileDetectorConfig(on_out_of_range="ignore")


class TestPercentileDetector:
    """Tests for PercentileDetector class."""

    def test_tc005_instantiate_with_valid_config(self):
        """TC005: Instantiate with custom columns."""
        detector = PercentileDetector(age_col="age_months", sex_col="gender")
        assert detector.config.age_col == "age_months"
        assert detector.table.metric == "weight_for_age"

    def test_tc006_invalid_configuration(self):
        """TC006: Invalid configuration raises ValueError."""
        with pytest.raises(ValueError, match="Invalid configuration"):
            PercentileDetector(low_percentile=200)
        with pytest.raises(ValueError, match="unique column names"):
            PercentileDetector(age_col="x", sex_col="x")
        with pytest.raises(ValueError, match="low_percentile must be less"):
            PercentileDetector(low_percentile=50, high_percentile=50)

    def test_tc007_detect_flags_outside_band(self, sample_measurements):
        """TC007: Rows outside [10, 90] are flagged, missing weights are not."""
        results = PercentileDetector().detect(sample_measurements, ["weight_kg"])
        assert results["weight_kg"].tolist() == [False, True, True, False, False]
        assert results["weight_kg"].dtype == bool
        assert results["weight_kg"].name == "weight_kg"

    def test_tc008_narrow_band(self, sample_measurements):
        """TC008: A band excluding the median flags median weights."""
        detector = PercentileDetector(low_percentile=60, high_percentile=90)
        flags = detector.detect(sample_measurements, ["weight_kg"])["weight_kg"]
        assert flags.tolist()[0] is True

    def test_tc009_score_matches_scalar_entry_point(self, sample_measurements):
        """TC009: Batch scores agree with calculate_weight_for_age."""
        scores = PercentileDetector().score(sample_measurements)
        assert list(scores.columns) == ["waz", "percentile", "interpretation"]
        for i in range(4):
            row = sample_measurements.iloc[i]
            scalar = calculate_weight_for_age(row["age"], row["weight_kg"], row["sex"])
            assert scores["percentile"].iloc[i] == pytest.approx(scalar.percentile)
            assert scores["interpretation"].iloc[i] == scalar.interpretation.value
        assert np.isnan(scores["waz"].iloc[4])
        assert scores["interpretation"].iloc[4] is None

    def test_tc010_score_preserves_index(self, sample_measurements):
        """TC010: Output is aligned with the input index."""
        df = sample_measurements.set_index(pd.Index(list("abcde")))
        scores = PercentileDetector().score(df)
        assert list(scores.index) == list("abcde")

    def test_tc011_detect_does_not_modify_input_df(self, sample_measurements):
        """TC011: Detect does not modify input df."""
        df_copy = sample_measurements.copy()
        PercentileDetector().detect(sample_measurements, ["weight_kg"])
        pd.testing.assert_frame_equal(sample_measurements, df_copy)

    def test_tc012_missing_columns(self):
        """TC012: Missing age or measurement columns raise ValueError."""
        detector = PercentileDetector()
        with pytest.raises(ValueError, match="Column 'age' does not exist"):
            detector.detect(pd.DataFrame({"sex": ["M"], "weight_kg": [9.0]}), ["weight_kg"])
        with pytest.raises(ValueError, match="Column 'weight_kg' does not exist"):
            detector.detect(pd.DataFrame({"age": [12.0], "sex": ["M"]}), ["weight_kg"])

    def test_tc013_unsupported_column(self):
        """TC013: Only weight can be screened."""
        df = pd.DataFrame({"age": [12.0], "sex": ["M"], "height_cm": [75.0]})
        with pytest.raises(ValueError, match="Unsupported column 'height_cm'"):
            PercentileDetector().detect(df, ["height_cm"])

    def test_tc014_invalid_sex_raises(self):
        """TC014: Invalid sex handling raises."""
        df = pd.DataFrame({"age": [12.0], "sex": ["UNKNOWN"], "weight_kg": [9.0]})
        with pytest.raises(ValueError):
            PercentileDetector().detect(df, ["weight_kg"])

    def test_tc015_out_of_range_ages(self, caplog):
        """TC015: Ages past the reference warn in clamp mode and raise in error mode."""
        df = pd.DataFrame({"age": [72.0], "sex": ["F"], "weight_kg": [19.0]})
        caplog.set_level(logging.WARNING)
        PercentileDetector().detect(df, ["weight_kg"])
        assert any("exceed" in str(r.message) for r in caplog.records)

        with pytest.raises(ValueError):
            PercentileDetector(on_out_of_range="error").detect(df, ["weight_kg"])

    def test_tc016_custom_reference_table(self, log_table):
        """TC016: A custom table replaces the bundled reference."""
        df = pd.DataFrame({"age": [0.0], "sex": ["M"], "weight_kg": [10.0]})
        scores = PercentileDetector(table=log_table).score(df)
        assert scores["waz"].iloc[0] == pytest.approx(0.0)
        assert scores["interpretation"].iloc[0] == "normal"

    def test_tc017_unscored_interpretation_is_none(self):
        """TC017: Unscored rows keep None, not a string-dtype missing value."""
        df = pd.DataFrame(
            {"age": [24.0, 24.0], "sex": ["M", "M"], "weight_kg": [12.0, np.nan]}
        )
        interpretation = PercentileDetector().score(df)["interpretation"]
        assert interpretation.dtype == object
        assert interpretation.tolist() == ["normal", None]
