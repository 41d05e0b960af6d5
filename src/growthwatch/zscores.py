"""
Z-Score and Percentile Calculation for Weight-for-Age

This module provides scalar and vectorized functions for age- and sex-specific
z-scores and percentiles against LMS growth references, the conversions between
z-scores and percentiles used for scoring and for drawing reference curves,
and the clinical interpretation of a percentile.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Union
import logging
import math

import numpy as np
from numba import jit

from .config import AssessmentConfig, L_ZERO_THRESHOLD
from .errors import InvalidArgumentError
from .reference import LMSPoint, ReferenceTable, Sex, load_reference_table

# Inverse normal rational approximation coefficients
_C0, _C1, _C2 = 2.515517, 0.802853, 0.010328
_D1, _D2, _D3 = 1.432788, 0.189269, 0.001308


class Interpretation(str, Enum):
    SEVERE_LOW = "severe low"
    LOW = "low"
    LOW_NORMAL = "low-normal"
    NORMAL = "normal"
    HIGH_NORMAL = "high-normal"
    HIGH = "high"
    SEVERE_HIGH = "severe high"


@dataclass(frozen=True)
class ScoreResult:
    """Result of scoring one measurement. Derived, never persisted."""

    z_score: float
    percentile: float
    interpretation: Interpretation


def interpolate_lms(age_months: float, points: Sequence[LMSPoint]) -> LMSPoint:
    """
    Interpolate an LMS triple at an arbitrary age.

    Ages at or below the first anchor return the first anchor unchanged, ages
    at or above the last anchor return the last anchor unchanged. Between
    anchors L, M and S are interpolated linearly and independently.

    Args:
        age_months: Age in months
        points: Anchors sorted strictly ascending by age

    Returns:
        LMSPoint at the requested age
    """
    if not points:
        raise ValueError("Reference table must not be empty")

    first, last = points[0], points[-1]
    if age_months <= first.age_months:
        return first
    if age_months >= last.age_months:
        return last

    for lo, hi in zip(points, points[1:]):
        if lo.age_months <= age_months <= hi.age_months:
            t = (age_months - lo.age_months) / (hi.age_months - lo.age_months)
            return LMSPoint(
                age_months=age_months,
                L=lo.L + t * (hi.L - lo.L),
                M=lo.M + t * (hi.M - lo.M),
                S=lo.S + t * (hi.S - lo.S),
            )

    # Unreachable for a strictly ascending table
    return first


def interpolate_lms_arrays(
    agemos: np.ndarray, table: ReferenceTable, sex: Union[Sex, str]
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized LMS interpolation for one sex.

    numpy.interp clamps to the end anchors, matching interpolate_lms.

    Returns:
        Tuple of (L, M, S) arrays matching the input shape
    """
    ref_age, ref_L, ref_M, ref_S = table.arrays(sex)
    return (
        np.interp(agemos, ref_age, ref_L),
        np.interp(agemos, ref_age, ref_M),
        np.interp(agemos, ref_age, ref_S),
    )


@jit(nopython=True, cache=True)
def _lms_z(X: float, L: float, M: float, S: float) -> float:
    if abs(L) < L_ZERO_THRESHOLD:
        return math.log(X / M) / S
    return ((X / M) ** L - 1.0) / (L * S)


@jit(nopython=True, cache=True)
def _normal_cdf(x: float) -> float:
    # Zelen & Severo (Abramowitz & Stegun 26.2.17)
    t = 1.0 / (1.0 + 0.2316419 * abs(x))
    d = 0.3989423 * math.exp(-x * x / 2.0)
    p = (
        d
        * t
        * (
            0.3193815
            + t * (-0.3565638 + t * (1.781478 + t * (-1.821256 + t * 1.330274)))
        )
    )
    if x > 0:
        return 1.0 - p
    return p


@jit(nopython=True, cache=True)
def lms_zscore_array(
    X: np.ndarray, L: np.ndarray, M: np.ndarray, S: np.ndarray
) -> np.ndarray:
    """
    Calculate LMS z-scores for 1D float64 arrays.

    For L ≠ 0: z = ((X/M)^L - 1) / (L * S)
    For L ≈ 0: z = ln(X/M) / S

    Rows with a non-positive or non-finite measurement, or non-positive M/S,
    are NaN.

    Args:
        X: Observed values (kg)
        L: Lambda (Box-Cox power)
        M: Mu (median)
        S: Sigma (coefficient of variation)

    Returns:
        Z-scores (0 at median)
    """
    n = X.shape[0]
    z = np.empty(n, dtype=np.float64)
    for i in range(n):
        if (
            np.isfinite(X[i])
            and X[i] > 0.0
            and np.isfinite(M[i])
            and M[i] > 0.0
            and S[i] > 0.0
        ):
            z[i] = _lms_z(X[i], L[i], M[i], S[i])
        else:
            z[i] = np.nan
    return z


@jit(nopython=True, cache=True)
def zscore_to_percentile_array(z: np.ndarray) -> np.ndarray:
    """Convert a 1D float64 array of z-scores to percentiles (0-100)."""
    n = z.shape[0]
    out = np.empty(n, dtype=np.float64)
    for i in range(n):
        if np.isfinite(z[i]):
            out[i] = _normal_cdf(z[i]) * 100.0
        else:
            out[i] = np.nan
    return out


def lms_zscore(value: float, lms: LMSPoint) -> float:
    """
    Calculate the LMS z-score of a single measurement.

    Implements the LMS method from Cole (1990):
    For L ≠ 0: z = ((value/M)^L - 1) / (L * S)
    For L ≈ 0: z = ln(value/M) / S

    Args:
        value: Observed value, must be positive
        lms: LMS triple at the measurement age

    Returns:
        Z-score

    Raises:
        InvalidArgumentError: If value is not a finite positive number.
    """
    value = _as_positive_measurement(value)
    return float(_lms_z(value, lms.L, lms.M, lms.S))


def lms_value(z_score: float, lms: LMSPoint) -> float:
    """
    Inverse LMS transform: the measurement lying at a given z-score.

    For L ≠ 0: value = M * (1 + L*S*z)^(1/L)
    For L ≈ 0: value = M * exp(S*z)
    """
    if abs(lms.L) < L_ZERO_THRESHOLD:
        return lms.M * math.exp(lms.S * z_score)
    return lms.M * (1 + lms.L * lms.S * z_score) ** (1 / lms.L)


def zscore_to_percentile(z_score: float) -> float:
    """
    Convert a z-score to a percentile with the Zelen-Severo normal CDF approximation.

    The polynomial coefficients are fixed; previously computed percentiles
    depend on them.

    Returns:
        Percentile in [0, 100]
    """
    return float(_normal_cdf(float(z_score)) * 100.0)


def percentile_to_zscore(percentile: float) -> float:
    """
    Convert a percentile (0-100) to a z-score with a rational approximation.

    Used for drawing reference curves. This is not an exact inverse of
    zscore_to_percentile; round trips differ by well under 0.1 percentile points.
    Percentiles outside the open interval (0, 100) return 0.0 instead of
    raising.

    Args:
        percentile: Percentile on the 0-100 scale

    Returns:
        Z-score
    """
    p = percentile / 100
    if not math.isfinite(p) or p <= 0 or p >= 1:
        return 0.0

    t = math.sqrt(-2 * math.log(min(p, 1 - p)))
    z = t - (_C0 + _C1 * t + _C2 * t * t) / (
        1 + _D1 * t + _D2 * t * t + _D3 * t * t * t
    )
    return -z if p < 0.5 else z


def interpret_percentile(percentile: float) -> Interpretation:
    """
    Map a percentile to its clinical interpretation.

    Low side boundaries are exclusive (<), high side inclusive (<=):
    <3 severe low, <10 low, <25 low-normal, <=75 normal, <=90 high-normal,
    <=97 high, otherwise severe high.
    """
    if math.isnan(percentile):
        raise InvalidArgumentError("Percentile must be a number, got NaN")
    if percentile < 3:
        return Interpretation.SEVERE_LOW
    elif percentile < 10:
        return Interpretation.LOW
    elif percentile < 25:
        return Interpretation.LOW_NORMAL
    elif percentile <= 75:
        return Interpretation.NORMAL
    elif percentile <= 90:
        return Interpretation.HIGH_NORMAL
    elif percentile <= 97:
        return Interpretation.HIGH
    else:
        return Interpretation.SEVERE_HIGH


def _as_positive_measurement(value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Measurement must be a number, got {value!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidArgumentError(f"Measurement must be positive, got {value}")
    return value


def _check_age(age_months: float, table: ReferenceTable, config: AssessmentConfig) -> float:
    """Validate a scoring age; negative ages are rejected, old ones clamped or rejected."""
    try:
        age_months = float(age_months)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"Age must be a number, got {age_months!r}") from None
    if not math.isfinite(age_months) or age_months < 0:
        raise InvalidArgumentError(f"Age must be a non-negative number of months, got {age_months}")

    max_age = table.max_age_months
    if age_months > max_age:
        if config.on_out_of_range == "error":
            raise InvalidArgumentError(
                f"Age {age_months} months is outside the {table.metric} reference "
                f"range (0-{max_age:g} months)"
            )
        logging.warning(
            f"Age {age_months} months exceeds the {table.metric} reference range "
            f"(0-{max_age:g} months) - scoring against the last anchor"
        )
    return age_months


def calculate_weight_for_age(
    age_months: float,
    weight: float,
    sex: Union[Sex, str],
    config: Optional[AssessmentConfig] = None,
    table: Optional[ReferenceTable] = None,
) -> ScoreResult:
    """
    Score a weight measurement against the weight-for-age reference.

    Args:
        age_months: Age in months (non-negative)
        weight: Weight in kg (positive)
        sex: 'male' or 'female'
        config: Assessment settings (default: clamp out-of-range ages)
        table: Reference table (default: bundled WHO weight-for-age)

    Returns:
        ScoreResult with z-score, percentile and interpretation

    Raises:
        InvalidArgumentError: On invalid sex, weight or age.
    """
    config = config or AssessmentConfig()
    table = table or load_reference_table()

    sex = Sex.parse(sex)
    weight = _as_positive_measurement(weight)
    age_months = _check_age(age_months, table, config)

    lms = interpolate_lms(age_months, table.for_sex(sex))
    z = lms_zscore(weight, lms)
    percentile = zscore_to_percentile(z)
    return ScoreResult(
        z_score=z,
        percentile=percentile,
        interpretation=interpret_percentile(percentile),
    )


def _validate_batch_inputs(
    agemos: np.ndarray, weight: np.ndarray, sex: np.ndarray
) -> np.ndarray:
    """Validate batch shapes and sexes; return the parsed sex labels."""
    if not (len(agemos) == len(weight) == len(sex)):
        raise InvalidArgumentError("Age, weight and sex arrays must have equal length")
    if np.any(agemos < 0):
        raise InvalidArgumentError("Ages must be non-negative")
    return np.array([Sex.parse(s).value for s in sex], dtype=object)


def calculate_weight_for_age_batch(
    agemos: np.ndarray,
    weight: np.ndarray,
    sex: np.ndarray,
    config: Optional[AssessmentConfig] = None,
    table: Optional[ReferenceTable] = None,
) -> Dict[str, np.ndarray]:
    """
    Vectorized weight-for-age scoring.

    Rows with a missing or non-positive weight, or a missing age, get NaN
    instead of raising; invalid sexes and negative ages raise.

    Args:
        agemos: Ages in months
        weight: Weights in kg
        sex: Sex labels ('male'/'female' or 'M'/'F')
        config: Assessment settings
        table: Reference table (default: bundled WHO weight-for-age)

    Returns:
        Dict with 'waz' (z-scores) and 'percentile' arrays
    """
    config = config or AssessmentConfig()
    table = table or load_reference_table()

    agemos = np.asarray(agemos, dtype=np.float64).ravel()
    weight = np.asarray(weight, dtype=np.float64).ravel()
    sex = np.asarray(sex).ravel()
    n = len(agemos)
    if n == 0:
        return {"waz": np.empty(0), "percentile": np.empty(0)}

    sex_codes = _validate_batch_inputs(agemos, weight, sex)

    above = agemos > table.max_age_months
    if np.any(above):
        if config.on_out_of_range == "error":
            raise InvalidArgumentError(
                f"{int(above.sum())} ages exceed the {table.metric} reference range "
                f"(0-{table.max_age_months:g} months)"
            )
        logging.warning(
            f"{int(above.sum())} ages exceed the {table.metric} reference range "
            f"(0-{table.max_age_months:g} months) - scoring against the last anchor"
        )

    L_out = np.full(n, np.nan, dtype=np.float64)
    M_out = np.full(n, np.nan, dtype=np.float64)
    S_out = np.full(n, np.nan, dtype=np.float64)
    for s in Sex:
        sex_mask = sex_codes == s.value
        if not np.any(sex_mask):
            continue
        L_out[sex_mask], M_out[sex_mask], S_out[sex_mask] = interpolate_lms_arrays(
            agemos[sex_mask], table, s
        )

    waz = lms_zscore_array(weight, L_out, M_out, S_out)
    return {"waz": waz, "percentile": zscore_to_percentile_array(waz)}
