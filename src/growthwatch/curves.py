"""Reference percentile curves for growth charts."""

from dataclasses import asdict, dataclass
import math
from typing import List, Optional, Sequence, Union

import pandas as pd

from .config import CANONICAL_PERCENTILES, DEFAULT_MAX_AGE_MONTHS
from .errors import InvalidArgumentError
from .reference import ReferenceTable, Sex, load_reference_table
from .zscores import interpolate_lms, lms_value, percentile_to_zscore


@dataclass(frozen=True)
class CurvePoint:
    age_months: int
    p3: float
    p10: float
    p25: float
    p50: float
    p75: float
    p90: float
    p97: float


def generate_curves(
    sex: Union[Sex, str],
    max_age_months: int = DEFAULT_MAX_AGE_MONTHS,
    table: Optional[ReferenceTable] = None,
) -> List[CurvePoint]:
    """
    Generate canonical percentile curves at monthly resolution.

    For every month 0..max_age_months the LMS triple is interpolated and each
    canonical percentile is mapped to a z-score, then back to a measurement
    with the inverse LMS transform.

    Args:
        sex: 'male' or 'female'
        max_age_months: Last month to sample (inclusive)
        table: Reference table (default: bundled WHO weight-for-age)

    Returns:
        One CurvePoint per month
    """
    sex = Sex.parse(sex)
    if not math.isfinite(max_age_months) or max_age_months < 0:
        raise InvalidArgumentError(
            f"max_age_months must be non-negative, got {max_age_months}"
        )
    table = table or load_reference_table()
    anchors = table.for_sex(sex)

    z_scores = {p: percentile_to_zscore(p) for p in CANONICAL_PERCENTILES}

    curves = []
    for age in range(int(max_age_months) + 1):
        lms = interpolate_lms(age, anchors)
        values = {f"p{p}": lms_value(z, lms) for p, z in z_scores.items()}
        curves.append(CurvePoint(age_months=age, **values))
    return curves


def curves_to_frame(points: Sequence[CurvePoint]) -> pd.DataFrame:
    """Tabulate curve points: one row per month, one column per percentile."""
    columns = [f"p{p}" for p in CANONICAL_PERCENTILES]
    if not points:
        return pd.DataFrame(columns=columns, index=pd.Index([], name="age_months"))
    return pd.DataFrame([asdict(p) for p in points]).set_index("age_months")[columns]
