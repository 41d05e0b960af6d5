"""
LMS reference tables for growth assessment.

Reference data are sex-partitioned sequences of age-anchored LMS triples
(Lambda: Box-Cox power, Mu: median, Sigma: coefficient of variation). The
bundled table is the WHO weight-for-age standard for ages 0-60 months, shipped
as package data and loaded once per process.
"""

from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union
import functools
import logging
import math

import numpy as np
import pandas as pd

from .config import DEFAULT_MAX_AGE_MONTHS, REFERENCE_FILES, REFERENCE_PACKAGE
from .errors import InvalidArgumentError, ReferenceDataError

REQUIRED_COLUMNS = ("sex", "age", "L", "M", "S")


class Sex(str, Enum):
    """Closed set of modeled sexes."""

    MALE = "male"
    FEMALE = "female"

    @classmethod
    def parse(cls, value: Union["Sex", str]) -> "Sex":
        """
        Normalize a sex label.

        Accepts 'male'/'female' and the 'M'/'F' codes, case-insensitive.

        Raises:
            InvalidArgumentError: If the value is not one of the modeled sexes.
        """
        if isinstance(value, Sex):
            return value
        if isinstance(value, str):
            code = value.strip().lower()
            if code in ("male", "m"):
                return cls.MALE
            if code in ("female", "f"):
                return cls.FEMALE
        raise InvalidArgumentError(
            f"Sex must be 'male' or 'female' (or 'M'/'F'), got {value!r}"
        )


@dataclass(frozen=True)
class LMSPoint:
    age_months: float
    L: float
    M: float
    S: float

    def __post_init__(self) -> None:
        values = (self.age_months, self.L, self.M, self.S)
        if not all(math.isfinite(v) for v in values):
            raise ReferenceDataError(f"LMS values must be finite, got {values}")
        if self.age_months < 0:
            raise ReferenceDataError(f"Anchor age must be non-negative, got {self.age_months}")
        if self.M <= 0 or self.S <= 0:
            raise ReferenceDataError(
                f"M and S must be positive, got M={self.M}, S={self.S}"
            )


@dataclass(frozen=True)
class ReferenceTable:
    """
    Immutable LMS reference for one metric.

    Attributes:
        metric: Name of the indexed measurement (e.g. 'weight_for_age').
        points: Anchors per sex, strictly ascending by age.
    """

    metric: str
    points: Mapping[Sex, Tuple[LMSPoint, ...]]

    def __post_init__(self) -> None:
        points = {Sex.parse(sex): tuple(anchors) for sex, anchors in self.points.items()}
        for sex in Sex:
            ages = [p.age_months for p in points.get(sex, ())]
            if not ages:
                raise ReferenceDataError(f"No {self.metric} anchors for sex={sex.value}")
            if any(b <= a for a, b in zip(ages, ages[1:])):
                raise ReferenceDataError(
                    f"{self.metric} anchors for sex={sex.value} must be strictly ascending by age"
                )
        object.__setattr__(self, "points", MappingProxyType(points))

    def for_sex(self, sex: Union[Sex, str]) -> Tuple[LMSPoint, ...]:
        return self.points[Sex.parse(sex)]

    def arrays(
        self, sex: Union[Sex, str]
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return (age, L, M, S) as float64 arrays for vectorized lookups."""
        anchors = self.for_sex(sex)
        return (
            np.array([p.age_months for p in anchors], dtype=np.float64),
            np.array([p.L for p in anchors], dtype=np.float64),
            np.array([p.M for p in anchors], dtype=np.float64),
            np.array([p.S for p in anchors], dtype=np.float64),
        )

    @property
    def max_age_months(self) -> float:
        """Smallest last-anchor age across sexes; ages above it are clamped."""
        return min(anchors[-1].age_months for anchors in self.points.values())


def validate_reference_integrity(data: pd.DataFrame) -> bool:
    """
    Validate integrity of a raw LMS reference frame.

    Checks required columns, both sexes, strictly ascending non-negative ages,
    positive M and S, and coverage of the 0 and 60 month clamp bounds.
    Logs a warning for the first issue found but doesn't raise.

    Args:
        data: Frame with columns sex, age, L, M, S

    Returns:
        True if data passes all validation checks, False otherwise
    """
    if data is None or data.empty:
        logging.warning("Reference data is empty")
        return False

    missing = [col for col in REQUIRED_COLUMNS if col not in data.columns]
    if missing:
        logging.warning(f"Reference data missing columns: {missing}")
        return False

    sexes = set(data["sex"].astype(str).str.lower())
    expected = {s.value for s in Sex}
    if sexes != expected:
        logging.warning(
            f"Reference data sexes {sorted(sexes)} do not match {sorted(expected)}"
        )
        return False

    numeric = data[["age", "L", "M", "S"]].apply(pd.to_numeric, errors="coerce")
    if numeric.isna().any().any():
        logging.warning("Non-numeric or missing LMS values in reference data")
        return False
    if (numeric["age"] < 0).any():
        logging.warning("Negative ages found in reference data")
        return False
    if (numeric["M"] <= 0).any():
        logging.warning("Non-positive M values in reference data")
        return False
    if (numeric["S"] <= 0).any():
        logging.warning("Non-positive S values in reference data")
        return False

    for sex, ages in numeric["age"].groupby(data["sex"].astype(str).str.lower()):
        ordered = ages.sort_values().to_numpy()
        if np.any(np.diff(ordered) <= 0):
            logging.warning(f"Duplicate ages in reference data for sex={sex}")
            return False
        if ordered[0] != 0 or ordered[-1] < DEFAULT_MAX_AGE_MONTHS:
            logging.warning(
                f"Reference data for sex={sex} must cover ages 0 and "
                f"{DEFAULT_MAX_AGE_MONTHS} months, got {ordered[0]}-{ordered[-1]}"
            )
            return False

    return True


def table_from_frame(data: pd.DataFrame, metric: str) -> ReferenceTable:
    """
    Build a ReferenceTable from a validated frame.

    Raises:
        ReferenceDataError: If the frame fails integrity validation.
    """
    if not validate_reference_integrity(data):
        raise ReferenceDataError(f"Invalid LMS reference data for {metric}")

    df = data.copy()
    df["sex"] = df["sex"].astype(str).str.lower()
    df = df.sort_values(["sex", "age"]).reset_index(drop=True)

    points: Dict[Sex, Tuple[LMSPoint, ...]] = {}
    for sex in Sex:
        rows = df[df["sex"] == sex.value]
        points[sex] = tuple(
            LMSPoint(
                age_months=float(row.age),
                L=float(row.L),
                M=float(row.M),
                S=float(row.S),
            )
            for row in rows.itertuples(index=False)
        )
    return ReferenceTable(metric=metric, points=points)


@functools.lru_cache(maxsize=None)
def _load_bundled_table(metric: str) -> ReferenceTable:
    try:
        relative = REFERENCE_FILES[metric]
    except KeyError:
        raise ReferenceDataError(
            f"No bundled reference for metric '{metric}'. "
            f"Available: {sorted(REFERENCE_FILES)}"
        ) from None

    with resources.files(REFERENCE_PACKAGE).joinpath(relative).open("rb") as f:
        data = pd.read_csv(f)
    return table_from_frame(data, metric)


def load_reference_table(
    path: Optional[Union[str, Path]] = None, metric: str = "weight_for_age"
) -> ReferenceTable:
    """
    Load an LMS reference table.

    Without a path the bundled WHO table is returned, cached for the process.
    A custom CSV must carry the columns sex, age, L, M, S.

    Args:
        path: Optional CSV file with replacement reference data
        metric: Name of the indexed measurement

    Returns:
        Immutable ReferenceTable

    Raises:
        FileNotFoundError: If a custom path does not exist.
        ReferenceDataError: If the data fails integrity validation.
    """
    if path is None:
        return _load_bundled_table(metric)

    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Reference data file not found: {csv_path}")
    return table_from_frame(pd.read_csv(csv_path), metric)
