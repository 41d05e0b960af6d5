#!/usr/bin/env python3
"""
Convert WHO weight-for-age LMS exports into a growthwatch reference CSV.

Takes the boys and girls files in the WHO percentile layout
(Month,L,M,S,P01,...) and writes a single CSV with the columns
sex,age,L,M,S that `growthwatch.reference.load_reference_table` accepts.
Ages above --max-age are dropped; --anchors keeps only the listed months.
"""

import argparse
import io
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from growthwatch.reference import validate_reference_integrity

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

ESSENTIAL_COLS = ["Month", "L", "M", "S"]


def parse_who_csv(content: str, sex: str) -> pd.DataFrame:
    """Parse WHO CSV content into a sex,age,L,M,S frame."""
    df = pd.read_csv(io.StringIO(content))
    # Clean header names (remove BOM, whitespace)
    df.columns = [str(col).replace("\ufeff", "").strip() for col in df.columns]

    missing = [col for col in ESSENTIAL_COLS if col not in df.columns]
    if missing:
        raise ValueError(f"Essential columns {missing} not found in {sex} header")

    out = df[ESSENTIAL_COLS].apply(pd.to_numeric, errors="coerce").dropna()
    out = out.rename(columns={"Month": "age"})
    out.insert(0, "sex", sex)
    return out.reset_index(drop=True)


def build_reference(
    boys_content: str,
    girls_content: str,
    max_age: float = 60.0,
    anchors: Optional[List[float]] = None,
) -> pd.DataFrame:
    """
    Combine boys and girls tables into one reference frame.

    Raises:
        ValueError: If the combined frame fails integrity validation.
    """
    combined = pd.concat(
        [parse_who_csv(boys_content, "male"), parse_who_csv(girls_content, "female")],
        ignore_index=True,
    )
    combined = combined[combined["age"] <= max_age]
    if anchors:
        combined = combined[combined["age"].isin(anchors)]

    if not validate_reference_integrity(combined):
        raise ValueError("Converted reference data failed integrity validation")
    return combined.sort_values(["sex", "age"], ascending=[False, True]).reset_index(
        drop=True
    )


def main(
    boys: Path,
    girls: Path,
    output: Path,
    max_age: float = 60.0,
    anchors: Optional[List[float]] = None,
) -> Path:
    """Read the WHO exports, convert, and write the reference CSV."""
    reference = build_reference(
        boys.read_text(encoding="utf-8-sig"),
        girls.read_text(encoding="utf-8-sig"),
        max_age=max_age,
        anchors=anchors,
    )
    output.parent.mkdir(parents=True, exist_ok=True)
    reference.to_csv(output, index=False)
    logger.info(f"Saved {len(reference)} LMS anchors to {output}")
    return output


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Convert WHO weight-for-age LMS exports into a reference CSV."
    )
    parser.add_argument("boys", type=Path, help="WHO boys weight-for-age CSV")
    parser.add_argument("girls", type=Path, help="WHO girls weight-for-age CSV")
    parser.add_argument("output", type=Path, help="Destination CSV")
    parser.add_argument(
        "--max-age", type=float, default=60.0, help="Last month to keep (default 60)"
    )
    parser.add_argument(
        "--anchors",
        type=float,
        nargs="+",
        help="Keep only these months (must include 0 and the last month)",
    )
    args = parser.parse_args()

    main(args.boys, args.girls, args.output, max_age=args.max_age, anchors=args.anchors)
