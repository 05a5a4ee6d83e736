from __future__ import annotations

from dataclasses import dataclass

import pandas as pd

from ctpp_mode_share.config import ColumnsConfig


@dataclass(frozen=True)
class CanonicalColumns:
    residence: str = "residence"
    group_category: str = "group_category"
    transpo_mode: str = "transpo_mode"
    estimate: str = "estimate"


REQUIRED_COLUMNS = [
    CanonicalColumns.residence,
    CanonicalColumns.group_category,
    CanonicalColumns.transpo_mode,
    CanonicalColumns.estimate,
]


def normalize_columns(df: pd.DataFrame, columns: ColumnsConfig) -> pd.DataFrame:
    """Rename CTPP source columns to the canonical names used by the pipeline.

    Canonical columns lead the result; any other source columns (MOE, GEOID)
    follow in their original order.
    """
    rename_map = {
        columns.residence: CanonicalColumns.residence,
        columns.group_category: CanonicalColumns.group_category,
        columns.transpo_mode: CanonicalColumns.transpo_mode,
        columns.estimate: CanonicalColumns.estimate,
    }
    missing = [source for source in rename_map if source not in df.columns]
    if missing:
        missing_str = ", ".join(missing)
        raise ValueError(f"Missing required columns in CTPP table: {missing_str}")
    working = df.rename(columns=rename_map)
    extras = [column for column in working.columns if column not in REQUIRED_COLUMNS]
    working = working[[*REQUIRED_COLUMNS, *extras]].copy()

    estimate = working[CanonicalColumns.estimate]
    if not pd.api.types.is_numeric_dtype(estimate):
        # CTPP label output formats counts with thousands separators.
        estimate = estimate.astype(str).str.replace(",", "", regex=False)
    working[CanonicalColumns.estimate] = pd.to_numeric(estimate, errors="coerce")
    return working
