from __future__ import annotations

import pandas as pd

NON_HISPANIC_WHITE = "non-Hispanic White"
RACIAL_ETHNIC_MINORITY = "Racial/ethnic minority"

WHITE_NON_HISPANIC_LABELS = frozenset(
    {
        "White alone, not Hispanic/Latino",
        "White alone, not Hispanic or Latino",
    }
)


def filter_geography(df: pd.DataFrame, geography: str) -> pd.DataFrame:
    """Keep rows whose residence equals ``geography`` exactly."""
    filtered = df[df["residence"] == geography].reset_index(drop=True)
    if filtered.empty:
        raise ValueError(f"Geography not found in CTPP table: {geography!r}")
    return filtered


def drop_group_totals(df: pd.DataFrame) -> pd.DataFrame:
    """Remove the axis' own total rows (``Total, minority status`` and the like)."""
    labels = df["group_category"].fillna("").astype(str).str.strip()
    is_total = labels.str.fullmatch(r"Total(,.*)?", case=False)
    return df[~is_total].reset_index(drop=True)


def minority_status_label(raw_label: str) -> str:
    if str(raw_label).strip() in WHITE_NON_HISPANIC_LABELS:
        return NON_HISPANIC_WHITE
    return RACIAL_ETHNIC_MINORITY


def map_minority_status(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    working["group_category"] = working["group_category"].map(minority_status_label)
    return working
