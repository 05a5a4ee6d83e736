from __future__ import annotations

import pandas as pd

from ctpp_mode_share.preprocess.modes import TOTAL_MODE

GROUP_KEYS = ["residence", "group_category"]
CELL_KEYS = [*GROUP_KEYS, "transpo_mode"]
SHARE_SUM_TOLERANCE = 1e-3


def collapse_estimates(df: pd.DataFrame) -> pd.DataFrame:
    """Sum estimates of rows that landed in the same (group, mode) bucket."""
    return df.groupby(CELL_KEYS, observed=True, sort=False, as_index=False)["estimate"].sum()


def compute_group_totals(df: pd.DataFrame) -> pd.DataFrame:
    totals = df[df["transpo_mode"] == TOTAL_MODE]
    return (
        totals.groupby(GROUP_KEYS, observed=True, sort=False, as_index=False)["estimate"]
        .sum()
        .rename(columns={"estimate": "total"})
    )


def compute_shares(df: pd.DataFrame) -> pd.DataFrame:
    """Attach each group's total and the row's share of it.

    A zero or missing total yields NaN/inf shares; CTPP totals are positive in
    practice so no special case is made.
    """
    totals = compute_group_totals(df)
    merged = df.merge(totals, on=GROUP_KEYS, how="left")
    merged["share"] = merged["estimate"] / merged["total"]
    return merged


def summarize_shares(df: pd.DataFrame) -> pd.DataFrame:
    """Sum shares by (group, mode bucket), excluding the synthetic Total row.

    A bucket whose shares are all undefined stays NaN instead of summing to 0.
    """
    non_total = df[df["transpo_mode"] != TOTAL_MODE]
    summary = non_total.groupby(
        ["group_category", "transpo_mode"], observed=True, sort=False, as_index=False
    ).agg(estimate=("estimate", "sum"), share=("share", lambda s: s.sum(min_count=1)))
    summary["share_pct"] = summary["share"] * 100.0
    return summary


def share_sums(summary: pd.DataFrame) -> pd.Series:
    return summary.groupby("group_category", observed=True)["share"].sum(min_count=1)


def groups_off_unit_sum(
    summary: pd.DataFrame,
    tolerance: float = SHARE_SUM_TOLERANCE,
) -> list[str]:
    sums = share_sums(summary)
    return [
        str(group)
        for group, total in sums.items()
        if pd.isna(total) or abs(float(total) - 1.0) > tolerance
    ]
