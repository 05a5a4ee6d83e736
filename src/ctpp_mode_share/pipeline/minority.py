from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.features.comparison import DIFFERENCE_COLUMN, build_comparison_table
from ctpp_mode_share.features.shares import (
    collapse_estimates,
    compute_shares,
    groups_off_unit_sum,
    share_sums,
    summarize_shares,
)
from ctpp_mode_share.io.schema import normalize_columns
from ctpp_mode_share.io.write import table_path, write_summary, write_table
from ctpp_mode_share.paths import build_output_paths
from ctpp_mode_share.pipeline.base import AnalysisResult
from ctpp_mode_share.preprocess.labels import (
    drop_group_totals,
    filter_geography,
    map_minority_status,
)
from ctpp_mode_share.preprocess.modes import apply_mode_buckets, resolve_mode_buckets
from ctpp_mode_share.viz.dots import plot_ranked_dots

LOGGER = logging.getLogger(__name__)

ANALYSIS_NAME = "minority"


def shape_minority_table(raw: pd.DataFrame, config: AppConfig) -> pd.DataFrame:
    df = normalize_columns(raw, columns=config.minority.columns)
    df = filter_geography(df, geography=config.geography)
    df = drop_group_totals(df)
    df = map_minority_status(df)
    df = apply_mode_buckets(df, resolve_mode_buckets(config.modes))
    return collapse_estimates(df)


def run_minority_analysis(raw: pd.DataFrame, out_dir: Path, config: AppConfig) -> AnalysisResult:
    paths = build_output_paths(out_dir)
    reference = config.minority.reference_group
    comparison = config.minority.comparison_group

    shaped = shape_minority_table(raw, config)
    shares = compute_shares(shaped)
    summary = summarize_shares(shares)
    off_unit = groups_off_unit_sum(summary)
    if off_unit:
        LOGGER.warning("Mode shares do not sum to 1 for groups: %s", ", ".join(off_unit))
    comparison_table = build_comparison_table(summary, reference, comparison)

    tables = {
        "minority_shares": summary,
        "minority_comparison": comparison_table,
    }
    fmt = config.outputs.tables_format
    for name, table in tables.items():
        write_table(table, table_path(paths.tables, name, fmt), fmt=fmt)

    figures = {
        "minority_ranked_dots": plot_ranked_dots(
            summary,
            paths.figures / f"minority_ranked_dots.{config.outputs.figures_format}",
            reference_group=reference,
            title=f"How {config.report.city_label} commutes, by minority status",
        )
    }

    top = comparison_table.iloc[0] if not comparison_table.empty else None
    result_summary = {
        "geography": config.geography,
        "table_id": config.minority.table_id,
        "reference_group": reference,
        "comparison_group": comparison,
        "share_sums": {str(group): float(value) for group, value in share_sums(summary).items()},
        "largest_gap_mode": None if top is None else str(top["transpo_mode"]),
        "largest_gap": None if top is None else float(top[DIFFERENCE_COLUMN]),
        "commuters": {
            str(row["group_category"]): float(row["total"])
            for _, row in shares.drop_duplicates("group_category").iterrows()
        },
    }
    write_summary(result_summary, paths.summary / f"{ANALYSIS_NAME}.json")
    LOGGER.info("Minority-status analysis complete: %d mode rows", len(comparison_table))
    return AnalysisResult(
        analysis=ANALYSIS_NAME,
        summary=result_summary,
        tables=tables,
        figures=figures,
    )
