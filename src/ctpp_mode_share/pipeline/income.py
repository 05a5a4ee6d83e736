from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.features.shares import (
    collapse_estimates,
    compute_shares,
    groups_off_unit_sum,
    summarize_shares,
)
from ctpp_mode_share.io.schema import normalize_columns
from ctpp_mode_share.io.write import table_path, write_summary, write_table
from ctpp_mode_share.paths import build_output_paths
from ctpp_mode_share.pipeline.base import AnalysisResult
from ctpp_mode_share.preprocess.income import assign_income_brackets
from ctpp_mode_share.preprocess.labels import drop_group_totals, filter_geography
from ctpp_mode_share.preprocess.modes import (
    CARPOOLED,
    DROVE_ALONE,
    apply_mode_buckets,
    resolve_mode_buckets,
)
from ctpp_mode_share.viz.stacked import bracket_order, plot_income_stacked_bars

LOGGER = logging.getLogger(__name__)

ANALYSIS_NAME = "income"


def shape_income_table(raw: pd.DataFrame, config: AppConfig) -> pd.DataFrame:
    df = normalize_columns(raw, columns=config.income.columns)
    df = filter_geography(df, geography=config.geography)
    df = drop_group_totals(df)
    df = assign_income_brackets(df)
    df = apply_mode_buckets(df, resolve_mode_buckets(config.modes))
    return collapse_estimates(df)


def _mode_share_by_bracket(summary: pd.DataFrame, modes: tuple[str, ...]) -> dict[str, float]:
    selected = summary[summary["transpo_mode"].isin(modes)]
    by_bracket = selected.groupby("group_category", observed=True)["share"].sum()
    return {str(bracket): float(by_bracket.get(bracket, 0.0)) for bracket in bracket_order(summary)}


def run_income_analysis(raw: pd.DataFrame, out_dir: Path, config: AppConfig) -> AnalysisResult:
    paths = build_output_paths(out_dir)

    shaped = shape_income_table(raw, config)
    shares = compute_shares(shaped)
    summary = summarize_shares(shares).sort_values(
        ["group_category", "transpo_mode"], kind="stable"
    ).reset_index(drop=True)
    off_unit = groups_off_unit_sum(summary)
    if off_unit:
        LOGGER.warning("Mode shares do not sum to 1 for brackets: %s", ", ".join(off_unit))

    tables = {"income_shares": summary}
    fmt = config.outputs.tables_format
    for name, table in tables.items():
        write_table(table, table_path(paths.tables, name, fmt), fmt=fmt)

    figures = {
        "income_stacked_bars": plot_income_stacked_bars(
            summary,
            paths.figures / f"income_stacked_bars.{config.outputs.figures_format}",
            title=f"How {config.report.city_label} commutes, by household income",
        )
    }

    result_summary = {
        "geography": config.geography,
        "table_id": config.income.table_id,
        "brackets": bracket_order(summary),
        "drove_alone_by_bracket": _mode_share_by_bracket(summary, (DROVE_ALONE,)),
        "car_by_bracket": _mode_share_by_bracket(summary, (DROVE_ALONE, CARPOOLED)),
    }
    write_summary(result_summary, paths.summary / f"{ANALYSIS_NAME}.json")
    LOGGER.info("Income analysis complete: %d brackets", len(result_summary["brackets"]))
    return AnalysisResult(
        analysis=ANALYSIS_NAME,
        summary=result_summary,
        tables=tables,
        figures=figures,
    )
