from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import requests

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.io.ctpp_api import CtppRequest, fetch_ctpp_table
from ctpp_mode_share.io.read import find_table, load_table
from ctpp_mode_share.io.write import table_path, write_table
from ctpp_mode_share.paths import build_output_paths

LOGGER = logging.getLogger(__name__)

ANALYSES = ("minority", "income")


def _table_id(config: AppConfig, analysis: str) -> str:
    if analysis == "minority":
        return config.minority.table_id
    if analysis == "income":
        return config.income.table_id
    raise ValueError(f"Unknown analysis: {analysis}")


def build_request(config: AppConfig, analysis: str) -> CtppRequest:
    return CtppRequest(
        table_id=_table_id(config, analysis),
        dataset=config.source.dataset,
        geography=config.source.geography,
        state=config.source.state,
        label_mode=config.source.label_mode,
    )


def fetch_raw_tables(
    out_dir: Path,
    config: AppConfig,
    *,
    session: requests.Session | None = None,
) -> dict[str, pd.DataFrame]:
    """Download every configured CTPP table and keep a copy under ``raw/``."""
    paths = build_output_paths(out_dir)

    raw_tables: dict[str, pd.DataFrame] = {}
    for analysis in ANALYSES:
        table = fetch_ctpp_table(
            build_request(config, analysis),
            source=config.source,
            session=session,
        )
        fmt = config.outputs.tables_format
        write_table(table, table_path(paths.raw, analysis, fmt), fmt=fmt)
        raw_tables[analysis] = table
    return raw_tables


def load_raw_tables(out_dir: Path) -> dict[str, pd.DataFrame]:
    paths = build_output_paths(out_dir)
    raw_tables: dict[str, pd.DataFrame] = {}
    for analysis in ANALYSES:
        path = find_table(paths.raw, analysis)
        LOGGER.info("Loading raw %s table from %s", analysis, path)
        raw_tables[analysis] = load_table(path)
    return raw_tables
