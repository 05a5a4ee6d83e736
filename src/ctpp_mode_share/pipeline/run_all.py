from __future__ import annotations

from pathlib import Path

import pandas as pd
import requests

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.pipeline.base import AnalysisResult
from ctpp_mode_share.pipeline.fetch import fetch_raw_tables, load_raw_tables
from ctpp_mode_share.pipeline.income import run_income_analysis
from ctpp_mode_share.pipeline.minority import run_minority_analysis
from ctpp_mode_share.report.render import render_report


def run_analyses(
    raw_tables: dict[str, pd.DataFrame],
    out_dir: Path,
    config: AppConfig,
) -> dict[str, AnalysisResult]:
    return {
        "minority": run_minority_analysis(raw_tables["minority"], out_dir=out_dir, config=config),
        "income": run_income_analysis(raw_tables["income"], out_dir=out_dir, config=config),
    }


def build_report(out_dir: Path, config: AppConfig) -> Path:
    """Render the report from raw tables already saved under ``out_dir``."""
    results = run_analyses(load_raw_tables(out_dir), out_dir=out_dir, config=config)
    return render_report(results=results, out_dir=out_dir, config=config)


def run_all(
    out_dir: Path,
    config: AppConfig,
    *,
    session: requests.Session | None = None,
) -> Path:
    raw_tables = fetch_raw_tables(out_dir=out_dir, config=config, session=session)
    results = run_analyses(raw_tables, out_dir=out_dir, config=config)
    return render_report(results=results, out_dir=out_dir, config=config)
