from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.features.comparison import style_comparison_table
from ctpp_mode_share.pipeline.base import AnalysisResult
from ctpp_mode_share.preprocess.modes import DROVE_ALONE

LOGGER = logging.getLogger(__name__)


def _template_env() -> Environment:
    templates_path = Path(__file__).resolve().parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "xml", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _json_safe(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if hasattr(value, "item"):
        try:
            value = value.item()
        except (TypeError, ValueError):
            pass
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    return value


def format_percent(value: float | None) -> str:
    if value is None or not math.isfinite(float(value)):
        return "n/a"
    return f"{float(value) * 100:.1f}%"


def _mode_share(summary: pd.DataFrame, group: str, mode: str) -> float | None:
    rows = summary[
        (summary["group_category"].astype(str) == group) & (summary["transpo_mode"] == mode)
    ]
    if rows.empty:
        return None
    return float(rows["share"].sum())


def _minority_context(result: AnalysisResult) -> dict[str, Any]:
    summary = result.tables["minority_shares"]
    reference = str(result.summary["reference_group"])
    comparison = str(result.summary["comparison_group"])
    largest_gap = result.summary.get("largest_gap")
    return {
        "reference_group": reference,
        "comparison_group": comparison,
        "reference_drove_alone": format_percent(_mode_share(summary, reference, DROVE_ALONE)),
        "comparison_drove_alone": format_percent(_mode_share(summary, comparison, DROVE_ALONE)),
        "largest_gap_mode": result.summary.get("largest_gap_mode"),
        "largest_gap": format_percent(None if largest_gap is None else abs(largest_gap)),
        "largest_gap_favors": reference if (largest_gap or 0.0) >= 0 else comparison,
        "table_html": style_comparison_table(
            result.tables["minority_comparison"],
            caption=f"Mode share, {reference} vs. {comparison}",
        ),
    }


def _income_context(result: AnalysisResult) -> dict[str, Any]:
    drove_alone = result.summary.get("drove_alone_by_bracket", {})
    brackets = list(drove_alone)
    context: dict[str, Any] = {"brackets": brackets}
    if brackets:
        context.update(
            lowest_bracket=brackets[0],
            highest_bracket=brackets[-1],
            lowest_drove_alone=format_percent(drove_alone[brackets[0]]),
            highest_drove_alone=format_percent(drove_alone[brackets[-1]]),
        )
    return context


def _relative_figures(results: dict[str, AnalysisResult], out_dir: Path) -> dict[str, str]:
    figures: dict[str, str] = {}
    for result in results.values():
        for name, path in result.figures.items():
            try:
                figures[name] = path.resolve().relative_to(out_dir.resolve()).as_posix()
            except ValueError:
                figures[name] = path.resolve().as_posix()
    return figures


def render_report(
    results: dict[str, AnalysisResult],
    out_dir: Path,
    config: AppConfig,
) -> Path:
    env = _template_env()
    template = env.get_template("report.html.j2")

    rendered = template.render(
        title=config.report.title,
        city=config.report.city_label,
        geography=config.geography,
        dataset=config.source.dataset,
        generated_at=datetime.now(timezone.utc).isoformat(),
        minority=_minority_context(results["minority"]),
        income=_income_context(results["income"]),
        figures=_relative_figures(results, out_dir),
        summaries=_json_safe({name: result.summary for name, result in results.items()}),
    )

    report_path = out_dir / "report.html"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(rendered, encoding="utf-8")
    LOGGER.info("Report written to %s", report_path)
    return report_path
