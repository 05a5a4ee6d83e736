from __future__ import annotations

from pathlib import Path

import pandas as pd

from ctpp_mode_share.config import AppConfig
from ctpp_mode_share.features.comparison import build_comparison_table
from ctpp_mode_share.pipeline.base import AnalysisResult
from ctpp_mode_share.report.render import _json_safe, format_percent, render_report


def _results(out_dir: Path) -> dict[str, AnalysisResult]:
    summary = pd.DataFrame(
        {
            "group_category": ["non-Hispanic White", "Racial/ethnic minority"] * 2,
            "transpo_mode": ["Drove alone", "Drove alone", "Walked", "Walked"],
            "share": [0.6, 0.3, 0.4, 0.5],
        }
    )
    comparison = build_comparison_table(summary, "non-Hispanic White", "Racial/ethnic minority")
    minority = AnalysisResult(
        analysis="minority",
        summary={
            "reference_group": "non-Hispanic White",
            "comparison_group": "Racial/ethnic minority",
            "largest_gap_mode": str(comparison.loc[0, "transpo_mode"]),
            "largest_gap": float(comparison.loc[0, "difference"]),
        },
        tables={"minority_shares": summary, "minority_comparison": comparison},
        figures={"minority_ranked_dots": out_dir / "figures" / "minority_ranked_dots.png"},
    )
    income = AnalysisResult(
        analysis="income",
        summary={
            "drove_alone_by_bracket": {"Less than $15,000": 0.25, "$150,000 or more": 0.55},
            "ratio": float("nan"),
        },
        tables={},
        figures={},
    )
    return {"minority": minority, "income": income}


def test_render_report_writes_narrative_and_table(tmp_path: Path) -> None:
    config = AppConfig()

    report_path = render_report(_results(tmp_path), out_dir=tmp_path, config=config)

    html = report_path.read_text(encoding="utf-8")
    assert report_path == tmp_path / "report.html"
    assert 'id="report-title"' in html
    assert "60.0%" in html and "30.0%" in html
    assert "The widest gap is in <strong>drove alone</strong>" in html
    assert 'src="figures/minority_ranked_dots.png"' in html
    assert "income_stacked_bars" not in html
    assert "households earning less than $15,000" in html
    assert "<table" in html and 'class="comparison-table"' in html


def test_format_percent_and_json_safe_handle_missing_values() -> None:
    assert format_percent(0.1234) == "12.3%"
    assert format_percent(None) == "n/a"
    assert format_percent(float("nan")) == "n/a"
    assert _json_safe({"a": float("inf"), "b": [1, 2.5]}) == {"a": None, "b": [1, 2.5]}
