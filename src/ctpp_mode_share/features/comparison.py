from __future__ import annotations

import pandas as pd

DIFFERENCE_COLUMN = "difference"
MODE_COLUMN = "transpo_mode"
DISPLAY_COLUMNS = {MODE_COLUMN: "Mode", DIFFERENCE_COLUMN: "Difference"}


def build_comparison_table(
    summary: pd.DataFrame,
    reference_group: str,
    comparison_group: str,
) -> pd.DataFrame:
    """Side-by-side shares for two groups with ``reference - comparison``.

    Rows are ordered by descending absolute difference. Values stay as
    fractions; see ``format_comparison_table`` for display.
    """
    # Modes absent from a group become 0; undefined shares stay NaN.
    pivot = (
        summary.groupby([MODE_COLUMN, "group_category"], observed=True)["share"]
        .sum(min_count=1)
        .unstack("group_category", fill_value=0.0)
    )
    missing = [group for group in (reference_group, comparison_group) if group not in pivot.columns]
    if missing:
        raise ValueError(f"Groups missing from share summary: {', '.join(missing)}")

    table = pd.DataFrame(
        {
            MODE_COLUMN: pivot.index.astype(str),
            reference_group: pivot[reference_group].to_numpy(),
            comparison_group: pivot[comparison_group].to_numpy(),
        }
    )
    table[DIFFERENCE_COLUMN] = table[reference_group] - table[comparison_group]
    order = table[DIFFERENCE_COLUMN].abs().sort_values(ascending=False, kind="stable").index
    return table.loc[order].reset_index(drop=True)


def percent_columns(table: pd.DataFrame) -> list[str]:
    return [column for column in table.columns if column != MODE_COLUMN]


def format_comparison_table(table: pd.DataFrame) -> pd.DataFrame:
    """Render every percentage column as text with one decimal place."""
    formatted = table.copy()
    for column in percent_columns(table):
        formatted[column] = table[column].map(
            lambda value: "n/a" if pd.isna(value) else f"{value * 100:.1f}%"
        )
    return formatted.rename(columns=DISPLAY_COLUMNS)


def style_comparison_table(table: pd.DataFrame, caption: str | None = None) -> str:
    display = table.rename(columns=DISPLAY_COLUMNS)
    numeric = [DISPLAY_COLUMNS.get(column, column) for column in percent_columns(table)]
    styler = (
        display.style.format("{:.1%}", subset=numeric, na_rep="n/a")
        .hide(axis="index")
        .set_table_attributes('class="comparison-table"')
    )
    if caption:
        styler = styler.set_caption(caption)
    return styler.to_html()
