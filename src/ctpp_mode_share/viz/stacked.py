from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ctpp_mode_share.preprocess.modes import CARPOOLED, DROVE_ALONE
from ctpp_mode_share.viz.common import save_figure

MODE_COLORS = {
    DROVE_ALONE: "#64748b",
    CARPOOLED: "#94a3b8",
    "Bus": "#f59e0b",
    "Rail or ferry": "#dc2626",
    "Bicycle": "#16a34a",
    "Walked": "#0ea5e9",
    "Taxi, motorcycle, other": "#a855f7",
    "Worked at home": "#78350f",
}


def stack_mode_order(modes: list[str]) -> list[str]:
    """Put the two car modes first so they stack next to each other."""
    car_modes = [mode for mode in (DROVE_ALONE, CARPOOLED) if mode in modes]
    return car_modes + [mode for mode in modes if mode not in car_modes]


def bracket_order(summary: pd.DataFrame) -> list[str]:
    groups = summary["group_category"]
    if isinstance(groups.dtype, pd.CategoricalDtype) and groups.dtype.ordered:
        present = set(groups.dropna().astype(str))
        return [str(category) for category in groups.cat.categories if str(category) in present]
    return [str(group) for group in pd.unique(groups)]


def plot_income_stacked_bars(
    summary: pd.DataFrame,
    output_path: Path,
    title: str = "Commute mode share by household income",
) -> Path:
    brackets = bracket_order(summary)
    modes = stack_mode_order([str(mode) for mode in pd.unique(summary["transpo_mode"])])
    shares = (
        summary.assign(
            group_category=summary["group_category"].astype(str),
            transpo_mode=summary["transpo_mode"].astype(str),
        )
        .pivot_table(
            index="group_category",
            columns="transpo_mode",
            values="share_pct",
            aggfunc="sum",
        )
        .reindex(index=brackets, columns=modes)
        .fillna(0.0)
    )

    x = np.arange(len(brackets), dtype=float)
    bottom = np.zeros(len(brackets), dtype=float)
    plt.figure(figsize=(11, 5.5))
    for mode in modes:
        values = shares[mode].to_numpy(dtype=float)
        plt.bar(x, values, bottom=bottom, label=mode, color=MODE_COLORS.get(mode), width=0.75)
        bottom += values
    plt.xticks(x, brackets, rotation=30, ha="right")
    plt.ylim(0, 100)
    plt.title(title)
    plt.xlabel("Household income")
    plt.ylabel("Share of commuters (%)")
    plt.legend(loc="upper left", bbox_to_anchor=(1.0, 1.0), frameon=False)
    return save_figure(output_path)
