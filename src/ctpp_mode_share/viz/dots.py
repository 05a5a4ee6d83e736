from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

from ctpp_mode_share.viz.common import GROUP_COLORS, save_figure


def ranked_mode_order(summary: pd.DataFrame, reference_group: str) -> list[str]:
    """Modes ascending by the reference group's share; modes it lacks go last."""
    reference = summary[summary["group_category"] == reference_group].sort_values(
        "share", kind="stable"
    )
    order = reference["transpo_mode"].astype(str).tolist()
    extras = [
        mode for mode in summary["transpo_mode"].astype(str).unique() if mode not in set(order)
    ]
    return order + extras


def plot_ranked_dots(
    summary: pd.DataFrame,
    output_path: Path,
    reference_group: str,
    title: str = "Commute mode share by group",
) -> Path:
    order = ranked_mode_order(summary, reference_group)
    positions = {mode: index for index, mode in enumerate(order)}
    groups = [str(group) for group in pd.unique(summary["group_category"])]

    plt.figure(figsize=(9, 0.45 * len(order) + 1.8))
    for color_index, group in enumerate(groups):
        rows = summary[summary["group_category"].astype(str) == group]
        plt.scatter(
            rows["share_pct"],
            rows["transpo_mode"].astype(str).map(positions),
            s=60,
            color=GROUP_COLORS[color_index % len(GROUP_COLORS)],
            label=group,
            zorder=3,
        )
    plt.yticks(range(len(order)), order)
    plt.grid(axis="x", color="#e2e8f0", zorder=0)
    plt.title(title)
    plt.xlabel("Share of commuters (%)")
    plt.legend(loc="lower right", frameon=False)
    return save_figure(output_path)
