from __future__ import annotations

from collections.abc import Mapping

import pandas as pd

TOTAL_MODE = "Total"
DROVE_ALONE = "Drove alone"
CARPOOLED = "Carpooled"

MODE_BUCKETS: dict[str, str] = {
    "Total, means of transportation": TOTAL_MODE,
    "Car, truck, or van -- Drove alone": DROVE_ALONE,
    "Car, truck, or van -- In a 2-person carpool": CARPOOLED,
    "Car, truck, or van -- In a 3-or-more-person carpool": CARPOOLED,
    "Bus or trolley bus": "Bus",
    "Streetcar or trolley car, Subway or elevated, Railroad, Ferryboat": "Rail or ferry",
    "Bicycle": "Bicycle",
    "Walked": "Walked",
    "Taxicab, motorcycle or other method": "Taxi, motorcycle, other",
    "Worked at home": "Worked at home",
}


def resolve_mode_buckets(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    buckets = dict(MODE_BUCKETS)
    if overrides:
        buckets.update(overrides)
    return buckets


def mode_bucket(raw_label: str, buckets: Mapping[str, str] = MODE_BUCKETS) -> str:
    return buckets.get(raw_label, raw_label)


def apply_mode_buckets(
    df: pd.DataFrame,
    buckets: Mapping[str, str] = MODE_BUCKETS,
) -> pd.DataFrame:
    """Map raw CTPP mode labels to display buckets; unknown labels are kept."""
    working = df.copy()
    working["transpo_mode"] = working["transpo_mode"].map(
        lambda label: mode_bucket(label, buckets)
    )
    return working
