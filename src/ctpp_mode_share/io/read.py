from __future__ import annotations

from pathlib import Path

import pandas as pd


def load_table(path: Path) -> pd.DataFrame:
    if path.suffix == ".parquet":
        return pd.read_parquet(path)
    if path.suffix == ".csv":
        return pd.read_csv(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")


def find_table(directory: Path, stem: str) -> Path:
    """Return the first ``stem.parquet`` or ``stem.csv`` found in ``directory``."""
    for suffix in (".parquet", ".csv"):
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    raise FileNotFoundError(f"No table named '{stem}' in {directory}")
