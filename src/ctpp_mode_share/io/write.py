from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

TABLE_FORMATS = ("parquet", "csv")


def table_path(directory: Path, stem: str, fmt: str) -> Path:
    if fmt not in TABLE_FORMATS:
        raise ValueError(f"Unsupported table format: {fmt}")
    return directory / f"{stem}.{fmt}"


def _plain_categories(df: pd.DataFrame) -> pd.DataFrame:
    categorical = [
        column for column in df.columns if isinstance(df[column].dtype, pd.CategoricalDtype)
    ]
    if not categorical:
        return df
    return df.assign(**{column: df[column].astype(str) for column in categorical})


def write_table(df: pd.DataFrame, path: Path, fmt: str = "parquet") -> Path:
    """Write a derived table; ordered categoricals are stored as their labels."""
    path.parent.mkdir(parents=True, exist_ok=True)
    plain = _plain_categories(df)
    if fmt == "parquet":
        plain.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        plain.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
    return path
