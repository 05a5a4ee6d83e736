from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd


@dataclass(frozen=True)
class AnalysisResult:
    analysis: str
    summary: dict[str, Any]
    tables: dict[str, pd.DataFrame]
    figures: dict[str, Path] = field(default_factory=dict)
