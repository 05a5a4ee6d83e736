from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class OutputPaths:
    root: Path
    raw: Path
    tables: Path
    figures: Path
    summary: Path


def build_output_paths(out_dir: Path) -> OutputPaths:
    paths = OutputPaths(
        root=out_dir,
        raw=out_dir / "raw",
        tables=out_dir / "tables",
        figures=out_dir / "figures",
        summary=out_dir / "summary",
    )
    for path in (
        paths.root,
        paths.raw,
        paths.tables,
        paths.figures,
        paths.summary,
    ):
        path.mkdir(parents=True, exist_ok=True)
    return paths
