from __future__ import annotations

from pathlib import Path

import typer

from ctpp_mode_share.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from ctpp_mode_share.logging import configure_logging
from ctpp_mode_share.paths import build_output_paths
from ctpp_mode_share.pipeline.fetch import fetch_raw_tables
from ctpp_mode_share.pipeline.run_all import build_report, run_all

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _require_api_key(cfg: AppConfig) -> None:
    if not cfg.source.api_key:
        raise typer.BadParameter(
            "Missing CTPP API key. Set source.api_key in config or CTPP_API_KEY in the environment."
        )


@app.command()
def fetch(
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Download the configured CTPP tables into out/raw."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    _require_api_key(cfg)
    paths = build_output_paths(out)
    tables = fetch_raw_tables(out_dir=paths.root, config=cfg)
    typer.echo(
        "Fetch complete. Tables: "
        + ", ".join(f"{name} ({len(table)} rows)" for name, table in sorted(tables.items()))
    )


@app.command()
def report(
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Build analyses and render the HTML report from tables already in out/raw."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    paths = build_output_paths(out)
    report_path = build_report(out_dir=paths.root, config=cfg)
    typer.echo(f"Report written to: {report_path}")


@app.command("run-all")
def run_all_command(
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    log_level: str = typer.Option("INFO", help="Logging level."),
) -> None:
    """Fetch, analyse, and render in one command."""
    configure_logging(log_level)
    cfg = _load_app_config(config)
    _require_api_key(cfg)
    paths = build_output_paths(out)
    report_path = run_all(out_dir=paths.root, config=cfg)
    typer.echo(f"Run complete. Report: {report_path}")


if __name__ == "__main__":
    app()
