from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://ctppdata.transportation.org/api"


class ColumnsConfig(BaseModel):
    residence: str = "RESIDENCE"
    group_category: str
    transpo_mode: str = "Means of Transportation 11"
    estimate: str = "ESTIMATE"


class SourceConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None
    dataset: str = "2016"
    geography: str = "place"
    state: str = "Massachusetts"
    label_mode: Literal["Name", "FIPS and Name"] = "Name"
    timeout_seconds: float = Field(default=60.0, gt=0.0)
    page_size: int = Field(default=10_000, ge=1)


class MinorityAnalysisConfig(BaseModel):
    table_id: str = "A112308"
    columns: ColumnsConfig = Field(
        default_factory=lambda: ColumnsConfig(group_category="Minority Status 3")
    )
    reference_group: str = "non-Hispanic White"
    comparison_group: str = "Racial/ethnic minority"


class IncomeAnalysisConfig(BaseModel):
    table_id: str = "A112209"
    columns: ColumnsConfig = Field(
        default_factory=lambda: ColumnsConfig(group_category="Household Income 26")
    )


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"
    figures_format: str = "png"


class ReportConfig(BaseModel):
    title: str = "How Boston commutes"
    city_label: str = "Boston"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    geography: str = "Boston city, Massachusetts"
    source: SourceConfig = Field(default_factory=SourceConfig)
    minority: MinorityAnalysisConfig = Field(default_factory=MinorityAnalysisConfig)
    income: IncomeAnalysisConfig = Field(default_factory=IncomeAnalysisConfig)
    modes: dict[str, str] = Field(default_factory=dict)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    config = AppConfig.model_validate(data)
    config.source.api_key = config.source.api_key or os.getenv("CTPP_API_KEY")
    return config
