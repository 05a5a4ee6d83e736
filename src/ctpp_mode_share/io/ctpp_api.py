"""Client for the CTPP tabulation API.

The service mirrors the Census data API. A data request looks like::

    GET {base_url}/data/{dataset}?get=group(A112308)&for=place:*&in=state:25
        &format=list&size=10000&page=1

and answers with ``{"data": [record, ...], "pages": n}`` where every record
holds ``geoid``, ``name`` and one column per table cell (``A112308_e12`` for an
estimate, ``A112308_m12`` for its margin of error).

Cell meanings come from ``GET {base_url}/groups/{table_id}/variables``, which
lists the table's dimension names and, per estimate variable, a label whose
dimension values are joined with ``!!``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import pandas as pd
import requests

from ctpp_mode_share.config import SourceConfig

LOGGER = logging.getLogger(__name__)

LABEL_SEPARATOR = "!!"
RESIDENCE_COLUMN = "RESIDENCE"
GEOID_COLUMN = "GEOID"
ESTIMATE_COLUMN = "ESTIMATE"
MOE_COLUMN = "MOE"

STATE_FIPS: dict[str, str] = {
    "Alabama": "01",
    "Alaska": "02",
    "Arizona": "04",
    "Arkansas": "05",
    "California": "06",
    "Colorado": "08",
    "Connecticut": "09",
    "Delaware": "10",
    "District of Columbia": "11",
    "Florida": "12",
    "Georgia": "13",
    "Hawaii": "15",
    "Idaho": "16",
    "Illinois": "17",
    "Indiana": "18",
    "Iowa": "19",
    "Kansas": "20",
    "Kentucky": "21",
    "Louisiana": "22",
    "Maine": "23",
    "Maryland": "24",
    "Massachusetts": "25",
    "Michigan": "26",
    "Minnesota": "27",
    "Mississippi": "28",
    "Missouri": "29",
    "Montana": "30",
    "Nebraska": "31",
    "Nevada": "32",
    "New Hampshire": "33",
    "New Jersey": "34",
    "New Mexico": "35",
    "New York": "36",
    "North Carolina": "37",
    "North Dakota": "38",
    "Ohio": "39",
    "Oklahoma": "40",
    "Oregon": "41",
    "Pennsylvania": "42",
    "Rhode Island": "44",
    "South Carolina": "45",
    "South Dakota": "46",
    "Tennessee": "47",
    "Texas": "48",
    "Utah": "49",
    "Vermont": "50",
    "Virginia": "51",
    "Washington": "53",
    "West Virginia": "54",
    "Wisconsin": "55",
    "Wyoming": "56",
    "Puerto Rico": "72",
}


@dataclass(frozen=True)
class CtppRequest:
    table_id: str
    dataset: str
    geography: str
    state: str
    label_mode: str = "Name"


@dataclass(frozen=True)
class TableVariables:
    dimensions: list[str]
    labels: dict[int, tuple[str, ...]]


def state_fips(state: str) -> str:
    normalized = " ".join(str(state).split()).title().replace(" Of ", " of ")
    fips = STATE_FIPS.get(normalized)
    if fips is None:
        raise ValueError(f"Unknown state name: {state}")
    return fips


def _variable_pattern(table_id: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(table_id)}_(?P<kind>[em])(?P<line>\d+)$", re.IGNORECASE)


def _get_json(
    session: requests.Session,
    url: str,
    *,
    params: dict[str, Any] | None,
    headers: dict[str, str] | None,
    timeout: float,
) -> dict[str, Any]:
    response = session.get(url, params=params, headers=headers, timeout=timeout)
    response.raise_for_status()
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError(f"Unexpected CTPP response from {url}: expected a JSON object")
    return payload


def fetch_table_variables(
    session: requests.Session,
    *,
    base_url: str,
    table_id: str,
    timeout: float,
    headers: dict[str, str] | None = None,
) -> TableVariables:
    payload = _get_json(
        session,
        f"{base_url.rstrip('/')}/groups/{table_id}/variables",
        params=None,
        headers=headers,
        timeout=timeout,
    )
    dimensions = [str(value) for value in payload.get("dimensions") or []]
    if not dimensions:
        raise ValueError(f"CTPP table {table_id} has no dimension metadata")

    pattern = _variable_pattern(table_id)
    labels: dict[int, tuple[str, ...]] = {}
    for entry in payload.get("data") or []:
        match = pattern.match(str(entry.get("name", "")))
        if match is None or match.group("kind").lower() != "e":
            continue
        parts = tuple(part.strip() for part in str(entry.get("label", "")).split(LABEL_SEPARATOR))
        if len(parts) != len(dimensions):
            raise ValueError(
                f"CTPP variable {entry.get('name')} label does not match dimensions "
                f"{dimensions}: {entry.get('label')!r}"
            )
        labels[int(match.group("line"))] = parts
    if not labels:
        raise ValueError(f"CTPP table {table_id} returned no estimate variables")
    return TableVariables(dimensions=dimensions, labels=labels)


def fetch_table_records(
    session: requests.Session,
    request: CtppRequest,
    *,
    base_url: str,
    page_size: int,
    timeout: float,
    headers: dict[str, str] | None = None,
) -> list[dict[str, Any]]:
    url = f"{base_url.rstrip('/')}/data/{request.dataset}"
    params: dict[str, Any] = {
        "get": f"group({request.table_id})",
        "for": f"{request.geography}:*",
        "in": f"state:{state_fips(request.state)}",
        "format": "list",
        "size": page_size,
    }

    records: list[dict[str, Any]] = []
    page = 1
    total_pages = 1
    while page <= total_pages:
        payload = _get_json(
            session,
            url,
            params={**params, "page": page},
            headers=headers,
            timeout=timeout,
        )
        data = payload.get("data")
        if not isinstance(data, list):
            raise ValueError(f"CTPP response for {request.table_id} is missing a data list")
        records.extend(data)
        total_pages = int(payload.get("pages") or 1)
        page += 1

    if not records:
        raise ValueError(
            f"CTPP table {request.table_id} returned no rows for "
            f"{request.geography} in {request.state}"
        )
    return records


def reshape_records(
    records: list[dict[str, Any]],
    variables: TableVariables,
    request: CtppRequest,
) -> pd.DataFrame:
    """Turn one-row-per-geography records into one row per table cell."""
    frame = pd.DataFrame.from_records(records)
    if "name" not in frame.columns:
        raise ValueError("CTPP records are missing the geography 'name' field")

    pattern = _variable_pattern(request.table_id)
    value_columns = [column for column in frame.columns if pattern.match(str(column))]
    id_columns = [column for column in ("geoid", "name") if column in frame.columns]

    long = frame.melt(
        id_vars=id_columns,
        value_vars=value_columns,
        var_name="variable",
        value_name="value",
    )
    parts = long["variable"].str.extract(pattern)
    long["kind"] = parts["kind"].str.lower()
    long["line"] = parts["line"].astype(int)

    estimates = (
        long[long["kind"] == "e"]
        .drop(columns=["variable", "kind"])
        .rename(columns={"value": ESTIMATE_COLUMN})
    )
    moes = (
        long[long["kind"] == "m"]
        .drop(columns=["variable", "kind"])
        .rename(columns={"value": MOE_COLUMN})
    )
    cells = estimates.merge(moes, on=[*id_columns, "line"], how="left")

    unknown_lines = sorted(set(cells["line"]) - set(variables.labels))
    if unknown_lines:
        raise ValueError(
            f"CTPP table {request.table_id} has cells without labels: {unknown_lines[:5]}"
        )
    dimension_frame = pd.DataFrame(
        [
            {"line": line, **dict(zip(variables.dimensions, labels))}
            for line, labels in variables.labels.items()
        ]
    )
    cells = cells.merge(dimension_frame, on="line", how="left")

    cells = cells.rename(columns={"name": RESIDENCE_COLUMN, "geoid": GEOID_COLUMN})
    leading = [RESIDENCE_COLUMN]
    if request.label_mode == "FIPS and Name" and GEOID_COLUMN in cells.columns:
        leading.append(GEOID_COLUMN)
    ordered = [*leading, *variables.dimensions, ESTIMATE_COLUMN, MOE_COLUMN]
    return (
        cells.sort_values([RESIDENCE_COLUMN, "line"], kind="stable")[ordered]
        .reset_index(drop=True)
    )


def fetch_ctpp_table(
    request: CtppRequest,
    *,
    source: SourceConfig,
    session: requests.Session | None = None,
) -> pd.DataFrame:
    """Download one CTPP table for every geography of a level within a state."""
    active_session = session or requests.Session()
    headers = {"x-api-key": source.api_key} if source.api_key else None

    LOGGER.info(
        "Fetching CTPP table %s (dataset=%s, geography=%s, state=%s)",
        request.table_id,
        request.dataset,
        request.geography,
        request.state,
    )
    try:
        variables = fetch_table_variables(
            active_session,
            base_url=source.base_url,
            table_id=request.table_id,
            timeout=source.timeout_seconds,
            headers=headers,
        )
        records = fetch_table_records(
            active_session,
            request,
            base_url=source.base_url,
            page_size=source.page_size,
            timeout=source.timeout_seconds,
            headers=headers,
        )
    finally:
        if session is None:
            active_session.close()

    table = reshape_records(records, variables, request)
    LOGGER.info("Fetched CTPP table %s: %d rows", request.table_id, len(table))
    return table
