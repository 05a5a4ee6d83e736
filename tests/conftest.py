from __future__ import annotations

from typing import Any, Callable

import pytest
import requests

from ctpp_mode_share.config import AppConfig

BOSTON = "Boston city, Massachusetts"
CAMBRIDGE = "Cambridge city, Massachusetts"

TOTAL_MODE_LABEL = "Total, means of transportation"
DROVE_ALONE_LABEL = "Car, truck, or van -- Drove alone"
CARPOOL_2_LABEL = "Car, truck, or van -- In a 2-person carpool"
CARPOOL_3_LABEL = "Car, truck, or van -- In a 3-or-more-person carpool"
BUS_LABEL = "Bus or trolley bus"
RAIL_LABEL = "Streetcar or trolley car, Subway or elevated, Railroad, Ferryboat"
WALKED_LABEL = "Walked"
HOME_LABEL = "Worked at home"

MINORITY_TABLE_ID = "A112308"
MINORITY_DIMENSIONS = ["Minority Status 3", "Means of Transportation 11"]
MINORITY_GROUPS: dict[str, dict[str, int]] = {
    "White alone, not Hispanic or Latino": {
        DROVE_ALONE_LABEL: 1000,
        CARPOOL_2_LABEL: 60,
        CARPOOL_3_LABEL: 20,
        BUS_LABEL: 120,
        RAIL_LABEL: 300,
        WALKED_LABEL: 300,
        HOME_LABEL: 200,
    },
    "Minority": {
        DROVE_ALONE_LABEL: 400,
        CARPOOL_2_LABEL: 50,
        CARPOOL_3_LABEL: 30,
        BUS_LABEL: 250,
        RAIL_LABEL: 150,
        WALKED_LABEL: 80,
        HOME_LABEL: 40,
    },
}

INCOME_TABLE_ID = "A112209"
INCOME_DIMENSIONS = ["Household Income 26", "Means of Transportation 11"]
INCOME_GROUPS: dict[str, dict[str, int]] = {
    "Less than $5,000": {
        DROVE_ALONE_LABEL: 100,
        CARPOOL_2_LABEL: 10,
        CARPOOL_3_LABEL: 0,
        BUS_LABEL: 60,
        RAIL_LABEL: 20,
        WALKED_LABEL: 50,
        HOME_LABEL: 10,
    },
    "$10,000-$14,999": {
        DROVE_ALONE_LABEL: 150,
        CARPOOL_2_LABEL: 20,
        CARPOOL_3_LABEL: 10,
        BUS_LABEL: 50,
        RAIL_LABEL: 20,
        WALKED_LABEL: 40,
        HOME_LABEL: 10,
    },
    "$35,000-$37,499": {
        DROVE_ALONE_LABEL: 300,
        CARPOOL_2_LABEL: 30,
        CARPOOL_3_LABEL: 10,
        BUS_LABEL: 40,
        RAIL_LABEL: 90,
        WALKED_LABEL: 20,
        HOME_LABEL: 10,
    },
    "$200,000 or more": {
        DROVE_ALONE_LABEL: 500,
        CARPOOL_2_LABEL: 20,
        CARPOOL_3_LABEL: 10,
        BUS_LABEL: 20,
        RAIL_LABEL: 200,
        WALKED_LABEL: 100,
        HOME_LABEL: 150,
    },
}


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, handler: Callable[[str, dict[str, Any]], FakeResponse]) -> None:
        self._handler = handler
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.request_headers: list[dict[str, str]] = []
        self.closed = False

    def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ):
        params = dict(params or {})
        self.calls.append((url, params))
        self.request_headers.append(dict(headers or {}))
        return self._handler(url, params)

    def close(self) -> None:
        self.closed = True


def table_cells(groups: dict[str, dict[str, int]], total_group: str) -> list[tuple[str, str, int]]:
    """Expand per-group mode counts into (group, mode, estimate) cells with totals."""
    cells: list[tuple[str, str, int]] = []
    modes = list(next(iter(groups.values())))
    cells.append((total_group, TOTAL_MODE_LABEL, sum(sum(v.values()) for v in groups.values())))
    for mode in modes:
        cells.append((total_group, mode, sum(counts[mode] for counts in groups.values())))
    for group, counts in groups.items():
        cells.append((group, TOTAL_MODE_LABEL, sum(counts.values())))
        for mode, estimate in counts.items():
            cells.append((group, mode, estimate))
    return cells


def build_ctpp_payloads(
    table_id: str,
    dimensions: list[str],
    cells: list[tuple[str, str, int]],
    places: dict[str, int],
) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """Return (variables payload, one record per place scaled by the place's factor)."""
    variables: dict[str, Any] = {"dimensions": dimensions, "data": []}
    records = [
        {"geoid": f"25{index:05d}", "name": place} for index, place in enumerate(places, start=1)
    ]
    for line, (group, mode, estimate) in enumerate(cells, start=1):
        label = f"{group}!!{mode}"
        variables["data"].append({"name": f"{table_id}_e{line}", "label": label})
        variables["data"].append({"name": f"{table_id}_m{line}", "label": label})
        for record, factor in zip(records, places.values()):
            record[f"{table_id}_e{line}"] = f"{estimate * factor:,}"
            record[f"{table_id}_m{line}"] = "25"
    return variables, records


def make_ctpp_service() -> FakeSession:
    places = {BOSTON: 1, CAMBRIDGE: 3}
    tables = {
        MINORITY_TABLE_ID: build_ctpp_payloads(
            MINORITY_TABLE_ID,
            MINORITY_DIMENSIONS,
            table_cells(MINORITY_GROUPS, "Total, minority status"),
            places,
        ),
        INCOME_TABLE_ID: build_ctpp_payloads(
            INCOME_TABLE_ID,
            INCOME_DIMENSIONS,
            table_cells(INCOME_GROUPS, "Total, household income"),
            places,
        ),
    }

    def handler(url: str, params: dict[str, Any]) -> FakeResponse:
        for table_id, (variables, records) in tables.items():
            if url.endswith(f"/groups/{table_id}/variables"):
                return FakeResponse(variables)
            if url.endswith("/data/2016") and params.get("get") == f"group({table_id})":
                # One place per page to exercise pagination.
                page = int(params.get("page", 1))
                return FakeResponse({"data": records[page - 1 : page], "pages": len(records)})
        return FakeResponse({"error": "unknown table"}, status_code=404)

    return FakeSession(handler)


@pytest.fixture
def ctpp_service() -> FakeSession:
    return make_ctpp_service()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig.model_validate(
        {
            "geography": BOSTON,
            "source": {"api_key": "test-key"},
            "outputs": {"tables_format": "csv"},
        }
    )
