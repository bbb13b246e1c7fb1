from __future__ import annotations

import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import box


def make_grid_gdf(nrow: int = 5, ncol: int = 5, values=None, crs: int = 4326) -> gpd.GeoDataFrame:
    """nrow x ncol unit squares, GEOID "r{row}c{col}", row-major."""
    cells, ids = [], []
    for r in range(nrow):
        for c in range(ncol):
            cells.append(box(c * 0.01, r * 0.01, (c + 1) * 0.01, (r + 1) * 0.01))
            ids.append(f"r{r}c{c}")
    if values is None:
        values = np.arange(nrow * ncol, dtype=float)
    return gpd.GeoDataFrame({"GEOID": ids, "NAME": ids, "estimate": values}, geometry=cells, crs=crs)


@pytest.fixture
def grid_gdf():
    return make_grid_gdf()


@pytest.fixture
def hotspot_gdf():
    """7x7 grid: high values in the lower-left block, low in the upper-right, noise elsewhere."""
    rng = np.random.RandomState(7)
    vals = rng.normal(50, 2, size=49)
    for r in range(7):
        for c in range(7):
            if r < 3 and c < 3: vals[r * 7 + c] = 90 + rng.normal(0, 1)
            if r > 3 and c > 3: vals[r * 7 + c] = 10 + rng.normal(0, 1)
    return make_grid_gdf(7, 7, vals)


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, text: str | None = None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else str(payload)
        self.content = self.text.encode()

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            import requests
            raise requests.HTTPError(f"{self.status_code}")


@pytest.fixture
def fake_get(monkeypatch):
    """
    Route censusviz.census requests.get through a list of (url-substring, response).
    Recorded calls are available as fake_get.calls.
    """
    import censusviz.census as census

    class Router:
        def __init__(self):
            self.routes: list[tuple[str, FakeResponse]] = []
            self.calls: list[tuple[str, dict]] = []

        def add(self, fragment: str, payload=None, status_code: int = 200, text: str | None = None):
            self.routes.append((fragment, FakeResponse(payload, status_code, text)))

        def __call__(self, url, params=None, timeout=None):
            self.calls.append((url, dict(params or {})))
            for fragment, resp in self.routes:
                if fragment in url + "?" + "&".join(f"{k}={v}" for k, v in (params or {}).items()):
                    return resp
            raise AssertionError(f"unexpected request: {url} {params}")

    router = Router()
    monkeypatch.setattr(census.requests, "get", router)
    monkeypatch.delenv("CENSUS_API_KEY", raising=False)
    census._county_table.cache_clear()
    census._variables_json.cache_clear()
    return router


@pytest.fixture
def tidy_age_table():
    """Two states of B01001 in long form with a summary column."""
    rows = []
    for name, scale in [("Alpha", 1.0), ("Beta", 2.0)]:
        for line in range(1, 50):
            rows.append({"NAME": name, "variable": f"B01001_{line:03d}",
                         "estimate": 10.0 * scale, "summary_est": 1000.0 * scale})
    return pd.DataFrame(rows)


@pytest.fixture
def make_grid():
    return make_grid_gdf
