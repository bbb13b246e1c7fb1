from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from censusviz.util import (
    clicked_tract, finite_rows, full_range, next_selection, ordered_unique, robust_range, safe_ratio,
    selected_keys, to_geojson,
)


def test_safe_ratio_guards_denominator():
    out = safe_ratio(pd.Series([1, 2, 3, 4]), pd.Series([2, 0, -1, np.nan]))
    assert out.iloc[0] == 0.5
    assert out.iloc[1:].isna().all()


def test_safe_ratio_keeps_index():
    numer = pd.Series([10.0, 20.0], index=["a", "b"])
    out = safe_ratio(numer, [5, "x"])
    assert list(out.index) == ["a", "b"]
    assert out["a"] == 2.0
    assert np.isnan(out["b"])


def test_finite_rows():
    df = pd.DataFrame({"a": [1.0, np.inf, 3.0, None], "b": [1, 2, np.nan, 4]})
    assert finite_rows(df, "a").index.tolist() == [0, 2]
    assert finite_rows(df, "a", "b").index.tolist() == [0]


def test_ranges():
    s = pd.Series(np.arange(101, dtype=float))
    assert robust_range(s) == pytest.approx((5.0, 95.0))
    assert full_range(s) == (0.0, 100.0)
    assert full_range(pd.Series([3.0, 3.0])) == (3.0, 4.0)
    assert robust_range(pd.Series([np.nan])) == (0.0, 1.0)


def test_selected_keys_from_scatter_and_map():
    payload = {"points": [
        {"curveNumber": 0, "customdata": ["48113000100"], "x": 1.0, "y": 0.5},
        {"curveNumber": 5, "location": "48113000200", "z": 0},
        {"curveNumber": 1, "customdata": "48113000100"},
    ]}
    assert selected_keys(payload) == ["48113000100", "48113000200"]


@pytest.mark.parametrize("payload", [None, {}, {"points": []}])
def test_selected_keys_empty(payload):
    assert selected_keys(payload) == []


def test_to_geojson(grid_gdf):
    projected = grid_gdf.to_crs(3857)
    fc = to_geojson(projected)
    assert fc["type"] == "FeatureCollection"
    assert len(fc["features"]) == len(grid_gdf)
    props = fc["features"][0]["properties"]
    assert set(props) == {"GEOID"}
    # back in degrees
    x, y = fc["features"][0]["geometry"]["coordinates"][0][0]
    assert abs(x) < 1 and abs(y) < 1


def test_ordered_unique():
    assert ordered_unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


LASSO = {"points": [{"customdata": ["a"]}, {"location": "b"}]}
CLICK_C = {"points": [{"location": "c"}]}
CLICK_A = {"points": [{"customdata": ["a"]}]}


class TestNextSelection:
    def test_lasso_replaces(self):
        out = next_selection(["lisa_graph.selectedData"], LASSO, None, ["x", "y"])
        assert out == ["a", "b"]

    def test_click_toggles_in(self):
        assert next_selection(["lisa_graph.clickData"], None, CLICK_C, ["a"]) == ["a", "c"]

    def test_click_toggles_out(self):
        assert next_selection(["lisa_graph.clickData"], None, CLICK_A, ["a", "b"]) == ["b"]

    def test_click_wins_when_both_fire(self):
        fired = ["lisa_graph.selectedData", "lisa_graph.clickData"]
        assert next_selection(fired, CLICK_A, CLICK_A, ["a", "b"]) == ["b"]

    def test_clear_empties(self):
        fired = ["clear.n_clicks", "lisa_graph.clickData"]
        assert next_selection(fired, LASSO, CLICK_C, ["a"]) == []

    def test_nothing_fired_keeps_current(self):
        cur = ["a"]
        out = next_selection([], LASSO, CLICK_C, cur)
        assert out == ["a"]
        assert out is not cur


class TestClickedTract:
    rows = pd.DataFrame({"GEOID": ["27053000100", "27053000200"], "estimate": [10.0, 20.0]})

    def test_location_preferred(self):
        assert clicked_tract([{"location": "27123000300", "pointIndex": 0}], self.rows) == "27123000300"

    def test_point_index_fallback(self):
        assert clicked_tract([{"pointIndex": 1}], self.rows) == "27053000200"
        assert clicked_tract([{"pointNumber": 0}], self.rows) == "27053000100"

    def test_no_event_or_out_of_range(self):
        assert clicked_tract([], self.rows) is None
        assert clicked_tract(None, self.rows) is None
        assert clicked_tract([{"pointIndex": 5}], self.rows) is None
        assert clicked_tract([{"curveNumber": 0}], self.rows) is None
