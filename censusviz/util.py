# censusviz/util.py
from __future__ import annotations
import json
from typing import Iterable
import numpy as np
import pandas as pd


def safe_ratio(numer, denom) -> pd.Series:
    """numer / denom, NaN wherever the denominator is zero, negative or non-finite."""
    x = pd.to_numeric(pd.Series(numer), errors="coerce").to_numpy(dtype=float)
    y = pd.to_numeric(pd.Series(denom), errors="coerce").to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        out = np.where((y > 0) & np.isfinite(y), x / y, np.nan)
    index = numer.index if isinstance(numer, pd.Series) else None
    return pd.Series(out, index=index)


def finite_rows(df: pd.DataFrame, *cols: str) -> pd.DataFrame:
    """Rows where every column in `cols` is a finite number."""
    keep = np.ones(len(df), dtype=bool)
    for c in cols:
        v = pd.to_numeric(df[c], errors="coerce").to_numpy(dtype=float)
        keep &= np.isfinite(v)
    return df.loc[keep].copy()


def robust_range(s: pd.Series) -> tuple[float, float]:
    s = pd.to_numeric(s, errors="coerce")
    if s.notna().sum() == 0:
        return (0.0, 1.0)
    lo = float(np.nanquantile(s, 0.05))
    hi = float(np.nanquantile(s, 0.95))
    if not np.isfinite(lo): lo = 0.0
    if (not np.isfinite(hi)) or hi <= lo: hi = lo + 1.0
    return (lo, hi)


def full_range(s: pd.Series) -> tuple[float, float]:
    s = pd.to_numeric(s, errors="coerce")
    if s.notna().sum() == 0:
        return (0.0, 1.0)
    lo, hi = float(s.min()), float(s.max())
    if hi <= lo: hi = lo + 1.0
    return (lo, hi)


def to_geojson(gdf, id_col: str = "GEOID") -> dict:
    """FeatureCollection in EPSG:4326 carrying only the key column."""
    g = gdf[[id_col, "geometry"]]
    if g.crs is not None and g.crs.to_epsg() != 4326:
        g = g.to_crs(4326)
    return json.loads(g.to_json())


def selected_keys(payload: dict | None, key: str = "customdata") -> list[str]:
    """
    GEOIDs out of a plotly selectedData/clickData payload.
    Scatter points carry the id in customdata, choropleth points in location.
    """
    if not payload or not payload.get("points"):
        return []
    out: list[str] = []
    for p in payload["points"]:
        k = p.get("location")
        if k is None:
            cd = p.get(key)
            if isinstance(cd, (list, tuple)):
                cd = cd[0] if cd else None
            k = cd
        if k is not None and str(k) not in out:
            out.append(str(k))
    return out


def next_selection(triggered: Iterable[str], selected_data: dict | None, click_data: dict | None,
                   cur: Iterable[str] | None) -> list[str]:
    """
    Selection after one graph event. `triggered` holds the Dash prop ids that fired.
    Clear empties, a click toggles the clicked tract, a lasso/box replaces the selection.
    """
    triggered = set(triggered or ())
    cur = list(cur or [])
    if any(t.split(".")[0] == "clear" for t in triggered):
        return []
    if any(t.endswith(".clickData") for t in triggered):
        for k in selected_keys(click_data):
            if k in cur: cur.remove(k)
            else: cur.append(k)
        return cur
    if any(t.endswith(".selectedData") for t in triggered):
        return selected_keys(selected_data)
    return cur


def clicked_tract(events, rows: pd.DataFrame) -> str | None:
    """GEOID of the first clicked point from streamlit-plotly-events; falls back to the row index."""
    if not events:
        return None
    loc = events[0].get("location")
    if loc:
        return str(loc)
    idx = events[0].get("pointIndex", events[0].get("pointNumber"))
    if idx is None or not 0 <= int(idx) < len(rows):
        return None
    return str(rows.iloc[int(idx)]["GEOID"])


def ordered_unique(values: Iterable) -> list:
    seen, out = set(), []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out
