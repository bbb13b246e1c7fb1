# censusviz/geo.py
# Cartographic boundary files from www2.census.gov, cached on disk.
from __future__ import annotations
from pathlib import Path
import os

import geopandas as gpd
import pandas as pd
import requests

GENZ_BASE = "https://www2.census.gov/geo/tiger/GENZ{year}/shp"
GENZ2010_BASE = "https://www2.census.gov/geo/tiger/GENZ2010"
CACHE_DIR = Path(os.getenv("CENSUSVIZ_CACHE_DIR", Path.home() / ".cache" / "censusviz"))

# layer -> (scope, file layer name); scope "state" means one file per state
LAYERS = {
    "state": ("us", "state"),
    "county": ("us", "county"),
    "tract": ("state", "tract"),
    "cbsa": ("us", "cbsa"),
}
# 2010 files are named by summary level
SUMMARY_LEVELS_2010 = {"state": "040_00", "county": "050_00", "tract": "140_00", "cbsa": "310_m1"}


def boundary_url(layer: str, year: int, state: str | None = None, resolution: str = "500k") -> str:
    scope, name = LAYERS[layer]
    if scope == "state":
        if not state:
            raise ValueError(f"{layer} boundaries are published per state; pass state")
        scope = state
    if year == 2010:
        return f"{GENZ2010_BASE}/gz_2010_{scope}_{SUMMARY_LEVELS_2010[layer]}_{resolution}.zip"
    return f"{GENZ_BASE.format(year=year)}/cb_{year}_{scope}_{name}_{resolution}.zip"


def download(url: str, cache_dir: Path | None = None) -> Path:
    """Fetch `url` into the cache unless it is already there."""
    cache_dir = Path(cache_dir or CACHE_DIR)
    cache_dir.mkdir(parents=True, exist_ok=True)
    dest = cache_dir / url.rsplit("/", 1)[-1]
    if dest.exists() and dest.stat().st_size > 0:
        return dest
    r = requests.get(url, timeout=120)
    r.raise_for_status()
    tmp = dest.with_suffix(dest.suffix + ".part")
    tmp.write_bytes(r.content)
    tmp.replace(dest)
    return dest


def read_boundaries(path: Path) -> gpd.GeoDataFrame:
    gdf = gpd.read_file(path)
    if gdf.crs is None:
        gdf = gdf.set_crs(4269)
    return gdf.to_crs(4326)


def load_boundaries(geography: str, state: str | None = None, year: int = 2019,
                    resolution: str = "500k", cache_dir: Path | None = None) -> gpd.GeoDataFrame:
    """Polygons with GEOID and NAME for states, counties, tracts or CBSAs."""
    if geography == "tract":
        url = boundary_url("tract", year, state=state, resolution=resolution)
    else:
        url = boundary_url(geography, year, resolution=resolution)
    gdf = read_boundaries(download(url, cache_dir))
    if "GEOID" not in gdf.columns and "GEO_ID" in gdf.columns:
        # 2010 files: "0500000US01001" -> "01001"
        gdf["GEOID"] = gdf["GEO_ID"].astype(str).str.split("US").str[-1]
    gdf["GEOID"] = gdf["GEOID"].astype(str)
    if state and geography == "county":
        gdf = gdf[gdf["GEOID"].str[:2] == state]
    keep = [c for c in ["GEOID", "NAME", "ALAND", "AWATER", "geometry"] if c in gdf.columns]
    return gdf[keep].reset_index(drop=True)


def core_based_statistical_areas(year: int = 2019, cache_dir: Path | None = None) -> gpd.GeoDataFrame:
    return load_boundaries("cbsa", year=year, cache_dir=cache_dir)


def metro_area(pattern: str, year: int = 2019, cache_dir: Path | None = None) -> gpd.GeoDataFrame:
    """CBSA polygons whose NAME contains `pattern` ("Dallas", "Austin-Round Rock")."""
    cbsa = core_based_statistical_areas(year, cache_dir)
    hit = cbsa[cbsa["NAME"].str.contains(pattern, regex=False, na=False)]
    if hit.empty:
        raise ValueError(f"No metro area matches {pattern!r}")
    return hit.reset_index(drop=True)


# ---------- joins ----------
def drop_empty_geometry(gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    keep = gdf.geometry.notna() & ~gdf.geometry.is_empty
    return gdf.loc[keep].reset_index(drop=True)


def attach_geometry(table: pd.DataFrame, boundaries: gpd.GeoDataFrame, on: str = "GEOID") -> gpd.GeoDataFrame:
    """Inner join on the key column; rows without a polygon are dropped."""
    geom = boundaries[[on, "geometry"]].drop_duplicates(on)
    merged = geom.merge(table, on=on, how="inner")
    gdf = gpd.GeoDataFrame(merged, geometry="geometry", crs=boundaries.crs)
    cols = [c for c in table.columns if c != "geometry"] + ["geometry"]
    return drop_empty_geometry(gdf[cols])


def filter_within(units: gpd.GeoDataFrame, region: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
    """Units whose polygon lies entirely inside the region."""
    if region.crs is not None and units.crs is not None and region.crs != units.crs:
        region = region.to_crs(units.crs)
    shape = region.geometry.union_all()
    return units.loc[units.geometry.within(shape)].reset_index(drop=True)
