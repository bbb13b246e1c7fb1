# censusviz/dots.py
# Dot-density: one randomly placed dot per `per` people, sampled inside each polygon.
from __future__ import annotations
import geopandas as gpd
import numpy as np
import pandas as pd
from tqdm import tqdm


def dot_counts(values, per: int = 100) -> np.ndarray:
    v = pd.to_numeric(pd.Series(values), errors="coerce").fillna(0).to_numpy(dtype=float)
    return np.floor(np.clip(v, 0, None) / per).astype(int)


def dot_density(gdf: gpd.GeoDataFrame, group_col: str = "variable", value_col: str = "estimate",
                per: int = 100, crs: int = 26915, seed: int | None = 1983) -> gpd.GeoDataFrame:
    """
    Points (column `group`) in the projected `crs`, shuffled so no group is drawn on top.
    Sampling happens in projected space so dots are uniform by area.
    """
    rng = np.random.default_rng(seed)
    frames = []
    groups = list(dict.fromkeys(gdf[group_col]))
    for g in tqdm(groups, desc="dots", leave=False):
        part = gdf[gdf[group_col] == g].to_crs(crs)
        n = dot_counts(part[value_col], per)
        part, n = part[n > 0], n[n > 0]
        if part.empty:
            continue
        pts = part.geometry.sample_points(size=n, rng=rng).explode(index_parts=False)
        frames.append(gpd.GeoDataFrame({"group": [g] * len(pts)}, geometry=pts.to_numpy(), crs=crs))
    if not frames:
        return gpd.GeoDataFrame({"group": []}, geometry=[], crs=crs)
    dots = pd.concat(frames, ignore_index=True)
    order = rng.permutation(len(dots))
    return gpd.GeoDataFrame(dots.iloc[order].reset_index(drop=True), geometry="geometry", crs=crs)
