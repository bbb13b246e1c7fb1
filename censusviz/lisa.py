# censusviz/lisa.py
# Local indicators of spatial association over areal units.
from __future__ import annotations
import math
import warnings

import numpy as np
import pandas as pd
from esda.moran import Moran, Moran_Local
from libpysal.weights import Queen, W, lag_spatial
from scipy import stats

HIGH_HIGH = "High-high"
HIGH_LOW = "High-low"
LOW_LOW = "Low-low"
LOW_HIGH = "Low-high"
NOT_SIGNIFICANT = "Not significant"

CLUSTER_LABELS = [HIGH_HIGH, HIGH_LOW, LOW_LOW, LOW_HIGH, NOT_SIGNIFICANT]

CLUSTER_COLORS = {
    HIGH_HIGH: "red",
    HIGH_LOW: "pink",
    LOW_LOW: "blue",
    LOW_HIGH: "lightblue",
    NOT_SIGNIFICANT: "white",
}

LISA_COLUMNS = ["local_i", "exp_i", "var_i", "z_i", "p_i",
                "p_i_sim", "p_i_sim_folded", "skewness", "kurtosis"]


# ---------- classification ----------
def classify_cluster(value: float, local_i: float, p_value: float, alpha: float = 0.05) -> str:
    """
    Cluster type for one unit from its standardized value, local Moran's I and p-value.
    p >= alpha wins over the signs; a zero value or zero statistic is not significant.
    """
    for name, x in (("value", value), ("local_i", local_i), ("p_value", p_value)):
        if not math.isfinite(x):
            raise ValueError(f"{name} must be finite, got {x!r}")
    if not 0.0 <= p_value <= 1.0:
        raise ValueError(f"p_value must be in [0, 1], got {p_value!r}")

    if p_value >= alpha:
        return NOT_SIGNIFICANT
    if value > 0 and local_i > 0:
        return HIGH_HIGH
    if value > 0 and local_i < 0:
        return HIGH_LOW
    if value < 0 and local_i > 0:
        return LOW_LOW
    if value < 0 and local_i < 0:
        return LOW_HIGH
    return NOT_SIGNIFICANT


def classify_clusters(values, local_i, p_values, alpha: float = 0.05) -> np.ndarray:
    """Vectorized classify_cluster; same rules, same errors."""
    v = np.asarray(values, dtype=float)
    li = np.asarray(local_i, dtype=float)
    p = np.asarray(p_values, dtype=float)
    if not (v.shape == li.shape == p.shape):
        raise ValueError("values, local_i and p_values must have the same shape")
    if not (np.isfinite(v).all() and np.isfinite(li).all() and np.isfinite(p).all()):
        raise ValueError("inputs must be finite")
    if ((p < 0) | (p > 1)).any():
        raise ValueError("p_values must be in [0, 1]")

    sig = p < alpha
    return np.select(
        [~sig,
         sig & (v > 0) & (li > 0),
         sig & (v > 0) & (li < 0),
         sig & (v < 0) & (li > 0),
         sig & (v < 0) & (li < 0)],
        [NOT_SIGNIFICANT, HIGH_HIGH, HIGH_LOW, LOW_LOW, LOW_HIGH],
        default=NOT_SIGNIFICANT,
    )


# ---------- weights ----------
def queen_weights(gdf, drop_islands: bool = True):
    """
    Row-standardized queen contiguity weights.
    Returns (gdf, w); units without neighbours are removed first when drop_islands.
    """
    gdf = gdf.reset_index(drop=True)
    with warnings.catch_warnings():
        # libpysal warns about islands and disconnected components
        warnings.simplefilter("ignore", UserWarning)
        w = Queen.from_dataframe(gdf, use_index=False)
        if drop_islands and w.islands:
            gdf = gdf.drop(index=w.islands).reset_index(drop=True)
            w = Queen.from_dataframe(gdf, use_index=False)
    w.transform = "r"
    return gdf, w


def weights_from_neighbors(neighbors: dict) -> W:
    """Row-standardized weights from an explicit {id: [neighbour ids]} mapping."""
    w = W(neighbors, silence_warnings=True)
    w.transform = "r"
    return w


def spatial_lag(w: W, values) -> np.ndarray:
    """Weighted mean of each unit's neighbour values."""
    return lag_spatial(w, np.asarray(values, dtype=float))


def standardize(values) -> np.ndarray:
    """z-scores with the sample standard deviation."""
    x = np.asarray(values, dtype=float)
    sd = x.std(ddof=1)
    if not np.isfinite(sd) or sd == 0:
        raise ValueError("cannot standardize a constant or empty series")
    return (x - x.mean()) / sd


# ---------- statistics ----------
def local_moran(z, w: W, permutations: int = 999, seed: int | None = 1983) -> pd.DataFrame:
    """
    Local Moran's I with conditional permutation inference.

    exp_i, var_i and z_i come from the permutation distribution; p_i is the
    two-sided normal p-value of z_i, p_i_sim the two-sided pseudo p-value and
    p_i_sim_folded the folded one reported by esda.
    """
    if permutations < 1:
        raise ValueError("permutations must be >= 1")
    z = np.asarray(z, dtype=float)
    lisa = Moran_Local(z, w, transformation="r", permutations=permutations,
                       seed=seed, keep_simulations=True)

    sim = np.asarray(lisa.sim, dtype=float)
    axis = 1 if sim.shape[0] == len(z) else 0

    out = pd.DataFrame({
        "local_i": lisa.Is,
        "exp_i": lisa.EI_sim,
        "var_i": lisa.VI_sim,
        "z_i": lisa.z_sim,
    })
    out["p_i"] = 2.0 * stats.norm.sf(np.abs(out["z_i"]))
    out["p_i_sim_folded"] = lisa.p_sim
    out["p_i_sim"] = np.minimum(1.0, 2.0 * lisa.p_sim)
    out["skewness"] = stats.skew(sim, axis=axis)
    out["kurtosis"] = stats.kurtosis(sim, axis=axis)
    return out[LISA_COLUMNS]


def global_moran(values, w: W, permutations: int = 999, seed: int | None = 1983) -> dict:
    # Moran draws its permutations from the global numpy RNG
    if seed is not None:
        np.random.seed(seed)
    mi = Moran(np.asarray(values, dtype=float), w, transformation="r", permutations=permutations)
    return {"I": float(mi.I), "expected_I": float(mi.EI), "p_sim": float(mi.p_sim), "z_sim": float(mi.z_sim)}


def lisa_clusters(gdf, value_col: str = "estimate", id_col: str = "GEOID", permutations: int = 999,
                  seed: int | None = 1983, alpha: float = 0.05):
    """
    Full pipeline over a polygon GeoDataFrame:
    drop rows without a value/geometry -> queen weights -> z-score -> lag -> local Moran -> labels.

    Derived columns are joined back on `id_col`. Returns (clusters, w).
    """
    units = gdf[[id_col, value_col, "geometry"]].copy()
    units = units[units.geometry.notna() & ~units.geometry.is_empty]
    units = units[np.isfinite(pd.to_numeric(units[value_col], errors="coerce"))]
    if units[id_col].duplicated().any():
        raise ValueError(f"{id_col} must be unique per unit")

    units, w = queen_weights(units)
    values = units[value_col].to_numpy(dtype=float)

    stats_tbl = pd.DataFrame({id_col: units[id_col].to_numpy()})
    stats_tbl["lag_estimate"] = spatial_lag(w, values)
    stats_tbl["scaled_estimate"] = standardize(values)
    stats_tbl["lagged_estimate"] = spatial_lag(w, stats_tbl["scaled_estimate"])

    lisa = local_moran(stats_tbl["scaled_estimate"], w, permutations=permutations, seed=seed)
    lisa.insert(0, id_col, stats_tbl[id_col].to_numpy())
    stats_tbl = stats_tbl.merge(lisa, on=id_col, how="inner", validate="one_to_one")

    stats_tbl["lisa_cluster"] = classify_clusters(
        stats_tbl["scaled_estimate"], stats_tbl["local_i"], stats_tbl["p_i"], alpha=alpha)

    out = units.merge(stats_tbl, on=id_col, how="inner", validate="one_to_one")
    return out, w
