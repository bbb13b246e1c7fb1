# censusviz/marriage.py
# Age at first marriage from ACS PUMS person records.
from __future__ import annotations
import numpy as np
import pandas as pd

PUMS_VARIABLES = ["PUMA", "AGEP", "SEX", "MARHM", "MARHT"]


def first_marriages(pums: pd.DataFrame) -> pd.DataFrame:
    """People married in the past 12 months who have been married once."""
    marhm = pd.to_numeric(pums["MARHM"], errors="coerce")
    marht = pd.to_numeric(pums["MARHT"], errors="coerce")
    return pums[(marhm == 1) & (marht == 1)].copy()


def weighted_median(values, weights) -> float:
    v = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    keep = np.isfinite(v) & np.isfinite(w) & (w > 0)
    v, w = v[keep], w[keep]
    if len(v) == 0:
        return float("nan")
    order = np.argsort(v, kind="stable")
    v, w = v[order], w[order]
    cum = np.cumsum(w)
    half = cum[-1] / 2.0
    i = int(np.searchsorted(cum, half))
    # exactly half the weight below: average with the next value, like median() on expanded rows
    if np.isclose(cum[i], half) and i + 1 < len(v):
        return float((v[i] + v[i + 1]) / 2.0)
    return float(v[i])


def median_age(df: pd.DataFrame, by=("ST_label", "SEX_label"), age_col: str = "AGEP",
               weight_col: str = "PWGTP") -> pd.DataFrame:
    rows = []
    for keys, g in df.groupby(list(by)):
        keys = keys if isinstance(keys, tuple) else (keys,)
        rows.append(dict(zip(by, keys), mdn_age=weighted_median(g[age_col], g[weight_col])))
    return pd.DataFrame(rows, columns=[*by, "mdn_age"])


def age_shares(df: pd.DataFrame, by=("ST_label", "SEX_label"), age_col: str = "AGEP",
               weight_col: str = "PWGTP") -> pd.DataFrame:
    """Weighted share of first marriages at each age within each group."""
    by = list(by)
    n = (df.groupby(by + [age_col], as_index=False)[weight_col].sum()
           .rename(columns={weight_col: "n_age"}))
    n["prop_age"] = n["n_age"] / n.groupby(by)["n_age"].transform("sum")
    return n


def marriage_profile(pums: pd.DataFrame, sex: str = "Female") -> pd.DataFrame:
    """Age shares for one sex joined to the state medians, ordered by median age."""
    fm = first_marriages(pums)
    shares = age_shares(fm)
    medians = median_age(fm)
    merged = shares.merge(medians, on=["ST_label", "SEX_label"], how="left")
    merged = merged[merged["SEX_label"] == sex]
    return merged.sort_values(["mdn_age", "ST_label", "AGEP"]).reset_index(drop=True)
