# censusviz/beeswarm.py
from __future__ import annotations
import numpy as np
import pandas as pd
from scipy.stats import gaussian_kde

RACE_VARIABLES = {
    "White": "B03002_003",
    "Black": "B03002_004",
    "Native American": "B03002_005",
    "Asian": "B03002_006",
    "Pacific Islander": "B03002_007",
    "Hispanic": "B03002_012",
}
MEDIAN_INCOME = "B19013_001"


def largest_group(df: pd.DataFrame, id_col: str = "GEOID", value_col: str = "estimate") -> pd.DataFrame:
    """Rows holding each unit's largest group; ties are all kept and zero counts dropped."""
    d = df.copy()
    d[value_col] = pd.to_numeric(d[value_col], errors="coerce")
    top = d.groupby(id_col)[value_col].transform("max")
    out = d[(d[value_col] == top) & (d[value_col] != 0)]
    return out.reset_index(drop=True)


def van_der_corput(n: int, base: int = 2) -> np.ndarray:
    """First n terms of the van der Corput low-discrepancy sequence in [0, 1)."""
    seq = np.zeros(n)
    for i in range(n):
        k, denom, x = i + 1, 1.0, 0.0
        while k:
            k, rem = divmod(k, base)
            denom *= base
            x += rem / denom
        seq[i] = x
    return seq


def quasirandom_offsets(values, width: float = 0.4) -> np.ndarray:
    """
    Sideways offsets for a beeswarm: points in dense regions spread wider.
    Offsets follow the values' rank order through a van der Corput sequence,
    scaled by the kernel density at each value.
    """
    v = np.asarray(values, dtype=float)
    n = len(v)
    if n == 0:
        return np.zeros(0)
    if n < 3 or np.nanstd(v) == 0:
        dens = np.ones(n)
    else:
        dens = gaussian_kde(v)(v)
        dens = dens / dens.max()
    order = np.argsort(v, kind="stable")
    vdc = np.empty(n)
    vdc[order] = van_der_corput(n)
    return (vdc - 0.5) * 2.0 * width * dens
