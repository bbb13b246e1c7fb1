# censusviz/pyramids.py
# Population pyramids from sex-by-age tables (ACS B01001, decennial P012 / P12).
from __future__ import annotations
import re

import numpy as np
import pandas as pd

# One entry per table line 3..25 (male) and 27..49 (female); several lines fold
# into the same five-year bracket.
LINE_BRACKETS = [
    "0-4", "5-9", "10-14", "15-19", "15-19", "20-24", "20-24",
    "20-24", "25-29", "30-34", "35-39", "40-44", "45-49", "50-54",
    "55-59", "60-64", "60-64", "65-69", "65-69", "70-74", "75-79",
    "80-84", "85+",
]
AGE_ORDER = list(dict.fromkeys(LINE_BRACKETS))

AGE_SEX_LINES: dict[int, tuple[str, str]] = {}
for i, bracket in enumerate(LINE_BRACKETS):
    AGE_SEX_LINES[3 + i] = ("Male", bracket)
    AGE_SEX_LINES[27 + i] = ("Female", bracket)

TOTAL_LINES = {1, 2, 26}

# B01001_003(E), P012003, P12_003N
CODE_LINE = re.compile(r"^(?:B01001_|P012|P12_)(\d{3})[A-Z]?$")


def line_number(code: str) -> int:
    m = CODE_LINE.match(str(code))
    if not m:
        raise ValueError(f"Not a sex-by-age variable: {code!r}")
    return int(m.group(1))


def label_age_sex(df: pd.DataFrame, code_col: str = "variable") -> pd.DataFrame:
    """
    Add `sex` and `age` from the variable code; totals are dropped.
    Any other code outside the table layout raises ValueError.
    """
    lines = df[code_col].map(line_number)
    unknown = sorted(set(lines) - set(AGE_SEX_LINES) - TOTAL_LINES)
    if unknown:
        raise ValueError(f"Unexpected sex-by-age lines: {unknown}")
    out = df.loc[~lines.isin(TOTAL_LINES)].copy()
    pairs = lines[~lines.isin(TOTAL_LINES)].map(AGE_SEX_LINES)
    out["sex"] = [p[0] for p in pairs]
    out["age"] = pd.Categorical([p[1] for p in pairs], categories=AGE_ORDER, ordered=True)
    return out


def pyramid_table(df: pd.DataFrame, value_col: str = "estimate", summary_col: str = "summary_est",
                  name_col: str = "NAME", signed: bool = True) -> pd.DataFrame:
    """
    name, sex, age, percent: share of each unit's total population per sex/age bracket.
    Male percentages are negated when `signed` so bars extend left.
    """
    labeled = label_age_sex(df)
    grouped = (labeled.groupby([name_col, "sex", "age"], observed=True, as_index=False)
                      .agg(group_est=(value_col, "sum"), total=(summary_col, "first")))
    total = pd.to_numeric(grouped["total"], errors="coerce")
    with np.errstate(divide="ignore", invalid="ignore"):
        pct = np.where(total > 0, 100.0 * grouped["group_est"] / total, np.nan)
    grouped["percent"] = pct
    if signed:
        grouped.loc[grouped["sex"] == "Male", "percent"] *= -1
    out = grouped.rename(columns={name_col: "name"})[["name", "sex", "age", "percent"]]
    return out.sort_values(["name", "sex", "age"]).reset_index(drop=True)


# ---------- name cleaning ----------
ALASKA_SUFFIXES = r" Borough| Census Area| Municipality| City and Borough"
ALASKA_RENAMES = {"Wade Hampton": "Kusilvak"}


def clean_county_names(names: pd.Series, state_name: str) -> pd.Series:
    """'Autauga County, Alabama' -> 'Autauga'; Alaska boroughs/census areas likewise."""
    s = names.astype(str).str.replace(f", {state_name}", "", regex=False)
    s = s.str.replace(r" County$| Parish$", "", regex=True)
    if state_name == "Alaska":
        s = s.str.replace(ALASKA_SUFFIXES, "", regex=True)
        s = s.replace(ALASKA_RENAMES)
    return s.str.strip()
