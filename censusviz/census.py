# censusviz/census.py
# Thin client for api.census.gov returning tidy (long) tables:
#   GEOID, NAME, variable, estimate, moe [, summary_est, summary_moe]
from __future__ import annotations
from functools import lru_cache
from typing import Iterable, Mapping
import os
import re

import numpy as np
import pandas as pd
import requests
from tqdm import tqdm

from censusviz.util import ordered_unique

API_BASE = "https://api.census.gov/data"
TIMEOUT = 60

# the API refuses more than 50 fields per call; E + M per code plus NAME
MAX_CODES_PER_CALL = 24

# ACS annotation values that stand in for "no estimate"
SENTINELS = {-999999999, -888888888, -666666666, -555555555, -333333333, -222222222}

STATE_FIPS = {
    "AL": "01", "AK": "02", "AZ": "04", "AR": "05", "CA": "06", "CO": "08", "CT": "09",
    "DE": "10", "DC": "11", "FL": "12", "GA": "13", "HI": "15", "ID": "16", "IL": "17",
    "IN": "18", "IA": "19", "KS": "20", "KY": "21", "LA": "22", "ME": "23", "MD": "24",
    "MA": "25", "MI": "26", "MN": "27", "MS": "28", "MO": "29", "MT": "30", "NE": "31",
    "NV": "32", "NH": "33", "NJ": "34", "NM": "35", "NY": "36", "NC": "37", "ND": "38",
    "OH": "39", "OK": "40", "OR": "41", "PA": "42", "RI": "44", "SC": "45", "SD": "46",
    "TN": "47", "TX": "48", "UT": "49", "VT": "50", "VA": "51", "WA": "53", "WV": "54",
    "WI": "55", "WY": "56", "PR": "72",
}

STATE_NAMES = {
    "01": "Alabama", "02": "Alaska", "04": "Arizona", "05": "Arkansas", "06": "California",
    "08": "Colorado", "09": "Connecticut", "10": "Delaware", "11": "District of Columbia",
    "12": "Florida", "13": "Georgia", "15": "Hawaii", "16": "Idaho", "17": "Illinois",
    "18": "Indiana", "19": "Iowa", "20": "Kansas", "21": "Kentucky", "22": "Louisiana",
    "23": "Maine", "24": "Maryland", "25": "Massachusetts", "26": "Michigan", "27": "Minnesota",
    "28": "Mississippi", "29": "Missouri", "30": "Montana", "31": "Nebraska", "32": "Nevada",
    "33": "New Hampshire", "34": "New Jersey", "35": "New Mexico", "36": "New York",
    "37": "North Carolina", "38": "North Dakota", "39": "Ohio", "40": "Oklahoma", "41": "Oregon",
    "42": "Pennsylvania", "44": "Rhode Island", "45": "South Carolina", "46": "South Dakota",
    "47": "Tennessee", "48": "Texas", "49": "Utah", "50": "Vermont", "51": "Virginia",
    "53": "Washington", "54": "West Virginia", "55": "Wisconsin", "56": "Wyoming",
    "72": "Puerto Rico",
}

# GEOID = concatenation of these columns, in this order
GEO_PARTS = {
    "us": ["us"],
    "state": ["state"],
    "county": ["state", "county"],
    "tract": ["state", "county", "tract"],
}


class CensusAPIError(RuntimeError):
    pass


# ---------- request helpers ----------
def api_key(key: str | None = None) -> str | None:
    return key or os.getenv("CENSUS_API_KEY") or None


def census_get(url: str, params: dict, key: str | None = None) -> pd.DataFrame:
    """One API call -> DataFrame of strings (first row is the header)."""
    params = dict(params)
    k = api_key(key)
    if k:
        params["key"] = k

    r = requests.get(url, params=params, timeout=TIMEOUT)
    if r.status_code != 200:
        raise CensusAPIError(f"Census API returned {r.status_code} for {url}: {r.text[:300].strip()}")
    try:
        data = r.json()
    except ValueError as exc:
        # an invalid key comes back as an HTML page with status 200
        raise CensusAPIError(f"Census API returned a non-JSON body for {url} (check CENSUS_API_KEY)") from exc
    if not data or len(data) < 2:
        return pd.DataFrame(columns=data[0] if data else [])
    return pd.DataFrame(data[1:], columns=data[0])


def state_fips(state) -> str:
    s = str(state).strip()
    if s.isdigit():
        return s.zfill(2)
    if s.upper() in STATE_FIPS:
        return STATE_FIPS[s.upper()]
    by_name = {v.lower(): k for k, v in STATE_NAMES.items()}
    if s.lower() in by_name:
        return by_name[s.lower()]
    raise ValueError(f"Unknown state: {state!r}")


@lru_cache(maxsize=64)
def _county_table(st: str, year: int, key: str | None) -> pd.DataFrame:
    url = f"{API_BASE}/{year}/acs/acs5"
    return census_get(url, {"get": "NAME", "for": "county:*", "in": f"state:{st}"}, key)


def county_fips(state, counties, year: int = 2019, key: str | None = None) -> list[str]:
    """County names ("Hennepin", "St. Clair County") or FIPS codes -> 3-digit codes."""
    st = state_fips(state)
    if isinstance(counties, str):
        counties = [counties]
    out = []
    table = None
    for c in counties:
        c = str(c).strip()
        if c.isdigit():
            out.append(c.zfill(3))
            continue
        if table is None:
            table = _county_table(st, year, api_key(key))
            table = table.assign(short=table["NAME"].str.split(",").str[0].str.lower())
        want = c.lower()
        hit = table[(table["short"] == want) | table["short"].str.fullmatch(re.escape(want) + r"\s+\w+.*")]
        if hit.empty:
            raise ValueError(f"No county named {c!r} in state {st}")
        out.append(hit["county"].iloc[0])
    return out


def _geo_params(geography: str, st: str | None, county: str | None) -> dict:
    if geography == "us":
        return {"for": "us:1"}
    if geography == "state":
        return {"for": f"state:{st or '*'}"}
    if geography == "county":
        p = {"for": f"county:{county or '*'}"}
        if st: p["in"] = f"state:{st}"
        return p
    if geography == "tract":
        if not st:
            raise ValueError("tract geography needs a state")
        return {"for": "tract:*", "in": f"state:{st} county:{county or '*'}"}
    raise ValueError(f"Unsupported geography: {geography!r}")


def _geoid(df: pd.DataFrame, geography: str) -> pd.Series:
    parts = GEO_PARTS[geography]
    out = df[parts[0]].astype(str)
    for p in parts[1:]:
        out = out + df[p].astype(str)
    return out


def _numeric(s: pd.Series) -> pd.Series:
    v = pd.to_numeric(s, errors="coerce")
    return v.where(~v.isin(SENTINELS), np.nan)


# detailed (B01001_003), profile (DP05_0071P) and subject (S1701_C01_001) codes
ACS_CODE = re.compile(r"^([A-Z]+\d+[A-Z]?(?:_C\d+)?_\d+P?)(E|M)?$")


def base_code(code: str) -> str:
    """B01001_003E -> B01001_003, DP05_0071PE -> DP05_0071P; other codes unchanged."""
    m = ACS_CODE.match(code)
    return m.group(1) if m else code


def _normalize_variables(variables) -> tuple[list[str], dict[str, str]]:
    """-> (codes, code->display name). ACS codes are stored without the E/M suffix."""
    if variables is None:
        return [], {}
    if isinstance(variables, str):
        variables = [variables]
    if isinstance(variables, Mapping):
        pairs = [(str(code), str(name)) for name, code in variables.items()]
    else:
        pairs = [(str(code), None) for code in variables]
    codes, names = [], {}
    for code, name in pairs:
        base = base_code(code)
        codes.append(base)
        names[base] = name or base
    return ordered_unique(codes), names


def acs_dataset(codes: Iterable[str], survey: str) -> str:
    prefixes = set()
    for c in codes:
        if c.startswith("DP"):
            prefixes.add("profile")
        elif c.startswith("S"):
            prefixes.add("subject")
        else:
            prefixes.add("")
    if len(prefixes) > 1:
        raise ValueError("Mix detailed, profile and subject variables in separate calls")
    sub = prefixes.pop() if prefixes else ""
    return f"acs/{survey}/{sub}".rstrip("/")


# ---------- ACS ----------
def _fetch_wide(url: str, fields: list[str], geography: str, st: str | None,
                counties: list[str] | None, key: str | None) -> pd.DataFrame:
    """Fetch `fields` for every requested county (or the whole state) and stack the results."""
    targets = counties if counties else [None]
    frames = []
    it = tqdm(targets, desc="counties", leave=False) if len(targets) > 1 else targets
    for c in it:
        params = {"get": ",".join(["NAME"] + fields)}
        params.update(_geo_params(geography, st, c))
        frames.append(census_get(url, params, key))
    wide = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()
    if wide.empty:
        return wide
    wide["GEOID"] = _geoid(wide, geography)
    return wide


def _fetch_codes(url: str, codes: list[str], suffixes: tuple[str, ...], geography: str,
                 st: str | None, counties: list[str] | None, key: str | None) -> pd.DataFrame:
    """Chunk `codes` under the per-call field limit and merge the chunks on GEOID."""
    merged = None
    for i in range(0, len(codes), MAX_CODES_PER_CALL):
        chunk = codes[i:i + MAX_CODES_PER_CALL]
        fields = [c + s for c in chunk for s in suffixes]
        wide = _fetch_wide(url, fields, geography, st, counties, key)
        if wide.empty:
            continue
        keep = ["GEOID", "NAME"] + fields
        wide = wide[keep]
        merged = wide if merged is None else merged.merge(wide.drop(columns="NAME"), on="GEOID", how="outer")
    return merged if merged is not None else pd.DataFrame(columns=["GEOID", "NAME"])


def _group_codes(url: str, table: str, key: str | None) -> list[str]:
    """Variable codes belonging to a table, from the dataset's variables.json."""
    vars_ = load_variables_url(url, key)
    members = vars_.loc[vars_["group"] == table, "name"]
    codes = []
    for name in members:
        if ACS_CODE.match(name):
            # estimates only; the matching M column is requested alongside
            if name.endswith("E"):
                codes.append(base_code(name))
        elif not name.endswith("A"):
            codes.append(name)
    return sorted(ordered_unique(codes))


def get_acs(geography: str, variables=None, table: str | None = None, state=None, county=None,
            year: int = 2019, survey: str = "acs5", summary_var: str | None = None,
            geometry: bool = False, key: str | None = None) -> pd.DataFrame:
    """
    ACS estimates in long form.

    `variables` is a list of codes ("B01002_001") or a {name: code} mapping; with
    a mapping the `variable` column carries the name. `table` fetches every
    variable of a table ("B01001"). With `geometry=True` a GeoDataFrame joined
    on GEOID is returned and rows without a boundary are dropped.
    """
    codes, names = _normalize_variables(variables)
    st = state_fips(state) if state is not None else None
    counties = county_fips(st, county, year=year, key=key) if county is not None else None

    probe = codes or [table or ""]
    url = f"{API_BASE}/{year}/{acs_dataset(probe, survey)}"
    if table:
        table_codes = _group_codes(url, table, key)
        codes = ordered_unique(codes + table_codes)
        names.update({c: c for c in table_codes if c not in names})
    if not codes:
        raise ValueError("Pass variables or table")

    sv = _normalize_variables([summary_var])[0][0] if summary_var else None
    all_codes = codes + ([sv] if sv and sv not in codes else [])
    wide = _fetch_codes(url, all_codes, ("E", "M"), geography, st, counties, key)

    long = _to_long(wide, codes, names, ("E", "M"), ("estimate", "moe"))
    if sv:
        summ = wide[["GEOID", sv + "E", sv + "M"]].rename(columns={sv + "E": "summary_est", sv + "M": "summary_moe"})
        summ["summary_est"] = _numeric(summ["summary_est"])
        summ["summary_moe"] = _numeric(summ["summary_moe"])
        long = long.merge(summ, on="GEOID", how="left")

    if geometry:
        from censusviz.geo import attach_geometry, load_boundaries
        bounds = load_boundaries(geography, state=st, year=year)
        long = attach_geometry(long, bounds)
    return long


def _to_long(wide: pd.DataFrame, codes: list[str], names: dict[str, str],
             suffixes: tuple[str, ...], value_names: tuple[str, ...]) -> pd.DataFrame:
    rows = []
    for code in codes:
        part = pd.DataFrame({"GEOID": wide["GEOID"], "NAME": wide["NAME"], "variable": names.get(code, code)})
        for suf, col in zip(suffixes, value_names):
            src = code + suf
            part[col] = _numeric(wide[src]) if src in wide.columns else np.nan
        rows.append(part)
    if not rows:
        return pd.DataFrame(columns=["GEOID", "NAME", "variable", *value_names])
    out = pd.concat(rows, ignore_index=True)
    return out.sort_values(["GEOID"], kind="stable").reset_index(drop=True)


# ---------- decennial ----------
def get_decennial(geography: str, variables=None, table: str | None = None, state=None, county=None,
                  year: int = 2010, summary_var: str | None = None, geometry: bool = False,
                  key: str | None = None, sumfile: str | None = None) -> pd.DataFrame:
    """Decennial counts in long form: GEOID, NAME, variable, value [, summary_value]."""
    codes, names = _normalize_variables(variables)
    st = state_fips(state) if state is not None else None
    counties = county_fips(st, county, key=key) if county is not None else None
    sumfile = sumfile or ("sf1" if year <= 2010 else "dhc")
    url = f"{API_BASE}/{year}/dec/{sumfile}"
    if table:
        table_codes = _group_codes(url, table, key)
        codes = ordered_unique(codes + table_codes)
        names.update({c: c for c in table_codes if c not in names})
    if not codes:
        raise ValueError("Pass variables or table")

    all_codes = codes + ([summary_var] if summary_var and summary_var not in codes else [])
    wide = _fetch_codes(url, all_codes, ("",), geography, st, counties, key)
    long = _to_long(wide, codes, names, ("",), ("value",))
    if summary_var:
        summ = wide[["GEOID", summary_var]].rename(columns={summary_var: "summary_value"})
        summ["summary_value"] = _numeric(summ["summary_value"])
        long = long.merge(summ, on="GEOID", how="left")
    if geometry:
        from censusviz.geo import attach_geometry, load_boundaries
        long = attach_geometry(long, load_boundaries(geography, state=st, year=year))
    return long


# ---------- PUMS ----------
SEX_LABELS = {1: "Male", 2: "Female"}


def get_pums(variables: list[str], state="all", year: int = 2019, survey: str = "acs5",
             key: str | None = None) -> pd.DataFrame:
    """Person records; PWGTP is always included. Adds ST, ST_label and SEX_label."""
    url = f"{API_BASE}/{year}/acs/{survey}/pums"
    fields = ordered_unique([v for v in variables if v != "ST"] + ["PWGTP"])
    if state == "all" or state is None:
        # Puerto Rico PUMS is a separate dataset (pumspr)
        states = [s for s in sorted(STATE_NAMES) if s != "72"]
    else:
        states = [state_fips(s) for s in ([state] if isinstance(state, (str, int)) else state)]

    frames = []
    for st in tqdm(states, desc="pums", leave=False):
        df = census_get(url, {"get": ",".join(fields), "for": f"state:{st}"}, key)
        frames.append(df)
    df = pd.concat(frames, ignore_index=True)
    df = df.rename(columns={"state": "ST"})
    for c in fields:
        if c in df.columns:
            num = pd.to_numeric(df[c], errors="coerce")
            if num.notna().all():
                df[c] = num
    df["ST"] = df["ST"].astype(str).str.zfill(2)
    df["ST_label"] = df["ST"].map(STATE_NAMES)
    if "SEX" in df.columns:
        df["SEX_label"] = pd.to_numeric(df["SEX"], errors="coerce").map(SEX_LABELS)
    return df


# ---------- variable dictionary ----------
@lru_cache(maxsize=16)
def _variables_json(url: str, key: str | None) -> tuple:
    params = {"key": key} if key else {}
    r = requests.get(f"{url}/variables.json", params=params, timeout=TIMEOUT)
    r.raise_for_status()
    payload = r.json().get("variables", {})
    return tuple((name, v.get("label", ""), v.get("concept", ""), v.get("group", ""))
                 for name, v in payload.items())


def load_variables_url(url: str, key: str | None = None) -> pd.DataFrame:
    rows = _variables_json(url, api_key(key))
    df = pd.DataFrame(list(rows), columns=["name", "label", "concept", "group"])
    return df.sort_values("name").reset_index(drop=True)


def load_variables(year: int, dataset: str = "acs5", key: str | None = None) -> pd.DataFrame:
    """Variable dictionary for "acs1", "acs5", "acs5/profile", "sf1", ..."""
    if dataset.startswith(("acs1", "acs5")):
        url = f"{API_BASE}/{year}/acs/{dataset}"
    else:
        url = f"{API_BASE}/{year}/dec/{dataset}"
    return load_variables_url(url, key)
