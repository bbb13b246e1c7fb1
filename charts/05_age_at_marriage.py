# charts/05_age_at_marriage.py
# Age at first marriage by state from ACS PUMS: ridgelines ordered by the weighted median.
#   python charts/05_age_at_marriage.py
# All states is several million person records; the download is cached to data/.
from __future__ import annotations
from pathlib import Path
import sys

import pandas as pd

from censusviz.census import CensusAPIError, get_pums
from censusviz.marriage import PUMS_VARIABLES, marriage_profile
from censusviz.output import save_figure
from censusviz.views.ridges_view import render

ROOT = Path(__file__).resolve().parents[1]
CACHE = ROOT / "data" / "age_marst.csv"
YEAR = 2019
STATES = "all"


def load_pums() -> pd.DataFrame:
    if CACHE.exists():
        return pd.read_csv(CACHE, dtype={"ST": str, "PUMA": str})
    pums = get_pums(PUMS_VARIABLES, state=STATES, year=YEAR, survey="acs5")
    CACHE.parent.mkdir(parents=True, exist_ok=True)
    pums.to_csv(CACHE, index=False)
    return pums


def main():
    try:
        pums = load_pums()
    except CensusAPIError as e:
        print(f"❗ {e}")
        sys.exit(1)

    for sex in ["Female", "Male"]:
        profile = marriage_profile(pums, sex=sex)
        if profile.empty:
            print(f"❗ No first marriages for {sex}")
            continue
        fig = render(profile=profile, title=f"Age at first marriage, {sex.lower()}s, {YEAR - 4}-{YEAR} ACS")
        paths = save_figure(fig, f"age_at_marriage_{sex.lower()}", width=800)
        medians = profile.drop_duplicates("ST_label")[["ST_label", "mdn_age"]]
        print(f"✅ {sex}: {len(medians)} states -> {', '.join(map(str, paths))}")
        print(f"   youngest median: {medians.iloc[0]['ST_label']} ({medians.iloc[0]['mdn_age']:.0f}), "
              f"oldest: {medians.iloc[-1]['ST_label']} ({medians.iloc[-1]['mdn_age']:.0f})")


if __name__ == "__main__":
    main()
