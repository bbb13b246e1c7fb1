# charts/01_beeswarm.py
# Median household income by the largest race/ethnic group in each metro tract.
#   python charts/01_beeswarm.py
from __future__ import annotations
import sys

import pandas as pd

from censusviz.beeswarm import MEDIAN_INCOME, RACE_VARIABLES, largest_group
from censusviz.census import CensusAPIError, get_acs
from censusviz.geo import filter_within, metro_area
from censusviz.output import save_figure
from censusviz.views.beeswarm_view import render

YEAR = 2019
# (label, state, CBSA name pattern)
METROS = [
    ("Sacramento", "CA", "Sacramento"),
    ("New Orleans", "LA", "New Orleans"),
    ("Austin", "TX", "Austin"),
]


def load_metro(state: str, pattern: str) -> pd.DataFrame:
    tracts = get_acs(geography="tract", variables=RACE_VARIABLES, state=state,
                     year=YEAR, summary_var=MEDIAN_INCOME, geometry=True)
    tracts = filter_within(tracts, metro_area(pattern, year=YEAR))
    return largest_group(tracts)


def main():
    for city, state, pattern in METROS:
        try:
            df = load_metro(state, pattern)
        except CensusAPIError as e:
            print(f"❗ {city}: {e}")
            sys.exit(1)

        fig = render(
            df=df,
            title="Household income distribution by largest racial/ethnic group",
            subtitle=f"Census tracts, {city} metropolitan area",
            caption=f"Data source: {YEAR - 4}-{YEAR} ACS",
        )
        stem = "beeswarm_" + city.lower().replace(" ", "_")
        paths = save_figure(fig, stem, width=900)
        print(f"✅ {city}: {df['GEOID'].nunique()} tracts -> {', '.join(map(str, paths))}")


if __name__ == "__main__":
    main()
