# charts/02_pyramids.py
# Population pyramids: every state (1-year ACS), Alabama and Arizona counties
# (5-year ACS) on geographic grids, Alaska boroughs from the 2010 Census.
#   python charts/02_pyramids.py
from __future__ import annotations
import sys

from censusviz.census import CensusAPIError, get_acs, get_decennial
from censusviz.grids import GRIDS
from censusviz.output import save_figure
from censusviz.pyramids import clean_county_names, pyramid_table
from censusviz.views.pyramid_view import render, render_facets

STATES_YEAR = 2016
COUNTIES_YEAR = 2015
ACS_CAPTION = "Data source: {span} ACS"
CENSUS_CAPTION = "Data source: 2010 US Census"


def state_pyramids():
    age = get_acs(geography="state", table="B01001", summary_var="B01001_001",
                  year=STATES_YEAR, survey="acs1")
    age = age[age["NAME"] != "Puerto Rico"]
    return pyramid_table(age)


def county_pyramids(state: str, state_name: str):
    age = get_acs(geography="county", state=state, table="B01001", summary_var="B01001_001",
                  year=COUNTIES_YEAR)
    age["NAME"] = clean_county_names(age["NAME"], state_name)
    return pyramid_table(age)


def alaska_pyramids():
    age = get_decennial(geography="county", state="AK", table="P12", summary_var="P001001", year=2010)
    age["NAME"] = clean_county_names(age["NAME"], "Alaska")
    return pyramid_table(age, value_col="value", summary_col="summary_value")


def main():
    try:
        states = state_pyramids()
        alabama = county_pyramids("AL", "Alabama")
        arizona = county_pyramids("AZ", "Arizona")
        alaska = alaska_pyramids()
    except CensusAPIError as e:
        print(f"❗ {e}")
        sys.exit(1)

    span = f"{COUNTIES_YEAR - 4}-{COUNTIES_YEAR}"
    figures = {
        "pyramid_alabama_state": render(table=states, name="Alabama",
                                        title=f"Alabama, {STATES_YEAR} 1-year ACS"),
        "pyramid_states": render_facets(table=states, title="Demographic structure of US states",
                                        caption=f"Data source: {STATES_YEAR} 1-year ACS"),
        "alabama": render_facets(table=alabama, grid=GRIDS["Alabama"],
                                 title="Demographic structure of Alabama counties",
                                 caption=ACS_CAPTION.format(span=span)),
        "arizona": render_facets(table=arizona, grid=GRIDS["Arizona"],
                                 title="Demographic structure of Arizona counties",
                                 caption=ACS_CAPTION.format(span=span)),
        "alaska": render_facets(table=alaska, grid=GRIDS["Alaska"],
                                title="Demographic structure of Alaska Census areas",
                                caption=CENSUS_CAPTION),
    }
    for stem, fig in figures.items():
        paths = save_figure(fig, stem)
        print(f"✅ {stem} -> {', '.join(map(str, paths))}")

    # names the grids expect but the data did not supply
    for label, table in [("Alabama", alabama), ("Arizona", arizona), ("Alaska", alaska)]:
        missing = sorted(set(GRIDS[label]["name"]) - set(table["name"]))
        if missing:
            print(f"❗ {label}: no data for {', '.join(missing)}")


if __name__ == "__main__":
    main()
