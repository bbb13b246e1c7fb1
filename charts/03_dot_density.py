# charts/03_dot_density.py
# One dot per 100 people by race/ethnicity, Hennepin County tracts.
#   python charts/03_dot_density.py
from __future__ import annotations
import sys

from censusviz.census import CensusAPIError, get_acs
from censusviz.dots import dot_density
from censusviz.output import save_figure
from censusviz.util import safe_ratio
from censusviz.views.choropleth_view import render as render_choropleth
from censusviz.views.dots_view import render

YEAR = 2019
STATE, COUNTY = "MN", "Hennepin"
VARIABLES = {
    "White": "B03002_003",
    "Black": "B03002_004",
    "Native": "B03002_005",
    "Asian": "B03002_006",
    "Hispanic": "B03002_012",
}
TOTAL = "B03002_001"
PER = 100
UTM_15N = 26915


def main():
    try:
        race = get_acs(geography="tract", variables=VARIABLES, state=STATE, county=COUNTY,
                       year=YEAR, summary_var=TOTAL, geometry=True)
    except CensusAPIError as e:
        print(f"❗ {e}")
        sys.exit(1)
    race["percent"] = 100 * safe_ratio(race["estimate"], race["summary_est"]).to_numpy()

    dots = dot_density(race, per=PER, crs=UTM_15N)
    background = race[race["variable"] == "White"]
    fig = render(dots=dots, background=background)
    paths = save_figure(fig, "hennepin_dots", width=900, height=900)
    print(f"✅ {len(dots):,} dots ({PER} people each) -> {', '.join(map(str, paths))}")
    print("   " + ", ".join(f"{g}={n:,}" for g, n in dots["group"].value_counts().items()))

    # share maps, one per group
    for group in VARIABLES:
        part = race[race["variable"] == group]
        fig = render_choropleth(gdf=part, column="percent", palette="Viridis",
                                title=f"Percent {group}, Hennepin County", colorbar_title="%")
        save_figure(fig, f"hennepin_{group.lower()}", png=False)
    print(f"✅ Wrote {len(VARIABLES)} share maps to html/")


if __name__ == "__main__":
    main()
