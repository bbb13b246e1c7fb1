# charts/04_interactive_maps.py
# Interactive choropleths: bachelor's degree share in Dallas County tracts and
# median home value by state.
#   python charts/04_interactive_maps.py
from __future__ import annotations
import sys

from censusviz.census import CensusAPIError, get_acs
from censusviz.output import save_figure
from censusviz.views.choropleth_view import render

YEAR = 2019


def main():
    try:
        dallas = get_acs(geography="tract", variables="DP02_0068P", state="TX", county="Dallas",
                         year=YEAR, geometry=True)
        us_value = get_acs(geography="state", variables="B25077_001", year=YEAR, survey="acs1",
                           geometry=True)
    except CensusAPIError as e:
        print(f"❗ {e}")
        sys.exit(1)

    fig = render(gdf=dallas, palette="Magma", opacity=0.5,
                 title="Bachelor's degree or higher, Dallas County tracts",
                 colorbar_title="% with bachelor's<br>degree")
    paths = save_figure(fig, "dallas_bachelors")
    print(f"✅ Dallas: {len(dallas)} tracts -> {', '.join(map(str, paths))}")

    # albers usa has no Puerto Rico inset
    us_value = us_value[us_value["GEOID"] != "72"]
    fig = render(gdf=us_value, palette="Plasma", opacity=0.5,
                 title=f"Median home value by state, {YEAR}",
                 colorbar_title="Median home value")
    fig.update_traces(hovertemplate="%{hovertext}<br>$%{z:,.0f}<extra></extra>")
    fig.update_geos(scope="usa")
    paths = save_figure(fig, "us_home_value")
    print(f"✅ US: {len(us_value)} states -> {', '.join(map(str, paths))}")


if __name__ == "__main__":
    main()
