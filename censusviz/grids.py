# censusviz/grids.py
# Geofacet layouts: one (name, row, col) per facet, row 1 at the top.
from __future__ import annotations
import math

import pandas as pd


def make_grid(names, rows, cols) -> pd.DataFrame:
    if not (len(names) == len(rows) == len(cols)):
        raise ValueError("names, rows and cols must have the same length")
    grid = pd.DataFrame({"name": list(names), "row": list(rows), "col": list(cols)})
    if grid.duplicated(["row", "col"]).any():
        raise ValueError("two facets share a grid cell")
    if grid["name"].duplicated().any():
        raise ValueError("facet names must be unique")
    return grid


def wrap_grid(names, ncol: int | None = None) -> pd.DataFrame:
    """Plain small-multiples layout: names in order, filled row by row."""
    names = list(names)
    ncol = ncol or max(1, math.ceil(math.sqrt(len(names))))
    rows = [i // ncol + 1 for i in range(len(names))]
    cols = [i % ncol + 1 for i in range(len(names))]
    return make_grid(names, rows, cols)


# Alabama counties
ALABAMA_GRID = make_grid(
    names=["Lauderdale", "Limestone", "Madison", "Jackson", "Colbert", "Franklin", "Lawrence", "Morgan", "Marshall", "DeKalb", "Marion", "Winston", "Cullman", "Blount", "Etowah", "Cherokee", "Lamar", "Fayette", "Jefferson", "St. Clair", "Calhoun", "Cleburne", "Walker", "Pickens", "Tuscaloosa", "Bibb", "Talladega", "Clay", "Randolph", "Shelby", "Sumter", "Greene", "Hale", "Chilton", "Coosa", "Tallapoosa", "Chambers", "Perry", "Choctaw", "Marengo", "Wilcox", "Autauga", "Elmore", "Macon", "Lee", "Dallas", "Washington", "Clarke", "Montgomery", "Bullock", "Russell", "Lowndes", "Butler", "Monroe", "Pike", "Barbour", "Crenshaw", "Henry", "Conecuh", "Coffee", "Dale", "Escambia", "Covington", "Houston", "Geneva", "Baldwin", "Mobile"],
    rows=[1, 1, 1, 1, 2, 2, 2, 2, 2, 2, 3, 3, 3, 3, 3, 3, 4, 4, 4, 4, 4, 4, 4, 5, 5, 5, 5, 5, 5, 5, 6, 6, 6, 6, 6, 6, 6, 6, 7, 7, 7, 7, 7, 7, 7, 7, 8, 8, 8, 8, 8, 8, 8, 9, 9, 9, 9, 9, 9, 10, 10, 10, 10, 10, 11, 11, 11],
    cols=[3, 4, 5, 6, 3, 2, 4, 5, 6, 7, 2, 3, 4, 5, 6, 7, 2, 3, 5, 6, 7, 8, 4, 2, 3, 4, 6, 7, 8, 5, 1, 2, 3, 5, 6, 7, 8, 4, 1, 2, 3, 5, 6, 7, 8, 4, 1, 2, 5, 6, 7, 4, 3, 2, 5, 6, 4, 7, 3, 4, 5, 2, 3, 6, 5, 2, 1],
)

# Alaska boroughs and census areas (2010 names, Wade Hampton as Kusilvak)
ALASKA_GRID = make_grid(
    names=["Northwest Arctic", "North Slope", "Nome", "Kusilvak", "Yukon-Koyukuk", "Bethel", "Denali", "Fairbanks North Star", "Dillingham", "Matanuska-Susitna", "Southeast Fairbanks", "Lake and Peninsula", "Kenai Peninsula", "Anchorage", "Valdez-Cordova", "Yakutat", "Bristol Bay", "Aleutians West", "Aleutians East", "Hoonah-Angoon", "Haines", "Skagway", "Kodiak Island", "Sitka", "Juneau", "Prince of Wales-Hyder", "Petersburg", "Wrangell", "Ketchikan Gateway"],
    rows=[1, 1, 2, 3, 3, 4, 4, 4, 5, 5, 5, 6, 6, 6, 6, 6, 6, 7, 7, 7, 7, 7, 7, 8, 8, 9, 9, 10, 10],
    cols=[4, 5, 3, 3, 4, 3, 5, 6, 3, 5, 6, 4, 5, 6, 7, 8, 3, 1, 2, 8, 9, 10, 4, 8, 9, 8, 9, 9, 10],
)

# Arizona counties
ARIZONA_GRID = make_grid(
    names=["Mohave", "Coconino", "Navajo", "Apache", "La Paz", "Yavapai", "Gila", "Yuma", "Maricopa",
           "Pinal", "Graham", "Greenlee", "Pima", "Santa Cruz", "Cochise"],
    rows=[1, 1, 1, 1, 2, 2, 2, 3, 3, 3, 3, 3, 4, 4, 4],
    cols=[1, 2, 3, 4, 1, 2, 3, 1, 2, 3, 4, 5, 2, 3, 4],
)

GRIDS = {"Alabama": ALABAMA_GRID, "Alaska": ALASKA_GRID, "Arizona": ARIZONA_GRID}
