# censusviz/views/group_map_view.py
from __future__ import annotations
import pandas as pd
import plotly.graph_objects as go

from censusviz.util import finite_rows, full_range, to_geojson

# label shown in the dropdown -> value of the `variable` column
RACE_GROUPS = {
    "Hispanic": "hispanic",
    "White": "white",
    "Black": "black",
    "Native American": "native",
    "Asian": "asian",
}


def group_rows(table: pd.DataFrame, selected_group: str) -> pd.DataFrame:
    """Tracts for one group, without rows whose estimate is missing."""
    if selected_group not in set(table["variable"]):
        raise KeyError(f"No rows for group {selected_group!r}")
    return finite_rows(table[table["variable"] == selected_group], "estimate")


def render(*, table: pd.DataFrame, selected_group: str,
           colorbar_title: str = "% of population", show_outlines: bool = True) -> go.Figure:
    """Choropleth of one group's estimate (viridis, half-transparent fill)."""
    df = group_rows(table, selected_group)
    cmin, cmax = full_range(df["estimate"])

    fig = go.Figure(go.Choropleth(
        geojson=to_geojson(df),
        featureidkey="properties.GEOID",
        locations=df["GEOID"],
        z=df["estimate"],
        colorscale="Viridis",
        zmin=cmin, zmax=cmax,
        marker_opacity=0.5,
        marker_line_width=(0.5 if show_outlines else 0),
        marker_line_color="#777",
        colorbar_title=colorbar_title,
        text=df["estimate"].round(1).astype(str),
        hovertemplate="%{text}<extra></extra>",
    ))
    fig.update_geos(fitbounds="locations", visible=False, projection_type="mercator")
    fig.update_layout(
        height=600,
        margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        geo_bgcolor="rgba(0,0,0,0)",
    )
    return fig
