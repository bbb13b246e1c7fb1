# censusviz/views/choropleth_view.py
from __future__ import annotations
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from censusviz.util import finite_rows, full_range, robust_range, to_geojson


def render(*, gdf: pd.DataFrame, column: str = "estimate", palette: str = "Magma",
           title: str = "", colorbar_title: str = "", opacity: float = 0.5,
           robust: bool = False, hover_name: str | None = "NAME") -> go.Figure:
    """
    Continuous choropleth keyed by GEOID. Rows with a non-finite value are left
    off the map. `robust` clips the colour range to the 5th-95th percentile.
    """
    df = finite_rows(gdf, column)
    cmin, cmax = robust_range(df[column]) if robust else full_range(df[column])

    fig = px.choropleth(
        df.drop(columns="geometry"),
        geojson=to_geojson(df),
        locations="GEOID",
        featureidkey="properties.GEOID",
        color=column,
        color_continuous_scale=palette,
        range_color=(cmin, cmax),
        hover_name=hover_name if hover_name in df.columns else None,
        hover_data={"GEOID": False, column: ":,.1f"},
        labels={column: colorbar_title or column},
    )
    fig.update_traces(marker_line_width=0.5, marker_line_color="#777", marker_opacity=opacity)
    fig.update_geos(fitbounds="locations", visible=False)
    fig.update_layout(
        title=title or None,
        height=600,
        margin=dict(l=0, r=0, t=36 if title else 0, b=0),
        paper_bgcolor="rgba(0,0,0,0)",
        geo_bgcolor="rgba(0,0,0,0)",
    )
    return fig
