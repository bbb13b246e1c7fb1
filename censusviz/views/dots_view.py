# censusviz/views/dots_view.py
from __future__ import annotations
import geopandas as gpd
import plotly.express as px
import plotly.graph_objects as go

from censusviz.util import to_geojson


def render(*, dots: gpd.GeoDataFrame, background: gpd.GeoDataFrame,
           title: str = "Race/ethnicity", dot_size: float = 2.0) -> go.Figure:
    """White tract polygons with one coloured dot per `per` people on top."""
    bg = background.to_crs(4326)
    pts = dots.to_crs(4326)

    fig = go.Figure(go.Choropleth(
        geojson=to_geojson(bg), featureidkey="properties.GEOID",
        locations=bg["GEOID"], z=[0] * len(bg),
        colorscale=[[0, "white"], [1, "white"]], showscale=False,
        marker_line_color="grey", marker_line_width=0.4,
        hoverinfo="skip",
    ))
    palette = px.colors.qualitative.Set1
    for i, g in enumerate(sorted(pts["group"].unique())):
        part = pts[pts["group"] == g]
        fig.add_trace(go.Scattergeo(
            lon=part.geometry.x, lat=part.geometry.y, mode="markers", name=g,
            marker=dict(size=dot_size, color=palette[i % len(palette)]),
            hoverinfo="skip",
        ))
    fig.update_geos(fitbounds="locations", visible=False)
    fig.update_layout(
        legend=dict(title=title, itemsizing="constant"),
        height=700, margin=dict(l=0, r=0, t=0, b=0),
        paper_bgcolor="white",
    )
    return fig
