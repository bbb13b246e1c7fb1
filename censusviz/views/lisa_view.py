# censusviz/views/lisa_view.py
# Moran scatter (value vs. spatial lag) and cluster map side by side, keyed by GEOID.
from __future__ import annotations
from typing import Iterable
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from censusviz.lisa import CLUSTER_COLORS, CLUSTER_LABELS
from censusviz.util import to_geojson

HIGHLIGHT = "cyan"


def _hover(df: pd.DataFrame) -> pd.Series:
    return (
        "Tract " + df["GEOID"].astype(str) +
        "<br>" + df["lisa_cluster"].astype(str) +
        "<br>z-score: " + df["scaled_estimate"].round(2).astype(str) +
        "<br>lag: " + df["lagged_estimate"].round(2).astype(str)
    )


def render(clusters: pd.DataFrame, selected: Iterable[str] = (), *,
           x_label: str = "Median age (z-score)",
           y_label: str = "Spatial lag of median age (z-score)",
           title: str | None = None) -> go.Figure:
    """
    Combined figure; `selected` GEOIDs are drawn cyan in both panels.
    Every trace carries GEOID in customdata (scatter) or locations (map) so a
    selection in either panel maps back to the same keys.
    """
    df = clusters.copy()
    df["GEOID"] = df["GEOID"].astype(str)
    df["hover"] = _hover(df)
    geo = to_geojson(df)
    picked = set(map(str, selected))

    fig = make_subplots(
        rows=1, cols=2,
        column_widths=[0.45, 0.55],
        specs=[[{"type": "xy"}, {"type": "geo"}]],
        horizontal_spacing=0.04,
    )

    for label in CLUSTER_LABELS:
        sub = df[df["lisa_cluster"] == label]
        if sub.empty:
            continue
        color = CLUSTER_COLORS[label]
        fig.add_trace(go.Scatter(
            x=sub["scaled_estimate"], y=sub["lagged_estimate"],
            mode="markers", name=label, legendgroup=label,
            marker=dict(color=color, size=8, line=dict(color="black", width=1)),
            customdata=sub[["GEOID"]].to_numpy(),
            text=sub["hover"], hovertemplate="%{text}<extra></extra>",
        ), row=1, col=1)
        fig.add_trace(go.Choropleth(
            geojson=geo, featureidkey="properties.GEOID",
            locations=sub["GEOID"], z=[1] * len(sub),
            colorscale=[[0, color], [1, color]], showscale=False,
            name=label, legendgroup=label, showlegend=False,
            marker_line_width=0.3, marker_line_color="#555",
            text=sub["hover"], hovertemplate="%{text}<extra></extra>",
        ), row=1, col=2)

    hi = df[df["GEOID"].isin(picked)]
    if not hi.empty:
        fig.add_trace(go.Scatter(
            x=hi["scaled_estimate"], y=hi["lagged_estimate"],
            mode="markers", name="Selected",
            marker=dict(color=HIGHLIGHT, size=9, line=dict(color="black", width=1)),
            customdata=hi[["GEOID"]].to_numpy(),
            text=hi["hover"], hovertemplate="%{text}<extra></extra>",
        ), row=1, col=1)
        fig.add_trace(go.Choropleth(
            geojson=geo, featureidkey="properties.GEOID",
            locations=hi["GEOID"], z=[1] * len(hi),
            colorscale=[[0, HIGHLIGHT], [1, HIGHLIGHT]], showscale=False,
            name="Selected", showlegend=False,
            marker_line_width=0.3, marker_line_color="#555",
            text=hi["hover"], hovertemplate="%{text}<extra></extra>",
        ), row=1, col=2)

    # zero lines, scatter panel only
    for axis_line in (dict(x0=0, x1=1, y0=0, y1=0, xref="x domain", yref="y"),
                      dict(x0=0, x1=0, y0=0, y1=1, xref="x", yref="y domain")):
        fig.add_shape(type="line", line=dict(dash="dash", color="#444", width=1), layer="below", **axis_line)
    fig.update_xaxes(title_text=x_label, row=1, col=1)
    fig.update_yaxes(title_text=y_label, row=1, col=1)
    fig.update_geos(fitbounds="locations", visible=False)
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=480,
        margin=dict(l=0, r=0, t=36 if title else 10, b=0),
        legend=dict(title="Cluster type"),
        dragmode="lasso",
        clickmode="event",
        uirevision="lisa",
        paper_bgcolor="rgba(0,0,0,0)",
        geo_bgcolor="rgba(0,0,0,0)",
    )
    return fig
