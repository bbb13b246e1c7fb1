# censusviz/views/ridges_view.py
from __future__ import annotations
import pandas as pd
import plotly.graph_objects as go


def render(*, profile: pd.DataFrame, group_col: str = "ST_label", x_col: str = "AGEP",
           share_col: str = "prop_age", order_col: str = "mdn_age", scale: float = 4.0,
           title: str = "") -> go.Figure:
    """
    Ridgeline plot: one filled curve per group, stacked in `order_col` order
    (lowest at the bottom). `scale` > 1 lets neighbouring ridges overlap.
    """
    order = (profile.groupby(group_col)[order_col].first()
                    .sort_values(kind="stable").index.tolist())
    peak = profile[share_col].max() or 1.0
    fig = go.Figure()
    for i, g in enumerate(order):
        part = profile[profile[group_col] == g].sort_values(x_col)
        y = i + part[share_col] / peak * scale * 0.5
        fig.add_trace(go.Scatter(
            x=part[x_col], y=[i] * len(part), mode="lines",
            line=dict(width=0), hoverinfo="skip", showlegend=False,
        ))
        fig.add_trace(go.Scatter(
            x=part[x_col], y=y, mode="lines", fill="tonexty",
            line=dict(color="#333", width=0.8), fillcolor="rgba(120,120,180,0.55)",
            name=g, showlegend=False,
            customdata=part[[share_col]].to_numpy(),
            hovertemplate=g + "<br>age %{x}: %{customdata[0]:.1%}<extra></extra>",
        ))
    fig.update_layout(
        title=title or None,
        template="plotly_white",
        yaxis=dict(tickvals=list(range(len(order))), ticktext=order, title=""),
        xaxis=dict(title="Age at first marriage"),
        height=22 * len(order) + 160,
        margin=dict(l=0, r=10, t=40, b=40),
    )
    return fig
