# censusviz/views/beeswarm_view.py
from __future__ import annotations
import pandas as pd
import plotly.graph_objects as go

from censusviz.beeswarm import quasirandom_offsets
from censusviz.util import finite_rows


def render(*, df: pd.DataFrame, category_col: str = "variable", value_col: str = "summary_est",
           title: str = "", subtitle: str = "", x_title: str = "Median household income",
           y_title: str = "Largest group in Census tract", caption: str = "") -> go.Figure:
    """Horizontal beeswarm, one row per category, coloured by the value (viridis)."""
    d = finite_rows(df, value_col)
    cats = sorted(d[category_col].unique())
    pos = {c: i for i, c in enumerate(cats)}

    d["y"] = d[category_col].map(pos).astype(float)
    for c in cats:
        idx = d.index[d[category_col] == c]
        d.loc[idx, "y"] += quasirandom_offsets(d.loc[idx, value_col])

    hover_id = d["GEOID"].astype(str) if "GEOID" in d.columns else d[category_col].astype(str)
    fig = go.Figure(go.Scattergl(
        x=d[value_col], y=d["y"], mode="markers",
        marker=dict(color=d[value_col], colorscale="Viridis", size=5, opacity=0.75, showscale=False),
        text=hover_id,
        customdata=d[[category_col]].to_numpy(),
        hovertemplate="%{customdata[0]}<br>%{text}<br>$%{x:,.0f}<extra></extra>",
    ))
    full_title = title + (f"<br><sup>{subtitle}</sup>" if subtitle else "")
    fig.update_layout(
        title=full_title or None,
        template="plotly_white",
        xaxis=dict(title=x_title, tickprefix="$", tickformat=",.0f"),
        yaxis=dict(title=y_title, tickvals=list(pos.values()), ticktext=cats, zeroline=False),
        height=160 + 110 * len(cats),
        margin=dict(l=0, r=10, t=70 if subtitle else 40, b=40),
        dragmode="select",
    )
    if caption:
        fig.add_annotation(text=caption, xref="paper", yref="paper", x=1, y=-0.12,
                           showarrow=False, xanchor="right", font=dict(size=10, color="#555"))
    return fig
