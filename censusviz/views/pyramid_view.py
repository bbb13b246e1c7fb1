# censusviz/views/pyramid_view.py
from __future__ import annotations
import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from censusviz.grids import wrap_grid
from censusviz.pyramids import AGE_ORDER

SEX_COLORS = {"Female": "red", "Male": "navy"}


def _limit(table: pd.DataFrame) -> float:
    m = float(np.nanmax(np.abs(table["percent"]))) if len(table) else 1.0
    return max(m, 0.5) * 1.05


def _ticks(limit: float, step: float | None = None):
    step = step or max(1.0, round(limit / 2))
    vals = np.arange(-np.floor(limit / step) * step, limit + 1e-9, step)
    return list(vals), [f"{abs(v):g}%" for v in vals]


def render(*, table: pd.DataFrame, name: str, title: str = "") -> go.Figure:
    """Single pyramid for one unit of a pyramid_table (male bars on the left)."""
    df = table[table["name"] == name]
    if df.empty:
        raise KeyError(f"No pyramid rows for {name!r}")
    lim = _limit(df)
    fig = go.Figure()
    for sex in ["Female", "Male"]:
        part = df[df["sex"] == sex]
        fig.add_trace(go.Bar(
            x=part["percent"], y=part["age"].astype(str), orientation="h",
            name=sex, marker_color=SEX_COLORS[sex],
            hovertemplate="%{y}: %{customdata:.2f}%<extra>" + sex + "</extra>",
            customdata=part["percent"].abs(),
        ))
    tickvals, ticktext = _ticks(lim)
    fig.update_layout(
        title=title or name,
        barmode="overlay", bargap=0.05,
        template="plotly_white",
        xaxis=dict(range=[-lim, lim], tickvals=tickvals, ticktext=ticktext, title=""),
        yaxis=dict(categoryorder="array", categoryarray=AGE_ORDER, title=""),
        legend=dict(orientation="h", y=-0.1),
        margin=dict(l=0, r=0, t=40, b=0),
    )
    return fig


def render_facets(*, table: pd.DataFrame, grid: pd.DataFrame | None = None, title: str = "",
                  caption: str = "", ncol: int | None = None) -> go.Figure:
    """
    Small-multiple pyramids placed by `grid` (name,row,col), or wrapped
    alphabetically when no grid is given. Names missing from the grid are
    left out; empty cells are blank.
    """
    names = sorted(table["name"].unique())
    grid = grid if grid is not None else wrap_grid(names, ncol)
    grid = grid[grid["name"].isin(names)]
    nrow, ncol_ = int(grid["row"].max()), int(grid["col"].max())

    titles = [""] * (nrow * ncol_)
    for _, g in grid.iterrows():
        titles[(g["row"] - 1) * ncol_ + (g["col"] - 1)] = g["name"]

    fig = make_subplots(
        rows=nrow, cols=ncol_, shared_xaxes=True, shared_yaxes=True,
        subplot_titles=titles, horizontal_spacing=0.01, vertical_spacing=0.035,
    )
    lim = _limit(table)
    legend_done = set()
    for _, g in grid.iterrows():
        df = table[table["name"] == g["name"]]
        for sex in ["Female", "Male"]:
            part = df[df["sex"] == sex]
            fig.add_trace(go.Bar(
                x=part["percent"], y=part["age"].astype(str), orientation="h",
                name=sex, legendgroup=sex, showlegend=sex not in legend_done,
                marker_color=SEX_COLORS[sex], width=1,
                hovertemplate=g["name"] + "<br>%{y}: %{x:.2f}<extra>" + sex + "</extra>",
            ), row=int(g["row"]), col=int(g["col"]))
            legend_done.add(sex)

    filled = set(zip(grid["row"], grid["col"]))
    for r in range(1, nrow + 1):
        for c in range(1, ncol_ + 1):
            if (r, c) not in filled:
                fig.update_xaxes(visible=False, row=r, col=c)
                fig.update_yaxes(visible=False, row=r, col=c)

    tickvals, ticktext = _ticks(lim, step=max(1.0, np.floor(lim)))
    fig.update_xaxes(range=[-lim, lim], tickvals=tickvals, ticktext=ticktext,
                     showgrid=False, tickfont=dict(size=7))
    fig.update_yaxes(categoryorder="array", categoryarray=AGE_ORDER, showticklabels=False, showgrid=False)
    fig.update_annotations(font_size=8)
    if caption:
        fig.add_annotation(text=caption, xref="paper", yref="paper", x=1, y=-0.04,
                           showarrow=False, xanchor="right", font=dict(size=9, color="#555"))
    fig.update_layout(
        title=title, barmode="overlay", bargap=0, template="plotly_white",
        height=110 * nrow + 120, width=125 * ncol_ + 100,
        legend=dict(orientation="h", y=1.02, x=1, xanchor="right", yanchor="bottom"),
        margin=dict(l=10, r=10, t=70, b=40),
    )
    return fig
