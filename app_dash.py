# app_dash.py
# Linked-brushing LISA dashboard: Moran scatter + cluster map for Dallas-Fort Worth tracts.
#   python app_dash.py
from __future__ import annotations
import numpy as np
import pandas as pd
from dash import Dash, dcc, html, Input, Output, State, ctx

from censusviz.census import get_acs
from censusviz.geo import filter_within, metro_area
from censusviz.lisa import CLUSTER_COLORS, CLUSTER_LABELS, global_moran, lisa_clusters
from censusviz.util import next_selection
from censusviz.views.lisa_view import render

# ---------------- Inputs ----------------
YEAR = 2019
STATE = "TX"
METRO = "Dallas"
VARIABLE = "B01002_001"          # median age
PERMUTATIONS = 999
SEED = 1983


# ---------------- Data ----------------
def load_clusters():
    """Tract median age inside the metro, LISA statistics and cluster labels."""
    metro = metro_area(METRO, year=YEAR)
    tracts = get_acs(geography="tract", variables=VARIABLE, state=STATE, year=YEAR, geometry=True)
    tracts = filter_within(tracts, metro).dropna(subset=["estimate"])
    clusters, w = lisa_clusters(tracts, value_col="estimate", permutations=PERMUTATIONS, seed=SEED)
    moran = global_moran(clusters["estimate"], w, permutations=PERMUTATIONS, seed=SEED)
    return clusters, moran


def selection_summary(clusters: pd.DataFrame, selected) -> list:
    """Cluster counts among the selected tracts, as html rows."""
    picked = clusters[clusters["GEOID"].isin(list(selected or []))]
    if picked.empty:
        return [html.Div("Lasso, box-select or click tracts in either panel.", style={"color": "#777"})]
    counts = picked["lisa_cluster"].value_counts()
    rows = [html.Div(f"{len(picked):,} tracts selected", style={"fontWeight": "600", "marginBottom": "4px"})]
    for label in CLUSTER_LABELS:
        if label in counts:
            rows.append(html.Div([
                html.Span(style={"display": "inline-block", "width": "12px", "height": "12px",
                                 "background": CLUSTER_COLORS[label], "border": "1px solid #333",
                                 "marginRight": "6px"}),
                f"{label}: {int(counts[label]):,}",
            ]))
    return rows


# ---------------- Dash app ----------------
def create_app(clusters: pd.DataFrame, moran: dict | None = None) -> Dash:
    app = Dash(__name__)
    app.title = "Spatial clusters of median age"

    caption = ""
    if moran:
        caption = f"Global Moran's I = {moran['I']:.3f} (pseudo p = {moran['p_sim']:.3f})"

    app.layout = html.Div(
        style={"padding": "16px", "fontFamily": "Inter, system-ui, -apple-system, Segoe UI, Roboto, sans-serif"},
        children=[
            html.H1("Median age clusters, Dallas-Fort Worth tracts", style={"margin": "0 0 4px 0"}),
            html.Div(caption, id="moran_caption", style={"color": "#555", "marginBottom": "8px"}),

            dcc.Graph(id="lisa_graph", figure=render(clusters), style={"height": "480px"}),

            html.Div([
                html.Button("Clear selection", id="clear", n_clicks=0),
                html.Div(id="selection_summary", style={"marginTop": "8px"}),
            ], style={"marginTop": "8px"}),

            dcc.Store(id="selected_geoids", data=[]),
        ],
    )

    # ---------------- Callbacks ----------------
    @app.callback(
        Output("selected_geoids", "data"),
        Input("lisa_graph", "selectedData"),
        Input("lisa_graph", "clickData"),
        Input("clear", "n_clicks"),
        State("selected_geoids", "data"),
        prevent_initial_call=True,
    )
    def pick_tracts(selected_data, click_data, _n, cur):
        return next_selection(ctx.triggered_prop_ids, selected_data, click_data, cur)

    @app.callback(
        Output("lisa_graph", "figure"),
        Output("selection_summary", "children"),
        Input("selected_geoids", "data"),
    )
    def update_views(selected):
        return render(clusters, selected or []), selection_summary(clusters, selected)

    return app


if __name__ == "__main__":
    clusters, moran = load_clusters()
    counts = clusters["lisa_cluster"].value_counts().reindex(CLUSTER_LABELS, fill_value=0)
    print(f"✅ {len(clusters)} tracts; clusters: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    if not np.isfinite(moran["I"]):
        print("❗ Global Moran's I is not finite; check the input values.")
    create_app(clusters, moran).run(debug=True)
