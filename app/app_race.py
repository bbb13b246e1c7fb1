# app/app_race.py
#   streamlit run app/app_race.py
from __future__ import annotations
import numpy as np
import pandas as pd
import streamlit as st
from streamlit_plotly_events import plotly_events

from censusviz.census import get_acs
from censusviz.util import clicked_tract
from censusviz.views.group_map_view import RACE_GROUPS, group_rows, render as render_group

YEAR = 2019
STATE = "MN"
COUNTIES = ["Hennepin", "Ramsey", "Anoka", "Washington", "Dakota", "Carver", "Scott"]
RACE_VARIABLES = {
    "hispanic": "DP05_0071P",
    "white": "DP05_0077P",
    "black": "DP05_0078P",
    "native": "DP05_0079P",
    "asian": "DP05_0080P",
}

st.set_page_config(page_title="Twin Cities race/ethnicity", layout="wide")


# ---------- data ----------
@st.cache_data(show_spinner="Loading tracts from the Census API…")
def load_tracts():
    return get_acs(geography="tract", variables=RACE_VARIABLES, state=STATE,
                   county=COUNTIES, year=YEAR, geometry=True)


def render(selected_group: str, show_outlines: bool = True):
    """Map for a dropdown label such as "Native American"."""
    return render_group(table=load_tracts(), selected_group=RACE_GROUPS[selected_group],
                        show_outlines=show_outlines)


# ---------- UI ----------
st.title("Race and ethnicity in the Twin Cities")

with st.sidebar:
    st.header("Controls")
    group = st.selectbox("Select a group to map", list(RACE_GROUPS))
    show_outlines = st.checkbox("Show tract outlines", value=True)
    if st.button("Clear cache"):
        st.cache_data.clear()
        st.rerun()

tracts = load_tracts()
rows = group_rows(tracts, RACE_GROUPS[group])

col_map, col_details = st.columns([2.4, 1])
with col_map:
    ev = plotly_events(render(group, show_outlines), click_event=True, hover_event=False,
                       select_event=False, override_height=600, key=f"race_{RACE_GROUPS[group]}")
    geoid = clicked_tract(ev, rows)
    if geoid: st.session_state.selected_tract = geoid

# ---------- details panel ----------
with col_details:
    shares = rows["estimate"]
    a, b = st.columns(2)
    a.metric("Tracts", f"{len(rows):,}")
    b.metric("Median tract share", f"{shares.median():.1f}%" if len(rows) else "N/A")

    geoid = st.session_state.get("selected_tract")
    picked = tracts[tracts["GEOID"] == geoid]
    if picked.empty:
        st.caption("Click a tract to see all five groups.")
    else:
        st.subheader(picked["NAME"].iloc[0].split(",")[0])
        st.caption(f"GEOID {geoid}")
        by_group = picked.set_index("variable")["estimate"]
        for label, code in RACE_GROUPS.items():
            v = by_group.get(code, np.nan)
            st.write(f"**{label}:** " + (f"{v:.1f}%" if pd.notna(v) else "N/A"))

st.caption(f"Source: {YEAR} 5-year ACS data profile (DP05), Hennepin, Ramsey, Anoka, Washington, "
           "Dakota, Carver and Scott counties.")
