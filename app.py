"""
app.py

Streamlit map of state labor-market metrics (BLS LAUS + OEWS).

Key design principle:
- The app does NOT call the BLS API when users open the page.
- labor_map/update_data.py refreshes data/latest.json (and mirrors it to
  docs/data/latest.json); this app only reads that file.

What users can do:
- Pick a metric (unemployment rate or software-developer annual mean wage)
- See it as a choropleth of the lower 48 + DC, and as a ranked bar chart
- Pick states to compare; the last three picks are shown side by side
"""

from __future__ import annotations

import json
from pathlib import Path

import altair as alt
import pandas as pd
import streamlit as st

from labor_map.check_data import coverage_summary, to_frame
from labor_map.config import METRIC_META, STATES

# ---------------------------------------------------------------------
# File locations
# ---------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent
DATA_PATHS = [
    ROOT / "data" / "latest.json",
    ROOT / "docs" / "data" / "latest.json",
]
US_TOPOJSON_URL = "https://cdn.jsdelivr.net/npm/vega-datasets@v1.29.0/data/us-10m.json"
HISTORY_LEN = 3


# ---------------------------------------------------------------------
# Cached loaders
# ---------------------------------------------------------------------
@st.cache_data
def load_metrics() -> tuple[dict, str]:
    """Load the dataset from the first path that exists (primary, then docs mirror)."""
    for path in DATA_PATHS:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8")), str(path.relative_to(ROOT))
    return {}, ""


# ---------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------
def format_value(field: str, v) -> str:
    """Display string for a metric value; null/NaN shows as an em dash."""
    if v is None or pd.isna(v):
        return "—"
    if field == "swdev_wage":
        return f"${round(v):,}"
    if field == "unemployment_rate":
        return f"{float(v):.1f}%"
    return str(v)


def build_frame(metrics: dict) -> pd.DataFrame:
    """Lower-48 + DC with numeric FIPS id (to join with the TopoJSON) and metrics."""
    df = to_frame({abbr: metrics.get(abbr, {}) for abbr in STATES}).reset_index()
    df["id"] = df["state"].map(lambda abbr: int(STATES[abbr]))
    return df


def remember_selection() -> None:
    """Push the current pick onto the front of the history (no duplicates)."""
    pick = st.session_state.state_pick
    history = [s for s in st.session_state.selection_history if s != pick]
    st.session_state.selection_history = [pick] + history[: HISTORY_LEN - 1]


# ---------------------------------------------------------------------
# App layout
# ---------------------------------------------------------------------
st.set_page_config(page_title="US State Labor Map (BLS)", layout="wide")
st.title("US State Labor Map (BLS)")

metrics, source = load_metrics()
if not metrics:
    st.error("Missing data/latest.json. Run `python -m labor_map.update_data` once to create it.")
    st.stop()

df = build_frame(metrics)
coverage = coverage_summary(metrics)
st.caption(
    f"Source: **{source}**  •  "
    + "  •  ".join(f"{METRIC_META[f]['name']}: {n}/{len(STATES)} states" for f, n in coverage.items())
)

if "selection_history" not in st.session_state:
    st.session_state.selection_history = []

with st.sidebar:
    st.header("Controls")
    metric = st.selectbox(
        "Metric",
        options=list(METRIC_META),
        format_func=lambda f: METRIC_META[f]["name"],
        index=0,
    )
    st.selectbox(
        "Compare a state",
        options=sorted(STATES),
        key="state_pick",
        on_change=remember_selection,
    )

label = METRIC_META[metric]["name"]
value_fmt = "$,.0f" if metric == "swdev_wage" else ".1f"
selected = st.session_state.selection_history

# ---------------------------------------------------------------------
# Choropleth
# ---------------------------------------------------------------------
states_topo = alt.topo_feature(US_TOPOJSON_URL, "states")
choropleth = (
    alt.Chart(states_topo)
    .mark_geoshape(stroke="white", strokeWidth=0.5)
    .transform_lookup(
        lookup="id",
        from_=alt.LookupData(df, "id", ["state", metric]),
    )
    .transform_filter("isValid(datum.state)")
    .encode(
        color=alt.Color(f"{metric}:Q", title=label, scale=alt.Scale(scheme="blues")),
        tooltip=[
            alt.Tooltip("state:N", title="State"),
            alt.Tooltip(f"{metric}:Q", title=label, format=value_fmt),
        ],
    )
    .project(type="albersUsa")
    .properties(height=460)
)

# ---------------------------------------------------------------------
# Ranked bar chart
# ---------------------------------------------------------------------
ranked = df.dropna(subset=[metric]).sort_values(metric, ascending=False)
bars = (
    alt.Chart(ranked)
    .mark_bar()
    .encode(
        x=alt.X(f"{metric}:Q", title=label),
        y=alt.Y("state:N", sort="-x", title=""),
        color=alt.condition(
            alt.FieldOneOfPredicate(field="state", oneOf=selected or ["__none__"]),
            alt.value("#d62728"),
            alt.value("#4c78a8"),
        ),
        tooltip=[
            alt.Tooltip("state:N", title="State"),
            alt.Tooltip(f"{metric}:Q", title=label, format=value_fmt),
        ],
    )
    .properties(height=max(300, 14 * len(ranked)))
)

c_map, c_bars = st.columns([3, 2])
with c_map:
    st.subheader(label)
    st.altair_chart(choropleth, use_container_width=True)
with c_bars:
    st.subheader("Ranked")
    st.altair_chart(bars, use_container_width=True)

# ---------------------------------------------------------------------
# Selection history
# ---------------------------------------------------------------------
if selected:
    st.subheader("Recent picks")
    cols = st.columns(HISTORY_LEN)
    for col, abbr in zip(cols, selected):
        record = metrics.get(abbr, {})
        col.metric(abbr, format_value(metric, record.get(metric)))
        other = [f for f in METRIC_META if f != metric]
        for f in other:
            col.caption(f"{METRIC_META[f]['name']}: {format_value(f, record.get(f))}")
