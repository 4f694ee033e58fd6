import html
import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from core.charts import age_sex_chart
from core.data import available_codes, load_dashboard_data
from core.filters import N_ROWS_DEFAULT, N_ROWS_MAX, N_ROWS_MIN, Y_AXIS_OPTIONS, normalize_filters
from core.metrics_narrative import NO_NARRATIVE_TEXT, random_narrative
from core.session import DashboardSession
from core.stepper import WRAP_POLICIES

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .narrative {font-size: 1.0rem;color: #111827;line-height: 1.5;}
        .narrative-empty {color: #6b7280;font-style: italic;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body


def render_page_header(title: str, breadcrumb: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )


def render_narrative(text: Optional[str]):
    if text is None:
        st.markdown(f"<div class='narrative narrative-empty'>{NO_NARRATIVE_TEXT}</div>", unsafe_allow_html=True)
    else:
        st.markdown(f"<div class='narrative'>{html.escape(text)}</div>", unsafe_allow_html=True)


# ---------- UI setup ----------
st.set_page_config(page_title="NEISS Injury Explorer", layout="wide")
inject_base_styles()

data_ctx = load_dashboard_data()
if not data_ctx.get("files"):
    st.error("No data files found. Place injuries.tsv.gz, products.tsv and population.tsv next to app.py.")
    st.stop()

choices = data_ctx.get("choices") or {}
if not choices:
    st.error("No products found. Check products.tsv.")
    st.stop()

if "dashboard_session" not in st.session_state:
    st.session_state["dashboard_session"] = DashboardSession(data_ctx)
session: DashboardSession = st.session_state["dashboard_session"]

# ----- Controls -----
top = st.columns([8, 2, 2])
with top[0]:
    title = st.selectbox("Product", options=list(choices.keys()))
with top[1]:
    y_axis = st.selectbox("Y axis", options=list(Y_AXIS_OPTIONS))
with top[2]:
    n_rows = st.number_input("Rows", min_value=N_ROWS_MIN, max_value=N_ROWS_MAX, value=N_ROWS_DEFAULT, step=1)

with st.expander("Advanced settings", expanded=False):
    wrap = st.radio(
        "Story wraparound",
        options=list(WRAP_POLICIES),
        index=0,
        horizontal=True,
        help="reset: stepping past either end wraps once, further overshoot returns to the first story. modulo: full wraparound.",
    )

filters = normalize_filters(
    {"prod_code": choices.get(title), "y_axis": y_axis, "n_rows": n_rows, "wrap": wrap},
    available_codes=available_codes(data_ctx),
)
ctx = session.context(filters)
selected: pd.DataFrame = ctx["selected"]

render_page_header(
    ctx.get("title") or "Injury Explorer",
    f"Products / {filters.prod_code}",
    export_df=selected,
    export_name=f"injuries_{filters.prod_code}.csv",
)
st.caption(f"{len(selected):,} records, estimated {selected['weight'].sum():,.0f} injuries.")

# ----- Tables -----
table_cols = st.columns(3)
for col, (field, label) in zip(table_cols, [("diag", "Diagnosis"), ("body_part", "Body part"), ("location", "Location")]):
    with col:
        with card(label):
            st.dataframe(ctx["tables"][field], width="stretch", hide_index=True)

# ----- Age / sex chart -----
with card("Injuries by age and sex"):
    age_sex = ctx["age_sex"]
    if age_sex.empty:
        st.info("No injuries recorded for this product.")
    else:
        st.altair_chart(age_sex_chart(age_sex, filters.y_axis), width="stretch")
        missing = int(age_sex["rate"].isna().sum())
        if filters.y_axis == "rate" and missing:
            st.caption(f"{missing} age/sex groups have no population data and are not plotted.")

# ----- Narrative -----
with card("Narrative"):
    story_cols = st.columns([2, 8, 2])
    if story_cols[0].button("Previous story"):
        session.previous_story()
    if story_cols[2].button("Next story"):
        session.next_story()
    with story_cols[1]:
        index = session.current_index()
        if index is not None:
            st.caption(f"Story {index} of {len(selected):,}")
        render_narrative(session.current_narrative())

    if st.button("Tell me a story"):
        pick = random_narrative(selected)
        logger.debug("random narrative index %s of %s", pick["index"], pick["total"])
        render_narrative(pick["narrative"])
