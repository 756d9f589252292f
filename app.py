# app.py
import logging
from datetime import date
from pathlib import Path

import pandas as pd
import streamlit as st

from pension_planner import defaults, storage
from pension_planner.calculators.db_pensions import grouped_pension_milestones
from pension_planner.calculators.inflation import adjust_for_inflation
from pension_planner.calculators.optimizer import calculate_biased_drawdown_plan
from pension_planner.calculators.projection import project_drawdown, projections_to_frame
from pension_planner.components.charts import drawdown_chart, income_chart
from pension_planner.components.forms import WIDGET_KEYS, plan_form, settings_to_form_defaults
from pension_planner.exporters import export_filename, generate_drawdown_csv
from pension_planner.formatters import format_currency, format_tax_year
from pension_planner.models import DrawdownInput, apply_drawdown_plan, update_drawdown

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"
SNAPSHOT_PATH = DATA_DIR / "snapshot.json"

# ---------- Page config ----------
st.set_page_config(
    page_title=defaults.APP_NAME,
    layout="wide",
    initial_sidebar_state="auto",
)

# Hide Streamlit's default menu and footer
HIDE_STREAMLIT_STYLE = """
    <style>
        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}
    </style>
"""
st.markdown(HIDE_STREAMLIT_STYLE, unsafe_allow_html=True)


# ====== SESSION STATE ======
def _load_into_session(settings, inputs):
    st.session_state["form_defaults"] = settings_to_form_defaults(settings)
    st.session_state["drawdown_inputs"] = inputs
    # Drop widget values so the new defaults take effect
    for key in list(st.session_state.keys()):
        if key in WIDGET_KEYS.values() or key.startswith(("in_pension_", "in_band_rate_")):
            st.session_state.pop(key, None)


if "drawdown_inputs" not in st.session_state:
    _load_into_session(*storage.load_snapshot(str(SNAPSHOT_PATH)))
st.session_state.setdefault("optimizer_result", None)


def _inputs_for_horizon(inputs, start_year, end_year):
    """Keep edited years inside the horizon and fill the rest with default requests."""
    fresh = {}
    for year in range(start_year, end_year):
        fresh[year] = inputs.get(year) or DrawdownInput(
            year,
            format_tax_year(year),
            defaults.DEFAULT_PCLS_DRAWDOWN,
            defaults.DEFAULT_SIPP_DRAWDOWN,
        )
    return fresh


# ====== SIDEBAR ======
st.title(defaults.APP_NAME)
settings = plan_form()
inputs = _inputs_for_horizon(st.session_state["drawdown_inputs"], settings.start_year, settings.end_year)

st.sidebar.divider()
st.sidebar.header("Snapshot")
if st.sidebar.button("Save"):
    storage.save_snapshot(str(SNAPSHOT_PATH), settings, inputs)
    logger.info("Saved snapshot to %s", SNAPSHOT_PATH)
    st.sidebar.success("Saved.")
if st.sidebar.button("Reset to defaults"):
    _load_into_session(*storage.default_snapshot())
    st.session_state["optimizer_result"] = None
    st.rerun()


# ====== OPTIMIZER ======
st.header("Optimize")
left, right = st.columns([1, 3])
with left:
    if st.button("Apply optimized plan", type="primary"):
        with st.spinner("Searching for a drawdown plan..."):
            result = calculate_biased_drawdown_plan(settings)
        inputs = apply_drawdown_plan(inputs, result.plan)
        st.session_state["optimizer_result"] = result
        st.session_state.pop("drawdown_editor", None)
with right:
    result = st.session_state["optimizer_result"]
    if result is not None:
        m1, m2, m3, m4 = st.columns(4)
        m1.metric("Income, first years", format_currency(result.boosted_income))
        m2.metric("Income, later years", format_currency(result.base_income))
        m3.metric("PCLS per year", format_currency(result.pcls_annual_drawdown))
        sipp_at_target = result.projected_sipp_at_target
        if settings.show_real_terms:
            sipp_at_target = adjust_for_inflation(
                sipp_at_target, settings.optimizer.target_year, settings.base_year, settings.inflation_rate
            )
        m4.metric(f"SIPP at {settings.optimizer.target_year}", format_currency(sipp_at_target))
        if not result.converged:
            st.warning("The search did not fully converge; figures are the closest plan found.")

st.session_state["drawdown_inputs"] = inputs


# ====== DRAWDOWN TABLE ======
st.header("Drawdown Plan")
editor_df = pd.DataFrame(
    [
        {"Year": i.year, "Tax Year": i.tax_year, "PCLS": i.pcls_drawdown, "SIPP": i.sipp_drawdown}
        for i in inputs.values()
    ]
)
edited = st.data_editor(
    editor_df,
    disabled=["Year", "Tax Year"],
    hide_index=True,
    use_container_width=True,
    height=300,
    column_config={
        "PCLS": st.column_config.NumberColumn("PCLS drawdown", min_value=0.0, format="£%.0f"),
        "SIPP": st.column_config.NumberColumn("SIPP drawdown", min_value=0.0, format="£%.0f"),
    },
    key="drawdown_editor",
)
for row in edited.itertuples(index=False):
    current = inputs[int(row.Year)]
    if (row.PCLS, row.SIPP) != (current.pcls_drawdown, current.sipp_drawdown):
        inputs = update_drawdown(inputs, int(row.Year), float(row.PCLS or 0.0), float(row.SIPP or 0.0))
st.session_state["drawdown_inputs"] = inputs


# ====== PROJECTION ======
projection = project_drawdown(settings, inputs)
totals = projection.totals

st.subheader("Summary")
k1, k2, k3, k4 = st.columns(4)
k1.metric("Starting PCLS", format_currency(totals.initial_pcls))
k2.metric("Starting SIPP", format_currency(totals.initial_sipp))
k3.metric("Total net income", format_currency(totals.total_net_income))
k4.metric("Total tax", format_currency(totals.total_tax_paid))
if settings.show_real_terms:
    st.caption(f"Charts in {settings.base_year} money at {settings.inflation_rate * 100:.2f}% inflation.")

st.divider()
milestones = grouped_pension_milestones(settings.pensions)
c1, c2 = st.columns(2)
with c1:
    st.plotly_chart(drawdown_chart(projection.chart_data, milestones), use_container_width=True)
with c2:
    st.plotly_chart(income_chart(projection.chart_data), use_container_width=True)

st.markdown("### Year by Year")
df = projections_to_frame(projection)
st.dataframe(df, use_container_width=True, height=350, hide_index=True)
st.download_button(
    "⬇️ CSV",
    data=generate_drawdown_csv(projection.projections).encode("utf-8"),
    file_name=export_filename(date.today()),
    mime="text/csv",
)
