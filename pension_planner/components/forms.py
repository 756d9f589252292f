# components/forms.py
import streamlit as st

from pension_planner import defaults
from pension_planner.calculators.db_pensions import DBPension
from pension_planner.calculators.taxes import TaxBand, TaxConfig
from pension_planner.formatters import (
    format_currency,
    format_percentage,
    parse_currency,
    parse_percentage,
)
from pension_planner.models import OptimizerConfig, PlanSettings, PotConfig

# Stable widget keys so we can programmatically set values on load
WIDGET_KEYS = {
    "dc_pot": "in_dc_pot",
    "return_rate": "in_return_rate",
    "pcls_cap": "in_pcls_cap",

    "start_year": "in_start_year",
    "end_year": "in_end_year",
    "start_age": "in_start_age",

    "personal_allowance": "in_personal_allowance",

    "target_year": "in_target_year",
    "target_residual": "in_target_residual",
    "bias_pct": "in_bias_pct",

    "show_real_terms": "in_show_real_terms",
    "inflation_rate": "in_inflation_rate",
}

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def _d(key, fallback):
    return st.session_state.get("form_defaults", {}).get(key, fallback)


def _pension_key(pension_id: str, field: str) -> str:
    return f"in_pension_{pension_id}_{field}"


def _band_key(index: int) -> str:
    return f"in_band_rate_{index}"


def settings_to_form_defaults(settings: PlanSettings) -> dict:
    """Flatten settings into the keys expected by the sidebar form."""
    flat = {
        "dc_pot": format_currency(settings.pot.dc_pot),
        "return_rate": format_percentage(settings.pot.return_rate, 2),
        "pcls_cap": format_currency(settings.pot.pcls_cap),
        "start_year": settings.start_year,
        "end_year": settings.end_year,
        "start_age": settings.start_age,
        "personal_allowance": format_currency(settings.tax.personal_allowance),
        "target_year": settings.optimizer.target_year,
        "target_residual": format_currency(settings.optimizer.target_residual),
        "bias_pct": int(settings.optimizer.bias_pct),
        "show_real_terms": settings.show_real_terms,
        "inflation_rate": format_percentage(settings.inflation_rate, 2),
        "pensions": settings.pensions,
        "bands": settings.tax.bands,
    }
    return flat


def _pension_inputs(pension: DBPension) -> DBPension:
    with st.sidebar.expander(pension.name, expanded=False):
        annual = st.text_input(
            "Annual income", value=format_currency(pension.annual_income),
            key=_pension_key(pension.id, "annual"),
            help="Income in the first full year, before indexation.",
        )
        lump = st.text_input(
            "Lump sum", value=format_currency(pension.lump_sum),
            key=_pension_key(pension.id, "lump"),
            help="Added to the tax-free pot at the start of the plan.",
        )
        start_year = st.number_input(
            "Start year", min_value=2000, max_value=2100, value=int(pension.start_year),
            key=_pension_key(pension.id, "start_year"),
        )
        start_month = st.selectbox(
            "Start month", MONTHS, index=pension.start_month - 1,
            key=_pension_key(pension.id, "start_month"),
            help="January to March starts fall in the previous tax year and pay a quarter of a year.",
        )
        index_rate = st.text_input(
            "Indexation", value=format_percentage(pension.index_rate, 2),
            key=_pension_key(pension.id, "index"),
        )
    return DBPension(
        id=pension.id,
        name=pension.name,
        owner=pension.owner,
        lump_sum=parse_currency(lump),
        annual_income=parse_currency(annual),
        start_year=int(start_year),
        start_month=MONTHS.index(start_month) + 1,
        index_rate=parse_percentage(index_rate),
        is_state_pension=pension.is_state_pension,
    )


def plan_form() -> PlanSettings:
    st.sidebar.header("Pension Pot")
    dc_pot = st.sidebar.text_input(
        "DC pot",
        value=_d("dc_pot", format_currency(defaults.DEFAULT_DC_POT)),
        key=WIDGET_KEYS["dc_pot"],
        help="Total defined-contribution pot before the tax-free split.",
    )
    return_rate = st.sidebar.text_input(
        "Annual growth",
        value=_d("return_rate", format_percentage(defaults.DEFAULT_RETURN_RATE, 2)),
        key=WIDGET_KEYS["return_rate"],
        help="Nominal growth, compounded monthly.",
    )
    pcls_cap = st.sidebar.text_input(
        "PCLS cap",
        value=_d("pcls_cap", format_currency(defaults.PCLS_CAP)),
        key=WIDGET_KEYS["pcls_cap"],
        help=f"Tax-free lump sum is {format_percentage(defaults.PCLS_PERCENTAGE, 0)} of the pot, up to this cap.",
    )

    st.sidebar.header("Timeline")
    start_year = st.sidebar.number_input(
        "First tax year", min_value=2000, max_value=2100,
        value=int(_d("start_year", defaults.START_YEAR)),
        key=WIDGET_KEYS["start_year"],
    )
    end_year = st.sidebar.number_input(
        "Plan ends (exclusive)", min_value=2001, max_value=2150,
        value=int(_d("end_year", defaults.END_YEAR)),
        key=WIDGET_KEYS["end_year"],
    )
    start_age = st.sidebar.number_input(
        "Age in first tax year", min_value=40, max_value=100,
        value=int(_d("start_age", defaults.START_AGE)),
        key=WIDGET_KEYS["start_age"],
    )

    st.sidebar.header("Optimizer")
    target_year = st.sidebar.number_input(
        "Target year", min_value=2000, max_value=2150,
        value=int(_d("target_year", defaults.DEFAULT_TARGET_YEAR)),
        key=WIDGET_KEYS["target_year"],
        help="PCLS is emptied and SIPP reaches the residual by this year.",
    )
    target_residual = st.sidebar.text_input(
        "SIPP residual",
        value=_d("target_residual", format_currency(defaults.DEFAULT_TARGET_RESIDUAL)),
        key=WIDGET_KEYS["target_residual"],
    )
    bias_pct = st.sidebar.slider(
        "Early-years boost (%)", min_value=0, max_value=100,
        value=int(_d("bias_pct", defaults.DEFAULT_BIAS_PCT)),
        key=WIDGET_KEYS["bias_pct"],
        help="Income in the first ten years is this much higher than later years.",
    )

    st.sidebar.header("DB & State Pensions")
    pensions = tuple(_pension_inputs(p) for p in _d("pensions", defaults.DEFAULT_DB_PENSIONS))

    st.sidebar.header("Income Tax")
    personal_allowance = st.sidebar.text_input(
        "Personal allowance",
        value=_d("personal_allowance", format_currency(defaults.DEFAULT_TAX_CONFIG.personal_allowance)),
        key=WIDGET_KEYS["personal_allowance"],
        help="Tapered by £1 for every £2 of income over £100,000.",
    )
    bands = []
    with st.sidebar.expander("Bands", expanded=False):
        for i, band in enumerate(_d("bands", defaults.DEFAULT_TAX_CONFIG.bands)):
            rate = st.text_input(band.name, value=format_percentage(band.rate), key=_band_key(i))
            bands.append(TaxBand(band.name, band.min, band.max, parse_percentage(rate)))

    st.sidebar.header("Display")
    show_real_terms = st.sidebar.checkbox(
        "Show charts in today's money",
        value=_d("show_real_terms", False),
        key=WIDGET_KEYS["show_real_terms"],
    )
    inflation_rate = st.sidebar.text_input(
        "Inflation",
        value=_d("inflation_rate", format_percentage(defaults.DEFAULT_INFLATION_RATE, 2)),
        key=WIDGET_KEYS["inflation_rate"],
    )

    return PlanSettings(
        pot=PotConfig(
            dc_pot=parse_currency(dc_pot),
            return_rate=parse_percentage(return_rate),
            pcls_cap=parse_currency(pcls_cap),
        ),
        tax=TaxConfig(personal_allowance=parse_currency(personal_allowance), bands=tuple(bands)),
        pensions=pensions,
        optimizer=OptimizerConfig(
            target_year=int(target_year),
            target_residual=parse_currency(target_residual),
            bias_pct=float(bias_pct),
        ),
        start_year=int(start_year),
        end_year=int(end_year),
        start_age=int(start_age),
        show_real_terms=bool(show_real_terms),
        inflation_rate=parse_percentage(inflation_rate),
    )
