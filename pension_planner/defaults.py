# Default assumptions for the drawdown dashboard.
# All money figures are nominal pounds; rates are decimals unless named *_pct.

from pension_planner.calculators.db_pensions import DBPension
from pension_planner.calculators.projection import PCLS_PERCENTAGE  # noqa: F401
from pension_planner.calculators.taxes import DEFAULT_TAX_CONFIG
from pension_planner.models import OptimizerConfig, PlanSettings, PotConfig

APP_NAME = "Pension Drawdown Planner"

# Pot
DEFAULT_DC_POT = 863000
DEFAULT_RETURN_RATE = 0.04
PCLS_CAP = 268275

# Horizon
START_YEAR = 2031
END_YEAR = 2071
START_AGE = 60

# Starting drawdown requests before any plan is applied
DEFAULT_PCLS_DRAWDOWN = 15000
DEFAULT_SIPP_DRAWDOWN = 35000

# Optimizer
DEFAULT_BIAS_PCT = 20
DEFAULT_TARGET_YEAR = 2056
DEFAULT_TARGET_RESIDUAL = 100000

# Real-terms display
DEFAULT_INFLATION_RATE = 0.0326

DEFAULT_POT_CONFIG = PotConfig(
    dc_pot=DEFAULT_DC_POT,
    return_rate=DEFAULT_RETURN_RATE,
    pcls_cap=PCLS_CAP,
)

DEFAULT_OPTIMIZER_CONFIG = OptimizerConfig(
    target_year=DEFAULT_TARGET_YEAR,
    target_residual=DEFAULT_TARGET_RESIDUAL,
    bias_pct=DEFAULT_BIAS_PCT,
)

DEFAULT_DB_PENSIONS = (
    DBPension(
        id="primary-council-db",
        name="Primary Council DB",
        owner="primary",
        lump_sum=21775.15,
        annual_income=7258.38,
        start_year=2031,
        start_month=4,
        index_rate=0.04,
    ),
    DBPension(
        id="partner-council-db",
        name="Partner Council DB",
        owner="partner",
        lump_sum=12180.11,
        annual_income=13628.19,
        start_year=2047,
        start_month=1,
        index_rate=0.04,
    ),
    DBPension(
        id="primary-employer-db",
        name="Primary Employer DB",
        owner="primary",
        lump_sum=0.0,
        annual_income=5632.00,
        start_year=2036,
        start_month=4,
        index_rate=0.04,
    ),
    DBPension(
        id="primary-state",
        name="Primary State Pension",
        owner="primary",
        lump_sum=0.0,
        annual_income=11541.90,
        start_year=2038,
        start_month=4,
        index_rate=0.04,
        is_state_pension=True,
    ),
    DBPension(
        id="partner-state",
        name="Partner State Pension",
        owner="partner",
        lump_sum=0.0,
        annual_income=11541.90,
        start_year=2047,
        start_month=1,
        index_rate=0.04,
        is_state_pension=True,
    ),
)


def default_settings() -> PlanSettings:
    return PlanSettings(
        pot=DEFAULT_POT_CONFIG,
        tax=DEFAULT_TAX_CONFIG,
        pensions=DEFAULT_DB_PENSIONS,
        optimizer=DEFAULT_OPTIMIZER_CONFIG,
        start_year=START_YEAR,
        end_year=END_YEAR,
        start_age=START_AGE,
        show_real_terms=False,
        inflation_rate=DEFAULT_INFLATION_RATE,
        reference_year=None,
    )
