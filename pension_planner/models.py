from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from pension_planner.formatters import format_tax_year

if TYPE_CHECKING:
    from pension_planner.calculators.db_pensions import DBPension, StreamIncome
    from pension_planner.calculators.taxes import TaxConfig


@dataclass(frozen=True)
class PotConfig:
    """Defined-contribution pot before it is split into PCLS and SIPP."""

    dc_pot: float
    return_rate: float
    pcls_cap: float


@dataclass(frozen=True)
class OptimizerConfig:
    target_year: int         # year by which SIPP reaches target_residual and PCLS reaches zero
    target_residual: float   # SIPP balance to leave at target_year
    bias_pct: float = 20.0   # boost to early-year income over later years


@dataclass(frozen=True)
class PlanSettings:
    """Complete configuration snapshot consumed by the projection and optimizer."""

    pot: PotConfig
    tax: TaxConfig
    pensions: Tuple[DBPension, ...]
    optimizer: OptimizerConfig
    start_year: int
    end_year: int
    start_age: int = 60
    show_real_terms: bool = False
    inflation_rate: float = 0.0
    reference_year: Optional[int] = None

    @property
    def total_years(self) -> int:
        return max(0, self.end_year - self.start_year)

    @property
    def base_year(self) -> int:
        """Year whose money real-terms figures are expressed in."""
        return self.reference_year if self.reference_year is not None else self.start_year

    def age_for_year(self, year: int) -> int:
        return self.start_age + (year - self.start_year)


@dataclass(frozen=True)
class DrawdownInput:
    year: int
    tax_year: str
    pcls_drawdown: float
    sipp_drawdown: float


@dataclass(frozen=True)
class PlanYear:
    pcls: float
    sipp: float


@dataclass(frozen=True)
class YearProjection:
    year: int
    tax_year: str
    age: int
    requested_pcls_drawdown: float
    requested_sipp_drawdown: float
    pcls_drawdown: float        # actually withdrawn, capped to the balance
    sipp_drawdown: float
    db_income: Tuple[StreamIncome, ...]
    total_db_income: float
    taxable_income: float       # SIPP drawdown + DB income
    gross_income: float         # PCLS + SIPP + DB income
    annual_tax: float
    monthly_tax: float
    annual_net_income: float
    monthly_net_income: float
    pcls_start_of_year: float
    sipp_start_of_year: float
    pcls_interest: float
    sipp_interest: float
    pcls_remaining: float
    sipp_remaining: float


@dataclass(frozen=True)
class ProjectionTotals:
    initial_pcls: float
    initial_sipp: float
    pcls_remaining: float
    sipp_remaining: float
    total_pcls_drawn: float
    total_sipp_drawn: float
    total_db_income: float
    total_tax_paid: float
    total_net_income: float


@dataclass(frozen=True)
class ChartPoint:
    year: int
    tax_year: str
    age: int
    annual_net_income: float
    annual_gross_income: float
    db_income: float
    pcls_remaining: float
    sipp_remaining: float


@dataclass(frozen=True)
class ProjectionResult:
    projections: Tuple[YearProjection, ...]
    totals: ProjectionTotals
    chart_data: Tuple[ChartPoint, ...] = field(default_factory=tuple)


# ---------- Drawdown input helpers ----------
# Each helper returns a new mapping; the caller swaps it in as a whole.

def default_drawdown_inputs(
    start_year: int,
    end_year: int,
    pcls_drawdown: float = 15000.0,
    sipp_drawdown: float = 35000.0,
) -> Dict[int, DrawdownInput]:
    return {
        year: DrawdownInput(year, format_tax_year(year), pcls_drawdown, sipp_drawdown)
        for year in range(start_year, end_year)
    }


def update_drawdown(
    inputs: Mapping[int, DrawdownInput],
    year: int,
    pcls_drawdown: float,
    sipp_drawdown: float,
) -> Dict[int, DrawdownInput]:
    """Edit a single year.  Years outside the plan are ignored."""
    updated = dict(inputs)
    existing = updated.get(year)
    if existing is not None:
        updated[year] = replace(existing, pcls_drawdown=pcls_drawdown, sipp_drawdown=sipp_drawdown)
    return updated


def apply_drawdown_plan(
    inputs: Mapping[int, DrawdownInput],
    plan: Mapping[int, PlanYear],
) -> Dict[int, DrawdownInput]:
    """Overwrite every planned year with the optimizer's amounts."""
    updated = dict(inputs)
    for year, values in plan.items():
        existing = updated.get(year)
        if existing is not None:
            updated[year] = replace(existing, pcls_drawdown=values.pcls, sipp_drawdown=values.sipp)
    return updated
