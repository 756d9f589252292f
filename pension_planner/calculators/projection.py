"""Year-by-year drawdown projection across the PCLS and SIPP pots.

Given a plan snapshot and the requested withdrawals for each tax year, this
module steps through the plan horizon one tax year at a time:

* each pot grows monthly and pays out its requested drawdown via
  :mod:`pension_planner.calculators.growth`, capped to what is available;
* DB and state pension income for the year comes from
  :mod:`pension_planner.calculators.db_pensions`;
* income tax is charged on the SIPP drawdown plus DB income.  PCLS
  withdrawals are tax-free and are excluded;
* net income is everything received less tax.

End-of-year balances carry forward as the next year's starting balances.
Years with no drawdown request draw nothing and still grow.  The projection
is a pure function of its inputs, so running it twice on the same snapshot
gives identical results.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Tuple

import numpy as np
import pandas as pd

from pension_planner.calculators import growth, taxes
from pension_planner.calculators.db_pensions import DBPension, all_income_for_year, total_lump_sums
from pension_planner.calculators.inflation import deflators
from pension_planner.formatters import format_tax_year
from pension_planner.models import (
    ChartPoint,
    DrawdownInput,
    PlanSettings,
    PotConfig,
    ProjectionResult,
    ProjectionTotals,
    YearProjection,
)

logger = logging.getLogger(__name__)

PCLS_PERCENTAGE = 0.25


def split_pots(pot: PotConfig, pensions: Iterable[DBPension] = ()) -> Tuple[float, float]:
    """Split the DC pot into (PCLS, SIPP) opening balances.

    PCLS is 25% of the pot up to ``pcls_cap``, plus any DB lump sums.
    """
    pcls = min(pot.dc_pot * PCLS_PERCENTAGE, pot.pcls_cap)
    sipp = pot.dc_pot - pcls
    return pcls + total_lump_sums(pensions), sipp


def project_drawdown(
    settings: PlanSettings,
    drawdown_inputs: Mapping[int, DrawdownInput],
) -> ProjectionResult:
    initial_pcls, initial_sipp = split_pots(settings.pot, settings.pensions)
    rate = settings.pot.return_rate
    base_year = settings.base_year

    projections = []
    chart_rows = []

    pcls = initial_pcls
    sipp = initial_sipp
    total_pcls = total_sipp = total_db = total_tax = total_net = 0.0

    for year in range(settings.start_year, settings.end_year):
        tax_year = format_tax_year(year)
        age = settings.age_for_year(year)
        request = drawdown_inputs.get(year)
        requested_pcls = request.pcls_drawdown if request is not None else 0.0
        requested_sipp = request.sipp_drawdown if request is not None else 0.0

        pcls_year = growth.year_end_balance(pcls, rate, requested_pcls, include_breakdown=False)
        sipp_year = growth.year_end_balance(sipp, rate, requested_sipp, include_breakdown=False)
        pcls_drawn = pcls_year.total_drawdown
        sipp_drawn = sipp_year.total_drawdown

        db = all_income_for_year(settings.pensions, year)

        taxable_income = sipp_drawn + db.total
        annual_tax = taxes.calculate_tax(taxable_income, settings.tax).total_tax
        gross_income = pcls_drawn + taxable_income
        net_income = gross_income - annual_tax

        projections.append(YearProjection(
            year=year,
            tax_year=tax_year,
            age=age,
            requested_pcls_drawdown=requested_pcls,
            requested_sipp_drawdown=requested_sipp,
            pcls_drawdown=pcls_drawn,
            sipp_drawdown=sipp_drawn,
            db_income=db.breakdown,
            total_db_income=db.total,
            taxable_income=taxable_income,
            gross_income=gross_income,
            annual_tax=annual_tax,
            monthly_tax=annual_tax / 12,
            annual_net_income=net_income,
            monthly_net_income=net_income / 12,
            pcls_start_of_year=pcls,
            sipp_start_of_year=sipp,
            pcls_interest=pcls_year.total_interest,
            sipp_interest=sipp_year.total_interest,
            pcls_remaining=pcls_year.end_balance,
            sipp_remaining=sipp_year.end_balance,
        ))

        pcls = pcls_year.end_balance
        sipp = sipp_year.end_balance

        total_pcls += pcls_drawn
        total_sipp += sipp_drawn
        total_db += db.total
        total_tax += annual_tax
        total_net += net_income

        chart_rows.append((net_income, gross_income, db.total, pcls, sipp))

    # Chart figures: net, gross, DB income, PCLS and SIPP balances
    values = np.array(chart_rows, dtype=float).reshape(-1, 5)
    if settings.show_real_terms:
        years = [p.year for p in projections]
        values = values / deflators(years, base_year, settings.inflation_rate)[:, None]
    chart_data = [
        ChartPoint(p.year, p.tax_year, p.age, *(float(v) for v in row))
        for p, row in zip(projections, values)
    ]

    totals = ProjectionTotals(
        initial_pcls=initial_pcls,
        initial_sipp=initial_sipp,
        pcls_remaining=pcls,
        sipp_remaining=sipp,
        total_pcls_drawn=total_pcls,
        total_sipp_drawn=total_sipp,
        total_db_income=total_db,
        total_tax_paid=total_tax,
        total_net_income=total_net,
    )
    logger.debug(
        "Projected %d years: net income %.2f, tax %.2f, SIPP left %.2f",
        len(projections), total_net, total_tax, sipp,
    )
    return ProjectionResult(tuple(projections), totals, tuple(chart_data))


def projections_to_frame(result: ProjectionResult) -> pd.DataFrame:
    """Tabulate the projection for display, one row per tax year."""
    rows = []
    for p in result.projections:
        rows.append({
            "year": p.year,
            "tax_year": p.tax_year,
            "age": p.age,
            "pcls_drawdown": p.pcls_drawdown,
            "sipp_drawdown": p.sipp_drawdown,
            "db_income": p.total_db_income,
            "gross_income": p.gross_income,
            "annual_tax": p.annual_tax,
            "monthly_tax": p.monthly_tax,
            "annual_net_income": p.annual_net_income,
            "monthly_net_income": p.monthly_net_income,
            "pcls_remaining": p.pcls_remaining,
            "sipp_remaining": p.sipp_remaining,
        })
    return pd.DataFrame(rows, columns=[
        "year", "tax_year", "age", "pcls_drawdown", "sipp_drawdown", "db_income",
        "gross_income", "annual_tax", "monthly_tax", "annual_net_income",
        "monthly_net_income", "pcls_remaining", "sipp_remaining",
    ])


__all__ = ["PCLS_PERCENTAGE", "split_pots", "project_drawdown", "projections_to_frame"]
