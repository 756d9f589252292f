"""Defined-benefit and state pension income.

DB and state pensions pay a fixed annual income that is uprated each year by
an index rate.  They are independent of the pot balances.  Any one-off lump
sum is paid into the tax-free pot when the plan starts.

UK tax years run from April to April.  A pension that starts between January
and March is paid during the last three months of the *previous* numbered tax
year, so that tax year only receives 3/12 of the annual amount.  An April or
later start pays a full year from its first tax year.  Months are the finest
resolution modelled; no day-level pro-rating is attempted.

Indexation is counted from the calendar start year.  There is no uplift in
the starting year itself, and the partial tax year before it is paid at the
base rate.

Example
-------

>>> p = DBPension("x", "Example DB", "member", 0.0, 12000.0, 2047, 1, 0.04)
>>> pension_start_tax_year(p)
2046
>>> income_for_year(p, 2046).gross_income
3000.0
>>> round(income_for_year(p, 2048).gross_income, 2)
12480.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from pension_planner.formatters import format_tax_year

TAX_YEAR_START_MONTH = 4
PARTIAL_YEAR_FRACTION = 3 / 12


@dataclass(frozen=True)
class DBPension:
    id: str
    name: str
    owner: str
    lump_sum: float
    annual_income: float
    start_year: int
    start_month: int
    index_rate: float
    is_state_pension: bool = False


@dataclass(frozen=True)
class StreamIncome:
    pension_id: str
    name: str
    gross_income: float
    is_partial_year: bool


@dataclass(frozen=True)
class ExternalIncome:
    breakdown: Tuple[StreamIncome, ...]
    total: float


@dataclass(frozen=True)
class PensionMilestone:
    year: int
    tax_year: str
    name: str
    type: str  # "state" | "db"


def pension_start_tax_year(pension: DBPension) -> int:
    """Tax year in which the first payment falls."""
    if pension.start_month >= TAX_YEAR_START_MONTH:
        return pension.start_year
    return pension.start_year - 1


def calculate_indexed_income(pension: DBPension, year: int) -> float:
    """Annual income for ``year`` after compound indexation.

    Returns zero before the pension's first tax year.
    """
    if year < pension_start_tax_year(pension):
        return 0.0
    years_of_growth = max(0, year - pension.start_year)
    return pension.annual_income * (1 + pension.index_rate) ** years_of_growth


def income_for_year(pension: DBPension, tax_year: int) -> Optional[StreamIncome]:
    start_tax_year = pension_start_tax_year(pension)
    if tax_year < start_tax_year:
        return None

    gross = calculate_indexed_income(pension, tax_year)
    is_partial = False
    if tax_year == start_tax_year and pension.start_month < TAX_YEAR_START_MONTH:
        gross = gross * PARTIAL_YEAR_FRACTION
        is_partial = True

    return StreamIncome(pension.id, pension.name, gross, is_partial)


def all_income_for_year(pensions: Iterable[DBPension], tax_year: int) -> ExternalIncome:
    """Combine every stream's income for ``tax_year``.

    Streams that have not started, or that pay nothing, are left out of the
    breakdown.
    """
    breakdown: List[StreamIncome] = []
    total = 0.0
    for pension in pensions:
        income = income_for_year(pension, tax_year)
        if income is not None and income.gross_income > 0:
            breakdown.append(income)
            total += income.gross_income
    return ExternalIncome(tuple(breakdown), total)


def project_income_for_years(
    pensions: Iterable[DBPension], start_year: int, end_year: int
) -> Dict[int, ExternalIncome]:
    """External income for every tax year from ``start_year`` to ``end_year`` inclusive."""
    pensions = tuple(pensions)
    return {year: all_income_for_year(pensions, year) for year in range(start_year, end_year + 1)}


def total_lump_sums(pensions: Iterable[DBPension]) -> float:
    return sum(p.lump_sum for p in pensions)


def pension_milestones(pensions: Iterable[DBPension]) -> List[PensionMilestone]:
    milestones = []
    for pension in pensions:
        year = pension_start_tax_year(pension)
        milestones.append(PensionMilestone(
            year=year,
            tax_year=format_tax_year(year),
            name=pension.name,
            type="state" if pension.is_state_pension else "db",
        ))
    return milestones


def grouped_pension_milestones(pensions: Iterable[DBPension]) -> Dict[int, List[PensionMilestone]]:
    """Milestones grouped by tax year so a chart draws one marker per year."""
    grouped: Dict[int, List[PensionMilestone]] = {}
    for milestone in pension_milestones(pensions):
        grouped.setdefault(milestone.year, []).append(milestone)
    return grouped


__all__ = [
    "DBPension",
    "StreamIncome",
    "ExternalIncome",
    "PensionMilestone",
    "pension_start_tax_year",
    "calculate_indexed_income",
    "income_for_year",
    "all_income_for_year",
    "project_income_for_years",
    "total_lump_sums",
    "pension_milestones",
    "grouped_pension_milestones",
]
