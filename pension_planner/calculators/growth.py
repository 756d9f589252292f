"""Monthly compounding of a single pension pot with a regular drawdown.

Pension providers credit growth and pay income monthly, so a year is modelled
as twelve sequential months rather than one annual step.  Each month interest
is accrued first and the requested drawdown is taken afterwards, capped to
whatever is left in the pot.  Once a pot is exhausted it stays at zero and no
further months are processed.

The optimizer and the year-by-year projection both call into this module, so
the two always agree on balances.

Example
-------

>>> # £100 000 at 4% with no drawdown grows to roughly £104 074
>>> round(monthly_interest_with_drawdown(100000, 0.04, 0).end_balance)
104074

>>> # With no growth a £1 000 monthly drawdown reduces the balance linearly
>>> year_end_balance(100000, 0.0, 12000).end_balance
88000.0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class MonthlyResult:
    month: int
    start_balance: float
    interest: float
    drawdown: float
    end_balance: float


@dataclass(frozen=True)
class YearResult:
    start_balance: float
    end_balance: float
    total_interest: float
    total_drawdown: float
    monthly_breakdown: Tuple[MonthlyResult, ...] = ()


def monthly_interest_with_drawdown(
    start_balance: float,
    annual_rate: float,
    monthly_drawdown: float,
    include_breakdown: bool = True,
) -> YearResult:
    """Simulate twelve months of interest followed by drawdown.

    Parameters
    ----------
    start_balance : float
        Pot balance at the start of the year.
    annual_rate : float
        Nominal annual growth rate as a decimal, credited at ``rate / 12``
        each month.
    monthly_drawdown : float
        Amount requested each month.  The amount actually taken is capped to
        the balance available after that month's interest.
    include_breakdown : bool, optional
        When False the month-by-month ledger is skipped.  The optimizer
        calls this function many thousands of times and has no use for it.

    Returns
    -------
    YearResult
        End balance (never negative), interest accrued, the total actually
        withdrawn and, optionally, the monthly ledger.
    """
    if start_balance <= 0:
        return YearResult(0.0, 0.0, 0.0, 0.0, ())

    monthly_rate = annual_rate / 12
    balance = float(start_balance)
    total_interest = 0.0
    total_drawdown = 0.0
    breakdown = []

    for month in range(1, 13):
        month_start = balance

        interest = balance * monthly_rate
        balance += interest
        total_interest += interest

        actual = min(monthly_drawdown, balance)
        balance -= actual
        total_drawdown += actual

        if include_breakdown:
            breakdown.append(MonthlyResult(month, month_start, interest, actual, balance))

        if balance <= 0:
            balance = 0.0
            break

    return YearResult(
        start_balance=float(start_balance),
        end_balance=max(0.0, balance),
        total_interest=total_interest,
        total_drawdown=total_drawdown,
        monthly_breakdown=tuple(breakdown),
    )


def year_end_balance(
    start_balance: float,
    annual_rate: float,
    annual_drawdown: float,
    include_breakdown: bool = True,
) -> YearResult:
    """Year-level wrapper: spread ``annual_drawdown`` evenly over twelve months."""
    return monthly_interest_with_drawdown(
        start_balance, annual_rate, annual_drawdown / 12, include_breakdown
    )


def apply_annual_growth(balance: float, annual_rate: float) -> float:
    return balance * (1 + annual_rate)


__all__ = [
    "MonthlyResult",
    "YearResult",
    "monthly_interest_with_drawdown",
    "year_end_balance",
    "apply_annual_growth",
]
