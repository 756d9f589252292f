"""Two-phase drawdown optimizer.

Given a target year, this module finds a withdrawal plan that

1. empties the tax-free PCLS pot by the target year using one fixed annual
   withdrawal.  Spending untaxed money first minimises lifetime tax, so the
   PCLS target is always zero;
2. leaves the SIPP at ``target_residual`` by the same year:

   * for the first ``N = min(10, plan years)`` years the SIPP tops income up
     to a *boosted* target, after the PCLS withdrawal and any DB/state
     pension income;
   * afterwards the SIPP pays a separately solved fixed annual amount.

The boosted income is ``1 + bias_pct/100`` times the *base* income.  Base
income is the average income of the second phase: the fixed SIPP amount plus
the mean PCLS withdrawal and DB income over those years.

The SIPP target always wins over the bias.  When later PCLS and DB income
alone exceed the base income, the boosted income is capped where the SIPP
still lands on target with nothing drawn in the second phase.  When the SIPP
cannot reach the target even untouched, no SIPP withdrawals are planned.

Every simulation uses the same month-by-month growth engine as the
projection, and the resulting plan is not rounded.  Replaying the plan
through :func:`pension_planner.calculators.projection.project_drawdown`
therefore reproduces the balances reported here.

The searches are bounded bisections over monotonic relationships: a larger
withdrawal always means a lower terminal balance.  They are measured against
the *shortfall-adjusted* terminal balance, which is the end balance less any
requested withdrawal the pot could not pay.  That quantity keeps falling
after a pot runs dry, so the bisection can tell "just empty" apart from
"emptied years early".  A search that fails to converge within
``MAX_ITERATIONS`` returns its last estimate.  Callers should expect results
within roughly ``TOLERANCE`` of the target rather than exact hits.

Example
-------

>>> # £100 000 growing at 0% over 10 years empties with £10 000 a year
>>> abs(find_fixed_withdrawal(PotSearch(100000, 0.0, 10, 0.0)) - 10000) < 10
True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

from pension_planner.calculators import growth
from pension_planner.calculators.db_pensions import all_income_for_year
from pension_planner.calculators.projection import split_pots
from pension_planner.models import PlanSettings, PlanYear

logger = logging.getLogger(__name__)

BOOSTED_YEARS = 10
MAX_ITERATIONS = 50
TOLERANCE = 100.0


# ---------- Parameter structs ----------
@dataclass(frozen=True)
class PotSearch:
    """Inputs for solving a fixed annual withdrawal on a single pot."""

    start_balance: float
    annual_rate: float
    years: int
    target: float


@dataclass(frozen=True)
class TwoPhaseSearch:
    """Inputs for solving the boosted SIPP income.

    ``pcls_draws`` and ``db_income`` hold one figure per year of the search
    horizon.  The PCLS schedule is independent of SIPP income, so it is fixed
    before the search starts.
    """

    sipp_balance: float
    annual_rate: float
    years: int
    boosted_years: int
    bias_multiplier: float
    target: float
    pcls_draws: Tuple[float, ...]
    db_income: Tuple[float, ...]


@dataclass(frozen=True)
class Candidate:
    """Outcome of simulating one boosted-income figure."""

    boosted_income: float
    base_income: float
    phase_two_withdrawal: float
    implied_base_income: float
    terminal_sipp: float
    excess: float  # > 0 means the candidate can afford more income


@dataclass(frozen=True)
class OptimizerResult:
    plan: Dict[int, PlanYear]
    base_income: float
    boosted_income: float
    phase_two_withdrawal: float
    projected_sipp_at_target: float
    projected_pcls_at_target: float
    pcls_annual_drawdown: float
    converged: bool


# ---------- Single-pot fixed withdrawal ----------
def simulate_fixed_withdrawal(params: PotSearch, annual_withdrawal: float) -> float:
    """Shortfall-adjusted balance after ``params.years`` years of a fixed withdrawal."""
    balance = params.start_balance
    shortfall = 0.0
    for _ in range(params.years):
        result = growth.year_end_balance(balance, params.annual_rate, annual_withdrawal, include_breakdown=False)
        shortfall += annual_withdrawal - result.total_drawdown
        balance = result.end_balance
    return balance - shortfall


def annuity_estimate(params: PotSearch) -> float:
    """Closed-form annual withdrawal using yearly compounding.

    Used only to seed the search bounds.  At a zero growth rate the annuity
    factor degenerates to the number of years.
    """
    growth_factor = (1 + params.annual_rate) ** params.years
    withdrawable = params.start_balance * growth_factor - params.target
    if params.annual_rate == 0:
        annuity_factor = float(params.years)
    else:
        annuity_factor = (growth_factor - 1) / params.annual_rate
    return withdrawable / annuity_factor


def find_fixed_withdrawal(params: PotSearch) -> float:
    """Binary-search the constant annual withdrawal that lands on ``params.target``."""
    if params.years <= 0 or params.start_balance <= 0:
        return 0.0

    estimate = annuity_estimate(params)
    if estimate <= 0:
        return 0.0

    low, high = 0.0, estimate * 3
    best = estimate
    for iteration in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        result = simulate_fixed_withdrawal(params, mid)
        best = mid
        if abs(result - params.target) < TOLERANCE:
            logger.debug("Fixed withdrawal %.2f converged after %d iterations", mid, iteration + 1)
            break
        if result > params.target:
            low = mid
        else:
            high = mid
    return max(0.0, best)


def pcls_draw_schedule(params: PotSearch, annual_withdrawal: float) -> Tuple[float, ...]:
    """Amount actually paid out by the pot in each year of ``params.years``."""
    balance = params.start_balance
    draws = []
    for _ in range(params.years):
        result = growth.year_end_balance(balance, params.annual_rate, annual_withdrawal, include_breakdown=False)
        draws.append(result.total_drawdown)
        balance = result.end_balance
    return tuple(draws)


# ---------- Two-phase SIPP schedule ----------
def sipp_request(params: TwoPhaseSearch, year_index: int, boosted_income: float, phase_two_withdrawal: float) -> float:
    """SIPP amount requested in a given year of the search horizon."""
    if year_index < params.boosted_years:
        return max(0.0, boosted_income - params.pcls_draws[year_index] - params.db_income[year_index])
    return phase_two_withdrawal


def simulate_sipp(
    params: TwoPhaseSearch,
    boosted_income: float,
    phase_two_withdrawal: float,
    years: int,
) -> Tuple[float, float]:
    """Run the SIPP for the first ``years`` years.

    Returns the end balance and the total shortfall against the requests.
    """
    balance = params.sipp_balance
    shortfall = 0.0
    for i in range(years):
        request = sipp_request(params, i, boosted_income, phase_two_withdrawal)
        result = growth.year_end_balance(balance, params.annual_rate, request, include_breakdown=False)
        shortfall += request - result.total_drawdown
        balance = result.end_balance
    return balance, shortfall


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def evaluate_boosted_income(params: TwoPhaseSearch, boosted_income: float) -> Candidate:
    """Simulate one boosted-income candidate end to end."""
    base_income = boosted_income / params.bias_multiplier
    phase_two_years = params.years - params.boosted_years

    if phase_two_years <= 0:
        balance, shortfall = simulate_sipp(params, boosted_income, 0.0, params.years)
        return Candidate(
            boosted_income=boosted_income,
            base_income=base_income,
            phase_two_withdrawal=0.0,
            implied_base_income=base_income,
            terminal_sipp=balance,
            excess=balance - shortfall - params.target,
        )

    entering_phase_two, _ = simulate_sipp(params, boosted_income, 0.0, params.boosted_years)
    phase_two_withdrawal = find_fixed_withdrawal(PotSearch(
        start_balance=entering_phase_two,
        annual_rate=params.annual_rate,
        years=phase_two_years,
        target=params.target,
    ))

    terminal, _ = simulate_sipp(params, boosted_income, phase_two_withdrawal, params.years)

    later = slice(params.boosted_years, params.years)
    implied_base = (
        phase_two_withdrawal
        + _mean(params.pcls_draws[later])
        + _mean(params.db_income[later])
    )
    return Candidate(
        boosted_income=boosted_income,
        base_income=base_income,
        phase_two_withdrawal=phase_two_withdrawal,
        implied_base_income=implied_base,
        terminal_sipp=terminal,
        excess=implied_base - base_income,
    )


def terminal_gap(params: TwoPhaseSearch, boosted_income: float) -> float:
    """Shortfall-adjusted SIPP terminal less the target, with nothing drawn in phase two."""
    balance, shortfall = simulate_sipp(params, boosted_income, 0.0, params.years)
    return balance - shortfall - params.target


def _upper_bound(params: TwoPhaseSearch) -> float:
    """Annuity-seeded boosted income, doubled until the SIPP falls short of target."""
    seed = annuity_estimate(PotSearch(params.sipp_balance, params.annual_rate, params.years, params.target))
    high = max(1000.0, seed + _mean(params.pcls_draws) + _mean(params.db_income))
    for _ in range(MAX_ITERATIONS):
        if terminal_gap(params, high) < 0:
            break
        high *= 2
    return high


def find_income_ceiling(params: TwoPhaseSearch) -> float:
    """Largest boosted income that still leaves the target with no phase-two withdrawal.

    Any higher boosted income would need a negative phase-two withdrawal to
    reach the target.
    """
    low, high = 0.0, _upper_bound(params)
    mid = high
    for _ in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        gap = terminal_gap(params, mid)
        if abs(gap) < TOLERANCE:
            break
        if gap > 0:
            low = mid
        else:
            high = mid
    return mid


def find_boosted_income(params: TwoPhaseSearch) -> Tuple[Candidate, bool]:
    """Binary-search the boosted income so both phases agree and SIPP hits target.

    Three regimes:

    * the SIPP cannot grow to the target even untouched: nothing is drawn;
    * phase-two PCLS and DB income alone exceed the base income implied by
      the income ceiling: the boosted income is capped at that ceiling, where
      the SIPP still lands on target with no phase-two withdrawal;
    * otherwise the boosted income is bisected below the ceiling until the
      phase-two income matches the base income.

    Returns the chosen candidate and whether it converged within tolerance.
    """
    untouched_gap = terminal_gap(params, 0.0)
    if untouched_gap < 0:
        logger.info("SIPP cannot reach target %.2f; no SIPP withdrawals planned", params.target)
        return Candidate(
            boosted_income=0.0,
            base_income=0.0,
            phase_two_withdrawal=0.0,
            implied_base_income=0.0,
            terminal_sipp=untouched_gap + params.target,
            excess=untouched_gap,
        ), False

    ceiling = find_income_ceiling(params)
    capped = evaluate_boosted_income(params, ceiling)
    if params.years <= params.boosted_years or capped.excess >= 0:
        logger.debug("Boosted income capped at %.2f by the SIPP target", ceiling)
        return capped, abs(capped.terminal_sipp - params.target) < TOLERANCE

    low, high = 0.0, ceiling
    best = capped
    converged = False
    for iteration in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        candidate = evaluate_boosted_income(params, mid)
        best = candidate
        on_target = abs(candidate.terminal_sipp - params.target) < TOLERANCE
        if abs(candidate.excess) < TOLERANCE and on_target:
            converged = True
            logger.debug("Boosted income %.2f converged after %d iterations", mid, iteration + 1)
            break
        if candidate.excess > 0:
            low = mid
        else:
            high = mid
    return best, converged


# ---------- Entry point ----------
def calculate_biased_drawdown_plan(settings: PlanSettings) -> OptimizerResult:
    """Solve the two-phase plan and lay it out over the configured horizon.

    Years from the target year onwards get zero requests for both pots.
    Their balances keep growing in the projection.
    """
    initial_pcls, initial_sipp = split_pots(settings.pot, settings.pensions)
    rate = settings.pot.return_rate
    cfg = settings.optimizer
    bias_multiplier = 1 + cfg.bias_pct / 100
    years = cfg.target_year - settings.start_year

    if years <= 0:
        plan = {year: PlanYear(0.0, 0.0) for year in range(settings.start_year, settings.end_year)}
        return OptimizerResult(
            plan=plan,
            base_income=0.0,
            boosted_income=0.0,
            phase_two_withdrawal=0.0,
            projected_sipp_at_target=initial_sipp,
            projected_pcls_at_target=initial_pcls,
            pcls_annual_drawdown=0.0,
            converged=True,
        )

    boosted_years = min(BOOSTED_YEARS, years)

    pcls_search = PotSearch(initial_pcls, rate, years, 0.0)
    pcls_annual = find_fixed_withdrawal(pcls_search)
    pcls_draws = pcls_draw_schedule(pcls_search, pcls_annual)
    db_income = tuple(
        all_income_for_year(settings.pensions, settings.start_year + i).total for i in range(years)
    )

    params = TwoPhaseSearch(
        sipp_balance=initial_sipp,
        annual_rate=rate,
        years=years,
        boosted_years=boosted_years,
        bias_multiplier=bias_multiplier,
        target=cfg.target_residual,
        pcls_draws=pcls_draws,
        db_income=db_income,
    )
    candidate, converged = find_boosted_income(params)
    if not converged:
        logger.info(
            "Optimizer did not converge: SIPP ends at %.2f against target %.2f",
            candidate.terminal_sipp, cfg.target_residual,
        )

    # Lay the plan out, replaying balances so the summary matches the projection.
    plan: Dict[int, PlanYear] = {}
    pcls = initial_pcls
    sipp = initial_sipp
    for i, year in enumerate(range(settings.start_year, settings.end_year)):
        if i >= years:
            plan[year] = PlanYear(0.0, 0.0)
            continue
        sipp_amount = sipp_request(params, i, candidate.boosted_income, candidate.phase_two_withdrawal)
        plan[year] = PlanYear(pcls_annual, sipp_amount)
        pcls = growth.year_end_balance(pcls, rate, pcls_annual, include_breakdown=False).end_balance
        sipp = growth.year_end_balance(sipp, rate, sipp_amount, include_breakdown=False).end_balance

    projected_pcls = pcls
    projected_sipp = sipp
    if years > settings.total_years:
        # Target lies beyond the configured horizon; report the searched terminal.
        projected_pcls = max(0.0, simulate_fixed_withdrawal(pcls_search, pcls_annual))
        projected_sipp = candidate.terminal_sipp

    logger.debug(
        "Plan: PCLS %.2f/yr, boosted %.2f, base %.2f, phase two SIPP %.2f",
        pcls_annual, candidate.boosted_income, candidate.base_income, candidate.phase_two_withdrawal,
    )
    return OptimizerResult(
        plan=plan,
        base_income=candidate.base_income,
        boosted_income=candidate.boosted_income,
        phase_two_withdrawal=candidate.phase_two_withdrawal,
        projected_sipp_at_target=projected_sipp,
        projected_pcls_at_target=projected_pcls,
        pcls_annual_drawdown=pcls_annual,
        converged=converged,
    )


__all__ = [
    "BOOSTED_YEARS",
    "MAX_ITERATIONS",
    "TOLERANCE",
    "PotSearch",
    "TwoPhaseSearch",
    "Candidate",
    "OptimizerResult",
    "simulate_fixed_withdrawal",
    "annuity_estimate",
    "find_fixed_withdrawal",
    "pcls_draw_schedule",
    "sipp_request",
    "simulate_sipp",
    "evaluate_boosted_income",
    "terminal_gap",
    "find_income_ceiling",
    "find_boosted_income",
    "calculate_biased_drawdown_plan",
]
