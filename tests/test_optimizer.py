"""Unit tests for the optimizer module.

The default scenario is a £863,000 pot growing at 4% with a £268,275 PCLS
cap, the five default DB/state pensions, and a target 25 years out leaving
£100,000 in the SIPP.  Plans are checked by replaying them through the
projection, the same way the dashboard uses them.
"""

import dataclasses

import pytest

from pension_planner.calculators import growth
from pension_planner.calculators import optimizer as opt
from pension_planner.calculators.projection import project_drawdown
from pension_planner.defaults import default_settings
from pension_planner.models import apply_drawdown_plan, default_drawdown_inputs


def _with_optimizer(settings, **changes):
    return dataclasses.replace(settings, optimizer=dataclasses.replace(settings.optimizer, **changes))


def _replay(settings, result):
    inputs = default_drawdown_inputs(settings.start_year, settings.end_year, 15000, 35000)
    inputs = apply_drawdown_plan(inputs, result.plan)
    projection = project_drawdown(settings, inputs)
    return {p.year: p for p in projection.projections}


@pytest.fixture(scope="module")
def default_result():
    return opt.calculate_biased_drawdown_plan(default_settings())


# ---------- Fixed withdrawal search ----------
def test_fixed_withdrawal_empties_pot():
    params = opt.PotSearch(start_balance=200000, annual_rate=0.04, years=15, target=0)
    withdrawal = opt.find_fixed_withdrawal(params)
    assert withdrawal > 200000 / 15
    assert abs(opt.simulate_fixed_withdrawal(params, withdrawal)) < opt.TOLERANCE


def test_fixed_withdrawal_leaves_target():
    params = opt.PotSearch(start_balance=500000, annual_rate=0.05, years=20, target=100000)
    withdrawal = opt.find_fixed_withdrawal(params)
    assert opt.simulate_fixed_withdrawal(params, withdrawal) == pytest.approx(100000, abs=opt.TOLERANCE)


def test_fixed_withdrawal_zero_rate():
    withdrawal = opt.find_fixed_withdrawal(opt.PotSearch(100000, 0.0, 10, 0.0))
    assert withdrawal == pytest.approx(10000, abs=10)


def test_fixed_withdrawal_degenerate_inputs():
    assert opt.find_fixed_withdrawal(opt.PotSearch(100000, 0.04, 0, 0)) == 0.0
    assert opt.find_fixed_withdrawal(opt.PotSearch(0, 0.04, 10, 0)) == 0.0
    # Target above what the pot can grow to on its own
    assert opt.find_fixed_withdrawal(opt.PotSearch(1000, 0.0, 10, 5000)) == 0.0


def test_shortfall_keeps_falling_after_pot_empties():
    params = opt.PotSearch(start_balance=10000, annual_rate=0.0, years=5, target=0)
    assert opt.simulate_fixed_withdrawal(params, 4000) == pytest.approx(-10000)
    assert opt.simulate_fixed_withdrawal(params, 6000) == pytest.approx(-20000)


# ---------- Default scenario ----------
def test_default_plan_converges(default_result):
    assert default_result.converged
    assert default_result.projected_sipp_at_target == pytest.approx(100000, abs=5000)
    assert 0 <= default_result.projected_pcls_at_target < 5000


def test_replayed_plan_matches_optimizer(default_result):
    settings = default_settings()
    rows = _replay(settings, default_result)
    last_planned = rows[settings.optimizer.target_year - 1]

    assert last_planned.sipp_remaining == pytest.approx(default_result.projected_sipp_at_target, rel=1e-9)
    assert last_planned.pcls_remaining == pytest.approx(default_result.projected_pcls_at_target, abs=1e-6)
    assert last_planned.sipp_remaining == pytest.approx(100000, abs=5000)
    assert last_planned.pcls_remaining < 5000


def test_plan_covers_horizon(default_result):
    settings = default_settings()
    assert sorted(default_result.plan) == list(range(settings.start_year, settings.end_year))
    for year, values in default_result.plan.items():
        if year >= settings.optimizer.target_year:
            assert values.pcls == 0 and values.sipp == 0
        else:
            assert values.pcls == default_result.pcls_annual_drawdown


def test_boosted_years_reach_target_income(default_result):
    """In the first ten years PCLS, DB income and SIPP add up to the boosted income."""
    settings = default_settings()
    rows = _replay(settings, default_result)
    for year in range(settings.start_year, settings.start_year + opt.BOOSTED_YEARS):
        assert rows[year].gross_income == pytest.approx(default_result.boosted_income, abs=1.0)


def test_later_years_use_fixed_sipp(default_result):
    settings = default_settings()
    for year in range(settings.start_year + opt.BOOSTED_YEARS, settings.optimizer.target_year):
        assert default_result.plan[year].sipp == default_result.phase_two_withdrawal


def test_post_target_years_only_grow(default_result):
    settings = default_settings()
    rows = _replay(settings, default_result)
    target = settings.optimizer.target_year
    for year in (target, target + 1):
        row = rows[year]
        expected = growth.year_end_balance(row.sipp_start_of_year, settings.pot.return_rate, 0).end_balance
        assert row.sipp_drawdown == 0
        assert row.sipp_remaining == pytest.approx(expected)
        assert row.sipp_remaining > row.sipp_start_of_year


# ---------- Bias and ordering ----------
BIASES = (0, 10, 20, 50, 100)
RESIDUALS = (0, 50000, 100000, 250000, 400000)


@pytest.fixture(scope="module")
def bias_sweep():
    return [opt.calculate_biased_drawdown_plan(_with_optimizer(default_settings(), bias_pct=b)) for b in BIASES]


@pytest.fixture(scope="module")
def residual_sweep():
    return [
        opt.calculate_biased_drawdown_plan(_with_optimizer(default_settings(), target_residual=r))
        for r in RESIDUALS
    ]


def test_zero_bias_gives_level_income(bias_sweep):
    assert bias_sweep[0].boosted_income == bias_sweep[0].base_income


@pytest.mark.parametrize("index, bias", list(enumerate(BIASES)))
def test_boost_matches_bias(bias_sweep, index, bias):
    result = bias_sweep[index]
    assert result.boosted_income == pytest.approx(result.base_income * (1 + bias / 100))


@pytest.mark.parametrize("index, bias", list(enumerate(BIASES)))
def test_sipp_lands_on_residual_for_every_bias(bias_sweep, index, bias):
    result = bias_sweep[index]
    assert result.converged
    assert result.projected_sipp_at_target == pytest.approx(100000, abs=5000)
    assert result.projected_pcls_at_target < 5000


def test_larger_bias_widens_the_gap(bias_sweep):
    gaps = [r.boosted_income - r.base_income for r in bias_sweep]
    assert all(later > earlier for earlier, later in zip(gaps, gaps[1:]))


@pytest.mark.parametrize("index, residual", list(enumerate(RESIDUALS)))
def test_sipp_lands_on_each_residual(residual_sweep, index, residual):
    assert residual_sweep[index].projected_sipp_at_target == pytest.approx(residual, abs=5000)


def test_larger_residual_lowers_income(residual_sweep):
    boosted = [r.boosted_income for r in residual_sweep]
    base = [r.base_income for r in residual_sweep]
    assert all(later < earlier for earlier, later in zip(boosted, boosted[1:]))
    assert all(later < earlier for earlier, later in zip(base, base[1:]))


def test_heavy_bias_capped_by_sipp_target(bias_sweep):
    """At a 100% boost later PCLS and DB income already cover the base income."""
    result = bias_sweep[-1]
    settings = default_settings()
    rows = _replay(settings, result)
    assert result.phase_two_withdrawal < 1000
    assert rows[settings.optimizer.target_year - 1].sipp_remaining == pytest.approx(100000, abs=5000)


# ---------- Awkward inputs ----------
def test_unreachable_residual_draws_no_sipp():
    settings = _with_optimizer(default_settings(), target_residual=5_000_000)
    result = opt.calculate_biased_drawdown_plan(settings)
    assert not result.converged
    assert result.boosted_income == result.base_income == 0
    assert all(v.sipp == 0 for v in result.plan.values())
    assert result.plan[2031].sipp == 0
    assert result.plan[settings.start_year].pcls == result.pcls_annual_drawdown > 0
    rows = _replay(settings, result)
    assert rows[settings.optimizer.target_year - 1].sipp_remaining == pytest.approx(result.projected_sipp_at_target)
    assert result.projected_sipp_at_target < 5_000_000


def test_zero_growth_lands_on_residual():
    settings = dataclasses.replace(
        default_settings(), pot=dataclasses.replace(default_settings().pot, return_rate=0.0)
    )
    result = opt.calculate_biased_drawdown_plan(settings)
    rows = _replay(settings, result)
    assert result.projected_sipp_at_target == pytest.approx(100000, abs=5000)
    assert rows[settings.optimizer.target_year - 1].sipp_remaining == pytest.approx(100000, abs=5000)
    assert result.projected_pcls_at_target < 5000


def test_target_past_horizon_lands_on_residual():
    settings = _with_optimizer(default_settings(), target_year=2100)
    result = opt.calculate_biased_drawdown_plan(settings)
    assert result.projected_sipp_at_target == pytest.approx(100000, abs=5000)
    assert result.projected_pcls_at_target < 5000
    assert sorted(result.plan) == list(range(settings.start_year, settings.end_year))


# ---------- Short horizons ----------
def test_target_at_start_plans_nothing():
    settings = _with_optimizer(default_settings(), target_year=default_settings().start_year)
    result = opt.calculate_biased_drawdown_plan(settings)
    assert result.converged
    assert all(v.pcls == 0 and v.sipp == 0 for v in result.plan.values())
    assert len(result.plan) == settings.total_years


def test_horizon_shorter_than_boosted_phase():
    settings = _with_optimizer(default_settings(), target_year=default_settings().start_year + 6)
    result = opt.calculate_biased_drawdown_plan(settings)
    assert result.phase_two_withdrawal == 0
    assert result.projected_sipp_at_target == pytest.approx(100000, abs=5000)
    assert result.projected_pcls_at_target < 5000
