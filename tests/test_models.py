"""Unit tests for the settings and drawdown input helpers in the models module."""

import dataclasses

from pension_planner.defaults import default_settings
from pension_planner.models import (
    PlanYear,
    apply_drawdown_plan,
    default_drawdown_inputs,
    update_drawdown,
)


def test_default_inputs_cover_horizon():
    inputs = default_drawdown_inputs(2031, 2034, 15000, 35000)
    assert sorted(inputs) == [2031, 2032, 2033]
    assert inputs[2033].tax_year == "2033/34"
    assert inputs[2031].pcls_drawdown == 15000
    assert inputs[2031].sipp_drawdown == 35000


def test_update_returns_new_mapping():
    inputs = default_drawdown_inputs(2031, 2034, 15000, 35000)
    updated = update_drawdown(inputs, 2032, 1.0, 2.0)
    assert updated is not inputs
    assert inputs[2032].pcls_drawdown == 15000
    assert (updated[2032].pcls_drawdown, updated[2032].sipp_drawdown) == (1.0, 2.0)


def test_update_ignores_unknown_year():
    inputs = default_drawdown_inputs(2031, 2034, 15000, 35000)
    assert update_drawdown(inputs, 2050, 1.0, 2.0) == inputs


def test_apply_plan_overwrites_known_years_only():
    inputs = default_drawdown_inputs(2031, 2033, 15000, 35000)
    plan = {2031: PlanYear(100.0, 200.0), 2032: PlanYear(0.0, 0.0), 2099: PlanYear(5.0, 5.0)}
    applied = apply_drawdown_plan(inputs, plan)
    assert sorted(applied) == [2031, 2032]
    assert (applied[2031].pcls_drawdown, applied[2031].sipp_drawdown) == (100.0, 200.0)
    assert (applied[2032].pcls_drawdown, applied[2032].sipp_drawdown) == (0.0, 0.0)


def test_base_year_prefers_reference_year():
    settings = default_settings()
    assert settings.base_year == settings.start_year
    assert dataclasses.replace(settings, reference_year=2040).base_year == 2040
