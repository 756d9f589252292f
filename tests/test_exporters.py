"""Unit tests for the exporters module."""

import dataclasses
from datetime import date

import pytest

from pension_planner.calculators.projection import project_drawdown
from pension_planner.defaults import default_settings
from pension_planner.exporters import CSV_COLUMNS, export_filename, generate_drawdown_csv
from pension_planner.models import default_drawdown_inputs


@pytest.fixture(scope="module")
def projection():
    settings = default_settings()
    inputs = default_drawdown_inputs(settings.start_year, settings.end_year, 15000, 35000)
    return project_drawdown(settings, inputs)


def test_tax_year_with_comma_is_quoted(projection):
    first = dataclasses.replace(projection.projections[0], tax_year="2031,32")
    lines = generate_drawdown_csv([first]).split("\n")
    assert lines[1].startswith('"2031,32",15000.00,')
    assert len(lines) == 3


def test_csv_layout(projection):
    lines = generate_drawdown_csv(projection.projections).split("\n")
    assert lines[0] == ",".join(CSV_COLUMNS)
    assert len(lines) == len(projection.projections) + 2
    first = lines[1].split(",")
    assert first[0] == "2031/32"
    assert first[1] == "15000.00"
    assert lines[-1].startswith("TOTALS,")


def test_totals_row_matches_projection(projection):
    totals = generate_drawdown_csv(projection.projections).split("\n")[-1].split(",")
    t = projection.totals
    assert float(totals[1]) == pytest.approx(t.total_pcls_drawn, abs=0.01)
    assert float(totals[2]) == pytest.approx(t.total_sipp_drawn, abs=0.01)
    assert float(totals[3]) == pytest.approx(t.total_db_income, abs=0.01)
    assert float(totals[5]) == pytest.approx(t.total_net_income, abs=0.01)
    assert float(totals[6]) == pytest.approx(t.total_tax_paid / 12, abs=0.01)
    assert totals[7] == ""
    assert float(totals[8]) == pytest.approx(t.pcls_remaining, abs=0.01)
    assert float(totals[9]) == pytest.approx(t.sipp_remaining, abs=0.01)


def test_empty_projection_has_zero_totals():
    lines = generate_drawdown_csv([]).split("\n")
    assert lines == [
        ",".join(CSV_COLUMNS),
        "TOTALS,0.00,0.00,0.00,0.00,0.00,0.00,,0.00,0.00",
    ]


def test_export_filename():
    assert export_filename(date(2026, 3, 7)) == "pension-drawdown-2026-03-07.csv"
