"""Calculators behind the drawdown planner.

The ``calculators`` package holds small, focused modules that each implement
one piece of the drawdown logic:

* ``growth`` – monthly compounding of a pot with a level drawdown.
* ``taxes`` – UK income tax with personal allowance taper.
* ``db_pensions`` – indexed DB and state pension income per tax year.
* ``inflation`` – conversion of nominal figures into today's money.
* ``projection`` – year-by-year PCLS/SIPP projection with tax and net income.
* ``optimizer`` – two-phase search for a biased drawdown plan.

Each module exposes a few public functions with clear parameters and returns.  See
individual docstrings for details.
"""

from . import growth, taxes, db_pensions, inflation, projection, optimizer  # noqa: F401

__all__ = ["growth", "taxes", "db_pensions", "inflation", "projection", "optimizer"]
