"""Convert nominal projection figures into today's money."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def adjust_for_inflation(value: float, year: int, base_year: int, inflation_rate: float) -> float:
    """Discount ``value`` from ``year`` back to ``base_year`` purchasing power.

    Years at or before ``base_year`` are returned unchanged.
    """
    years_from_base = year - base_year
    if years_from_base <= 0:
        return value
    return value / (1 + inflation_rate) ** years_from_base


def deflators(years: Sequence[int], base_year: int, inflation_rate: float) -> np.ndarray:
    """Vector of divisors matching :func:`adjust_for_inflation` for each year."""
    elapsed = np.maximum(np.asarray(years, dtype=float) - base_year, 0.0)
    return np.power(1.0 + inflation_rate, elapsed)


__all__ = ["adjust_for_inflation", "deflators"]
