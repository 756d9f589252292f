"""UK income tax calculation for pension drawdown.

This module implements the progressive income tax applied to taxable pension
withdrawals and DB/state pension income.  A personal allowance is deducted
first and the rest is charged band by band at marginal rates.  The allowance
is withdrawn for higher earners: it falls by £1 for every £2 of income above
£100 000 and reaches zero at £125 140 with the default figures.

Band widths are measured from the configured allowance, not from the tapered
one.  The 2024/25 basic rate band is therefore always 37 700 wide.  When the
allowance is tapered, more income spills into the higher and additional rate
bands, as in the HMRC calculation.

Example
-------

>>> # £60 000 of income: 37 700 at 20% plus 9 730 at 40%
>>> round(calculate_tax(60000, DEFAULT_TAX_CONFIG).total_tax, 2)
11432.0

>>> # Allowance is fully tapered at £150 000
>>> calculate_personal_allowance(150000, 12570)
0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

PA_TAPER_THRESHOLD = 100_000


@dataclass(frozen=True)
class TaxBand:
    name: str
    min: float
    max: float  # math.inf for the top band
    rate: float


@dataclass(frozen=True)
class TaxConfig:
    personal_allowance: float
    bands: Tuple[TaxBand, ...]


@dataclass(frozen=True)
class TaxBreakdown:
    band: str
    taxable_amount: float
    rate: float
    tax: float


@dataclass(frozen=True)
class TaxResult:
    gross_income: float
    personal_allowance: float
    taxable_income: float
    total_tax: float
    effective_rate: float
    breakdown: Tuple[TaxBreakdown, ...] = ()


DEFAULT_TAX_CONFIG = TaxConfig(
    personal_allowance=12570,
    bands=(
        TaxBand("Basic Rate", 12571, 50270, 0.20),
        TaxBand("Higher Rate", 50271, 125140, 0.40),
        TaxBand("Additional Rate", 125141, math.inf, 0.45),
    ),
)


def calculate_personal_allowance(
    income: float,
    base_allowance: float,
    taper_threshold: float = PA_TAPER_THRESHOLD,
) -> float:
    """Return the personal allowance after the high-income taper.

    Parameters
    ----------
    income : float
        Gross annual income.
    base_allowance : float
        Untapered personal allowance.
    taper_threshold : float, optional
        Income above which the allowance is withdrawn (default £100 000).

    Returns
    -------
    float
        ``base_allowance`` reduced by half the excess over the threshold,
        rounded down to whole pounds and floored at zero.
    """
    if income <= taper_threshold:
        return base_allowance
    reduction = math.floor((income - taper_threshold) / 2)
    return max(0, base_allowance - reduction)


def calculate_tax(gross_income: float, tax_config: TaxConfig) -> TaxResult:
    """Compute income tax due on ``gross_income`` for one tax year."""
    if gross_income <= 0:
        return TaxResult(0.0, tax_config.personal_allowance, 0.0, 0.0, 0.0, ())

    allowance = calculate_personal_allowance(gross_income, tax_config.personal_allowance)
    taxable_income = max(0.0, gross_income - allowance)
    if taxable_income == 0:
        return TaxResult(gross_income, allowance, 0.0, 0.0, 0.0, ())

    breakdown = []
    remaining = taxable_income
    total_tax = 0.0
    previous_max = tax_config.personal_allowance

    for band in tax_config.bands:
        if remaining <= 0:
            break
        if math.isinf(band.max):
            width = remaining
        else:
            width = min(band.max - previous_max, remaining)

        if width > 0:
            band_tax = width * band.rate
            total_tax += band_tax
            remaining -= width
            breakdown.append(TaxBreakdown(band.name, width, band.rate, band_tax))

        previous_max = band.max

    return TaxResult(
        gross_income=gross_income,
        personal_allowance=allowance,
        taxable_income=taxable_income,
        total_tax=total_tax,
        effective_rate=total_tax / gross_income,
        breakdown=tuple(breakdown),
    )


def calculate_net_income(gross_income: float, tax: float) -> float:
    return gross_income - tax


def calculate_monthly_tax(annual_income: float, tax_config: TaxConfig) -> float:
    return calculate_tax(annual_income, tax_config).total_tax / 12


__all__ = [
    "TaxBand",
    "TaxConfig",
    "TaxBreakdown",
    "TaxResult",
    "DEFAULT_TAX_CONFIG",
    "PA_TAPER_THRESHOLD",
    "calculate_personal_allowance",
    "calculate_tax",
    "calculate_net_income",
    "calculate_monthly_tax",
]
