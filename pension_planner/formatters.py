# formatters.py
# Display helpers for money, percentages and UK tax-year labels.
# The parse_* functions sanitise free-text widget entry before it reaches
# the calculators: anything unparseable becomes 0.

import re


def format_tax_year(year: int) -> str:
    """2031 -> '2031/32', 2099 -> '2099/00'."""
    return f"{year}/{(year + 1) % 100:02d}"


def format_currency(value: float) -> str:
    if value < 0:
        return f"-£{abs(value):,.2f}"
    return f"£{value:,.2f}"


def parse_currency(value: str) -> float:
    if not value:
        return 0.0
    cleaned = re.sub(r"[£,\s]", "", value)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_percentage(value: float, decimals: int = 1) -> str:
    pct = round(value * 100, 10)
    if float(pct).is_integer():
        return f"{int(pct)}%"
    text = f"{pct:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{text}%"


def parse_percentage(value: str) -> float:
    if not value:
        return 0.0
    cleaned = value.replace("%", "").strip()
    try:
        return float(cleaned) / 100
    except ValueError:
        return 0.0


def format_compact(value: float) -> str:
    if value >= 1_000_000:
        return f"£{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"£{value / 1_000:.0f}K"
    return format_currency(value)


__all__ = [
    "format_tax_year",
    "format_currency",
    "parse_currency",
    "format_percentage",
    "parse_percentage",
    "format_compact",
]
