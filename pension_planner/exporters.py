# exporters.py
# CSV export of a drawdown projection, one row per tax year plus a totals row.

from __future__ import annotations

from datetime import date
from typing import Sequence

import pandas as pd

from pension_planner.models import YearProjection

CSV_COLUMNS = [
    "Tax Year",
    "PCLS Drawdown",
    "SIPP Drawdown",
    "DB/State Income",
    "Annual Income (Gross)",
    "Annual Income (Net)",
    "Monthly Tax",
    "Monthly Net",
    "PCLS Remaining",
    "SIPP Remaining",
]

# Columns summed into the TOTALS row
_FLOW_COLUMNS = CSV_COLUMNS[1:7]


def drawdown_frame(projections: Sequence[YearProjection]) -> pd.DataFrame:
    """Export columns as a DataFrame, indexed by position."""
    rows = [
        {
            "Tax Year": p.tax_year,
            "PCLS Drawdown": p.pcls_drawdown,
            "SIPP Drawdown": p.sipp_drawdown,
            "DB/State Income": p.total_db_income,
            "Annual Income (Gross)": p.pcls_drawdown + p.sipp_drawdown + p.total_db_income,
            "Annual Income (Net)": p.annual_net_income,
            "Monthly Tax": p.monthly_tax,
            "Monthly Net": p.monthly_net_income,
            "PCLS Remaining": p.pcls_remaining,
            "SIPP Remaining": p.sipp_remaining,
        }
        for p in projections
    ]
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    return df.astype({c: float for c in CSV_COLUMNS[1:]})


def generate_drawdown_csv(projections: Sequence[YearProjection]) -> str:
    """CSV text with a TOTALS row summing the flow columns.

    The TOTALS row leaves Monthly Net blank and carries the final balances.
    """
    df = drawdown_frame(projections)
    last = df.iloc[-1] if len(df) else None
    df.loc[len(df)] = (
        ["TOTALS"]
        + [float(df[c].sum()) for c in _FLOW_COLUMNS]
        + [
            float("nan"),
            float(last["PCLS Remaining"]) if last is not None else 0.0,
            float(last["SIPP Remaining"]) if last is not None else 0.0,
        ]
    )
    df = df.astype({c: float for c in CSV_COLUMNS[1:]})
    text = df.to_csv(index=False, float_format="%.2f", lineterminator="\n")
    return text[:-1] if text.endswith("\n") else text


def export_filename(today: date | None = None) -> str:
    today = today or date.today()
    return f"pension-drawdown-{today:%Y-%m-%d}.csv"


__all__ = ["CSV_COLUMNS", "drawdown_frame", "generate_drawdown_csv", "export_filename"]
