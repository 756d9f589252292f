# components/charts.py
# Plotly chart helpers for the drawdown dashboard.
# All functions return a Plotly Figure that Streamlit can display with st.plotly_chart(...).

from __future__ import annotations

from typing import List, Mapping, Sequence

import plotly.graph_objects as go

from pension_planner.calculators.db_pensions import PensionMilestone
from pension_planner.formatters import format_tax_year
from pension_planner.models import ChartPoint

GROSS_COLOR = "#16a34a"
PCLS_COLOR = "#2563eb"
SIPP_COLOR = "#ea580c"
MILESTONE_COLORS = {"state": "#9333ea", "db": "#0891b2"}


def _fit(fig: go.Figure, title: str, height: int = 380) -> go.Figure:
    fig.update_layout(
        title=title,
        template="plotly_white",
        height=height,
        margin=dict(l=10, r=10, t=40, b=10),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
    )
    return fig


def _tax_year_axis(fig: go.Figure, years: Sequence[int]) -> None:
    # Show every fifth label to keep the axis readable.
    ticks = [y for i, y in enumerate(years) if i % 5 == 0]
    fig.update_xaxes(tickvals=ticks, ticktext=[format_tax_year(y) for y in ticks], title="Tax year")


def milestone_label(milestones: Sequence[PensionMilestone]) -> str:
    """Short names for the streams starting in one year, e.g. ``"Primary State, Partner Council"``."""
    return ", ".join(m.name.replace(" Pension", "").replace(" DB", "") for m in milestones)


def milestone_color(milestones: Sequence[PensionMilestone]) -> str:
    if any(m.type == "state" for m in milestones):
        return MILESTONE_COLORS["state"]
    return MILESTONE_COLORS["db"]


# ---------- Balances and gross income ----------
def drawdown_chart(points: Sequence[ChartPoint],
                   milestones: Mapping[int, List[PensionMilestone]] | None = None,
                   title: str = "Pot Balances and Income") -> go.Figure:
    """PCLS and SIPP balances on the left axis, gross income on the right.

    Pension start years inside the plotted range get a dashed marker labelled
    with the streams that begin then.
    """
    years = [p.year for p in points]
    customdata = [[p.tax_year, p.age] for p in points]
    hover = "%{customdata[0]} (Age %{customdata[1]})<br>£%{y:,.0f}<extra></extra>"

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=years, y=[p.pcls_remaining for p in points], mode="lines", name="PCLS Remaining",
        line=dict(color=PCLS_COLOR, width=2), customdata=customdata, hovertemplate=hover,
    ))
    fig.add_trace(go.Scatter(
        x=years, y=[p.sipp_remaining for p in points], mode="lines", name="SIPP Remaining",
        line=dict(color=SIPP_COLOR, width=2), customdata=customdata, hovertemplate=hover,
    ))
    fig.add_trace(go.Scatter(
        x=years, y=[p.annual_gross_income for p in points], mode="lines", name="Annual income (gross)",
        line=dict(color=GROSS_COLOR, width=2), yaxis="y2", customdata=customdata, hovertemplate=hover,
    ))

    if years:
        for year, group in sorted((milestones or {}).items()):
            if not years[0] <= year <= years[-1]:
                continue
            color = milestone_color(group)
            fig.add_vline(
                x=year, line_dash="dash", line_color=color, line_width=2,
                annotation_text=milestone_label(group), annotation_position="top",
                annotation_font_color=color, annotation_font_size=10,
            )

    _fit(fig, title, height=420)
    fig.update_layout(
        yaxis=dict(title="Pot balance (£)", tickprefix="£"),
        yaxis2=dict(title="Gross income (£)", tickprefix="£", overlaying="y", side="right",
                    showgrid=False, color=GROSS_COLOR),
    )
    _tax_year_axis(fig, years)
    return fig


# ---------- Income composition ----------
def income_chart(points: Sequence[ChartPoint],
                 title: str = "Income Over Time") -> go.Figure:
    """DB/state income as bars under gross and net income lines."""
    years = [p.year for p in points]
    fig = go.Figure()
    fig.add_bar(x=years, y=[p.db_income for p in points], name="DB/State income",
                marker_color=MILESTONE_COLORS["db"])
    fig.add_trace(go.Scatter(x=years, y=[p.annual_gross_income for p in points], mode="lines",
                             name="Gross income", line=dict(color=GROSS_COLOR)))
    fig.add_trace(go.Scatter(x=years, y=[p.annual_net_income for p in points], mode="lines",
                             name="Net income", line=dict(color=SIPP_COLOR, dash="dot")))
    _fit(fig, title)
    fig.update_yaxes(title="£ per year", tickprefix="£")
    _tax_year_axis(fig, years)
    return fig

