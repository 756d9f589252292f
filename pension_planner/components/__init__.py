"""Expose component submodules for convenience."""

from .forms import plan_form, settings_to_form_defaults
from .charts import drawdown_chart, income_chart

__all__ = [
    "plan_form",
    "settings_to_form_defaults",
    "drawdown_chart",
    "income_chart",
]
