# storage.py
# JSON snapshot of the plan configuration and the per-year drawdown inputs.

from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pension_planner import defaults
from pension_planner.calculators.db_pensions import DBPension
from pension_planner.calculators.taxes import TaxBand, TaxConfig
from pension_planner.models import (
    DrawdownInput,
    OptimizerConfig,
    PlanSettings,
    PotConfig,
    default_drawdown_inputs,
)

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

# Optimizer keys from older snapshots; PCLS now always empties by the target year.
DEPRECATED_OPTIMIZER_KEYS = ("pcls_depletion_year", "pcls_remainder")

Snapshot = Tuple[PlanSettings, Dict[int, DrawdownInput]]


def ensure_data_dir(path: str) -> None:
    folder = os.path.dirname(path)
    if folder and not os.path.exists(folder):
        os.makedirs(folder, exist_ok=True)


def _bound_to_json(value: float) -> Optional[float]:
    return None if math.isinf(value) else value


def _bound_from_json(value: Optional[float]) -> float:
    return math.inf if value is None else float(value)


# ---------- Settings ----------
def settings_to_dict(settings: PlanSettings) -> Dict[str, Any]:
    return {
        "pot": asdict(settings.pot),
        "tax": {
            "personal_allowance": settings.tax.personal_allowance,
            "bands": [
                {"name": b.name, "min": b.min, "max": _bound_to_json(b.max), "rate": b.rate}
                for b in settings.tax.bands
            ],
        },
        "pensions": [asdict(p) for p in settings.pensions],
        "optimizer": asdict(settings.optimizer),
        "start_year": settings.start_year,
        "end_year": settings.end_year,
        "start_age": settings.start_age,
        "show_real_terms": settings.show_real_terms,
        "inflation_rate": settings.inflation_rate,
        "reference_year": settings.reference_year,
    }


def _optimizer_from_dict(raw: Mapping[str, Any]) -> OptimizerConfig:
    merged = asdict(defaults.DEFAULT_OPTIMIZER_CONFIG)
    merged.update({k: v for k, v in raw.items() if k not in DEPRECATED_OPTIMIZER_KEYS and k in merged})
    return OptimizerConfig(
        target_year=int(merged["target_year"]),
        target_residual=float(merged["target_residual"]),
        bias_pct=float(merged["bias_pct"]),
    )


def settings_from_dict(raw: Mapping[str, Any]) -> PlanSettings:
    """Rebuild settings; missing sections fall back to the defaults."""
    base = defaults.default_settings()

    pot = PotConfig(**raw["pot"]) if "pot" in raw else base.pot

    if "tax" in raw:
        tax = TaxConfig(
            personal_allowance=float(raw["tax"]["personal_allowance"]),
            bands=tuple(
                TaxBand(b["name"], float(b["min"]), _bound_from_json(b.get("max")), float(b["rate"]))
                for b in raw["tax"]["bands"]
            ),
        )
    else:
        tax = base.tax

    if "pensions" in raw:
        pensions = tuple(DBPension(**p) for p in raw["pensions"])
    else:
        pensions = base.pensions

    return PlanSettings(
        pot=pot,
        tax=tax,
        pensions=pensions,
        optimizer=_optimizer_from_dict(raw.get("optimizer", {})),
        start_year=int(raw.get("start_year", base.start_year)),
        end_year=int(raw.get("end_year", base.end_year)),
        start_age=int(raw.get("start_age", base.start_age)),
        show_real_terms=bool(raw.get("show_real_terms", base.show_real_terms)),
        inflation_rate=float(raw.get("inflation_rate", base.inflation_rate)),
        reference_year=raw.get("reference_year", base.reference_year),
    )


# ---------- Drawdown inputs ----------
def drawdown_inputs_to_list(inputs: Mapping[int, DrawdownInput]) -> List[list]:
    """Ordered ``[year, record]`` pairs; JSON object keys would turn years into strings."""
    return [[year, asdict(inputs[year])] for year in sorted(inputs)]


def drawdown_inputs_from_list(pairs: List[list]) -> Dict[int, DrawdownInput]:
    result: Dict[int, DrawdownInput] = {}
    for year, record in pairs:
        result[int(year)] = DrawdownInput(
            year=int(record["year"]),
            tax_year=str(record["tax_year"]),
            pcls_drawdown=float(record["pcls_drawdown"]),
            sipp_drawdown=float(record["sipp_drawdown"]),
        )
    return result


# ---------- Snapshot file ----------
def default_snapshot() -> Snapshot:
    settings = defaults.default_settings()
    inputs = default_drawdown_inputs(
        settings.start_year,
        settings.end_year,
        defaults.DEFAULT_PCLS_DRAWDOWN,
        defaults.DEFAULT_SIPP_DRAWDOWN,
    )
    return settings, inputs


def snapshot_to_json(settings: PlanSettings, inputs: Mapping[int, DrawdownInput]) -> str:
    payload = {
        "version": SNAPSHOT_VERSION,
        "settings": settings_to_dict(settings),
        "drawdown_inputs": drawdown_inputs_to_list(inputs),
    }
    return json.dumps(payload, indent=2, allow_nan=False)


def snapshot_from_json(text: str) -> Snapshot:
    raw = json.loads(text)
    settings = settings_from_dict(raw.get("settings", {}))
    if "drawdown_inputs" in raw:
        inputs = drawdown_inputs_from_list(raw["drawdown_inputs"])
    else:
        inputs = default_snapshot()[1]
    return settings, inputs


def save_snapshot(path: str, settings: PlanSettings, inputs: Mapping[int, DrawdownInput]) -> None:
    ensure_data_dir(path)
    tmp_path = f"{path}.tmp"
    blob = snapshot_to_json(settings, inputs)
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write(blob)
    os.replace(tmp_path, path)


def load_snapshot(path: str) -> Snapshot:
    """Read a snapshot, or the defaults when the file is missing, empty or unreadable."""
    if not os.path.exists(path):
        return default_snapshot()
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_text = f.read().strip()
        if not raw_text:
            return default_snapshot()
        return snapshot_from_json(raw_text)
    except (json.JSONDecodeError, OSError, KeyError, TypeError, ValueError) as exc:
        logger.warning("Ignoring unreadable snapshot %s: %s", path, exc)
        return default_snapshot()


__all__ = [
    "SNAPSHOT_VERSION",
    "DEPRECATED_OPTIMIZER_KEYS",
    "settings_to_dict",
    "settings_from_dict",
    "drawdown_inputs_to_list",
    "drawdown_inputs_from_list",
    "default_snapshot",
    "snapshot_to_json",
    "snapshot_from_json",
    "save_snapshot",
    "load_snapshot",
]
