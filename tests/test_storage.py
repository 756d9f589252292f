"""Unit tests for the storage module.

Snapshots are written to pytest's ``tmp_path`` so nothing touches the app's
data directory.
"""

import dataclasses
import json
import logging
import math

from pension_planner import storage
from pension_planner.defaults import default_settings
from pension_planner.models import update_drawdown


def test_settings_round_trip_keeps_infinite_band():
    settings = default_settings()
    raw = storage.settings_to_dict(settings)
    assert raw["tax"]["bands"][-1]["max"] is None
    restored = storage.settings_from_dict(json.loads(json.dumps(raw)))
    assert restored == settings
    assert math.isinf(restored.tax.bands[-1].max)


def test_drawdown_inputs_round_trip():
    _, inputs = storage.default_snapshot()
    inputs = update_drawdown(inputs, 2040, 1234.5, 6789.0)
    pairs = json.loads(json.dumps(storage.drawdown_inputs_to_list(inputs)))
    assert pairs[0][0] == 2031
    assert storage.drawdown_inputs_from_list(pairs) == inputs


def test_save_and_load_snapshot(tmp_path):
    path = str(tmp_path / "data" / "snapshot.json")
    settings = dataclasses.replace(default_settings(), show_real_terms=True, reference_year=2035)
    _, inputs = storage.default_snapshot()
    inputs = update_drawdown(inputs, 2031, 0.0, 50000.0)

    storage.save_snapshot(path, settings, inputs)
    assert not (tmp_path / "data" / "snapshot.json.tmp").exists()

    loaded_settings, loaded_inputs = storage.load_snapshot(path)
    assert loaded_settings == settings
    assert loaded_inputs == inputs


def test_missing_or_empty_file_gives_defaults(tmp_path):
    assert storage.load_snapshot(str(tmp_path / "nope.json")) == storage.default_snapshot()
    empty = tmp_path / "empty.json"
    empty.write_text("  ")
    assert storage.load_snapshot(str(empty)) == storage.default_snapshot()


def test_corrupt_file_gives_defaults_and_warns(tmp_path, caplog):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with caplog.at_level(logging.WARNING, logger="pension_planner.storage"):
        assert storage.load_snapshot(str(path)) == storage.default_snapshot()
    assert "unreadable snapshot" in caplog.text


def test_optimizer_merged_over_defaults_and_old_keys_dropped():
    settings = storage.settings_from_dict(
        {"optimizer": {"target_year": 2050, "pcls_depletion_year": 2040, "pcls_remainder": 0}}
    )
    assert settings.optimizer.target_year == 2050
    assert settings.optimizer.target_residual == 100000
    assert settings.optimizer.bias_pct == 20
    # Everything else falls back to the defaults
    assert settings.pot == default_settings().pot
