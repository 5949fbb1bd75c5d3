"""
Threshold registry tests: validation, versioning and persisted reload.
"""

import pytest

from engine.errors import ValidationError
from engine.thresholds import ThresholdConfig, ThresholdRegistry, get_thresholds


def test_defaults():
    cfg = ThresholdRegistry().get()
    assert cfg.response_time_seconds == 5.0
    assert cfg.success_rate_pct == 80.0
    assert cfg.error_rate_pct == 10.0
    assert cfg.handoff_time_seconds == 3.0
    assert cfg.version == 0


def test_set_bumps_version_and_keeps_other_fields():
    reg = ThresholdRegistry()
    updated = reg.set({"error_rate_pct": 20})
    assert updated.version == 1
    assert updated.error_rate_pct == 20.0
    assert updated.response_time_seconds == 5.0
    assert reg.get() is updated


def test_held_snapshot_is_unaffected_by_updates():
    reg = ThresholdRegistry()
    held = reg.get()
    reg.set({"success_rate_pct": 50})
    assert held.success_rate_pct == 80.0
    assert held.version == 0


@pytest.mark.parametrize(
    "values",
    [
        {"error_rate_pct": 150},
        {"success_rate_pct": -1},
        {"response_time_seconds": 0},
        {"handoff_time_seconds": "soon"},
        {"error_rate_pct": True},
        {"error_rate_pct": float("nan")},
        {"latency_budget": 3},
    ],
)
def test_invalid_updates_leave_state_unchanged(values):
    reg = ThresholdRegistry()
    before = reg.get()
    with pytest.raises(ValidationError):
        reg.set(values)
    assert reg.get() is before


def test_load_keeps_stored_version():
    reg = ThresholdRegistry()
    loaded = reg.load({"error_rate_pct": 15.0, "version": 7})
    assert loaded.version == 7
    assert loaded.error_rate_pct == 15.0
    assert reg.set({"error_rate_pct": 16.0}).version == 8


def test_as_dict_round_trips_into_config():
    cfg = ThresholdConfig(error_rate_pct=12.5, version=3)
    assert ThresholdConfig(**cfg.as_dict()) == cfg


def test_module_registry_is_shared():
    assert get_thresholds() is get_thresholds()
