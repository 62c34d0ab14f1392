"""Tests for JSON and TOML configuration loading."""

import json

import pytest
from pydantic import ValidationError

from ecg_digitizer import ConfigLoader, Layout, Lead


def test_from_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"layout": "3x4", "rhythm_leads": ["II"], "cabrera": True}))

    cfg = ConfigLoader.from_file(path)
    assert cfg.layout == Layout(3, 4)
    assert cfg.rhythm_leads == [Lead.II]
    assert cfg.cabrera


def test_from_toml_with_table(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[digitizer]\nlayout = "6x2"\nreference_pulse_at_right = true\ninterpolation = 5000\n'
    )

    cfg = ConfigLoader.from_file(path)
    assert cfg.reference_pulse_at_right
    assert cfg.interpolation == 5000


def test_from_toml_top_level(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("max_workers = 2\n")
    assert ConfigLoader.from_toml(path).max_workers == 2


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("layout: 6x2\n")
    with pytest.raises(ValueError, match="Unsupported config file format"):
        ConfigLoader.from_file(path)


def test_invalid_values_rejected(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"layout": "5x2"}))
    with pytest.raises(ValidationError):
        ConfigLoader.from_json(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader.from_json(tmp_path / "missing.json")
