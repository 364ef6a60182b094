#!/usr/bin/env python3

"""
Pytest coverage for settings files.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.core import config

#============================================

def test_defaults_without_file() -> None:
	settings = config.load_settings(None)
	assert settings['tracking']['min_confidence'] == 0.25
	assert settings['tracking']['max_samples'] == 5000
	assert settings['target']['base_fraction'] == 0.06
	assert settings['crop']['easing'] == "easeInOutSine"
	assert settings['crop']['timebase'] == "1/9000"

#============================================

def test_written_defaults_round_trip(tmp_path) -> None:
	config_path = os.path.join(str(tmp_path), "nested", "framekey_config.yaml")
	config.write_config_file(config_path, config.default_config())
	assert config.load_settings(config_path) == config.build_settings(None)

#============================================

def test_overrides_are_coerced() -> None:
	settings = config.build_settings({
		'settings': {
			'tracking': {'min_confidence': "0.5", 'max_samples': 200.0},
			'crop': {'easing': "linear", 'merge_tolerance_frames': 2},
		},
	})
	assert settings['tracking']['min_confidence'] == 0.5
	assert settings['tracking']['max_samples'] == 200
	assert settings['crop']['easing'] == "linear"
	assert settings['crop']['merge_tolerance_frames'] == 2
	assert settings['tracking']['smoothing_alpha_y'] == 0.58

#============================================

@pytest.mark.parametrize("overrides", [
	{'tracking': {'min_confidence': 1.5}},
	{'tracking': {'min_confidence': True}},
	{'tracking': {'min_sample_fps': 30.0}},
	{'tracking': {'max_samples': 0}},
	{'tracking': {'unknown_key': 1}},
	{'target': {'floor_px': "wide"}},
	{'crop': {'merge_tolerance_frames': -1}},
	{'crop': {'easing': 3}},
	{'crop': "fast"},
])
def test_bad_settings_raise(overrides: dict) -> None:
	with pytest.raises(RuntimeError):
		config.build_settings({'settings': overrides}, "test.yaml")

#============================================

def test_header_is_required(tmp_path) -> None:
	config_path = tmp_path / "bad.yaml"
	config_path.write_text("settings: {}\n", encoding="utf-8")
	with pytest.raises(RuntimeError):
		config.load_settings(str(config_path))
