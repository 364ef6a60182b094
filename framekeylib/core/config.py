#!/usr/bin/env python3

"""
config.py

Settings file handling for the tracker and crop compiler.

A settings file is a small YAML mapping with a header key. Missing keys fall
back to defaults; present keys are coerced and range checked.
"""

# Standard Library
import copy
import os

# PIP3 modules
import yaml

#============================================

CONFIG_HEADER_KEY = "framekey"
CONFIG_HEADER_VALUE = 1

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default config.
	"""
	return {
		CONFIG_HEADER_KEY: CONFIG_HEADER_VALUE,
		"settings": {
			"tracking": {
				"min_confidence": 0.25,
				"sample_density": 0.70,
				"min_sample_fps": 8.0,
				"max_sample_fps": 20.0,
				"max_samples": 5000,
				"max_jump_factor": 0.7,
				"min_jump_px": 10.0,
				"vertical_jump_scale": 1.45,
				"smoothing_alpha_x": 0.38,
				"smoothing_alpha_y": 0.58,
				"max_consecutive_failures": 0,
			},
			"target": {
				"base_fraction": 0.06,
				"min_size_px": 24.0,
				"max_inside_crop": 0.45,
				"floor_px": 8.0,
			},
			"crop": {
				"easing": "easeInOutSine",
				"timebase": "1/9000",
				"merge_tolerance_frames": 0,
			},
		},
	}

#============================================

def build_config_text(config: dict) -> str:
	"""
	Build YAML text for the config file.

	Args:
		config: Config dictionary.

	Returns:
		str: YAML content.
	"""
	settings = config.get("settings", {})
	tracking = settings.get("tracking", {})
	target = settings.get("target", {})
	crop = settings.get("crop", {})
	defaults = default_config()["settings"]
	lines = []
	lines.append(f"{CONFIG_HEADER_KEY}: {CONFIG_HEADER_VALUE}")
	lines.append("settings:")
	lines.append("  tracking:")
	for key, value in defaults["tracking"].items():
		lines.append(f"    {key}: {tracking.get(key, value)}")
	lines.append("  target:")
	for key, value in defaults["target"].items():
		lines.append(f"    {key}: {target.get(key, value)}")
	lines.append("  crop:")
	lines.append(f"    easing: {crop.get('easing', defaults['crop']['easing'])}")
	lines.append(f"    timebase: \"{crop.get('timebase', defaults['crop']['timebase'])}\"")
	merge_tolerance = crop.get('merge_tolerance_frames',
		defaults['crop']['merge_tolerance_frames'])
	lines.append(f"    merge_tolerance_frames: {merge_tolerance}")
	lines.append("")
	return "\n".join(lines)

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	"""
	Write a config file to disk.

	Args:
		config_path: Output file path.
		config: Config dictionary.
	"""
	text = build_config_text(config)
	os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
	with open(config_path, "w", encoding="utf-8") as handle:
		handle.write(text)
	return

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk.

	Args:
		config_path: Config file path.

	Returns:
		dict: Parsed config mapping.
	"""
	with open(config_path, "r", encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	if not isinstance(data, dict):
		raise RuntimeError("config file must be a mapping")
	if data.get(CONFIG_HEADER_KEY) != CONFIG_HEADER_VALUE:
		raise RuntimeError(f"config file must set {CONFIG_HEADER_KEY}: {CONFIG_HEADER_VALUE}")
	return data

#============================================

def coerce_float(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			raise RuntimeError(f"config {config_path}: {key_path} must be a number")
	raise RuntimeError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise RuntimeError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float):
		return int(value)
	if isinstance(value, str):
		try:
			return int(float(value))
		except ValueError:
			raise RuntimeError(f"config {config_path}: {key_path} must be an integer")
	raise RuntimeError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, str):
		return value
	raise RuntimeError(f"config {config_path}: {key_path} must be a string")

#============================================

def _require_range(value: float, low: float, high: float, config_path: str,
	key_path: str) -> float:
	if value < low or value > high:
		raise RuntimeError(f"config {config_path}: {key_path} must be in [{low}, {high}]")
	return value

#============================================

def build_settings(config: dict | None, config_path: str = "<defaults>") -> dict:
	"""
	Normalize settings with defaults.

	Args:
		config: Raw config mapping, or None for pure defaults.
		config_path: Config file path used in error messages.

	Returns:
		dict: Normalized settings with 'tracking', 'target' and 'crop' groups.
	"""
	defaults = default_config()["settings"]
	overrides = {}
	if isinstance(config, dict):
		overrides = config.get("settings", {}) or {}
	if not isinstance(overrides, dict):
		raise RuntimeError(f"config {config_path}: settings must be a mapping")
	settings = copy.deepcopy(defaults)
	for group_name in ("tracking", "target", "crop"):
		group = overrides.get(group_name, {}) or {}
		if not isinstance(group, dict):
			raise RuntimeError(f"config {config_path}: settings.{group_name} must be a mapping")
		for key in group:
			if key not in defaults[group_name]:
				raise RuntimeError(f"config {config_path}: unknown key settings.{group_name}.{key}")

	tracking_raw = overrides.get("tracking", {}) or {}
	tracking = settings["tracking"]
	for key, default_value in defaults["tracking"].items():
		key_path = f"settings.tracking.{key}"
		raw_value = tracking_raw.get(key, default_value)
		if isinstance(default_value, int):
			tracking[key] = coerce_int(raw_value, config_path, key_path)
		else:
			tracking[key] = coerce_float(raw_value, config_path, key_path)
	_require_range(tracking["min_confidence"], 0.0, 1.0, config_path,
		"settings.tracking.min_confidence")
	_require_range(tracking["sample_density"], 0.01, 1.0, config_path,
		"settings.tracking.sample_density")
	_require_range(tracking["smoothing_alpha_x"], 0.0, 1.0, config_path,
		"settings.tracking.smoothing_alpha_x")
	_require_range(tracking["smoothing_alpha_y"], 0.0, 1.0, config_path,
		"settings.tracking.smoothing_alpha_y")
	if tracking["min_sample_fps"] <= 0 or tracking["max_sample_fps"] < tracking["min_sample_fps"]:
		raise RuntimeError(f"config {config_path}: sample fps bounds must satisfy 0 < min <= max")
	if tracking["max_samples"] < 1:
		raise RuntimeError(f"config {config_path}: settings.tracking.max_samples must be positive")
	if tracking["max_consecutive_failures"] < 0:
		raise RuntimeError(
			f"config {config_path}: settings.tracking.max_consecutive_failures must be >= 0"
		)

	target_raw = overrides.get("target", {}) or {}
	target = settings["target"]
	for key, default_value in defaults["target"].items():
		key_path = f"settings.target.{key}"
		target[key] = coerce_float(target_raw.get(key, default_value), config_path, key_path)

	crop_raw = overrides.get("crop", {}) or {}
	crop = settings["crop"]
	crop["easing"] = coerce_str(crop_raw.get("easing", defaults["crop"]["easing"]),
		config_path, "settings.crop.easing")
	crop["timebase"] = coerce_str(str(crop_raw.get("timebase", defaults["crop"]["timebase"])),
		config_path, "settings.crop.timebase")
	crop["merge_tolerance_frames"] = coerce_int(
		crop_raw.get("merge_tolerance_frames", defaults["crop"]["merge_tolerance_frames"]),
		config_path, "settings.crop.merge_tolerance_frames")
	if crop["merge_tolerance_frames"] < 0:
		raise RuntimeError(
			f"config {config_path}: settings.crop.merge_tolerance_frames must be >= 0"
		)
	return settings

#============================================

def load_settings(config_path: str | None) -> dict:
	"""
	Load and normalize a settings file, or return defaults when no path is given.
	"""
	if config_path is None:
		return build_settings(None)
	data = load_config(config_path)
	return build_settings(data, config_path)
