#!/usr/bin/env python3

import math
import os
from fractions import Fraction

#============================================

_QUIET_MODE = False

#============================================

def set_quiet_mode(value: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(value)
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def log(message: str) -> None:
	if _QUIET_MODE:
		return
	print(message)

#============================================

def parse_fps(raw_fps) -> Fraction:
	if raw_fps is None:
		raise RuntimeError("source.fps is required")
	if isinstance(raw_fps, int):
		return Fraction(raw_fps, 1)
	if isinstance(raw_fps, float):
		return Fraction(str(raw_fps))
	if isinstance(raw_fps, str):
		if '/' in raw_fps:
			parts = raw_fps.split('/')
			return Fraction(int(parts[0]), int(parts[1]))
		return Fraction(raw_fps)
	raise RuntimeError("source.fps must be int, float, or fraction string")

#============================================

def parse_time_seconds(raw_time) -> float | None:
	"""
	Parse a time value into seconds.

	Args:
		raw_time: None, number, seconds string, or [HH:]MM:SS[.ms].

	Returns:
		float | None: Parsed seconds.
	"""
	if raw_time is None:
		return None
	if isinstance(raw_time, bool):
		raise RuntimeError("time values must be numbers or timecode strings")
	if isinstance(raw_time, (int, float)):
		return float(raw_time)
	if not isinstance(raw_time, str):
		raise RuntimeError("time values must be numbers or timecode strings")
	text = raw_time.strip()
	if text == "":
		return None
	if ':' not in text:
		return float(text)
	parts = text.split(':')
	if len(parts) > 3:
		raise RuntimeError("time must be seconds or [HH:]MM:SS[.ms]")
	seconds = float(parts.pop())
	minutes = float(parts.pop())
	hours = 0.0
	if len(parts) > 0:
		hours = float(parts.pop())
	if hours < 0 or minutes < 0 or seconds < 0:
		raise RuntimeError("time components must be non-negative")
	return hours * 3600.0 + minutes * 60.0 + seconds

#============================================

def parse_speed_percent(raw_value) -> float:
	if raw_value is None:
		return 100.0
	if isinstance(raw_value, str):
		text = raw_value.strip()
		if text.endswith('%'):
			text = text[:-1]
		return float(text)
	if isinstance(raw_value, (int, float)):
		return float(raw_value)
	raise RuntimeError("speed.percent must be a number")

#============================================

def frame_index(time_seconds: float, fps: float) -> int:
	"""
	Map a time in seconds to the nearest frame index at fps.
	"""
	frames = max(0.0, time_seconds) * max(1.0, fps)
	# half away from zero, frames is never negative here
	return max(0, int(math.floor(frames + 0.5)))

#============================================

def clamp(value: float, low: float, high: float) -> float:
	return max(low, min(high, value))

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.exists(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return
