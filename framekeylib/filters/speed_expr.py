#!/usr/bin/env python3

"""
Compile playback speed into a setpts time-remap.

A single multiplier uses the closed form 'k*PTS'. A speed map integrates
1/speed over each section, with speed varying linearly between the two
points bounding the section, and sums the section terms.
"""

from framekeylib.expr.formatter import dot
from framekeylib.model.keyframes import SpeedKeyframe

#============================================

IDENTITY_TOLERANCE = 0.000001
MIN_SPEED = 0.000001
SECTION_EPSILON = 0.0000001
SLOPE_EPSILON = 0.000001
ELAPSED = "(T-STARTT)"

#============================================

class InvalidDurationError(RuntimeError):
	pass

#============================================

def identity_filter(reset_pts: bool = False) -> str:
	if reset_pts:
		return "setpts=PTS-STARTPTS"
	return "setpts=PTS"

#============================================

def is_identity_speed(multiplier: float) -> bool:
	if multiplier <= 0:
		return True
	return abs(multiplier - 1.0) < IDENTITY_TOLERANCE

#============================================

def constant_speed_filter(multiplier: float, reset_pts: bool = False) -> str:
	speed = max(MIN_SPEED, multiplier)
	base = "PTS"
	if reset_pts:
		base = "(PTS-STARTPTS)"
	return f"setpts={dot(1.0 / speed)}*{base}"

#============================================

def compile_speed_expression(duration: float, multiplier: float,
	reset_pts: bool = False) -> str:
	"""
	Time-remap filter for one constant speed multiplier.

	Args:
		duration: Clip duration in seconds.
		multiplier: Playback speed, 1.0 for normal speed.
		reset_pts: Rebase timestamps to start at zero.

	Returns:
		str: setpts filter text.
	"""
	if duration is not None and duration < 0:
		raise InvalidDurationError(f"clip duration must not be negative: {duration}")
	if is_identity_speed(multiplier):
		return identity_filter(reset_pts)
	return constant_speed_filter(multiplier, reset_pts)

#============================================

def sort_speed_keyframes(keyframes: list) -> list:
	return sorted(keyframes, key=lambda item: (item.time, item.speed))

#============================================

def _section_term(start_speed: float, end_speed: float, section_start: float,
	section_end: float) -> str:
	section_duration = section_end - section_start
	slope = (end_speed - start_speed) / section_duration
	intercept = start_speed - (slope * section_start)
	if abs(slope) < SLOPE_EPSILON:
		return (f"(min((T-STARTT-({dot(section_start)})),{dot(section_duration)})"
			f"/{dot(end_speed)})")
	slope_text = dot(slope)
	intercept_text = dot(intercept)
	upper = f"log(abs({slope_text}*min({ELAPSED},{dot(section_end)})+({intercept_text})))"
	lower = f"log(abs({slope_text}*{dot(section_start)}+({intercept_text})))"
	return f"(1/{slope_text})*({upper}-{lower})"

#============================================

def compile_speed_map_expression(keyframes: list) -> str | None:
	"""
	Remap body for a speed map, or None when no section survives.

	Args:
		keyframes: SpeedKeyframe list, at least two points.

	Returns:
		str | None: Expression in seconds of source time, to be divided by TB.
	"""
	points = sort_speed_keyframes(keyframes)
	if len(points) < 2:
		return None
	map_start = points[0].time
	parts = []
	for index in range(len(points) - 1):
		left = points[index]
		right = points[index + 1]
		start_speed = max(MIN_SPEED, left.speed)
		end_speed = max(MIN_SPEED, right.speed)
		section_start = left.time - map_start
		section_end = right.time - map_start
		if section_end - section_start <= SECTION_EPSILON:
			continue
		term = _section_term(start_speed, end_speed, section_start, section_end)
		guarded = f"if(gte({ELAPSED},{dot(section_start)}), {term},0)"
		if index == 0:
			parts.append(f"(if(eq(N,0),0,{guarded}))")
		else:
			# a leading '+' is a unary plus when the first section was skipped
			parts.append(f"+({guarded})")
	if len(parts) == 0:
		return None
	return f"({''.join(parts)})"

#============================================

def compile_speed_map_filter(keyframes: list, reset_pts: bool = False) -> str:
	"""
	setpts filter for a speed map, falling back to the closed form.
	"""
	expression = compile_speed_map_expression(keyframes)
	if expression is not None:
		return f"setpts='{expression}/TB'"
	if len(keyframes) == 0:
		return identity_filter(reset_pts)
	speed = sort_speed_keyframes(keyframes)[0].speed
	if is_identity_speed(speed):
		return identity_filter(reset_pts)
	return constant_speed_filter(speed, reset_pts)

#============================================

def speed_map_from_percent(duration: float, percent: float) -> list:
	"""Two-point map holding one speed across a clip."""
	speed = percent / 100.0
	return [SpeedKeyframe(0.0, speed), SpeedKeyframe(duration, speed)]
