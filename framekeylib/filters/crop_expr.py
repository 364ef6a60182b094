#!/usr/bin/env python3

"""
Compile crop keyframes into one time-varying crop filter.

Only the crop position moves; width and height stay at the first
keyframe's size. Each pair of neighbouring keyframes contributes one eased
term per axis, gated to its own time interval, and the terms are summed.
Times inside the expression are relative to the first keyframe in the
window.
"""

from typing import NamedTuple
from framekeylib.expr import easing
from framekeylib.expr import formatter
from framekeylib.expr.formatter import dot
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.keyframes import sort_crop_keyframes

#============================================

WINDOW_EPSILON = 0.000001
SECTION_EPSILON = 0.0000001
DEFAULT_EASING = 'easeInOutSine'
DEFAULT_TIMEBASE = '1/9000'

#============================================

class CropPosition(NamedTuple):
	x_expr: str
	y_expr: str
	width: int
	height: int
	clip_duration: float
	x_terms: tuple
	y_terms: tuple

	@property
	def is_static(self) -> bool:
		return len(self.x_terms) == 0

#============================================

def keyframes_in_window(keyframes: list, window: ClipWindow) -> list:
	selected = [item for item in keyframes
		if window.contains(item.time, WINDOW_EPSILON)]
	return sort_crop_keyframes(selected)

#============================================

def compile_crop_position(keyframes: list, window: ClipWindow, pixel_size: tuple,
	easing_kind: str = DEFAULT_EASING) -> CropPosition | None:
	"""
	Build the x/y position expressions for a keyframed crop.

	Args:
		keyframes: CropKeyframe list, any order.
		window: Active clip window.
		pixel_size: (width, height) of the source in pixels.
		easing_kind: Easing applied inside each section.

	Returns:
		CropPosition | None: None when no crop applies.
	"""
	if window.end <= window.start:
		return None
	clip_duration = max(0.0, window.end - window.start)
	if clip_duration <= 0:
		return None
	selected = keyframes_in_window(keyframes, window)
	if len(selected) == 0:
		return None

	first_time = selected[0].time
	first_crop = selected[0].rect.to_crop_pixels(pixel_size)
	if len(selected) == 1:
		return CropPosition(dot(first_crop[0]), dot(first_crop[1]),
			first_crop[2], first_crop[3], clip_duration, (), ())

	section_count = len(selected) - 1
	x_terms = []
	y_terms = []
	for sect in range(section_count):
		left_crop = selected[sect].rect.to_crop_pixels(pixel_size)
		right_crop = selected[sect + 1].rect.to_crop_pixels(pixel_size)
		start_time = selected[sect].time - first_time
		end_time = selected[sect + 1].time - first_time
		is_last = (sect == section_count - 1)
		if is_last:
			end_time = clip_duration
		section_duration = end_time - start_time
		if section_duration <= SECTION_EPSILON:
			continue

		ease_p = f"((t-{dot(start_time)})/{dot(section_duration)})"
		ease_x = easing.ease_expr(easing_kind, f"({dot(left_crop[0])})",
			f"({dot(right_crop[0])})", ease_p)
		ease_y = easing.ease_expr(easing_kind, f"({dot(left_crop[1])})",
			f"({dot(right_crop[1])})", ease_p)
		if is_last:
			gate = formatter.gate_closed("t", start_time, end_time)
		else:
			gate = formatter.gate_half_open("t", start_time, end_time)
		x_terms.append(str(formatter.gated(gate, ease_x)))
		y_terms.append(str(formatter.gated(gate, ease_y)))

	if len(x_terms) == 0 or len(y_terms) == 0:
		return None
	x_expr = formatter.piecewise_sum(x_terms)
	y_expr = formatter.piecewise_sum(y_terms)
	return CropPosition(str(x_expr), str(y_expr), first_crop[2], first_crop[3],
		clip_duration, tuple(x_terms), tuple(y_terms))

#============================================

def compile_crop_expression(keyframes: list, window: ClipWindow, setpts_filter: str,
	pixel_size: tuple, easing_kind: str = DEFAULT_EASING,
	timebase: str = DEFAULT_TIMEBASE) -> str | None:
	"""
	Build the full dynamic crop filter text.

	The result trims to the clip duration, applies the crop, resets the
	timebase and then applies setpts_filter. None means no crop filter is
	needed.
	"""
	position = compile_crop_position(keyframes, window, pixel_size, easing_kind)
	if position is None:
		return None
	crop_args = (f"x={position.x_expr}:y={position.y_expr}"
		f":w={dot(position.width)}:h={dot(position.height)}:exact=1")
	return (f"trim=0:{dot(position.clip_duration)},crop='{crop_args}',"
		f"settb={timebase},{setpts_filter}")

#============================================

def compile_static_crop(rect, pixel_size: tuple) -> str:
	"""Plain 'crop=w:h:x:y' for a single fixed rect."""
	(crop_x, crop_y, crop_w, crop_h) = rect.to_crop_pixels(pixel_size)
	return f"crop={crop_w}:{crop_h}:{crop_x}:{crop_y}"
