#!/usr/bin/env python3

"""
Order the compiled pieces into one video filter chain.

Process invocation is left to the caller; this only decides which filters
appear and in what order.
"""

from framekeylib.expr.formatter import dot
from framekeylib.filters import color_expr
from framekeylib.filters import crop_expr
from framekeylib.filters import framerate
from framekeylib.filters import speed_expr

#============================================

def trim_filter(start: float, end: float) -> str:
	return f"trim=start={dot(start)}:end={dot(end)},setpts=PTS-STARTPTS"

#============================================

def scale_filter(width: int, height: int) -> str:
	return f"scale={int(width)}:{int(height)}:force_original_aspect_ratio=decrease"

#============================================

def speed_filter(plan: dict, reset_pts: bool) -> str:
	speed_map = plan.get('speed_map') or []
	if len(speed_map) >= 2:
		return speed_expr.compile_speed_map_filter(speed_map, reset_pts)
	return speed_expr.compile_speed_expression(plan['window'].duration,
		plan.get('speed', 1.0), reset_pts)

#============================================

def build_video_filters(plan: dict) -> list:
	"""
	Build the ordered video filter list.

	Args:
		plan: Mapping with 'window', 'pixel_size', 'trimmed' (bool), 'speed',
			optional 'speed_map', 'crop_keyframes', 'crop_rect', 'scale',
			'color', 'frame_rate' and 'settings'.

	Returns:
		list: Filter strings, empty when nothing applies.
	"""
	window = plan['window']
	settings = plan.get('settings') or {}
	crop_settings = settings.get('crop', {})
	easing_kind = crop_settings.get('easing', crop_expr.DEFAULT_EASING)
	timebase = crop_settings.get('timebase', crop_expr.DEFAULT_TIMEBASE)
	filters = []

	dynamic_filter = None
	keyframes = plan.get('crop_keyframes') or []
	if len(keyframes) > 0:
		setpts_filter = speed_filter(plan, True)
		dynamic_filter = crop_expr.compile_crop_expression(keyframes, window,
			setpts_filter, plan['pixel_size'], easing_kind, timebase)

	if dynamic_filter is not None:
		# crop times count from the window start, so cut the source there first
		if window.start > 0:
			filters.append(trim_filter(window.start, window.end))
		filters.append(dynamic_filter)
	else:
		if plan.get('trimmed'):
			filters.append(trim_filter(window.start, window.end))
		speed = plan.get('speed', 1.0)
		if len(plan.get('speed_map') or []) >= 2 or not speed_expr.is_identity_speed(speed):
			filters.append(speed_filter(plan, False))

	scale = plan.get('scale')
	if scale is not None:
		filters.append(scale_filter(scale[0], scale[1]))

	crop_rect = plan.get('crop_rect')
	if dynamic_filter is None and crop_rect is not None:
		filters.append(crop_expr.compile_static_crop(crop_rect, plan['pixel_size']))

	adjustment = plan.get('color')
	if adjustment is not None:
		color_filter = color_expr.compile_color_expression(adjustment)
		if color_filter is not None:
			filters.append(color_filter)

	frame_rate = plan.get('frame_rate')
	if frame_rate is not None:
		fps_filter = framerate.compile_frame_rate_filter(frame_rate['mode'],
			frame_rate.get('target'))
		if fps_filter is not None:
			filters.append(fps_filter)
	return filters

#============================================

def build_boomerang_graph(has_audio: bool) -> str:
	"""Forward then reversed copy, concatenated."""
	if has_audio:
		return ("[0:v]reverse[vrev];[0:a]areverse[arev];"
			"[0:v][0:a][vrev][arev]concat=n=2:v=1:a=1[v][a]")
	return "[0:v]reverse[vrev];[0:v][vrev]concat=n=2:v=1:a=0[v]"
