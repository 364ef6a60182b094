#!/usr/bin/env python3

"""
Brightness, contrast, gamma and saturation as engine filters.

The math mirrors the live preview pipeline: saturation mixes each channel
toward Rec.709 luma, then a per-channel lookup applies contrast around
mid-gray, adds brightness and raises to gamma.
"""

from typing import NamedTuple
from framekeylib.core import utils
from framekeylib.expr import formatter
from framekeylib.expr.formatter import fixed6

#============================================

LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722

RANGES = {
	'brightness': (-1.0, 1.0),
	'contrast': (0.0, 2.0),
	'gamma': (0.5, 2.5),
	'saturation': (0.0, 2.0),
}

#============================================

class ColorAdjustment(NamedTuple):
	brightness: float = 0.0
	contrast: float = 1.0
	gamma: float = 1.0
	saturation: float = 1.0

	@property
	def is_modified(self) -> bool:
		return self != IDENTITY

	def clamped(self) -> 'ColorAdjustment':
		values = {}
		for name, (low, high) in RANGES.items():
			values[name] = utils.clamp(float(getattr(self, name)), low, high)
		return ColorAdjustment(**values)

#============================================

IDENTITY = ColorAdjustment()

#============================================

def saturation_matrix(saturation: float) -> tuple:
	"""
	3x3 channel mix, rows are output r, g, b.
	"""
	a = (1.0 - saturation) * LUMA_R
	b = (1.0 - saturation) * LUMA_G
	c = (1.0 - saturation) * LUMA_B
	return (
		(a + saturation, b, c),
		(a, b + saturation, c),
		(a, b, c + saturation),
	)

#============================================

def curve_expression(adjustment: ColorAdjustment) -> str:
	contrast = fixed6(adjustment.contrast)
	brightness = fixed6(adjustment.brightness)
	gamma = fixed6(adjustment.gamma)
	return (f"clip(pow(clip(((val/maxval-0.5)*{contrast}+0.5+{brightness}),0,1),"
		f"{gamma})*maxval,0,maxval)")

#============================================

def apply_curve(adjustment: ColorAdjustment, value: float, max_value: float = 255.0) -> float:
	"""Numeric twin of curve_expression() for one channel value."""
	level = (value / max_value - 0.5) * adjustment.contrast + 0.5 + adjustment.brightness
	level = utils.clamp(level, 0.0, 1.0)
	return utils.clamp((level ** adjustment.gamma) * max_value, 0.0, max_value)

#============================================

def compile_color_expression(adjustment: ColorAdjustment) -> str | None:
	"""
	Filter text for a color adjustment, or None for the identity.

	Args:
		adjustment: Color adjustment values.

	Returns:
		str | None: Comma separated filters.
	"""
	if not adjustment.is_modified:
		return None
	filters = []
	if adjustment.saturation != 1.0:
		rows = saturation_matrix(adjustment.saturation)
		names = ('r', 'g', 'b')
		pairs = []
		for out_index, out_name in enumerate(names):
			for in_index, in_name in enumerate(names):
				pairs.append(f"{out_name}{in_name}={fixed6(rows[out_index][in_index])}")
		filters.append("colorchannelmixer=" + ":".join(pairs))
	if adjustment.brightness != 0.0 or adjustment.contrast != 1.0 or adjustment.gamma != 1.0:
		escaped = formatter.escape_filter_commas(curve_expression(adjustment))
		filters.append(f"lutrgb=r='{escaped}':g='{escaped}':b='{escaped}'")
	return ",".join(filters)
