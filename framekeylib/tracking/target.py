#!/usr/bin/env python3

"""
Size and place the square the object detector follows inside a crop.
"""

from framekeylib.model.geometry import NormalizedRect
from framekeylib.model.geometry import centered_rect

#============================================

DEFAULT_TARGET = {
	'base_fraction': 0.06,
	'min_size_px': 24.0,
	'max_inside_crop': 0.45,
	'floor_px': 8.0,
}

#============================================

def square_size_pixels(crop_rect: NormalizedRect, pixel_size: tuple,
	target: dict | None = None) -> float:
	"""
	Side of the tracked square in pixels.

	A fraction of the short frame side, at least min_size_px, but never
	more than max_inside_crop of the crop's short side.
	"""
	target = target or DEFAULT_TARGET
	width = max(1.0, abs(pixel_size[0]))
	height = max(1.0, abs(pixel_size[1]))
	crop_width_px = max(1.0, crop_rect.width * width)
	crop_height_px = max(1.0, crop_rect.height * height)
	base = min(width, height) * target['base_fraction']
	max_inside = min(crop_width_px, crop_height_px) * target['max_inside_crop']
	size = min(max(target['min_size_px'], base), max_inside)
	return max(target['floor_px'], size)

#============================================

def target_rect(crop_rect: NormalizedRect, pixel_size: tuple,
	target: dict | None = None) -> NormalizedRect:
	"""Tracked square centered in the crop, in normalized coordinates."""
	size_px = square_size_pixels(crop_rect, pixel_size, target)
	width = max(1.0, abs(pixel_size[0]))
	height = max(1.0, abs(pixel_size[1]))
	size_norm = min(size_px / width, size_px / height)
	return centered_rect(crop_rect.mid_x, crop_rect.mid_y, size_norm, size_norm)
