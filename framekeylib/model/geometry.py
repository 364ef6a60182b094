#!/usr/bin/env python3

"""
Normalized rectangles, clip windows and the pixel crop encoding.
"""

import math

#============================================

MIN_RECT_SIZE = 0.0001

#============================================

class NormalizedRect():
	"""
	Rectangle in [0, 1] frame coordinates with a top-left origin.

	Every construction clamps: the origin into [0, 1] and the size into
	[MIN_RECT_SIZE, 1 - origin]. The rect never collapses to zero area.
	"""
	__slots__ = ('x', 'y', 'width', 'height')

	def __init__(self, x: float, y: float, width: float, height: float):
		x = max(0.0, min(1.0, float(x)))
		y = max(0.0, min(1.0, float(y)))
		width = max(MIN_RECT_SIZE, min(1.0 - x, float(width)))
		height = max(MIN_RECT_SIZE, min(1.0 - y, float(height)))
		object.__setattr__(self, 'x', x)
		object.__setattr__(self, 'y', y)
		object.__setattr__(self, 'width', width)
		object.__setattr__(self, 'height', height)

	def __setattr__(self, name, value):
		raise AttributeError("NormalizedRect is immutable")

	def __eq__(self, other) -> bool:
		if not isinstance(other, NormalizedRect):
			return NotImplemented
		return self.as_tuple() == other.as_tuple()

	def __hash__(self) -> int:
		return hash(self.as_tuple())

	def __repr__(self) -> str:
		return (f"NormalizedRect(x={self.x!r}, y={self.y!r}, "
			f"width={self.width!r}, height={self.height!r})")

	#============================
	def as_tuple(self) -> tuple:
		return (self.x, self.y, self.width, self.height)

	#============================
	@property
	def mid_x(self) -> float:
		return self.x + self.width / 2.0

	#============================
	@property
	def mid_y(self) -> float:
		return self.y + self.height / 2.0

	#============================
	def centered_on(self, center_x: float, center_y: float) -> 'NormalizedRect':
		"""Same size, moved so its center sits at the given point (then clamped)."""
		return centered_rect(center_x, center_y, self.width, self.height)

	#============================
	@classmethod
	def from_bottom_left(cls, x: float, y: float, width: float,
		height: float) -> 'NormalizedRect':
		"""Build from a detector rect whose origin is the bottom-left corner."""
		return cls(x, 1.0 - y - height, width, height)

	#============================
	def to_bottom_left(self) -> tuple:
		return (self.x, 1.0 - self.y - self.height, self.width, self.height)

	#============================
	def to_crop_pixels(self, pixel_size: tuple) -> tuple:
		"""
		Convert to an integer pixel crop inside the frame.

		Args:
			pixel_size: (width, height) of the source in pixels.

		Returns:
			tuple: (x, y, w, h) with w, h >= 1 and the crop fully inside.
		"""
		(frame_w, frame_h) = resolve_pixel_dimensions(pixel_size)
		crop_w = max(1, round_half_away(self.width * frame_w))
		crop_h = max(1, round_half_away(self.height * frame_h))
		crop_x = round_half_away(self.x * frame_w)
		crop_y = round_half_away(self.y * frame_h)
		crop_w = min(crop_w, frame_w)
		crop_h = min(crop_h, frame_h)
		crop_x = max(0, min(frame_w - crop_w, crop_x))
		crop_y = max(0, min(frame_h - crop_h, crop_y))
		return (crop_x, crop_y, crop_w, crop_h)

	#============================
	@classmethod
	def from_crop_pixels(cls, crop: tuple, pixel_size: tuple) -> 'NormalizedRect':
		(frame_w, frame_h) = resolve_pixel_dimensions(pixel_size)
		(crop_x, crop_y, crop_w, crop_h) = crop
		return cls(crop_x / frame_w, crop_y / frame_h, crop_w / frame_w, crop_h / frame_h)

#============================================

FULL_FRAME = NormalizedRect(0.0, 0.0, 1.0, 1.0)

#============================================

def centered_rect(center_x: float, center_y: float, width: float,
	height: float) -> NormalizedRect:
	return NormalizedRect(center_x - width / 2.0, center_y - height / 2.0, width, height)

#============================================

def round_half_away(value: float) -> int:
	if value >= 0:
		return int(math.floor(value + 0.5))
	return -int(math.floor(-value + 0.5))

#============================================

def resolve_pixel_dimensions(pixel_size: tuple) -> tuple:
	"""Round a (width, height) pair to whole pixels, at least 1 each."""
	(width, height) = pixel_size
	frame_w = max(1, round_half_away(abs(float(width))))
	frame_h = max(1, round_half_away(abs(float(height))))
	return (frame_w, frame_h)

#============================================

def format_crop_text(crop: tuple) -> str:
	(crop_x, crop_y, crop_w, crop_h) = crop
	return f"{crop_x}:{crop_y}:{crop_w}:{crop_h}"

#============================================

def parse_crop_text(text) -> tuple | None:
	"""
	Parse an 'x:y:w:h' pixel crop.

	Returns:
		tuple | None: Four floats, or None when the text is malformed.
	"""
	if not isinstance(text, str):
		return None
	parts = text.split(':')
	if len(parts) != 4:
		return None
	values = []
	for part in parts:
		try:
			value = float(part)
		except ValueError:
			return None
		if not math.isfinite(value):
			return None
		values.append(value)
	return tuple(values)

#============================================

class ClipWindow():
	"""
	Active [start, end] range of the source, in seconds.
	"""
	__slots__ = ('start', 'end')

	def __init__(self, start: float, end: float):
		start = max(0.0, float(start))
		end = max(start, float(end))
		object.__setattr__(self, 'start', start)
		object.__setattr__(self, 'end', end)

	def __setattr__(self, name, value):
		raise AttributeError("ClipWindow is immutable")

	def __eq__(self, other) -> bool:
		if not isinstance(other, ClipWindow):
			return NotImplemented
		return (self.start, self.end) == (other.start, other.end)

	def __hash__(self) -> int:
		return hash((self.start, self.end))

	def __repr__(self) -> str:
		return f"ClipWindow(start={self.start!r}, end={self.end!r})"

	#============================
	@property
	def duration(self) -> float:
		return self.end - self.start

	#============================
	def contains(self, time_seconds: float, epsilon: float = 0.0) -> bool:
		return (self.start - epsilon) <= time_seconds <= (self.end + epsilon)

	#============================
	@classmethod
	def resolve(cls, source_duration: float | None, trim_start: float | None = None,
		trim_end: float | None = None) -> 'ClipWindow':
		"""
		Derive the window from an optional trim range and the source duration.

		A non-positive or missing duration means the duration is unknown and
		only the trim values bound the window.
		"""
		duration = 0.0
		if source_duration is not None and math.isfinite(source_duration):
			duration = max(0.0, float(source_duration))
		start = max(0.0, trim_start if trim_start is not None else 0.0)
		if duration > 0:
			start = min(start, duration)
		if trim_end is not None:
			raw_end = max(0.0, trim_end)
		elif duration > 0:
			raw_end = duration
		else:
			raw_end = start
		if duration > 0:
			return cls(start, min(max(raw_end, start), duration))
		return cls(start, max(raw_end, start))
