#!/usr/bin/env python3

"""
Keyframe value types and the frame-indexed keyframe map.
"""

import bisect
from typing import NamedTuple
from framekeylib.core import utils
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.geometry import NormalizedRect

#============================================

class CropKeyframe(NamedTuple):
	frame_index: int
	time: float
	rect: NormalizedRect

#============================================

class SpeedKeyframe(NamedTuple):
	time: float
	speed: float

#============================================

def sort_crop_keyframes(keyframes: list) -> list:
	return sorted(keyframes, key=lambda item: (item.frame_index, item.time))

#============================================

class KeyframeMap():
	"""
	Crop keyframes keyed by frame index, kept in index order.

	Writing to an index that already holds a keyframe replaces it, so the
	same frame never appears twice.
	"""
	def __init__(self):
		self._indices = []
		self._items = {}

	#============================
	def __len__(self) -> int:
		return len(self._indices)

	#============================
	def __contains__(self, frame_index: int) -> bool:
		return frame_index in self._items

	#============================
	def __iter__(self):
		return iter(self.keyframes())

	#============================
	def get(self, frame_index: int) -> CropKeyframe | None:
		return self._items.get(frame_index)

	#============================
	def indices(self) -> list:
		return list(self._indices)

	#============================
	def upsert(self, keyframe: CropKeyframe) -> int:
		frame_index = keyframe.frame_index
		if frame_index not in self._items:
			bisect.insort(self._indices, frame_index)
		self._items[frame_index] = keyframe
		return frame_index

	#============================
	def nearest_index(self, frame_index: int, tolerance: int) -> int | None:
		"""
		Closest stored index within tolerance frames; ties go to the lower one.
		"""
		if len(self._indices) == 0 or tolerance < 0:
			return None
		position = bisect.bisect_left(self._indices, frame_index)
		candidates = []
		if position > 0:
			candidates.append(self._indices[position - 1])
		if position < len(self._indices):
			candidates.append(self._indices[position])
		best = None
		for index in candidates:
			distance = abs(index - frame_index)
			if distance > tolerance:
				continue
			if best is None or distance < abs(best - frame_index):
				best = index
		return best

	#============================
	def upsert_near(self, frame_index: int, time: float, rect: NormalizedRect,
		tolerance: int = 0) -> int:
		"""
		Store a keyframe, merging into an existing one within tolerance.

		Args:
			frame_index: Frame the new observation maps to.
			time: Observation time in seconds.
			rect: Crop rect to store.
			tolerance: Maximum index distance for a merge, in frames.

		Returns:
			int: The frame index the keyframe was stored under.
		"""
		resolved = self.nearest_index(frame_index, tolerance)
		if resolved is None:
			resolved = frame_index
		return self.upsert(CropKeyframe(resolved, time, rect))

	#============================
	def remove(self, frame_index: int) -> CropKeyframe | None:
		keyframe = self._items.pop(frame_index, None)
		if keyframe is not None:
			self._indices.remove(frame_index)
		return keyframe

	#============================
	def clear(self) -> None:
		self._indices = []
		self._items = {}

	#============================
	def keyframes(self) -> list:
		return sort_crop_keyframes(self._items.values())

#============================================

class CropKeyframeSession():
	"""
	Keyframes recorded while editing one source.

	The map is rebuilt whenever the source, the trim window or the dynamic
	crop flag changes.
	"""
	def __init__(self, source_fps: float, window: ClipWindow,
		merge_tolerance: int = 0, dynamic: bool = True):
		self.source_fps = max(1.0, float(source_fps))
		self.window = window
		self.merge_tolerance = merge_tolerance
		self.dynamic = dynamic
		self.keyframe_map = KeyframeMap()

	#============================
	def record(self, time: float, rect: NormalizedRect) -> int | None:
		"""
		Record a crop at a time. Returns the resolved frame index, or None
		when dynamic mode is off.
		"""
		if not self.dynamic:
			return None
		index = utils.frame_index(time, self.source_fps)
		return self.keyframe_map.upsert_near(index, time, rect, self.merge_tolerance)

	#============================
	def set_dynamic(self, enabled: bool) -> None:
		if not enabled:
			self.keyframe_map.clear()
		self.dynamic = bool(enabled)

	#============================
	def set_window(self, window: ClipWindow) -> None:
		if window != self.window:
			self.keyframe_map.clear()
		self.window = window

	#============================
	def reset_source(self, source_fps: float, window: ClipWindow) -> None:
		self.keyframe_map.clear()
		self.source_fps = max(1.0, float(source_fps))
		self.window = window

	#============================
	def replace_all(self, keyframes: list) -> None:
		self.keyframe_map.clear()
		for keyframe in keyframes:
			self.keyframe_map.upsert(keyframe)

	#============================
	def keyframes(self) -> list:
		return self.keyframe_map.keyframes()
