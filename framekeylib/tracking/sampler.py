#!/usr/bin/env python3

"""
Replay detector output recorded to a YAML file as a tracker sampler.
"""

import bisect
import math
import yaml
from framekeylib.core import utils
from framekeylib.model.geometry import NormalizedRect
from framekeylib.tracking.stabilizer import TrackedObservation

#============================================

class RecordedSampler():
	"""
	Sampler over a fixed list of observations.

	Several observations may share a time, one per detected object. A call
	takes the group closest in time to the request and returns the member
	whose box centre is nearest the anchor, the last accepted observation.
	Without an anchor the most confident member wins. None (treated as an
	undecodable frame) comes back when the closest group is further away
	than max_gap seconds.
	"""
	def __init__(self, observations: list, max_gap: float = 0.1):
		groups = {}
		for item in observations:
			groups.setdefault(item.time, []).append(item)
		self.times = sorted(groups)
		self.groups = [groups[time_value] for time_value in self.times]
		self.max_gap = max_gap
		self.anchor = None

	#============================
	def __call__(self, sample_time: float) -> TrackedObservation | None:
		if len(self.times) == 0:
			return None
		position = bisect.bisect_left(self.times, sample_time)
		best = None
		for index in (position - 1, position):
			if index < 0 or index >= len(self.times):
				continue
			distance = abs(self.times[index] - sample_time)
			if best is None or distance < best[0]:
				best = (distance, index)
		if best[0] > self.max_gap:
			return None
		return self.pick(self.groups[best[1]])

	#============================
	def pick(self, group: list) -> TrackedObservation:
		boxed = [item for item in group if item.bounding_box is not None]
		if len(boxed) == 0:
			return group[0]
		if self.anchor is None:
			return max(boxed, key=lambda item: item.confidence)
		anchor_x = self.anchor.bounding_box.mid_x
		anchor_y = self.anchor.bounding_box.mid_y
		def anchor_distance(item):
			box = item.bounding_box
			return (math.hypot(box.mid_x - anchor_x, box.mid_y - anchor_y), -item.confidence)
		return min(boxed, key=anchor_distance)

	#============================
	def update_anchor(self, observation: TrackedObservation) -> None:
		if observation.bounding_box is None:
			return
		self.anchor = observation

#============================================

def parse_observation(record: dict, index: int) -> TrackedObservation:
	if not isinstance(record, dict):
		raise RuntimeError(f"observations[{index}] must be a mapping")
	time_value = utils.parse_time_seconds(record.get('time'))
	if time_value is None or not math.isfinite(time_value):
		raise RuntimeError(f"observations[{index}].time is required")
	confidence = float(record.get('confidence', 1.0))
	box = record.get('box')
	rect = None
	if box is not None:
		if not isinstance(box, (list, tuple)) or len(box) != 4:
			raise RuntimeError(f"observations[{index}].box must be [x, y, width, height]")
		values = [float(value) for value in box]
		if record.get('origin', 'top_left') == 'bottom_left':
			rect = NormalizedRect.from_bottom_left(*values)
		else:
			rect = NormalizedRect(*values)
	return TrackedObservation(time_value, rect, confidence)

#============================================

def load_observations(yaml_file: str) -> list:
	"""
	Read observations from YAML.

	The file holds 'observations:', a list of mappings with 'time',
	optional 'box' ([x, y, width, height], normalized), 'confidence' and
	'origin' ('top_left' or 'bottom_left'). Entries sharing a time are
	alternative detections for that frame.
	"""
	utils.ensure_file_exists(yaml_file)
	with open(yaml_file, 'r') as data_file:
		data = yaml.safe_load(data_file)
	if isinstance(data, dict):
		records = data.get('observations')
	else:
		records = data
	if not isinstance(records, list):
		raise RuntimeError("observations must be a list")
	return [parse_observation(record, index) for index, record in enumerate(records)]
