#!/usr/bin/env python3

"""
Turn per-sample detector output into smooth crop keyframes.

The detector follows a small square centred in the user's crop. For each
sample time the sampler returns an observation of that square (or None
when the frame could not be decoded). Accepted observations move the
square toward the detection, limited per axis to a maximum jump and then
exponentially smoothed; the crop keeps its initial size and follows the
square's centre.

Each sample's result depends on the previous accepted position, so the
run is a left fold over the samples in time order.
"""

import itertools
import math
from typing import NamedTuple
from tqdm import tqdm
from framekeylib.core import config
from framekeylib.core import utils
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.geometry import NormalizedRect
from framekeylib.model.geometry import centered_rect
from framekeylib.model.keyframes import CropKeyframe
from framekeylib.model.keyframes import KeyframeMap
from framekeylib.tracking import target

#============================================

class TrackerError(RuntimeError):
	pass

class NoVideoTrackError(TrackerError):
	def __init__(self, message: str = "no video track available for tracking"):
		super().__init__(message)

class InvalidRangeError(TrackerError):
	def __init__(self, message: str = "invalid tracking time range"):
		super().__init__(message)

class NoFramesError(TrackerError):
	def __init__(self, message: str = "could not read frames for tracking"):
		super().__init__(message)

class NoKeyframesError(TrackerError):
	def __init__(self, message: str = "tracking did not produce keyframes"):
		super().__init__(message)

class TrackingLostError(TrackerError):
	pass

class TrackingCancelledError(TrackerError):
	def __init__(self, message: str = "tracking was cancelled"):
		super().__init__(message)

#============================================

class TrackedObservation(NamedTuple):
	"""
	One detector result. bounding_box is None when the detector ran on the
	frame but lost the object.
	"""
	time: float
	bounding_box: NormalizedRect | None
	confidence: float

#============================================

SEEKING = 'seeking'
TRACKING = 'tracking'

class TrackState(NamedTuple):
	phase: str
	target: NormalizedRect
	crop: NormalizedRect
	processed: int
	accepted: int
	consecutive_failures: int
	emitted: CropKeyframe | None

#============================================

def resolve_sample_fps(source_fps: float, duration: float, tracking: dict) -> float:
	"""
	Samples per second for a run.

	Half the source rate bounded to [min_sample_fps, max_sample_fps], scaled
	by sample_density, then lowered further when the window would need more
	than max_samples * sample_density samples.
	"""
	density = tracking['sample_density']
	base_raw = min(tracking['max_sample_fps'], max(tracking['min_sample_fps'], source_fps / 2.0))
	base = max(1.0, base_raw * density)
	max_samples = max(1.0, tracking['max_samples'] * density)
	if duration <= 0.000001:
		return base
	if duration * base <= max_samples:
		return base
	return max(1.0, max_samples / duration)

#============================================

def make_sample_times(start: float, end: float, sample_fps: float) -> list:
	if end <= start:
		return [start]
	step = 1.0 / max(1.0, sample_fps)
	times = []
	time_value = start
	while time_value < end:
		times.append(time_value)
		time_value += step
	if len(times) == 0 or abs(times[-1] - end) > 0.000001:
		times.append(end)
	return times

#============================================

def max_jump_pixels(size_px: float, vertical: bool, tracking: dict) -> float:
	base = max(tracking['min_jump_px'], size_px * tracking['max_jump_factor'])
	if vertical:
		return base * tracking['vertical_jump_scale']
	return base

#============================================

def stabilize_target(previous: NormalizedRect, candidate: NormalizedRect,
	pixel_size: tuple, size_px: float, tracking: dict) -> NormalizedRect:
	"""
	Move the tracked square toward a candidate.

	The displacement is measured in pixels, clamped per axis, then blended
	in with the per-axis smoothing factor.
	"""
	width_px = max(1.0, abs(pixel_size[0]))
	height_px = max(1.0, abs(pixel_size[1]))
	prev_x = previous.mid_x
	prev_y = previous.mid_y
	delta_x_px = (candidate.mid_x - prev_x) * width_px
	delta_y_px = (candidate.mid_y - prev_y) * height_px

	jump_x = max_jump_pixels(size_px, False, tracking)
	jump_y = max_jump_pixels(size_px, True, tracking)
	clamped_x = prev_x + utils.clamp(delta_x_px, -jump_x, jump_x) / width_px
	clamped_y = prev_y + utils.clamp(delta_y_px, -jump_y, jump_y) / height_px

	smooth_x = prev_x + (clamped_x - prev_x) * tracking['smoothing_alpha_x']
	smooth_y = prev_y + (clamped_y - prev_y) * tracking['smoothing_alpha_y']
	return centered_rect(smooth_x, smooth_y, previous.width, previous.height)

#============================================

class CropTrackerStabilizer():
	def __init__(self, initial_rect: NormalizedRect, window: ClipWindow,
		source_fps: float | None, pixel_size: tuple | None, settings: dict | None = None):
		if settings is None:
			settings = config.build_settings(None)
		self.tracking = settings['tracking']
		if pixel_size is None or source_fps is None:
			raise NoVideoTrackError()
		(width, height) = pixel_size
		if not (abs(width) > 0 and abs(height) > 0):
			raise NoVideoTrackError()
		if window is None or not (window.end > window.start):
			raise InvalidRangeError()
		self.window = window
		self.pixel_size = (abs(float(width)), abs(float(height)))
		self.source_fps = max(1.0, float(source_fps))
		self.initial_rect = initial_rect
		self.crop_width = initial_rect.width
		self.crop_height = initial_rect.height
		self.initial_target = target.target_rect(initial_rect, self.pixel_size,
			settings['target'])
		self.target_size_px = target.square_size_pixels(initial_rect, self.pixel_size,
			settings['target'])
		self.sample_fps = resolve_sample_fps(self.source_fps, window.duration, self.tracking)
		self.on_accept = None

	#============================
	def sample_times(self) -> list:
		return make_sample_times(self.window.start, self.window.end, self.sample_fps)

	#============================
	def initial_state(self) -> TrackState:
		return TrackState(SEEKING, self.initial_target, self.initial_rect, 0, 0, 0, None)

	#============================
	def _register_failure(self, failures: int, sample_time: float) -> int:
		failures += 1
		limit = self.tracking['max_consecutive_failures']
		if limit > 0 and failures > limit:
			raise TrackingLostError(
				f"tracking lost for {failures} consecutive samples at {sample_time:.3f}s"
			)
		return failures

	#============================
	def step(self, state: TrackState, item: tuple) -> TrackState:
		"""
		Fold one (sample_time, observation) pair into the state.
		"""
		(sample_time, observation) = item
		if observation is None:
			# frame not decoded, nothing to emit for this sample
			failures = self._register_failure(state.consecutive_failures, sample_time)
			return state._replace(consecutive_failures=failures, emitted=None)

		frame_time = observation.time
		if frame_time is None or not math.isfinite(frame_time):
			frame_time = sample_time
		frame_time = max(0.0, frame_time)
		box = observation.bounding_box
		if box is not None and observation.confidence >= self.tracking['min_confidence']:
			candidate = centered_rect(box.mid_x, box.mid_y,
				self.initial_target.width, self.initial_target.height)
			new_target = stabilize_target(state.target, candidate, self.pixel_size,
				self.target_size_px, self.tracking)
			crop = centered_rect(new_target.mid_x, new_target.mid_y,
				self.crop_width, self.crop_height)
			if self.on_accept is not None:
				self.on_accept(observation)
			state = state._replace(phase=TRACKING, target=new_target, crop=crop,
				accepted=state.accepted + 1, consecutive_failures=0)
		else:
			failures = self._register_failure(state.consecutive_failures, sample_time)
			state = state._replace(consecutive_failures=failures)

		index = utils.frame_index(frame_time, self.source_fps)
		emitted = CropKeyframe(index, frame_time, state.crop)
		return state._replace(processed=state.processed + 1, emitted=emitted)

	#============================
	def _observations(self, sampler, cancel_check):
		times = self.sample_times()
		if not utils.is_quiet_mode():
			times = tqdm(times, desc="tracking", unit="sample")
		for sample_time in times:
			if cancel_check is not None and cancel_check():
				raise TrackingCancelledError()
			yield (sample_time, sampler(sample_time))

	#============================
	def run(self, sampler, on_accept=None, cancel_check=None) -> list:
		"""
		Sample the window and return the stabilized keyframes.

		Args:
			sampler: Callable taking a time in seconds and returning a
				TrackedObservation or None.
			on_accept: Optional callable given each accepted observation,
				used to re-anchor the detector.
			cancel_check: Optional callable polled once per sample; a true
				result abandons the run.

		Returns:
			list: CropKeyframe list sorted by frame index.
		"""
		self.on_accept = on_accept
		keyframe_map = KeyframeMap()
		start_index = utils.frame_index(self.window.start, self.source_fps)
		keyframe_map.upsert(CropKeyframe(start_index, self.window.start, self.initial_rect))

		final_state = self.initial_state()
		states = itertools.accumulate(self._observations(sampler, cancel_check),
			self.step, initial=final_state)
		for state in states:
			if state.emitted is not None:
				keyframe_map.upsert(state.emitted)
			final_state = state

		if final_state.processed == 0:
			raise NoFramesError()
		end_index = utils.frame_index(self.window.end, self.source_fps)
		keyframe_map.upsert(CropKeyframe(end_index, self.window.end, final_state.crop))
		keyframes = keyframe_map.keyframes()
		if len(keyframes) == 0:
			raise NoKeyframesError()
		utils.log(f"tracking: {final_state.processed} frames processed, "
			f"{final_state.accepted} accepted, {len(keyframes)} keyframes "
			f"at {self.sample_fps:.2f} samples/s")
		return keyframes

#============================================

def stabilize_track(initial_rect: NormalizedRect, window: ClipWindow, sampler,
	source_fps: float | None, pixel_size: tuple | None, settings: dict | None = None,
	on_accept=None, cancel_check=None) -> list:
	"""
	Track an object through the window and return smoothed crop keyframes.

	Raises:
		NoVideoTrackError: No frame rate or pixel size for the source.
		InvalidRangeError: The window is empty.
		NoFramesError: No sample could be decoded.
		NoKeyframesError: Nothing was produced.
		TrackingLostError: Consecutive failures passed the configured cap.
		TrackingCancelledError: cancel_check asked to stop.
	"""
	stabilizer = CropTrackerStabilizer(initial_rect, window, source_fps, pixel_size, settings)
	return stabilizer.run(sampler, on_accept=on_accept, cancel_check=cancel_check)
