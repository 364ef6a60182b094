#!/usr/bin/env python3

from framekeylib.core import config
from framekeylib.core import utils
from framekeylib.core.loader import ProjectLoader
from framekeylib.filters import chain
from framekeylib.filters import color_expr
from framekeylib.filters import crop_expr
from framekeylib.filters import preview
from framekeylib.filters import speed_expr
from framekeylib.model.geometry import format_crop_text
from framekeylib.tracking import stabilizer

#============================================

class FramekeyProject():
	def __init__(self, yaml_file: str, config_file: str = None):
		self.settings = config.load_settings(config_file)
		loader = ProjectLoader(yaml_file,
			merge_tolerance=self.settings['crop']['merge_tolerance_frames'])
		self._project = loader.load()
		self._sync_public_fields()
		if self._project.dropped_keyframes > 0:
			utils.log(f"dropped {self._project.dropped_keyframes} malformed crop keyframes")

	#============================
	def _sync_public_fields(self) -> None:
		self.yaml_file = self._project.yaml_file
		self.source = self._project.source
		self.window = self._project.window
		self.speed = self._project.speed
		self.speed_map = self._project.speed_map
		self.crop_session = self._project.crop_session
		self.color = self._project.color

	#============================
	def track(self, sampler, cancel_check=None) -> list:
		"""
		Run the tracker from crop.track.rect and load the result as the
		dynamic crop keyframes.
		"""
		initial_rect = self._project.track_rect
		if initial_rect is None:
			initial_rect = self._project.crop_rect
		if initial_rect is None:
			raise RuntimeError("tracking requires crop.track.rect or crop.rect")
		on_accept = getattr(sampler, 'update_anchor', None)
		if on_accept is not None:
			# the detector starts from the user's rect
			on_accept(stabilizer.TrackedObservation(self.window.start, initial_rect, 1.0))
		keyframes = stabilizer.stabilize_track(initial_rect, self.window, sampler,
			self.source['fps_float'], self.source['pixel_size'], self.settings,
			on_accept=on_accept, cancel_check=cancel_check)
		self.crop_session.set_dynamic(True)
		self.crop_session.replace_all(keyframes)
		return keyframes

	#============================
	def build_plan(self) -> dict:
		return {
			'window': self.window,
			'pixel_size': self.source['pixel_size'],
			'trimmed': self._project.trimmed,
			'speed': self.speed,
			'speed_map': self.speed_map,
			'crop_keyframes': self.crop_session.keyframes(),
			'crop_rect': self._project.crop_rect,
			'scale': self._project.scale,
			'color': self.color,
			'frame_rate': self._project.frame_rate,
			'settings': self.settings,
		}

	#============================
	def video_filters(self) -> list:
		return chain.build_video_filters(self.build_plan())

	#============================
	def filter_text(self) -> str:
		return ",".join(self.video_filters())

	#============================
	def filter_complex(self) -> str | None:
		"""Reverse and concat graph for a boomerang project, None otherwise."""
		if not self._project.boomerang:
			return None
		return chain.build_boomerang_graph(self.source['has_audio'])

	#============================
	def dump_plan(self, preview_samples: int = 0) -> dict:
		"""
		Plain data view of the compiled pieces, for YAML output.

		With preview_samples > 0 the crop position and speed map remap are
		also evaluated at that many evenly spaced times.
		"""
		pixel_size = self.source['pixel_size']
		crop_settings = self.settings['crop']
		keyframes = self.crop_session.keyframes()
		position = crop_expr.compile_crop_position(keyframes, self.window,
			pixel_size, crop_settings['easing'])
		speed_map_expr = None
		speed_map_span = 0.0
		if len(self.speed_map) >= 2:
			speed_map_expr = speed_expr.compile_speed_map_expression(self.speed_map)
			points = speed_expr.sort_speed_keyframes(self.speed_map)
			speed_map_span = points[-1].time - points[0].time
		color_filter = None
		if self.color is not None:
			color_filter = color_expr.compile_color_expression(self.color)
		plan = {
			'window': {'start': self.window.start, 'end': self.window.end},
			'keyframes': [
				{
					'frame': item.frame_index,
					'time': item.time,
					'crop': format_crop_text(item.rect.to_crop_pixels(pixel_size)),
				}
				for item in keyframes
			],
			'crop_position': None,
			'speed': speed_expr.compile_speed_expression(self.window.duration, self.speed),
			'speed_map': speed_map_expr,
			'color': color_filter,
			'filters': self.video_filters(),
			'filter_complex': self.filter_complex(),
		}
		if position is not None:
			plan['crop_position'] = {
				'x': position.x_expr,
				'y': position.y_expr,
				'w': position.width,
				'h': position.height,
			}
		if preview_samples > 0:
			plan['preview'] = {'crop': [], 'speed_map': []}
			if position is not None:
				plan['preview']['crop'] = preview.preview_crop(position, preview_samples)
			if speed_map_expr is not None:
				plan['preview']['speed_map'] = preview.preview_speed_map(speed_map_expr,
					speed_map_span, preview_samples)
		return plan
