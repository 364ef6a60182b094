#!/usr/bin/env python3

import math
import os
import yaml
from framekeylib.core import utils
from framekeylib.filters import framerate
from framekeylib.filters.color_expr import ColorAdjustment
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.geometry import NormalizedRect
from framekeylib.model.geometry import parse_crop_text
from framekeylib.model.keyframes import CropKeyframe
from framekeylib.model.keyframes import CropKeyframeSession
from framekeylib.model.keyframes import SpeedKeyframe

#============================================

PROJECT_HEADER_KEY = 'framekey'
PROJECT_HEADER_VALUE = 1

#============================================

class ProjectData():
	def __init__(self):
		self.yaml_file = None
		self.data = {}
		self.source = {}
		self.window = None
		self.trimmed = False
		self.speed = 1.0
		self.speed_map = []
		self.crop_rect = None
		self.crop_dynamic = False
		self.crop_session = None
		self.track_rect = None
		self.scale = None
		self.color = None
		self.frame_rate = None
		self.boomerang = False
		self.dropped_keyframes = 0

#============================================

class ProjectLoader():
	def __init__(self, yaml_file: str, merge_tolerance: int = 0):
		self.yaml_file = yaml_file
		self.merge_tolerance = merge_tolerance

	#============================
	def load(self) -> ProjectData:
		project = ProjectData()
		project.yaml_file = self.yaml_file
		project.data = self._load_yaml()
		self._validate_required_keys(project.data)
		project.source = self._parse_source(project.data.get('source'))
		(project.window, project.trimmed) = self._parse_trim(project.source,
			project.data.get('trim'))
		(project.speed, project.speed_map) = self._parse_speed(project.data.get('speed'))
		self._parse_crop(project, project.data.get('crop'))
		project.scale = self._parse_scale(project.data.get('scale'))
		project.color = self._parse_color(project.data.get('color'))
		project.frame_rate = self._parse_frame_rate(project.data.get('frame_rate'))
		project.boomerang = self._parse_boomerang(project.data.get('boomerang', False))
		return project

	#============================
	def _load_yaml(self) -> dict:
		utils.ensure_file_exists(self.yaml_file)
		file_size = os.path.getsize(self.yaml_file)
		if file_size > 10 ** 7:
			raise RuntimeError("yaml file is larger than 10MB")
		with open(self.yaml_file, 'r') as data_file:
			data = yaml.safe_load(data_file)
		if not isinstance(data, dict):
			raise RuntimeError("project yaml must be a mapping at the top level")
		return data

	#============================
	def _validate_required_keys(self, data: dict) -> None:
		if data.get(PROJECT_HEADER_KEY) != PROJECT_HEADER_VALUE:
			raise RuntimeError(f"{PROJECT_HEADER_KEY} must be set to {PROJECT_HEADER_VALUE}")
		if 'source' not in data:
			raise RuntimeError("missing required key: source")

	#============================
	def _parse_source(self, source: dict) -> dict:
		if not isinstance(source, dict):
			raise RuntimeError("source must be a mapping")
		fps = utils.parse_fps(source.get('fps'))
		if fps <= 0:
			raise RuntimeError("source.fps must be positive")
		resolution = source.get('resolution')
		if not resolution or len(resolution) != 2:
			raise RuntimeError("source.resolution must be [width, height]")
		width = int(resolution[0])
		height = int(resolution[1])
		if width <= 0 or height <= 0:
			raise RuntimeError("source.resolution values must be positive")
		duration = utils.parse_time_seconds(source.get('duration'))
		if duration is not None and (duration < 0 or not math.isfinite(duration)):
			raise RuntimeError("source.duration must be a non-negative number")
		return {
			'fps': fps,
			'fps_float': float(fps),
			'width': width,
			'height': height,
			'pixel_size': (width, height),
			'duration': duration,
			'has_audio': bool(source.get('has_audio', False)),
		}

	#============================
	def _parse_trim(self, source: dict, trim) -> tuple:
		if trim is None:
			window = ClipWindow.resolve(source['duration'])
			return (window, False)
		if not isinstance(trim, dict):
			raise RuntimeError("trim must be a mapping")
		start = utils.parse_time_seconds(trim.get('start'))
		end = utils.parse_time_seconds(trim.get('end'))
		if start is not None and end is not None and end < start:
			raise RuntimeError("trim requires start <= end")
		window = ClipWindow.resolve(source['duration'], start, end)
		return (window, start is not None or end is not None)

	#============================
	def _parse_speed(self, speed) -> tuple:
		if speed is None:
			return (1.0, [])
		if not isinstance(speed, dict):
			raise RuntimeError("speed must be a mapping")
		points = []
		raw_map = speed.get('map')
		if raw_map is not None:
			if not isinstance(raw_map, list):
				raise RuntimeError("speed.map must be a list")
			for index, item in enumerate(raw_map):
				if not isinstance(item, dict):
					raise RuntimeError(f"speed.map[{index}] must be a mapping")
				time_value = utils.parse_time_seconds(item.get('time'))
				if time_value is None:
					raise RuntimeError(f"speed.map[{index}].time is required")
				if item.get('speed') is None:
					raise RuntimeError(f"speed.map[{index}].speed is required")
				points.append(SpeedKeyframe(time_value, float(item['speed'])))
		percent = utils.parse_speed_percent(speed.get('percent'))
		return (percent / 100.0, points)

	#============================
	def _parse_rect(self, raw_rect, key_path: str) -> NormalizedRect:
		if not isinstance(raw_rect, (list, tuple)) or len(raw_rect) != 4:
			raise RuntimeError(f"{key_path} must be [x, y, width, height]")
		values = []
		for value in raw_rect:
			if isinstance(value, bool) or not isinstance(value, (int, float)):
				raise RuntimeError(f"{key_path} values must be numbers")
			values.append(float(value))
		return NormalizedRect(*values)

	#============================
	def _parse_keyframe(self, item, source: dict, index: int) -> CropKeyframe | None:
		if not isinstance(item, dict):
			raise RuntimeError(f"crop.keyframes[{index}] must be a mapping")
		time_value = utils.parse_time_seconds(item.get('time'))
		if time_value is None:
			raise RuntimeError(f"crop.keyframes[{index}].time is required")
		if item.get('rect') is not None:
			rect = self._parse_rect(item['rect'], f"crop.keyframes[{index}].rect")
		else:
			crop = parse_crop_text(item.get('crop'))
			if crop is None:
				utils.log(f"WARNING: dropping crop keyframe {index}, "
					f"malformed crop: {item.get('crop')!r}")
				return None
			rect = NormalizedRect.from_crop_pixels(crop, source['pixel_size'])
		frame = utils.frame_index(time_value, source['fps_float'])
		return CropKeyframe(frame, time_value, rect)

	#============================
	def _parse_crop(self, project: ProjectData, crop) -> None:
		project.crop_session = CropKeyframeSession(project.source['fps_float'],
			project.window, merge_tolerance=self.merge_tolerance, dynamic=False)
		if crop is None:
			return
		if not isinstance(crop, dict):
			raise RuntimeError("crop must be a mapping")
		if crop.get('rect') is not None:
			project.crop_rect = self._parse_rect(crop['rect'], "crop.rect")
		project.crop_dynamic = bool(crop.get('dynamic', False))
		project.crop_session.set_dynamic(project.crop_dynamic)
		if crop.get('track') is not None:
			track = crop['track']
			if not isinstance(track, dict) or track.get('rect') is None:
				raise RuntimeError("crop.track.rect is required")
			project.track_rect = self._parse_rect(track['rect'], "crop.track.rect")
		keyframes = crop.get('keyframes', [])
		if keyframes is None:
			keyframes = []
		if not isinstance(keyframes, list):
			raise RuntimeError("crop.keyframes must be a list")
		if not project.crop_dynamic:
			return
		for index, item in enumerate(keyframes):
			keyframe = self._parse_keyframe(item, project.source, index)
			if keyframe is None:
				project.dropped_keyframes += 1
				continue
			project.crop_session.record(keyframe.time, keyframe.rect)

	#============================
	def _parse_scale(self, scale):
		if scale is None:
			return None
		if not isinstance(scale, (list, tuple)) or len(scale) != 2:
			raise RuntimeError("scale must be [width, height]")
		return (int(scale[0]), int(scale[1]))

	#============================
	def _parse_color(self, color) -> ColorAdjustment | None:
		if color is None:
			return None
		if not isinstance(color, dict):
			raise RuntimeError("color must be a mapping")
		values = {}
		for name in ColorAdjustment._fields:
			if color.get(name) is None:
				continue
			raw_value = color[name]
			if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
				raise RuntimeError(f"color.{name} must be a number")
			values[name] = float(raw_value)
		unknown = set(color) - set(ColorAdjustment._fields)
		if len(unknown) > 0:
			raise RuntimeError(f"unknown color keys: {', '.join(sorted(unknown))}")
		return ColorAdjustment(**values).clamped()

	#============================
	def _parse_frame_rate(self, frame_rate) -> dict | None:
		if frame_rate is None:
			return None
		if not isinstance(frame_rate, dict):
			raise RuntimeError("frame_rate must be a mapping")
		mode = frame_rate.get('mode', 'keep')
		if mode not in framerate.FRAME_RATE_MODES:
			raise RuntimeError("frame_rate.mode must be keep or interpolate")
		target = frame_rate.get('target', 60)
		if mode == 'interpolate':
			framerate.frame_rate_value(target)
		return {'mode': mode, 'target': target}

	#============================
	def _parse_boomerang(self, boomerang) -> bool:
		if not isinstance(boomerang, bool):
			raise RuntimeError("boomerang must be true or false")
		return boomerang
