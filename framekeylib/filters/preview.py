#!/usr/bin/env python3

"""
Sample compiled expressions at evenly spaced times.

The samples show what the engine will compute for the crop position and
the speed remap without running the engine.
"""

import numpy
from framekeylib.expr.evaluator import evaluate_expression

#============================================

def sample_times(duration: float, count: int) -> numpy.ndarray:
	if count < 1:
		return numpy.zeros(0)
	if count == 1 or duration <= 0:
		return numpy.zeros(1)
	return numpy.linspace(0.0, duration, count)

#============================================

def preview_crop(position, count: int) -> list:
	"""
	Crop offsets over the clip.

	Args:
		position: CropPosition from compile_crop_position().
		count: Number of samples.

	Returns:
		list: Mappings of 'time', 'x' and 'y' in pixels.
	"""
	times = sample_times(position.clip_duration, count)
	if times.size == 0:
		return []
	x_values = numpy.broadcast_to(evaluate_expression(position.x_expr, {'t': times}), times.shape)
	y_values = numpy.broadcast_to(evaluate_expression(position.y_expr, {'t': times}), times.shape)
	samples = []
	for index in range(times.size):
		samples.append({
			'time': float(times[index]),
			'x': float(x_values[index]),
			'y': float(y_values[index]),
		})
	return samples

#============================================

def preview_speed_map(expression: str, duration: float, count: int) -> list:
	"""
	Output time given to each elapsed source time by a speed map remap.
	"""
	elapsed = sample_times(duration, count)
	if elapsed.size == 0:
		return []
	frames = numpy.arange(elapsed.size)
	values = evaluate_expression(expression, {'T': elapsed, 'STARTT': 0.0, 'N': frames})
	values = numpy.broadcast_to(values, elapsed.shape)
	return [
		{'source': float(elapsed[index]), 'output': float(values[index])}
		for index in range(elapsed.size)
	]
