#!/usr/bin/env python3

"""
Pytest coverage for the dynamic crop compiler.
"""

# Standard Library
import os
import sys

# PIP3 modules
import numpy
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.core import utils
from framekeylib.expr import easing
from framekeylib.expr.evaluator import evaluate_expression
from framekeylib.filters import crop_expr
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.geometry import NormalizedRect
from framekeylib.model.keyframes import CropKeyframe

#============================================

def _keyframe(time_value: float, x: float, y: float, size: float = 0.2) -> CropKeyframe:
	return CropKeyframe(utils.frame_index(time_value, 30.0), time_value,
		NormalizedRect(x, y, size, size))

#============================================

def test_two_keyframe_example() -> None:
	keyframes = [
		_keyframe(0.0, 0.0, 0.0, 0.5),
		_keyframe(2.0, 0.5, 0.5, 0.5),
	]
	window = ClipWindow(0.0, 2.0)
	position = crop_expr.compile_crop_position(keyframes, window, (1920, 1080))
	assert len(position.x_terms) == 1
	assert len(position.y_terms) == 1
	assert position.x_expr.count("between(") == 1
	assert "gte(" not in position.x_expr
	assert (position.width, position.height) == (960, 540)
	text = crop_expr.compile_crop_expression(keyframes, window, "setpts=PTS-STARTPTS",
		(1920, 1080))
	expected_x = "between(t, 0, 2)*((0)+((960)-(0))*0.5*(1-cos((clip(((t-0)/2),0,1))*PI)))"
	expected_y = "between(t, 0, 2)*((0)+((540)-(0))*0.5*(1-cos((clip(((t-0)/2),0,1))*PI)))"
	assert text == (f"trim=0:2,crop='x={expected_x}:y={expected_y}:w=960:h=540:exact=1',"
		"settb=1/9000,setpts=PTS-STARTPTS")
	midpoint = float(evaluate_expression(position.x_expr, {'t': 1.0}))
	assert midpoint == pytest.approx(480.0)

#============================================

def test_single_keyframe_is_static() -> None:
	keyframes = [_keyframe(1.0, 0.1, 0.1)]
	text = crop_expr.compile_crop_expression(keyframes, ClipWindow(0.0, 4.0), "setpts=PTS",
		(1000, 1000))
	assert text == "trim=0:4,crop='x=100:y=100:w=200:h=200:exact=1',settb=1/9000,setpts=PTS"
	assert "between" not in text
	assert "gte" not in text

#============================================

def test_sections_tile_the_clip() -> None:
	keyframes = [
		_keyframe(0.0, 0.1, 0.1),
		_keyframe(1.0, 0.3, 0.2),
		_keyframe(3.0, 0.6, 0.5),
	]
	window = ClipWindow(0.0, 4.0)
	position = crop_expr.compile_crop_position(keyframes, window, (1000, 1000))
	assert len(position.x_terms) == 2
	assert position.x_terms[0].startswith("(gte(t, 0)*lt(t, 1))*")
	assert position.x_terms[1].startswith("between(t, 1, 4)*")
	times = numpy.linspace(0.0, 4.0, 81)
	values = evaluate_expression(position.x_expr, {'t': times})
	for time_value, value in zip(times, values):
		if time_value < 1.0:
			expected = easing.ease('easeInOutSine', 100.0, 300.0, time_value / 1.0)
		else:
			expected = easing.ease('easeInOutSine', 300.0, 600.0, (time_value - 1.0) / 3.0)
		assert value == pytest.approx(expected), time_value

#============================================

def test_times_are_rebased_to_first_keyframe() -> None:
	keyframes = [
		_keyframe(10.5, 0.1, 0.1),
		_keyframe(12.0, 0.2, 0.1),
		_keyframe(20.0, 0.9, 0.1),
	]
	position = crop_expr.compile_crop_position(keyframes, ClipWindow(10.0, 14.0), (1000, 1000))
	assert len(position.x_terms) == 1
	assert position.x_terms[0].startswith("between(t, 0, 4)*")

#============================================

def test_degenerate_sections_are_skipped() -> None:
	keyframes = [
		_keyframe(0.0, 0.1, 0.1),
		CropKeyframe(1, 0.0, NormalizedRect(0.2, 0.1, 0.2, 0.2)),
		_keyframe(2.0, 0.3, 0.1),
	]
	position = crop_expr.compile_crop_position(keyframes, ClipWindow(0.0, 2.0), (1000, 1000))
	assert len(position.x_terms) == 1
	assert position.x_terms[0].startswith("between(t, 0, 2)*")

#============================================

def test_no_crop_when_nothing_applies() -> None:
	keyframes = [_keyframe(5.0, 0.1, 0.1)]
	assert crop_expr.compile_crop_expression(keyframes, ClipWindow(0.0, 4.0), "setpts=PTS",
		(1000, 1000)) is None
	assert crop_expr.compile_crop_expression([], ClipWindow(0.0, 4.0), "setpts=PTS",
		(1000, 1000)) is None
	assert crop_expr.compile_crop_expression([_keyframe(1.0, 0.1, 0.1)], ClipWindow(2.0, 2.0),
		"setpts=PTS", (1000, 1000)) is None

#============================================

def test_other_easing_and_timebase() -> None:
	keyframes = [_keyframe(0.0, 0.1, 0.1), _keyframe(1.0, 0.2, 0.1)]
	text = crop_expr.compile_crop_expression(keyframes, ClipWindow(0.0, 1.0), "setpts=PTS",
		(1000, 1000), easing_kind='linear', timebase='1/1000')
	assert "lerp((100), (200), (clip(((t-0)/1),0,1)))" in text
	assert "settb=1/1000" in text
	with pytest.raises(easing.UnsupportedEasingError):
		crop_expr.compile_crop_expression(keyframes, ClipWindow(0.0, 1.0), "setpts=PTS",
			(1000, 1000), easing_kind='wobble')

#============================================

def test_static_crop() -> None:
	rect = NormalizedRect(0.25, 0.5, 0.5, 0.25)
	assert crop_expr.compile_static_crop(rect, (1920, 1080)) == "crop=960:270:480:540"
