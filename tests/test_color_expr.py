#!/usr/bin/env python3

"""
Pytest coverage for color adjustment filters.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.expr.evaluator import evaluate_expression
from framekeylib.filters import color_expr
from framekeylib.filters.color_expr import ColorAdjustment

#============================================

def test_identity_returns_none() -> None:
	assert color_expr.compile_color_expression(ColorAdjustment()) is None
	assert color_expr.compile_color_expression(ColorAdjustment(0, 1, 1, 1)) is None
	assert not ColorAdjustment().is_modified

#============================================

@pytest.mark.parametrize("adjustment", [
	ColorAdjustment(brightness=0.000001),
	ColorAdjustment(contrast=1.01),
	ColorAdjustment(gamma=0.99),
	ColorAdjustment(saturation=0.0),
])
def test_any_change_emits_filter(adjustment: ColorAdjustment) -> None:
	assert adjustment.is_modified
	assert color_expr.compile_color_expression(adjustment) is not None

#============================================

def test_saturation_only_uses_channel_mixer() -> None:
	text = color_expr.compile_color_expression(ColorAdjustment(saturation=0.5))
	assert text == (
		"colorchannelmixer=rr=0.606300:rg=0.357600:rb=0.036100:"
		"gr=0.106300:gg=0.857600:gb=0.036100:"
		"br=0.106300:bg=0.357600:bb=0.536100"
	)

#============================================

def test_curve_only_uses_escaped_lut() -> None:
	text = color_expr.compile_color_expression(ColorAdjustment(brightness=0.1))
	curve = ("clip(pow(clip(((val/maxval-0.5)*1.000000+0.5+0.100000)\\,0\\,1)\\,1.000000)"
		"*maxval\\,0\\,maxval)")
	assert text == f"lutrgb=r='{curve}':g='{curve}':b='{curve}'"

#============================================

def test_combined_filters_order() -> None:
	text = color_expr.compile_color_expression(ColorAdjustment(0.0, 1.2, 1.0, 1.5))
	(mixer, lut) = text.split(",", 1)
	assert mixer.startswith("colorchannelmixer=")
	assert lut.startswith("lutrgb=")

#============================================

def test_matrix_rows_preserve_gray() -> None:
	for row in color_expr.saturation_matrix(1.7):
		assert sum(row) == pytest.approx(1.0)

#============================================

def test_curve_expression_matches_numeric_curve() -> None:
	adjustment = ColorAdjustment(brightness=-0.2, contrast=1.5, gamma=2.0)
	expression = color_expr.curve_expression(adjustment)
	for value in (0.0, 64.0, 128.0, 200.0, 255.0):
		expected = color_expr.apply_curve(adjustment, value)
		actual = float(evaluate_expression(expression, {'val': value, 'maxval': 255.0}))
		assert actual == pytest.approx(expected, abs=1e-3)

#============================================

def test_clamped_limits_ranges() -> None:
	adjustment = ColorAdjustment(brightness=3.0, contrast=-1.0, gamma=9.0, saturation=2.5)
	assert adjustment.clamped() == ColorAdjustment(1.0, 0.0, 2.5, 2.0)
