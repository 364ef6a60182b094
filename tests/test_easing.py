#!/usr/bin/env python3

"""
Pytest coverage for numeric and symbolic easing curves.
"""

# Standard Library
import math
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.expr import easing
from framekeylib.expr.evaluator import evaluate_expression

#============================================

PROGRESS_POINTS = (-0.5, 0.0, 0.1, 0.25, 0.5, 0.6, 0.9, 1.0, 1.7)

#============================================

@pytest.mark.parametrize("kind", easing.EASING_KINDS)
def test_expression_matches_numeric_curve(kind: str) -> None:
	text = str(easing.ease_expr(kind, 10, 30, "x"))
	for progress in PROGRESS_POINTS:
		expected = easing.ease(kind, 10.0, 30.0, progress)
		actual = float(evaluate_expression(text, {'x': progress}))
		assert actual == pytest.approx(expected, abs=1e-9), (kind, progress)

#============================================

@pytest.mark.parametrize("kind", easing.EASING_KINDS)
def test_endpoints(kind: str) -> None:
	assert easing.ease(kind, 3.0, 7.0, 1.0) == pytest.approx(7.0)
	if kind != 'instant':
		assert easing.ease(kind, 3.0, 7.0, 0.0) == pytest.approx(3.0)

#============================================

def test_instant_steps_after_zero() -> None:
	assert easing.ease('instant', 1.0, 2.0, 0.0) == 1.0
	assert easing.ease('instant', 1.0, 2.0, 0.001) == 2.0

#============================================

def test_ease_in_out_sine_midpoint() -> None:
	assert easing.ease('easeInOutSine', 0.0, 100.0, 0.5) == pytest.approx(50.0)
	quarter = 50.0 * (1.0 - math.cos(0.25 * math.pi))
	assert easing.ease('easeInOutSine', 0.0, 100.0, 0.25) == pytest.approx(quarter)

#============================================

def test_sine_expression_text() -> None:
	text = str(easing.ease_expr('easeInOutSine', "(0)", "(960)", "((t-0)/2)"))
	assert text == "((0)+((960)-(0))*0.5*(1-cos((clip(((t-0)/2),0,1))*PI)))"

#============================================

def test_unknown_kind_raises() -> None:
	with pytest.raises(easing.UnsupportedEasingError):
		easing.ease('bounce', 0.0, 1.0, 0.5)
	with pytest.raises(easing.UnsupportedEasingError) as excinfo:
		easing.ease_expr('bounce', 0, 1, "x")
	assert excinfo.value.kind == 'bounce'
