#!/usr/bin/env python3

"""
Pytest coverage for number formatting and expression building helpers.
"""

# Standard Library
import locale
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.expr import formatter

#============================================

def test_dot_uses_fifteen_significant_digits() -> None:
	assert formatter.dot(2.0) == "2"
	assert formatter.dot(0.1) == "0.1"
	assert formatter.dot(1.0 / 3.0) == "0.333333333333333"
	assert formatter.dot(1234567.25) == "1234567.25"
	assert formatter.dot(-0.5) == "-0.5"
	assert formatter.dot(0.0000001) == "1e-07"

#============================================

def test_dot_ignores_host_locale() -> None:
	previous = locale.setlocale(locale.LC_NUMERIC)
	for name in ("de_DE.UTF-8", "fr_FR.UTF-8", "es_CO.UTF-8"):
		try:
			locale.setlocale(locale.LC_NUMERIC, name)
		except locale.Error:
			continue
		try:
			assert formatter.dot(1234.5) == "1234.5"
			assert formatter.fixed6(0.25) == "0.250000"
		finally:
			locale.setlocale(locale.LC_NUMERIC, previous)

#============================================

def test_non_finite_values_raise() -> None:
	with pytest.raises(formatter.ExpressionFormatError):
		formatter.dot(float("nan"))
	with pytest.raises(formatter.ExpressionFormatError):
		formatter.fixed6(float("inf"))

#============================================

def test_gates_and_sums() -> None:
	half_open = formatter.gate_half_open("t", 0.0, 1.5)
	closed = formatter.gate_closed("t", 1.5, 4.0)
	assert str(half_open) == "(gte(t, 0)*lt(t, 1.5))"
	assert str(closed) == "between(t, 1.5, 4)"
	terms = [formatter.gated(half_open, "(1)"), formatter.gated(closed, "(2)")]
	total = formatter.piecewise_sum(terms)
	assert str(total) == "(gte(t, 0)*lt(t, 1.5))*(1)+between(t, 1.5, 4)*(2)"
	assert formatter.piecewise_sum([]) is None

#============================================

def test_expr_is_immutable_and_comparable() -> None:
	expr = formatter.call("clip", "x", 0, 1)
	assert expr == "clip(x,0,1)"
	assert expr == formatter.Expr("clip(x,0,1)")
	with pytest.raises(AttributeError):
		expr.text = "other"
	assert formatter.escape_filter_commas(expr) == "clip(x\\,0\\,1)"
