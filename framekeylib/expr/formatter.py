#!/usr/bin/env python3

"""
Locale-invariant number formatting and small expression builders.

Every literal that ends up inside an engine expression goes through
dot() or fixed6(). Python %-formatting never consults the host locale,
so the decimal separator is always '.' and no grouping is applied.
"""

import math

#============================================

class ExpressionFormatError(RuntimeError):
	pass

#============================================

def _require_finite(value: float) -> float:
	number = float(value)
	if not math.isfinite(number):
		raise ExpressionFormatError(f"cannot format non-finite value: {value}")
	return number

#============================================

def dot(value: float) -> str:
	"""
	Format a number with 15 significant digits, '.' as decimal separator.

	Integers come out without a fraction ('2', not '2.0'), matching %g.
	"""
	number = _require_finite(value)
	text = "%.15g" % number
	return text.replace(",", ".")

#============================================

def fixed6(value: float) -> str:
	"""Format a number with six fixed decimals."""
	number = _require_finite(value)
	return "%.6f" % number

#============================================

class Expr():
	"""
	Immutable piece of expression text.

	Sub-expressions are composed by the helpers below rather than by ad hoc
	string interpolation, so the separators used for each construct live in
	one place.
	"""
	__slots__ = ('text',)

	def __init__(self, text):
		if isinstance(text, Expr):
			text = text.text
		object.__setattr__(self, 'text', str(text))

	def __setattr__(self, name, value):
		raise AttributeError("Expr is immutable")

	def __str__(self) -> str:
		return self.text

	def __repr__(self) -> str:
		return f"Expr({self.text!r})"

	def __eq__(self, other) -> bool:
		if isinstance(other, Expr):
			return self.text == other.text
		if isinstance(other, str):
			return self.text == other
		return NotImplemented

	def __hash__(self) -> int:
		return hash(self.text)

#============================================

def as_expr(value) -> Expr:
	"""Numbers are formatted with dot(); text and Expr pass through."""
	if isinstance(value, Expr):
		return value
	if isinstance(value, bool):
		raise ExpressionFormatError("booleans are not expression literals")
	if isinstance(value, (int, float)):
		return Expr(dot(value))
	return Expr(value)

#============================================

def num(value: float) -> Expr:
	return Expr(dot(value))

#============================================

def group(value) -> Expr:
	return Expr(f"({as_expr(value)})")

#============================================

def call(name: str, *args, sep: str = ",") -> Expr:
	"""
	Build 'name(a<sep>b...)'.

	The separator is part of the emitted text; callers that must match an
	existing layout pass sep=", ".
	"""
	parts = [str(as_expr(arg)) for arg in args]
	return Expr(f"{name}({sep.join(parts)})")

#============================================

def concat(*parts) -> Expr:
	return Expr("".join(str(as_expr(part)) for part in parts))

#============================================

def join(parts: list, sep: str) -> Expr:
	return Expr(sep.join(str(as_expr(part)) for part in parts))

#============================================

def clip(value, low, high, sep: str = ",") -> Expr:
	return call("clip", value, low, high, sep=sep)

#============================================

def gate_half_open(var: str, start: float, end: float) -> Expr:
	"""
	Gate that is 1 for start <= var < end: '(gte(var, s)*lt(var, e))'.
	"""
	lower = call("gte", var, num(start), sep=", ")
	upper = call("lt", var, num(end), sep=", ")
	return group(concat(lower, "*", upper))

#============================================

def gate_closed(var: str, start: float, end: float) -> Expr:
	"""
	Gate that is 1 for start <= var <= end: 'between(var, s, e)'.
	"""
	return call("between", var, num(start), num(end), sep=", ")

#============================================

def gated(gate: Expr, term) -> Expr:
	return concat(gate, "*", term)

#============================================

def piecewise_sum(terms: list) -> Expr | None:
	"""
	Join gated terms with '+'. Returns None for an empty list.
	"""
	if len(terms) == 0:
		return None
	return join(terms, "+")

#============================================

def escape_filter_commas(value) -> str:
	"""Escape ',' so an expression survives inside a filter chain."""
	return str(as_expr(value)).replace(",", "\\,")
