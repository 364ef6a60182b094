#!/usr/bin/env python3

"""
Easing functions in two forms: numeric, and as engine expression text.

ease() and ease_expr() describe the same curves. Progress is clipped to
[0, 1] in both forms before the curve is applied.
"""

import math
from framekeylib.expr import formatter
from framekeylib.expr.formatter import Expr

#============================================

EASING_KINDS = (
	'instant',
	'linear',
	'easeInCubic',
	'easeOutCubic',
	'easeInOutCubic',
	'easeInOutSine',
	'easeInCircle',
	'easeOutCircle',
	'easeInOutCircle',
)

#============================================

class UnsupportedEasingError(RuntimeError):
	def __init__(self, kind):
		self.kind = kind
		super().__init__(f"unsupported easing: {kind}")

#============================================

def _weight(kind: str, p: float) -> float:
	t = 2.0 * p
	m = p - 1.0
	if kind == 'easeInCubic':
		return p ** 3
	if kind == 'easeOutCubic':
		return 1.0 + m ** 3
	if kind == 'easeInOutCubic':
		if t < 1.0:
			return p * t ** 2
		return 1.0 + (m ** 3) * 4.0
	if kind == 'easeInOutSine':
		return 0.5 * (1.0 - math.cos(p * math.pi))
	if kind == 'easeInCircle':
		return 1.0 - math.sqrt(1.0 - p ** 2)
	if kind == 'easeOutCircle':
		return math.sqrt(1.0 - m ** 2)
	if kind == 'easeInOutCircle':
		if t < 1.0:
			return (1.0 - math.sqrt(1.0 - t ** 2)) * 0.5
		return (math.sqrt(1.0 - 4.0 * m ** 2) + 1.0) * 0.5
	raise UnsupportedEasingError(kind)

#============================================

def ease(kind: str, a: float, b: float, p: float) -> float:
	"""
	Interpolate from a to b at progress p with the named easing curve.

	Args:
		kind: One of EASING_KINDS.
		a: Value at p=0.
		b: Value at p=1.
		p: Progress, clipped to [0, 1].

	Returns:
		float: Interpolated value.
	"""
	p = max(0.0, min(1.0, float(p)))
	if kind == 'instant':
		if p <= 0.0:
			return a
		return b
	if kind == 'linear':
		return a + (b - a) * p
	weight = _weight(kind, p)
	return a + (b - a) * weight

#============================================

def ease_expr(kind: str, expr_a, expr_b, expr_p) -> Expr:
	"""
	Expression text equivalent of ease().

	expr_a, expr_b and expr_p may be numbers, text or Expr values; they are
	inserted verbatim, so callers wrap compound sub-expressions in
	parentheses.
	"""
	a = formatter.as_expr(expr_a)
	b = formatter.as_expr(expr_b)
	p = formatter.group(formatter.clip(expr_p, 0, 1))
	t = formatter.group(formatter.concat("2*", p))
	m = formatter.group(formatter.concat(p, "-1"))

	if kind == 'instant':
		return formatter.call("if", formatter.call("lte", p, 0), a, b)
	if kind == 'linear':
		return formatter.call("lerp", a, b, p, sep=", ")

	if kind == 'easeInCubic':
		weight = f"{p}^3"
	elif kind == 'easeOutCubic':
		weight = f"1+{m}^3"
	elif kind == 'easeInOutCubic':
		weight = f"if(lt({t},1), {p}*{t}^2, 1+({m}^3)*4)"
	elif kind == 'easeInOutSine':
		weight = f"0.5*(1-cos({p}*PI))"
	elif kind == 'easeInCircle':
		weight = f"1-sqrt(1-{p}^2)"
	elif kind == 'easeOutCircle':
		weight = f"sqrt(1-{m}^2)"
	elif kind == 'easeInOutCircle':
		weight = f"if(lt({t},1), (1-sqrt(1-{t}^2))*0.5, (sqrt(1-4*{m}^2)+1)*0.5)"
	else:
		raise UnsupportedEasingError(kind)
	return formatter.group(formatter.concat(a, "+(", b, "-", a, ")*", weight))
