#!/usr/bin/env python3

"""
Evaluator for the engine expression grammar emitted by the compilers.

Parsing follows the engine's rules: whitespace is ignored, a leading sign
applies after the power that follows it (so '-2^2' is -4), '^' is left
associative and binds tighter than '*' and '/'. Evaluation is done with
numpy so a variable may hold a scalar or an array of sample points; both
branches of if() are computed and then selected.
"""

import re
import numpy

#============================================

class ExpressionSyntaxError(RuntimeError):
	pass

#============================================

CONSTANTS = {
	'PI': numpy.pi,
	'E': numpy.e,
	'PHI': (1.0 + 5.0 ** 0.5) / 2.0,
}

NUMBER_RE = re.compile(r'(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')
NAME_RE = re.compile(r'[A-Za-z_][A-Za-z_0-9]*')

#============================================

def _as_float(value):
	return numpy.asarray(value, dtype=numpy.float64)

def _flag(mask):
	return numpy.where(mask, 1.0, 0.0)

def _fn_if(cond, then_value, else_value=0.0):
	return numpy.where(_as_float(cond) != 0.0, then_value, else_value)

def _fn_ifnot(cond, then_value, else_value=0.0):
	return numpy.where(_as_float(cond) == 0.0, then_value, else_value)

def _fn_between(x, low, high):
	return _flag((x >= low) & (x <= high))

def _fn_clip(x, low, high):
	return numpy.minimum(numpy.maximum(x, low), high)

def _fn_lerp(a, b, c):
	return a + (b - a) * c

FUNCTIONS = {
	'if': (_fn_if, 2, 3),
	'ifnot': (_fn_ifnot, 2, 3),
	'gte': (lambda a, b: _flag(a >= b), 2, 2),
	'gt': (lambda a, b: _flag(a > b), 2, 2),
	'lte': (lambda a, b: _flag(a <= b), 2, 2),
	'lt': (lambda a, b: _flag(a < b), 2, 2),
	'eq': (lambda a, b: _flag(a == b), 2, 2),
	'between': (_fn_between, 3, 3),
	'clip': (_fn_clip, 3, 3),
	'min': (numpy.minimum, 2, 2),
	'max': (numpy.maximum, 2, 2),
	'pow': (numpy.power, 2, 2),
	'log': (numpy.log, 1, 1),
	'exp': (numpy.exp, 1, 1),
	'abs': (numpy.abs, 1, 1),
	'sqrt': (numpy.sqrt, 1, 1),
	'cos': (numpy.cos, 1, 1),
	'sin': (numpy.sin, 1, 1),
	'lerp': (_fn_lerp, 3, 3),
}

#============================================

class ParsedExpression():
	def __init__(self, text: str, tree: tuple):
		self.text = text
		self.tree = tree
		self.names = set()
		self._collect_names(tree)

	#============================
	def _collect_names(self, node: tuple) -> None:
		kind = node[0]
		if kind == 'var':
			self.names.add(node[1])
		elif kind == 'neg':
			self._collect_names(node[1])
		elif kind == 'bin':
			self._collect_names(node[2])
			self._collect_names(node[3])
		elif kind == 'call':
			for arg in node[2]:
				self._collect_names(arg)

	#============================
	def evaluate(self, variables: dict | None = None):
		"""
		Evaluate against a mapping of variable name to scalar or array.

		Returns:
			numpy.ndarray: Result, 0-d when every input is a scalar.
		"""
		variables = variables or {}
		missing = sorted(name for name in self.names
			if name not in variables and name not in CONSTANTS)
		if len(missing) > 0:
			raise ExpressionSyntaxError(f"unbound variables: {', '.join(missing)}")
		with numpy.errstate(all='ignore'):
			return _as_float(self._eval(self.tree, variables))

	#============================
	def _eval(self, node: tuple, variables: dict):
		kind = node[0]
		if kind == 'num':
			return node[1]
		if kind == 'var':
			name = node[1]
			if name in variables:
				return _as_float(variables[name])
			return CONSTANTS[name]
		if kind == 'neg':
			return -self._eval(node[1], variables)
		if kind == 'bin':
			left = self._eval(node[2], variables)
			right = self._eval(node[3], variables)
			op = node[1]
			if op == '+':
				return left + right
			if op == '-':
				return left - right
			if op == '*':
				return left * right
			if op == '/':
				return numpy.true_divide(left, right)
			return numpy.power(left, right)
		(func, _, _) = FUNCTIONS[node[1]]
		args = [self._eval(arg, variables) for arg in node[2]]
		return func(*args)

#============================================

class ExpressionParser():
	def __init__(self, text: str):
		self.source = text
		self.text = re.sub(r'\s+', '', text)
		self.pos = 0

	#============================
	def parse(self) -> ParsedExpression:
		if self.text == "":
			raise ExpressionSyntaxError("empty expression")
		tree = self._parse_sum()
		if self.pos != len(self.text):
			raise ExpressionSyntaxError(
				f"unexpected '{self.text[self.pos]}' at offset {self.pos} in: {self.source}"
			)
		return ParsedExpression(self.source, tree)

	#============================
	def _peek(self) -> str:
		if self.pos >= len(self.text):
			return ''
		return self.text[self.pos]

	#============================
	def _expect(self, char: str) -> None:
		if self._peek() != char:
			raise ExpressionSyntaxError(
				f"expected '{char}' at offset {self.pos} in: {self.source}"
			)
		self.pos += 1

	#============================
	def _parse_sum(self) -> tuple:
		node = self._parse_product()
		while self._peek() in ('+', '-'):
			op = self._peek()
			self.pos += 1
			right = self._parse_product()
			node = ('bin', op, node, right)
		return node

	#============================
	def _parse_product(self) -> tuple:
		node = self._parse_power()
		while self._peek() in ('*', '/'):
			op = self._peek()
			self.pos += 1
			right = self._parse_power()
			node = ('bin', op, node, right)
		return node

	#============================
	def _parse_power(self) -> tuple:
		# a leading sign applies to the whole power, an exponent's sign to the exponent
		negative = self._take_sign()
		node = self._parse_primary()
		while self._peek() == '^':
			self.pos += 1
			exponent_negative = self._take_sign()
			right = self._parse_primary()
			if exponent_negative:
				right = ('neg', right)
			node = ('bin', '^', node, right)
		if negative:
			return ('neg', node)
		return node

	#============================
	def _take_sign(self) -> bool:
		char = self._peek()
		if char in ('+', '-'):
			self.pos += 1
		return char == '-'

	#============================
	def _parse_primary(self) -> tuple:
		char = self._peek()
		if char == '(':
			self.pos += 1
			node = self._parse_sum()
			self._expect(')')
			return node
		number_match = NUMBER_RE.match(self.text, self.pos)
		if number_match is not None:
			self.pos = number_match.end()
			return ('num', float(number_match.group(0)))
		name_match = NAME_RE.match(self.text, self.pos)
		if name_match is None:
			raise ExpressionSyntaxError(
				f"unexpected '{char}' at offset {self.pos} in: {self.source}"
			)
		name = name_match.group(0)
		self.pos = name_match.end()
		if self._peek() != '(':
			return ('var', name)
		if name not in FUNCTIONS:
			raise ExpressionSyntaxError(f"unknown function: {name}")
		self.pos += 1
		args = [self._parse_sum()]
		while self._peek() == ',':
			self.pos += 1
			args.append(self._parse_sum())
		self._expect(')')
		(_, min_args, max_args) = FUNCTIONS[name]
		if len(args) < min_args or len(args) > max_args:
			raise ExpressionSyntaxError(f"{name}() takes {min_args}-{max_args} arguments")
		return ('call', name, tuple(args))

#============================================

def parse_expression(text: str) -> ParsedExpression:
	return ExpressionParser(text).parse()

#============================================

def evaluate_expression(text: str, variables: dict | None = None):
	"""
	Parse and evaluate an expression in one call.

	Args:
		text: Expression text, without filter quoting.
		variables: Variable name to scalar or numpy array.

	Returns:
		numpy.ndarray: Evaluated value(s).
	"""
	return parse_expression(text).evaluate(variables)
