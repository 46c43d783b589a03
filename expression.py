"""
Fourier Series Lab - Expression Module
Turns user text such as ``x^2 - sin(3x)`` into a real function of x.

Parsing is done with SymPy and binding with ``lambdify`` onto NumPy, so the
same bound function evaluates a single point (quadrature) or a whole array
(plot sampling).
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import sympy as sp
from sympy import lambdify
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from config import MAX_INTEGER_BITS, MAX_LOG_MAGNITUDE, VARIABLE_NAME
from errors import ExpressionParseError, ParseError

logger = logging.getLogger(__name__)

X_SYMBOL = sp.Symbol(VARIABLE_NAME)

_TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)

_LOCAL_NAMES = {
    VARIABLE_NAME: X_SYMBOL,
    "pi": sp.pi,
    "e": sp.E,
    "E": sp.E,
    "abs": sp.Abs,
    "ln": sp.log,
}


@dataclass(frozen=True)
class Expression:
    """A successfully parsed expression together with the text it came from."""
    source: str
    sympy_expr: sp.Expr

    @property
    def unexpected_symbols(self):
        return self.sympy_expr.free_symbols - {X_SYMBOL}

    def __str__(self):
        return str(self.sympy_expr)


# Target used when no expression has ever parsed
ZERO_EXPRESSION = Expression(source="0", sympy_expr=sp.Integer(0))


# =============================================================================
# CONSTANT SIZE GUARD
# =============================================================================

def parse_unevaluated(text, transformations):
    """Parse without evaluating anything, including function calls."""
    with sp.evaluate(False):
        return parse_expr(text, local_dict=dict(_LOCAL_NAMES),
                          transformations=transformations, evaluate=False)


def _atom_value(node):
    if node.is_Rational:
        bits = max(abs(int(node.p)).bit_length(), int(node.q).bit_length())
        if bits > MAX_INTEGER_BITS:
            raise OverflowError(f"number too large: {bits} bits")
    try:
        return float(node)
    except (TypeError, ValueError):
        return math.nan


def estimate_constant(node) -> float:
    """
    Double precision value of a constant SymPy tree.

    Exact powers and function values are never formed, so this returns
    quickly for any input. Undefined results (0^-1, sqrt(-1)) give nan.

    Raises
    ------
    OverflowError
        If an intermediate value is too large to evaluate exactly in bounded
        time (e.g. 9^9^9^9 or factorial(10^8)).
    """
    if not node.args:
        return _atom_value(node)

    args = [estimate_constant(arg) for arg in node.args]

    if isinstance(node, sp.Add):
        return math.fsum(args) if all(math.isfinite(a) for a in args) else sum(args)

    if isinstance(node, sp.Mul):
        return math.prod(args)

    if isinstance(node, sp.Pow):
        base, exp = args
        if (math.isfinite(base) and math.isfinite(exp)
                and base not in (0.0, 1.0, -1.0)
                and abs(exp * math.log(abs(base))) > MAX_LOG_MAGNITUDE):
            raise OverflowError(f"power too large: {node}")
        try:
            return math.pow(base, exp)
        except (ValueError, ZeroDivisionError):
            return math.nan

    try:
        value = float(node.func(*[sp.Float(a) for a in args]).evalf())
    except OverflowError:
        raise
    except Exception:
        # Piecewise conditions, non-numeric arguments
        return math.nan
    if not math.isfinite(value) and all(math.isfinite(a) for a in args):
        raise OverflowError(f"value too large: {node}")
    return value


def check_constant_sizes(node):
    """Estimate every maximal constant subtree of ``node``; raises OverflowError."""
    if not node.free_symbols:
        estimate_constant(node)
        return
    for arg in node.args:
        check_constant_sizes(arg)


# =============================================================================
# PARSING
# =============================================================================

def parse(text: str) -> Expression:
    """
    Parse ``text`` into an Expression.

    Accepts infix arithmetic, ``^`` or ``**`` powers, implicit multiplication
    (``2x``, ``3 sin x``) and the elementary functions SymPy knows.

    Raises
    ------
    ExpressionParseError
        If the text is empty, malformed, not a scalar expression or complex.
    """
    if text is None or not text.strip():
        raise ExpressionParseError(text, "empty expression")

    try:
        # Size check on the unevaluated tree first: 9^9^9^9 must never
        # reach exact integer arithmetic
        check_constant_sizes(parse_unevaluated(text, _TRANSFORMATIONS))
        expr = parse_expr(text, local_dict=dict(_LOCAL_NAMES),
                          transformations=_TRANSFORMATIONS)
    except Exception as e:
        raise ExpressionParseError(text, str(e) or type(e).__name__) from e

    if not isinstance(expr, sp.Expr):
        raise ExpressionParseError(text, "not a scalar expression")
    if expr.has(sp.I) or expr.has(sp.zoo):
        raise ExpressionParseError(text, "expression is not real valued")

    return Expression(source=text, sympy_expr=expr)


# =============================================================================
# BINDING
# =============================================================================

def zero_function(x):
    """Constant zero, shaped like ``x``."""
    if np.ndim(x) == 0:
        return 0.0
    return np.zeros(np.shape(x), dtype=float)


def _as_real_function(func):
    """Wrap a lambdified function so it takes scalars or arrays and never raises
    on floating point trouble (division by zero gives inf, log(-1) gives nan)."""
    def evaluate(x):
        x_arr = np.asarray(x, dtype=float)
        with np.errstate(all='ignore'):
            y = np.asarray(func(x_arr), dtype=float)
        if y.shape != x_arr.shape:
            y = np.broadcast_to(y, x_arr.shape)
        if x_arr.ndim == 0:
            return float(y)
        return np.array(y, dtype=float)

    return evaluate


def bind(expression: Expression):
    """
    Bind ``expression`` to a callable ``f(x)``.

    Never raises. An expression with a free symbol other than x binds to the
    zero function instead.
    """
    unexpected = expression.unexpected_symbols
    if unexpected:
        names = ", ".join(sorted(str(s) for s in unexpected))
        logger.info("Expression %r uses unknown symbol(s) %s; using f(x) = 0",
                    expression.source, names)
        return zero_function

    try:
        func = lambdify(X_SYMBOL, expression.sympy_expr, modules=['scipy', 'numpy'])
    except Exception:
        logger.exception("Could not bind expression %r; using f(x) = 0",
                         expression.source)
        return zero_function

    return _as_real_function(func)


# =============================================================================
# COMMIT-OR-KEEP
# =============================================================================

def commit_or_keep(current, text, parser):
    """
    Try ``parser(text)``; return ``(new_value, True)`` on success and
    ``(current, False)`` if the text does not parse.
    """
    try:
        return parser(text), True
    except ParseError as e:
        logger.debug("Keeping previous value: %s", e)
        return current, False
