"""
Fourier Series Lab - Coefficient Module
Resizable collections of bounded Fourier coefficients.

One CoefficientSet holds the cosine terms A0, A1, ... and another the sine
terms B1, B2, ... . Each entry keeps the typed text of its bounds next to the
numeric bounds so a half-typed bound never replaces a good one.
"""

import math
from dataclasses import dataclass

import sympy as sp
from sympy.parsing.sympy_parser import convert_xor, standard_transformations

from config import DEFAULT_MIN, DEFAULT_MAX, DRAG_STEP_FRACTION
from errors import BoundParseError
from expression import commit_or_keep, estimate_constant, parse_unevaluated


COS = "cos"
SIN = "sin"
BOUNDS = ("min", "max")

_BOUND_TRANSFORMATIONS = standard_transformations + (convert_xor,)


def format_bound(value: float) -> str:
    """Text shown for a numeric bound: ``-10`` rather than ``-10.0``."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def parse_bound(text: str) -> float:
    """
    Parse bound text. Plain numbers and constant expressions (``pi/2``)
    are accepted; the result must be a finite real number.

    Constant expressions are evaluated in double precision, never exactly,
    so ``9^9^9^9`` is rejected at once instead of hanging.
    """
    try:
        value = float(text)
    except (TypeError, ValueError):
        value = _constant_value(text)
    if not math.isfinite(value):
        raise BoundParseError(text, "bound must be finite")
    return value


def _constant_value(text):
    try:
        expr = parse_unevaluated(text, _BOUND_TRANSFORMATIONS)
        if not isinstance(expr, sp.Expr):
            raise TypeError("not a number")
        if expr.free_symbols:
            names = ", ".join(sorted(str(s) for s in expr.free_symbols))
            raise ValueError(f"bound must be constant, found {names}")
        return estimate_constant(expr)
    except Exception as e:
        raise BoundParseError(text, str(e) or type(e).__name__) from e


@dataclass
class Coefficient:
    value: float = 0.0
    min: float = DEFAULT_MIN
    max: float = DEFAULT_MAX
    min_text: str = format_bound(DEFAULT_MIN)
    max_text: str = format_bound(DEFAULT_MAX)

    @classmethod
    def from_bounds(cls, value, lo, hi):
        """Rebuild a coefficient from stored numbers, deriving the bound texts."""
        lo, hi = float(lo), float(hi)
        return cls(float(value), lo, hi, format_bound(lo), format_bound(hi))


class CoefficientSet:
    """Ordered, index-addressed coefficients of one kind (``cos`` or ``sin``)."""

    def __init__(self, kind, coefficients=None):
        if kind not in (COS, SIN):
            raise ValueError(f"Unknown coefficient kind: {kind}")
        self.kind = kind
        self._items = list(coefficients or [])

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self):
        return f"CoefficientSet({self.kind!r}, {self.values()!r})"

    # -------------------------------------------------------------------------
    # Resizing
    # -------------------------------------------------------------------------

    def append(self):
        """Add a zero coefficient with the default bounds [-10, 10]."""
        self._items.append(Coefficient())
        return len(self._items) - 1

    def remove_last(self):
        """Drop the last coefficient; does nothing on an empty set."""
        if self._items:
            self._items.pop()

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    def values(self):
        return [c.value for c in self._items]

    def set_value(self, index, value):
        """Set a value as-is. Callers clamp; out-of-range values are kept."""
        self._items[index].value = float(value)

    def clamp(self, index, value):
        coeff = self._items[index]
        lo, hi = sorted((coeff.min, coeff.max))
        return min(max(float(value), lo), hi)

    def step(self, index):
        coeff = self._items[index]
        return abs(coeff.max - coeff.min) * DRAG_STEP_FRACTION

    def label(self, index):
        if self.kind == COS:
            return f"A{index}"
        return f"B{index + 1}"

    def labels(self):
        return [self.label(i) for i in range(len(self._items))]

    # -------------------------------------------------------------------------
    # Bounds
    # -------------------------------------------------------------------------

    def set_bound_text(self, index, which, text):
        """Store in-progress bound text without touching the numeric bound."""
        _check_bound(which)
        setattr(self._items[index], f"{which}_text", text)

    def commit_bound_text(self, index, which):
        """Parse the bound text at ``index``. Returns True if the bound was updated."""
        _check_bound(which)
        coeff = self._items[index]
        current = getattr(coeff, which)
        new_value, ok = commit_or_keep(current, getattr(coeff, f"{which}_text"),
                                       parse_bound)
        setattr(coeff, which, new_value)
        return ok

    def commit_all_bounds(self):
        """Commit every bound text; returns the number that failed to parse."""
        failed = 0
        for index in range(len(self._items)):
            for which in BOUNDS:
                if not self.commit_bound_text(index, which):
                    failed += 1
        return failed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self):
        return {
            "values": [c.value for c in self._items],
            "minima": [c.min for c in self._items],
            "maxima": [c.max for c in self._items],
        }

    @classmethod
    def from_dict(cls, kind, data):
        values = data.get("values", [])
        minima = data.get("minima", [])
        maxima = data.get("maxima", [])
        if not len(values) == len(minima) == len(maxima):
            raise ValueError(
                f"{kind} coefficients: values, minima and maxima differ in length "
                f"({len(values)}, {len(minima)}, {len(maxima)})")
        items = [Coefficient.from_bounds(v, lo, hi)
                 for v, lo, hi in zip(values, minima, maxima)]
        return cls(kind, items)


def _check_bound(which):
    if which not in BOUNDS:
        raise ValueError(f"Bound must be 'min' or 'max', got {which!r}")
