"""
Fourier Series Lab - Approximation State
The single mutable object behind a session: target expression, cosine and
sine coefficients and the last L2 error.

The Streamlit page calls ``tick()`` once per script run and renders what it
returns; user actions go through the command methods between runs.
"""

import json
import logging
import math
import os
import tempfile
from dataclasses import dataclass

import numpy as np

from coefficients import COS, SIN, CoefficientSet
from config import DEFAULT_EXPRESSION, DISPLAY_DOMAIN, NUM_SAMPLES
from error_metric import l2_error
from expression import ZERO_EXPRESSION, bind, commit_or_keep, parse
from fourier import fourier_function, sample

logger = logging.getLogger(__name__)


def format_error(value) -> str:
    """Format the L2 error for display; nan and inf are shown as-is."""
    value = float(value)
    if math.isfinite(value):
        return f"{value:.8f}"
    return str(value)


@dataclass(frozen=True)
class CoefficientView:
    label: str
    value: float
    min: float
    max: float
    min_text: str
    max_text: str
    step: float


@dataclass(frozen=True)
class TickOutput:
    """Everything one redraw needs."""
    l2_error: float
    target_points: np.ndarray
    approx_points: np.ndarray
    cos_coefficients: tuple
    sin_coefficients: tuple

    @property
    def l2_error_text(self):
        return format_error(self.l2_error)


def _views(coeffs):
    return tuple(
        CoefficientView(coeffs.label(i), c.value, c.min, c.max,
                        c.min_text, c.max_text, coeffs.step(i))
        for i, c in enumerate(coeffs)
    )


class ApproximationState:
    def __init__(self, expression=None, cos_coeffs=None, sin_coeffs=None,
                 l2_error=0.0):
        self.expression = expression if expression is not None else ZERO_EXPRESSION
        self.cos_coeffs = cos_coeffs if cos_coeffs is not None else CoefficientSet(COS)
        self.sin_coeffs = sin_coeffs if sin_coeffs is not None else CoefficientSet(SIN)
        self.l2_error = float(l2_error)
        self._target = bind(self.expression)

    @classmethod
    def default(cls):
        return cls(expression=parse(DEFAULT_EXPRESSION))

    @property
    def function_text(self):
        """Text of the last expression that parsed."""
        return self.expression.source

    def coefficients(self, kind):
        if kind == COS:
            return self.cos_coeffs
        if kind == SIN:
            return self.sin_coeffs
        raise ValueError(f"Unknown coefficient kind: {kind}")

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def commit_expression(self, text) -> bool:
        """Re-parse on a commit event. A bad expression leaves the target as it was."""
        expression, ok = commit_or_keep(self.expression, text, parse)
        if ok:
            self.expression = expression
            self._target = bind(expression)
            logger.info("Target function is now %s", expression)
        else:
            logger.info("Have math error in %r; keeping %r", text, self.function_text)
        return ok

    # =========================================================================
    # QUERIES
    # =========================================================================

    def target(self):
        return self._target

    def approximation(self):
        return fourier_function(self.cos_coeffs.values(), self.sin_coeffs.values())

    def recompute_error(self) -> float:
        self.l2_error = l2_error(self._target, self.approximation())
        return self.l2_error

    def tick(self, domain=DISPLAY_DOMAIN, count=NUM_SAMPLES) -> TickOutput:
        """
        One redraw: commit pending bound texts, recompute the error and
        sample both curves over ``domain``.
        """
        self.cos_coeffs.commit_all_bounds()
        self.sin_coeffs.commit_all_bounds()

        approx = self.approximation()
        self.l2_error = l2_error(self._target, approx)

        return TickOutput(
            l2_error=self.l2_error,
            target_points=sample(self._target, domain, count),
            approx_points=sample(approx, domain, count),
            cos_coefficients=_views(self.cos_coeffs),
            sin_coefficients=_views(self.sin_coeffs),
        )

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def to_dict(self):
        return {
            "function_text": self.function_text,
            "cos": self.cos_coeffs.to_dict(),
            "sin": self.sin_coeffs.to_dict(),
            # JSON has no nan/inf; store those as "nan", "inf", "-inf"
            "l2_error": self.l2_error if math.isfinite(self.l2_error) else str(self.l2_error),
        }

    @classmethod
    def from_dict(cls, data):
        text = data.get("function_text", DEFAULT_EXPRESSION)
        expression, ok = commit_or_keep(None, text, parse)
        if not ok:
            logger.warning("Stored expression %r no longer parses; using %r",
                           text, DEFAULT_EXPRESSION)
            expression = parse(DEFAULT_EXPRESSION)

        return cls(
            expression=expression,
            cos_coeffs=CoefficientSet.from_dict(COS, data.get("cos", {})),
            sin_coeffs=CoefficientSet.from_dict(SIN, data.get("sin", {})),
            l2_error=data.get("l2_error", 0.0),
        )

    def save(self, path) -> bool:
        """
        Write the state as JSON. Returns False if the file could not be written.

        The file is written to a temporary file next to ``path`` and then moved
        over it, so a failed save leaves the previous file untouched.
        """
        directory = os.path.dirname(os.path.abspath(path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".fourier_state_",
                                            suffix=".json")
            with os.fdopen(fd, 'w') as f:
                json.dump(self.to_dict(), f, indent=2, allow_nan=False)
            os.replace(tmp_path, path)
        except (OSError, ValueError, TypeError):
            logger.exception("Could not save state to %s", path)
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            return False
        logger.info("Saved state to %s", path)
        return True

    @classmethod
    def load(cls, path):
        """Load state from ``path``; a missing or unreadable file gives the default state."""
        if not os.path.exists(path):
            return cls.default()
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            return cls.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", path, e)
            return cls.default()
