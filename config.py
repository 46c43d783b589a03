"""
Fourier Series Lab - Configuration
Module-level settings shared by the engine and the Streamlit tabs.
"""

import os
import numpy as np

# =============================================================================
# DOMAINS & SAMPLING
# =============================================================================

# L2 error is always measured over one period, independent of the plot
INTEGRATION_DOMAIN = (-np.pi, np.pi)

# Curves are sampled over a wider window so panning the plot shows more
DISPLAY_DOMAIN = (-10.0, 10.0)
NUM_SAMPLES = 500

# Initial plot view
PLOT_XLIM = (-np.pi, np.pi)
PLOT_YLIM = (-5.0, 5.0)

# =============================================================================
# QUADRATURE
# =============================================================================

QUAD_EPSABS = 1e-16
QUAD_EPSREL = 0.0
QUAD_LIMIT = 10

# =============================================================================
# COEFFICIENTS
# =============================================================================

DEFAULT_MIN = -10.0
DEFAULT_MAX = 10.0
DRAG_STEP_FRACTION = 0.01

# =============================================================================
# EXPRESSIONS
# =============================================================================

VARIABLE_NAME = "x"
DEFAULT_EXPRESSION = "x^2"

# Constant powers are checked in double precision before SymPy evaluates
# them exactly; |exponent * ln(base)| above this is rejected
MAX_LOG_MAGNITUDE = 2000.0
MAX_INTEGER_BITS = 1100

PRESETS = {
    "Parabola x²": "x^2",
    "Sawtooth x": "x",
    "Square wave": "sign(x)",
    "Triangle |x|": "abs(x)",
    "Exponential": "exp(x)",
    "Gaussian bump": "exp(-x^2)",
    "Custom": None,
}


def preset_name(text):
    """Name of the preset whose expression is ``text``, else ``"Custom"``."""
    text = (text or "").strip()
    for name, expression in PRESETS.items():
        if expression is not None and expression == text:
            return name
    return "Custom"

# =============================================================================
# PERSISTENCE & LOGGING
# =============================================================================

STATE_FILE_ENV = "FOURIER_LAB_STATE"
AUTOSAVE_ENV = "FOURIER_LAB_AUTOSAVE"
LOG_LEVEL_ENV = "FOURIER_LAB_LOG_LEVEL"

_DEFAULT_STATE_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)),
                                   "fourier_state.json")


def state_file_path():
    """Return the JSON file the session state is saved to."""
    return os.environ.get(STATE_FILE_ENV, _DEFAULT_STATE_FILE)


def autosave_default():
    """Autosave after every edit unless FOURIER_LAB_AUTOSAVE is 0/false/no/off."""
    return os.environ.get(AUTOSAVE_ENV, "1").strip().lower() not in ("0", "false", "no", "off")


def log_level():
    return os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
