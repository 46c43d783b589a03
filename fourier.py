"""
Fourier Series Lab - Fourier Module
Partial Fourier sums and dense curve sampling for plotting.
"""

import numpy as np


def fourier_sum(x, cos_values, sin_values):
    """
    Evaluate the partial Fourier sum

        Σ_n a_n cos(n x) + Σ_m b_m sin((m+1) x)

    at ``x`` (scalar or array). The cosine list starts at frequency 0, the sine
    list at frequency 1. Empty lists contribute nothing.
    """
    scalar = np.ndim(x) == 0
    result = 0.0 if scalar else np.zeros(np.shape(x), dtype=float)

    for n, a_n in enumerate(cos_values):
        result = result + a_n * np.cos(n * x)

    for m, b_m in enumerate(sin_values):
        result = result + b_m * np.sin((m + 1) * x)

    return float(result) if scalar else result


def fourier_function(cos_values, sin_values):
    """Return ``x -> fourier_sum(x, ...)`` over a snapshot of the coefficients."""
    cos_values = [float(a) for a in cos_values]
    sin_values = [float(b) for b in sin_values]

    def evaluate(x):
        return fourier_sum(x, cos_values, sin_values)

    return evaluate


def sample(f, domain, count):
    """
    Sample ``f`` at ``count`` evenly spaced points covering ``domain``
    (both endpoints included).

    Returns
    -------
    ndarray of shape (count, 2)
        Columns are x and f(x).
    """
    xl, xr = domain
    x = np.linspace(xl, xr, int(count))

    try:
        y = np.asarray(f(x), dtype=float)
    except (TypeError, ValueError):
        # f only understands scalars
        y = np.array([f(float(xi)) for xi in x], dtype=float)

    if y.shape != x.shape:
        y = np.broadcast_to(y, x.shape)

    return np.column_stack((x, y))
