"""
Fourier Series Lab - Error Metric Module
L2 distance between the target function and its Fourier approximation:

    ||f - S||_2 = sqrt( ∫_{-π}^{π} (f(x) - S(x))^2 dx )

Integrals use adaptive Gauss-Kronrod quadrature (QUADPACK QAGS through
scipy.integrate.quad) with a fixed subdivision budget so every redraw costs
about the same.
"""

import logging
import warnings

import numpy as np
from scipy import integrate

from config import INTEGRATION_DOMAIN, QUAD_EPSABS, QUAD_EPSREL, QUAD_LIMIT

logger = logging.getLogger(__name__)


def _squared(f):
    def integrand(x):
        # np.float64 keeps division by zero as inf instead of ZeroDivisionError
        value = float(f(np.float64(x)))
        return value * value
    return integrand


def l2_norm(f, domain=INTEGRATION_DOMAIN, epsabs=QUAD_EPSABS,
            epsrel=QUAD_EPSREL, limit=QUAD_LIMIT) -> float:
    """
    Compute sqrt(∫ f(x)^2 dx) over ``domain``.

    The 1e-16 absolute tolerance is rarely reachable in double precision;
    QUADPACK then stops at ``limit`` subintervals and returns its best
    estimate, which is what we want. A nan or inf anywhere in f propagates
    to the result.
    """
    a, b = domain
    with warnings.catch_warnings(), np.errstate(all='ignore'):
        warnings.simplefilter("ignore", integrate.IntegrationWarning)
        warnings.simplefilter("ignore", RuntimeWarning)
        value, abserr = integrate.quad(_squared(f), a, b, epsabs=epsabs,
                                       epsrel=epsrel, limit=limit)

    if not np.isfinite(value):
        logger.debug("L2 integral is not finite: %r", value)
        return float(value)

    logger.debug("L2 integral %.3e (estimated abs error %.1e)", value, abserr)
    # Roundoff can leave a tiny negative integral of a non-negative function
    return float(np.sqrt(max(value, 0.0)))


def l2_error(target, approx, domain=INTEGRATION_DOMAIN) -> float:
    """L2 distance between ``target`` and ``approx`` over [-π, π]."""
    def difference(x):
        return target(x) - approx(x)

    return l2_norm(difference, domain)
