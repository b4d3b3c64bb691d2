"""
 Plaintext reference helpers for the step approximation:
 - exact rectangular indicator on the integer domain
 - exact-trig Fourier partial sum (what the encrypted bank converges to)
 - the same sum through the range-reduced Taylor kernel (what it actually computes)
 - edge deviation, a Gibbs overshoot measure
"""
import math
from typing import Callable, Optional

import numpy as np

from fourier_step_fhe.depth import max_kernel_argument, reduction_steps
from fourier_step_fhe.generator.generate_step_coeffs import DEFAULT_DOMAIN_SIZE, compute_step_coeffs
from fourier_step_fhe.trig_kernel import taylor_reduced_cosine


def step_indicator(x, b1: float, b2: float) -> np.ndarray:
    """
    1 on [b1, b2], 0 elsewhere
    """
    x = np.asarray(x, dtype=np.float64)
    return ((x >= b1) & (x <= b2)).astype(np.float64)


def _partial_sum(x, b1, b2, degree, domain_size, sin_fn: Callable, cos_fn: Callable) -> np.ndarray:
    coeffs = compute_step_coeffs(degree, domain_size)
    x = np.asarray(x, dtype=np.float64)
    centre = (b1 + b2) * 0.5
    b = (b2 - b1) * 0.5
    res = np.full_like(x, b / domain_size)
    for c, s, co in zip(coeffs.coeff, coeffs.sincoeff, coeffs.coscoeff):
        res = res + c * sin_fn(b * s) * cos_fn((x - centre) * co)
    return res


def fourier_step_reference(x, b1: float, b2: float, degree: int,
                           domain_size: int = DEFAULT_DOMAIN_SIZE) -> np.ndarray:
    """
    b/64 + sum_k 2/(k*pi) * sin(k*b*pi/64) * cos(k*(x - centre)*pi/64)
    with exact sin/cos.
    """
    return _partial_sum(x, b1, b2, degree, domain_size, np.sin, np.cos)


def fourier_step_polynomial(x, b1: float, b2: float, degree: int,
                            domain_size: int = DEFAULT_DOMAIN_SIZE,
                            steps: Optional[int] = None) -> np.ndarray:
    """
    Same partial sum with sin/cos replaced by the range-reduced 8th-order
    kernel, i.e. the value the encrypted circuit decrypts to, minus CKKS noise.
    ``steps`` defaults to what a bank covering min(x)..max(x) would use.
    """
    x = np.asarray(x, dtype=np.float64)
    if steps is None:
        widest = max_kernel_argument(degree, domain_size, float(np.min(x)), float(np.max(x)))
        steps = reduction_steps(widest)

    def sin_fn(y):
        return taylor_reduced_cosine(y - 0.5 * math.pi, steps)

    def cos_fn(y):
        return taylor_reduced_cosine(y, steps)

    return _partial_sum(x, b1, b2, degree, domain_size, sin_fn, cos_fn)


def edge_deviation(values, x, b1: float, b2: float, window: float = 2.0) -> float:
    """
    Max |f(x) - indicator(x)| over points within ``window`` of either edge,
    the edges themselves excluded (every partial sum sits at 1/2 there).
    """
    x = np.asarray(x, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)
    dist = np.minimum(np.abs(x - b1), np.abs(x - b2))
    mask = (dist > 0) & (dist <= window)
    if not np.any(mask):
        raise ValueError("no sample points near the pulse edges")
    return float(np.max(np.abs(values[mask] - step_indicator(x[mask], b1, b2))))
