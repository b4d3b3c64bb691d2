"""
Homomorphic sine / cosine via a fixed 8th-order Taylor polynomial.

CKKS has no transcendental ops, so sin is replaced by its even Taylor
expansion about 3*pi/2, where sin = -1 and only even powers survive:

    sin(x) ~ -1 + u^2/2 - u^4/24 + u^6/720 - u^8/40320,   u = x - 3*pi/2

Cosine is the same polynomial on x + pi/2, so both kernels share one
reference point and one truncation error.

Accuracy is only good while |u| stays small. The alternating tail gives
|error| <= |u|^10 / 10!, i.e. ~2.8e-7 for |u| <= 1, ~2.5e-5 for |u| <= pi/2
and ~2.6e-2 at |u| = pi; at |u| = 15 the polynomial is off by thousands.
Nothing can check |u| under encryption, so wide angles go through
``reduced_cosine``: the kernel runs on a / 2^r with phase 3*pi/2 (u = a / 2^r,
value -cos) and r double-angle steps c <- 2c^2 - 1 restore cos(a). The sign
drops out in the first squaring. A kernel error e grows to at most
4e + 2e^2 per step (``reduced_cosine_bound``).
"""
import math
from typing import Any

import numpy as np

from fourier_step_fhe.depth import CALIBRATED_RADIUS, KERNEL_ORDER, ConfigurationError

REFERENCE_ANGLE = 3 * math.pi / 2
SINE_PHASE = 0.0
COSINE_PHASE = math.pi / 2

# (power, weight) of the expansion; the constant term is added separately
TAYLOR_TERMS = (
    (2, 1.0 / 2.0),
    (4, -1.0 / 24.0),
    (6, 1.0 / 720.0),
    (8, -1.0 / 40320.0),
)
CONSTANT_TERM = -1.0


def truncation_bound(radius: float) -> float:
    """Worst-case |kernel - sin| for |u| <= radius (first omitted term)."""
    return radius ** (KERNEL_ORDER + 2) / math.factorial(KERNEL_ORDER + 2)


def taylor_sine(x, phase: float = SINE_PHASE) -> np.ndarray:
    """
    Plaintext twin of ``TrigKernel``: same polynomial, same reference point,
    no encoding error. Used to separate truncation error from CKKS noise.
    """
    u = np.asarray(x, dtype=np.float64) + (phase - REFERENCE_ANGLE)
    res = np.full_like(u, CONSTANT_TERM)
    for power, weight in TAYLOR_TERMS:
        res = res + weight * u ** power
    return res


def taylor_cosine(x) -> np.ndarray:
    return taylor_sine(x, COSINE_PHASE)


def reduced_cosine_bound(steps: int, radius: float = CALIBRATED_RADIUS) -> float:
    """Worst-case |reduced_cosine - cos| when the reduced angle stays within radius."""
    err = truncation_bound(radius)
    for _ in range(steps):
        err = 4.0 * err + 2.0 * err * err
    return err


def taylor_reduced_cosine(y, steps: int) -> np.ndarray:
    """Plaintext twin of ``TrigKernel.reduced_cosine`` on the full angle y."""
    c = taylor_sine(np.asarray(y, dtype=np.float64) * 2.0 ** -steps, REFERENCE_ANGLE)
    for _ in range(steps):
        c2 = c * c
        c = c2 + c2 - 1.0
    return c


class TrigKernel:
    """
    Phase-shiftable polynomial kernel over a ciphertext backend.

    ``eng`` is anything exposing add / multiply / square / multiply_plain /
    add_plain (``EngineWrapper`` or ``PlainBackend``). Output level is the
    input level minus ``KERNEL_DEPTH``.
    """

    def __init__(self, eng: Any, order: int = KERNEL_ORDER):
        if order != KERNEL_ORDER:
            raise ConfigurationError(
                f"kernel order is fixed at {KERNEL_ORDER}, got {order}"
            )
        self.eng = eng
        self.order = order

    def evaluate(self, ct: Any, phase: float = SINE_PHASE) -> Any:
        eng = self.eng
        u = eng.add_plain(ct, phase - REFERENCE_ANGLE)

        u2 = eng.square(u)
        u4 = eng.square(u2)
        u6 = eng.multiply(eng.multiply(u4, u), u)
        u8 = eng.square(u4)

        powers = {2: u2, 4: u4, 6: u6, 8: u8}
        res = None
        for power, weight in TAYLOR_TERMS:
            term = eng.multiply_plain(powers[power], weight)
            res = term if res is None else eng.add(res, term)
        return eng.add_plain(res, CONSTANT_TERM)

    def sine(self, ct: Any) -> Any:
        return self.evaluate(ct, SINE_PHASE)

    def cosine(self, ct: Any) -> Any:
        # cos(x) = sin(x + pi/2)
        return self.evaluate(ct, COSINE_PHASE)

    def reduced_cosine(self, ct: Any, steps: int, shift: float = 0.0) -> Any:
        """
        cos(2^steps * (ct + shift)). The caller scales the angle by 2^-steps;
        ``shift`` is folded into the kernel's phase constant. Costs
        ``KERNEL_DEPTH + steps`` levels.
        """
        if steps < 1:
            raise ConfigurationError(f"need at least one double-angle step, got {steps}")
        eng = self.eng
        # sin(a + 3*pi/2) = -cos(a); squaring removes the sign
        c = self.evaluate(ct, REFERENCE_ANGLE + shift)
        for _ in range(steps):
            c2 = eng.square(c)
            c = eng.add_plain(eng.add(c2, c2), -1.0)
        return c
