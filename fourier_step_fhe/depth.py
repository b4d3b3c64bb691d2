"""
Static multiplicative-depth accounting for the Fourier step circuit.

CKKS cannot tell us at runtime that a ciphertext ran out of levels; the
decryption is simply garbage. So every evaluation plan is costed up front
and rejected before the first ciphertext operation if it does not fit.

The 8th-order kernel is only accurate close to its reference point, while
the series feeds it angles up to D*pi. Each factor is therefore evaluated on
angle / 2^r and brought back with r double-angle steps (cos 2a = 2c^2 - 1).
r is picked from plaintext data alone (D, slot positions, domain) so that
the reduced angle never leaves CALIBRATED_RADIUS for thresholds in
[0, domain_size).

Level cost per slot (every multiplicative op, constants included, eats one):

    recentring      (b1 + b2) * -0.5  /  (b2 - b1) * 0.5        1
    frequency       b * k*pi/64/2^r   /  x * k*pi/64/2^r        1
    kernel          u^2, u^4, u^4*u, *u, *1/720                 5
    doubling        c^2, r times                                r
    sin x cos                                                   1
    coefficient     * 2/(k*pi)                                  1
    amplitude                                                   1
                                                              ----
                                                            10 + r

Harmonics are summed, not chained, so D only enters through r, which grows
like log2(D). Operation counts grow linearly in D and in the slot count.
"""
from __future__ import annotations

import dataclasses
import math
from typing import Dict


class ConfigurationError(ValueError):
    """Approximation configuration that cannot be evaluated."""


class DepthBudgetError(ConfigurationError):
    """The circuit needs more levels than the ciphertexts carry."""


KERNEL_ORDER = 8

# Longest chain inside the kernel: square, square, multiply, multiply, constant.
KERNEL_DEPTH = 5

# Per kernel call.
KERNEL_OPS: Dict[str, int] = {
    "add_plain": 2,
    "square": 3,
    "multiply": 2,
    "multiply_plain": 4,
    "add": 3,
}

# Per double-angle step: c^2, c^2 + c^2, - 1.
DOUBLING_OPS: Dict[str, int] = {
    "square": 1,
    "add": 1,
    "add_plain": 1,
}

# Largest |reduced angle| handed to the kernel.
CALIBRATED_RADIUS = 1.0

RECENTER_DEPTH = 1
FREQUENCY_DEPTH = 1
DOUBLING_DEPTH = 1
PRODUCT_DEPTH = 1
COEFFICIENT_DEPTH = 1
AMPLITUDE_DEPTH = 1


@dataclasses.dataclass(frozen=True)
class DepthPlan:
    degree: int
    slot_count: int
    reduction_steps: int
    reduced_radius: float
    depth_per_slot: int
    kernel_evaluations: int
    operation_counts: Dict[str, int]

    @property
    def multiplications(self) -> int:
        """All level-consuming operations in the whole bank."""
        c = self.operation_counts
        return c["multiply"] + c["square"] + c["multiply_plain"]


def max_kernel_argument(degree: int, domain_size: int,
                        first_position: float, last_position: float) -> float:
    """
    Largest |angle| either factor of the series sees when both thresholds
    lie in [0, domain_size) and slots cover [first_position, last_position].

    Cosine side: k*(x - m)*pi/domain with the centre m anywhere in the domain.
    Sine side:   k*b*pi/domain - pi/2 with |b| <= domain/2.
    """
    reach = max(abs(first_position), abs(last_position),
                abs(first_position - domain_size), abs(last_position - domain_size))
    cos_side = degree * math.pi * reach / domain_size
    sin_side = (degree + 1) * math.pi / 2
    return max(cos_side, sin_side)


def reduction_steps(max_argument: float, radius: float = CALIBRATED_RADIUS) -> int:
    """Smallest r >= 1 with max_argument / 2^r <= radius."""
    steps = 1
    while max_argument / 2 ** steps > radius:
        steps += 1
    return steps


def series_depth(steps: int) -> int:
    return (RECENTER_DEPTH + FREQUENCY_DEPTH + KERNEL_DEPTH + steps * DOUBLING_DEPTH
            + PRODUCT_DEPTH + COEFFICIENT_DEPTH + AMPLITUDE_DEPTH)


def plan_depth(config) -> DepthPlan:
    """
    Cost a full result bank for ``config`` (a ``StepConfig`` or anything with
    ``degree``, ``slot_count``, ``domain_size`` and ``base_offset``). Counts
    match what the plain backend records when the approximator runs step by
    step.
    """
    d = config.degree
    s = config.slot_count
    if d <= 0:
        raise ConfigurationError(f"degree must be positive, got {d}")
    if s <= 0:
        raise ConfigurationError(f"slot_count must be positive, got {s}")

    first = config.base_offset
    widest = max_kernel_argument(d, config.domain_size, first, first + s - 1)
    r = reduction_steps(widest)

    # one reduced cosine = kernel + r doublings
    per_factor = {
        op: KERNEL_OPS.get(op, 0) + r * DOUBLING_OPS.get(op, 0)
        for op in set(KERNEL_OPS) | set(DOUBLING_OPS)
    }
    kernels = 2 * s * d
    counts = {
        # b1 + b2, then one accumulate per harmonic
        "add": 1 + s * d * (1 + 2 * per_factor["add"]),
        "subtract": 1,
        # two recentring constants, b/64 per slot, per harmonic: two
        # frequency scalings, the coefficient, and the kernels' own
        "multiply_plain": 2 + s * (1 + d * (3 + 2 * per_factor["multiply_plain"])),
        "square": s * d * 2 * per_factor["square"],
        # sin x cos per harmonic, amplitude per slot
        "multiply": s * (d * (1 + 2 * per_factor["multiply"]) + 1),
        "add_plain": s * (1 + d * 2 * per_factor["add_plain"]),
    }
    return DepthPlan(
        degree=d,
        slot_count=s,
        reduction_steps=r,
        reduced_radius=widest / 2 ** r,
        depth_per_slot=series_depth(r),
        kernel_evaluations=kernels,
        operation_counts=counts,
    )


def check_capacity(plan: DepthPlan, max_level: int) -> None:
    if plan.depth_per_slot > max_level:
        raise DepthBudgetError(
            f"step circuit needs {plan.depth_per_slot} levels per slot "
            f"({plan.reduction_steps} double-angle steps), engine provides {max_level}"
        )


def check_input_level(level: int, plan: DepthPlan, name: str = "input") -> None:
    """Reject an input ciphertext that cannot absorb the whole circuit."""
    if level < plan.depth_per_slot:
        raise DepthBudgetError(
            f"{name} ciphertext is at level {level}, "
            f"circuit needs {plan.depth_per_slot}"
        )
