"""
Homomorphic approximation of a rectangular step on [0, 64).

With centre m = (b1 + b2)/2 and half-width b = (b2 - b1)/2, the pulse
1[b1 <= x <= b2] has the Fourier partial sum

    f(x) = b/64 + sum_{k=1..D} 2/(k*pi) * sin(k*b*pi/64) * cos(k*(x - m)*pi/64)

Everything data dependent (b1, b2, amplitude) stays encrypted; only the
b-free constants are plaintext. Both factors are cosines of angles up to
about D*pi (sin y = cos(y - pi/2)), computed by ``TrigKernel.reduced_cosine``
with r double-angle steps. r comes from D, the slot positions and the domain
(``depth.plan_depth``), so any b1, b2 in [0, 64) keeps the kernel inside
CALIBRATED_RADIUS and the bank satisfies

    |bank[i] - amplitude * f(base_offset + i)| <= |amplitude| * error_bound

up to CKKS encoding noise. For slots 0..15 (or 0..63) on the default domain:

    D     r   depth   error_bound
    1     2    12      5.0e-7
    2     3    13      3.0e-6
    4     4    14      1.7e-5
    8     5    15      8.7e-5
    16    6    16      4.3e-4

Thresholds outside [0, 64) are a caller error and are not detected.

The service returns a bank of ``slot_count`` ciphertexts, slot i holding
amplitude * f(base_offset + i). Slot positions are independent of each other.
"""
import math
from pathlib import Path
from typing import Any, List, Optional

from fourier_step_fhe.depth import (
    ConfigurationError,
    DepthPlan,
    check_capacity,
    check_input_level,
    plan_depth,
)
from fourier_step_fhe.generator.generate_step_coeffs import (
    StepCoefficients,
    compute_step_coeffs,
    load_step_coeffs,
)
from fourier_step_fhe.trig_kernel import TrigKernel, reduced_cosine_bound


def series_error_bound(coeffs: StepCoefficients, steps: int, radius: float) -> float:
    """
    Worst-case |polynomial series - exact series| per unit amplitude: each
    factor is off by at most e, so each product by at most 2e + e^2.
    """
    eps = reduced_cosine_bound(steps, radius)
    return sum(abs(c) for c in coeffs.coeff) * (2.0 * eps + eps * eps)


def _load_coeffs(config) -> StepCoefficients:
    path = getattr(config, "coeffs_path", None)
    if path is None:
        return compute_step_coeffs(config.degree, config.domain_size)
    coeffs = load_step_coeffs(Path(path))
    if coeffs.degree != config.degree or coeffs.domain_size != config.domain_size:
        raise ConfigurationError(
            f"{path} holds D={coeffs.degree}, domain={coeffs.domain_size}; "
            f"config wants D={config.degree}, domain={config.domain_size}"
        )
    return coeffs


class StepApproximator:
    """
    Fourier-series step indicator over a ciphertext backend.

    ``eng`` is an ``EngineWrapper`` (CKKS) or a ``PlainBackend``; ``config``
    a ``StepConfig``. Coefficients come from ``config.coeffs_path`` when set,
    otherwise they are computed. Depth (including the double-angle steps) is
    checked against ``eng.max_level`` here and against the input levels in
    ``evaluate``, both before any ciphertext operation.

    ``error_bound`` is the guaranteed distance to the exact-trig partial sum
    per unit amplitude, for any b1, b2 in [0, domain_size).
    """

    def __init__(self, eng: Any, config, kernel: Optional[Any] = None):
        self.eng = eng
        self.config = config
        self.coeffs = _load_coeffs(config)
        self.plan: DepthPlan = plan_depth(config)
        check_capacity(self.plan, eng.max_level)
        self.kernel = kernel if kernel is not None else TrigKernel(eng, config.kernel_order)
        self.error_bound = series_error_bound(
            self.coeffs, self.plan.reduction_steps, self.plan.reduced_radius
        )

    def evaluate(self, b1: Any, b2: Any, amplitude: Any) -> List[Any]:
        eng = self.eng
        for name, ct in (("b1", b1), ("b2", b2), ("amplitude", amplitude)):
            check_input_level(eng.level(ct), self.plan, name)

        # recentre: offset = -m, b = half-width
        offset = eng.multiply_plain(eng.add(b1, b2), -0.5)
        b = eng.multiply_plain(eng.subtract(b2, b1), 0.5)

        return [
            self._slot(offset, b, amplitude, self.config.base_offset + i)
            for i in range(self.config.slot_count)
        ]

    def _slot(self, offset: Any, b: Any, amplitude: Any, position: int) -> Any:
        eng = self.eng
        kernel = self.kernel
        steps = self.plan.reduction_steps
        scale = 2.0 ** -steps
        c = eng.multiply_plain(b, 1.0 / self.config.domain_size)
        x = eng.add_plain(offset, float(position))

        for coeff, sin_k, cos_k in zip(self.coeffs.coeff, self.coeffs.sincoeff, self.coeffs.coscoeff):
            # sin(k*b*pi/64) = cos(k*b*pi/64 - pi/2)
            sin_factor = kernel.reduced_cosine(
                eng.multiply_plain(b, sin_k * scale), steps, shift=-0.5 * math.pi * scale
            )
            cos_factor = kernel.reduced_cosine(eng.multiply_plain(x, cos_k * scale), steps)
            term = eng.multiply_plain(eng.multiply(sin_factor, cos_factor), coeff)
            c = eng.add(c, term)

        # amplitude last, so it costs a single level
        return eng.multiply(c, amplitude)


def approximated_step(eng: Any, config, b1: Any, b2: Any, amplitude: Any) -> List[Any]:
    return StepApproximator(eng, config).evaluate(b1, b2, amplitude)


# 사용 예
if __name__ == "__main__":
    import time

    import numpy as np

    from fourier_step_fhe.utils import fourier_step_polynomial
    from fourier_step_fhe.wrapper import EngineWrapper, StepConfig

    # 1) 엔진 초기화
    cfg = StepConfig(degree=2, slot_count=4, base_offset=28, max_level=16)
    eng_wrap = EngineWrapper(cfg)
    approx = StepApproximator(eng_wrap, cfg)
    print(f"Depth per slot: {approx.plan.depth_per_slot}, "
          f"multiplications: {approx.plan.multiplications}, "
          f"error bound: {approx.error_bound:.1e}")

    # 2) 임계값 / 진폭 암호화
    b1_val, b2_val, amp_val = 20.0, 40.0, 1.0
    ct_b1 = eng_wrap.encrypt(b1_val)
    ct_b2 = eng_wrap.encrypt(b2_val)
    ct_amp = eng_wrap.encrypt(amp_val)

    # 3) 시간 측정하며 실행
    start = time.time()
    bank = approx.evaluate(ct_b1, ct_b2, ct_amp)
    end = time.time()
    print("Step bank (FHE) took", end - start, "seconds")

    # 4) 개발용 확인
    positions = cfg.base_offset + np.arange(cfg.slot_count)
    expected = amp_val * fourier_step_polynomial(positions, b1_val, b2_val, cfg.degree)
    for pos, ct, exp in zip(positions, bank, expected):
        eng_wrap.probe(ct, label=f"x={pos} expected={exp:.6f}")
