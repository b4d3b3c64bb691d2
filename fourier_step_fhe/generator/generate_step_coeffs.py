# generator/generate_step_coeffs.py
"""
Fourier coefficients of a centred rectangular pulse of half-width b on a
domain of width 64 (period 128 after centring):

    f(x) = b/64 + sum_k (2/(k*pi)) * sin(k*b*pi/64) * cos(k*x*pi/64)

b itself stays encrypted, so only the b-free parts are tabulated here:
    coeff[k]    = 2/(k*pi)
    sincoeff[k] = coscoeff[k] = k*pi/64
"""
import dataclasses
import json
import math
from functools import lru_cache
from pathlib import Path
from typing import Tuple

import numpy as np

from fourier_step_fhe.depth import ConfigurationError

DEFAULT_DOMAIN_SIZE = 64


@dataclasses.dataclass(frozen=True)
class StepCoefficients:
    degree: int
    domain_size: int
    coeff: Tuple[float, ...]
    sincoeff: Tuple[float, ...]
    coscoeff: Tuple[float, ...]

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return np.array(self.coeff), np.array(self.sincoeff), np.array(self.coscoeff)


@lru_cache(maxsize=None)
def compute_step_coeffs(degree: int, domain_size: int = DEFAULT_DOMAIN_SIZE) -> StepCoefficients:
    if degree <= 0:
        raise ConfigurationError(f"degree must be positive, got {degree}")
    if domain_size <= 0:
        raise ConfigurationError(f"domain_size must be positive, got {domain_size}")
    ks = range(1, degree + 1)
    freq = tuple(k * math.pi / domain_size for k in ks)
    return StepCoefficients(
        degree=degree,
        domain_size=domain_size,
        coeff=tuple(2.0 / (k * math.pi) for k in ks),
        sincoeff=freq,
        coscoeff=freq,
    )


def save_step_coeffs(coeffs: StepCoefficients, path: Path):
    """
    JSON entries: [k, coeff, sincoeff, coscoeff], k starting at 1
    """
    entries = [
        [k, c, s, co]
        for k, (c, s, co) in enumerate(zip(coeffs.coeff, coeffs.sincoeff, coeffs.coscoeff), 1)
    ]
    data = {"degree": coeffs.degree, "domain_size": coeffs.domain_size, "entries": entries}
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)


def load_step_coeffs(path: Path) -> StepCoefficients:
    data = json.loads(path.read_text(encoding="utf-8"))
    entries = sorted(data["entries"], key=lambda e: e[0])
    for expected, entry in enumerate(entries, 1):
        if len(entry) != 4 or int(entry[0]) != expected:
            raise ValueError(f"malformed step coefficient entry: {entry}")
    if len(entries) != data["degree"]:
        raise ValueError(f"expected {data['degree']} entries, got {len(entries)}")
    return StepCoefficients(
        degree=int(data["degree"]),
        domain_size=int(data["domain_size"]),
        coeff=tuple(float(e[1]) for e in entries),
        sincoeff=tuple(float(e[2]) for e in entries),
        coscoeff=tuple(float(e[3]) for e in entries),
    )


def main():
    base = Path(__file__).resolve().parent / "coeffs"
    for degree in (1, 4, 8, 16):
        path = base / f"step_d{degree}_coeffs.json"
        save_step_coeffs(compute_step_coeffs(degree), path)
        print(f"Wrote {degree} harmonics to {path}")


if __name__ == "__main__":
    main()
