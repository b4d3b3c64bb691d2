"""
CKKS engine wrapper and configuration for the Fourier step service.
"""
from typing import Optional

import numpy as np
from desilofhe import Ciphertext, Engine

from fourier_step_fhe.depth import KERNEL_ORDER, ConfigurationError
from fourier_step_fhe.engine_context import EngineContext
from fourier_step_fhe.generator.generate_step_coeffs import DEFAULT_DOMAIN_SIZE


class StepConfig:
    """
    Configuration parameters for the step approximation and its engine.
    """

    def __init__(
            self,
            degree: int = 8,
            domain_size: int = DEFAULT_DOMAIN_SIZE,
            slot_count: int = 16,
            kernel_order: int = KERNEL_ORDER,
            base_offset: int = 0,
            max_level: int = 20,
            mode: str = "cpu",
            thread_count: int = 0,
            device_id: int = 0,
            coeffs_path: Optional[str] = None,
    ):
        if degree <= 0:
            raise ConfigurationError(f"degree must be positive, got {degree}")
        if slot_count <= 0:
            raise ConfigurationError(f"slot_count must be positive, got {slot_count}")
        if domain_size <= 0:
            raise ConfigurationError(f"domain_size must be positive, got {domain_size}")
        if kernel_order != KERNEL_ORDER:
            raise ConfigurationError(
                f"kernel order is fixed at {KERNEL_ORDER}, got {kernel_order}"
            )
        self.degree = degree
        self.domain_size = domain_size
        self.slot_count = slot_count
        self.kernel_order = kernel_order
        self.base_offset = base_offset
        self.max_level = max_level
        self.mode = mode
        self.thread_count = thread_count
        self.device_id = device_id
        # JSON table from generator/generate_step_coeffs.py; computed when None
        self.coeffs_path = coeffs_path

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"StepConfig(degree={self.degree}, domain_size={self.domain_size}, "
            f"slot_count={self.slot_count}, base_offset={self.base_offset}, "
            f"max_level={self.max_level})"
        )


class EngineWrapper:
    """
    Wrapper around EngineContext and Engine exposing the arithmetic the step
    circuit uses. Operands at different levels are brought down to the lower
    one before binary operations.
    """

    def __init__(self, config: StepConfig):
        ctx = EngineContext(
            max_level=config.max_level,
            mode=config.mode,
            thread_count=config.thread_count,
            device_id=config.device_id,
        )
        self.ctx = ctx
        self.engine: Engine = ctx.engine
        self.max_level = config.max_level
        self.public_key = ctx.public_key
        self.secret_key = ctx.secret_key
        self.relin_key = ctx.relinearization_key

    def encrypt(self, data):
        """
        Scalars are broadcast to every slot; vectors are encrypted as given.
        """
        if np.ndim(data) == 0:
            data = np.full(self.engine.slot_count, float(data))
        return self.engine.encrypt(np.asarray(data, dtype=np.float64), self.public_key)

    def decrypt(self, ct) -> np.ndarray:
        return np.real(self.engine.decrypt(ct, self.secret_key))

    def level(self, ct) -> int:
        return ct.level

    def _align(self, a, b):
        if a.level > b.level:
            a = self.engine.level_down(a, b.level)
        elif b.level > a.level:
            b = self.engine.level_down(b, a.level)
        return a, b

    def add(self, a, b):
        a, b = self._align(a, b)
        return self.engine.add(a, b)

    def subtract(self, a, b):
        a, b = self._align(a, b)
        return self.engine.subtract(a, b)

    def multiply(self, a, b, relin_key=None):
        if isinstance(a, Ciphertext) and isinstance(b, Ciphertext):
            a, b = self._align(a, b)
            return self.engine.multiply(a, b, relin_key or self.relin_key)
        # ciphertext x plaintext or scalar
        return self.engine.multiply(a, b)

    def square(self, ct):
        return self.engine.multiply(ct, ct, self.relin_key)

    def add_plain(self, ct, val: float):
        # constant addition keeps the level
        return self.engine.add(ct, float(val))

    def multiply_plain(self, ct, val):
        """
        Multiply ciphertext by a plaintext scalar or vector.
        """
        if np.isscalar(val):
            return self.engine.multiply(ct, val)
        pt = self.engine.encode(np.array(val, dtype=np.float64))
        return self.engine.multiply(ct, pt)

    def probe(self, ct, label: Optional[str] = None) -> None:
        """
        Development-only: decrypt and print the first slot and remaining level.
        Never call this from the evaluation path.
        """
        val = self.decrypt(ct)[0]
        prefix = f"{label}: " if label else ""
        print(f"{prefix}Val: {val:.6f} Level: {ct.level}")
