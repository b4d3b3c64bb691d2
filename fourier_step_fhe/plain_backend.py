"""
Plaintext stand-in for the CKKS engine.

Values carry a level exactly like ciphertexts do, and every operation
consumes its operands and returns a fresh value, so circuits can be costed
and checked without keys or encryption noise. Arithmetic is plain float64.
"""
from __future__ import annotations

import dataclasses
from collections import Counter
from typing import Any

import numpy as np


@dataclasses.dataclass(frozen=True)
class LeveledValue:
    value: np.ndarray
    level: int

    @property
    def exhausted(self) -> bool:
        # a real ciphertext would decrypt to noise from here on
        return self.level < 0


class PlainBackend:
    """
    Same capability surface as ``EngineWrapper``: add / subtract / multiply /
    square / multiply_plain / add_plain, plus encrypt/decrypt for symmetry.
    ``counts`` records how many times each operation ran.
    """

    def __init__(self, max_level: int = 30):
        self.max_level = max_level
        self.counts: Counter = Counter()

    def reset_counts(self) -> None:
        self.counts.clear()

    def encrypt(self, data: Any) -> LeveledValue:
        return LeveledValue(np.atleast_1d(np.asarray(data, dtype=np.float64)), self.max_level)

    def decrypt(self, ct: LeveledValue) -> np.ndarray:
        return np.array(ct.value)

    def level(self, ct: LeveledValue) -> int:
        return ct.level

    def add(self, a: LeveledValue, b: LeveledValue) -> LeveledValue:
        self.counts["add"] += 1
        return LeveledValue(a.value + b.value, min(a.level, b.level))

    def subtract(self, a: LeveledValue, b: LeveledValue) -> LeveledValue:
        self.counts["subtract"] += 1
        return LeveledValue(a.value - b.value, min(a.level, b.level))

    def multiply(self, a: LeveledValue, b: LeveledValue) -> LeveledValue:
        self.counts["multiply"] += 1
        return LeveledValue(a.value * b.value, min(a.level, b.level) - 1)

    def square(self, ct: LeveledValue) -> LeveledValue:
        self.counts["square"] += 1
        return LeveledValue(ct.value * ct.value, ct.level - 1)

    def multiply_plain(self, ct: LeveledValue, val: float) -> LeveledValue:
        self.counts["multiply_plain"] += 1
        return LeveledValue(ct.value * val, ct.level - 1)

    def add_plain(self, ct: LeveledValue, val: float) -> LeveledValue:
        self.counts["add_plain"] += 1
        return LeveledValue(ct.value + val, ct.level)
