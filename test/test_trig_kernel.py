# test/test_trig_kernel.py

import math

import numpy as np
import pytest

from fourier_step_fhe.depth import DOUBLING_OPS, KERNEL_DEPTH, KERNEL_OPS, ConfigurationError
from fourier_step_fhe.plain_backend import PlainBackend
from fourier_step_fhe.trig_kernel import (
    CALIBRATED_RADIUS,
    REFERENCE_ANGLE,
    TrigKernel,
    reduced_cosine_bound,
    taylor_cosine,
    taylor_reduced_cosine,
    taylor_sine,
    truncation_bound,
)


@pytest.fixture
def backend():
    return PlainBackend(max_level=20)


@pytest.fixture
def kernel(backend):
    return TrigKernel(backend)


def test_truncation_bound_values():
    assert truncation_bound(CALIBRATED_RADIUS) < 3e-7
    assert truncation_bound(math.pi / 2) < 3e-5
    assert truncation_bound(2.0) < 1e-3
    assert truncation_bound(math.pi) < 3e-2


def test_exact_at_reference_point(kernel, backend):
    out = kernel.sine(backend.encrypt(REFERENCE_ANGLE))
    assert backend.decrypt(out)[0] == pytest.approx(-1.0, abs=1e-15)


@pytest.mark.parametrize("radius,eps", [(CALIBRATED_RADIUS, 3e-5), (2.0, 1e-3), (math.pi, 3e-2)])
def test_sine_error_within_bound(kernel, backend, radius, eps):
    x = REFERENCE_ANGLE + np.linspace(-radius, radius, 101)
    out = backend.decrypt(kernel.sine(backend.encrypt(x)))
    err = np.max(np.abs(out - np.sin(x)))
    assert err <= truncation_bound(radius) + 1e-12
    assert err < eps


def test_error_grows_away_from_reference(backend):
    near = REFERENCE_ANGLE + np.linspace(-0.5, 0.5, 11)
    far = REFERENCE_ANGLE + np.linspace(3.0, 3.5, 11)
    assert np.max(np.abs(taylor_sine(near) - np.sin(near))) < np.max(np.abs(taylor_sine(far) - np.sin(far)))


def test_kernel_matches_plaintext_twin(kernel, backend):
    x = np.linspace(0.0, 2 * math.pi, 64)
    out = backend.decrypt(kernel.sine(backend.encrypt(x)))
    assert np.allclose(out, taylor_sine(x), rtol=1e-12, atol=1e-12)
    out_cos = backend.decrypt(kernel.cosine(backend.encrypt(x)))
    assert np.allclose(out_cos, taylor_cosine(x), rtol=1e-12, atol=1e-12)


def test_cosine_is_phase_shifted_sine(kernel, backend):
    x = math.pi + np.linspace(-2.0, 2.0, 41)
    cos_out = backend.decrypt(kernel.cosine(backend.encrypt(x)))
    sin_shifted = backend.decrypt(kernel.sine(backend.encrypt(x + math.pi / 2)))
    assert np.allclose(cos_out, sin_shifted, atol=1e-9)
    # cosine shares the calibrated window, shifted by pi/2
    assert np.max(np.abs(cos_out - np.cos(x))) < 1e-3


def test_kernel_depth_and_operation_counts(kernel, backend):
    ct = backend.encrypt([4.0, 5.0])
    out = kernel.sine(ct)
    assert ct.level - out.level == KERNEL_DEPTH
    assert dict(backend.counts) == KERNEL_OPS


def test_kernel_does_not_touch_operand(kernel, backend):
    ct = backend.encrypt([4.5])
    kernel.cosine(ct)
    assert ct.level == backend.max_level
    assert ct.value[0] == 4.5


@pytest.mark.parametrize("order", [6, 10])
def test_kernel_order_is_fixed(backend, order):
    with pytest.raises(ConfigurationError):
        TrigKernel(backend, order=order)


def test_raw_kernel_fails_on_wide_angles(backend, kernel):
    # what the series would hand the kernel without reduction at D=8
    x = np.array([-8 * math.pi, 8 * math.pi])
    out = backend.decrypt(kernel.cosine(backend.encrypt(x)))
    assert np.max(np.abs(out - np.cos(x))) > 100.0


@pytest.mark.parametrize("steps", [2, 5])
def test_reduced_cosine_within_bound(kernel, backend, steps):
    radius = math.pi / 4
    y = np.linspace(-radius, radius, 201) * 2 ** steps
    out = backend.decrypt(kernel.reduced_cosine(backend.encrypt(y * 2.0 ** -steps), steps))
    assert np.max(np.abs(out - np.cos(y))) <= reduced_cosine_bound(steps, radius) + 1e-12


def test_reduced_cosine_with_shift_gives_sine(kernel, backend):
    steps = 5
    scale = 2.0 ** -steps
    y = np.linspace(0.0, 8 * math.pi, 101)
    ct = backend.encrypt(y * scale)
    out = backend.decrypt(kernel.reduced_cosine(ct, steps, shift=-0.5 * math.pi * scale))
    # |y - pi/2| / 32 < 0.84
    assert np.max(np.abs(out - np.sin(y))) <= reduced_cosine_bound(steps, 0.84) + 1e-12


def test_reduced_cosine_matches_plaintext_twin(kernel, backend):
    y = np.linspace(-4 * math.pi, 4 * math.pi, 64)
    out = backend.decrypt(kernel.reduced_cosine(backend.encrypt(y / 16.0), 4))
    assert np.allclose(out, taylor_reduced_cosine(y, 4), rtol=1e-12, atol=1e-12)


def test_reduced_cosine_depth_and_operation_counts(kernel, backend):
    ct = backend.encrypt([0.1, -0.3])
    out = kernel.reduced_cosine(ct, 3)
    assert ct.level - out.level == KERNEL_DEPTH + 3
    expected = {op: KERNEL_OPS.get(op, 0) + 3 * DOUBLING_OPS.get(op, 0)
                for op in set(KERNEL_OPS) | set(DOUBLING_OPS)}
    assert dict(backend.counts) == expected


def test_reduced_cosine_needs_a_doubling(kernel, backend):
    with pytest.raises(ConfigurationError):
        kernel.reduced_cosine(backend.encrypt(0.5), 0)


def test_reduced_cosine_bound_grows_with_steps():
    assert reduced_cosine_bound(0, 1.0) == truncation_bound(1.0)
    assert reduced_cosine_bound(1, 1.0) > 4 * truncation_bound(1.0)
    assert reduced_cosine_bound(6, math.pi / 4) < 1.1e-4
