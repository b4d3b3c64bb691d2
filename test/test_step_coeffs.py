# test/test_step_coeffs.py

import json
import math

import numpy as np
import pytest

from fourier_step_fhe.depth import ConfigurationError
from fourier_step_fhe.generator.generate_step_coeffs import (
    StepCoefficients,
    compute_step_coeffs,
    load_step_coeffs,
    save_step_coeffs,
)


@pytest.mark.parametrize("degree", [1, 4, 8, 16])
def test_closed_form(degree):
    coeffs = compute_step_coeffs(degree)
    k = np.arange(1, degree + 1)
    coeff, sincoeff, coscoeff = coeffs.as_arrays()
    assert coeff.shape == sincoeff.shape == coscoeff.shape == (degree,)
    assert np.allclose(coeff, 2.0 / (k * math.pi), rtol=0, atol=1e-15)
    assert np.allclose(sincoeff, k * math.pi / 64.0, rtol=0, atol=1e-15)
    assert np.array_equal(sincoeff, coscoeff)


def test_coeff_magnitudes_strictly_decrease():
    coeff, _, _ = compute_step_coeffs(16).as_arrays()
    assert np.all(coeff > 0)
    assert np.all(np.diff(coeff) < 0)


def test_domain_size_scales_frequencies():
    coeffs = compute_step_coeffs(4, domain_size=32)
    assert coeffs.sincoeff[0] == pytest.approx(math.pi / 32)
    # amplitude weights do not depend on the domain
    assert coeffs.coeff == compute_step_coeffs(4).coeff


@pytest.mark.parametrize("degree", [0, -3])
def test_non_positive_degree_rejected(degree):
    with pytest.raises(ConfigurationError):
        compute_step_coeffs(degree)
    # configuration errors are ValueErrors
    with pytest.raises(ValueError):
        compute_step_coeffs(degree)


def test_non_positive_domain_rejected():
    with pytest.raises(ConfigurationError):
        compute_step_coeffs(4, domain_size=0)


def test_tables_are_cached_and_immutable():
    a = compute_step_coeffs(8)
    assert a is compute_step_coeffs(8)
    assert isinstance(a.coeff, tuple)
    with pytest.raises(AttributeError):
        a.degree = 3


def test_json_roundtrip(tmp_path):
    coeffs = compute_step_coeffs(8)
    path = tmp_path / "coeffs" / "step_d8_coeffs.json"
    save_step_coeffs(coeffs, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["degree"] == 8
    assert data["entries"][0][0] == 1
    assert len(data["entries"][0]) == 4

    loaded = load_step_coeffs(path)
    assert isinstance(loaded, StepCoefficients)
    assert loaded == coeffs


def test_load_rejects_gaps(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({
        "degree": 2,
        "domain_size": 64,
        "entries": [[1, 0.6, 0.05, 0.05], [3, 0.2, 0.15, 0.15]],
    }), encoding="utf-8")
    with pytest.raises(ValueError):
        load_step_coeffs(path)
