"""Tests for eigenbasis decomposition and caching."""

from __future__ import annotations

import numpy as np
import pytest

from rauzy.engine.eigen_cache import EigenbasisCache
from rauzy.engine.errors import CapabilityUnavailableError, DecompositionError
from rauzy.engine.matrix import TRIBONACCI_MATRIX, NumpyMatrixLibrary, matrix_key, require_capability

# Real root of x^3 = x^2 + x + 1
TRIBONACCI_CONSTANT = 1.839286755214161


def test_tribonacci_decomposition(library):
    record = EigenbasisCache(library).compute(TRIBONACCI_MATRIX)

    assert record.expanding_value == pytest.approx(TRIBONACCI_CONSTANT)
    assert record.contracting_value.imag > 0
    # |λ1|^2 * λ0 = det = 1
    assert abs(record.contracting_value) ** 2 * record.expanding_value == pytest.approx(1.0)

    assert record.expanding_vector[0] == pytest.approx(1.0)
    assert record.contracting_real[0] == pytest.approx(1.0)
    assert record.contracting_imag[0] == pytest.approx(0.0)

    product = record.basis_matrix @ record.inverse_basis_matrix
    assert np.allclose(product, np.eye(3))


def test_cache_hit_does_not_recompute(library):
    cache = EigenbasisCache(library)
    key = matrix_key(TRIBONACCI_MATRIX)
    first = cache.get_or_compute(key, TRIBONACCI_MATRIX)
    second = cache.get_or_compute(key, TRIBONACCI_MATRIX)
    assert first is second
    assert cache.computations == 1
    assert len(cache) == 1


def test_expired_entry_is_recomputed(library, clock):
    cache = EigenbasisCache(library, ttl=10, clock=clock)
    cache.get_or_compute("k", TRIBONACCI_MATRIX)
    clock.advance(11)
    cache.get_or_compute("k", TRIBONACCI_MATRIX)
    assert cache.computations == 2


def test_sweep_removes_expired(library, clock):
    cache = EigenbasisCache(library, ttl=10, clock=clock)
    cache.get_or_compute("k", TRIBONACCI_MATRIX)
    clock.advance(11)
    assert cache.sweep() == 1
    assert len(cache) == 0


@pytest.mark.parametrize(
    "matrix",
    [
        ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
        ((2, 0, 0), (0, 0.5, 0), (0, 0, 0.5)),
        ((2, 0, 0), (0, 3, 0), (0, 0, 0.5)),
    ],
)
def test_no_usable_eigenpair(library, matrix):
    with pytest.raises(DecompositionError):
        EigenbasisCache(library).compute(matrix)


def test_missing_library():
    cache = EigenbasisCache(None)
    with pytest.raises(CapabilityUnavailableError):
        cache.get_or_compute("k", TRIBONACCI_MATRIX)
    assert len(cache) == 0


def test_library_missing_operations():
    class Partial:
        def matrix(self, rows):
            return np.asarray(rows)

    with pytest.raises(CapabilityUnavailableError, match="eig"):
        require_capability(Partial())


def test_numpy_library_satisfies_capability():
    lib = NumpyMatrixLibrary()
    assert require_capability(lib) is lib


def test_matrix_key():
    assert matrix_key(TRIBONACCI_MATRIX) == "1,1,1;1,0,0;0,1,0"
    assert matrix_key([[0.5, 1], [2, 3]]) == "0.5,1;2,3"
