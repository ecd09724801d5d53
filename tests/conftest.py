"""Shared test fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from rauzy.engine.config import EngineConfig
from rauzy.engine.context import create_context
from rauzy.engine.eigen_cache import EigenbasisCache
from rauzy.engine.matrix import TRIBONACCI_MATRIX, NumpyMatrixLibrary
from rauzy.engine.projector import project
from rauzy.engine.sequence import build_index_maps, generate


# First ten symbols of the Tribonacci word
WORD_10 = "1213121121"


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def library():
    return NumpyMatrixLibrary()


@pytest.fixture
def inverse_basis(library):
    record = EigenbasisCache(library).compute(TRIBONACCI_MATRIX)
    return record.inverse_basis_matrix


@pytest.fixture
def ctx():
    """Fresh context with small chunks so jobs hit several checkpoints."""
    return create_context(EngineConfig(chunk_size=16))


@pytest.fixture
def small_base(inverse_basis, library):
    """Word of 10 symbols, its 9 projected points and index maps."""
    word = generate(10)
    points = project(word, inverse_basis, library)
    return word, points, build_index_maps(word)


def assert_points_equal(a, b):
    assert a.shape == b.shape
    assert np.allclose(a, b, rtol=0, atol=1e-9)
