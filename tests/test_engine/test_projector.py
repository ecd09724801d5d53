"""Tests for projecting word prefixes into the contracting plane."""

from __future__ import annotations

import numpy as np
import pytest

from rauzy.engine.matrix import NumpyMatrixLibrary
from rauzy.engine.projector import CLAMP_VALUE, project, project_range
from rauzy.engine.sequence import generate, letter_counts
from tests.conftest import assert_points_equal


class NanLibrary(NumpyMatrixLibrary):
    """Degenerate binding: every other projected row is NaN."""

    def multiply(self, a, b):
        out = np.matmul(a, b)
        out[::2] = np.nan
        return out


@pytest.mark.parametrize("length", [2, 10, 101, 1000])
def test_point_count(length, inverse_basis, library):
    points = project(generate(length), inverse_basis, library)
    assert points.shape == (length - 1, 2)


def test_short_words_have_no_points(inverse_basis, library):
    assert project("1", inverse_basis, library).shape == (0, 2)


def test_first_point_is_projection_of_first_symbol(inverse_basis, library):
    points = project(generate(5), inverse_basis, library)
    expected = (inverse_basis @ np.array([1.0, 0.0, 0.0]))[1:3]
    assert np.allclose(points[0], expected)


def test_points_match_explicit_abelian_vectors(inverse_basis, library):
    word = generate(30)
    points = project(word, inverse_basis, library)
    for n in (1, 7, 29):
        coords = inverse_basis @ letter_counts(word[:n])
        assert np.allclose(points[n - 1], coords[1:3])


def test_ranges_continue_from_counts(inverse_basis, library):
    word = generate(200)
    full = project(word, inverse_basis, library)

    head = project_range(word, inverse_basis, 0, 120, None, library)
    tail = project_range(word, inverse_basis, 120, 199, head.counts, library)

    assert_points_equal(np.concatenate([head.points, tail.points]), full)
    assert tail.counts.tolist() == letter_counts(word[:199]).tolist()


def test_points_stay_bounded(inverse_basis, library):
    points = project(generate(5000), inverse_basis, library)
    assert np.isfinite(points).all()
    assert np.abs(points).max() < 5.0


def test_invalid_range(inverse_basis, library):
    with pytest.raises(ValueError):
        project_range("1213", inverse_basis, 2, 4, None, library)


def test_non_finite_points_are_clamped(inverse_basis):
    result = project_range(generate(11), inverse_basis, 0, 10, None, NanLibrary())
    assert result.faults == 5
    assert np.isfinite(result.points).all()
    assert (result.points[::2] == CLAMP_VALUE).all()
