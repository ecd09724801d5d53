"""Point projector -- abelian vectors of word prefixes into the contracting plane.

Point N (1-based, N = 1..len(word)-1) is produced by counting ``word[N-1]``
into the running abelian vector and mapping it through the inverse basis
matrix; coordinates 2 and 3 of the result are (re, im). The tag of point N is
``word[N-1]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from rauzy.engine.matrix import MatrixLibrary, require_capability
from rauzy.engine.sequence import digits

logger = logging.getLogger(__name__)

# Value written in place of NaN/inf coordinates
CLAMP_VALUE = 0.0


@dataclass
class Projection:
    points: NDArray[np.float64]
    counts: NDArray[np.float64]
    faults: int = 0


def project_range(
    word: str,
    inverse_basis: Any,
    start: int,
    stop: int,
    counts: NDArray[np.float64] | None,
    library: MatrixLibrary,
) -> Projection:
    """Project points ``start .. stop-1`` (0-based), continuing from ``counts``.

    ``counts`` must be the abelian vector of ``word[:start]``.
    """
    if not 0 <= start <= stop <= max(len(word) - 1, 0):
        raise ValueError(f"Invalid projection range [{start}, {stop}) for word of length {len(word)}")
    lib = require_capability(library)
    base = np.zeros(3, dtype=np.float64) if counts is None else np.asarray(counts, dtype=np.float64)

    n = stop - start
    if n == 0:
        return Projection(points=np.empty((0, 2)), counts=base.copy())

    letters = digits(word[start:stop])
    steps = np.zeros((n, 3), dtype=np.float64)
    steps[np.arange(n), letters - 1] = 1.0
    abelian = base + np.cumsum(steps, axis=0)

    # Row-wise inv @ v, i.e. abelian @ inv.T
    coords = np.asarray(lib.multiply(abelian, lib.transpose(inverse_basis)))
    points = np.real(coords[:, 1:3]).astype(np.float64)

    bad = ~np.isfinite(points)
    faults = int(bad.any(axis=1).sum())
    if faults:
        points[bad] = CLAMP_VALUE
        logger.warning(
            "Clamped %d non-finite projected points in [%d, %d) to %.1f",
            faults,
            start,
            stop,
            CLAMP_VALUE,
        )

    return Projection(points=points, counts=abelian[-1].copy(), faults=faults)


def project(word: str, inverse_basis: Any, library: MatrixLibrary) -> NDArray[np.float64]:
    """All ``len(word) - 1`` base points of ``word`` as an (N, 2) array."""
    if len(word) < 2:
        return np.empty((0, 2))
    return project_range(word, inverse_basis, 0, len(word) - 1, None, library).points
