"""Eigenbasis cache -- change-of-basis matrices for substitution incidence matrices.

For the Tribonacci matrix the spectrum is one real expanding eigenvalue
(|λ| > 1) plus one complex-conjugate contracting pair. The basis matrix has
columns [expanding, Re(contracting), Im(contracting)]; its inverse maps an
abelian vector to (expanding, real, imag) coordinates, of which the last two
are the rendered point.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from rauzy.engine.errors import DecompositionError
from rauzy.engine.matrix import MatrixLibrary, require_capability
from rauzy.utils.cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 30 * 60
_IMAG_TOL = 1e-9
_CONJ_TOL = 1e-6


@dataclass(frozen=True)
class EigenbasisRecord:
    eigenvalues: NDArray[np.complex128]
    expanding_index: int
    contracting_index: int
    expanding_value: float
    contracting_value: complex
    expanding_vector: NDArray[np.float64]
    contracting_real: NDArray[np.float64]
    contracting_imag: NDArray[np.float64]
    basis_matrix: Any
    inverse_basis_matrix: Any


class EigenbasisCache:
    """Per-context table of eigenbasis records, keyed by matrix identity."""

    def __init__(
        self,
        library: MatrixLibrary | None,
        ttl: float = DEFAULT_TTL_S,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.library = library
        self._cache: TTLCache[str, EigenbasisRecord] = TTLCache(ttl, clock=clock)
        self.computations = 0

    def get_or_compute(self, key: str, matrix: Any) -> EigenbasisRecord:
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Eigenbasis cache hit: %s", key)
            return cached

        t0 = time.perf_counter()
        record = self.compute(matrix)
        self._cache.set(key, record)
        logger.info(
            "Eigenbasis %s computed in %.2fms (expanding λ=%.6f)",
            key,
            (time.perf_counter() - t0) * 1000,
            record.expanding_value,
        )
        return record

    def compute(self, matrix: Any) -> EigenbasisRecord:
        """Decompose ``matrix`` without touching the cache."""
        lib = require_capability(self.library)
        self.computations += 1
        m = lib.matrix(matrix)
        values, vectors = lib.eig(m)
        eigenvalues = np.asarray([complex(v) for v in np.ravel(values)], dtype=np.complex128)

        exp_idx = _select_expanding(eigenvalues)
        cplx_idx = _select_contracting(eigenvalues)

        expanding = _normalize(lib.column(vectors, exp_idx), "expanding")
        contracting = _normalize(lib.column(vectors, cplx_idx), "contracting")
        c_re = np.asarray(lib.re(contracting), dtype=np.float64)
        c_im = np.asarray(lib.im(contracting), dtype=np.float64)
        e_re = np.asarray(lib.re(expanding), dtype=np.float64)

        basis = lib.transpose(lib.matrix([e_re, c_re, c_im]))
        try:
            inverse = lib.inv(basis)
        except Exception as e:
            raise DecompositionError(f"Basis matrix is not invertible: {e}") from e

        return EigenbasisRecord(
            eigenvalues=eigenvalues,
            expanding_index=exp_idx,
            contracting_index=cplx_idx,
            expanding_value=float(eigenvalues[exp_idx].real),
            contracting_value=complex(eigenvalues[cplx_idx]),
            expanding_vector=e_re,
            contracting_real=c_re,
            contracting_imag=c_im,
            basis_matrix=basis,
            inverse_basis_matrix=inverse,
        )

    def sweep(self) -> int:
        return self._cache.sweep()

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Eigenbasis cache cleared")

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._cache), "keys": self._cache.keys(), "computations": self.computations}

    def __len__(self) -> int:
        return len(self._cache)


def _select_expanding(values: NDArray[np.complex128]) -> int:
    candidates = [
        i for i, v in enumerate(values) if abs(v.imag) <= _IMAG_TOL and abs(v.real) > 1.0
    ]
    if len(candidates) != 1:
        raise DecompositionError(
            f"Expected exactly one real eigenvalue with |λ|>1, found {len(candidates)}"
        )
    return candidates[0]


def _select_contracting(values: NDArray[np.complex128]) -> int:
    candidates = [i for i, v in enumerate(values) if abs(v.imag) > _IMAG_TOL]
    if len(candidates) != 2:
        raise DecompositionError(
            f"Expected exactly one complex-conjugate eigenpair, found {len(candidates)} complex eigenvalues"
        )
    a, b = values[candidates[0]], values[candidates[1]]
    if abs(a - np.conj(b)) > _CONJ_TOL * max(1.0, abs(a)):
        raise DecompositionError(f"Complex eigenvalues {a} and {b} are not conjugate")
    # Positive imaginary member, so orientation does not depend on solver ordering
    return candidates[0] if a.imag > 0 else candidates[1]


def _normalize(vec: Any, label: str) -> NDArray[np.complex128]:
    v = np.asarray(vec, dtype=np.complex128).ravel()
    if v.size == 0 or abs(v[0]) < _IMAG_TOL:
        raise DecompositionError(f"Cannot normalize {label} eigenvector: first coordinate is zero")
    return v / v[0]
