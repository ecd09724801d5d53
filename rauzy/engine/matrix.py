"""Matrix library capability.

The engine never solves eigenproblems itself. Everything linear-algebraic goes
through a ``MatrixLibrary``; ``NumpyMatrixLibrary`` is the default binding.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from rauzy.engine.errors import CapabilityUnavailableError

REQUIRED_OPERATIONS = ("matrix", "eig", "column", "re", "im", "transpose", "inv", "multiply")

# Incidence matrix of the Tribonacci substitution 1->12, 2->13, 3->1
TRIBONACCI_MATRIX: tuple[tuple[int, ...], ...] = ((1, 1, 1), (1, 0, 0), (0, 1, 0))


@runtime_checkable
class MatrixLibrary(Protocol):
    def matrix(self, rows: Any) -> Any: ...

    def eig(self, m: Any) -> tuple[Any, Any]: ...

    def column(self, m: Any, index: int) -> Any: ...

    def re(self, x: Any) -> Any: ...

    def im(self, x: Any) -> Any: ...

    def transpose(self, m: Any) -> Any: ...

    def inv(self, m: Any) -> Any: ...

    def multiply(self, a: Any, b: Any) -> Any: ...


class NumpyMatrixLibrary:
    """numpy.linalg binding of the matrix capability."""

    name = "numpy"

    def matrix(self, rows: Any) -> NDArray[np.float64]:
        return np.asarray(rows, dtype=np.float64)

    def eig(self, m: NDArray[np.float64]) -> tuple[NDArray[np.complex128], NDArray[np.complex128]]:
        values, vectors = np.linalg.eig(m)
        return values.astype(np.complex128), vectors.astype(np.complex128)

    def column(self, m: NDArray[Any], index: int) -> NDArray[Any]:
        return np.array(m[:, index])

    def re(self, x: NDArray[Any]) -> NDArray[np.float64]:
        return np.real(x).astype(np.float64)

    def im(self, x: NDArray[Any]) -> NDArray[np.float64]:
        return np.imag(x).astype(np.float64)

    def transpose(self, m: NDArray[Any]) -> NDArray[Any]:
        return np.transpose(m)

    def inv(self, m: NDArray[Any]) -> NDArray[Any]:
        return np.linalg.inv(m)

    def multiply(self, a: NDArray[Any], b: NDArray[Any]) -> NDArray[Any]:
        return np.matmul(a, b)


def require_capability(library: Any) -> MatrixLibrary:
    """Fail fast unless ``library`` provides every operation the engine uses."""
    if library is None:
        raise CapabilityUnavailableError("No matrix library configured")
    missing = [op for op in REQUIRED_OPERATIONS if not callable(getattr(library, op, None))]
    if missing:
        raise CapabilityUnavailableError(
            f"Matrix library {type(library).__name__} lacks: {', '.join(missing)}"
        )
    return library


def matrix_key(rows: Any) -> str:
    """Stable identity for a matrix, e.g. ``"1,1,1;1,0,0;0,1,0"``."""
    arr = np.asarray(rows)
    return ";".join(",".join(_fmt(v) for v in row) for row in arr.tolist())


def _fmt(v: float) -> str:
    return str(int(v)) if float(v).is_integer() else repr(float(v))
