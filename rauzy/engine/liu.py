"""Path weight engine -- Liu's theorem for composite paths over {1, 2, 3}.

For a path L = (l_1, ..., l_m) with weight r_p = Σ l_s and Tribonacci numbers T:

    coeff[1] = T(r_p - 2)
    coeff[2] = T(r_p - 2) + T(r_p - 3)
    coeff[3] = T(r_p - 2) + T(r_p - 3) + T(r_p - 4)
    C_L      = Σ_s Σ_{j=1}^{3 - l_s} T(r_s + j - 2)        (r_s = l_1 + ... + l_s)

and the composite position sequence is

    W_L(k) = round(Σ_i coeff[i] · W_i(k) - C_L)

where W_i is the index map of symbol i. Terms are kept when they address an
existing base point (0 < W_L(k) <= number of base points).

All arithmetic is on Python ints, so large r_p stays exact.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from rauzy.engine.errors import EmptyPathError, InvalidDigitError, RauzyError, ValidationError
from rauzy.engine.points import BasePoint
from rauzy.engine.sequence import ALPHABET
from rauzy.engine.tribonacci import TribonacciOracle

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONSECUTIVE_INVALID = 5


@dataclass(frozen=True)
class PathWeight:
    path: tuple[int, ...]
    rp: int
    coeffs: dict[int, int]
    cl: int
    sequence: tuple[int, ...]
    first_point: tuple[float, float] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "path": list(self.path),
            "rp": self.rp,
            "coeffs": dict(self.coeffs),
            "cl": self.cl,
            "sequence": list(self.sequence),
            "first_point": (
                {"re": self.first_point[0], "im": self.first_point[1]} if self.first_point else None
            ),
        }


@dataclass
class WeightBatch:
    records: list[PathWeight] = field(default_factory=list)
    # Path label ("1,2,3") -> error message
    errors: dict[str, str] = field(default_factory=dict)


def validate_path(path: Iterable[Any]) -> tuple[int, ...]:
    digits = tuple(path) if path is not None else ()
    if not digits:
        raise EmptyPathError("Path must not be empty")
    bad = [d for d in digits if isinstance(d, bool) or d not in ALPHABET]
    if bad:
        raise InvalidDigitError(f"Path may only contain 1, 2, 3; got {bad}")
    return tuple(int(d) for d in digits)


def path_label(path: Iterable[Any]) -> str:
    return ",".join(str(d) for d in path)


def coefficients(rp: int, oracle: TribonacciOracle) -> dict[int, int]:
    t2, t3, t4 = oracle.get(rp - 2), oracle.get(rp - 3), oracle.get(rp - 4)
    return {1: t2, 2: t2 + t3, 3: t2 + t3 + t4}


def constant_term(path: Sequence[int], oracle: TribonacciOracle) -> int:
    cl = 0
    rs = 0
    for ls in path:
        rs += ls
        for j in range(1, 3 - ls + 1):
            cl += oracle.get(rs + j - 2)
    return cl


def compute_weight(
    path: Iterable[int],
    index_maps: Mapping[Any, Sequence[int]],
    base_points: Sequence[Any],
    oracle: TribonacciOracle | None = None,
    max_consecutive_invalid: int = DEFAULT_MAX_CONSECUTIVE_INVALID,
) -> PathWeight:
    """Weight record of ``path`` over the given index maps and base points.

    Neither ``index_maps`` nor ``base_points`` is modified; ``oracle`` only
    grows its memo table.
    """
    digits = validate_path(path)
    maps = [_index_map(index_maps, s) for s in ALPHABET]
    shortest = min(len(m) for m in maps)
    if shortest == 0:
        raise ValidationError("Index maps are empty")

    oracle = oracle if oracle is not None else TribonacciOracle()
    rp = sum(digits)
    coeffs = coefficients(rp, oracle)
    cl = constant_term(digits, oracle)

    bound = len(base_points)
    c1, c2, c3 = coeffs[1], coeffs[2], coeffs[3]
    w1, w2, w3 = maps
    # Non-negative coefficients over increasing index maps make W_L non-decreasing
    monotone = c1 >= 0 and c2 >= 0 and c3 >= 0

    sequence: list[int] = []
    invalid_run = 0
    for k in range(shortest):
        w_lk = round(c1 * w1[k] + c2 * w2[k] + c3 * w3[k] - cl)
        if 0 < w_lk <= bound:
            sequence.append(int(w_lk))
            invalid_run = 0
            continue
        if monotone and w_lk > bound:
            break
        invalid_run += 1
        if sequence and invalid_run >= max_consecutive_invalid:
            break

    first_point = _coords(base_points[sequence[0] - 1]) if sequence else None

    return PathWeight(
        path=digits,
        rp=rp,
        coeffs=coeffs,
        cl=cl,
        sequence=tuple(sequence),
        first_point=first_point,
    )


def compute_weights(
    paths: Iterable[Iterable[int]],
    index_maps: Mapping[Any, Sequence[int]],
    base_points: Sequence[Any],
    oracle: TribonacciOracle | None = None,
    max_consecutive_invalid: int = DEFAULT_MAX_CONSECUTIVE_INVALID,
) -> WeightBatch:
    """Weight every path; a failing path is recorded in ``errors`` and skipped."""
    oracle = oracle if oracle is not None else TribonacciOracle()
    batch = WeightBatch()
    for path in paths:
        path = list(path)
        try:
            batch.records.append(
                compute_weight(path, index_maps, base_points, oracle, max_consecutive_invalid)
            )
        except RauzyError as e:
            label = path_label(path)
            batch.errors[label] = str(e)
            logger.warning("Path [%s] FAILED: %s", label, e)
    return batch


def is_complete(record: PathWeight) -> bool:
    return (
        len(record.path) > 0
        and isinstance(record.rp, int)
        and isinstance(record.cl, int)
        and all(s in record.coeffs for s in ALPHABET)
    )


def path_statistics(record: PathWeight) -> dict[str, Any]:
    seq = record.sequence
    return {
        "path_length": len(record.path),
        "total_weight": record.rp,
        "sequence_length": len(seq),
        "has_first_point": record.first_point is not None,
        "average_sequence_value": sum(seq) / len(seq) if seq else 0.0,
        "max_sequence_value": max(seq) if seq else 0,
        "min_sequence_value": min(seq) if seq else 0,
    }


def _index_map(index_maps: Mapping[Any, Sequence[int]], symbol: int) -> Sequence[int]:
    if symbol in index_maps:
        return index_maps[symbol]
    return index_maps.get(str(symbol), ())


def _coords(point: Any) -> tuple[float, float]:
    if isinstance(point, BasePoint):
        return (point.re, point.im)
    return (float(point[0]), float(point[1]))
