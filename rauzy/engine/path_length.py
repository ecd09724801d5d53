"""Fixed-length paths -- every string of length k over {1, 2, 3} (3^k of them, k <= 10)."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Sequence
from typing import Any

from rauzy.engine.errors import ValidationError
from rauzy.engine.sequence import ALPHABET
from rauzy.utils.cache import BoundedCache

logger = logging.getLogger(__name__)

MIN_LENGTH = 1
MAX_LENGTH = 10

Path = tuple[int, ...]


def validate_length(k: Any, max_length: int = MAX_LENGTH) -> int:
    if isinstance(k, bool) or not isinstance(k, int):
        raise ValidationError(f"Path length must be an integer, got {k!r}")
    if k < MIN_LENGTH:
        raise ValidationError(f"Path length must be >= {MIN_LENGTH}, got {k}")
    if k > max_length:
        raise ValidationError(f"Path length must be <= {max_length}, got {k}")
    return k


def path_count(k: int) -> int:
    return len(ALPHABET) ** k if k > 0 else 0


def enumerate_paths(k: int) -> list[Path]:
    # product() over a sorted alphabet is already lexicographic
    return list(itertools.product(ALPHABET, repeat=k))


def validate_paths(paths: Iterable[Sequence[int]], k: int) -> bool:
    for path in paths:
        if len(path) != k or any(d not in ALPHABET for d in path):
            return False
    return True


def path_length_stats(paths: Sequence[Sequence[int]]) -> dict[str, Any]:
    if not paths:
        return {
            "total_paths": 0,
            "path_length": 0,
            "total_weight": 0,
            "average_weight": 0.0,
            "min_weight": 0,
            "max_weight": 0,
        }
    weights = [sum(p) for p in paths]
    total = sum(weights)
    return {
        "total_paths": len(paths),
        "path_length": len(paths[0]),
        "total_weight": total,
        "average_weight": total / len(paths),
        "min_weight": min(weights),
        "max_weight": max(weights),
    }


class PathLengthGenerator:
    """Memoized fixed-length enumeration with an oldest-evicted cache."""

    def __init__(self, cache_size: int = 20, max_length: int = MAX_LENGTH) -> None:
        self.max_length = max_length
        self._cache: BoundedCache[int, tuple[Path, ...]] = BoundedCache(cache_size)

    def generate(self, k: int) -> list[Path]:
        validate_length(k, self.max_length)
        cached = self._cache.get(k)
        if cached is not None:
            return list(cached)
        paths = enumerate_paths(k)
        self._cache.set(k, tuple(paths))
        logger.info("Generated %d paths of length %d", len(paths), k)
        return paths

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._cache), "keys": self._cache.keys()}
