"""Ordered partitions of n over the parts {1, 2, 3}.

The number of partitions follows C(n) = C(n-1) + C(n-2) + C(n-3), C(0) = 1,
so it grows like the Tribonacci numbers; n is capped at 20 (121415 partitions).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from typing import Any

from rauzy.engine.errors import ValidationError
from rauzy.engine.sequence import ALPHABET
from rauzy.utils.cache import BoundedCache

logger = logging.getLogger(__name__)

MIN_TARGET = 1
MAX_TARGET = 20

Partition = tuple[int, ...]


def validate_target(n: Any, max_target: int = MAX_TARGET) -> int:
    if isinstance(n, bool) or not isinstance(n, int):
        raise ValidationError(f"Partition target must be an integer, got {n!r}")
    if n < MIN_TARGET:
        raise ValidationError(f"Partition target must be >= {MIN_TARGET}, got {n}")
    if n > max_target:
        raise ValidationError(f"Partition target must be <= {max_target}, got {n}")
    return n


def theoretical_count(n: int) -> int:
    """C(n) for ordered partitions over {1,2,3}; 0 for n < 0."""
    if n < 0:
        return 0
    dp = [0] * (n + 1)
    dp[0] = 1
    for i in range(1, n + 1):
        dp[i] = sum(dp[i - part] for part in ALPHABET if i >= part)
    return dp[n]


def enumerate_partitions(n: int) -> list[Partition]:
    """Backtracking enumeration, lexicographically sorted."""
    result: list[Partition] = []
    current: list[int] = []

    def backtrack(remaining: int) -> None:
        if remaining == 0:
            result.append(tuple(current))
            return
        for part in ALPHABET:
            if part > remaining:
                break
            current.append(part)
            backtrack(remaining - part)
            current.pop()

    backtrack(n)
    result.sort()
    return result


def validate_partitions(partitions: Iterable[Sequence[int]], n: int) -> bool:
    """True when every partition uses only 1/2/3 and sums to ``n``."""
    count = 0
    for partition in partitions:
        count += 1
        if any(d not in ALPHABET for d in partition):
            logger.debug("Partition %s has a part outside {1,2,3}", list(partition))
            return False
        if sum(partition) != n:
            logger.debug("Partition %s sums to %d, expected %d", list(partition), sum(partition), n)
            return False
    expected = theoretical_count(n)
    if count != expected:
        logger.warning("Partition count %d differs from C(%d) = %d", count, n, expected)
    return True


def partition_stats(partitions: Sequence[Sequence[int]]) -> dict[str, Any]:
    if not partitions:
        return {"count": 0, "min_length": 0, "max_length": 0, "avg_length": 0.0, "length_distribution": {}}
    lengths = [len(p) for p in partitions]
    distribution: dict[int, int] = {}
    for length in lengths:
        distribution[length] = distribution.get(length, 0) + 1
    return {
        "count": len(partitions),
        "min_length": min(lengths),
        "max_length": max(lengths),
        "avg_length": round(sum(lengths) / len(lengths), 2),
        "length_distribution": dict(sorted(distribution.items())),
    }


class PartitionGenerator:
    """Memoized partition enumeration; the oldest target is evicted when the cache is full."""

    def __init__(self, cache_size: int = 20, max_target: int = MAX_TARGET) -> None:
        self.max_target = max_target
        self._cache: BoundedCache[int, tuple[Partition, ...]] = BoundedCache(cache_size)

    def generate(self, n: int) -> list[Partition]:
        validate_target(n, self.max_target)
        cached = self._cache.get(n)
        if cached is not None:
            logger.debug("Partition cache hit: %d -> %d partitions", n, len(cached))
            return list(cached)

        t0 = time.perf_counter()
        partitions = enumerate_partitions(n)
        self._cache.set(n, tuple(partitions))
        logger.info(
            "Generated %d partitions of %d in %.2fms",
            len(partitions),
            n,
            (time.perf_counter() - t0) * 1000,
        )
        return partitions

    def precompute(self, targets: Iterable[int] = range(1, 11)) -> None:
        for n in targets:
            self.generate(n)

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._cache), "keys": self._cache.keys()}
