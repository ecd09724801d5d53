"""Incremental point cache -- reuse the last computed point set when the target changes.

Lookup outcomes for a cached set of C points and a target of T points:

    SHRINK  T <= C          truncated copy, O(T)
    GROW    C < T <= 2C     cached set returned as the basis for ``incremental_compute``
    MISS    otherwise       absent, expired, incompatible, or too far to grow

Growth never re-projects the cached prefix: the abelian vector is rebuilt by
counting the prefix letters, then only the new suffix is projected.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any

import numpy as np

from rauzy.engine.matrix import MatrixLibrary
from rauzy.engine.points import BaseData
from rauzy.engine.projector import project_range
from rauzy.engine.sequence import DEFAULT_CHUNK, build_index_maps, drain, iter_generate, letter_counts
from rauzy.utils.cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 10 * 60
DEFAULT_GROWTH_FACTOR = 2


class CacheOutcome(enum.Enum):
    SHRINK = "shrink"
    GROW = "grow"
    MISS = "miss"


@dataclass
class CacheLookup:
    outcome: CacheOutcome
    data: BaseData | None = None
    cached_count: int = 0


@dataclass
class CacheEntry:
    data: BaseData
    target_count: int
    eigen_key: str


@dataclass
class WorkProgress:
    """Emitted by ``iter_extend`` at every chunk boundary."""

    stage: str  # "sequence" | "projection"
    done: int
    total: int


@dataclass
class ExtendResult:
    data: BaseData
    reused: int
    faults: int


class IncrementalPointCache:
    """One point set per cache key, TTL-expired."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_S,
        growth_factor: int = DEFAULT_GROWTH_FACTOR,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.growth_factor = growth_factor
        self._cache: TTLCache[str, CacheEntry] = TTLCache(ttl, clock=clock)

    def get(self, key: str, target_count: int, eigen_key: str | None = None) -> CacheLookup:
        """Classify ``target_count`` against the entry under ``key``.

        When ``eigen_key`` is given, an entry projected through a different
        eigenbasis is a MISS.
        """
        entry = self._cache.get(key)
        if entry is None:
            return CacheLookup(CacheOutcome.MISS)

        if eigen_key is not None and entry.eigen_key != eigen_key:
            logger.info(
                "Point cache entry %s was projected with eigenbasis %s, need %s",
                key,
                entry.eigen_key,
                eigen_key,
            )
            return CacheLookup(CacheOutcome.MISS)

        data = entry.data
        if not data.is_consistent:
            logger.warning(
                "Discarding incompatible cache entry %s (word=%d, points=%d)",
                key,
                len(data.word),
                len(data.points),
            )
            return CacheLookup(CacheOutcome.MISS)

        cached_count = data.point_count
        if target_count <= cached_count:
            logger.debug("Point cache hit (shrink): %d -> %d", cached_count, target_count)
            return CacheLookup(CacheOutcome.SHRINK, truncate(data, target_count), cached_count)

        if target_count <= cached_count * self.growth_factor:
            logger.debug("Point cache partial hit (grow): %d -> %d", cached_count, target_count)
            return CacheLookup(CacheOutcome.GROW, data, cached_count)

        logger.debug("Point cache miss: %d -> %d exceeds growth window", cached_count, target_count)
        return CacheLookup(CacheOutcome.MISS, cached_count=cached_count)

    def set(self, key: str, data: BaseData, eigen_key: str) -> None:
        self._cache.set(key, CacheEntry(data=data, target_count=data.point_count, eigen_key=eigen_key))
        logger.info("Point cache stored %s: %d points", key, data.point_count)

    def entry(self, key: str) -> CacheEntry | None:
        return self._cache.get(key)

    def sweep(self) -> int:
        return self._cache.sweep()

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Point cache cleared")

    def stats(self) -> dict[str, Any]:
        entries = self._cache.values()
        return {
            "size": len(self._cache),
            "total_points": sum(e.target_count for e in entries),
            "keys": self._cache.keys(),
        }

    def __len__(self) -> int:
        return len(self._cache)


def truncate(data: BaseData, target_count: int) -> BaseData:
    return data.truncate(target_count)


def seed_data() -> BaseData:
    """Zero-point set; extending it is a from-scratch computation."""
    return BaseData(word="1", points=np.empty((0, 2)), index_maps=build_index_maps("1"))


def iter_extend(
    base: BaseData,
    target_count: int,
    inverse_basis: Any,
    library: MatrixLibrary,
    chunk_size: int = DEFAULT_CHUNK,
) -> Generator[WorkProgress, None, ExtendResult]:
    """Grow ``base`` to ``target_count`` points, yielding at every chunk.

    ``base`` is never modified.
    """
    word_length = target_count + 1
    steps = iter_generate(word_length, chunk_size)
    while True:
        try:
            produced = next(steps)
        except StopIteration as stop:
            word: str = stop.value
            break
        yield WorkProgress("sequence", min(produced, word_length), word_length)

    start = base.point_count
    if start and not word.startswith(base.word):
        logger.warning("Cached word is not a prefix of the regenerated word; reprojecting from scratch")
        start = 0

    # Replay letter counts over the cached prefix only
    counts = letter_counts(word[:start])
    chunks = [base.points[:start]]
    faults = 0
    pos = start
    while pos < target_count:
        stop = min(pos + chunk_size, target_count)
        proj = project_range(word, inverse_basis, pos, stop, counts, library)
        chunks.append(proj.points)
        counts = proj.counts
        faults += proj.faults
        pos = stop
        yield WorkProgress("projection", pos - start, target_count - start)

    points = np.concatenate(chunks) if len(chunks) > 1 else chunks[0].copy()
    data = BaseData(word=word, points=points, index_maps=build_index_maps(word))
    if not data.is_consistent:
        logger.warning(
            "Point set invariant violated after compute: word=%d, points=%d",
            len(data.word),
            len(data.points),
        )
    return ExtendResult(data=data, reused=start, faults=faults)


def incremental_compute(
    cached: BaseData,
    target_count: int,
    inverse_basis: Any,
    library: MatrixLibrary,
    chunk_size: int = DEFAULT_CHUNK,
) -> BaseData:
    """Extend ``cached`` to ``target_count`` points in one go."""
    return drain(iter_extend(cached, target_count, inverse_basis, library, chunk_size)).data
