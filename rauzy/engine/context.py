"""ComputationContext -- the long-lived state shared by every computation of a session.

Owns the Tribonacci memo table, the eigenbasis cache, the incremental point
cache and the combinatorial generators. Contexts are independent: two
contexts never share a cache.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from rauzy.engine.config import EngineConfig
from rauzy.engine.eigen_cache import EigenbasisCache, EigenbasisRecord
from rauzy.engine.incremental_cache import IncrementalPointCache
from rauzy.engine.matrix import MatrixLibrary, NumpyMatrixLibrary
from rauzy.engine.partitions import PartitionGenerator
from rauzy.engine.path_length import PathLengthGenerator
from rauzy.engine.tribonacci import TribonacciOracle
from rauzy.utils.cache import PeriodicSweeper

logger = logging.getLogger(__name__)


@dataclass
class ComputationContext:
    """Shared caches flowing through point-set jobs and path analysis."""

    config: EngineConfig = field(default_factory=EngineConfig)
    matrix_library: MatrixLibrary | None = field(default_factory=NumpyMatrixLibrary)

    tribonacci: TribonacciOracle = field(default_factory=TribonacciOracle)
    eigen_cache: EigenbasisCache = field(init=False)
    point_cache: IncrementalPointCache = field(init=False)
    partitions: PartitionGenerator = field(init=False)
    path_lengths: PathLengthGenerator = field(init=False)

    # Held by callers that run jobs from more than one thread
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _sweeper: PeriodicSweeper | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        cfg = self.config
        self.eigen_cache = EigenbasisCache(self.matrix_library, ttl=cfg.eigen_ttl_s)
        self.point_cache = IncrementalPointCache(
            ttl=cfg.point_cache_ttl_s, growth_factor=cfg.growth_factor
        )
        self.partitions = PartitionGenerator(
            cache_size=cfg.combinatorics_cache_size, max_target=cfg.partition_max
        )
        self.path_lengths = PathLengthGenerator(
            cache_size=cfg.combinatorics_cache_size, max_length=cfg.path_length_max
        )

    def eigenbasis(self) -> EigenbasisRecord:
        return self.eigen_cache.get_or_compute(self.config.eigen_key, self.config.incidence_matrix)

    def sweep(self) -> int:
        """Evict stale cache entries; waits for any running job to release ``lock``."""
        with self.lock:
            return self.eigen_cache.sweep() + self.point_cache.sweep()

    def start_sweeper(self) -> PeriodicSweeper:
        if self._sweeper is None:
            self._sweeper = PeriodicSweeper(self.config.sweep_interval_s, [self.sweep])
        self._sweeper.start()
        return self._sweeper

    def stop_sweeper(self) -> None:
        if self._sweeper is not None:
            self._sweeper.stop()

    def clear(self) -> None:
        self.tribonacci.clear()
        self.eigen_cache.clear()
        self.point_cache.clear()
        self.partitions.clear()
        self.path_lengths.clear()

    def stats(self) -> dict[str, Any]:
        return {
            "tribonacci_terms": len(self.tribonacci),
            "eigen_cache": self.eigen_cache.stats(),
            "point_cache": self.point_cache.stats(),
            "partitions": self.partitions.stats(),
            "path_lengths": self.path_lengths.stats(),
        }


def create_context(
    config: EngineConfig | None = None,
    matrix_library: MatrixLibrary | None = None,
) -> ComputationContext:
    """Factory for a fresh context backed by numpy unless another library is given."""
    return ComputationContext(
        config=config or EngineConfig(),
        matrix_library=matrix_library or NumpyMatrixLibrary(),
    )
