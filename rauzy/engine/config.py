"""Engine configuration -- cache lifetimes, chunking, and input limits."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rauzy.engine.matrix import TRIBONACCI_MATRIX, matrix_key

if TYPE_CHECKING:
    from rauzy.config import Settings


@dataclass
class EngineConfig:
    """Controls caching and checkpoint granularity of point-set computations."""

    # Substitution incidence matrix and its cache identity
    incidence_matrix: tuple[tuple[int, ...], ...] = TRIBONACCI_MATRIX
    eigen_key: str = field(default="")
    # Single incremental point set shared by a session
    cache_key: str = "rauzy-incremental"

    # Cache lifetimes (seconds)
    eigen_ttl_s: float = 30 * 60
    point_cache_ttl_s: float = 10 * 60
    sweep_interval_s: float = 5 * 60

    # Growth window: a cached set of C points is extended up to growth_factor * C
    growth_factor: int = 2

    # Checkpoint granularity (symbols / points between cooperative yields)
    chunk_size: int = 5000

    # Liu's theorem: stop after this many consecutive out-of-range terms
    max_consecutive_invalid: int = 5

    # Combinatorial generators
    combinatorics_cache_size: int = 20
    partition_max: int = 20
    path_length_max: int = 10

    def __post_init__(self) -> None:
        if not self.eigen_key:
            self.eigen_key = matrix_key(self.incidence_matrix)

    @classmethod
    def from_settings(cls, settings: Settings) -> EngineConfig:
        return cls(
            eigen_ttl_s=settings.eigen_cache_ttl_s,
            point_cache_ttl_s=settings.point_cache_ttl_s,
            sweep_interval_s=settings.cache_sweep_interval_s,
        )
