"""Base point data -- the word, its projected points, and per-symbol index maps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from numpy.typing import NDArray

from rauzy.engine.sequence import build_index_maps, digits


@dataclass(frozen=True)
class BasePoint:
    re: float
    im: float
    base_type: int

    def as_dict(self) -> dict[str, Any]:
        return {"re": self.re, "im": self.im, "base_type": self.base_type}


@dataclass
class BaseData:
    """One computed point set.

    ``points[i]`` is base point i+1 and is tagged by ``word[i]``, hence
    ``len(points) == len(word) - 1``.
    """

    word: str = ""
    # Nx2 array of (re, im)
    points: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 2)))
    index_maps: dict[int, list[int]] = field(default_factory=dict)

    @property
    def point_count(self) -> int:
        return len(self.points)

    @property
    def is_consistent(self) -> bool:
        return len(self.word) == len(self.points) + 1

    @property
    def base_types(self) -> NDArray[np.uint8]:
        return digits(self.word[: len(self.points)])

    def point(self, position: int) -> BasePoint:
        """Base point at 1-based ``position``."""
        if not 1 <= position <= len(self.points):
            raise IndexError(f"Point position {position} out of range 1..{len(self.points)}")
        re, im = self.points[position - 1]
        return BasePoint(re=float(re), im=float(im), base_type=int(self.word[position - 1]))

    def to_points(self) -> list[BasePoint]:
        types = self.base_types.tolist()
        return [
            BasePoint(re=float(re), im=float(im), base_type=t)
            for (re, im), t in zip(self.points.tolist(), types)
        ]

    def truncate(self, count: int) -> BaseData:
        """First ``count`` points as an independent copy, index maps rebuilt."""
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")
        word = self.word[: count + 1]
        return BaseData(
            word=word,
            points=self.points[:count].copy(),
            index_maps=build_index_maps(word),
        )
