"""Tribonacci oracle -- memoized F(n) = F(n-1) + F(n-2) + F(n-3).

Seeds: F(-3)=0, F(-2)=-1, F(-1)=1, F(0)=0, F(1)=0, F(2)=1.
Indices below -3 read as 0. Evaluation is bottom-up from the highest
memoized index, so arbitrarily large n never recurses.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

SEEDS: dict[int, int] = {-3: 0, -2: -1, -1: 1, 0: 0, 1: 0, 2: 1}
MIN_INDEX = -3


class TribonacciOracle:
    """Memo table for the order-3 recurrence used by sequence sizing and Liu's theorem."""

    def __init__(self) -> None:
        self._table: dict[int, int] = dict(SEEDS)
        self._max = max(SEEDS)

    def get(self, n: int) -> int:
        if n < MIN_INDEX:
            return 0
        if n <= self._max:
            return self._table[n]
        table = self._table
        for i in range(self._max + 1, n + 1):
            table[i] = table[i - 1] + table[i - 2] + table[i - 3]
        self._max = n
        return table[n]

    __call__ = get

    def precompute(self, max_index: int) -> None:
        if max_index > self._max:
            self.get(max_index)
            logger.debug("Tribonacci table precomputed to F(%d)", max_index)

    def clear(self) -> None:
        self._table = dict(SEEDS)
        self._max = max(SEEDS)

    def snapshot(self) -> dict[int, int]:
        return dict(self._table)

    @property
    def max_index(self) -> int:
        return self._max

    def __len__(self) -> int:
        return len(self._table)
