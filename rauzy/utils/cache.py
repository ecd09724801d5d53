"""Cache primitives -- TTL tables, bounded memo tables, periodic sweeping. No engine imports."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class _Stamped(Generic[V]):
    value: V
    timestamp: float


class TTLCache(Generic[K, V]):
    """Key/value table whose entries go stale ``ttl`` seconds after being set.

    Stale entries are invisible to ``get`` immediately; they are only
    physically removed by ``sweep()``.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[K, _Stamped[V]] = {}

    def get(self, key: K) -> V | None:
        entry = self._entries.get(key)
        if entry is None or self._is_stale(entry):
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = _Stamped(value=value, timestamp=self._clock())

    def timestamp(self, key: K) -> float | None:
        entry = self._entries.get(key)
        return entry.timestamp if entry is not None else None

    def sweep(self) -> int:
        """Remove stale entries. Returns how many were evicted."""
        stale = [k for k, e in list(self._entries.items()) if self._is_stale(e)]
        evicted = 0
        for key in stale:
            # Re-check: the key may have been set again since the scan
            entry = self._entries.get(key)
            if entry is not None and self._is_stale(entry):
                del self._entries[key]
                evicted += 1
        if evicted:
            logger.debug("Swept %d stale entries", evicted)
        return evicted

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        return list(self._entries.keys())

    def values(self) -> list[V]:
        return [e.value for e in self._entries.values() if not self._is_stale(e)]

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)

    def _is_stale(self, entry: _Stamped[V]) -> bool:
        return self._clock() - entry.timestamp > self.ttl


class BoundedCache(Generic[K, V]):
    """Insertion-ordered memo table; the oldest entry is dropped when full."""

    def __init__(self, maxsize: int = 20) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self.maxsize = maxsize
        self._entries: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def set(self, key: K, value: V) -> None:
        if key not in self._entries and len(self._entries) >= self.maxsize:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        return list(self._entries.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class PeriodicSweeper:
    """Calls each registered sweep function every ``interval`` seconds on a daemon timer."""

    def __init__(self, interval: float, sweeps: list[Callable[[], int]] | None = None) -> None:
        self.interval = interval
        self.sweeps: list[Callable[[], int]] = list(sweeps or [])
        self._timer: threading.Timer | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._schedule()
        logger.info("Cache sweeper started (every %.0fs)", self.interval)

    def stop(self) -> None:
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def run_once(self) -> int:
        evicted = 0
        for sweep in self.sweeps:
            try:
                evicted += sweep()
            except Exception as e:
                logger.warning("Cache sweep failed: %s", e)
        return evicted

    def _schedule(self) -> None:
        self._timer = threading.Timer(self.interval, self._tick)
        self._timer.daemon = True
        self._timer.start()

    def _tick(self) -> None:
        if not self._running:
            return
        self.run_once()
        if self._running:
            self._schedule()
