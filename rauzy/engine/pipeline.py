"""Point-set job -- a checkpointed, resumable, cancellable point-set computation.

A job is a phase state machine driven by ``step()``:

    LOOKUP → EIGENBASIS → SEQUENCE → PROJECTION → COMMIT → DONE

Each ``step()`` advances one chunk and returns a progress event. Every
checkpoint polls the cancellation predicate; the incremental cache is written
only in COMMIT, so a cancelled or failed job leaves it untouched.
"""

from __future__ import annotations

import enum
import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any

from rauzy.engine.context import ComputationContext
from rauzy.engine.errors import CancelledError, RauzyError
from rauzy.engine.incremental_cache import CacheOutcome, ExtendResult, iter_extend, seed_data
from rauzy.engine.points import BaseData
from rauzy.engine.sequence import require_positive_int

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]
CancelPredicate = Callable[[], bool]


class Phase(enum.Enum):
    LOOKUP = "lookup"
    EIGENBASIS = "eigenbasis"
    SEQUENCE = "sequence"
    PROJECTION = "projection"
    COMMIT = "commit"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


# Percent range covered by each working phase
_SPANS: dict[Phase, tuple[float, float]] = {
    Phase.LOOKUP: (0.0, 5.0),
    Phase.EIGENBASIS: (5.0, 10.0),
    Phase.SEQUENCE: (10.0, 30.0),
    Phase.PROJECTION: (30.0, 95.0),
    Phase.COMMIT: (95.0, 100.0),
}

_TERMINAL = {Phase.DONE, Phase.CANCELLED, Phase.FAILED}


@dataclass
class ProgressEvent:
    phase: Phase
    percent: float
    message: str
    status: str = "running"

    def as_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "percent": round(self.percent, 2),
            "message": self.message,
            "status": self.status,
        }


class PointSetJob:
    """Computes (or reuses) the base point set for ``target_count`` points."""

    def __init__(
        self,
        ctx: ComputationContext,
        target_count: int,
        *,
        on_progress: ProgressCallback | None = None,
        should_cancel: CancelPredicate | None = None,
        cache_key: str | None = None,
    ) -> None:
        self.ctx = ctx
        self.target_count = require_positive_int(target_count, "Target point count")
        self.cache_key = cache_key or ctx.config.cache_key
        self.on_progress = on_progress
        self.should_cancel = should_cancel

        self.phase = Phase.LOOKUP
        self.outcome: CacheOutcome | None = None
        self.result: BaseData | None = None
        self.reused = 0
        self.faults = 0
        self.elapsed_ms = 0.0
        self._percent = 0.0
        self._started: float | None = None
        self._steps = self._work()

    @property
    def finished(self) -> bool:
        return self.phase in _TERMINAL

    def step(self) -> ProgressEvent:
        """Advance to the next checkpoint. Raises once the job is finished."""
        if self.finished:
            raise RuntimeError(f"Job already finished ({self.phase.value})")
        if self._started is None:
            self._started = time.perf_counter()
        try:
            return next(self._steps)
        except CancelledError:
            self.phase = Phase.CANCELLED
            logger.info("Point-set job for %d points cancelled", self.target_count)
            raise
        except Exception:
            self.phase = Phase.FAILED
            raise

    resume = step

    def run(self) -> BaseData:
        while not self.finished:
            self.step()
        assert self.result is not None
        return self.result

    def run_streaming(self) -> Generator[dict[str, Any], None, None]:
        """Drive the job, yielding a progress dict per checkpoint.

        Failures end the stream with a ``cancelled`` or ``error`` event instead
        of raising.
        """
        while not self.finished:
            try:
                event = self.step()
            except CancelledError as e:
                yield ProgressEvent(Phase.CANCELLED, self._percent, str(e), status="cancelled").as_dict()
                return
            except RauzyError as e:
                yield ProgressEvent(Phase.FAILED, self._percent, str(e), status="error").as_dict()
                return
            yield event.as_dict()

    def _work(self) -> Generator[ProgressEvent, None, None]:
        ctx = self.ctx
        n = self.target_count

        yield self._checkpoint(Phase.LOOKUP, 0.0, f"Looking up cached point set for {n} points")
        lookup = ctx.point_cache.get(self.cache_key, n, eigen_key=ctx.config.eigen_key)
        self.outcome = lookup.outcome

        if lookup.outcome is CacheOutcome.SHRINK:
            assert lookup.data is not None
            self.result = lookup.data
            self.reused = n
            yield self._finish(f"Reused cached point set ({lookup.cached_count} -> {n} points)")
            return

        yield self._checkpoint(Phase.EIGENBASIS, 0.0, "Computing eigenbasis")
        record = ctx.eigenbasis()

        base = lookup.data if lookup.outcome is CacheOutcome.GROW and lookup.data else seed_data()
        work = iter_extend(
            base,
            n,
            record.inverse_basis_matrix,
            ctx.matrix_library,
            chunk_size=ctx.config.chunk_size,
        )
        while True:
            try:
                progress = next(work)
            except StopIteration as stop:
                extended: ExtendResult = stop.value
                break
            phase = Phase.SEQUENCE if progress.stage == "sequence" else Phase.PROJECTION
            fraction = progress.done / progress.total if progress.total else 1.0
            label = "Generating symbol sequence" if phase is Phase.SEQUENCE else "Projecting points"
            yield self._checkpoint(phase, fraction, f"{label}... {progress.done}/{progress.total}")

        yield self._checkpoint(Phase.COMMIT, 0.0, "Storing point set")
        ctx.point_cache.set(self.cache_key, extended.data, ctx.config.eigen_key)
        self.result = extended.data
        self.reused = extended.reused
        self.faults = extended.faults

        verb = "Extended" if extended.reused else "Computed"
        yield self._finish(f"{verb} {n - extended.reused} points ({extended.reused} reused)")

    def _checkpoint(self, phase: Phase, fraction: float, message: str) -> ProgressEvent:
        if self.should_cancel is not None and self.should_cancel():
            raise CancelledError(f"Computation of {self.target_count} points cancelled")
        lo, hi = _SPANS[phase]
        self.phase = phase
        self._percent = max(self._percent, lo + (hi - lo) * min(max(fraction, 0.0), 1.0))
        return self._emit(message)

    def _finish(self, message: str) -> ProgressEvent:
        self.phase = Phase.DONE
        self._percent = 100.0
        self.elapsed_ms = (time.perf_counter() - (self._started or time.perf_counter())) * 1000
        logger.info(
            "Point-set job complete: %d points (%s) in %.0fms",
            self.target_count,
            self.outcome.value if self.outcome else "n/a",
            self.elapsed_ms,
        )
        return self._emit(message, status="ok")

    def _emit(self, message: str, status: str = "running") -> ProgressEvent:
        event = ProgressEvent(self.phase, self._percent, message, status)
        if self.on_progress is not None:
            try:
                self.on_progress(event.percent, message)
            except Exception as e:
                logger.warning("Progress callback failed: %s", e)
        return event


def create_job(ctx: ComputationContext, target_count: int, **kwargs: Any) -> PointSetJob:
    """Factory function for creating a point-set job."""
    return PointSetJob(ctx, target_count, **kwargs)


def compute_points(ctx: ComputationContext, target_count: int, **kwargs: Any) -> BaseData:
    """Run a point-set job to completion."""
    return PointSetJob(ctx, target_count, **kwargs).run()
