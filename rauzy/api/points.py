"""POST /api/points -- base point set computation (plain and streaming)."""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from rauzy.config import Settings
from rauzy.dependencies import get_context, get_settings
from rauzy.engine.context import ComputationContext
from rauzy.engine.errors import ValidationError
from rauzy.engine.pipeline import PointSetJob, create_job
from rauzy.models.requests import PointsRequest
from rauzy.models.responses import PointModel, PointsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


_SENTINEL = object()  # marks end of queue


def _check_limit(target_count: int, cfg: Settings) -> None:
    if target_count > cfg.max_target_count:
        raise ValidationError(
            f"Target point count {target_count} exceeds the limit of {cfg.max_target_count}"
        )


def _build_response(job: PointSetJob, include_points: bool, elapsed_ms: float) -> PointsResponse:
    data = job.result
    assert data is not None
    points: list[PointModel] = []
    if include_points:
        points = [PointModel(**p.as_dict()) for p in data.to_points()]
    return PointsResponse(
        point_count=data.point_count,
        word_length=len(data.word),
        cache_outcome=job.outcome.value if job.outcome else "miss",
        reused_points=job.reused,
        faults=job.faults,
        index_map_sizes={str(s): len(positions) for s, positions in data.index_maps.items()},
        points=points,
        processing_time_ms=round(elapsed_ms, 1),
    )


async def _stream_points(req: PointsRequest, ctx: ComputationContext) -> AsyncGenerator[str, None]:
    """Drive job.run_streaming() in a thread, yielding SSE events as they arrive."""
    start = time.perf_counter()
    cancelled = threading.Event()

    try:
        job = create_job(ctx, req.target_count, should_cancel=cancelled.is_set)
    except ValidationError as e:
        data = json.dumps({"type": "error", "message": str(e)})
        yield f"event: error\ndata: {data}\n\n"
        return

    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    def _run_job() -> None:
        """Sync job in thread -- pushes progress dicts onto the async queue."""
        try:
            with ctx.lock:
                for progress in job.run_streaming():
                    loop.call_soon_threadsafe(queue.put_nowait, progress)
        except Exception as e:
            logger.warning("Streaming point job FAILED: %s", e)
            loop.call_soon_threadsafe(
                queue.put_nowait, {"phase": "failed", "status": "error", "message": str(e)}
            )
        finally:
            loop.call_soon_threadsafe(queue.put_nowait, _SENTINEL)

    loop.run_in_executor(None, _run_job)

    try:
        while True:
            item = await queue.get()
            if item is _SENTINEL:
                break
            yield f"event: progress\ndata: {json.dumps(item)}\n\n"
    finally:
        # Client went away or stream finished; either way the job may stop
        cancelled.set()

    if job.result is not None:
        elapsed = (time.perf_counter() - start) * 1000
        response = _build_response(job, req.include_points, elapsed)
        yield f"event: result\ndata: {response.model_dump_json()}\n\n"

    yield f"event: done\ndata: {json.dumps({'type': 'done'})}\n\n"


@router.post("/points/stream")
async def points_stream(
    req: PointsRequest,
    ctx: ComputationContext = Depends(get_context),
    cfg: Settings = Depends(get_settings),
) -> StreamingResponse:
    _check_limit(req.target_count, cfg)
    return StreamingResponse(
        _stream_points(req, ctx),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/points", response_model=PointsResponse)
def points(
    req: PointsRequest,
    ctx: ComputationContext = Depends(get_context),
    cfg: Settings = Depends(get_settings),
) -> PointsResponse:
    _check_limit(req.target_count, cfg)
    start = time.perf_counter()

    job = create_job(ctx, req.target_count)
    with ctx.lock:
        job.run()

    elapsed = (time.perf_counter() - start) * 1000
    return _build_response(job, req.include_points, elapsed)
