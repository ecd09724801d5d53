"""Path analysis endpoints -- Liu's theorem weights, partitions, fixed-length paths."""

from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from rauzy.config import Settings
from rauzy.dependencies import get_context, get_settings
from rauzy.engine.context import ComputationContext
from rauzy.engine.errors import ValidationError
from rauzy.engine.liu import PathWeight, compute_weights, path_statistics
from rauzy.engine.partitions import partition_stats
from rauzy.engine.path_length import path_length_stats
from rauzy.engine.pipeline import compute_points
from rauzy.models.requests import PathWeightsRequest
from rauzy.models.responses import (
    PartitionsResponse,
    PathsByLengthResponse,
    PathWeightModel,
    PathWeightsResponse,
    Point2DModel,
)

router = APIRouter()


def _weight_model(record: PathWeight) -> PathWeightModel:
    first = record.first_point
    return PathWeightModel(
        path=list(record.path),
        rp=record.rp,
        coeffs={str(s): c for s, c in record.coeffs.items()},
        cl=record.cl,
        sequence=list(record.sequence),
        first_point=Point2DModel(re=first[0], im=first[1]) if first else None,
        statistics=path_statistics(record),
    )


@router.post("/paths/weights", response_model=PathWeightsResponse)
def path_weights(
    req: PathWeightsRequest,
    ctx: ComputationContext = Depends(get_context),
    cfg: Settings = Depends(get_settings),
) -> PathWeightsResponse:
    if req.target_count > cfg.max_target_count:
        raise ValidationError(
            f"Target point count {req.target_count} exceeds the limit of {cfg.max_target_count}"
        )
    start = time.perf_counter()

    with ctx.lock:
        data = compute_points(ctx, req.target_count)
        batch = compute_weights(
            req.paths,
            data.index_maps,
            data.points,
            oracle=ctx.tribonacci,
            max_consecutive_invalid=ctx.config.max_consecutive_invalid,
        )

    elapsed = (time.perf_counter() - start) * 1000
    return PathWeightsResponse(
        point_count=data.point_count,
        records=[_weight_model(r) for r in batch.records],
        errors=batch.errors,
        processing_time_ms=round(elapsed, 1),
    )


@router.get("/partitions/{n}", response_model=PartitionsResponse)
def partitions(n: int, ctx: ComputationContext = Depends(get_context)) -> PartitionsResponse:
    result = ctx.partitions.generate(n)
    return PartitionsResponse(
        target=n,
        count=len(result),
        partitions=[list(p) for p in result],
        stats=partition_stats(result),
    )


@router.get("/paths/length/{k}", response_model=PathsByLengthResponse)
def paths_by_length(k: int, ctx: ComputationContext = Depends(get_context)) -> PathsByLengthResponse:
    result = ctx.path_lengths.generate(k)
    return PathsByLengthResponse(
        length=k,
        count=len(result),
        paths=[list(p) for p in result],
        stats=path_length_stats(result),
    )
