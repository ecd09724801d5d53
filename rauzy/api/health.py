"""Health check + cache introspection."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from rauzy import __version__
from rauzy.dependencies import get_context
from rauzy.engine.context import ComputationContext
from rauzy.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(ctx: ComputationContext = Depends(get_context)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        cached_point_sets=len(ctx.point_cache),
        cached_eigenbases=len(ctx.eigen_cache),
        tribonacci_terms=len(ctx.tribonacci),
    )
