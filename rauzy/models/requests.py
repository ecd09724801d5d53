"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PointsRequest(BaseModel):
    target_count: int = Field(..., ge=1, description="Number of base points to compute")
    include_points: bool = Field(default=True, description="Return the point array, not just metadata")


class PathWeightsRequest(BaseModel):
    paths: list[list[int]] = Field(..., min_length=1, description="Digit paths over {1,2,3}")
    target_count: int = Field(default=10_000, ge=1, description="Point set the paths are evaluated on")
