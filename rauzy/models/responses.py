"""API response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    cached_point_sets: int = 0
    cached_eigenbases: int = 0
    tribonacci_terms: int = 0


class PointModel(BaseModel):
    re: float
    im: float
    base_type: int


class PointsResponse(BaseModel):
    point_count: int
    word_length: int
    cache_outcome: str
    reused_points: int = 0
    faults: int = 0
    index_map_sizes: dict[str, int] = Field(default_factory=dict)
    points: list[PointModel] = Field(default_factory=list)
    processing_time_ms: float = 0.0


class Point2DModel(BaseModel):
    re: float
    im: float


class PathWeightModel(BaseModel):
    path: list[int]
    rp: int
    coeffs: dict[str, int]
    cl: int
    sequence: list[int]
    first_point: Point2DModel | None = None
    statistics: dict[str, Any] = Field(default_factory=dict)


class PathWeightsResponse(BaseModel):
    point_count: int
    records: list[PathWeightModel] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)
    processing_time_ms: float = 0.0


class PartitionsResponse(BaseModel):
    target: int
    count: int
    partitions: list[list[int]]
    stats: dict[str, Any] = Field(default_factory=dict)


class PathsByLengthResponse(BaseModel):
    length: int
    count: int
    paths: list[list[int]]
    stats: dict[str, Any] = Field(default_factory=dict)
