"""Rauzy fractal point-set and path-weight engine."""

from rauzy.engine.config import EngineConfig
from rauzy.engine.context import ComputationContext, create_context
from rauzy.engine.liu import PathWeight, compute_weight, compute_weights
from rauzy.engine.pipeline import PointSetJob, compute_points
from rauzy.engine.points import BaseData, BasePoint
from rauzy.engine.sequence import generate

__all__ = [
    "EngineConfig",
    "ComputationContext",
    "create_context",
    "PathWeight",
    "compute_weight",
    "compute_weights",
    "PointSetJob",
    "compute_points",
    "BaseData",
    "BasePoint",
    "generate",
]
