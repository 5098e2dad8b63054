# Copyright (c) Syntropy Systems
"""Pydantic models for gcbench."""

from gcbench.models.base import FrozenModel, GCBenchBaseModel
from gcbench.models.results import (
    GCConfiguration,
    GCRunResult,
    RunState,
    WorkloadResult,
    throughput_scale,
)

__all__ = [
    "FrozenModel",
    "GCBenchBaseModel",
    "GCConfiguration",
    "GCRunResult",
    "RunState",
    "WorkloadResult",
    "throughput_scale",
]
