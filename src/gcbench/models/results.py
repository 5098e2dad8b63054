# Copyright (c) Syntropy Systems
"""Pydantic models for collector configurations and benchmark results."""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field, field_validator

from .base import FrozenModel, GCBenchBaseModel

_UNSAFE_CHARS = re.compile(r"[\s\W]+")

# Operations per second for one op measured in the given unit
_UNIT_SCALE: dict[str, float] = {
    "ms": 1_000.0,
    "us": 1_000_000.0,
    "µs": 1_000_000.0,
    "ns": 1_000_000_000.0,
}


def throughput_scale(unit: str) -> float:
    """Return the ops/sec conversion factor for a time unit, 0.0 if unknown."""
    return _UNIT_SCALE.get(unit, 0.0)


class RunState(str, Enum):
    """Lifecycle of one collector configuration inside a suite run."""

    PENDING = "PENDING"
    CHECKING_AVAILABILITY = "CHECKING_AVAILABILITY"
    UNAVAILABLE = "UNAVAILABLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {RunState.UNAVAILABLE, RunState.COMPLETED, RunState.FAILED, RunState.TIMED_OUT}
)


class GCConfiguration(FrozenModel):
    """A named set of runtime flags selecting a memory-management strategy."""

    name: str
    flags: tuple[str, ...] = ()

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            msg = "GC configuration name must not be empty"
            raise ValueError(msg)
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def flags_string(self) -> str:
        return " ".join(self.flags)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def safe_name(self) -> str:
        """Filesystem-safe form of the name, e.g. ``"GC Disabled"`` -> ``"gc-disabled"``."""
        return _UNSAFE_CHARS.sub("-", self.name.lower())


class WorkloadResult(FrozenModel):
    """One benchmark's summary line as reported by the measurement harness."""

    benchmark: str
    average_time: float
    error: float
    unit: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def throughput(self) -> float:
        """Derived ops/sec; 0.0 for unknown units or non-positive averages."""
        scale = throughput_scale(self.unit)
        if scale == 0.0 or self.average_time <= 0:
            return 0.0
        return scale / self.average_time

    @property
    def short_name(self) -> str:
        return self.benchmark.rsplit(".", 1)[-1]

    def average_time_ms(self) -> float:
        """Average time converted to milliseconds when the unit is known."""
        scale = throughput_scale(self.unit)
        if scale == 0.0:
            return self.average_time
        return self.average_time * 1_000.0 / scale


class GCRunResult(GCBenchBaseModel):
    """Outcome of running the workload library under one configuration."""

    name: str
    flags: str = ""
    state: RunState = RunState.PENDING
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None
    benchmarks: dict[str, WorkloadResult] = Field(default_factory=dict)
    memory_deltas: dict[str, str] = Field(default_factory=dict)

    @property
    def successful(self) -> bool:
        return self.state == RunState.COMPLETED

    @property
    def status_label(self) -> str:
        return "SUCCESS" if self.successful else "FAILED"

    def mean_average_time_ms(self) -> float:
        """Mean of per-benchmark average times in milliseconds (0.0 if none)."""
        if not self.benchmarks:
            return 0.0
        times = [r.average_time_ms() for r in self.benchmarks.values()]
        return sum(times) / len(times)

    def mean_throughput(self) -> float:
        if not self.benchmarks:
            return 0.0
        values = [r.throughput for r in self.benchmarks.values()]
        return sum(values) / len(values)
