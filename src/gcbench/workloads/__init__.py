# Copyright (c) Syntropy Systems
"""Synthetic workloads measured under each collector configuration."""
from __future__ import annotations

from gcbench.workloads.allocation import ObjectAllocationBenchmark
from gcbench.workloads.base import (
    BenchmarkBase,
    Blackhole,
    WorkloadOptions,
    benchmark,
)
from gcbench.workloads.collection_ops import CollectionOperationsBenchmark
from gcbench.workloads.string_processing import StringProcessingBenchmark

WORKLOADS: tuple[type[BenchmarkBase], ...] = (
    ObjectAllocationBenchmark,
    CollectionOperationsBenchmark,
    StringProcessingBenchmark,
)


def workload_names() -> list[str]:
    return [w.__name__ for w in WORKLOADS]


def find_workload(name: str) -> type[BenchmarkBase] | None:
    """Find a workload class by name, case-insensitively.

    An exact match wins; otherwise the first class whose name contains
    ``name`` is returned.
    """
    needle = name.strip().lower()
    if not needle:
        return None
    for workload in WORKLOADS:
        if workload.__name__.lower() == needle:
            return workload
    for workload in WORKLOADS:
        if needle in workload.__name__.lower():
            return workload
    return None


def all_benchmark_ids() -> list[str]:
    """Every ``Class.method`` identifier across the workload library."""
    ids: list[str] = []
    for workload in WORKLOADS:
        ids.extend(workload.benchmark_ids())
    return ids


__all__ = [
    "WORKLOADS",
    "BenchmarkBase",
    "Blackhole",
    "CollectionOperationsBenchmark",
    "ObjectAllocationBenchmark",
    "StringProcessingBenchmark",
    "WorkloadOptions",
    "all_benchmark_ids",
    "benchmark",
    "find_workload",
    "workload_names",
]
